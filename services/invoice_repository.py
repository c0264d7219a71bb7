"""
Invoice Repository - client invoices and formal quotes raised against jobs.

Reference numbers follow "{job_number}-{INV|QTE}-{nn}". Totals are computed
with the same reduction as job quotes (services.pricing).
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session

from database.models import Invoice, InvoiceLineItem, Job, JobPayment
from services.event_logger import EventLogger
from services.pricing import calculate_totals, line_total, money, ZERO
from app.utils.helpers import parse_date

logger = logging.getLogger(__name__)

REFERENCE_CODES = {'invoice': 'INV', 'quote': 'QTE'}


class InvoiceStateError(Exception):
    """Raised when an invoice operation is not allowed in its current status"""
    pass


class InvoiceRepository:
    """Repository for client invoices."""

    HEADER_FIELDS = ['notes', 'discount_type', 'tax_enabled']

    def __init__(self, session: Session, default_terms_days: int = 14):
        self.session = session
        self.default_terms_days = default_terms_days
        self.events = EventLogger(session)

    def next_reference(self, job: Job, invoice_type: str) -> str:
        code = REFERENCE_CODES.get(invoice_type, 'INV')
        prefix = f"{job.job_number}-{code}-"
        number = self.session.query(Invoice).filter(
            Invoice.job_id == job.id,
            Invoice.invoice_type == invoice_type
        ).count() + 1
        while self.session.query(Invoice).filter(Invoice.reference_number == f"{prefix}{number:02d}").first():
            number += 1
        return f"{prefix}{number:02d}"

    def _recalculate(self, invoice: Invoice):
        totals = calculate_totals(
            (line.line_total for line in invoice.line_items),
            discount_type=invoice.discount_type,
            discount_value=invoice.discount_value,
            tax_enabled=bool(invoice.tax_enabled),
            tax_rate=invoice.tax_rate,
        )
        invoice.subtotal = totals['subtotal']
        invoice.discount_amount = totals['discount_amount']
        invoice.tax_amount = totals['tax_amount']
        invoice.total = totals['grand_total']
        invoice.amount_due = max(totals['grand_total'] - money(invoice.amount_paid), ZERO)

    @staticmethod
    def _payment_status(invoice: Invoice) -> str:
        if money(invoice.amount_paid) <= ZERO:
            return 'sent'
        return 'paid' if money(invoice.amount_due) <= ZERO else 'partial'

    def _set_lines(self, invoice: Invoice, lines: List[Dict[str, Any]]):
        invoice.line_items = [
            InvoiceLineItem(
                description=line['description'],
                quantity=money(line.get('quantity', 1)),
                unit_price=money(line.get('unit_price', 0)),
                line_total=line_total(line.get('quantity', 1), line.get('unit_price', 0)),
                position=position
            )
            for position, line in enumerate(lines)
        ]

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list_for_job(self, job_id: str) -> List[Dict]:
        invoices = self.session.query(Invoice).filter(
            Invoice.job_id == job_id
        ).order_by(Invoice.created_at).all()
        return [inv.to_dict() for inv in invoices]

    def get_invoice(self, invoice_id: str) -> Optional[Invoice]:
        return self.session.get(Invoice, invoice_id)

    def get_by_reference(self, reference: str) -> Optional[Invoice]:
        return self.session.query(Invoice).filter(Invoice.reference_number == reference).first()

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def create_invoice(self, job_id: str, data: Dict) -> Optional[Dict]:
        """
        Create an invoice or quote document for a job.

        Lines come from data['line_items'] when given, otherwise they are
        copied from the job's quote items. Discount and tax default to the
        job's settings.
        """
        job = self.session.get(Job, job_id)
        if not job:
            return None

        invoice_type = data.get('type') or 'invoice'
        if invoice_type not in REFERENCE_CODES:
            raise InvoiceStateError(f"Invalid invoice type: {invoice_type}")

        invoice = Invoice(
            job=job,
            reference_number=self.next_reference(job, invoice_type),
            invoice_type=invoice_type,
            status='draft',
            due_date=parse_date(data.get('due_date')),
            discount_type=data.get('discount_type', job.discount_type),
            discount_value=money(data['discount_value']) if data.get('discount_value') is not None
            else job.discount_value,
            tax_enabled=data.get('tax_enabled', job.tax_enabled),
            tax_rate=money(data['tax_rate']) if data.get('tax_rate') is not None else job.tax_rate,
            amount_paid=ZERO,
            notes=data.get('notes')
        )

        if data.get('line_items'):
            lines = data['line_items']
        else:
            lines = [
                {'description': item.description, 'quantity': item.quantity, 'unit_price': item.unit_price}
                for item in job.quote_items
            ]
        if not lines:
            raise InvoiceStateError("Invoice needs at least one line; add quote items or pass line_items")

        self._set_lines(invoice, lines)
        self._recalculate(invoice)
        self.session.add(invoice)
        self.session.flush()

        self.events.log('invoice', invoice.id, 'INVOICE_GENERATED',
                        description=f"{invoice_type.capitalize()} {invoice.reference_number} created for {job.job_number}")
        logger.info(f"Created {invoice_type} {invoice.reference_number} total={invoice.total}")
        return invoice.to_dict()

    def update_invoice(self, invoice_id: str, data: Dict) -> Optional[Dict]:
        """Update header fields (and lines while draft) then recalculate totals."""
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            return None
        if invoice.status in ('paid', 'cancelled'):
            raise InvoiceStateError(f"Cannot edit a {invoice.status} invoice")

        for key in self.HEADER_FIELDS:
            if key in data:
                setattr(invoice, key, data[key])
        if 'discount_value' in data:
            invoice.discount_value = money(data['discount_value']) if data['discount_value'] is not None else None
        if 'tax_rate' in data:
            invoice.tax_rate = money(data['tax_rate']) if data['tax_rate'] is not None else None
        if 'due_date' in data:
            invoice.due_date = parse_date(data['due_date'])
        if 'status' in data and data['status'] == 'cancelled':
            invoice.status = 'cancelled'
        if 'line_items' in data:
            if invoice.status != 'draft':
                raise InvoiceStateError("Line items can only be changed on draft invoices")
            self._set_lines(invoice, data['line_items'])

        self._recalculate(invoice)
        if money(invoice.amount_paid) > money(invoice.total):
            raise InvoiceStateError(
                f"Total of {money(invoice.total)} would be less than the {money(invoice.amount_paid)} already paid"
            )
        if invoice.status in ('sent', 'partial'):
            invoice.status = self._payment_status(invoice)
        invoice.updated_at = datetime.utcnow()
        self.session.flush()
        return invoice.to_dict()

    def delete_invoice(self, invoice_id: str) -> bool:
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            return False
        if invoice.status != 'draft':
            raise InvoiceStateError("Only draft invoices can be deleted")
        self.session.delete(invoice)
        logger.info(f"Deleted draft invoice {invoice.reference_number}")
        return True

    def send_invoice(self, invoice_id: str, terms_days: int = None) -> Optional[Dict]:
        """Mark a draft as sent, stamping the issue date and (if unset) the due date."""
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            return None
        if invoice.status != 'draft':
            raise InvoiceStateError(f"Only draft invoices can be sent (status is {invoice.status})")

        today = datetime.utcnow().date()
        invoice.status = 'sent'
        invoice.issue_date = today
        if not invoice.due_date:
            invoice.due_date = today + timedelta(days=terms_days or self.default_terms_days)
        self.session.flush()

        self.events.log('invoice', invoice.id, 'INVOICE_SENT',
                        description=f"{invoice.reference_number} sent")
        return invoice.to_dict()

    def record_payment(self, invoice_id: str, data: Dict) -> Optional[Dict]:
        """
        Record a client payment against an invoice.

        Creates a JobPayment linked to the invoice and moves the invoice to
        partial or paid.
        """
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            return None
        if invoice.status in ('draft', 'cancelled'):
            raise InvoiceStateError(f"Cannot record a payment on a {invoice.status} invoice")
        if invoice.status == 'paid':
            raise InvoiceStateError("Invoice is already paid in full")

        amount = money(data.get('amount'))
        if amount <= ZERO:
            raise InvoiceStateError("Payment amount must be greater than zero")
        if amount > money(invoice.amount_due):
            raise InvoiceStateError(f"Payment of {amount} exceeds the amount due ({money(invoice.amount_due)})")

        payment = JobPayment(
            job=invoice.job,
            invoice_id=invoice.id,
            amount=amount,
            method=data.get('method') or 'bank_transfer',
            reference=data.get('reference'),
            paid_on=parse_date(data.get('paid_on')) or datetime.utcnow().date()
        )
        self.session.add(payment)

        invoice.amount_paid = money(invoice.amount_paid) + amount
        invoice.amount_due = money(invoice.total) - invoice.amount_paid
        invoice.status = self._payment_status(invoice)
        self.session.flush()

        self.events.log('invoice', invoice.id, 'PAYMENT_RECEIVED',
                        description=f"Payment of {amount} received for {invoice.reference_number}",
                        metadata={'amount': float(amount), 'status': invoice.status})
        logger.info(f"Recorded payment {amount} on {invoice.reference_number} -> {invoice.status}")
        return {'invoice': invoice.to_dict(), 'payment': payment.to_dict()}
