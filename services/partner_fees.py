"""
Partner Fees - accruals for completed partner jobs and consolidated partner invoices.

Lifecycle:
    job completed -> accrual (pending)
    pending accruals -> partner invoice (draft, accruals invoiced)
    draft -> issued -> partial / paid (accruals paid), or overdue past the due date
"""

import logging
from datetime import datetime, timedelta, date
from decimal import Decimal
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import func

from database.models import PartnerFeeAccrual, PartnerInvoice, PartnerInvoicePayment, TradePartner, Job
from services.event_logger import EventLogger
from services.pricing import money, ZERO, PENNY
from app.utils.helpers import parse_datetime

logger = logging.getLogger(__name__)

OUTSTANDING_INVOICE_STATUSES = ('issued', 'partial', 'overdue')


class PartnerInvoiceError(Exception):
    """Raised when a partner fee or invoice operation is not allowed"""
    pass


def calculate_fee(fee_type: str, fee_value: Any, job_value: Any) -> Decimal:
    """
    Fee owed for a job.

    percentage -> job_value x fee_value / 100; fixed -> fee_value.
    """
    if fee_type == 'percentage':
        return money(money(job_value) * money(fee_value) / Decimal('100'))
    return money(fee_value)


class PartnerFeesService:
    """Accrual and partner invoicing operations."""

    def __init__(self, session: Session, actor_type: str = 'staff'):
        self.session = session
        self.events = EventLogger(session, actor_type=actor_type)

    # =========================================================================
    # ACCRUALS
    # =========================================================================

    def accrue_for_job(self, job: Job) -> Optional[PartnerFeeAccrual]:
        """
        Create the fee accrual for a completed job.

        Returns None when the job has no partner or an accrual already exists
        for this partner and job.
        """
        if not job.partner_id or not job.partner:
            return None

        existing = self.session.query(PartnerFeeAccrual).filter(
            PartnerFeeAccrual.partner_id == job.partner_id,
            PartnerFeeAccrual.job_id == job.id
        ).first()
        if existing:
            logger.info(f"Fee already accrued for job {job.job_number}")
            return None

        partner = job.partner
        job_value = money(job.quoted_value)
        fee_amount = calculate_fee(partner.commission_type, partner.commission_value, job_value)

        accrual = PartnerFeeAccrual(
            partner_id=partner.id,
            job_id=job.id,
            fee_type=partner.commission_type or 'percentage',
            fee_value=money(partner.commission_value),
            job_value=job_value,
            fee_amount=fee_amount,
            description=f"Fee for job {job.job_number}: {job.title}",
            status='pending',
            accrual_date=datetime.utcnow()
        )
        self.session.add(accrual)
        self.session.flush()

        self.events.log('partner_fee_accrual', accrual.id, 'FEE_ACCRUED',
                        description=f"Accrued {fee_amount} for {partner.business_name} on {job.job_number}",
                        metadata={'job_id': job.id, 'partner_id': partner.id, 'fee_amount': float(fee_amount)})
        logger.info(f"Accrued partner fee {fee_amount} for job {job.job_number}")
        return accrual

    def list_accruals(self, partner_id: str = None, status: str = None) -> List[Dict]:
        query = self.session.query(PartnerFeeAccrual)
        if partner_id:
            query = query.filter(PartnerFeeAccrual.partner_id == partner_id)
        if status:
            query = query.filter(PartnerFeeAccrual.status == status)
        return [a.to_dict() for a in query.order_by(PartnerFeeAccrual.accrual_date.desc()).all()]

    def get_accrual(self, accrual_id: str) -> Optional[PartnerFeeAccrual]:
        return self.session.get(PartnerFeeAccrual, accrual_id)

    def create_accrual(self, data: Dict) -> Dict:
        """Create a manual accrual (e.g. a fee agreed outside the job pipeline)."""
        partner = self.session.get(TradePartner, data.get('partner_id'))
        if not partner:
            raise PartnerInvoiceError("Partner not found")

        fee_type = data.get('fee_type') or partner.commission_type or 'fixed'
        fee_value = money(data.get('fee_value', partner.commission_value))
        job_value = money(data.get('job_value', 0))

        accrual = PartnerFeeAccrual(
            partner_id=partner.id,
            job_id=data.get('job_id'),
            fee_type=fee_type,
            fee_value=fee_value,
            job_value=job_value,
            fee_amount=calculate_fee(fee_type, fee_value, job_value),
            description=data.get('description'),
            status='pending',
            accrual_date=parse_datetime(data.get('accrual_date')) or datetime.utcnow()
        )
        self.session.add(accrual)
        self.session.flush()
        logger.info(f"Created manual accrual {accrual.id} for partner {partner.id}")
        return accrual.to_dict()

    def void_accrual(self, accrual_id: str) -> Optional[Dict]:
        accrual = self.get_accrual(accrual_id)
        if not accrual:
            return None
        if accrual.status != 'pending':
            raise PartnerInvoiceError(f"Only pending accruals can be voided (status is {accrual.status})")
        accrual.status = 'void'
        self.session.flush()
        return accrual.to_dict()

    def balances(self) -> List[Dict]:
        """Pending fee totals grouped by partner."""
        rows = self.session.query(
            PartnerFeeAccrual.partner_id,
            func.count(PartnerFeeAccrual.id),
            func.coalesce(func.sum(PartnerFeeAccrual.fee_amount), 0)
        ).filter(
            PartnerFeeAccrual.status == 'pending'
        ).group_by(PartnerFeeAccrual.partner_id).all()

        result = []
        for partner_id, count, total in rows:
            partner = self.session.get(TradePartner, partner_id)
            result.append({
                'partner_id': partner_id,
                'partner_name': partner.business_name if partner else None,
                'pending_count': count,
                'pending_total': float(money(total)),
            })
        return sorted(result, key=lambda r: r['pending_total'], reverse=True)

    def partner_balance(self, partner_id: str) -> Dict:
        """What a partner owes: pending accruals plus outstanding invoice amounts."""
        pending = self.session.query(
            func.coalesce(func.sum(PartnerFeeAccrual.fee_amount), 0)
        ).filter(
            PartnerFeeAccrual.partner_id == partner_id,
            PartnerFeeAccrual.status == 'pending'
        ).scalar()
        outstanding = self.session.query(
            func.coalesce(func.sum(PartnerInvoice.amount_due), 0)
        ).filter(
            PartnerInvoice.partner_id == partner_id,
            PartnerInvoice.status.in_(OUTSTANDING_INVOICE_STATUSES)
        ).scalar()

        pending, outstanding = money(pending), money(outstanding)
        return {
            'partner_id': partner_id,
            'pending_fees': float(pending),
            'outstanding_invoices': float(outstanding),
            'total_owed': float(pending + outstanding),
        }

    # =========================================================================
    # PARTNER INVOICES
    # =========================================================================

    def next_invoice_number(self, now: datetime = None) -> str:
        """PINV-{yyyymm}-{nnnn}, numbered within the month."""
        now = now or datetime.utcnow()
        prefix = f"PINV-{now.strftime('%Y%m')}-"
        count = self.session.query(PartnerInvoice).filter(
            PartnerInvoice.invoice_number.like(f"{prefix}%")
        ).count()
        number = count + 1
        while self.session.query(PartnerInvoice).filter(
            PartnerInvoice.invoice_number == f"{prefix}{number:04d}"
        ).first():
            number += 1
        return f"{prefix}{number:04d}"

    def list_invoices(self, partner_id: str = None, status: str = None) -> List[Dict]:
        query = self.session.query(PartnerInvoice)
        if partner_id:
            query = query.filter(PartnerInvoice.partner_id == partner_id)
        if status:
            query = query.filter(PartnerInvoice.status == status)
        return [inv.to_dict() for inv in query.order_by(PartnerInvoice.created_at.desc()).all()]

    def get_invoice(self, invoice_id: str) -> Optional[PartnerInvoice]:
        return self.session.get(PartnerInvoice, invoice_id)

    def generate_invoice(self, partner_id: str, period_start: Any = None, period_end: Any = None,
                         notes: str = None) -> Dict:
        """
        Consolidate a partner's pending accruals into a draft invoice.

        Raises:
            PartnerInvoiceError: If the partner is unknown or has no pending accruals in the period
        """
        partner = self.session.get(TradePartner, partner_id)
        if not partner:
            raise PartnerInvoiceError("Partner not found")

        start = parse_datetime(period_start)
        end = parse_datetime(period_end)
        if end is not None and end.time() == datetime.min.time():
            end = end + timedelta(days=1) - timedelta(microseconds=1)

        query = self.session.query(PartnerFeeAccrual).filter(
            PartnerFeeAccrual.partner_id == partner_id,
            PartnerFeeAccrual.status == 'pending'
        )
        if start:
            query = query.filter(PartnerFeeAccrual.accrual_date >= start)
        if end:
            query = query.filter(PartnerFeeAccrual.accrual_date <= end)
        accruals = query.order_by(PartnerFeeAccrual.accrual_date).all()

        if not accruals:
            raise PartnerInvoiceError("No pending fees to invoice for this partner and period")

        subtotal = sum((money(a.fee_amount) for a in accruals), ZERO)
        invoice = PartnerInvoice(
            invoice_number=self.next_invoice_number(),
            partner_id=partner_id,
            period_start=start or accruals[0].accrual_date,
            period_end=end or accruals[-1].accrual_date,
            subtotal=subtotal,
            total_amount=subtotal,
            amount_paid=ZERO,
            amount_due=subtotal,
            status='draft',
            notes=notes
        )
        self.session.add(invoice)
        self.session.flush()

        for accrual in accruals:
            accrual.status = 'invoiced'
            accrual.invoice_id = invoice.id
        self.session.flush()

        self.events.log('partner_invoice', invoice.id, 'INVOICE_GENERATED',
                        description=f"Partner invoice {invoice.invoice_number} generated for {partner.business_name}",
                        metadata={'accruals': len(accruals), 'total': float(subtotal)})
        logger.info(f"Generated partner invoice {invoice.invoice_number} ({len(accruals)} accruals, {subtotal})")
        return invoice.to_dict(include_lines=True)

    def issue_invoice(self, invoice_id: str, issue_date: Any = None) -> Optional[Dict]:
        """Issue a draft invoice; the due date follows the partner's payment terms."""
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            return None
        if invoice.status != 'draft':
            raise PartnerInvoiceError(f"Only draft invoices can be issued (status is {invoice.status})")

        issued_on = parse_datetime(issue_date).date() if issue_date else datetime.utcnow().date()
        terms = invoice.partner.payment_terms_days if invoice.partner and invoice.partner.payment_terms_days else 14
        invoice.status = 'issued'
        invoice.issue_date = issued_on
        invoice.due_date = issued_on + timedelta(days=terms)
        self.session.flush()

        self.events.log('partner_invoice', invoice.id, 'INVOICE_SENT',
                        description=f"Partner invoice {invoice.invoice_number} issued")
        return invoice.to_dict(include_lines=True)

    def record_payment(self, invoice_id: str, data: Dict) -> Optional[Dict]:
        """
        Record a partner payment.

        Raises:
            PartnerInvoiceError: On draft invoices, fully paid invoices, or overpayment
        """
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            return None
        if invoice.status == 'draft':
            raise PartnerInvoiceError("Cannot record a payment on a draft invoice; issue it first")
        if invoice.status == 'paid':
            raise PartnerInvoiceError("Invoice is already paid in full")

        amount = money(data.get('amount'))
        amount_due = money(invoice.amount_due)
        if amount <= ZERO:
            raise PartnerInvoiceError("Payment amount must be greater than zero")
        if amount > amount_due:
            raise PartnerInvoiceError(f"Payment of {amount} exceeds the amount due ({amount_due})")

        payment = PartnerInvoicePayment(
            invoice_id=invoice.id,
            partner_id=invoice.partner_id,
            amount=amount,
            payment_method=data.get('payment_method'),
            payment_reference=data.get('payment_reference'),
            notes=data.get('notes'),
            payment_date=parse_datetime(data.get('payment_date')) or datetime.utcnow()
        )
        self.session.add(payment)

        invoice.amount_paid = money(invoice.amount_paid) + amount
        invoice.amount_due = (amount_due - amount).quantize(PENNY)
        if invoice.amount_due == ZERO:
            invoice.status = 'paid'
            invoice.paid_date = payment.payment_date.date()
            for accrual in invoice.accruals:
                accrual.status = 'paid'
        else:
            invoice.status = 'partial'
        self.session.flush()

        self.events.log('partner_invoice', invoice.id, 'PAYMENT_RECEIVED',
                        description=f"Payment of {amount} received for {invoice.invoice_number}",
                        metadata={'amount': float(amount), 'status': invoice.status})
        logger.info(f"Recorded partner payment {amount} on {invoice.invoice_number} -> {invoice.status}")
        return invoice.to_dict(include_lines=True)

    def mark_overdue(self, today: date = None) -> int:
        """Flag issued/partial invoices whose due date has passed. Returns the count updated."""
        today = today or datetime.utcnow().date()
        invoices = self.session.query(PartnerInvoice).filter(
            PartnerInvoice.status.in_(('issued', 'partial')),
            PartnerInvoice.due_date < today
        ).all()
        for invoice in invoices:
            invoice.status = 'overdue'
            self.events.log('partner_invoice', invoice.id, 'PAYMENT_OVERDUE',
                            description=f"Partner invoice {invoice.invoice_number} is overdue")
        if invoices:
            logger.info(f"Marked {len(invoices)} partner invoice(s) overdue")
        return len(invoices)
