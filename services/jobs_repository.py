"""
Jobs Repository - jobs, quote items, pipeline stage changes and client payments.

The job's quoted_value is kept equal to the quote grand total whenever quote
items or discount/tax settings change.
"""

import logging
from datetime import datetime
from typing import List, Optional, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy import or_

from database.models import (
    Job, QuoteItem, CatalogItem, Contact, TradePartner, JobPayment,
    PartnerFeeAccrual, Inspection, DailyFocusTask
)
from services.event_logger import EventLogger
from services.pricing import totals_for_job, line_total, money, serialize_totals
from services.stage_rules import (
    StageTransitionError, validate_stage_transition, stage_readiness, job_facts, is_known_stage
)
from services.partner_fees import PartnerFeesService
from services.invoice_repository import InvoiceRepository
from app.utils.helpers import parse_date, parse_datetime, parse_bool

logger = logging.getLogger(__name__)


class JobsRepository:
    """Repository for jobs and their quotes."""

    JOB_FIELDS = ['title', 'description', 'address', 'postcode', 'discount_type',
                  'quote_response']
    BOOL_FIELDS = ['tax_enabled', 'deposit_required', 'deposit_received']
    MONEY_FIELDS = ['discount_value', 'tax_rate', 'deposit_amount']
    PRICING_FIELDS = {'discount_type', 'discount_value', 'tax_enabled', 'tax_rate'}

    def __init__(self, session: Session, job_number_prefix: str = 'CCC', default_tax_rate: float = None):
        self.session = session
        self.job_number_prefix = job_number_prefix
        self.default_tax_rate = default_tax_rate
        self.events = EventLogger(session)

    # =========================================================================
    # JOBS
    # =========================================================================

    def generate_job_number(self, now: datetime = None) -> str:
        """{prefix}-{yy}-{nnnn}: count of this year's jobs + 1, zero-padded."""
        now = now or datetime.utcnow()
        prefix = f"{self.job_number_prefix}-{now.strftime('%y')}-"
        number = self.session.query(Job).filter(Job.job_number.like(f"{prefix}%")).count() + 1
        while self.session.query(Job).filter(Job.job_number == f"{prefix}{number:04d}").first():
            number += 1
        return f"{prefix}{number:04d}"

    def get_job(self, job_id: str) -> Optional[Job]:
        return self.session.get(Job, job_id)

    def list_jobs(self, status: str = None, contact_id: str = None, partner_id: str = None,
                  search: str = None) -> List[Dict]:
        query = self.session.query(Job)
        if status:
            query = query.filter(Job.status == status)
        if contact_id:
            query = query.filter(Job.contact_id == contact_id)
        if partner_id:
            query = query.filter(Job.partner_id == partner_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(Job.title.ilike(pattern), Job.job_number.ilike(pattern)))
        return [job.to_dict() for job in query.order_by(Job.created_at.desc()).all()]

    def job_detail(self, job: Job) -> Dict:
        data = job.to_dict(include_items=True)
        data['totals'] = serialize_totals(totals_for_job(job))
        data['notes_count'] = len(job.notes)
        data['payments'] = [p.to_dict() for p in job.payments]
        data['amount_paid'] = float(sum((money(p.amount) for p in job.payments), money(0)))
        return data

    def _apply_fields(self, job: Job, data: Dict):
        for key in self.JOB_FIELDS:
            if key in data:
                setattr(job, key, data[key])
        for key in self.BOOL_FIELDS:
            if key in data:
                setattr(job, key, parse_bool(data[key]))
        for key in self.MONEY_FIELDS:
            if key in data:
                setattr(job, key, money(data[key]) if data[key] is not None else None)
        if 'survey_date' in data:
            job.survey_date = parse_datetime(data['survey_date'])
        if 'work_start_date' in data:
            job.work_start_date = parse_date(data['work_start_date'])

    def _check_links(self, data: Dict):
        if data.get('contact_id') and not self.session.get(Contact, data['contact_id']):
            raise ValueError("Contact not found")
        if data.get('partner_id') and not self.session.get(TradePartner, data['partner_id']):
            raise ValueError("Trade partner not found")

    def create_job(self, data: Dict) -> Dict:
        """Create a job at the start of the pipeline (or at the given known stage)."""
        self._check_links(data)
        status = data.get('status') or 'new_enquiry'
        if not is_known_stage(status):
            raise StageTransitionError(f"Unknown stage '{status}'")

        job = Job(
            job_number=self.generate_job_number(),
            title=data['title'].strip(),
            contact_id=data.get('contact_id'),
            partner_id=data.get('partner_id'),
            status=status,
            quoted_value=money(0),
            tax_rate=money(self.default_tax_rate) if self.default_tax_rate is not None else None,
            quote_response='pending',
        )
        self._apply_fields(job, data)
        self.session.add(job)
        self.session.flush()

        self.events.log_create('job', job.id, f"Job {job.job_number} '{job.title}' was created")
        logger.info(f"Created job {job.job_number}")
        return self.job_detail(job)

    def update_job(self, job_id: str, data: Dict) -> Optional[Dict]:
        """
        Update job fields. A 'status' key is routed through change_status so
        stage prerequisites still apply ('force' overrides them).
        """
        job = self.get_job(job_id)
        if not job:
            return None

        self._check_links(data)
        for key in ('contact_id', 'partner_id'):
            if key in data:
                setattr(job, key, data[key] or None)
        self._apply_fields(job, data)
        if self.PRICING_FIELDS & set(data):
            self._recalculate(job)
        job.updated_at = datetime.utcnow()
        self.session.flush()

        if data.get('status') and data['status'] != job.status:
            self.change_status(job_id, data['status'], force=parse_bool(data.get('force')))

        return self.job_detail(job)

    def delete_job(self, job_id: str) -> bool:
        """Delete a job with its quote items, notes, invoices and payments. Fee records are kept."""
        job = self.get_job(job_id)
        if not job:
            return False

        for model in (PartnerFeeAccrual, Inspection, DailyFocusTask):
            self.session.query(model).filter(model.job_id == job_id).update(
                {model.job_id: None}, synchronize_session=False
            )
        self.session.delete(job)
        self.events.log_delete('job', job_id, f"Job {job.job_number} was deleted")
        logger.info(f"Deleted job {job.job_number}")
        return True

    def history(self, job_id: str) -> List[Dict]:
        return self.events.get_entity_history('job', job_id)

    # =========================================================================
    # QUOTE ITEMS
    # =========================================================================

    def _recalculate(self, job: Job) -> Dict:
        totals = totals_for_job(job)
        job.quoted_value = totals['grand_total']
        return totals

    def _get_item(self, job_id: str, item_id: str) -> Optional[QuoteItem]:
        return self.session.query(QuoteItem).filter(
            QuoteItem.id == item_id,
            QuoteItem.job_id == job_id
        ).first()

    def list_quote_items(self, job_id: str) -> Optional[List[Dict]]:
        job = self.get_job(job_id)
        if not job:
            return None
        return [item.to_dict() for item in job.quote_items]

    def add_quote_item(self, job_id: str, data: Dict) -> Optional[Dict]:
        """Add a line; line_total = quantity x unit_price."""
        job = self.get_job(job_id)
        if not job:
            return None

        quantity = data.get('quantity', 1)
        unit_price = data.get('unit_price', 0)
        item = QuoteItem(
            catalog_item_id=data.get('catalog_item_id'),
            item_type=data.get('item_type') or 'other',
            description=data['description'].strip(),
            quantity=money(quantity),
            unit_price=money(unit_price),
            line_total=line_total(quantity, unit_price),
            position=len(job.quote_items)
        )
        job.quote_items.append(item)
        self._recalculate(job)
        self.session.flush()
        return item.to_dict()

    def add_from_catalog(self, job_id: str, catalog_item_id: str, quantity: Any = None) -> Optional[Dict]:
        """
        Copy a catalog item onto the quote. Quantity defaults to the catalog
        item's default quantity.

        Raises:
            ValueError: If the catalog item does not exist
        """
        job = self.get_job(job_id)
        if not job:
            return None
        catalog_item = self.session.get(CatalogItem, catalog_item_id)
        if not catalog_item:
            raise ValueError("Catalog item not found")

        item_type = catalog_item.item_type if catalog_item.item_type in ('labour', 'material') else 'other'
        description = catalog_item.name
        if catalog_item.description:
            description = f"{catalog_item.name} - {catalog_item.description}"

        return self.add_quote_item(job_id, {
            'catalog_item_id': catalog_item.id,
            'item_type': item_type,
            'description': description,
            'quantity': quantity if quantity is not None else catalog_item.default_quantity,
            'unit_price': catalog_item.unit_price,
        })

    def update_quote_item(self, job_id: str, item_id: str, data: Dict) -> Optional[Dict]:
        item = self._get_item(job_id, item_id)
        if not item:
            return None

        for key in ('description', 'item_type', 'position'):
            if key in data:
                setattr(item, key, data[key])
        if 'quantity' in data:
            item.quantity = money(data['quantity'])
        if 'unit_price' in data:
            item.unit_price = money(data['unit_price'])
        item.line_total = line_total(item.quantity, item.unit_price)
        self._recalculate(item.job)
        self.session.flush()
        return item.to_dict()

    def delete_quote_item(self, job_id: str, item_id: str) -> bool:
        item = self._get_item(job_id, item_id)
        if not item:
            return False
        job = item.job
        job.quote_items.remove(item)
        self._recalculate(job)
        self.session.flush()
        return True

    def replace_quote_items(self, job_id: str, items: List[Dict]) -> Optional[List[Dict]]:
        """Replace every quote item on the job in one go."""
        job = self.get_job(job_id)
        if not job:
            return None

        job.quote_items.clear()
        for position, data in enumerate(items):
            quantity = data.get('quantity', 1)
            unit_price = data.get('unit_price', 0)
            job.quote_items.append(QuoteItem(
                catalog_item_id=data.get('catalog_item_id'),
                item_type=data.get('item_type') or 'other',
                description=data['description'].strip(),
                quantity=money(quantity),
                unit_price=money(unit_price),
                line_total=line_total(quantity, unit_price),
                position=position
            ))
        self._recalculate(job)
        self.session.flush()
        return [item.to_dict() for item in job.quote_items]

    def quote_totals(self, job_id: str) -> Optional[Dict]:
        job = self.get_job(job_id)
        if not job:
            return None
        return serialize_totals(totals_for_job(job))

    # =========================================================================
    # PIPELINE
    # =========================================================================

    def validate_stage(self, job_id: str, target_stage: str) -> Optional[Dict]:
        job = self.get_job(job_id)
        if not job:
            return None
        return validate_stage_transition(job.status, target_stage, job_facts(job))

    def stage_readiness(self, job_id: str) -> Optional[Dict]:
        job = self.get_job(job_id)
        if not job:
            return None
        readiness = stage_readiness(job.status, job_facts(job))
        readiness['job_id'] = job.id
        return readiness

    def change_status(self, job_id: str, target_stage: str, force: bool = False) -> Optional[Dict]:
        """
        Move a job to another pipeline stage.

        Unmet prerequisites block the move unless force is set; unknown stages
        are always rejected. Entering 'completed' stamps completed_at and
        accrues the partner fee.

        Raises:
            StageTransitionError: If the move is not allowed
        """
        job = self.get_job(job_id)
        if not job:
            return None

        validation = validate_stage_transition(job.status, target_stage, job_facts(job))
        if not is_known_stage(target_stage):
            raise StageTransitionError(f"Unknown stage '{target_stage}'", validation)
        if not validation['allowed'] and not force:
            messages = '; '.join(p['message'] for p in validation['unmet_prerequisites'])
            raise StageTransitionError(f"Cannot move to {target_stage}: {messages}", validation)

        forced = not validation['allowed']
        old_status = job.status
        job.status = target_stage
        job.updated_at = datetime.utcnow()

        accrual = None
        if target_stage == 'completed':
            if not job.completed_at:
                job.completed_at = datetime.utcnow()
            accrual = PartnerFeesService(self.session).accrue_for_job(job)

        self.session.flush()
        self.events.log_status_change('job', job.id, old_status, target_stage, forced=forced)
        if forced:
            logger.warning(f"Job {job.job_number} forced from {old_status} to {target_stage} "
                           f"with unmet prerequisites")
        else:
            logger.info(f"Job {job.job_number} moved from {old_status} to {target_stage}")

        return {
            'job': job.to_dict(),
            'validation': validation,
            'forced': forced,
            'fee_accrual': accrual.to_dict() if accrual else None,
        }

    # =========================================================================
    # PAYMENTS
    # =========================================================================

    def list_payments(self, job_id: str) -> Optional[List[Dict]]:
        job = self.get_job(job_id)
        if not job:
            return None
        return [p.to_dict() for p in job.payments]

    def record_payment(self, job_id: str, data: Dict) -> Optional[Dict]:
        """
        Record a client payment. Payments naming an invoice_id are applied to
        that invoice as well.
        """
        job = self.get_job(job_id)
        if not job:
            return None

        if data.get('invoice_id'):
            invoices = InvoiceRepository(self.session)
            invoice = invoices.get_invoice(data['invoice_id'])
            if not invoice or invoice.job_id != job.id:
                raise ValueError("Invoice not found for this job")
            return invoices.record_payment(invoice.id, data)['payment']

        payment = JobPayment(
            job=job,
            amount=money(data['amount']),
            method=data.get('method') or 'bank_transfer',
            reference=data.get('reference'),
            paid_on=parse_date(data.get('paid_on')) or datetime.utcnow().date()
        )
        self.session.add(payment)
        self.session.flush()

        self.events.log('job', job.id, 'PAYMENT_RECEIVED',
                        description=f"Payment of {payment.amount} received for {job.job_number}",
                        metadata={'amount': float(payment.amount)})
        return payment.to_dict()
