"""
SQLAlchemy models for the Trade Services CRM.
Defines the tables for contacts, partners, jobs, quoting, invoicing, partner fees,
notes, inspections, SEO content and wellbeing tracking.
"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Text, Integer, Numeric, Boolean, DateTime, Date,
    ForeignKey, JSON, Index, UniqueConstraint
)
from sqlalchemy.orm import relationship
from database.connection import Base


def generate_uuid():
    """Generate a new UUID."""
    return str(uuid.uuid4())


def _iso(value):
    return value.isoformat() if value else None


def _money(value):
    return float(value) if value is not None else None


# =============================================================================
# CONTACTS
# =============================================================================

class Contact(Base):
    """Clients and other contacts that jobs are raised for."""
    __tablename__ = 'contacts'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    address = Column(Text)
    postcode = Column(String(20))
    contact_type = Column(String(50), default='client')  # client, supplier, other
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    jobs = relationship("Job", back_populates="contact")

    __table_args__ = (
        Index('ix_contacts_name', 'name'),
        Index('ix_contacts_email', 'email'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'address': self.address,
            'postcode': self.postcode,
            'contact_type': self.contact_type,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# TRADE PARTNERS
# =============================================================================

class TradePartner(Base):
    """Third-party trade contractors who can be assigned jobs."""
    __tablename__ = 'trade_partners'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    business_name = Column(String(255), nullable=False)
    contact_name = Column(String(255))
    email = Column(String(255))
    phone = Column(String(50))
    trade_category = Column(String(100))
    coverage_areas = Column(Text)
    commission_type = Column(String(20), default='percentage')  # percentage, fixed
    commission_value = Column(Numeric(12, 2), default=0)
    payment_terms_days = Column(Integer, default=14)
    is_active = Column(Boolean, default=True)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    jobs = relationship("Job", back_populates="partner")
    portal_access = relationship("PartnerPortalAccess", back_populates="partner", uselist=False,
                                 cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_trade_partners_email', 'email'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'business_name': self.business_name,
            'contact_name': self.contact_name,
            'email': self.email,
            'phone': self.phone,
            'trade_category': self.trade_category,
            'coverage_areas': self.coverage_areas,
            'commission_type': self.commission_type,
            'commission_value': _money(self.commission_value),
            'payment_terms_days': self.payment_terms_days,
            'is_active': self.is_active,
            'has_portal_access': self.portal_access is not None,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# CATALOG
# =============================================================================

class ProductCategory(Base):
    """Grouping for catalog items."""
    __tablename__ = 'product_categories'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text)
    display_order = Column(Integer, default=0)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    items = relationship("CatalogItem", back_populates="category")

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'display_order': self.display_order,
            'is_active': self.is_active,
            'item_count': len(self.items),
            'created_at': _iso(self.created_at)
        }


class CatalogItem(Base):
    """Reusable product, labour or material line for building quotes."""
    __tablename__ = 'catalog_items'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    category_id = Column(String(36), ForeignKey('product_categories.id'))
    name = Column(String(255), nullable=False)
    description = Column(Text)
    item_type = Column(String(50), default='product')  # product, labour, material, service, consumable
    sku = Column(String(100))
    unit_price = Column(Numeric(12, 2), default=0)
    unit_of_measure = Column(String(20), default='each')
    default_quantity = Column(Numeric(10, 2), default=1)
    is_active = Column(Boolean, default=True)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("ProductCategory", back_populates="items")

    __table_args__ = (
        Index('ix_catalog_items_category', 'category_id'),
        Index('ix_catalog_items_name', 'name'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'category_id': self.category_id,
            'category_name': self.category.name if self.category else None,
            'name': self.name,
            'description': self.description,
            'type': self.item_type,
            'sku': self.sku,
            'unit_price': _money(self.unit_price),
            'unit_of_measure': self.unit_of_measure,
            'default_quantity': _money(self.default_quantity),
            'is_active': self.is_active,
            'notes': self.notes,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# JOBS / PIPELINE
# =============================================================================

class Job(Base):
    """A customer engagement tracked from enquiry to completion and payment."""
    __tablename__ = 'jobs'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_number = Column(String(50), unique=True, nullable=False)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    contact_id = Column(String(36), ForeignKey('contacts.id'))
    partner_id = Column(String(36), ForeignKey('trade_partners.id'))
    status = Column(String(50), default='new_enquiry')
    address = Column(Text)
    postcode = Column(String(20))

    # Quoting
    quoted_value = Column(Numeric(12, 2), default=0)
    discount_type = Column(String(20))  # percentage, fixed
    discount_value = Column(Numeric(12, 2))
    tax_enabled = Column(Boolean, default=False)
    tax_rate = Column(Numeric(5, 2))
    quote_response = Column(String(20), default='pending')  # pending, accepted, declined

    # Deposit
    deposit_required = Column(Boolean, default=False)
    deposit_amount = Column(Numeric(12, 2))
    deposit_received = Column(Boolean, default=False)

    # Scheduling
    survey_date = Column(DateTime)
    work_start_date = Column(Date)
    completed_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    contact = relationship("Contact", back_populates="jobs")
    partner = relationship("TradePartner", back_populates="jobs")
    quote_items = relationship("QuoteItem", back_populates="job", cascade="all, delete-orphan",
                               order_by="QuoteItem.position")
    notes = relationship("JobNote", back_populates="job", cascade="all, delete-orphan",
                         order_by="JobNote.created_at.desc()")
    invoices = relationship("Invoice", back_populates="job", cascade="all, delete-orphan")
    payments = relationship("JobPayment", back_populates="job", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_jobs_status', 'status'),
        Index('ix_jobs_contact', 'contact_id'),
        Index('ix_jobs_partner', 'partner_id'),
    )

    def to_dict(self, include_items=False):
        data = {
            'id': self.id,
            'job_number': self.job_number,
            'title': self.title,
            'description': self.description,
            'contact_id': self.contact_id,
            'contact_name': self.contact.name if self.contact else None,
            'partner_id': self.partner_id,
            'partner_name': self.partner.business_name if self.partner else None,
            'status': self.status,
            'address': self.address,
            'postcode': self.postcode,
            'quoted_value': _money(self.quoted_value),
            'discount_type': self.discount_type,
            'discount_value': _money(self.discount_value),
            'tax_enabled': self.tax_enabled,
            'tax_rate': _money(self.tax_rate),
            'quote_response': self.quote_response,
            'deposit_required': self.deposit_required,
            'deposit_amount': _money(self.deposit_amount),
            'deposit_received': self.deposit_received,
            'survey_date': _iso(self.survey_date),
            'work_start_date': _iso(self.work_start_date),
            'completed_at': _iso(self.completed_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }
        if include_items:
            data['quote_items'] = [item.to_dict() for item in self.quote_items]
        return data


class QuoteItem(Base):
    """A priced line on a job's quote."""
    __tablename__ = 'quote_items'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    catalog_item_id = Column(String(36), ForeignKey('catalog_items.id'))
    item_type = Column(String(20), default='other')  # labour, material, other
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(10, 2), default=1)
    unit_price = Column(Numeric(12, 2), default=0)
    line_total = Column(Numeric(12, 2), default=0)
    position = Column(Integer, default=0)
    created_at = Column(DateTime, default=datetime.utcnow)

    job = relationship("Job", back_populates="quote_items")

    __table_args__ = (
        Index('ix_quote_items_job', 'job_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'catalog_item_id': self.catalog_item_id,
            'item_type': self.item_type,
            'description': self.description,
            'quantity': _money(self.quantity),
            'unit_price': _money(self.unit_price),
            'line_total': _money(self.line_total),
            'position': self.position
        }


class JobPayment(Base):
    """Money received from the client against a job."""
    __tablename__ = 'job_payments'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    invoice_id = Column(String(36), ForeignKey('invoices.id'))
    amount = Column(Numeric(12, 2), nullable=False)
    method = Column(String(50), default='bank_transfer')
    reference = Column(String(100))
    paid_on = Column(Date, default=lambda: datetime.utcnow().date())
    created_at = Column(DateTime, default=datetime.utcnow)

    job = relationship("Job", back_populates="payments")
    invoice = relationship("Invoice")

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'invoice_id': self.invoice_id,
            'amount': _money(self.amount),
            'method': self.method,
            'reference': self.reference,
            'paid_on': _iso(self.paid_on),
            'created_at': _iso(self.created_at)
        }


# =============================================================================
# CLIENT INVOICES
# =============================================================================

class Invoice(Base):
    """Client-facing invoice or formal quote document for a job."""
    __tablename__ = 'invoices'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    reference_number = Column(String(80), unique=True, nullable=False)
    invoice_type = Column(String(20), default='invoice')  # invoice, quote
    status = Column(String(20), default='draft')  # draft, sent, partial, paid, cancelled
    issue_date = Column(Date)
    due_date = Column(Date)
    discount_type = Column(String(20))
    discount_value = Column(Numeric(12, 2))
    tax_enabled = Column(Boolean, default=False)
    tax_rate = Column(Numeric(5, 2))
    subtotal = Column(Numeric(12, 2), default=0)
    discount_amount = Column(Numeric(12, 2), default=0)
    tax_amount = Column(Numeric(12, 2), default=0)
    total = Column(Numeric(12, 2), default=0)
    amount_paid = Column(Numeric(12, 2), default=0)
    amount_due = Column(Numeric(12, 2), default=0)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    job = relationship("Job", back_populates="invoices")
    line_items = relationship("InvoiceLineItem", back_populates="invoice", cascade="all, delete-orphan",
                              order_by="InvoiceLineItem.position")

    __table_args__ = (
        Index('ix_invoices_job', 'job_id'),
        Index('ix_invoices_status', 'status'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'reference_number': self.reference_number,
            'type': self.invoice_type,
            'status': self.status,
            'issue_date': _iso(self.issue_date),
            'due_date': _iso(self.due_date),
            'discount_type': self.discount_type,
            'discount_value': _money(self.discount_value),
            'tax_enabled': self.tax_enabled,
            'tax_rate': _money(self.tax_rate),
            'subtotal': _money(self.subtotal),
            'discount_amount': _money(self.discount_amount),
            'tax_amount': _money(self.tax_amount),
            'total': _money(self.total),
            'amount_paid': _money(self.amount_paid),
            'amount_due': _money(self.amount_due),
            'notes': self.notes,
            'line_items': [item.to_dict() for item in self.line_items],
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class InvoiceLineItem(Base):
    """Individual line items on an invoice."""
    __tablename__ = 'invoice_line_items'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    invoice_id = Column(String(36), ForeignKey('invoices.id'), nullable=False)
    description = Column(Text, nullable=False)
    quantity = Column(Numeric(10, 2), default=1)
    unit_price = Column(Numeric(12, 2), default=0)
    line_total = Column(Numeric(12, 2), default=0)
    position = Column(Integer, default=0)

    invoice = relationship("Invoice", back_populates="line_items")

    def to_dict(self):
        return {
            'id': self.id,
            'invoice_id': self.invoice_id,
            'description': self.description,
            'quantity': _money(self.quantity),
            'unit_price': _money(self.unit_price),
            'line_total': _money(self.line_total)
        }


# =============================================================================
# PARTNER FEES
# =============================================================================

class PartnerFeeAccrual(Base):
    """A fee owed by a partner for a completed job, awaiting invoicing."""
    __tablename__ = 'partner_fee_accruals'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    partner_id = Column(String(36), ForeignKey('trade_partners.id'), nullable=False)
    job_id = Column(String(36), ForeignKey('jobs.id'))
    fee_type = Column(String(20), nullable=False)  # percentage, fixed
    fee_value = Column(Numeric(12, 2), default=0)
    job_value = Column(Numeric(12, 2), default=0)
    fee_amount = Column(Numeric(12, 2), default=0)
    description = Column(Text)
    status = Column(String(20), default='pending')  # pending, invoiced, paid, void
    invoice_id = Column(String(36), ForeignKey('partner_invoices.id'))
    accrual_date = Column(DateTime, default=datetime.utcnow)

    partner = relationship("TradePartner")
    job = relationship("Job")
    invoice = relationship("PartnerInvoice", back_populates="accruals")

    __table_args__ = (
        UniqueConstraint('partner_id', 'job_id', name='uq_partner_fee_accruals_partner_job'),
        Index('ix_partner_fee_accruals_status', 'status'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'partner_id': self.partner_id,
            'partner_name': self.partner.business_name if self.partner else None,
            'job_id': self.job_id,
            'job_number': self.job.job_number if self.job else None,
            'fee_type': self.fee_type,
            'fee_value': _money(self.fee_value),
            'job_value': _money(self.job_value),
            'fee_amount': _money(self.fee_amount),
            'description': self.description,
            'status': self.status,
            'invoice_id': self.invoice_id,
            'accrual_date': _iso(self.accrual_date)
        }


class PartnerInvoice(Base):
    """Consolidated invoice billing a partner for accrued fees."""
    __tablename__ = 'partner_invoices'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    invoice_number = Column(String(50), unique=True, nullable=False)
    partner_id = Column(String(36), ForeignKey('trade_partners.id'), nullable=False)
    period_start = Column(DateTime)
    period_end = Column(DateTime)
    subtotal = Column(Numeric(12, 2), default=0)
    total_amount = Column(Numeric(12, 2), default=0)
    amount_paid = Column(Numeric(12, 2), default=0)
    amount_due = Column(Numeric(12, 2), default=0)
    status = Column(String(20), default='draft')  # draft, issued, partial, paid, overdue
    issue_date = Column(Date)
    due_date = Column(Date)
    paid_date = Column(Date)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    partner = relationship("TradePartner")
    accruals = relationship("PartnerFeeAccrual", back_populates="invoice")
    payments = relationship("PartnerInvoicePayment", back_populates="invoice", cascade="all, delete-orphan",
                            order_by="PartnerInvoicePayment.payment_date")

    __table_args__ = (
        Index('ix_partner_invoices_partner', 'partner_id'),
        Index('ix_partner_invoices_status', 'status'),
    )

    def to_dict(self, include_lines=False):
        data = {
            'id': self.id,
            'invoice_number': self.invoice_number,
            'partner_id': self.partner_id,
            'partner_name': self.partner.business_name if self.partner else None,
            'period_start': _iso(self.period_start),
            'period_end': _iso(self.period_end),
            'subtotal': _money(self.subtotal),
            'total_amount': _money(self.total_amount),
            'amount_paid': _money(self.amount_paid),
            'amount_due': _money(self.amount_due),
            'status': self.status,
            'issue_date': _iso(self.issue_date),
            'due_date': _iso(self.due_date),
            'paid_date': _iso(self.paid_date),
            'notes': self.notes,
            'created_at': _iso(self.created_at)
        }
        if include_lines:
            data['line_items'] = [a.to_dict() for a in self.accruals]
            data['payments'] = [p.to_dict() for p in self.payments]
        return data


class PartnerInvoicePayment(Base):
    """Payment received from a partner against a partner invoice."""
    __tablename__ = 'partner_invoice_payments'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    invoice_id = Column(String(36), ForeignKey('partner_invoices.id'), nullable=False)
    partner_id = Column(String(36), ForeignKey('trade_partners.id'), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String(50))
    payment_reference = Column(String(100))
    notes = Column(Text)
    payment_date = Column(DateTime, default=datetime.utcnow)

    invoice = relationship("PartnerInvoice", back_populates="payments")

    def to_dict(self):
        return {
            'id': self.id,
            'invoice_id': self.invoice_id,
            'partner_id': self.partner_id,
            'amount': _money(self.amount),
            'payment_method': self.payment_method,
            'payment_reference': self.payment_reference,
            'notes': self.notes,
            'payment_date': _iso(self.payment_date)
        }


# =============================================================================
# JOB NOTES
# =============================================================================

class JobNote(Base):
    """Free-text note on a job, optionally shared with the assigned partner."""
    __tablename__ = 'job_notes'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    job_id = Column(String(36), ForeignKey('jobs.id'), nullable=False)
    content = Column(Text, nullable=False)
    visibility = Column(String(20), default='internal')  # internal, partner, all
    author_name = Column(String(255))
    author_type = Column(String(20), default='staff')  # staff, partner
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    job = relationship("Job", back_populates="notes")
    attachments = relationship("JobNoteAttachment", back_populates="note", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_job_notes_job', 'job_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'job_id': self.job_id,
            'content': self.content,
            'visibility': self.visibility,
            'author_name': self.author_name,
            'author_type': self.author_type,
            'attachments': [a.to_dict() for a in self.attachments],
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class JobNoteAttachment(Base):
    """File uploaded against a job note."""
    __tablename__ = 'job_note_attachments'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    note_id = Column(String(36), ForeignKey('job_notes.id'), nullable=False)
    file_name = Column(String(255), nullable=False)
    stored_path = Column(Text, nullable=False)
    mime_type = Column(String(100))
    file_size = Column(Integer)
    created_at = Column(DateTime, default=datetime.utcnow)

    note = relationship("JobNote", back_populates="attachments")

    def to_dict(self):
        return {
            'id': self.id,
            'note_id': self.note_id,
            'file_name': self.file_name,
            'mime_type': self.mime_type,
            'file_size': self.file_size,
            'created_at': _iso(self.created_at)
        }


# =============================================================================
# PARTNER PORTAL
# =============================================================================

class PartnerPortalAccess(Base):
    """Login credentials for a partner's portal account."""
    __tablename__ = 'partner_portal_access'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    partner_id = Column(String(36), ForeignKey('trade_partners.id'), unique=True, nullable=False)
    access_token = Column(String(128), unique=True, nullable=False)
    password_hash = Column(String(255))
    last_login_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    partner = relationship("TradePartner", back_populates="portal_access")

    def to_dict(self):
        return {
            'id': self.id,
            'partner_id': self.partner_id,
            'has_password': bool(self.password_hash),
            'last_login_at': _iso(self.last_login_at),
            'created_at': _iso(self.created_at)
        }


class PartnerInvite(Base):
    """One-time invitation for a partner to set up portal access."""
    __tablename__ = 'partner_invites'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    partner_id = Column(String(36), ForeignKey('trade_partners.id'), nullable=False)
    token = Column(String(128), unique=True, nullable=False)
    expires_at = Column(DateTime, nullable=False)
    accepted_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    partner = relationship("TradePartner")

    def to_dict(self):
        return {
            'id': self.id,
            'partner_id': self.partner_id,
            'partner_name': self.partner.business_name if self.partner else None,
            'token': self.token,
            'expires_at': _iso(self.expires_at),
            'accepted_at': _iso(self.accepted_at),
            'created_at': _iso(self.created_at)
        }


# =============================================================================
# INSPECTIONS
# =============================================================================

class Inspection(Base):
    """Saved inspection report produced by the wizard."""
    __tablename__ = 'inspections'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    template_id = Column(String(100), nullable=False)
    job_id = Column(String(36), ForeignKey('jobs.id'))
    title = Column(String(255), nullable=False)
    address = Column(Text)
    engineer_name = Column(String(255))
    data = Column(JSON, default=dict)
    status = Column(String(20), default='draft')  # draft, completed, synced
    is_synced = Column(Boolean, default=False)
    start_time = Column(DateTime)
    end_time = Column(DateTime)
    report_title = Column(String(255))
    signatures = Column(JSON, default=dict)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_inspections_status', 'status'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'template_id': self.template_id,
            'job_id': self.job_id,
            'title': self.title,
            'address': self.address,
            'engineer_name': self.engineer_name,
            'data': self.data or {},
            'status': self.status,
            'is_synced': self.is_synced,
            'start_time': _iso(self.start_time),
            'end_time': _iso(self.end_time),
            'report_title': self.report_title,
            'signatures': self.signatures or {},
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


# =============================================================================
# SEO CONTENT
# =============================================================================

class SeoBusinessProfile(Base):
    """Business details used when drafting social content (single row)."""
    __tablename__ = 'seo_business_profile'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    business_name = Column(String(255))
    trade_type = Column(String(255))
    services_offered = Column(JSON, default=list)
    service_locations = Column(JSON, default=list)
    brand_tone = Column(String(50), default='professional')
    primary_goals = Column(JSON, default=list)
    contact_phone = Column(String(50))
    contact_email = Column(String(255))
    website_url = Column(String(500))
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'business_name': self.business_name,
            'trade_type': self.trade_type,
            'services_offered': self.services_offered or [],
            'service_locations': self.service_locations or [],
            'brand_tone': self.brand_tone,
            'primary_goals': self.primary_goals or [],
            'contact_phone': self.contact_phone,
            'contact_email': self.contact_email,
            'website_url': self.website_url,
            'updated_at': _iso(self.updated_at)
        }


class SeoBrandVoice(Base):
    """Phrases, CTAs and hashtags that shape generated content (single row)."""
    __tablename__ = 'seo_brand_voice'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    custom_phrases = Column(JSON, default=list)
    blacklisted_phrases = Column(JSON, default=list)
    preferred_ctas = Column(JSON, default=list)
    emoji_style = Column(String(50), default='moderate')
    hashtag_preferences = Column(JSON, default=list)
    location_keywords = Column(JSON, default=list)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'custom_phrases': self.custom_phrases or [],
            'blacklisted_phrases': self.blacklisted_phrases or [],
            'preferred_ctas': self.preferred_ctas or [],
            'emoji_style': self.emoji_style,
            'hashtag_preferences': self.hashtag_preferences or [],
            'location_keywords': self.location_keywords or [],
            'updated_at': _iso(self.updated_at)
        }


class SeoWeeklyFocus(Base):
    """The service and location to promote for a given week."""
    __tablename__ = 'seo_weekly_focus'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    week_start_date = Column(Date, nullable=False)
    week_end_date = Column(Date, nullable=False)
    primary_service = Column(String(255), nullable=False)
    primary_location = Column(String(255), nullable=False)
    focus_image_url = Column(Text)
    focus_image_caption = Column(Text)
    status = Column(String(20), default='planned')  # planned, active, completed
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'week_start_date': _iso(self.week_start_date),
            'week_end_date': _iso(self.week_end_date),
            'primary_service': self.primary_service,
            'primary_location': self.primary_location,
            'focus_image_url': self.focus_image_url,
            'focus_image_caption': self.focus_image_caption,
            'status': self.status,
            'created_at': _iso(self.created_at)
        }


class SeoContentPost(Base):
    """A social media post, written manually or by the autopilot."""
    __tablename__ = 'seo_content_posts'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    platform = Column(String(50), nullable=False)  # facebook, instagram, google_business
    post_type = Column(String(50))
    content = Column(Text, nullable=False)
    status = Column(String(20), default='draft')  # draft, pending_review, approved, posted
    source = Column(String(20), default='manual')  # manual, autopilot
    scheduled_for = Column(DateTime)
    posted_at = Column(DateTime)
    weekly_focus_id = Column(String(36), ForeignKey('seo_weekly_focus.id'))
    media_urls = Column(JSON, default=list)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        Index('ix_seo_content_posts_status', 'status'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'platform': self.platform,
            'post_type': self.post_type,
            'content': self.content,
            'status': self.status,
            'source': self.source,
            'scheduled_for': _iso(self.scheduled_for),
            'posted_at': _iso(self.posted_at),
            'weekly_focus_id': self.weekly_focus_id,
            'media_urls': self.media_urls or [],
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }


class SeoAutopilotSettings(Base):
    """Autopilot posting schedule and content mix (single row)."""
    __tablename__ = 'seo_autopilot_settings'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    enabled = Column(Boolean, default=False)
    facebook_enabled = Column(Boolean, default=True)
    facebook_preferred_days = Column(JSON, default=lambda: ['monday', 'wednesday', 'friday'])
    facebook_preferred_time = Column(String(5), default='09:00')
    instagram_enabled = Column(Boolean, default=True)
    instagram_preferred_days = Column(JSON, default=lambda: ['tuesday', 'thursday', 'saturday'])
    instagram_preferred_time = Column(String(5), default='18:00')
    google_enabled = Column(Boolean, default=True)
    google_preferred_days = Column(JSON, default=lambda: ['monday', 'thursday'])
    google_preferred_time = Column(String(5), default='12:00')
    project_showcase_weight = Column(Integer, default=40)
    before_after_weight = Column(Integer, default=20)
    tips_weight = Column(Integer, default=15)
    testimonial_weight = Column(Integer, default=15)
    seasonal_weight = Column(Integer, default=10)
    auto_generate_ahead = Column(Integer, default=7)
    require_approval = Column(Boolean, default=True)
    use_weekly_focus_images = Column(Boolean, default=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'enabled': self.enabled,
            'facebook_enabled': self.facebook_enabled,
            'facebook_preferred_days': self.facebook_preferred_days or [],
            'facebook_preferred_time': self.facebook_preferred_time,
            'instagram_enabled': self.instagram_enabled,
            'instagram_preferred_days': self.instagram_preferred_days or [],
            'instagram_preferred_time': self.instagram_preferred_time,
            'google_enabled': self.google_enabled,
            'google_preferred_days': self.google_preferred_days or [],
            'google_preferred_time': self.google_preferred_time,
            'project_showcase_weight': self.project_showcase_weight,
            'before_after_weight': self.before_after_weight,
            'tips_weight': self.tips_weight,
            'testimonial_weight': self.testimonial_weight,
            'seasonal_weight': self.seasonal_weight,
            'auto_generate_ahead': self.auto_generate_ahead,
            'require_approval': self.require_approval,
            'use_weekly_focus_images': self.use_weekly_focus_images,
            'updated_at': _iso(self.updated_at)
        }


class SeoAutopilotSlot(Base):
    """A scheduled posting slot created by the autopilot."""
    __tablename__ = 'seo_autopilot_slots'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    platform = Column(String(50), nullable=False)
    scheduled_for = Column(DateTime, nullable=False)
    content_type = Column(String(50))
    status = Column(String(20), default='pending')  # pending, generated, approved, posted
    content_post_id = Column(String(36), ForeignKey('seo_content_posts.id'))
    weekly_focus_id = Column(String(36), ForeignKey('seo_weekly_focus.id'))
    posted_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    content_post = relationship("SeoContentPost")

    __table_args__ = (
        Index('ix_seo_autopilot_slots_scheduled', 'scheduled_for'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'platform': self.platform,
            'scheduled_for': _iso(self.scheduled_for),
            'content_type': self.content_type,
            'status': self.status,
            'content_post_id': self.content_post_id,
            'content': self.content_post.content if self.content_post else None,
            'weekly_focus_id': self.weekly_focus_id,
            'posted_at': _iso(self.posted_at),
            'created_at': _iso(self.created_at)
        }


class SeoAutopilotRun(Base):
    """Audit record for one autopilot generation pass."""
    __tablename__ = 'seo_autopilot_runs'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    run_at = Column(DateTime, default=datetime.utcnow)
    slots_generated = Column(Integer, default=0)
    posts_created = Column(Integer, default=0)
    status = Column(String(20), default='success')  # success, partial, failed
    error_message = Column(Text)
    details = Column(JSON, default=dict)

    def to_dict(self):
        return {
            'id': self.id,
            'run_at': _iso(self.run_at),
            'slots_generated': self.slots_generated,
            'posts_created': self.posts_created,
            'status': self.status,
            'error_message': self.error_message,
            'details': self.details or {}
        }


# =============================================================================
# WELLBEING
# =============================================================================

class OwnerWellbeingSettings(Base):
    """Reminder preferences for the business owner (single row)."""
    __tablename__ = 'owner_wellbeing_settings'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    water_reminder_enabled = Column(Boolean, default=True)
    water_reminder_interval_minutes = Column(Integer, default=60)
    stretch_reminder_enabled = Column(Boolean, default=True)
    stretch_reminder_interval_minutes = Column(Integer, default=90)
    work_cutoff_enabled = Column(Boolean, default=True)
    work_cutoff_time = Column(String(5), default='18:30')
    work_cutoff_message = Column(String(255), default='Time to switch to family mode!')
    session_tracking_enabled = Column(Boolean, default=True)
    session_warning_minutes = Column(Integer, default=120)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'water_reminder_enabled': self.water_reminder_enabled,
            'water_reminder_interval_minutes': self.water_reminder_interval_minutes,
            'stretch_reminder_enabled': self.stretch_reminder_enabled,
            'stretch_reminder_interval_minutes': self.stretch_reminder_interval_minutes,
            'work_cutoff_enabled': self.work_cutoff_enabled,
            'work_cutoff_time': self.work_cutoff_time,
            'work_cutoff_message': self.work_cutoff_message,
            'session_tracking_enabled': self.session_tracking_enabled,
            'session_warning_minutes': self.session_warning_minutes,
            'updated_at': _iso(self.updated_at)
        }


class PersonalTask(Base):
    """Personal to-do, appointment or morning routine item."""
    __tablename__ = 'personal_tasks'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    task_type = Column(String(30), default='personal')  # personal, appointment, morning_routine
    due_date = Column(Date)
    due_time = Column(String(5))
    location = Column(String(255))
    is_morning_task = Column(Boolean, default=False)
    reminder_minutes_before = Column(Integer)
    is_completed = Column(Boolean, default=False)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'task_type': self.task_type,
            'due_date': _iso(self.due_date),
            'due_time': self.due_time,
            'location': self.location,
            'is_morning_task': self.is_morning_task,
            'reminder_minutes_before': self.reminder_minutes_before,
            'is_completed': self.is_completed,
            'completed_at': _iso(self.completed_at),
            'created_at': _iso(self.created_at)
        }


class DailyFocusTask(Base):
    """One of the three priorities chosen for a day."""
    __tablename__ = 'daily_focus_tasks'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text)
    priority = Column(Integer, default=1)
    task_id = Column(String(36), ForeignKey('personal_tasks.id'))
    job_id = Column(String(36), ForeignKey('jobs.id'))
    focus_date = Column(Date, nullable=False)
    is_completed = Column(Boolean, default=False)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('focus_date', 'priority', name='uq_daily_focus_date_priority'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'priority': self.priority,
            'task_id': self.task_id,
            'job_id': self.job_id,
            'focus_date': _iso(self.focus_date),
            'is_completed': self.is_completed,
            'completed_at': _iso(self.completed_at),
            'created_at': _iso(self.created_at)
        }


# =============================================================================
# EVENT LOG
# =============================================================================

class EventLog(Base):
    """Audit trail of significant changes (status moves, fee accruals, payments)."""
    __tablename__ = 'event_log'

    id = Column(String(36), primary_key=True, default=generate_uuid)
    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False)
    actor_type = Column(String(50), default='system')  # staff, partner, system
    actor_id = Column(String(255))
    entity_type = Column(String(100), nullable=False)
    entity_id = Column(String(36))
    event_type = Column(String(100), nullable=False)
    description = Column(Text)
    extra_data = Column(JSON, default=dict)

    __table_args__ = (
        Index('ix_event_log_entity', 'entity_type', 'entity_id'),
        Index('ix_event_log_timestamp', 'timestamp'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': _iso(self.timestamp),
            'actor_type': self.actor_type,
            'actor_id': self.actor_id,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'event_type': self.event_type,
            'description': self.description,
            'metadata': self.extra_data or {}
        }
