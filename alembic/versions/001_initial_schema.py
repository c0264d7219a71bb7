"""Initial database schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

Creates all tables for the Trade Services CRM.
"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column('id', sa.String(36), nullable=False)


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
    ]


def upgrade() -> None:
    # Contacts
    op.create_table('contacts',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('address', sa.Text()),
        sa.Column('postcode', sa.String(20)),
        sa.Column('contact_type', sa.String(50), server_default='client'),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_contacts_name', 'contacts', ['name'])
    op.create_index('ix_contacts_email', 'contacts', ['email'])

    # Trade partners
    op.create_table('trade_partners',
        _id(),
        sa.Column('business_name', sa.String(255), nullable=False),
        sa.Column('contact_name', sa.String(255)),
        sa.Column('email', sa.String(255)),
        sa.Column('phone', sa.String(50)),
        sa.Column('trade_category', sa.String(100)),
        sa.Column('coverage_areas', sa.Text()),
        sa.Column('commission_type', sa.String(20), server_default='percentage'),
        sa.Column('commission_value', sa.Numeric(12, 2), server_default='0'),
        sa.Column('payment_terms_days', sa.Integer(), server_default='14'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_trade_partners_email', 'trade_partners', ['email'])

    # Catalog
    op.create_table('product_categories',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('display_order', sa.Integer(), server_default='0'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('catalog_items',
        _id(),
        sa.Column('category_id', sa.String(36)),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('item_type', sa.String(50), server_default='product'),
        sa.Column('sku', sa.String(100)),
        sa.Column('unit_price', sa.Numeric(12, 2), server_default='0'),
        sa.Column('unit_of_measure', sa.String(20), server_default='each'),
        sa.Column('default_quantity', sa.Numeric(10, 2), server_default='1'),
        sa.Column('is_active', sa.Boolean(), server_default=sa.true()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['category_id'], ['product_categories.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_catalog_items_category', 'catalog_items', ['category_id'])
    op.create_index('ix_catalog_items_name', 'catalog_items', ['name'])

    # Jobs
    op.create_table('jobs',
        _id(),
        sa.Column('job_number', sa.String(50), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('contact_id', sa.String(36)),
        sa.Column('partner_id', sa.String(36)),
        sa.Column('status', sa.String(50), server_default='new_enquiry'),
        sa.Column('address', sa.Text()),
        sa.Column('postcode', sa.String(20)),
        sa.Column('quoted_value', sa.Numeric(12, 2), server_default='0'),
        sa.Column('discount_type', sa.String(20)),
        sa.Column('discount_value', sa.Numeric(12, 2)),
        sa.Column('tax_enabled', sa.Boolean(), server_default=sa.false()),
        sa.Column('tax_rate', sa.Numeric(5, 2)),
        sa.Column('quote_response', sa.String(20), server_default='pending'),
        sa.Column('deposit_required', sa.Boolean(), server_default=sa.false()),
        sa.Column('deposit_amount', sa.Numeric(12, 2)),
        sa.Column('deposit_received', sa.Boolean(), server_default=sa.false()),
        sa.Column('survey_date', sa.DateTime()),
        sa.Column('work_start_date', sa.Date()),
        sa.Column('completed_at', sa.DateTime()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['contact_id'], ['contacts.id']),
        sa.ForeignKeyConstraint(['partner_id'], ['trade_partners.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('job_number')
    )
    op.create_index('ix_jobs_status', 'jobs', ['status'])
    op.create_index('ix_jobs_contact', 'jobs', ['contact_id'])
    op.create_index('ix_jobs_partner', 'jobs', ['partner_id'])

    op.create_table('quote_items',
        _id(),
        sa.Column('job_id', sa.String(36), nullable=False),
        sa.Column('catalog_item_id', sa.String(36)),
        sa.Column('item_type', sa.String(20), server_default='other'),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 2), server_default='1'),
        sa.Column('unit_price', sa.Numeric(12, 2), server_default='0'),
        sa.Column('line_total', sa.Numeric(12, 2), server_default='0'),
        sa.Column('position', sa.Integer(), server_default='0'),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.ForeignKeyConstraint(['catalog_item_id'], ['catalog_items.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_quote_items_job', 'quote_items', ['job_id'])

    # Client invoices
    op.create_table('invoices',
        _id(),
        sa.Column('job_id', sa.String(36), nullable=False),
        sa.Column('reference_number', sa.String(80), nullable=False),
        sa.Column('invoice_type', sa.String(20), server_default='invoice'),
        sa.Column('status', sa.String(20), server_default='draft'),
        sa.Column('issue_date', sa.Date()),
        sa.Column('due_date', sa.Date()),
        sa.Column('discount_type', sa.String(20)),
        sa.Column('discount_value', sa.Numeric(12, 2)),
        sa.Column('tax_enabled', sa.Boolean(), server_default=sa.false()),
        sa.Column('tax_rate', sa.Numeric(5, 2)),
        sa.Column('subtotal', sa.Numeric(12, 2), server_default='0'),
        sa.Column('discount_amount', sa.Numeric(12, 2), server_default='0'),
        sa.Column('tax_amount', sa.Numeric(12, 2), server_default='0'),
        sa.Column('total', sa.Numeric(12, 2), server_default='0'),
        sa.Column('amount_paid', sa.Numeric(12, 2), server_default='0'),
        sa.Column('amount_due', sa.Numeric(12, 2), server_default='0'),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reference_number')
    )
    op.create_index('ix_invoices_job', 'invoices', ['job_id'])
    op.create_index('ix_invoices_status', 'invoices', ['status'])

    op.create_table('invoice_line_items',
        _id(),
        sa.Column('invoice_id', sa.String(36), nullable=False),
        sa.Column('description', sa.Text(), nullable=False),
        sa.Column('quantity', sa.Numeric(10, 2), server_default='1'),
        sa.Column('unit_price', sa.Numeric(12, 2), server_default='0'),
        sa.Column('line_total', sa.Numeric(12, 2), server_default='0'),
        sa.Column('position', sa.Integer(), server_default='0'),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id']),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('job_payments',
        _id(),
        sa.Column('job_id', sa.String(36), nullable=False),
        sa.Column('invoice_id', sa.String(36)),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('method', sa.String(50), server_default='bank_transfer'),
        sa.Column('reference', sa.String(100)),
        sa.Column('paid_on', sa.Date()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.ForeignKeyConstraint(['invoice_id'], ['invoices.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Partner fees
    op.create_table('partner_invoices',
        _id(),
        sa.Column('invoice_number', sa.String(50), nullable=False),
        sa.Column('partner_id', sa.String(36), nullable=False),
        sa.Column('period_start', sa.DateTime()),
        sa.Column('period_end', sa.DateTime()),
        sa.Column('subtotal', sa.Numeric(12, 2), server_default='0'),
        sa.Column('total_amount', sa.Numeric(12, 2), server_default='0'),
        sa.Column('amount_paid', sa.Numeric(12, 2), server_default='0'),
        sa.Column('amount_due', sa.Numeric(12, 2), server_default='0'),
        sa.Column('status', sa.String(20), server_default='draft'),
        sa.Column('issue_date', sa.Date()),
        sa.Column('due_date', sa.Date()),
        sa.Column('paid_date', sa.Date()),
        sa.Column('notes', sa.Text()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['partner_id'], ['trade_partners.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('invoice_number')
    )
    op.create_index('ix_partner_invoices_partner', 'partner_invoices', ['partner_id'])
    op.create_index('ix_partner_invoices_status', 'partner_invoices', ['status'])

    op.create_table('partner_fee_accruals',
        _id(),
        sa.Column('partner_id', sa.String(36), nullable=False),
        sa.Column('job_id', sa.String(36)),
        sa.Column('fee_type', sa.String(20), nullable=False),
        sa.Column('fee_value', sa.Numeric(12, 2), server_default='0'),
        sa.Column('job_value', sa.Numeric(12, 2), server_default='0'),
        sa.Column('fee_amount', sa.Numeric(12, 2), server_default='0'),
        sa.Column('description', sa.Text()),
        sa.Column('status', sa.String(20), server_default='pending'),
        sa.Column('invoice_id', sa.String(36)),
        sa.Column('accrual_date', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['partner_id'], ['trade_partners.id']),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.ForeignKeyConstraint(['invoice_id'], ['partner_invoices.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('partner_id', 'job_id', name='uq_partner_fee_accruals_partner_job')
    )
    op.create_index('ix_partner_fee_accruals_status', 'partner_fee_accruals', ['status'])

    op.create_table('partner_invoice_payments',
        _id(),
        sa.Column('invoice_id', sa.String(36), nullable=False),
        sa.Column('partner_id', sa.String(36), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('payment_method', sa.String(50)),
        sa.Column('payment_reference', sa.String(100)),
        sa.Column('notes', sa.Text()),
        sa.Column('payment_date', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['invoice_id'], ['partner_invoices.id']),
        sa.ForeignKeyConstraint(['partner_id'], ['trade_partners.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Job notes
    op.create_table('job_notes',
        _id(),
        sa.Column('job_id', sa.String(36), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('visibility', sa.String(20), server_default='internal'),
        sa.Column('author_name', sa.String(255)),
        sa.Column('author_type', sa.String(20), server_default='staff'),
        *_timestamps(),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_job_notes_job', 'job_notes', ['job_id'])

    op.create_table('job_note_attachments',
        _id(),
        sa.Column('note_id', sa.String(36), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('stored_path', sa.Text(), nullable=False),
        sa.Column('mime_type', sa.String(100)),
        sa.Column('file_size', sa.Integer()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['note_id'], ['job_notes.id']),
        sa.PrimaryKeyConstraint('id')
    )

    # Partner portal
    op.create_table('partner_portal_access',
        _id(),
        sa.Column('partner_id', sa.String(36), nullable=False),
        sa.Column('access_token', sa.String(128), nullable=False),
        sa.Column('password_hash', sa.String(255)),
        sa.Column('last_login_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['partner_id'], ['trade_partners.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('partner_id'),
        sa.UniqueConstraint('access_token')
    )

    op.create_table('partner_invites',
        _id(),
        sa.Column('partner_id', sa.String(36), nullable=False),
        sa.Column('token', sa.String(128), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('accepted_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['partner_id'], ['trade_partners.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('token')
    )

    # Inspections
    op.create_table('inspections',
        _id(),
        sa.Column('template_id', sa.String(100), nullable=False),
        sa.Column('job_id', sa.String(36)),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('address', sa.Text()),
        sa.Column('engineer_name', sa.String(255)),
        sa.Column('data', sa.JSON()),
        sa.Column('status', sa.String(20), server_default='draft'),
        sa.Column('is_synced', sa.Boolean(), server_default=sa.false()),
        sa.Column('start_time', sa.DateTime()),
        sa.Column('end_time', sa.DateTime()),
        sa.Column('report_title', sa.String(255)),
        sa.Column('signatures', sa.JSON()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_inspections_status', 'inspections', ['status'])

    # SEO content
    op.create_table('seo_business_profile',
        _id(),
        sa.Column('business_name', sa.String(255)),
        sa.Column('trade_type', sa.String(255)),
        sa.Column('services_offered', sa.JSON()),
        sa.Column('service_locations', sa.JSON()),
        sa.Column('brand_tone', sa.String(50), server_default='professional'),
        sa.Column('primary_goals', sa.JSON()),
        sa.Column('contact_phone', sa.String(50)),
        sa.Column('contact_email', sa.String(255)),
        sa.Column('website_url', sa.String(500)),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('seo_brand_voice',
        _id(),
        sa.Column('custom_phrases', sa.JSON()),
        sa.Column('blacklisted_phrases', sa.JSON()),
        sa.Column('preferred_ctas', sa.JSON()),
        sa.Column('emoji_style', sa.String(50), server_default='moderate'),
        sa.Column('hashtag_preferences', sa.JSON()),
        sa.Column('location_keywords', sa.JSON()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('seo_weekly_focus',
        _id(),
        sa.Column('week_start_date', sa.Date(), nullable=False),
        sa.Column('week_end_date', sa.Date(), nullable=False),
        sa.Column('primary_service', sa.String(255), nullable=False),
        sa.Column('primary_location', sa.String(255), nullable=False),
        sa.Column('focus_image_url', sa.Text()),
        sa.Column('focus_image_caption', sa.Text()),
        sa.Column('status', sa.String(20), server_default='planned'),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('seo_content_posts',
        _id(),
        sa.Column('platform', sa.String(50), nullable=False),
        sa.Column('post_type', sa.String(50)),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('status', sa.String(20), server_default='draft'),
        sa.Column('source', sa.String(20), server_default='manual'),
        sa.Column('scheduled_for', sa.DateTime()),
        sa.Column('posted_at', sa.DateTime()),
        sa.Column('weekly_focus_id', sa.String(36)),
        sa.Column('media_urls', sa.JSON()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['weekly_focus_id'], ['seo_weekly_focus.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_seo_content_posts_status', 'seo_content_posts', ['status'])

    op.create_table('seo_autopilot_settings',
        _id(),
        sa.Column('enabled', sa.Boolean(), server_default=sa.false()),
        sa.Column('facebook_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('facebook_preferred_days', sa.JSON()),
        sa.Column('facebook_preferred_time', sa.String(5), server_default='09:00'),
        sa.Column('instagram_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('instagram_preferred_days', sa.JSON()),
        sa.Column('instagram_preferred_time', sa.String(5), server_default='18:00'),
        sa.Column('google_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('google_preferred_days', sa.JSON()),
        sa.Column('google_preferred_time', sa.String(5), server_default='12:00'),
        sa.Column('project_showcase_weight', sa.Integer(), server_default='40'),
        sa.Column('before_after_weight', sa.Integer(), server_default='20'),
        sa.Column('tips_weight', sa.Integer(), server_default='15'),
        sa.Column('testimonial_weight', sa.Integer(), server_default='15'),
        sa.Column('seasonal_weight', sa.Integer(), server_default='10'),
        sa.Column('auto_generate_ahead', sa.Integer(), server_default='7'),
        sa.Column('require_approval', sa.Boolean(), server_default=sa.true()),
        sa.Column('use_weekly_focus_images', sa.Boolean(), server_default=sa.true()),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('seo_autopilot_slots',
        _id(),
        sa.Column('platform', sa.String(50), nullable=False),
        sa.Column('scheduled_for', sa.DateTime(), nullable=False),
        sa.Column('content_type', sa.String(50)),
        sa.Column('status', sa.String(20), server_default='pending'),
        sa.Column('content_post_id', sa.String(36)),
        sa.Column('weekly_focus_id', sa.String(36)),
        sa.Column('posted_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['content_post_id'], ['seo_content_posts.id']),
        sa.ForeignKeyConstraint(['weekly_focus_id'], ['seo_weekly_focus.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_seo_autopilot_slots_scheduled', 'seo_autopilot_slots', ['scheduled_for'])

    op.create_table('seo_autopilot_runs',
        _id(),
        sa.Column('run_at', sa.DateTime(), default=sa.func.now()),
        sa.Column('slots_generated', sa.Integer(), server_default='0'),
        sa.Column('posts_created', sa.Integer(), server_default='0'),
        sa.Column('status', sa.String(20), server_default='success'),
        sa.Column('error_message', sa.Text()),
        sa.Column('details', sa.JSON()),
        sa.PrimaryKeyConstraint('id')
    )

    # Wellbeing
    op.create_table('owner_wellbeing_settings',
        _id(),
        sa.Column('water_reminder_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('water_reminder_interval_minutes', sa.Integer(), server_default='60'),
        sa.Column('stretch_reminder_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('stretch_reminder_interval_minutes', sa.Integer(), server_default='90'),
        sa.Column('work_cutoff_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('work_cutoff_time', sa.String(5), server_default='18:30'),
        sa.Column('work_cutoff_message', sa.String(255)),
        sa.Column('session_tracking_enabled', sa.Boolean(), server_default=sa.true()),
        sa.Column('session_warning_minutes', sa.Integer(), server_default='120'),
        sa.Column('updated_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('personal_tasks',
        _id(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('task_type', sa.String(30), server_default='personal'),
        sa.Column('due_date', sa.Date()),
        sa.Column('due_time', sa.String(5)),
        sa.Column('location', sa.String(255)),
        sa.Column('is_morning_task', sa.Boolean(), server_default=sa.false()),
        sa.Column('reminder_minutes_before', sa.Integer()),
        sa.Column('is_completed', sa.Boolean(), server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )

    op.create_table('daily_focus_tasks',
        _id(),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('priority', sa.Integer(), server_default='1'),
        sa.Column('task_id', sa.String(36)),
        sa.Column('job_id', sa.String(36)),
        sa.Column('focus_date', sa.Date(), nullable=False),
        sa.Column('is_completed', sa.Boolean(), server_default=sa.false()),
        sa.Column('completed_at', sa.DateTime()),
        sa.Column('created_at', sa.DateTime(), default=sa.func.now()),
        sa.ForeignKeyConstraint(['task_id'], ['personal_tasks.id']),
        sa.ForeignKeyConstraint(['job_id'], ['jobs.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('focus_date', 'priority', name='uq_daily_focus_date_priority')
    )

    # Audit trail
    op.create_table('event_log',
        _id(),
        sa.Column('timestamp', sa.DateTime(), nullable=False, default=sa.func.now()),
        sa.Column('actor_type', sa.String(50), server_default='system'),
        sa.Column('actor_id', sa.String(255)),
        sa.Column('entity_type', sa.String(100), nullable=False),
        sa.Column('entity_id', sa.String(36)),
        sa.Column('event_type', sa.String(100), nullable=False),
        sa.Column('description', sa.Text()),
        sa.Column('extra_data', sa.JSON()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_event_log_entity', 'event_log', ['entity_type', 'entity_id'])
    op.create_index('ix_event_log_timestamp', 'event_log', ['timestamp'])


def downgrade() -> None:
    # Drop tables in reverse order of creation (respecting foreign keys)
    op.drop_table('event_log')
    op.drop_table('daily_focus_tasks')
    op.drop_table('personal_tasks')
    op.drop_table('owner_wellbeing_settings')
    op.drop_table('seo_autopilot_runs')
    op.drop_table('seo_autopilot_slots')
    op.drop_table('seo_autopilot_settings')
    op.drop_table('seo_content_posts')
    op.drop_table('seo_weekly_focus')
    op.drop_table('seo_brand_voice')
    op.drop_table('seo_business_profile')
    op.drop_table('inspections')
    op.drop_table('partner_invites')
    op.drop_table('partner_portal_access')
    op.drop_table('job_note_attachments')
    op.drop_table('job_notes')
    op.drop_table('partner_invoice_payments')
    op.drop_table('partner_fee_accruals')
    op.drop_table('partner_invoices')
    op.drop_table('job_payments')
    op.drop_table('invoice_line_items')
    op.drop_table('invoices')
    op.drop_table('quote_items')
    op.drop_table('jobs')
    op.drop_table('catalog_items')
    op.drop_table('product_categories')
    op.drop_table('trade_partners')
    op.drop_table('contacts')
