"""
Database package for the Trade Services CRM.
Provides SQLAlchemy models, connection management, and session handling.
"""

from database.connection import (
    Base,
    configure_engine,
    get_engine,
    get_db_session,
    init_db,
    check_db_connection
)

from database.models import (
    Contact,
    TradePartner,
    ProductCategory,
    CatalogItem,
    Job,
    QuoteItem,
    JobPayment,
    Invoice,
    InvoiceLineItem,
    PartnerFeeAccrual,
    PartnerInvoice,
    PartnerInvoicePayment,
    JobNote,
    JobNoteAttachment,
    PartnerPortalAccess,
    PartnerInvite,
    Inspection,
    SeoBusinessProfile,
    SeoBrandVoice,
    SeoWeeklyFocus,
    SeoContentPost,
    SeoAutopilotSettings,
    SeoAutopilotSlot,
    SeoAutopilotRun,
    OwnerWellbeingSettings,
    PersonalTask,
    DailyFocusTask,
    EventLog
)

__all__ = [
    # Connection
    'Base',
    'configure_engine',
    'get_engine',
    'get_db_session',
    'init_db',
    'check_db_connection',
    # Models
    'Contact',
    'TradePartner',
    'ProductCategory',
    'CatalogItem',
    'Job',
    'QuoteItem',
    'JobPayment',
    'Invoice',
    'InvoiceLineItem',
    'PartnerFeeAccrual',
    'PartnerInvoice',
    'PartnerInvoicePayment',
    'JobNote',
    'JobNoteAttachment',
    'PartnerPortalAccess',
    'PartnerInvite',
    'Inspection',
    'SeoBusinessProfile',
    'SeoBrandVoice',
    'SeoWeeklyFocus',
    'SeoContentPost',
    'SeoAutopilotSettings',
    'SeoAutopilotSlot',
    'SeoAutopilotRun',
    'OwnerWellbeingSettings',
    'PersonalTask',
    'DailyFocusTask',
    'EventLog'
]
