"""
Services package for the Trade Services CRM.
Contains repository classes for database access and domain logic.
"""

from services.crm_repository import CRMRepository
from services.catalog_repository import CatalogRepository
from services.jobs_repository import JobsRepository
from services.invoice_repository import InvoiceRepository
from services.notes_repository import NotesRepository
from services.partner_fees import PartnerFeesService
from services.partner_portal import PartnerPortalService
from services.inspection_service import InspectionRepository, InspectionWizard
from services.seo_service import SeoService
from services.wellbeing_service import WellbeingService

__all__ = [
    'CRMRepository',
    'CatalogRepository',
    'JobsRepository',
    'InvoiceRepository',
    'NotesRepository',
    'PartnerFeesService',
    'PartnerPortalService',
    'InspectionRepository',
    'InspectionWizard',
    'SeoService',
    'WellbeingService'
]
