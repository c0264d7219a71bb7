"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

CRM Domain:
- contacts.py       : Customers and leads (/api/contacts)
- partners.py       : Trade partners and portal invites (/api/trade-partners)
- catalog.py        : Product categories and catalog items (/api/product-categories, /api/catalog-items)
- jobs.py           : Jobs, quote items, stages, payments, notes (/api/jobs, /api/job-stages)
- invoices.py       : Customer invoices (/api/invoices)
- partner_fees.py   : Referral fee accruals and partner invoices (/api/partner-fees, /api/partner-invoices)
- partner_portal.py : Token-authenticated partner portal (/api/partner-portal)

Field Work:
- inspections.py    : Inspection wizard, backups and certificates (/api/inspections, /api/inspection-templates)

Owner Tools:
- seo.py            : Business profile, brand voice, posts, autopilot (/api/seo)
- wellbeing.py      : Reminders, personal tasks, daily focus (/api/wellbeing)
- scheduler.py      : Background job status (/api/scheduler)
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
