"""
Pipeline stage rules for jobs.

Defines the ordered pipeline and the prerequisites a job must satisfy before
moving forward into a stage. Backward moves and the escape-hatch stages
(lost, closed, follow_up) are never restricted.
"""

import logging
from typing import Dict, List, Any, Optional

logger = logging.getLogger(__name__)


class StageTransitionError(Exception):
    """Raised when a job cannot move to the requested stage"""
    def __init__(self, message: str, validation: Optional[Dict[str, Any]] = None):
        self.message = message
        self.validation = validation or {}
        super().__init__(message)


# Each prerequisite: (fact name, check, expected value, message)
# check is 'truthy' or 'equals'
JOB_STAGE_RULES: List[Dict[str, Any]] = [
    {'stage': 'new_enquiry', 'label': 'New Enquiry', 'prerequisites': []},
    {'stage': 'contacted', 'label': 'Contacted', 'prerequisites': []},
    {'stage': 'survey_booked', 'label': 'Survey Booked', 'prerequisites': [
        ('has_survey_scheduled', 'truthy', None,
         'A survey must be scheduled before marking as Survey Booked'),
    ]},
    {'stage': 'quoting', 'label': 'Quoting', 'prerequisites': []},
    {'stage': 'quote_sent', 'label': 'Quote Sent', 'prerequisites': [
        ('has_quote_items', 'truthy', None, 'Quote must have line items before it can be sent'),
        ('quoted_value', 'truthy', None, 'Quote must have a total value before it can be sent'),
    ]},
    {'stage': 'follow_up', 'label': 'Follow-Up Due', 'prerequisites': [], 'can_skip': True},
    {'stage': 'quote_accepted', 'label': 'Quote Accepted', 'prerequisites': [
        ('quote_response', 'equals', 'accepted', 'Client must accept the quote first'),
    ]},
    {'stage': 'deposit_requested', 'label': 'Deposit Requested', 'prerequisites': [
        ('deposit_required', 'truthy', None, 'Deposit must be configured on the job'),
        ('deposit_amount', 'truthy', None, 'Deposit amount must be set'),
    ], 'can_skip': True},
    {'stage': 'deposit_paid', 'label': 'Deposit Paid', 'prerequisites': [
        ('deposit_received', 'truthy', None, 'Deposit must be marked as received'),
    ], 'can_skip': True},
    {'stage': 'scheduled', 'label': 'Scheduled', 'prerequisites': [
        ('has_work_scheduled', 'truthy', None, 'Work must have a start date before marking as Scheduled'),
    ]},
    {'stage': 'in_progress', 'label': 'In Progress', 'prerequisites': []},
    {'stage': 'completed', 'label': 'Completed', 'prerequisites': []},
    {'stage': 'invoice_sent', 'label': 'Invoice Sent', 'prerequisites': [
        ('has_invoice', 'truthy', None, 'An invoice must be created and sent before marking as Invoice Sent'),
    ]},
    {'stage': 'paid', 'label': 'Paid', 'prerequisites': [
        ('is_paid_in_full', 'truthy', None, 'Job must be paid in full before marking as Paid'),
    ]},
    {'stage': 'closed', 'label': 'Closed', 'prerequisites': []},
    {'stage': 'lost', 'label': 'Lost', 'prerequisites': []},
]

STAGES = [rule['stage'] for rule in JOB_STAGE_RULES]
UNRESTRICTED_TARGET_STAGES = {'lost', 'closed', 'follow_up'}
DEPOSIT_STAGES = {'deposit_requested', 'deposit_paid'}


def get_stage_rule(stage: str) -> Optional[Dict[str, Any]]:
    for rule in JOB_STAGE_RULES:
        if rule['stage'] == stage:
            return rule
    return None


def is_known_stage(stage: str) -> bool:
    return stage in STAGES


def is_forward_progression(from_stage: str, to_stage: str) -> bool:
    """True when to_stage comes after from_stage in the pipeline."""
    from_index = STAGES.index(from_stage) if from_stage in STAGES else -1
    return STAGES.index(to_stage) > from_index


def job_facts(job) -> Dict[str, Any]:
    """
    Derive the facts prerequisites are checked against from a Job row.

    Paid in full means client payments cover a positive quoted value.
    """
    quoted_value = float(job.quoted_value or 0)
    paid_amount = float(sum((p.amount for p in job.payments), 0))
    has_invoice = any(
        inv.invoice_type == 'invoice' and inv.status not in ('draft', 'cancelled')
        for inv in job.invoices
    )
    return {
        'quoted_value': quoted_value,
        'quote_response': job.quote_response,
        'deposit_required': bool(job.deposit_required),
        'deposit_amount': float(job.deposit_amount or 0),
        'deposit_received': bool(job.deposit_received),
        'has_quote_items': len(job.quote_items) > 0,
        'has_survey_scheduled': job.survey_date is not None,
        'has_work_scheduled': job.work_start_date is not None,
        'has_invoice': has_invoice,
        'paid_amount': paid_amount,
        'is_paid_in_full': quoted_value > 0 and paid_amount >= quoted_value,
    }


def check_prerequisite(prereq, facts: Dict[str, Any]) -> Dict[str, Any]:
    field, check, expected, message = prereq
    value = facts.get(field)
    if check == 'equals':
        passed = value == expected
    else:
        passed = bool(value)
    return {'field': field, 'passed': passed, 'message': message}


def _can_skip(rule: Dict[str, Any], facts: Dict[str, Any]) -> bool:
    if rule.get('can_skip') and rule['stage'] in DEPOSIT_STAGES:
        return not facts.get('deposit_required')
    return False


def validate_stage_transition(current_stage: str, target_stage: str, facts: Dict[str, Any]) -> Dict[str, Any]:
    """
    Decide whether a job at current_stage may move to target_stage.

    Returns:
        Dict with allowed, current_stage, target_stage, unmet_prerequisites
        and all_prerequisites
    """
    result = {
        'allowed': True,
        'current_stage': current_stage,
        'target_stage': target_stage,
        'unmet_prerequisites': [],
        'all_prerequisites': [],
    }

    if not is_known_stage(target_stage):
        result['allowed'] = False
        result['unmet_prerequisites'] = [
            {'field': 'status', 'passed': False, 'message': f"Unknown stage '{target_stage}'"}
        ]
        return result

    if target_stage in UNRESTRICTED_TARGET_STAGES:
        return result

    if not is_forward_progression(current_stage, target_stage):
        return result

    rule = get_stage_rule(target_stage)
    checks = [check_prerequisite(p, facts) for p in rule['prerequisites']]
    unmet = [c for c in checks if not c['passed']]
    can_skip = _can_skip(rule, facts)

    result['all_prerequisites'] = checks
    result['unmet_prerequisites'] = [] if can_skip else unmet
    result['allowed'] = not unmet or can_skip
    return result


def stage_readiness(current_stage: str, facts: Dict[str, Any]) -> Dict[str, Any]:
    """Evaluate every stage's prerequisites for display alongside the pipeline."""
    stages = []
    for rule in JOB_STAGE_RULES:
        checks = [check_prerequisite(p, facts) for p in rule['prerequisites']]
        can_skip = _can_skip(rule, facts)
        stages.append({
            'stage': rule['stage'],
            'label': rule['label'],
            'is_current_stage': rule['stage'] == current_stage,
            'can_progress': all(c['passed'] for c in checks)
                            or rule['stage'] in UNRESTRICTED_TARGET_STAGES or can_skip,
            'can_skip': can_skip,
            'prerequisites': checks,
        })

    return {
        'current_stage': current_stage,
        'stages': stages,
        'facts': facts,
    }


def list_stages() -> List[Dict[str, Any]]:
    """The pipeline in order, with the prerequisite messages for each stage."""
    return [
        {
            'stage': rule['stage'],
            'label': rule['label'],
            'order': index,
            'can_skip': bool(rule.get('can_skip')),
            'unrestricted': rule['stage'] in UNRESTRICTED_TARGET_STAGES,
            'prerequisites': [{'field': p[0], 'message': p[3]} for p in rule['prerequisites']],
        }
        for index, rule in enumerate(JOB_STAGE_RULES)
    ]
