"""
Inspection Service - the step wizard and saved inspection records.

The wizard is a linear index into a template's step list. Saved records live
in the database; each save clears is_synced until a JSON backup has been
written to the backup folder.
"""

import os
import logging
from datetime import datetime
from typing import List, Optional, Dict, Any, Tuple
from sqlalchemy.orm import Session

from database.models import Inspection
from services.inspection_templates import (
    get_template, get_item_template, allowed_item_types, visible_fields, ITEM_STATUSES
)
from app.utils.helpers import parse_datetime, save_json_file

logger = logging.getLogger(__name__)

REQUIRED_MESSAGE = "This field is required"
NO_ITEMS_MESSAGE = "Please inspect at least one item before proceeding."
UNKNOWN_ADDRESS = "Unknown Address"
INSPECTION_STATUSES = ('draft', 'completed', 'synced')


class WizardError(Exception):
    """Raised when a wizard action fails validation"""

    def __init__(self, message: str, errors: Dict[str, str] = None):
        super().__init__(message)
        self.errors = errors or {}


def parse_timestamp(value) -> Optional[datetime]:
    """Accept ISO strings or epoch milliseconds."""
    if value is None or value == '':
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.utcfromtimestamp(value / 1000)
    return parse_datetime(value)


def is_empty(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ''
    if isinstance(value, (list, dict)):
        return len(value) == 0
    return False


def validate_fields(fields: List[Dict], values: Dict[str, Any]) -> Dict[str, str]:
    """Errors for every visible required field that has no value."""
    errors = {}
    for f in visible_fields(fields, values):
        if f.get('required') and is_empty(values.get(f['name'])):
            errors[f['name']] = REQUIRED_MESSAGE
    return errors


def validate_item(item: Dict[str, Any], allowed: List[str] = None) -> Tuple[bool, Dict[str, str]]:
    """
    Validate a route item against its item template.

    Returns:
        Tuple of (is_valid, errors)
    """
    item_type = item.get('type')
    item_template = get_item_template(item_type)
    if not item_template:
        return False, {'type': f"Unknown item type: {item_type}"}
    if allowed and item_type not in allowed:
        return False, {'type': f"Item type '{item_type}' is not allowed for this inspection"}
    status = item.get('status')
    if status and status not in ITEM_STATUSES:
        return False, {'status': f"Invalid item status: {status}"}

    errors = validate_fields(item_template['fields'], item.get('data') or {})
    return len(errors) == 0, errors


class InspectionWizard:
    """Step-by-step state for filling in an inspection template."""

    def __init__(self, template: Dict[str, Any], form_data: Dict = None, items: List[Dict] = None,
                 step_index: int = 0, start_time: datetime = None):
        self.template = template
        self.form_data = dict(form_data or {})
        embedded_items = self.form_data.pop('items', None)
        self.items = list(items if items is not None else embedded_items or [])
        self.step_index = max(0, min(step_index, len(template['steps']) - 1))
        self.start_time = start_time or datetime.utcnow()

    @property
    def total_steps(self) -> int:
        return len(self.template['steps'])

    @property
    def current_step(self) -> Dict[str, Any]:
        return self.template['steps'][self.step_index]

    @property
    def is_last_step(self) -> bool:
        return self.step_index >= self.total_steps - 1

    @property
    def progress(self) -> float:
        return round((self.step_index + 1) / self.total_steps * 100, 1)

    def validate_step(self) -> Tuple[bool, Dict[str, str]]:
        step = self.current_step
        if step.get('component') == 'route':
            if not self.items:
                return False, {'items': NO_ITEMS_MESSAGE}
            allowed = allowed_item_types(self.template)
            for index, item in enumerate(self.items):
                ok, item_errors = validate_item(item, allowed)
                if not ok:
                    return False, {f"items[{index}].{name}": msg for name, msg in item_errors.items()}
            return True, {}
        if not step.get('fields'):
            return True, {}
        errors = validate_fields(step['fields'], self.form_data)
        return len(errors) == 0, errors

    def next(self) -> Dict[str, Any]:
        """Advance one step, or report that the wizard is ready to submit."""
        valid, errors = self.validate_step()
        if not valid:
            return {'valid': False, 'errors': errors, 'action': None, 'step_index': self.step_index}
        if self.is_last_step:
            return {'valid': True, 'errors': {}, 'action': 'submit', 'step_index': self.step_index}
        self.step_index += 1
        return {'valid': True, 'errors': {}, 'action': 'advance', 'step_index': self.step_index}

    def back(self) -> int:
        self.step_index = max(0, self.step_index - 1)
        return self.step_index

    def submit(self, now: datetime = None) -> Dict[str, Any]:
        """Build the completed inspection record from the wizard state."""
        return {
            'template_id': self.template['id'],
            'title': self.template['title'],
            'address': self.form_data.get('address') or UNKNOWN_ADDRESS,
            'data': {**self.form_data, 'items': self.items},
            'status': 'completed',
            'start_time': self.start_time,
            'end_time': now or datetime.utcnow(),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            'template_id': self.template['id'],
            'step_index': self.step_index,
            'total_steps': self.total_steps,
            'current_step': self.current_step,
            'progress': self.progress,
            'is_last_step': self.is_last_step,
        }


class InspectionRepository:
    """Repository for saved inspections and their JSON backups."""

    UPDATE_FIELDS = ['title', 'address', 'engineer_name', 'job_id', 'report_title', 'signatures']

    def __init__(self, session: Session, backup_folder: str = os.path.join('data', 'backups')):
        self.session = session
        self.backup_folder = backup_folder

    def backup_path(self, inspection_id: str) -> str:
        return os.path.join(self.backup_folder, f"inspection_{inspection_id}.json")

    def list_inspections(self, status: str = None, template_id: str = None,
                         unsynced_only: bool = False) -> List[Dict]:
        query = self.session.query(Inspection)
        if status:
            query = query.filter(Inspection.status == status)
        if template_id:
            query = query.filter(Inspection.template_id == template_id)
        if unsynced_only:
            query = query.filter(Inspection.is_synced.is_(False))
        return [i.to_dict() for i in query.order_by(Inspection.updated_at.desc()).all()]

    def get_inspection(self, inspection_id: str) -> Optional[Inspection]:
        return self.session.get(Inspection, inspection_id)

    def _apply(self, inspection: Inspection, data: Dict):
        for key in self.UPDATE_FIELDS:
            if key in data:
                setattr(inspection, key, data[key])
        if 'data' in data:
            inspection.data = dict(data['data'] or {})
        if 'status' in data:
            if data['status'] not in INSPECTION_STATUSES:
                raise WizardError(f"Invalid inspection status: {data['status']}")
            inspection.status = data['status']
        if 'start_time' in data:
            inspection.start_time = parse_timestamp(data['start_time'])
        if 'end_time' in data:
            inspection.end_time = parse_timestamp(data['end_time'])
        inspection.is_synced = False
        inspection.updated_at = datetime.utcnow()

    def create_inspection(self, data: Dict) -> Dict:
        template = get_template(data.get('template_id'))
        if not template:
            raise WizardError(f"Unknown inspection template: {data.get('template_id')}")

        inspection = Inspection(
            template_id=template['id'],
            title=data.get('title') or template['title'],
            status='draft',
            data={},
            start_time=datetime.utcnow()
        )
        if data.get('id'):
            inspection.id = data['id']
        self._apply(inspection, {k: v for k, v in data.items() if k not in ('template_id', 'title')})
        self.session.add(inspection)
        self.session.flush()
        logger.info(f"Created inspection {inspection.id} from template {template['id']}")
        return inspection.to_dict()

    def update_inspection(self, inspection_id: str, data: Dict) -> Optional[Dict]:
        """Saving any change clears the synced flag."""
        inspection = self.get_inspection(inspection_id)
        if not inspection:
            return None
        self._apply(inspection, data)
        self.session.flush()
        return inspection.to_dict()

    def delete_inspection(self, inspection_id: str) -> bool:
        inspection = self.get_inspection(inspection_id)
        if not inspection:
            return False
        self.session.delete(inspection)
        return True

    def submit_wizard(self, template_id: str, form_data: Dict, items: List[Dict] = None,
                      start_time=None, inspection_id: str = None) -> Dict:
        """
        Validate every step and save the completed inspection.

        Raises:
            WizardError: A step failed validation (errors keyed by field)
        """
        template = get_template(template_id)
        if not template:
            raise WizardError(f"Unknown inspection template: {template_id}")

        wizard = InspectionWizard(template, form_data, items, start_time=parse_timestamp(start_time))
        for index in range(wizard.total_steps):
            wizard.step_index = index
            valid, errors = wizard.validate_step()
            if not valid:
                raise WizardError(f"Step '{wizard.current_step['title']}' is incomplete", errors)

        record = wizard.submit()
        if inspection_id and self.get_inspection(inspection_id):
            return self.update_inspection(inspection_id, record)
        if inspection_id:
            record['id'] = inspection_id
        return self.create_inspection(record)

    # =========================================================================
    # BACKUPS
    # =========================================================================

    def backup(self, inspection_id: str) -> Optional[Dict]:
        """Write inspection_<id>.json and mark the record synced."""
        inspection = self.get_inspection(inspection_id)
        if not inspection:
            return None
        payload = dict(inspection.to_dict(), is_synced=True)
        # Only a written file counts as synced
        save_json_file(self.backup_path(inspection.id), payload)
        inspection.is_synced = True
        self.session.flush()
        logger.info(f"Backed up inspection {inspection.id}")
        return payload

    def backup_payload(self, payload: Dict) -> Dict:
        """Upsert a client-supplied inspection record, then back it up."""
        inspection_id = payload.get('id')
        data = {k: v for k, v in payload.items() if k != 'id'}
        if inspection_id and self.get_inspection(inspection_id):
            self.update_inspection(inspection_id, data)
        else:
            inspection_id = self.create_inspection(payload)['id']
        return self.backup(inspection_id)

    def sync_all(self) -> Dict[str, Any]:
        """Back up every unsynced inspection."""
        pending = self.session.query(Inspection).filter(Inspection.is_synced.is_(False)).all()
        synced, failed = [], []
        for inspection in pending:
            try:
                self.backup(inspection.id)
                synced.append(inspection.id)
            except OSError as e:
                logger.error(f"Failed to back up inspection {inspection.id}: {e}")
                failed.append(inspection.id)
        return {'synced': synced, 'failed': failed, 'count': len(synced)}
