"""
Tests for inspection templates, the step wizard and saved inspections
"""
import os
import json
import shutil
import pytest
from datetime import datetime

from services.inspection_templates import get_template, is_field_visible, field, allowed_item_types
from services.inspection_service import (
    InspectionWizard, validate_fields, validate_item, parse_timestamp,
    NO_ITEMS_MESSAGE, REQUIRED_MESSAGE
)

HVAC = 'hvac-maintenance-general'
FIRE_DOORS = 'fire-door-survey'
SITE = {'clientName': 'Acme Estates', 'address': '5 Mill Lane, Cardiff'}
FAN = {'id': 'i1', 'type': 'fan', 'label': 'Roof fan', 'status': 'pass', 'data': {'location': 'Roof'}}


@pytest.mark.unit
class TestTemplates:
    """Tests for template lookups and conditional fields"""

    def test_fire_door_survey_only_allows_doors(self):
        """Test the fire door survey restricts item types"""
        assert allowed_item_types(get_template(FIRE_DOORS)) == ['fire_door']
        assert 'fan' in allowed_item_types(get_template(HVAC))

    def test_show_when_single_value(self):
        """Test a conditional field is visible only for the matching answer"""
        defects = field('defects', 'Defects', show_when={'field': 'condition', 'value': 'No'})
        assert is_field_visible(defects, {'condition': 'No'}) is True
        assert is_field_visible(defects, {'condition': 'Yes'}) is False

    def test_show_when_list(self):
        """Test list conditions match any listed value"""
        extra = field('extra', 'Extra', show_when={'field': 'grade', 'value': ['Poor', 'Damaged']})
        assert is_field_visible(extra, {'grade': 'Damaged'}) is True
        assert is_field_visible(extra, {'grade': 'Good'}) is False

    def test_hidden_required_fields_skipped(self):
        """Test required fields that are hidden do not block"""
        fields = [
            field('condition', 'Condition', required=True),
            field('defects', 'Defects', required=True, show_when={'field': 'condition', 'value': 'No'}),
        ]
        assert validate_fields(fields, {'condition': 'Yes'}) == {}
        assert validate_fields(fields, {'condition': 'No', 'defects': '  '}) == {'defects': REQUIRED_MESSAGE}


@pytest.mark.unit
class TestValidateItem:
    """Tests for route item validation"""

    def test_valid_item(self):
        """Test a complete fan passes"""
        assert validate_item(FAN) == (True, {})

    def test_missing_required_item_field(self):
        """Test the item's required fields are checked"""
        ok, errors = validate_item({'type': 'hatch', 'data': {}})
        assert ok is False
        assert errors == {'location': REQUIRED_MESSAGE}

    def test_unknown_type(self):
        """Test unknown item types fail"""
        ok, errors = validate_item({'type': 'boiler'})
        assert ok is False
        assert 'type' in errors

    def test_type_not_allowed(self):
        """Test items outside the allowed list fail"""
        ok, errors = validate_item(FAN, allowed=['fire_door'])
        assert ok is False
        assert 'not allowed' in errors['type']

    def test_bad_status(self):
        """Test item status must be known"""
        ok, errors = validate_item({**FAN, 'status': 'meh'})
        assert ok is False
        assert 'status' in errors


@pytest.mark.unit
class TestInspectionWizard:
    """Tests for moving through wizard steps"""

    def test_first_step_requires_site_details(self):
        """Test required fields block the first step"""
        wizard = InspectionWizard(get_template(HVAC))
        result = wizard.next()
        assert result['valid'] is False
        assert set(result['errors']) == {'clientName', 'address'}
        assert wizard.step_index == 0

    def test_advance_and_back(self):
        """Test advancing and going back"""
        wizard = InspectionWizard(get_template(HVAC), SITE)
        assert wizard.next() == {'valid': True, 'errors': {}, 'action': 'advance', 'step_index': 1}
        assert wizard.back() == 0
        assert wizard.back() == 0

    def test_route_step_needs_items(self):
        """Test the route step requires at least one item"""
        wizard = InspectionWizard(get_template(HVAC), SITE, step_index=1)
        assert wizard.validate_step() == (False, {'items': NO_ITEMS_MESSAGE})

    def test_route_step_reports_item_errors(self):
        """Test item errors are keyed by position"""
        wizard = InspectionWizard(get_template(HVAC), SITE, items=[FAN, {'type': 'duct', 'data': {}}], step_index=1)
        valid, errors = wizard.validate_step()
        assert valid is False
        assert errors == {'items[1].location': REQUIRED_MESSAGE}

    def test_step_without_fields_passes(self):
        """Test photo and review steps have nothing to validate"""
        wizard = InspectionWizard(get_template(HVAC), step_index=2)
        assert wizard.validate_step() == (True, {})

    def test_last_step_submits(self):
        """Test the last step reports submit"""
        wizard = InspectionWizard(get_template(HVAC), SITE, items=[FAN], step_index=3)
        assert wizard.is_last_step is True
        assert wizard.next()['action'] == 'submit'

    def test_step_index_clamped_and_progress(self):
        """Test out-of-range indexes are clamped"""
        wizard = InspectionWizard(get_template(HVAC), step_index=99)
        assert wizard.step_index == 3
        assert wizard.progress == 100.0
        assert InspectionWizard(get_template(HVAC)).progress == 25.0

    def test_embedded_items_and_submit(self):
        """Test items inside form data are used and the record is completed"""
        wizard = InspectionWizard(get_template(HVAC), {**SITE, 'items': [FAN]})
        assert wizard.items == [FAN]
        record = wizard.submit(now=datetime(2026, 3, 1, 12, 0))
        assert record['status'] == 'completed'
        assert record['address'] == SITE['address']
        assert record['data']['items'] == [FAN]
        assert record['end_time'] == datetime(2026, 3, 1, 12, 0)

    def test_submit_without_address(self):
        """Test the fallback address"""
        record = InspectionWizard(get_template(HVAC)).submit()
        assert record['address'] == 'Unknown Address'

    def test_parse_timestamp(self):
        """Test epoch milliseconds and ISO strings"""
        assert parse_timestamp(0) == datetime(1970, 1, 1)
        assert parse_timestamp('2026-03-01T09:30:00') == datetime(2026, 3, 1, 9, 30)
        assert parse_timestamp('') is None


@pytest.mark.integration
class TestInspectionApi:
    """Tests for /api/inspections"""

    def test_list_templates(self, client):
        """Test the template picker"""
        templates = client.get('/api/inspection-templates').get_json()['templates']
        assert {t['id'] for t in templates} == {HVAC, FIRE_DOORS}

    def test_template_detail(self, client):
        """Test item templates are limited to the allowed types"""
        data = client.get(f'/api/inspection-templates/{FIRE_DOORS}').get_json()
        assert list(data['item_templates']) == ['fire_door']
        assert client.get('/api/inspection-templates/nope').status_code == 404

    def test_create_draft(self, client):
        """Test creating a draft inspection"""
        response = client.post('/api/inspections', json={'template_id': HVAC, 'address': '5 Mill Lane'})
        assert response.status_code == 201
        inspection = response.get_json()['inspection']
        assert inspection['status'] == 'draft'
        assert inspection['title'] == 'HVAC Maintenance Checklist'
        assert inspection['is_synced'] is False

    def test_unknown_template(self, client):
        """Test an unknown template is rejected"""
        assert client.post('/api/inspections', json={'template_id': 'nope'}).status_code == 400

    def test_submit_wizard(self, client):
        """Test submitting a complete wizard saves a completed record"""
        response = client.post('/api/inspections', json={
            'submit': True, 'template_id': HVAC, 'form_data': SITE, 'items': [FAN]
        })
        assert response.status_code == 201
        inspection = response.get_json()['inspection']
        assert inspection['status'] == 'completed'
        assert inspection['address'] == SITE['address']
        assert inspection['data']['items'][0]['label'] == 'Roof fan'
        assert inspection['end_time'] is not None

    def test_submit_incomplete_wizard(self, client):
        """Test an incomplete wizard reports the failing step"""
        response = client.post('/api/inspections', json={'submit': True, 'template_id': HVAC, 'form_data': SITE})
        assert response.status_code == 400
        assert response.get_json()['errors'] == {'items': NO_ITEMS_MESSAGE}

    def test_wizard_validate_endpoint(self, client):
        """Test validating and advancing a saved inspection"""
        inspection = client.post('/api/inspections', json={'template_id': HVAC}).get_json()['inspection']
        url = f"/api/inspections/{inspection['id']}/wizard/validate"

        invalid = client.post(url, json={'step_index': 0}).get_json()
        assert invalid['valid'] is False
        assert 'clientName' in invalid['errors']

        advanced = client.post(url, json={'step_index': 0, 'form_data': SITE, 'action': 'next'}).get_json()
        assert advanced['step_index'] == 1
        assert advanced['wizard']['current_step']['id'] == 'route-inspection'

        back = client.post(url, json={'step_index': 1, 'action': 'back'}).get_json()
        assert back['step_index'] == 0

        assert client.post('/api/inspections/missing/wizard/validate', json={}).status_code == 404

    @pytest.mark.parametrize('step_index', ['second', 1.5, 'Infinity'])
    def test_wizard_validate_rejects_bad_step_index(self, client, step_index):
        """Test a step index that is not a whole number gives 400"""
        inspection = client.post('/api/inspections', json={'template_id': HVAC}).get_json()['inspection']
        response = client.post(f"/api/inspections/{inspection['id']}/wizard/validate",
                               json={'step_index': step_index})
        assert response.status_code == 400
        assert response.get_json()['success'] is False

    def test_update_and_delete(self, client):
        """Test updating fields then deleting"""
        inspection = client.post('/api/inspections', json={'template_id': HVAC}).get_json()['inspection']
        url = f"/api/inspections/{inspection['id']}"

        updated = client.patch(url, json={'engineer_name': 'Dai Jones', 'status': 'completed'}).get_json()
        assert updated['inspection']['engineer_name'] == 'Dai Jones'
        assert client.patch(url, json={'status': 'archived'}).status_code == 400

        assert client.delete(url).status_code == 200
        assert client.get(url).status_code == 404


@pytest.mark.integration
class TestInspectionBackups:
    """Tests for JSON backups and sync"""

    def test_backup_writes_file(self, app, client):
        """Test a client record is saved and backed up"""
        response = client.post('/api/backup-inspection', json={
            'id': 'insp-001', 'template_id': HVAC, 'address': '5 Mill Lane',
            'data': {**SITE, 'items': [FAN]}, 'start_time': 1767225600000
        })
        assert response.status_code == 200
        inspection = response.get_json()['inspection']
        assert inspection['id'] == 'insp-001'
        assert inspection['is_synced'] is True
        assert inspection['start_time'].startswith('2026-01-01')

        path = os.path.join(app.config['INSPECTION_BACKUP_FOLDER'], 'inspection_insp-001.json')
        with open(path) as f:
            assert json.load(f)['address'] == '5 Mill Lane'

    def test_backup_requires_template(self, client):
        """Test records without template_id are rejected"""
        assert client.post('/api/backup-inspection', json={'address': 'x'}).status_code == 400

    def test_save_clears_synced_then_sync_all(self, client):
        """Test editing clears the synced flag and sync backs it up again"""
        client.post('/api/backup-inspection', json={'id': 'insp-002', 'template_id': HVAC})
        client.patch('/api/inspections/insp-002', json={'address': 'New address'})

        unsynced = client.get('/api/inspections?unsynced=true').get_json()['inspections']
        assert [i['id'] for i in unsynced] == ['insp-002']

        result = client.post('/api/inspections/sync').get_json()
        assert result['synced'] == ['insp-002']
        assert result['failed'] == []
        assert client.get('/api/inspections?unsynced=true').get_json()['inspections'] == []

    def test_failed_backup_stays_unsynced(self, app, client):
        """Test a record whose backup cannot be written is retried by the next sync"""
        inspection = client.post('/api/inspections', json={'template_id': HVAC}).get_json()['inspection']

        folder = app.config['INSPECTION_BACKUP_FOLDER']
        shutil.rmtree(folder, ignore_errors=True)
        os.makedirs(os.path.dirname(folder), exist_ok=True)
        with open(folder, 'w') as f:
            f.write('not a directory')

        result = client.post('/api/inspections/sync').get_json()
        assert result['synced'] == []
        assert result['failed'] == [inspection['id']]
        unsynced = client.get('/api/inspections?unsynced=true').get_json()['inspections']
        assert [i['id'] for i in unsynced] == [inspection['id']]

        os.remove(folder)
        assert client.post('/api/inspections/sync').get_json()['synced'] == [inspection['id']]
        assert client.get('/api/inspections?unsynced=true').get_json()['inspections'] == []
