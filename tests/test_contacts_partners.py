"""
Tests for contact and trade partner endpoints
"""
import pytest


@pytest.mark.integration
class TestContacts:
    """Tests for /api/contacts"""

    def test_create_contact(self, client):
        """Test creating a contact returns it with an id"""
        response = client.post('/api/contacts', json={'name': '  Bob Builder ', 'email': 'bob@example.com'})
        assert response.status_code == 201
        contact = response.get_json()['contact']
        assert contact['id']
        assert contact['name'] == 'Bob Builder'
        assert contact['contact_type'] == 'client'

    def test_create_contact_requires_name(self, client):
        """Test a missing name gives a field error"""
        response = client.post('/api/contacts', json={'email': 'bob@example.com'})
        assert response.status_code == 400
        data = response.get_json()
        assert data['success'] is False
        assert 'name' in data['error']

    def test_create_contact_rejects_bad_email(self, client):
        """Test an invalid email is rejected"""
        response = client.post('/api/contacts', json={'name': 'Bob', 'email': 'not-an-email'})
        assert response.status_code == 400

    def test_list_contacts_sorted_and_searchable(self, client, make_contact):
        """Test listing is ordered by name and search matches email"""
        make_contact(name='Zara Zed', email='zara@example.com')
        make_contact(name='Adam Ant', email='adam@sample.org')

        names = [c['name'] for c in client.get('/api/contacts').get_json()['contacts']]
        assert names == ['Adam Ant', 'Zara Zed']

        found = client.get('/api/contacts?search=sample').get_json()
        assert found['count'] == 1
        assert found['contacts'][0]['name'] == 'Adam Ant'

    def test_get_contact_includes_job_count(self, client, make_contact, make_job):
        """Test a contact shows how many jobs it has"""
        contact = make_contact()
        make_job(contact_id=contact['id'])

        data = client.get(f"/api/contacts/{contact['id']}").get_json()
        assert data['contact']['job_count'] == 1

    def test_update_contact(self, client, make_contact):
        """Test a partial update"""
        contact = make_contact()
        response = client.patch(f"/api/contacts/{contact['id']}", json={'phone': '02920 123456'})
        assert response.status_code == 200
        assert response.get_json()['contact']['phone'] == '02920 123456'
        assert response.get_json()['contact']['name'] == 'Jane Client'

    def test_missing_contact(self, client):
        """Test unknown ids give 404"""
        assert client.get('/api/contacts/nope').status_code == 404
        assert client.delete('/api/contacts/nope').status_code == 404

    def test_delete_contact(self, client, make_contact):
        """Test deleting a contact without jobs"""
        contact = make_contact()
        assert client.delete(f"/api/contacts/{contact['id']}").status_code == 200
        assert client.get(f"/api/contacts/{contact['id']}").status_code == 404

    def test_delete_contact_with_jobs_conflicts(self, client, make_contact, make_job):
        """Test a contact with jobs cannot be deleted"""
        contact = make_contact()
        make_job(contact_id=contact['id'])

        response = client.delete(f"/api/contacts/{contact['id']}")
        assert response.status_code == 409
        assert client.get(f"/api/contacts/{contact['id']}").status_code == 200


@pytest.mark.integration
class TestTradePartners:
    """Tests for /api/trade-partners"""

    def test_create_partner(self, make_partner):
        """Test creating a partner"""
        partner = make_partner()
        assert partner['business_name'] == 'Sparks Electrical'
        assert partner['commission_value'] == 10.0
        assert partner['is_active'] is True
        assert partner['has_portal_access'] is False

    def test_percentage_commission_over_100_rejected(self, client):
        """Test commission validation"""
        response = client.post('/api/trade-partners', json={
            'business_name': 'Greedy Ltd', 'commission_type': 'percentage', 'commission_value': 150
        })
        assert response.status_code == 400

    def test_list_active_only(self, client, make_partner):
        """Test filtering to active partners"""
        make_partner(business_name='Active Plumbing')
        make_partner(business_name='Retired Roofing', is_active=False)

        data = client.get('/api/trade-partners?active_only=true').get_json()
        assert [p['business_name'] for p in data['partners']] == ['Active Plumbing']

    def test_delete_unused_partner(self, client, make_partner):
        """Test a partner with no history is removed"""
        partner = make_partner()
        data = client.delete(f"/api/trade-partners/{partner['id']}").get_json()
        assert data['deleted'] is True
        assert client.get(f"/api/trade-partners/{partner['id']}").status_code == 404

    def test_delete_partner_with_jobs_deactivates(self, client, make_partner, make_job):
        """Test a partner with jobs is deactivated rather than deleted"""
        partner = make_partner()
        make_job(partner_id=partner['id'])

        data = client.delete(f"/api/trade-partners/{partner['id']}").get_json()
        assert data['deleted'] is False
        assert data['deactivated'] is True

        fetched = client.get(f"/api/trade-partners/{partner['id']}").get_json()['partner']
        assert fetched['is_active'] is False
        assert fetched['job_count'] == 1

    def test_portal_invite(self, client, make_partner):
        """Test creating a portal invite returns a token"""
        partner = make_partner()
        response = client.post(f"/api/partners/{partner['id']}/portal-invite")
        assert response.status_code == 201
        invite = response.get_json()['invite']
        assert invite['token']
        assert invite['partner_id'] == partner['id']

    def test_portal_invite_unknown_partner(self, client):
        """Test inviting an unknown partner gives 404"""
        assert client.post('/api/partners/nope/portal-invite').status_code == 404
