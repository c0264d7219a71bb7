"""
Tests for SEO content: prompts, weekly focus, posts and the autopilot
"""
import random
import pytest
from datetime import date, datetime

from ai_service import AIServiceError
from services.seo_service import SeoService, build_content_prompt, pick_content_type

MONDAY = date(2026, 3, 2)


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


def enable_autopilot(client, **settings):
    payload = {'enabled': True}
    payload.update(settings)
    response = client.put('/api/seo/autopilot/settings', json=payload)
    assert response.status_code == 200
    return response.get_json()['settings']


@pytest.mark.unit
class TestPromptBuilder:
    """Tests for build_content_prompt"""

    def test_includes_core_details(self):
        """Test business, post type, service and location appear"""
        prompt = build_content_prompt('facebook', 'tip', 'Loft ladders', 'Penarth', 'friendly',
                                      'CCC Group', 'Carpentry')
        assert 'Write a facebook post for CCC Group, a Carpentry business.' in prompt
        assert 'Post type: tip' in prompt
        assert 'Service to highlight: Loft ladders' in prompt
        assert 'Location: Penarth' in prompt
        assert 'Do NOT use' not in prompt

    def test_optional_lines(self):
        """Test brand voice lines are added when present"""
        prompt = build_content_prompt(
            'instagram', 'seasonal', 'Decking', 'Cardiff', 'warm', 'CCC Group', 'Carpentry',
            custom_phrases=['built to last'], blacklisted_phrases=['cheap'],
            preferred_ctas=['Call us', 'Book online'], hashtags=['#Cardiff'],
            media_context='New oak deck'
        )
        assert 'Try to use these phrases: built to last' in prompt
        assert 'Do NOT use these phrases: cheap' in prompt
        assert 'Call us OR Book online' in prompt
        assert '#Cardiff' in prompt
        assert 'showing: New oak deck' in prompt


@pytest.mark.unit
class TestPickContentType:
    """Tests for the weighted content type choice"""

    def test_zero_weights_fall_back(self):
        """Test all-zero weights give project_showcase"""
        assert pick_content_type([('tip', 0), ('seasonal', 0)]) == 'project_showcase'

    def test_only_positive_weight_wins(self):
        """Test a single positive weight always wins"""
        weights = [('project_showcase', 0), ('tip', 10), ('seasonal', 0)]
        assert {pick_content_type(weights, random.Random(seed)) for seed in range(20)} == {'tip'}

    def test_roll_position(self):
        """Test the roll walks the cumulative weights"""
        weights = [('before_after', 50), ('testimonial', 50)]
        assert pick_content_type(weights, FixedRandom(0.1)) == 'before_after'
        assert pick_content_type(weights, FixedRandom(0.99)) == 'testimonial'


@pytest.mark.integration
class TestAutopilotService:
    """Tests for SeoService.run_autopilot"""

    def test_disabled_is_noop(self, app, db_session, stub_ai):
        """Test nothing is created or recorded when disabled"""
        with db_session() as session:
            result = SeoService(session).run_autopilot(stub_ai, today=MONDAY)
            assert result['skipped'] is True
            assert SeoService(session).list_runs() == []
        assert stub_ai.prompts == []

    def test_week_of_slots(self, app, db_session, stub_ai):
        """Test a week produces slots on each platform's preferred days"""
        with db_session() as session:
            service = SeoService(session)
            service.update_autopilot_settings({'enabled': True})
            result = service.run_autopilot(stub_ai, today=MONDAY, rng=random.Random(1))

            assert result['slots_created'] == 8
            assert result['posts_created'] == 8
            assert result['run']['status'] == 'success'

            slots = service.list_slots()
            by_platform = {}
            for slot in slots:
                by_platform.setdefault(slot['platform'], []).append(slot['scheduled_for'])
            assert by_platform['facebook'] == ['2026-03-02T09:00:00', '2026-03-04T09:00:00',
                                               '2026-03-06T09:00:00']
            assert by_platform['google_business'] == ['2026-03-02T12:00:00', '2026-03-05T12:00:00']
            assert len(by_platform['instagram']) == 3
            assert all(slot['status'] == 'generated' for slot in slots)

            posts = service.list_posts(source='autopilot')
            assert {p['status'] for p in posts} == {'pending_review'}

    def test_existing_slots_skipped(self, app, db_session, stub_ai):
        """Test a second run does not duplicate slots"""
        with db_session() as session:
            service = SeoService(session)
            service.update_autopilot_settings({'enabled': True})
            service.run_autopilot(stub_ai, today=MONDAY)
            again = service.run_autopilot(stub_ai, today=MONDAY)
            assert again['slots_created'] == 0
            assert len(service.list_runs()) == 2

    def test_platform_settings_respected(self, app, db_session, stub_ai):
        """Test disabled platforms, custom days and auto-approval"""
        with db_session() as session:
            service = SeoService(session)
            service.update_autopilot_settings({
                'enabled': True, 'instagram_enabled': False, 'google_enabled': False,
                'facebook_preferred_days': ['sunday'], 'facebook_preferred_time': '07:30',
                'require_approval': False, 'auto_generate_ahead': 14
            })
            result = service.run_autopilot(stub_ai, today=MONDAY)
            assert result['slots_created'] == 2
            slots = service.list_slots()
            assert [s['scheduled_for'] for s in slots] == ['2026-03-08T07:30:00', '2026-03-15T07:30:00']
            assert {p['status'] for p in service.list_posts()} == {'approved'}

    def test_ai_failure_marks_run_partial(self, app, db_session, stub_ai):
        """Test AI errors leave pending slots and a partial run"""
        stub_ai.error = AIServiceError('rate limited')
        with db_session() as session:
            service = SeoService(session)
            service.update_autopilot_settings({'enabled': True, 'instagram_enabled': False,
                                               'google_enabled': False})
            result = service.run_autopilot(stub_ai, today=MONDAY)
            assert result['slots_created'] == 3
            assert result['posts_created'] == 0
            assert len(result['errors']) == 3
            assert result['run']['status'] == 'partial'
            assert 'rate limited' in result['run']['error_message']
            assert {s['status'] for s in service.list_slots()} == {'pending'}

    def test_unexpected_error_fails_run(self, app, db_session):
        """Test an unexpected error rolls back the run and reports nothing created"""
        class BrokenAfterFirstPost:
            calls = 0

            def generate_text(self, prompt, system=None, max_tokens=None):
                self.calls += 1
                if self.calls > 1:
                    raise RuntimeError('connection reset')
                return 'Boiler serviced in Penarth today.'

        with db_session() as session:
            SeoService(session).update_autopilot_settings({'enabled': True, 'instagram_enabled': False,
                                                           'google_enabled': False})
        with db_session() as session:
            service = SeoService(session)
            result = service.run_autopilot(BrokenAfterFirstPost(), today=MONDAY)
            assert result['slots_created'] == 0
            assert result['posts_created'] == 0
            assert result['run']['status'] == 'failed'
            assert 'connection reset' in result['errors']
            assert service.list_slots() == []
            assert service.list_posts(source='autopilot') == []

    def test_missing_ai_service(self, app, db_session):
        """Test no AI service counts as a per-slot error"""
        with db_session() as session:
            service = SeoService(session)
            service.update_autopilot_settings({'enabled': True, 'instagram_enabled': False,
                                               'google_enabled': False})
            result = service.run_autopilot(None, today=MONDAY)
            assert result['run']['status'] == 'partial'
            assert result['posts_created'] == 0

    def test_weekly_focus_feeds_posts(self, app, db_session, stub_ai):
        """Test the active focus sets the service, location and media"""
        with db_session() as session:
            service = SeoService(session)
            service.update_autopilot_settings({'enabled': True, 'instagram_enabled': False,
                                               'google_enabled': False})
            focus = service.create_weekly_focus({
                'week_start_date': '2026-03-02', 'primary_service': 'Loft conversions',
                'primary_location': 'Llandaff', 'status': 'active',
                'focus_image_url': 'https://example.com/loft.jpg', 'focus_image_caption': 'Finished loft'
            })
            service.run_autopilot(stub_ai, today=MONDAY)

            assert 'Service to highlight: Loft conversions' in stub_ai.prompts[0]
            assert 'Location: Llandaff' in stub_ai.prompts[0]
            assert 'showing: Finished loft' in stub_ai.prompts[0]
            posts = service.list_posts()
            assert all(p['media_urls'] == ['https://example.com/loft.jpg'] for p in posts)
            assert all(p['weekly_focus_id'] == focus['id'] for p in posts)

    def test_overdue_slots(self, app, db_session, stub_ai):
        """Test approved slots past their time are reported"""
        with db_session() as session:
            service = SeoService(session)
            service.update_autopilot_settings({'enabled': True, 'instagram_enabled': False,
                                               'google_enabled': False})
            service.run_autopilot(stub_ai, today=MONDAY)
            first = service.list_slots()[0]
            service.approve_slot(first['id'])

            overdue = service.overdue_slots(now=datetime(2026, 3, 2, 10, 0))
            assert [s['id'] for s in overdue] == [first['id']]
            service.mark_slot_posted(first['id'])
            assert service.overdue_slots(now=datetime(2026, 3, 2, 10, 0)) == []


@pytest.mark.integration
class TestSeoApi:
    """Tests for /api/seo endpoints"""

    def test_business_profile_roundtrip(self, client):
        """Test saving the business profile"""
        assert client.get('/api/seo/business-profile').get_json()['profile'] is None
        response = client.put('/api/seo/business-profile', json={
            'business_name': 'CCC Carpentry', 'services_offered': ['Staircases'], 'service_locations': ['Barry']
        })
        assert response.get_json()['profile']['business_name'] == 'CCC Carpentry'
        bad = client.put('/api/seo/business-profile', json={'contact_email': 'nope'})
        assert bad.status_code == 400

    def test_generate_content_uses_profile(self, app, client, stub_ai):
        """Test generated content draws on the profile and brand voice"""
        app.ai_service = stub_ai
        client.put('/api/seo/business-profile', json={
            'business_name': 'CCC Carpentry', 'services_offered': ['Staircases'], 'service_locations': ['Barry']
        })
        client.put('/api/seo/brand-voice', json={'blacklisted_phrases': ['cheap']})

        data = client.post('/api/seo/generate-content', json={'platform': 'instagram'}).get_json()
        assert data['content'] == stub_ai.text
        assert 'CCC Carpentry' in data['prompt']
        assert 'Service to highlight: Staircases' in data['prompt']
        assert 'Do NOT use these phrases: cheap' in data['prompt']
        assert data['used_media_context'] is False

    def test_generate_content_without_ai(self, client):
        """Test a missing API key gives 503"""
        assert client.post('/api/seo/generate-content', json={}).status_code == 503

    def test_weekly_focus_single_active(self, client):
        """Test activating a week completes the previous active week"""
        first = client.post('/api/seo/weekly-focus', json={
            'week_start_date': '2026-03-02', 'primary_service': 'Doors', 'primary_location': 'Cardiff',
            'status': 'active'
        }).get_json()['focus']
        assert first['week_end_date'] == '2026-03-08'

        client.post('/api/seo/weekly-focus', json={
            'week_start_date': '2026-03-09', 'primary_service': 'Decking', 'primary_location': 'Penarth',
            'status': 'active'
        })
        weeks = {f['primary_service']: f['status']
                 for f in client.get('/api/seo/weekly-focus').get_json()['weekly_focus']}
        assert weeks == {'Doors': 'completed', 'Decking': 'active'}

    def test_weekly_focus_validation(self, client):
        """Test missing fields and inverted dates are rejected"""
        assert client.post('/api/seo/weekly-focus', json={'primary_service': 'Doors'}).status_code == 400
        response = client.post('/api/seo/weekly-focus', json={
            'week_start_date': '2026-03-09', 'week_end_date': '2026-03-01',
            'primary_service': 'Doors', 'primary_location': 'Cardiff'
        })
        assert response.status_code == 400

    def test_content_posts(self, client):
        """Test creating, posting and deleting a post"""
        assert client.post('/api/seo/content-posts', json={'platform': 'myspace', 'content': 'x'}).status_code == 400

        post = client.post('/api/seo/content-posts', json={
            'platform': 'facebook', 'content': 'New staircase fitted'
        }).get_json()['post']
        assert post['status'] == 'draft'
        assert post['source'] == 'manual'

        posted = client.patch(f"/api/seo/content-posts/{post['id']}", json={'status': 'posted'}).get_json()['post']
        assert posted['posted_at'] is not None

        assert client.delete(f"/api/seo/content-posts/{post['id']}").status_code == 200
        assert client.get(f"/api/seo/content-posts/{post['id']}").status_code == 404

    def test_autopilot_flow(self, app, client, stub_ai):
        """Test generating, approving and posting through the API"""
        app.ai_service = stub_ai
        settings = enable_autopilot(client)
        assert settings['enabled'] is True

        result = client.post('/api/seo/autopilot/generate').get_json()
        assert result['slots_created'] == 8
        assert result['run']['status'] == 'success'

        slots = client.get('/api/seo/autopilot/slots?status=generated').get_json()['slots']
        assert len(slots) == 8
        slot = slots[0]
        assert slot['content'] == stub_ai.text

        approved = client.post(f"/api/seo/autopilot/slots/{slot['id']}/approve").get_json()['slot']
        assert approved['status'] == 'approved'

        posted = client.post(f"/api/seo/autopilot/slots/{slot['id']}/mark-posted",
                             json={'posted_at': '2026-03-02T09:05:00'}).get_json()['slot']
        assert posted['status'] == 'posted'
        assert posted['posted_at'] == '2026-03-02T09:05:00'

        post = client.get(f"/api/seo/content-posts/{slot['content_post_id']}").get_json()['post']
        assert post['status'] == 'posted'

        runs = client.get('/api/seo/autopilot/runs').get_json()['runs']
        assert len(runs) == 1

    def test_autopilot_disabled_via_api(self, app, client, stub_ai):
        """Test the seeded settings start disabled"""
        app.ai_service = stub_ai
        assert client.get('/api/seo/autopilot/settings').get_json()['settings']['enabled'] is False
        result = client.post('/api/seo/autopilot/generate').get_json()
        assert result['skipped'] is True
        assert client.get('/api/seo/autopilot/runs').get_json()['runs'] == []

    def test_approve_unknown_slot(self, client):
        """Test unknown slots give 404"""
        assert client.post('/api/seo/autopilot/slots/missing/approve').status_code == 404
