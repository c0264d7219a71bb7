"""
Tests for the owner wellbeing module: settings, personal tasks, daily focus and reminders
"""
import pytest
from datetime import datetime

from services.wellbeing_service import WellbeingService

DAY = '2026-03-02'


def add_task(client, **fields):
    payload = {'title': 'Call accountant'}
    payload.update(fields)
    response = client.post('/api/wellbeing/personal-tasks', json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['task']


def add_focus(client, **fields):
    payload = {'title': 'Chase overdue invoices', 'focus_date': DAY}
    payload.update(fields)
    return client.post('/api/wellbeing/daily-focus', json=payload)


@pytest.mark.integration
class TestWellbeingSettings:
    """Tests for /api/wellbeing/settings"""

    def test_defaults(self, client):
        """Test the seeded settings"""
        settings = client.get('/api/wellbeing/settings').get_json()['settings']
        assert settings['water_reminder_interval_minutes'] == 60
        assert settings['stretch_reminder_interval_minutes'] == 90
        assert settings['work_cutoff_time'] == '18:30'

    def test_update(self, client):
        """Test changing intervals and the cutoff"""
        response = client.put('/api/wellbeing/settings',
                              json={'water_reminder_interval_minutes': 45, 'work_cutoff_time': '17:00'})
        assert response.status_code == 200
        settings = client.get('/api/wellbeing/settings').get_json()['settings']
        assert settings['water_reminder_interval_minutes'] == 45
        assert settings['work_cutoff_time'] == '17:00'

    def test_invalid_values_rejected(self, client):
        """Test bad times and intervals give 400"""
        assert client.put('/api/wellbeing/settings', json={'work_cutoff_time': '25:00'}).status_code == 400
        assert client.put('/api/wellbeing/settings',
                          json={'stretch_reminder_interval_minutes': 0}).status_code == 400


@pytest.mark.integration
class TestPersonalTasks:
    """Tests for /api/wellbeing/personal-tasks"""

    def test_create_defaults(self, client):
        """Test a plain task"""
        task = add_task(client, due_date=DAY, due_time='09:30')
        assert task['task_type'] == 'personal'
        assert task['due_date'] == DAY
        assert task['is_completed'] is False
        assert task['is_morning_task'] is False

    def test_morning_routine_flagged(self, client):
        """Test morning routine tasks are morning tasks"""
        task = add_task(client, title='Walk the dog', task_type='morning_routine')
        assert task['is_morning_task'] is True

    def test_validation(self, client):
        """Test missing titles and bad values"""
        url = '/api/wellbeing/personal-tasks'
        assert client.post(url, json={}).status_code == 400
        assert client.post(url, json={'title': 'x', 'due_time': '9am'}).status_code == 400
        assert client.post(url, json={'title': 'x', 'task_type': 'chore'}).status_code == 400
        assert client.post(url, json={'title': 'x', 'reminder_minutes_before': -5}).status_code == 400

    def test_complete_and_filter(self, client):
        """Test completed tasks drop out of the default list"""
        done = add_task(client, title='Renew van insurance')
        add_task(client, title='Dentist', task_type='appointment')

        completed = client.post(f"/api/wellbeing/personal-tasks/{done['id']}/complete").get_json()['task']
        assert completed['is_completed'] is True
        assert completed['completed_at'] is not None

        open_tasks = client.get('/api/wellbeing/personal-tasks').get_json()
        assert open_tasks['count'] == 1
        assert open_tasks['tasks'][0]['title'] == 'Dentist'

        everything = client.get('/api/wellbeing/personal-tasks?include_completed=true').get_json()
        assert everything['count'] == 2

        appointments = client.get('/api/wellbeing/personal-tasks?task_type=appointment').get_json()['tasks']
        assert [t['title'] for t in appointments] == ['Dentist']

    def test_update_and_delete(self, client):
        """Test editing, reopening and deleting"""
        task = add_task(client)
        url = f"/api/wellbeing/personal-tasks/{task['id']}"

        updated = client.patch(url, json={'location': 'Office', 'is_completed': True}).get_json()['task']
        assert updated['location'] == 'Office'
        assert updated['is_completed'] is True

        reopened = client.put(url, json={'is_completed': False}).get_json()['task']
        assert reopened['completed_at'] is None

        assert client.delete(url).status_code == 200
        assert client.get(url).status_code == 404
        assert client.delete(url).status_code == 404
        assert client.post('/api/wellbeing/personal-tasks/missing/complete').status_code == 404


@pytest.mark.integration
class TestDailyFocus:
    """Tests for /api/wellbeing/daily-focus"""

    def test_three_priorities_ordered(self, client):
        """Test focus tasks come back in priority order"""
        add_focus(client, title='Third', priority=3)
        add_focus(client, title='First', priority=1)
        add_focus(client, title='Second', priority=2)

        data = client.get(f'/api/wellbeing/daily-focus?date={DAY}').get_json()
        assert data['date'] == DAY
        assert [f['title'] for f in data['focus']] == ['First', 'Second', 'Third']

    def test_priority_slot_taken(self, client):
        """Test one task per priority per day"""
        assert add_focus(client).status_code == 201
        assert add_focus(client, title='Another').status_code == 409
        assert add_focus(client, title='Tomorrow', focus_date='2026-03-03').status_code == 201

    def test_invalid_priority_and_links(self, client):
        """Test priorities outside 1 to 3 and unknown links are rejected"""
        assert add_focus(client, priority=4).status_code == 400
        assert add_focus(client, priority=True).status_code == 400
        assert add_focus(client, task_id='missing').status_code == 400
        assert add_focus(client, job_id='missing').status_code == 400

    def test_completing_focus_completes_task(self, client):
        """Test ticking off a linked focus task completes the personal task"""
        task = add_task(client, title='Order materials')
        focus = add_focus(client, task_id=task['id']).get_json()['focus']

        done = client.post(f"/api/wellbeing/daily-focus/{focus['id']}/complete").get_json()['focus']
        assert done['is_completed'] is True
        fetched = client.get(f"/api/wellbeing/personal-tasks/{task['id']}").get_json()['task']
        assert fetched['is_completed'] is True

        undone = client.post(f"/api/wellbeing/daily-focus/{focus['id']}/complete",
                             json={'completed': False}).get_json()['focus']
        assert undone['is_completed'] is False

    def test_deleting_task_unlinks_focus(self, client):
        """Test focus tasks survive their personal task being deleted"""
        task = add_task(client)
        add_focus(client, task_id=task['id'])
        client.delete(f"/api/wellbeing/personal-tasks/{task['id']}")

        focus = client.get(f'/api/wellbeing/daily-focus?date={DAY}').get_json()['focus']
        assert len(focus) == 1
        assert focus[0]['task_id'] is None

    def test_delete_focus(self, client):
        """Test deleting a focus task"""
        focus = add_focus(client).get_json()['focus']
        assert client.delete(f"/api/wellbeing/daily-focus/{focus['id']}").status_code == 200
        assert client.delete(f"/api/wellbeing/daily-focus/{focus['id']}").status_code == 404
        assert client.post('/api/wellbeing/daily-focus/missing/complete').status_code == 404


@pytest.mark.integration
class TestDashboard:
    """Tests for /api/wellbeing/dashboard"""

    def test_dashboard(self, client):
        """Test the day's view gathers routine, focus and appointments"""
        add_task(client, title='Stretch', task_type='morning_routine')
        add_task(client, title='Dentist', task_type='appointment', due_date='2026-03-05', due_time='10:00')
        add_task(client, title='MOT', task_type='appointment', due_date='2026-03-04', due_time='08:00')
        add_task(client, title='Far off', due_date='2026-04-30')
        focus = add_focus(client).get_json()['focus']
        client.post(f"/api/wellbeing/daily-focus/{focus['id']}/complete")

        data = client.get(f'/api/wellbeing/dashboard?date={DAY}').get_json()
        assert data['date'] == DAY
        assert [t['title'] for t in data['morning_tasks']] == ['Stretch']
        assert data['focus_completed'] == 1
        assert [t['title'] for t in data['upcoming_tasks']] == ['MOT', 'Dentist']
        assert data['next_appointment']['title'] == 'MOT'
        assert data['settings']['work_cutoff_time'] == '18:30'

    def test_invalid_date(self, client):
        """Test an unparseable date gives 400"""
        assert client.get('/api/wellbeing/dashboard?date=garbage').status_code == 400


@pytest.mark.integration
class TestReminders:
    """Tests for due reminders"""

    def reminder_types(self, db_session, now, **kwargs):
        with db_session() as session:
            return [r['type'] for r in WellbeingService(session).due_reminders(now, **kwargs)]

    def test_no_baseline_fires_water_and_stretch(self, db_session):
        """Test water and stretch fire when nothing has been acknowledged"""
        assert self.reminder_types(db_session, datetime(2026, 3, 2, 10, 0)) == ['water', 'stretch']

    def test_intervals_from_session_start(self, db_session):
        """Test intervals count from the session start"""
        start = datetime(2026, 3, 2, 9, 0)
        assert self.reminder_types(db_session, datetime(2026, 3, 2, 9, 59), session_started_at=start) == []
        assert self.reminder_types(db_session, datetime(2026, 3, 2, 10, 0), session_started_at=start) == ['water']
        assert self.reminder_types(db_session, datetime(2026, 3, 2, 10, 30),
                                   session_started_at=start) == ['water', 'stretch']

    def test_acknowledgement_resets_interval(self, db_session):
        """Test the last acknowledgement is the baseline"""
        types = self.reminder_types(db_session, datetime(2026, 3, 2, 10, 30),
                                    session_started_at=datetime(2026, 3, 2, 9, 0),
                                    last_water_at=datetime(2026, 3, 2, 10, 0),
                                    last_stretch_at=datetime(2026, 3, 2, 10, 0))
        assert types == []

    def test_work_cutoff(self, db_session):
        """Test the cutoff reminder fires from the cutoff time"""
        start = datetime(2026, 3, 2, 18, 0)
        with db_session() as session:
            before = WellbeingService(session).due_reminders(datetime(2026, 3, 2, 18, 29), session_started_at=start)
            after = WellbeingService(session).due_reminders(datetime(2026, 3, 2, 18, 30), session_started_at=start)
        assert before == []
        assert after == [{'type': 'work_cutoff', 'message': 'Time to switch to family mode!'}]

    def test_session_warning(self, db_session):
        """Test long sessions are flagged with time online"""
        with db_session() as session:
            reminders = WellbeingService(session).due_reminders(
                datetime(2026, 3, 2, 11, 5),
                session_started_at=datetime(2026, 3, 2, 9, 0),
                last_water_at=datetime(2026, 3, 2, 11, 0),
                last_stretch_at=datetime(2026, 3, 2, 11, 0)
            )
        assert reminders == [{'type': 'session', 'message': "You've been working for 2h 5m", 'minutes_online': 125}]

    def test_disabled_reminders(self, client, db_session):
        """Test disabled reminders never fire"""
        client.put('/api/wellbeing/settings', json={
            'water_reminder_enabled': False, 'stretch_reminder_enabled': False,
            'work_cutoff_enabled': False, 'session_tracking_enabled': False
        })
        types = self.reminder_types(db_session, datetime(2026, 3, 2, 23, 0),
                                    session_started_at=datetime(2026, 3, 2, 6, 0))
        assert types == []

    def test_task_reminder_window(self, client, db_session):
        """Test a task reminder fires between the lead time and the due time"""
        task = add_task(client, title='Site meeting', due_date=DAY, due_time='14:00',
                        location='5 Mill Lane', reminder_minutes_before=15)
        quiet = {'last_water_at': datetime(2026, 3, 2, 13, 30), 'last_stretch_at': datetime(2026, 3, 2, 13, 30)}

        with db_session() as session:
            service = WellbeingService(session)
            early = service.due_reminders(datetime(2026, 3, 2, 13, 44), **quiet)
            inside = service.due_reminders(datetime(2026, 3, 2, 13, 50), **quiet)
            late = service.due_reminders(datetime(2026, 3, 2, 14, 1), **quiet)

        assert early == []
        assert inside == [{'type': 'task', 'message': 'Site meeting at 14:00 (5 Mill Lane)', 'task_id': task['id']}]
        assert late == []

    def test_reminders_endpoint(self, client):
        """Test the API reads times from query params"""
        response = client.get('/api/wellbeing/reminders', query_string={
            'now': '2026-03-02T19:00:00',
            'session_started_at': '2026-03-02T18:45:00',
        })
        data = response.get_json()
        assert response.status_code == 200
        assert data['now'] == '2026-03-02T19:00:00'
        assert [r['type'] for r in data['reminders']] == ['work_cutoff']

    def test_reminders_bad_datetime(self, client):
        """Test unparseable times give 400"""
        assert client.get('/api/wellbeing/reminders?now=garbage').status_code == 400
