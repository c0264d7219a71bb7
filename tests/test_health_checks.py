"""
Tests for health, readiness and metrics endpoints
"""
import pytest
from unittest.mock import Mock, patch

from health_checks import get_system_metrics, get_uptime, check_ai_services, check_filesystem, get_crm_stats


@pytest.mark.unit
class TestProbes:
    """Tests for the individual checks"""

    def test_system_metrics(self):
        """Test process figures are reported"""
        metrics = get_system_metrics()
        assert isinstance(metrics['cpu_percent'], (int, float))
        assert metrics['memory_mb'] > 0

    @patch('health_checks.psutil.Process')
    def test_system_metrics_failure(self, mock_process):
        """Test psutil errors give an empty result"""
        mock_process.side_effect = RuntimeError('no /proc')
        assert get_system_metrics() == {}

    def test_uptime(self):
        """Test uptime is positive with a start time"""
        uptime = get_uptime()
        assert uptime['uptime_seconds'] >= 0
        assert 'started_at' in uptime

    @pytest.mark.parametrize('available', [True, False])
    def test_ai_services(self, available):
        """Test content generation availability is reported"""
        mock_app = Mock()
        mock_app.ai_service.is_available.return_value = available
        assert check_ai_services(mock_app) == {'anthropic_claude': available}
        mock_app.ai_service.is_available.assert_called_with('claude')

    def test_ai_services_before_init(self):
        """Test a missing AI service counts as unavailable"""
        assert check_ai_services(Mock(spec=[])) == {'anthropic_claude': False}

    def test_filesystem(self, tmp_path):
        """Test missing folders are unhealthy and unset folders are skipped"""
        (tmp_path / 'data').mkdir()
        mock_app = Mock()
        mock_app.config = {'UPLOAD_FOLDER': str(tmp_path / 'uploads'), 'DATA_FOLDER': str(tmp_path / 'data')}

        filesystem = check_filesystem(mock_app)
        assert filesystem['DATA_FOLDER']['healthy'] is True
        assert filesystem['UPLOAD_FOLDER']['exists'] is False
        assert filesystem['UPLOAD_FOLDER']['healthy'] is False
        assert 'INSPECTION_BACKUP_FOLDER' not in filesystem

    @patch('health_checks.os.access')
    def test_filesystem_read_only(self, mock_access, tmp_path):
        """Test a read-only folder is unhealthy"""
        mock_access.return_value = False
        mock_app = Mock()
        mock_app.config = {'DATA_FOLDER': str(tmp_path)}
        assert check_filesystem(mock_app)['DATA_FOLDER'] == {
            'path': str(tmp_path), 'exists': True, 'writable': False, 'healthy': False
        }


@pytest.mark.integration
class TestCrmStats:
    """Tests for the business counters"""

    def test_empty_database(self, app):
        """Test a fresh database has nothing open"""
        stats = get_crm_stats()
        assert stats['open_jobs'] == 0
        assert stats['pending_partner_fees'] == 0.0
        assert stats['overdue_partner_invoices'] == 0

    def test_counts_open_jobs_and_fees(self, client, make_job, make_partner):
        """Test open jobs by stage and pending partner fees"""
        partner = make_partner()
        job = make_job(partner_id=partner['id'])
        make_job(title='Bathroom')
        lost = make_job(title='Porch')
        client.post(f"/api/jobs/{lost['id']}/status", json={'status': 'lost'})
        client.post(f"/api/jobs/{job['id']}/quote-items",
                    json={'description': 'Works', 'quantity': 1, 'unit_price': 2000})
        client.post(f"/api/jobs/{job['id']}/status", json={'status': 'completed', 'force': True})

        stats = get_crm_stats()
        assert stats['open_jobs'] == 2
        assert stats['open_jobs_by_stage'] == {'new_enquiry': 1, 'completed': 1}
        assert stats['pending_partner_fees'] == 200.0


@pytest.mark.integration
class TestHealthEndpoints:
    """Tests for the endpoints on the full app"""

    def test_health(self, client):
        """Test liveness"""
        data = client.get('/api/health').get_json()
        assert data['status'] == 'healthy'
        assert data['service'] == 'trade-services-crm'

    def test_ping(self, client):
        """Test ping"""
        assert client.get('/api/ping').data == b'pong'

    def test_ready(self, client):
        """Test the app is ready with a database and writable folders"""
        response = client.get('/api/ready')
        data = response.get_json()
        assert response.status_code == 200
        assert data['status'] == 'ready'
        assert data['checks']['database']['healthy'] is True
        assert data['checks']['filesystem_healthy'] is True
        assert data['checks']['ai_services']['anthropic_claude'] is False

    @patch('health_checks.check_db_connection')
    def test_not_ready_without_database(self, mock_check, client):
        """Test a failing database gives 503"""
        mock_check.side_effect = RuntimeError('connection refused')
        response = client.get('/api/ready')
        assert response.status_code == 503
        assert response.get_json()['checks']['database'] == {'healthy': False, 'error': 'connection refused'}

    def test_metrics(self, client):
        """Test metrics include uptime, business counters and scheduler state"""
        data = client.get('/api/metrics').get_json()
        assert data['version'] == '1.0.0'
        assert 'uptime_seconds' in data['uptime']
        assert data['crm']['open_jobs'] == 0
        assert data['scheduler']['running'] is False
        assert data['services'] == {'anthropic_claude': False}
