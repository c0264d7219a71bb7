"""
Tests for configuration and logging setup
"""
import logging
import pytest
from types import SimpleNamespace

from config import (
    Config,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    StoragePolicyError,
    get_config,
    validate_storage_config
)
from logging_config import mask_secrets, setup_logging, SecretMaskingFilter, MASK


@pytest.mark.unit
class TestConfigClasses:
    """Tests for the per-environment settings"""

    def test_base_limits_and_cors(self):
        """Test upload limit and CORS defaults"""
        config = Config()
        assert config.SECRET_KEY
        assert config.MAX_CONTENT_LENGTH == 25 * 1024 * 1024
        assert {'GET', 'POST', 'PATCH', 'DELETE'} <= set(config.CORS_METHODS)
        assert 'X-Partner-Token' in config.CORS_ALLOW_HEADERS

    def test_ai_settings(self):
        """Test the content generation model and retry policy"""
        config = Config()
        assert config.AI_MODELS['claude']['model'] == 'claude-sonnet-4-20250514'
        assert (config.AI_RETRY_ATTEMPTS, config.AI_RETRY_DELAY, config.AI_TIMEOUT) == (3, 2, 60)

    def test_business_defaults(self):
        """Test company, numbering and payment defaults"""
        config = Config()
        assert config.COMPANY_NAME == 'CCC Group'
        assert config.JOB_NUMBER_PREFIX == 'CCC'
        assert config.DEFAULT_TAX_RATE == 20.0
        assert config.DEFAULT_PAYMENT_TERMS_DAYS == 14
        assert config.PARTNER_INVITE_DAYS == 7

    def test_logging_defaults(self):
        """Test log file settings"""
        config = Config()
        assert config.LOG_FILE == 'crm.log'
        assert config.LOG_DIR == 'logs'
        assert config.LOG_BACKUP_COUNT == 5

    def test_development(self):
        """Test development is verbose and open"""
        config = DevelopmentConfig()
        assert config.DEBUG is True
        assert config.TESTING is False
        assert config.LOG_LEVEL == 'DEBUG'
        assert '*' in config.CORS_ORIGINS

    def test_production(self):
        """Test production locks down cookies and scheme"""
        config = ProductionConfig()
        assert config.DEBUG is False
        assert config.SESSION_COOKIE_SECURE is True
        assert config.SESSION_COOKIE_SAMESITE == 'Lax'
        assert config.PREFERRED_URL_SCHEME == 'https'

    def test_testing(self):
        """Test tests run in memory without background jobs, AI or log files"""
        config = TestingConfig()
        assert config.TESTING is True
        assert config.DATABASE_URL == 'sqlite:///:memory:'
        assert config.SCHEDULER_ENABLED is False
        assert config.ANTHROPIC_API_KEY is None
        assert config.LOG_TO_FILE is False


@pytest.mark.unit
class TestGetConfig:
    """Tests for the configuration selector"""

    @pytest.mark.parametrize('env,expected', [
        ('production', ProductionConfig),
        ('testing', TestingConfig),
        ('Development', DevelopmentConfig),
        ('staging', DevelopmentConfig),
    ])
    def test_selected_from_flask_env(self, monkeypatch, env, expected):
        """Test FLASK_ENV picks the class, unknown names fall back to development"""
        monkeypatch.setenv('FLASK_ENV', env)
        assert get_config() is expected

    def test_default_without_env(self, monkeypatch):
        """Test development is the default"""
        monkeypatch.delenv('FLASK_ENV', raising=False)
        assert get_config() is DevelopmentConfig

    def test_explicit_name_wins(self, monkeypatch):
        """Test an explicit name overrides FLASK_ENV"""
        monkeypatch.setenv('FLASK_ENV', 'production')
        assert get_config('testing') is TestingConfig


@pytest.mark.unit
class TestStoragePolicy:
    """Tests for the production storage policy"""

    def test_development_allows_sqlite(self, monkeypatch):
        """Test that SQLite is fine outside production"""
        monkeypatch.setenv('FLASK_ENV', 'development')
        assert validate_storage_config('sqlite:///trade_crm.db') is True

    @pytest.mark.parametrize('url', ['sqlite:///trade_crm.db', None])
    def test_production_rejects_sqlite_or_missing(self, monkeypatch, url):
        """Test that production refuses SQLite and a missing DATABASE_URL"""
        monkeypatch.setenv('FLASK_ENV', 'production')
        monkeypatch.delenv('DATABASE_URL', raising=False)
        with pytest.raises(StoragePolicyError):
            validate_storage_config(url)

    def test_production_accepts_postgres(self, monkeypatch):
        """Test that production accepts a server database"""
        monkeypatch.setenv('FLASK_ENV', 'production')
        assert validate_storage_config('postgresql://crm:secret@db/crm') is True


@pytest.mark.unit
class TestLogging:
    """Tests for logging setup and token masking"""

    def test_mask_invite_and_bearer_tokens(self):
        """Test portal credentials never reach the log"""
        line = 'POST /api/partner-portal/invite/abc123XYZ HTTP/1.1 Authorization: Bearer s3cret'
        masked = mask_secrets(line)
        assert 'abc123XYZ' not in masked
        assert 's3cret' not in masked
        assert f'/api/partner-portal/invite/{MASK}' in masked
        assert mask_secrets('GET /api/jobs') == 'GET /api/jobs'

    def test_filter_rewrites_formatted_message(self):
        """Test the filter masks after %-style formatting"""
        record = logging.LogRecord('werkzeug', logging.INFO, __file__, 1,
                                   '"%s" %s', ('GET /api/partner-portal/invite/tok42 HTTP/1.1', 200), None)
        assert SecretMaskingFilter().filter(record) is True
        assert record.getMessage() == f'"GET /api/partner-portal/invite/{MASK} HTTP/1.1" 200'

    def test_setup_writes_log_file(self, tmp_path):
        """Test a rotating log file is created under LOG_DIR"""
        root = logging.getLogger()
        saved = root.handlers[:], root.level
        app = SimpleNamespace(logger=logging.getLogger('test-app'), config={
            'LOG_LEVEL': 'info', 'LOG_FORMAT': '%(message)s', 'LOG_TO_FILE': True,
            'LOG_DIR': str(tmp_path / 'logs'), 'LOG_FILE': 'crm.log'
        })
        try:
            setup_logging(app)
            assert root.level == logging.INFO
            assert len(root.handlers) == 2
            assert (tmp_path / 'logs' / 'crm.log').exists()
            assert logging.getLogger('werkzeug').level == logging.WARNING
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers, level = saved
            root.setLevel(level)
