"""
Centralized Configuration for the Trade Services CRM
Manages environment-specific settings, secrets, and service configurations.
"""
import os
from datetime import timedelta


class StoragePolicyError(RuntimeError):
    """Raised when the configured storage does not satisfy the environment policy"""
    pass


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.urandom(32).hex()
    MAX_CONTENT_LENGTH = 25 * 1024 * 1024  # 25MB max upload (note attachments)
    JSON_SORT_KEYS = False

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With', 'X-Partner-Token']

    # Database Settings
    DATABASE_URL = os.environ.get('DATABASE_URL', 'sqlite:///trade_crm.db')
    SQLALCHEMY_ECHO = os.environ.get('SQLALCHEMY_ECHO', 'false').lower() == 'true'

    # File Storage Paths
    BASE_DIR = os.path.dirname(os.path.abspath(__file__))
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', 'uploads')
    DATA_FOLDER = os.environ.get('DATA_FOLDER', 'data')
    INSPECTION_BACKUP_FOLDER = os.path.join(DATA_FOLDER, 'backups')

    # AI Service API Keys
    ANTHROPIC_API_KEY = os.environ.get('ANTHROPIC_API_KEY')

    # AI Model Configuration
    AI_MODELS = {
        'claude': {
            'model': os.environ.get('AI_CONTENT_MODEL', 'claude-sonnet-4-20250514'),
            'max_tokens': 1024,
            'temperature': 0.7,
        },
    }

    # AI Retry Configuration
    AI_RETRY_ATTEMPTS = int(os.environ.get('AI_RETRY_ATTEMPTS', '3'))
    AI_RETRY_DELAY = int(os.environ.get('AI_RETRY_DELAY', '2'))  # seconds
    AI_TIMEOUT = int(os.environ.get('AI_TIMEOUT', '60'))  # seconds

    # Business defaults
    COMPANY_NAME = os.environ.get('COMPANY_NAME', 'CCC Group')
    CURRENCY = os.environ.get('CURRENCY', 'GBP')
    JOB_NUMBER_PREFIX = os.environ.get('JOB_NUMBER_PREFIX', 'CCC')
    DEFAULT_TAX_RATE = float(os.environ.get('DEFAULT_TAX_RATE', '20'))
    DEFAULT_PAYMENT_TERMS_DAYS = int(os.environ.get('DEFAULT_PAYMENT_TERMS_DAYS', '14'))
    PARTNER_INVITE_DAYS = int(os.environ.get('PARTNER_INVITE_DAYS', '7'))

    # Scheduler
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'false').lower() == 'true'
    SCHEDULER_CHECK_INTERVAL = int(os.environ.get('SCHEDULER_CHECK_INTERVAL', '60'))  # seconds
    AUTOPILOT_RUN_TIME = os.environ.get('AUTOPILOT_RUN_TIME', '06:00')  # local HH:MM
    POST_REMINDER_TIME = os.environ.get('POST_REMINDER_TIME', '12:00')

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'crm.log')
    LOG_DIR = os.environ.get('LOG_DIR', 'logs')
    LOG_MAX_BYTES = 10 * 1024 * 1024
    LOG_BACKUP_COUNT = 5
    LOG_TO_FILE = os.environ.get('LOG_TO_FILE', 'true').lower() == 'true'

    # Session Configuration
    SESSION_PERMANENT = False
    PERMANENT_SESSION_LIFETIME = timedelta(days=7)


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://crm.example.com').split(',')
    # Force HTTPS
    PREFERRED_URL_SCHEME = 'https'
    # Enable all security features
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    DATABASE_URL = 'sqlite:///:memory:'
    ANTHROPIC_API_KEY = None
    SCHEDULER_ENABLED = False
    LOG_TO_FILE = False
    AI_RETRY_ATTEMPTS = 1
    AI_RETRY_DELAY = 0


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_app_env():
    """Return the current environment name (development, production, testing)"""
    return os.environ.get('FLASK_ENV', 'development').lower()


def is_production():
    """True when running with the production configuration"""
    return get_app_env() == 'production'


def has_database():
    """True when DATABASE_URL is explicitly set in the environment"""
    return bool(os.environ.get('DATABASE_URL'))


def validate_storage_config(database_url=None):
    """
    Enforce the storage policy.

    Production must point at a real database server; the SQLite default is only
    acceptable for development and tests.

    Raises:
        StoragePolicyError: If production mode without DATABASE_URL
    """
    if is_production():
        url = database_url or os.environ.get('DATABASE_URL')
        if not url or url.startswith('sqlite'):
            raise StoragePolicyError(
                "DATABASE_URL must be configured with a server database in production."
            )
    return True


def get_config(name=None):
    """Get configuration based on FLASK_ENV environment variable"""
    env = name or get_app_env()
    return config_by_name.get(env, DevelopmentConfig)
