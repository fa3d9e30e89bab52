import os

basedir = os.path.abspath(os.path.dirname(__file__))


def _env_flag(name, default='true'):
    return os.environ.get(name, default).lower() == 'true'


def _env_list(name, default=''):
    return [item.strip() for item in os.environ.get(name, default).split(',') if item.strip()]


class Config:
    """Base configuration for the application."""

    # Flask settings
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-please-change-in-production'
    DEBUG = False
    TESTING = False

    # Audit log storage
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///audit.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # API protection
    ADMIN_API_TOKEN = os.environ.get('ADMIN_API_TOKEN')
    RATELIMIT_ENABLED = _env_flag('RATELIMIT_ENABLED')
    RATELIMIT_DEFAULT = os.environ.get('RATELIMIT_DEFAULT', '200 per day;50 per hour')
    RATELIMIT_API = os.environ.get('RATELIMIT_API', '30 per minute')
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')

    # Appwrite settings
    APPWRITE_ENDPOINT = os.environ.get('APPWRITE_ENDPOINT', 'https://cloud.appwrite.io/v1')
    APPWRITE_PROJECT_ID = os.environ.get('APPWRITE_PROJECT_ID')
    APPWRITE_DATABASE_ID = os.environ.get('APPWRITE_DATABASE_ID', 'console-db')
    APPWRITE_API_KEY = os.environ.get('APPWRITE_API_KEY')
    APPWRITE_TIMEOUT = int(os.environ.get('APPWRITE_TIMEOUT', 10))

    # Backup settings
    BACKUP_ROOT = os.environ.get('BACKUP_ROOT') or os.path.join(os.getcwd(), 'backup')
    MAX_BACKUP_FILE_SIZE = int(os.environ.get('MAX_BACKUP_FILE_SIZE', 52428800))  # 50MB
    BACKUP_HISTORY_LIMIT = int(os.environ.get('BACKUP_HISTORY_LIMIT', 20))
    BACKUP_RETENTION_DAILY = int(os.environ.get('BACKUP_RETENTION_DAILY', 7))
    BACKUP_COLLECTIONS = _env_list(
        'BACKUP_COLLECTIONS', 'audit_logs,user_profiles,system_settings,notifications'
    )
    BACKUP_EXCLUDE_COLLECTIONS = _env_list('BACKUP_EXCLUDE_COLLECTIONS')
    BACKUP_FORMAT_POSTGRESQL = _env_flag('BACKUP_FORMAT_POSTGRESQL')
    BACKUP_FORMAT_BSON = _env_flag('BACKUP_FORMAT_BSON')
    BACKUP_FORMAT_EXCEL = _env_flag('BACKUP_FORMAT_EXCEL')

    # Scheduler settings
    BACKUP_SCHEDULE_ENABLED = _env_flag('BACKUP_SCHEDULE_ENABLED')
    BACKUP_CRON = os.environ.get('BACKUP_CRON', '0 2 * * *')
    SCHEDULER_TIMEZONE = os.environ.get('TZ', 'UTC')
    SCHEDULER_API_ENABLED = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = os.environ.get('LOG_FORMAT', 'json')
    LOG_DIR = os.environ.get('LOG_DIR')

    VERSION = '1.0.0'


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    LOG_FORMAT = os.environ.get('LOG_FORMAT', 'standard')


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    DEBUG = True

    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    RATELIMIT_ENABLED = False
    BACKUP_SCHEDULE_ENABLED = False
    ADMIN_API_TOKEN = 'test-token'
    LOG_FORMAT = 'standard'


class ProductionConfig(Config):
    """Production configuration."""

    SECRET_KEY = os.environ.get('SECRET_KEY')


# Configuration dictionary
config_dict = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}

def get_config(config_name=None):
    """Get configuration class based on environment."""
    if not config_name:
        config_name = os.environ.get('FLASK_ENV', 'default')
    return config_dict.get(config_name, config_dict['default'])
