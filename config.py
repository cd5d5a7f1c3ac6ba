import os
from dotenv import load_dotenv
from typing import Optional

# Find the absolute path of the root directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load the .env file from the root directory
load_dotenv(os.path.join(basedir, '.env'))


def _env_list(key: str, default: str) -> tuple:
    """Read a comma separated environment variable as a tuple of stripped values"""
    raw = os.environ.get(key, default)
    return tuple(item.strip() for item in raw.split(',') if item.strip())


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid"""
    pass


class Config:
    """
    Base configuration class. Contains default configuration settings
    and settings applicable to all environments.
    """
    FLASK_ENV = os.environ.get('FLASK_ENV')

    @classmethod
    def validate_required_config(cls) -> None:
        """Validate that all required configuration is present"""
        # Skip validation in testing environment or during migrations
        if os.environ.get('FLASK_ENV') == 'testing' or os.environ.get('SKIP_ENV_VALIDATION'):
            return

        required_vars = ['PBX_WEBHOOK_SIGNING_KEY']
        if not (os.environ.get('DATABASE_URL') or os.environ.get('POSTGRES_URI')):
            required_vars.append('POSTGRES_URI')

        missing_vars = [var for var in required_vars if not os.environ.get(var)]

        if missing_vars:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

    @staticmethod
    def get_required_env(key: str) -> str:
        """Get required environment variable or raise error"""
        value = os.environ.get(key)
        if not value:
            raise ConfigurationError(f"Required environment variable {key} is not set")
        return value

    # Database settings
    SQLALCHEMY_DATABASE_URI = os.environ.get('POSTGRES_URI') or \
        'sqlite:///' + os.path.join(basedir, 'alerts.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # PBX webhook intake
    PBX_WEBHOOK_SIGNING_KEY = os.environ.get('PBX_WEBHOOK_SIGNING_KEY')

    # Property resolution
    COMPANY_DIRECTORY_URL = os.environ.get('COMPANY_DIRECTORY_URL')
    COMPANY_DIRECTORY_API_KEY = os.environ.get('COMPANY_DIRECTORY_API_KEY')
    ALERT_DIRECT_INTEGRATION_GROUPS = _env_list('ALERT_DIRECT_INTEGRATION_GROUPS', '')
    ALERT_PARTNER_GATEWAY_GROUP = os.environ.get('ALERT_PARTNER_GATEWAY_GROUP', 'peerless-emergency')
    ALERT_SECONDARY_GATEWAY_GROUP = os.environ.get('ALERT_SECONDARY_GATEWAY_GROUP', 'ooma-emergency')
    ALERT_PARTNER_NAME = os.environ.get('ALERT_PARTNER_NAME', 'peerless')

    # Deduplication
    ALERT_IP_DEDUP_PBX_TYPES = _env_list('ALERT_IP_DEDUP_PBX_TYPES', 'ooma,peerless')
    ALERT_KEY_DEDUP_BYPASS_ENTERPRISE = os.environ.get('ALERT_KEY_DEDUP_BYPASS_ENTERPRISE', '9999999999')

    # Audit log
    ALERT_LOG_DIR = os.environ.get('ALERT_LOG_DIR') or os.path.join(basedir, 'logs', 'alerts')
    ALERT_LOG_DATE_FORMAT = os.environ.get('ALERT_LOG_DATE_FORMAT', '%m/%d/%Y %H:%M:%S')

    # Celery Configuration (uppercase prefixes, mapped by Celery to lowercase settings)
    CELERY_BROKER_URL = os.environ.get('REDIS_URL') or 'redis://redis:6379/0'
    CELERY_RESULT_BACKEND = os.environ.get('REDIS_URL') or 'redis://redis:6379/0'

    # Mail settings
    MAIL_SERVER = os.environ.get('MAIL_SERVER')
    MAIL_PORT = int(os.environ.get('MAIL_PORT') or 587)  # Handle empty string
    MAIL_USE_TLS = os.environ.get('MAIL_USE_TLS', 'true').lower() == 'true'
    MAIL_USERNAME = os.environ.get('MAIL_USERNAME')
    MAIL_PASSWORD = os.environ.get('MAIL_PASSWORD')
    MAIL_DEFAULT_SENDER = os.environ.get('MAIL_DEFAULT_SENDER', 'alerts@example.com')

    # SMS gateway
    SMS_GATEWAY_URL = os.environ.get('SMS_GATEWAY_URL')
    SMS_GATEWAY_API_KEY = os.environ.get('SMS_GATEWAY_API_KEY')
    SMS_SENDER_ID = os.environ.get('SMS_SENDER_ID')

    # Notification delivery
    ALERT_DELIVERY_MAX_ATTEMPTS = int(os.environ.get('ALERT_DELIVERY_MAX_ATTEMPTS') or 3)
    ALERT_DELIVERY_BATCH_SIZE = int(os.environ.get('ALERT_DELIVERY_BATCH_SIZE') or 100)
    ALERT_DELIVERY_INTERVAL_SECONDS = float(os.environ.get('ALERT_DELIVERY_INTERVAL_SECONDS') or 30)

    # Application settings
    MAX_CONTENT_LENGTH = 1 * 1024 * 1024  # call events are small
    JSON_SORT_KEYS = False

    @classmethod
    def init_app(cls, app):
        """Initialize application with this config"""
        import logging
        logger = logging.getLogger(__name__)

        os.makedirs(app.config['ALERT_LOG_DIR'], exist_ok=True)
        logger.info(f"Alert audit log directory: {app.config['ALERT_LOG_DIR']}")


class DevelopmentConfig(Config):
    """Development environment configuration"""
    DEBUG = True
    TESTING = False

    # Development-specific database URI
    SQLALCHEMY_DATABASE_URI = os.environ.get('DEV_DATABASE_URL') or \
        Config.SQLALCHEMY_DATABASE_URI

    # Development mail settings - use console backend
    MAIL_SUPPRESS_SEND = True

    @classmethod
    def init_app(cls, app):
        """Development-specific initialization"""
        Config.init_app(app)

        # Log to stdout in development
        import logging
        from logging import StreamHandler
        stream_handler = StreamHandler()
        stream_handler.setLevel(logging.DEBUG)
        app.logger.addHandler(stream_handler)


class TestingConfig(Config):
    """Testing environment configuration"""
    TESTING = True
    DEBUG = True

    # Use in-memory SQLite for tests
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'

    PBX_WEBHOOK_SIGNING_KEY = 'dGVzdC1zaWduaW5nLWtleQ=='  # base64 of 'test-signing-key'
    COMPANY_DIRECTORY_URL = None
    MAIL_SERVER = None
    MAIL_SUPPRESS_SEND = True
    SMS_GATEWAY_URL = None

    # Run Celery tasks inline during tests
    CELERY_BROKER_URL = 'memory://'
    CELERY_RESULT_BACKEND = 'cache+memory://'

    @classmethod
    def init_app(cls, app):
        """Testing-specific initialization"""
        # Do NOT call Config.init_app for testing - tests point ALERT_LOG_DIR at a tmp dir
        import logging
        logger = logging.getLogger(__name__)
        logger.info("Testing mode: audit log directory supplied by test config")


class ProductionConfig(Config):
    """Production environment configuration"""
    DEBUG = False
    TESTING = False

    # Production database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', '')

    # Production Redis
    REDIS_URL = os.environ.get('REDIS_URL', '')
    CELERY_BROKER_URL = os.environ.get('REDIS_URL', '')
    CELERY_RESULT_BACKEND = os.environ.get('REDIS_URL', '')

    @classmethod
    def init_app(cls, app):
        """Production-specific initialization"""
        Config.init_app(app)

        if not cls.SQLALCHEMY_DATABASE_URI:
            cls.SQLALCHEMY_DATABASE_URI = cls.get_required_env('POSTGRES_URI')

        # Validate all required config
        cls.validate_required_config()

        # Log to syslog in production
        import logging
        from logging.handlers import SysLogHandler
        syslog_handler = SysLogHandler()
        syslog_handler.setLevel(logging.WARNING)
        app.logger.addHandler(syslog_handler)


# Configuration dictionary
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None) -> type[Config]:
    """Get configuration class based on environment"""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    return config.get(config_name, DevelopmentConfig)
