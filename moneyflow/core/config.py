"""Application configuration."""
import os


class BaseConfig:
    """Base configuration."""
    SQLALCHEMY_DATABASE_URI = os.environ.get('MONEYFLOW_DB', 'sqlite:///moneyflow.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_DIR = os.environ.get(
        'LOG_DIR',
        os.path.abspath(os.path.join(os.path.dirname(__file__), '..', '..', 'logs'))
    )


class DevelopmentConfig(BaseConfig):
    """Development configuration."""
    DEBUG = True
    TESTING = False
    SQLALCHEMY_ECHO = os.environ.get('SQLALCHEMY_ECHO', 'false').lower() == 'true'


class ProductionConfig(BaseConfig):
    """Production configuration."""
    DEBUG = False
    TESTING = False


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("MONEYFLOW_TEST_DB", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False


config_by_name = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


def get_config(config_name=None):
    """Get configuration based on environment."""
    if config_name is None:
        config_name = os.environ.get('APP_CONFIG', 'development')

    return config_by_name.get(config_name, DevelopmentConfig)
