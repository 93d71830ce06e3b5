from flask import Flask
from moneyflow.core.extensions import db
from moneyflow.core.config import get_config
import os
from typing import Optional


def create_app(config_name: Optional[str] = None):
    """Application factory pattern."""
    import logging
    from logging.handlers import RotatingFileHandler

    if config_name is None:
        config_name = os.getenv("APP_CONFIG", "production")

    app = Flask(__name__)

    # Load configuration
    app.config.from_object(get_config(config_name))
    app.json.sort_keys = False

    # Setup logging to files
    if not app.debug and not app.testing:
        logs_dir = app.config['LOG_DIR']
        if not os.path.exists(logs_dir):
            os.makedirs(logs_dir)

        formatter = logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        )

        # Main application log
        file_handler = RotatingFileHandler(
            os.path.join(logs_dir, 'moneyflow.log'),
            maxBytes=10240000,  # 10MB
            backupCount=10
        )
        file_handler.setFormatter(formatter)
        file_handler.setLevel(logging.INFO)

        # Error log
        error_handler = RotatingFileHandler(
            os.path.join(logs_dir, 'errors.log'),
            maxBytes=10240000,
            backupCount=5
        )
        error_handler.setFormatter(formatter)
        error_handler.setLevel(logging.ERROR)

        # app.logger is the "moneyflow" logger, so service module loggers propagate here
        app.logger.addHandler(file_handler)
        app.logger.addHandler(error_handler)

        # Set log level from config
        log_level = app.config.get('LOG_LEVEL', 'INFO')
        app.logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

        app.logger.info(f'MoneyFlow startup - Config: {config_name}')

    # Initialize extensions
    db.init_app(app)

    with app.app_context():
        from moneyflow.modules.ledger import models  # noqa: F401
        db.create_all()

    # Register blueprints
    from moneyflow.api.v1 import api_v1_bp
    app.register_blueprint(api_v1_bp)

    # Register error handlers
    from moneyflow.core.errors import register_error_handlers
    register_error_handlers(app)

    # Register CLI commands
    from moneyflow.core.cli import register_cli_commands
    register_cli_commands(app)

    return app
