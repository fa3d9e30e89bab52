import os
from flask import Flask

from backup_console.extensions import init_extensions
from backup_console.errors import register_error_handlers
from backup_console.logger import setup_logging

def create_app(test_config=None):
    """Application factory function."""
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    from backup_console.config import get_config
    if test_config is None:
        config_name = os.environ.get('FLASK_ENV', 'default')
        app.config.from_object(get_config(config_name))
    else:
        # Test mappings override the testing defaults
        app.config.from_object(get_config('testing'))
        app.config.from_mapping(test_config)

    # Configure logging
    setup_logging(app)

    # Initialize extensions
    init_extensions(app)

    # Services are per app so each one sees its own config
    from backup_console.services.container import init_container
    init_container(app)

    # Register error handlers
    register_error_handlers(app)

    register_blueprints(app)

    from backup_console.commands import register_commands
    register_commands(app)

    # Initialize scheduler in non-testing environments
    if not app.config.get('TESTING'):
        from backup_console.tasks.backup_tasks import start_scheduler
        start_scheduler(app)

    return app

def register_blueprints(app):
    """Register all blueprints with the application."""
    from backup_console.web.backup import backup_bp

    app.register_blueprint(backup_bp, url_prefix='/api')
    app.logger.info("Registered blueprint: backup_bp")
