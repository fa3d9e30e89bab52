"""
Initialize Flask extensions for the application.

These extensions are instantiated here and initialized in the application factory.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_apscheduler import APScheduler

# SQLAlchemy for the audit log table
db = SQLAlchemy()

# Rate limiting
limiter = Limiter(key_func=get_remote_address)

# Scheduler
scheduler = APScheduler()

def init_extensions(app):
    """Initialize all Flask extensions."""
    db.init_app(app)

    limiter.init_app(app)

    scheduler.init_app(app)

    # Audit table is tiny and has no migrations of its own
    from backup_console.models import audit  # noqa: F401
    with app.app_context():
        db.create_all()
