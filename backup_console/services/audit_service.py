"""Best-effort audit trail for backup operations."""

import logging

from backup_console.models.audit import AuditLog
from backup_console.utils.json_utils import dumps

log = logging.getLogger("audit_service")

class AuditService:
    """Records system events in the audit_logs table.

    Failures never reach the caller: an audit outage must not fail a
    backup, restore or deletion.
    """

    def __init__(self, db_session=None):
        """Initialize the audit service.

        Args:
            db_session: SQLAlchemy database instance
        """
        self.db = db_session

    def log_system_event(self, action, resource, details=None, user_id='system', ip_address=None):
        """Record an event.

        Args:
            action: Event name, e.g. BACKUP_RESTORED
            resource: Resource type the event concerns
            details: JSON-serializable event details
            user_id: Acting user, 'system' for scheduled work
            ip_address: Client address when triggered over HTTP

        Returns:
            bool: True if the event was stored
        """
        try:
            entry = AuditLog(
                user_id=user_id,
                action=action,
                resource=resource,
                details=dumps(details or {}),
                ip_address=ip_address,
            )
            self.db.session.add(entry)
            self.db.session.commit()
            return True
        except Exception as e:
            log.warning(f"Failed to log {action} event: {str(e)}")
            try:
                self.db.session.rollback()
            except Exception as rollback_error:
                log.warning(f"Audit rollback failed: {str(rollback_error)}")
            return False
