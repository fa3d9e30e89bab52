"""Tests for the AuditService"""

from unittest.mock import MagicMock

from backup_console.extensions import db
from backup_console.models.audit import AuditLog
from backup_console.services.audit_service import AuditService

def test_log_system_event(app):
    """Events are stored with JSON details"""
    service = AuditService(db)

    assert service.log_system_event('BACKUP_DELETED', 'backup', {'backupId': 'backup_x'}, ip_address='10.0.0.1')

    entry = AuditLog.query.one()
    assert entry.action == 'BACKUP_DELETED'
    assert entry.user_id == 'system'
    assert entry.ip_address == '10.0.0.1'
    assert entry.details_dict == {'backupId': 'backup_x'}

def test_log_system_event_failure_is_swallowed():
    """Database errors are logged and reported as False"""
    mock_db = MagicMock()
    mock_db.session.commit.side_effect = Exception("database is locked")
    service = AuditService(mock_db)

    assert service.log_system_event('BACKUP_RESTORED', 'backup') is False
    mock_db.session.rollback.assert_called_once()

def test_details_dict_with_invalid_json():
    """Free text details are wrapped"""
    assert AuditLog(action='X', details='not json').details_dict == {'raw': 'not json'}
