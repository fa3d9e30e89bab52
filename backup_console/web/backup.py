import logging
from flask import Blueprint, current_app, jsonify, request

from backup_console.decorators.api_auth import api_token_required
from backup_console.errors import AppError, ValidationError
from backup_console.extensions import limiter
from backup_console.models.backup import BACKUP_TYPES, RestoreRequest
from backup_console.services.container import container

log = logging.getLogger(__name__)

backup_bp = Blueprint("backup", __name__)

def _api_limit():
    return current_app.config.get('RATELIMIT_API', '30 per minute')

@backup_bp.route("/backup", methods=['POST'])
@limiter.limit(_api_limit)
@api_token_required
def create():
    """Run a backup now."""
    body = request.get_json(silent=True) or {}
    backup_type = body.get('type', 'manual') if isinstance(body, dict) else 'manual'
    if backup_type not in BACKUP_TYPES:
        raise ValidationError(f"Invalid backup type: {backup_type}", details={'allowed': list(BACKUP_TYPES)})

    log.info(f"{backup_type.capitalize()} backup initiated via API")
    try:
        manifest = container().get('export_service').create_backup(backup_type)
    except AppError:
        raise
    except Exception as e:
        log.error(f"Manual backup failed: {str(e)}", exc_info=True)
        return jsonify({
            'success': False,
            'message': 'Manual backup failed',
            'error': str(e),
        }), 500

    return jsonify({
        'success': True,
        'message': 'Manual backup completed successfully' if backup_type == 'manual' else 'Backup completed successfully',
        'data': manifest.to_dict(),
    })

@backup_bp.route("/backup/schedule", methods=['GET'])
@limiter.limit(_api_limit)
@api_token_required
def schedule():
    """Show the backup schedule configuration."""
    config = current_app.config
    return jsonify({
        'success': True,
        'data': {
            'timezone': config.get('SCHEDULER_TIMEZONE', 'UTC'),
            'cron': config.get('BACKUP_CRON'),
            'enabled': bool(config.get('BACKUP_SCHEDULE_ENABLED')),
            'retention': {'daily': config.get('BACKUP_RETENTION_DAILY')},
        },
    })

@backup_bp.route("/backups/history", methods=['GET'])
@limiter.limit(_api_limit)
@api_token_required
def history():
    """List recent backups, newest first."""
    try:
        backups = container().get('backup_service').list_history()
    except Exception as e:
        log.error(f"Failed to read backup history: {str(e)}", exc_info=True)
        return jsonify({'error': 'Failed to read backup history'}), 500

    return jsonify(backups)

@backup_bp.route("/backups/<backup_id>", methods=['DELETE'])
@limiter.limit(_api_limit)
@api_token_required
def delete(backup_id):
    """Delete every file belonging to a backup."""
    result = container().get('backup_service').delete_backup(backup_id, ip_address=request.remote_addr)

    return jsonify({
        'success': True,
        'message': f"Backup {backup_id} deleted successfully",
        'filesDeleted': result.files_deleted,
    })

@backup_bp.route("/backups/<backup_id>/restore", methods=['POST'])
@limiter.limit(_api_limit)
@api_token_required
def restore(backup_id):
    """Restore a backup into the table store.

    Responds 200 even when collections fail; each collection carries its
    own status.
    """
    restore_request = RestoreRequest.from_payload(backup_id, request.get_json(silent=True))
    report = container().get('restore_service').restore(restore_request, ip_address=request.remote_addr)

    return jsonify({
        'success': True,
        'message': 'Restore completed',
        'data': report.to_dict(),
    })
