"""Service for listing and deleting backups on disk."""

import os
import re
import logging
from typing import Any, Dict, List, Optional

from backup_console.errors import BackupNotFoundError
from backup_console.models.backup import BACKUP_TYPES, BackupManifest, DeletionResult
from backup_console.utils.backup import (
    BACKUP_ID_PREFIX,
    BackupPaths,
    files_containing,
    list_files,
    token_from_backup_id,
)
from backup_console.utils.file_validation import format_file_size
from backup_console.utils.json_utils import read_json_file

log = logging.getLogger("backup_service")

MANIFEST_SUFFIX = '.json'


def legacy_backup_type(manifest: BackupManifest) -> str:
    """Guess manual vs auto for manifests written before the type field existed."""
    if manifest.exports:
        sql_file = manifest.exports[0].files.get('postgresql') or ''
        if 'manual' in sql_file:
            return 'manual'
    return 'auto'


def is_manifest_file(filename: str) -> bool:
    return filename.startswith(BACKUP_ID_PREFIX) and filename.endswith(MANIFEST_SUFFIX)


def manifest_token(filename: str) -> str:
    """``backup_2025-11-05T14:50:00.json`` -> ``2025-11-05T14-50-00``."""
    raw = filename[len(BACKUP_ID_PREFIX):-len(MANIFEST_SUFFIX)]
    return re.sub(r'[:.]', '-', raw)


class BackupService:
    """Service for the backup catalog and backup deletion."""

    def __init__(self, paths: BackupPaths, history_limit: int = 20, audit_service=None):
        """Initialize the backup service.

        Args:
            paths: Backup directory layout
            history_limit: Maximum number of backups returned by list_history
            audit_service: Optional AuditService for deletion events
        """
        self.paths = paths
        self.history_limit = history_limit
        self.audit_service = audit_service

    def list_history(self) -> List[Dict[str, Any]]:
        """List the most recent backups, newest first.

        Manifest filenames embed their timestamp, so a descending name sort
        is a recency sort. Unparseable manifests are skipped and do not use
        up a slot.

        Returns:
            list: Backup summaries, at most ``history_limit`` of them
        """
        if not os.path.isdir(self.paths.logs_dir):
            return []

        manifest_files = sorted(
            (name for name in os.listdir(self.paths.logs_dir) if is_manifest_file(name)),
            reverse=True
        )
        daily_files = list_files(self.paths.daily_dir)

        history = []
        for filename in manifest_files:
            if len(history) >= self.history_limit:
                break
            try:
                data = read_json_file(os.path.join(self.paths.logs_dir, filename))
                manifest = BackupManifest.from_dict(data)
            except (ValueError, KeyError, TypeError, OSError) as e:
                log.warning(f"Failed to parse backup log {filename}: {str(e)}")
                continue

            history.append(self.summarize(filename, manifest, daily_files))

        return history

    def summarize(self, filename: str, manifest: BackupManifest,
                  daily_files: Optional[List[str]] = None) -> Dict[str, Any]:
        """Build the catalog entry for one manifest."""
        if daily_files is None:
            daily_files = list_files(self.paths.daily_dir)

        token = manifest_token(filename)
        artifacts = [name for name in daily_files if token in name]
        size_bytes = sum(os.path.getsize(self.paths.artifact_path(name)) for name in artifacts)

        # Referenced but absent files are reported, never repaired
        present = set(daily_files)
        missing = [
            os.path.basename(path)
            for entry in manifest.exports
            for path in entry.files.values()
            if path and os.path.basename(path) not in present
        ]

        backup_type = manifest.type if manifest.type in BACKUP_TYPES else legacy_backup_type(manifest)

        return {
            'id': f"{BACKUP_ID_PREFIX}{token}",
            'type': backup_type,
            'status': 'completed',
            'size': format_file_size(size_bytes) if artifacts else 'Unknown',
            'sizeBytes': size_bytes,
            'createdAt': manifest.timestamp,
            'timestamp': manifest.timestamp,
            'collections': manifest.collections,
            'totalRecords': manifest.total_records,
            'duration': manifest.duration,
            'exports': [entry.to_dict() for entry in manifest.exports],
            'missingFiles': missing,
        }

    def delete_backup(self, backup_id: str, ip_address: Optional[str] = None) -> DeletionResult:
        """Delete every artifact and log whose name contains the backup's token.

        Matching is by substring so manual, per-collection and per-format
        files are all swept together. A token that is a substring of another
        backup's token removes that backup's files too.

        Args:
            backup_id: Backup id of the form ``backup_<token>``
            ip_address: Client address for the audit trail

        Returns:
            DeletionResult: Deleted and failed paths

        Raises:
            ValidationError: If the id is empty or unsafe
            BackupNotFoundError: If no file matches
        """
        token = token_from_backup_id(backup_id)

        paths_to_delete = [
            os.path.join(directory, name)
            for directory in (self.paths.daily_dir, self.paths.logs_dir)
            for name in files_containing(directory, token)
        ]
        if not paths_to_delete:
            raise BackupNotFoundError("Backup not found", details={'backupId': backup_id})

        result = DeletionResult(backup_id=backup_id, matched=len(paths_to_delete))
        for path in paths_to_delete:
            try:
                os.remove(path)
                result.deleted.append(path)
                log.info(f"Deleted backup file: {path}")
            except OSError as e:
                result.failed.append(path)
                log.warning(f"Failed to delete file {path}: {str(e)}")

        log.info(
            f"Deleted {result.files_deleted} of {result.matched} backup files for {backup_id}",
            extra={'backup_id': backup_id, 'files_failed': len(result.failed)}
        )

        if self.audit_service:
            self.audit_service.log_system_event(
                'BACKUP_DELETED',
                'backup',
                {'backupId': backup_id, 'filesDeleted': result.files_deleted},
                ip_address=ip_address,
            )
        return result
