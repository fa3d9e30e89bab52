"""Restores backup artifacts into the table store."""

import os
import uuid
import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from backup_console.codecs import get_codec
from backup_console.errors import BackupFormatError, BackupNotFoundError
from backup_console.models.backup import (
    FORMAT_EXTENSIONS,
    FORMAT_PRIORITY,
    BackupManifest,
    CollectionResult,
    RestoreReport,
    RestoreRequest,
    Row,
    RowRestoreOutcome,
)
from backup_console.utils.backup import BackupPaths, collection_artifacts, token_from_backup_id
from backup_console.utils.file_validation import FileSizeError, validate_backup_file_size
from backup_console.utils.json_utils import read_json_file

log = logging.getLogger("restore_service")

# Timestamps the store assigns itself
STRIPPED_FIELDS = ('createdAt', 'updatedAt')


def generate_row_id() -> str:
    return uuid.uuid4().hex


def detect_format(filenames: Sequence[str]) -> str:
    """Pick a format from the artifacts present: Excel, then BSON, then SQL."""
    for fmt in FORMAT_PRIORITY[:-1]:
        if any(name.endswith(FORMAT_EXTENSIONS[fmt]) for name in filenames):
            return fmt
    return FORMAT_PRIORITY[-1]


def prepare_row(row: Row, id_fields: Sequence[str]) -> Tuple[str, Row]:
    """Split a decoded record into a row id and the payload to insert.

    Every candidate id field is removed from the payload; the first
    non-empty one becomes the row id, otherwise a fresh id is generated.
    """
    data = dict(row)
    row_id = None
    for field in id_fields:
        value = data.pop(field, None)
        if row_id is None and value not in (None, ''):
            row_id = str(value)

    for field in STRIPPED_FIELDS:
        data.pop(field, None)
    # System attributes cannot be written back
    for key in [key for key in data if key.startswith('$')]:
        data.pop(key)

    return row_id or generate_row_id(), data


class RestoreService:
    """Service for restoring backups collection by collection."""

    def __init__(self, table_store, paths: BackupPaths, max_file_size: int, audit_service=None):
        """Initialize the restore service.

        Args:
            table_store: TableStore rows are written to
            paths: Backup directory layout
            max_file_size: Largest artifact, in bytes, that will be read
            audit_service: Optional AuditService for the restore event
        """
        self.table_store = table_store
        self.paths = paths
        self.max_file_size = max_file_size
        self.audit_service = audit_service

    def load_manifest(self, backup_id: str) -> BackupManifest:
        token_from_backup_id(backup_id)
        manifest_path = self.paths.manifest_path(backup_id)
        if not os.path.isfile(manifest_path):
            raise BackupNotFoundError("Backup log not found", details={'backupId': backup_id})

        try:
            return BackupManifest.from_dict(read_json_file(manifest_path))
        except (ValueError, KeyError, TypeError) as e:
            raise BackupFormatError(f"Backup log is unreadable: {e}", details={'backupId': backup_id})

    def restore(self, request: RestoreRequest, ip_address: Optional[str] = None) -> RestoreReport:
        """Restore a backup.

        Only a missing manifest aborts the request. Every other failure is
        reported in that collection's result and the next collection is
        processed. Collections run one after another so at most one
        artifact is held in memory.

        Args:
            request: Restore options
            ip_address: Client address for the audit trail

        Returns:
            RestoreReport: One result per collection
        """
        manifest = self.load_manifest(request.backup_id)
        token = token_from_backup_id(request.backup_id)

        collections = [request.collection_id] if request.collection_id else manifest.collection_names()
        report = RestoreReport(backup_id=request.backup_id)

        log.info(
            f"Restoring {request.backup_id}: {len(collections)} collection(s), overwrite={request.overwrite}",
            extra={'backup_id': request.backup_id}
        )
        for collection_id in collections:
            result = self._restore_collection(collection_id, token, request)
            report.results.append(result)

        log.info(
            f"Restore of {request.backup_id} finished: {report.total_records} records, "
            f"{report.failed_collections} failed collection(s)"
        )

        if self.audit_service:
            self.audit_service.log_system_event(
                'BACKUP_RESTORED',
                'backup',
                {
                    'backupId': request.backup_id,
                    'collections': report.collections,
                    'totalRecords': report.total_records,
                    'timestamp': datetime.utcnow().isoformat() + 'Z',
                },
                ip_address=ip_address,
            )
        return report

    def _restore_collection(self, collection_id: str, token: str, request: RestoreRequest) -> CollectionResult:
        try:
            files = collection_artifacts(self.paths.daily_dir, collection_id, token)
            if not files:
                return CollectionResult.failure(collection_id, 'Backup files not found')

            fmt = request.format or detect_format(files)
            codec = get_codec(fmt)
            filename = next((name for name in files if codec.matches(name)), None)
            if filename is None:
                return CollectionResult.failure(collection_id, f'No {fmt} backup file found')

            path = self.paths.artifact_path(filename)
            try:
                validate_backup_file_size(os.path.getsize(path), self.max_file_size)
            except FileSizeError as e:
                log.warning(
                    f"Backup file size validation failed for {filename}: "
                    f"{e.actual_size} > {e.max_size} bytes"
                )
                return CollectionResult.failure(collection_id, e.message)

            rows = codec.read(path)
            outcome = self.restore_rows(collection_id, rows, codec.id_fields, request.overwrite)
            return CollectionResult.success(collection_id, outcome)

        except Exception as e:
            log.error(f"Failed to restore collection {collection_id}: {str(e)}", exc_info=True)
            return CollectionResult.failure(collection_id, str(e) or 'Unknown error')

    def clear_table(self, collection_id: str) -> int:
        """Delete every existing row, best effort.

        Returns:
            int: Number of rows deleted
        """
        try:
            existing = self.table_store.list_rows(collection_id)
        except Exception as e:
            log.warning(f"Could not clear existing data for {collection_id}: {str(e)}")
            return 0

        deleted = 0
        for row in existing:
            try:
                self.table_store.delete_row(collection_id, row['$id'])
                deleted += 1
            except Exception as e:
                log.warning(f"Could not delete row {row.get('$id')} in {collection_id}: {str(e)}")
        return deleted

    def restore_rows(self, collection_id: str, rows: List[Row], id_fields: Sequence[str],
                     overwrite: bool = False) -> RowRestoreOutcome:
        """Insert decoded rows one at a time, continuing past failed rows."""
        if overwrite:
            cleared = self.clear_table(collection_id)
            log.info(f"Cleared {cleared} existing rows from {collection_id}")

        outcome = RowRestoreOutcome()
        for row in rows:
            row_id, data = prepare_row(row, id_fields)
            try:
                self.table_store.create_row(collection_id, row_id, data)
                outcome.record_success()
            except Exception as e:
                log.warning(f"Failed to restore row {row_id} in {collection_id}: {str(e)}")
                outcome.record_failure(f"{row_id}: {str(e)}")
        return outcome
