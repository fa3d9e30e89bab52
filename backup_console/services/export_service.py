"""Service for writing backups of table store collections."""

import os
import time
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from backup_console.codecs import get_codec
from backup_console.errors import BackupNotFoundError, ValidationError
from backup_console.models.backup import (
    BACKUP_TYPES,
    FORMATS,
    MANIFEST_FILE_KEYS,
    BackupManifest,
    ExportEntry,
    Row,
)
from backup_console.utils.backup import (
    MANUAL_PREFIX,
    BackupPaths,
    artifact_filename,
    backup_id_for_token,
    list_files,
    timestamp_token,
)
from backup_console.utils.json_utils import read_json_file, write_json_file

log = logging.getLogger("export_service")

# Name of the row id column per format
EXPORT_ID_FIELDS = {
    'sql': 'id',
    'bson': '_id',
    'excel': '_id',
}


def export_record(row: Row, id_field: str) -> Row:
    """Convert a stored row into an export record.

    System fields are dropped; the row id and timestamps are kept under
    plain names. A user column with the same name as the id column is
    dropped so it cannot replace the row id.
    """
    record = {}
    row_id = row.get('$id')
    if row_id:
        record[id_field] = row_id
    for key, value in row.items():
        if key.startswith('$'):
            continue
        if row_id and key == id_field:
            log.warning(f"Dropping column {key} of row {row_id}, it clashes with the exported row id")
            continue
        record[key] = value
    if '$createdAt' in row:
        record['createdAt'] = row['$createdAt']
    if '$updatedAt' in row:
        record['updatedAt'] = row['$updatedAt']
    return record


class ExportService:
    """Service for creating backups."""

    def __init__(self, table_store, paths: BackupPaths, collections: Iterable[str],
                 exclude_collections: Iterable[str] = (), formats: Iterable[str] = FORMATS,
                 retention: int = 7, backup_service=None, audit_service=None):
        """Initialize the export service.

        Args:
            table_store: TableStore rows are read from
            paths: Backup directory layout
            collections: Collections to back up
            exclude_collections: Collections never backed up
            formats: Enabled formats, any of sql, bson, excel
            retention: Number of backups kept; 0 keeps everything
            backup_service: BackupService used to delete expired backups
            audit_service: Optional AuditService
        """
        self.table_store = table_store
        self.paths = paths
        self.collections = list(collections)
        self.exclude_collections = set(exclude_collections)
        self.formats = [fmt for fmt in FORMATS if fmt in set(formats)]
        self.retention = retention
        self.backup_service = backup_service
        self.audit_service = audit_service

    def target_collections(self) -> List[str]:
        return [c for c in self.collections if c not in self.exclude_collections]

    def create_backup(self, backup_type: str = 'auto', now: Optional[datetime] = None) -> BackupManifest:
        """Create a backup of every configured collection.

        Args:
            backup_type: 'auto' for scheduled runs, 'manual' otherwise
            now: Backup time, defaults to the current UTC time

        Returns:
            BackupManifest: The manifest written to the logs directory
        """
        if backup_type not in BACKUP_TYPES:
            raise ValidationError(f"Unknown backup type: {backup_type}")

        start = time.monotonic()
        now = now or datetime.utcnow()
        timestamp = now.isoformat(timespec='milliseconds') + 'Z'
        token = timestamp_token(timestamp)
        manual = backup_type == 'manual'

        log.info(f"Starting {backup_type} backup {backup_id_for_token(token)}")
        self._audit('BACKUP_STARTED', {'type': backup_type, 'timestamp': timestamp})

        self.paths.ensure()
        if not manual:
            self.cleanup_same_day_auto_backups(now)

        exports = []
        for collection_id in self.target_collections():
            try:
                rows = self.table_store.list_rows(collection_id)
            except Exception as e:
                log.info(f"Collection {collection_id} not accessible, skipping: {str(e)}")
                continue

            log.info(f"Found {len(rows)} records in {collection_id}")
            if not rows:
                continue

            files = self.export_collection(collection_id, rows, token, manual, timestamp)
            if not files:
                log.error(f"No artifacts written for {collection_id}, leaving it out of the backup")
                continue
            exports.append(ExportEntry(collection=collection_id, records=len(rows), files=files))

        manifest = BackupManifest(
            timestamp=timestamp,
            exports=exports,
            total_records=sum(entry.records for entry in exports),
            collections=len(exports),
            duration=int((time.monotonic() - start) * 1000),
            type=backup_type,
        )
        write_json_file(self.paths.manifest_path(backup_id_for_token(token)), manifest.to_dict())

        self.apply_retention()

        log.info(
            f"Backup {backup_id_for_token(token)} completed: {manifest.collections} collections, "
            f"{manifest.total_records} records in {manifest.duration}ms",
            extra={'backup_id': backup_id_for_token(token)}
        )
        self._audit('BACKUP_COMPLETED', {
            'type': backup_type,
            'collections': manifest.collections,
            'totalRecords': manifest.total_records,
            'duration': manifest.duration,
            'timestamp': timestamp,
        })
        return manifest

    def export_collection(self, collection_id: str, rows: List[Row], token: str,
                          manual: bool = False, exported_at: Optional[str] = None) -> Dict[str, str]:
        """Write one artifact per enabled format.

        Returns:
            dict: Manifest file keys mapped to artifact basenames
        """
        files = {}
        for fmt in self.formats:
            codec = get_codec(fmt)
            filename = artifact_filename(collection_id, token, codec.extension, manual=manual)
            path = self.paths.artifact_path(filename)
            try:
                records = [export_record(row, EXPORT_ID_FIELDS[fmt]) for row in rows]
                codec.write(path, records, collection_id, exported_at)
            except Exception as e:
                log.error(f"Failed to export {collection_id} as {fmt}: {str(e)}", exc_info=True)
                if os.path.exists(path):
                    os.remove(path)
                continue
            files[MANIFEST_FILE_KEYS[fmt]] = filename
            log.debug(f"Wrote {filename}")
        return files

    def cleanup_same_day_auto_backups(self, now: datetime):
        """Remove earlier automatic backups taken on the same day.

        Manual backups are never touched.
        """
        today = now.date().isoformat()
        removed = 0

        for name in list_files(self.paths.daily_dir):
            if MANUAL_PREFIX not in name and today in name:
                try:
                    os.remove(self.paths.artifact_path(name))
                    removed += 1
                except OSError as e:
                    log.warning(f"Failed to remove {name}: {str(e)}")

        for name in list_files(self.paths.logs_dir):
            if today not in name or not name.endswith('.json'):
                continue
            path = os.path.join(self.paths.logs_dir, name)
            try:
                if read_json_file(path).get('type') == 'auto':
                    os.remove(path)
                    removed += 1
            except (ValueError, OSError, AttributeError) as e:
                log.warning(f"Could not inspect backup log {name}: {str(e)}")

        if removed:
            log.info(f"Cleaned up {removed} existing daily backup files for {today}")

    def apply_retention(self):
        """Delete backups beyond the retention count, oldest first."""
        if self.retention <= 0 or not self.backup_service:
            return

        manifests = sorted(
            (name for name in list_files(self.paths.logs_dir)
             if name.startswith('backup_') and name.endswith('.json')),
            reverse=True
        )
        for name in manifests[self.retention:]:
            backup_id = name[:-len('.json')]
            try:
                result = self.backup_service.delete_backup(backup_id)
                log.info(f"Removed expired backup {backup_id} ({result.files_deleted} files)")
            except BackupNotFoundError:
                log.debug(f"Expired backup {backup_id} already removed")

    def _audit(self, action, details):
        if self.audit_service:
            self.audit_service.log_system_event(action, 'backup', details)
