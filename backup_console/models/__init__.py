"""Models for the application."""

from backup_console.models.audit import AuditLog
from backup_console.models.backup import (
    BackupManifest,
    CollectionResult,
    DeletionResult,
    ExportEntry,
    RestoreReport,
    RestoreRequest,
    RowRestoreOutcome,
)
