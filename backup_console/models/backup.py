"""Backup manifest, restore request and result types."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from backup_console.errors import ValidationError

# A row is a mapping of field name to one of these shapes
RowValue = Union[None, bool, int, float, str, Dict[str, Any], List[Any]]
Row = Dict[str, RowValue]

BACKUP_TYPES = ('auto', 'manual')

FORMATS = ('sql', 'bson', 'excel')

FORMAT_EXTENSIONS = {
    'sql': '.sql.gz',
    'bson': '.bson.gz',
    'excel': '.xlsx',
}

# Auto-detection order when no format is requested
FORMAT_PRIORITY = ('excel', 'bson', 'sql')

# Keys used under exports[].files in the manifest
MANIFEST_FILE_KEYS = {
    'sql': 'postgresql',
    'bson': 'bson',
    'excel': 'excel',
}


@dataclass
class ExportEntry:
    """One collection exported by a backup run."""

    collection: str
    records: int = 0
    files: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'collection': self.collection,
            'records': self.records,
            'files': dict(self.files),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ExportEntry':
        return cls(
            collection=data['collection'],
            records=int(data.get('records') or 0),
            files=dict(data.get('files') or {}),
        )


@dataclass
class BackupManifest:
    """Contents of a logs/backup_<token>.json file.

    Summary fields are derived when the backup is written and are never
    recomputed on read.
    """

    timestamp: str
    exports: List[ExportEntry] = field(default_factory=list)
    total_records: int = 0
    collections: int = 0
    duration: int = 0
    type: Optional[str] = None

    def collection_names(self) -> List[str]:
        return [entry.collection for entry in self.exports]

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'timestamp': self.timestamp,
            'collections': self.collections,
            'totalRecords': self.total_records,
            'duration': self.duration,
            'exports': [entry.to_dict() for entry in self.exports],
        }
        if self.type:
            data['type'] = self.type
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BackupManifest':
        if not isinstance(data, dict):
            raise ValueError("Backup manifest must be a JSON object")
        return cls(
            timestamp=data.get('timestamp'),
            exports=[ExportEntry.from_dict(item) for item in data.get('exports') or []],
            total_records=int(data.get('totalRecords') or 0),
            collections=int(data.get('collections') or 0),
            duration=int(data.get('duration') or 0),
            type=data.get('type'),
        )


@dataclass
class RestoreRequest:
    """Options for restoring one backup."""

    backup_id: str
    format: Optional[str] = None
    collection_id: Optional[str] = None
    overwrite: bool = False

    @classmethod
    def from_payload(cls, backup_id: str, payload: Optional[Dict[str, Any]]) -> 'RestoreRequest':
        """Build a request from a JSON body, raising ValidationError on bad input."""
        payload = payload or {}
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object")

        fmt = payload.get('format')
        if fmt is not None and fmt not in FORMATS:
            raise ValidationError(f"Unsupported format: {fmt}", details={'allowed': list(FORMATS)})

        collection_id = payload.get('collectionId')
        if collection_id is not None and (not isinstance(collection_id, str) or not collection_id):
            raise ValidationError("collectionId must be a non-empty string")

        overwrite = payload.get('overwrite', False)
        if not isinstance(overwrite, bool):
            raise ValidationError("overwrite must be a boolean")

        return cls(backup_id=backup_id, format=fmt, collection_id=collection_id, overwrite=overwrite)


@dataclass
class RowRestoreOutcome:
    """Row level tally for one collection."""

    succeeded: int = 0
    failed_count: int = 0
    errors: List[str] = field(default_factory=list)

    def record_success(self):
        self.succeeded += 1

    def record_failure(self, message: str):
        self.failed_count += 1
        self.errors.append(message)


@dataclass
class CollectionResult:
    """Outcome of restoring a single collection."""

    collection: str
    status: str
    records: int = 0
    failed: int = 0
    error: Optional[str] = None

    @classmethod
    def success(cls, collection: str, outcome: RowRestoreOutcome) -> 'CollectionResult':
        return cls(
            collection=collection,
            status='success',
            records=outcome.succeeded,
            failed=outcome.failed_count,
        )

    @classmethod
    def failure(cls, collection: str, error: str) -> 'CollectionResult':
        return cls(collection=collection, status='error', error=error)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'collection': self.collection,
            'records': self.records,
            'status': self.status,
        }
        if self.status == 'success':
            data['failed'] = self.failed
        if self.error:
            data['error'] = self.error
        return data


@dataclass
class RestoreReport:
    """Aggregate of all per-collection results for a restore request."""

    backup_id: str
    results: List[CollectionResult] = field(default_factory=list)

    @property
    def collections(self) -> int:
        return len(self.results)

    @property
    def total_records(self) -> int:
        return sum(result.records for result in self.results)

    @property
    def failed_collections(self) -> int:
        return sum(1 for result in self.results if result.status == 'error')

    def to_dict(self) -> Dict[str, Any]:
        return {
            'backupId': self.backup_id,
            'collections': self.collections,
            'totalRecords': self.total_records,
            'results': [result.to_dict() for result in self.results],
        }


@dataclass
class DeletionResult:
    """Outcome of deleting every file belonging to one backup."""

    backup_id: str
    matched: int = 0
    deleted: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def files_deleted(self) -> int:
        return len(self.deleted)
