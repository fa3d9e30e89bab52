"""Filesystem layout and naming helpers for backup artifacts."""

import os
import logging
from dataclasses import dataclass
from typing import List

from backup_console.errors import ValidationError

log = logging.getLogger(__name__)

BACKUP_ID_PREFIX = 'backup_'
MANUAL_PREFIX = 'manual_'


@dataclass(frozen=True)
class BackupPaths:
    """Directory layout rooted at BACKUP_ROOT."""

    root: str

    @property
    def daily_dir(self) -> str:
        return os.path.join(self.root, 'daily')

    @property
    def logs_dir(self) -> str:
        return os.path.join(self.root, 'logs')

    def ensure(self):
        """Create the daily and logs directories if needed."""
        for directory in (self.root, self.daily_dir, self.logs_dir):
            if not os.path.isdir(directory):
                os.makedirs(directory, exist_ok=True)
                log.info(f"Created directory: {directory}")

    def manifest_path(self, backup_id: str) -> str:
        return os.path.join(self.logs_dir, f"{backup_id}.json")

    def artifact_path(self, filename: str) -> str:
        return os.path.join(self.daily_dir, filename)


def timestamp_token(iso_timestamp: str) -> str:
    """Make an ISO-8601 timestamp safe for filenames.

    ``2025-11-05T14:50:00.123Z`` becomes ``2025-11-05T14-50-00`` once the
    fractional seconds and zone suffix are dropped.
    """
    trimmed = iso_timestamp.split('.')[0].rstrip('Z')
    return trimmed.replace(':', '-').replace('.', '-')


def backup_id_for_token(token: str) -> str:
    return f"{BACKUP_ID_PREFIX}{token}"


def token_from_backup_id(backup_id: str) -> str:
    """Strip the ``backup_`` prefix, rejecting ids that could escape the backup dirs
    or match every file."""
    if not backup_id:
        raise ValidationError("Backup ID is required")
    if '/' in backup_id or '\\' in backup_id or '..' in backup_id:
        raise ValidationError(f"Invalid backup ID: {backup_id}")

    token = backup_id[len(BACKUP_ID_PREFIX):] if backup_id.startswith(BACKUP_ID_PREFIX) else backup_id
    if not token:
        raise ValidationError(f"Invalid backup ID: {backup_id}")
    return token


def artifact_filename(collection_id: str, token: str, extension: str, manual: bool = False) -> str:
    prefix = MANUAL_PREFIX if manual else ''
    return f"{collection_id}_{prefix}{token}{extension}"


def list_files(directory: str) -> List[str]:
    """Sorted file names in a directory, or an empty list when it is missing."""
    if not os.path.isdir(directory):
        return []
    return sorted(
        name for name in os.listdir(directory)
        if os.path.isfile(os.path.join(directory, name))
    )


def files_containing(directory: str, *fragments: str) -> List[str]:
    """File names in ``directory`` containing every fragment as a substring."""
    return [name for name in list_files(directory) if all(fragment in name for fragment in fragments)]


def collection_artifacts(directory: str, collection_id: str, token: str) -> List[str]:
    """Artifacts of one collection for a backup token, manual or automatic.

    The name must be ``<collection>_<token>`` or ``<collection>_manual_<token>``
    so ``logs`` never picks up ``audit_logs`` or ``logs_archive`` files.
    """
    prefix = f"{collection_id}_"
    matches = []
    for name in files_containing(directory, token):
        if not name.startswith(prefix):
            continue
        rest = name[len(prefix):]
        if rest.startswith(MANUAL_PREFIX):
            rest = rest[len(MANUAL_PREFIX):]
        if rest.startswith(token):
            matches.append(name)
    return matches
