"""MongoDB-compatible BSON artifacts (``.bson.gz``)."""

import logging
from typing import List, Optional

import bson
from bson.errors import BSONError

from backup_console.codecs.base import Codec
from backup_console.errors import BackupFormatError
from backup_console.models.backup import Row

log = logging.getLogger("bson_codec")

FORMAT_VERSION = 1


class BsonCodec(Codec):
    """One BSON document per artifact: ``{"version": 1, "data": [row, ...]}``."""

    name = 'bson'
    extension = '.bson.gz'
    compressed = True
    id_fields = ('_id',)

    def encode(self, rows: List[Row], collection_id: str, exported_at: Optional[str] = None) -> bytes:
        try:
            return bson.encode({'version': FORMAT_VERSION, 'data': list(rows)})
        except (BSONError, TypeError, OverflowError) as e:
            raise BackupFormatError(f"Could not encode {collection_id} as BSON: {e}")

    def decode(self, data: bytes) -> List[Row]:
        try:
            document = bson.decode(data)
        except (BSONError, ValueError, IndexError) as e:
            raise BackupFormatError(f"Could not decode BSON backup: {e}")

        # Older artifacts carry no version field; only the data array is required
        rows = document.get('data')
        if not isinstance(rows, list):
            raise BackupFormatError("BSON backup has no 'data' array")
        if not all(isinstance(row, dict) for row in rows):
            raise BackupFormatError("BSON backup 'data' must contain documents")

        version = document.get('version')
        if version is not None and version != FORMAT_VERSION:
            log.warning(f"BSON backup has unknown format version {version}, reading anyway")
        return rows
