"""Gzip wrapper shared by the SQL and BSON artifacts."""

import gzip
import zlib

from backup_console.errors import BackupFormatError


def compress(data: bytes) -> bytes:
    return gzip.compress(data)


def decompress(data: bytes) -> bytes:
    """Gunzip ``data``, reporting corrupt input as BackupFormatError."""
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as e:
        raise BackupFormatError(f"Could not decompress backup file: {e}")


def write_gzip(path: str, data: bytes):
    with open(path, 'wb') as f:
        f.write(compress(data))


def read_gzip(path: str) -> bytes:
    with open(path, 'rb') as f:
        return decompress(f.read())
