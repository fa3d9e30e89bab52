"""Artifact codecs keyed by format name."""

from backup_console.codecs.base import Codec
from backup_console.codecs.bson_codec import BsonCodec
from backup_console.codecs.excel_codec import ExcelCodec
from backup_console.codecs.sql_codec import SqlCodec

CODECS = {
    'sql': SqlCodec(),
    'bson': BsonCodec(),
    'excel': ExcelCodec(),
}


def get_codec(fmt):
    """Return the codec for a format name, or raise KeyError."""
    return CODECS[fmt]


__all__ = ["CODECS", "Codec", "BsonCodec", "ExcelCodec", "SqlCodec", "get_codec"]
