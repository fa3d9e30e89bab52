"""PostgreSQL-flavoured INSERT statement artifacts (``.sql.gz``)."""

import re
import logging
from datetime import datetime
from typing import List, Optional

from backup_console.codecs.base import Codec
from backup_console.models.backup import Row
from backup_console.utils.json_utils import dumps, loads_object

log = logging.getLogger("sql_codec")

INSERT_RE = re.compile(
    r'INSERT INTO\s+"?(\w+)"?\s*\(([^)]+)\)\s*VALUES\s*\(([^)]+)\)',
    re.IGNORECASE,
)

# Row count between COMMIT/BEGIN pairs in large dumps
BATCH_SIZE = 1000


def quote_value(value) -> str:
    """Render a value as a SQL literal; everything but NULL is single-quoted."""
    if value is None:
        return 'NULL'
    if isinstance(value, bool):
        text = 'true' if value else 'false'
    elif isinstance(value, (dict, list)):
        text = dumps(value)
    else:
        text = str(value)
    return "'" + text.replace("'", "''") + "'"


def decode_value(token: str):
    """Inverse of ``quote_value`` for a single comma-separated token.

    Numbers stay strings; callers coerce if the target table needs it.
    """
    value = token.strip()
    if value == 'NULL':
        return None
    if len(value) >= 2 and value.startswith("'") and value.endswith("'"):
        value = value[1:-1].replace("''", "'")
    if value.startswith('{'):
        return loads_object(value)
    return value


def parse_insert_statements(sql: str) -> List[Row]:
    """Extract one row per INSERT statement.

    Values are split on every comma, so quoted strings that contain commas
    come back mangled. The writer shares this format, so the two change
    together or not at all.
    """
    rows = []
    for match in INSERT_RE.finditer(sql):
        columns = [column.strip().replace('"', '') for column in match.group(2).split(',')]
        values = [decode_value(token) for token in match.group(3).split(',')]

        row = {}
        for index, column in enumerate(columns):
            if index < len(values):
                row[column] = values[index]
        rows.append(row)
    return rows


class SqlCodec(Codec):
    name = 'sql'
    extension = '.sql.gz'
    compressed = True
    id_fields = ('id', '$id')

    def encode(self, rows: List[Row], collection_id: str, exported_at: Optional[str] = None) -> bytes:
        exported_at = exported_at or datetime.utcnow().isoformat() + 'Z'
        lines = [
            f"-- Appwrite Collection: {collection_id}",
            f"-- Exported at: {exported_at}",
            f"-- Total records: {len(rows)}",
            "",
        ]

        if rows:
            columns = list(rows[0].keys())
            column_defs = ', '.join(f'"{column}" TEXT' for column in columns)
            column_list = ', '.join(f'"{column}"' for column in columns)
            lines.append(f'CREATE TABLE IF NOT EXISTS "{collection_id}" ({column_defs});')
            lines.append("")

            for index, row in enumerate(rows, start=1):
                values = ', '.join(quote_value(row.get(column)) for column in columns)
                lines.append(f'INSERT INTO "{collection_id}" ({column_list}) VALUES ({values});')
                if index % BATCH_SIZE == 0:
                    lines.append("COMMIT;")
                    lines.append("BEGIN;")

        return ("\n".join(lines) + "\n").encode('utf-8')

    def decode(self, data: bytes) -> List[Row]:
        rows = parse_insert_statements(data.decode('utf-8'))
        log.debug(f"Parsed {len(rows)} INSERT statements")
        return rows
