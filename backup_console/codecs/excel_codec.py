"""Excel workbook artifacts (``.xlsx``, stored uncompressed)."""

import io
import re
import logging
import zipfile
from datetime import datetime
from typing import List, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.utils.exceptions import InvalidFileException

from backup_console.codecs.base import Codec
from backup_console.errors import BackupFormatError
from backup_console.models.backup import Row
from backup_console.utils.json_utils import dumps, loads_object

log = logging.getLogger("excel_codec")

# Excel caps sheet titles at 31 characters and forbids []:*?/\
_INVALID_TITLE_CHARS = re.compile(r'[\[\]:*?/\\]')


def sheet_title(collection_id: str) -> str:
    return _INVALID_TITLE_CHARS.sub('_', collection_id)[:31] or 'Sheet1'


def _cell_value(value):
    if isinstance(value, (dict, list)):
        value = dumps(value)
    if isinstance(value, str):
        # Control characters other than tab and newlines are not valid XML
        return ILLEGAL_CHARACTERS_RE.sub('', value)
    return value


def _read_value(value):
    if isinstance(value, str) and value[:1] in ('{', '['):
        return loads_object(value)
    return value


class ExcelCodec(Codec):
    """First sheet holds the rows, header taken from the first record's keys."""

    name = 'excel'
    extension = '.xlsx'
    compressed = False
    id_fields = ('_id', '$id', 'id')

    def encode(self, rows: List[Row], collection_id: str, exported_at: Optional[str] = None) -> bytes:
        exported_at = exported_at or datetime.utcnow().isoformat() + 'Z'
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_title(collection_id)

        if not rows:
            ws.append(['No data available'])
        else:
            header = list(rows[0].keys())
            ws.append([_cell_value(column) for column in header])
            for row_index, row in enumerate(rows, start=2):
                for col_index, column in enumerate(header, start=1):
                    value = _cell_value(row.get(column))
                    cell = ws.cell(row=row_index, column=col_index, value=value)
                    # Keep strings like "=1+1" as text rather than formulas
                    if isinstance(value, str) and value.startswith('='):
                        cell.data_type = 's'

            meta = wb.create_sheet('Metadata')
            meta.append(['Collection', collection_id])
            meta.append(['Total Records', len(rows)])
            meta.append(['Exported At', exported_at])
            meta.append(['Source', 'Appwrite Backup'])

        stream = io.BytesIO()
        wb.save(stream)
        return stream.getvalue()

    def decode(self, data: bytes) -> List[Row]:
        try:
            wb = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as e:
            raise BackupFormatError(f"Could not open Excel backup: {e}")

        try:
            # Only the first sheet is ever read; later sheets hold metadata
            ws = wb.worksheets[0]
            row_iter = ws.iter_rows(values_only=True)
            header_row = next(row_iter, None)
            if not header_row:
                return []
            header = [str(cell) if cell is not None else None for cell in header_row]

            rows = []
            for values in row_iter:
                record = {
                    column: _read_value(value)
                    for column, value in zip(header, values)
                    if column is not None and value is not None
                }
                if record:
                    rows.append(record)
            return rows
        finally:
            wb.close()
