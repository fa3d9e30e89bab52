"""Row-oriented table store used by backup and restore."""

import copy
import logging
from datetime import datetime
from typing import Dict, List, Optional

from backup_console.models.backup import Row

logger = logging.getLogger(__name__)

class RowNotFoundError(KeyError):
    """Raised when a row id does not exist in a table."""

class DuplicateRowError(ValueError):
    """Raised when creating a row whose id is already taken."""

class TableStore:
    """Interface of the backing table store.

    Rows returned by ``list_rows``/``get_row`` carry their id in ``$id`` and
    may include other ``$``-prefixed system fields.
    """

    def list_rows(self, table_id: str, queries: Optional[List[str]] = None) -> List[Row]:
        """List every row of a table."""
        raise NotImplementedError("Table store must implement list_rows")

    def get_row(self, table_id: str, row_id: str) -> Row:
        raise NotImplementedError("Table store must implement get_row")

    def create_row(self, table_id: str, row_id: str, data: Row) -> Row:
        raise NotImplementedError("Table store must implement create_row")

    def delete_row(self, table_id: str, row_id: str) -> None:
        raise NotImplementedError("Table store must implement delete_row")

class InMemoryTableStore(TableStore):
    """Dictionary backed store for tests and local development."""

    def __init__(self, tables: Optional[Dict[str, List[Row]]] = None):
        self.tables: Dict[str, Dict[str, Row]] = {}
        for table_id, rows in (tables or {}).items():
            self.tables[table_id] = {}
            for row in rows:
                row = dict(row)
                row_id = row.pop('$id')
                self.create_row(table_id, row_id, row)

    def _table(self, table_id: str) -> Dict[str, Row]:
        if table_id not in self.tables:
            raise RowNotFoundError(f"Table {table_id} not found")
        return self.tables[table_id]

    def list_rows(self, table_id: str, queries: Optional[List[str]] = None) -> List[Row]:
        return [copy.deepcopy(row) for row in self._table(table_id).values()]

    def get_row(self, table_id: str, row_id: str) -> Row:
        table = self._table(table_id)
        if row_id not in table:
            raise RowNotFoundError(f"Row {row_id} not found in {table_id}")
        return copy.deepcopy(table[row_id])

    def create_row(self, table_id: str, row_id: str, data: Row) -> Row:
        table = self.tables.setdefault(table_id, {})
        if row_id in table:
            raise DuplicateRowError(f"Row {row_id} already exists in {table_id}")
        now = datetime.utcnow().isoformat() + 'Z'
        row = {'$id': row_id, '$createdAt': now, '$updatedAt': now}
        row.update(copy.deepcopy(data))
        table[row_id] = row
        return copy.deepcopy(row)

    def delete_row(self, table_id: str, row_id: str) -> None:
        table = self._table(table_id)
        if row_id not in table:
            raise RowNotFoundError(f"Row {row_id} not found in {table_id}")
        del table[row_id]
