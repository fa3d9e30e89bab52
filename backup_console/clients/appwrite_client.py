"""Client for the Appwrite TablesDB REST API."""

import json
import logging
from typing import Any, Dict, List, Optional

from backup_console.models.table_store import TableStore
from backup_console.services.api_client import APIClient

log = logging.getLogger("appwrite_client")

# Appwrite caps list responses; larger tables are paged with cursorAfter
PAGE_SIZE = 100


def limit_query(limit: int) -> str:
    return json.dumps({"method": "limit", "values": [limit]})


def cursor_after_query(row_id: str) -> str:
    return json.dumps({"method": "cursorAfter", "values": [row_id]})


class AppwriteTableStore(APIClient, TableStore):
    """Table store backed by an Appwrite database."""

    def __init__(self, endpoint: str, project_id: str, api_key: Optional[str], database_id: str, timeout: int = 10):
        """Initialize the client.

        Args:
            endpoint: Appwrite endpoint, e.g. https://cloud.appwrite.io/v1
            project_id: Appwrite project ID
            api_key: Server API key
            database_id: Database holding the backed-up tables
            timeout: Request timeout in seconds
        """
        headers = {
            "X-Appwrite-Project": project_id,
            "Content-Type": "application/json",
        }
        if api_key:
            headers["X-Appwrite-Key"] = api_key
        super().__init__(endpoint, timeout=timeout, headers=headers)
        self.project_id = project_id
        self.database_id = database_id

    def _rows_endpoint(self, table_id: str) -> str:
        return f"/tablesdb/{self.database_id}/tables/{table_id}/rows"

    def list_rows(self, table_id: str, queries: Optional[List[str]] = None) -> List[Dict[str, Any]]:
        """List every row of a table, following cursors until exhausted.

        Args:
            table_id: Table ID
            queries: Extra Appwrite query strings applied to every page

        Returns:
            list: All rows
        """
        rows = []
        cursor = None
        while True:
            page_queries = list(queries or []) + [limit_query(PAGE_SIZE)]
            if cursor:
                page_queries.append(cursor_after_query(cursor))

            response = self.request(
                "GET",
                self._rows_endpoint(table_id),
                params={"queries[]": page_queries},
            ) or {}
            page = response.get("rows") or []
            rows.extend(page)

            if len(page) < PAGE_SIZE:
                break
            cursor = page[-1]["$id"]

        log.debug(f"Listed {len(rows)} rows from {table_id}")
        return rows

    def get_row(self, table_id: str, row_id: str) -> Dict[str, Any]:
        return self.request("GET", f"{self._rows_endpoint(table_id)}/{row_id}")

    def create_row(self, table_id: str, row_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.request(
            "POST",
            self._rows_endpoint(table_id),
            json={"rowId": row_id, "data": data},
        )

    def delete_row(self, table_id: str, row_id: str) -> None:
        self.request("DELETE", f"{self._rows_endpoint(table_id)}/{row_id}")
