"""Common interface for artifact codecs."""

import os
from typing import List, Optional, Sequence

from backup_console.models.backup import Row
from backup_console.utils import compression


class Codec:
    """Maps a collection's rows to and from one artifact format.

    Subclasses implement ``encode``/``decode`` on uncompressed bytes;
    ``read``/``write`` add the gzip layer for compressed formats.
    """

    name = None
    extension = None
    compressed = False
    # Candidate primary key fields, checked in order on restore
    id_fields: Sequence[str] = ()

    def encode(self, rows: List[Row], collection_id: str, exported_at: Optional[str] = None) -> bytes:
        raise NotImplementedError("Subclasses must implement this")

    def decode(self, data: bytes) -> List[Row]:
        raise NotImplementedError("Subclasses must implement this")

    def write(self, path: str, rows: List[Row], collection_id: str, exported_at: Optional[str] = None) -> str:
        payload = self.encode(rows, collection_id, exported_at)
        if self.compressed:
            compression.write_gzip(path, payload)
        else:
            with open(path, 'wb') as f:
                f.write(payload)
        return path

    def read(self, path: str) -> List[Row]:
        if self.compressed:
            return self.decode(compression.read_gzip(path))
        with open(path, 'rb') as f:
            return self.decode(f.read())

    def matches(self, filename: str) -> bool:
        return os.path.basename(filename).endswith(self.extension)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name}>"
