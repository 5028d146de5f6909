"""Resolve table metadata/query responses into a QueryResult.

Each NDJSON line carries one of the tags ``protocol``, ``metaData`` or
``file``. Lines are applied in order:
- protocol: replaces any earlier protocol
- metaData: replaces any earlier metadata
- file: appended to the file list
Lines with other keys are ignored.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from ..core.enums import ActionTag
from ..core.errors import MalformedResponseError
from ..core.models import FileEntry, Protocol, QueryResult, TableMetadata


def parse_actions(records: Iterable[Mapping[str, Any]]) -> QueryResult:
    """Fold parsed NDJSON records into protocol, metadata and files.

    The last protocol and metadata seen win; files keep stream order.
    An empty stream yields ``QueryResult(None, None, [])``.
    """
    protocol: Optional[Protocol] = None
    metadata: Optional[TableMetadata] = None
    files: List[FileEntry] = []

    for line_number, record in enumerate(records, start=1):
        try:
            if record.get(ActionTag.PROTOCOL.value) is not None:
                protocol = Protocol.from_dict(record[ActionTag.PROTOCOL.value])
            if record.get(ActionTag.METADATA.value) is not None:
                metadata = TableMetadata.from_dict(record[ActionTag.METADATA.value])
            if record.get(ActionTag.FILE.value) is not None:
                files.append(FileEntry.from_dict(record[ActionTag.FILE.value]))
        except MalformedResponseError as e:
            raise MalformedResponseError(str(e), line_number) from e

    return QueryResult(protocol=protocol, metadata=metadata, files=files)
