"""Record store interface consumed by the agenda service.

The store itself (hosted database, cache, test double) lives outside this
package. It answers filtered list queries with plain dictionaries, using the
``field = "value"`` filter syntax joined with ``&&`` and ``||``.
"""

import json
import re
from typing import Any, Protocol


def sanitize_param(value: str | int | float | bool | None) -> str:
    """Escape a value for safe embedding in a filter query via json.dumps."""
    return json.dumps(str(value))[1:-1]


def validate_collection_name(collection: str) -> None:
    """Validate that a collection name contains only alphanumeric characters and underscores."""
    if not re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", collection):
        msg = f"Invalid collection name: {collection}. Only alphanumeric characters and underscores are allowed."
        raise ValueError(msg)


def eq_filter(field: str, value: str) -> str:
    """Equality clause for a filter query."""
    return f'{field} = "{sanitize_param(value)}"'


class RecordStore(Protocol):
    """Read side of the record store."""

    async def list_records(
        self,
        *,
        collection: str,
        filter_query: str = "",
        sort: str = "",
    ) -> list[dict[str, Any]]:
        """List records matching a filter.

        Raises:
            RecordStoreError: If the store cannot answer
        """
        ...
