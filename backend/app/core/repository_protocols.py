"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: boundary methods are async because implementations do IO,
      but core pure functions (visibility, submission planning) are never async;
      the shell orchestrates the async calls around the pure logic
"""

from typing import Any, Protocol

from app.core.domain_types import FileUpload


class TableRef(Protocol):
    """Anything that names an Airtable table (base id + table id)."""
    base_id: str
    table_id: str


class RecordStore(Protocol):
    """Contract for the external record store (Airtable) — implemented by shell.

    Both calls are fallible remote operations with no retry promised to the caller;
    failures surface as AirtableAPIError.
    """
    async def create_record(
        self, table: TableRef, fields: dict[str, Any], access_token: str,
    ) -> str: ...

    async def attach_file(
        self,
        table: TableRef,
        record_id: str | None,
        field_id: str,
        upload: FileUpload,
        access_token: str,
    ) -> str: ...
