"""Fake RecordStore + Airtable client — stand-ins for ResilientAirtableClient in route tests.

Invariants:
    - FakeRecordStore satisfies the RecordStore protocol (create_record, attach_file)
    - Every call is logged so tests can assert what reached "Airtable"
    - Failures are opt-in per operation / per field id

Design Decisions:
    - Flat classes over MagicMock: explicit behavior, readable assertions
"""

from app.core.errors import AirtableAPIError


class FakeRecordStore:
    """In-memory RecordStore."""

    def __init__(self):
        self.records: dict[str, dict] = {}
        self.attachments: list[dict] = []
        self.calls: list[tuple] = []
        self.fail_create = False
        self.fail_fields: set[str] = set()
        self._next = 0

    def _new_id(self) -> str:
        self._next += 1
        return f"rec{self._next:03d}"

    async def create_record(self, table, fields, access_token):
        self.calls.append(("create_record", table.table_id, dict(fields), access_token))
        if self.fail_create:
            raise AirtableAPIError("Bad value", "client_error", status_code=422)
        record_id = self._new_id()
        self.records[record_id] = dict(fields)
        return record_id

    async def attach_file(self, table, record_id, field_id, upload, access_token):
        self.calls.append(("attach_file", record_id, field_id, upload.filename))
        if field_id in self.fail_fields:
            raise AirtableAPIError("Upload rejected", "client_error", status_code=413)
        if record_id is None:
            record_id = self._new_id()
            self.records[record_id] = {}
        self.attachments.append({
            "record_id": record_id, "field_id": field_id, "filename": upload.filename,
        })
        return record_id


class FakeAirtableClient:
    """Metadata + OAuth surface of ResilientAirtableClient."""

    def __init__(self):
        self.exchanged: list[dict] = []
        self.account_id = "usrAccount1"
        self.tokens = {"access_token": "at-1", "refresh_token": "rt-1"}

    async def exchange_code(self, **kwargs):
        self.exchanged.append(kwargs)
        return dict(self.tokens)

    async def whoami(self, access_token):
        return {"id": self.account_id}

    async def list_bases(self, access_token):
        return [{"id": "appBase", "name": "Hiring", "token": access_token}]

    async def list_tables(self, base_id, access_token):
        return [{"id": "tblTable", "name": "Applicants", "base": base_id}]

    async def list_fields(self, base_id, table_id, access_token):
        return [{"id": "fldName", "name": "Name", "type": "singleLineText", "options": []}]
