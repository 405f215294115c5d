"""
Lead storage behind a narrow repository interface.

The upsert algorithm (app.services.leads.leads) only talks to LeadRepository,
so the scan-based Sheets implementation can be replaced by an indexed store
without touching it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from app.constants.statuses import STATUS_NEW
from app.services.text_normalization import MAX_LEAD_MESSAGE_CHARS, safe_str

LEADS_TAB = "leads"
LEADS_RANGE = f"{LEADS_TAB}!A:F"

# Column letters for the two cells an update touches
UPDATED_AT_COLUMN = "E"
LAST_MESSAGE_COLUMN = "F"

HEADER_ROWS = 1


@dataclass
class LeadRecord:
    phone: str
    name: str = ""
    status: str = STATUS_NEW
    created_at: str = ""
    updated_at: str = ""
    last_message: str = ""

    def to_row(self) -> list[str]:
        """Sheet row in column order phone, name, status, createdAt, updatedAt, lastMessage."""
        return [
            self.phone,
            self.name,
            self.status,
            self.created_at,
            self.updated_at,
            safe_str(self.last_message, MAX_LEAD_MESSAGE_CHARS),
        ]

    @classmethod
    def from_row(cls, row: list[Any]) -> LeadRecord:
        cells = [str(v) if v is not None else "" for v in row] + [""] * 6
        return cls(
            phone=cells[0],
            name=cells[1],
            status=cells[2],
            created_at=cells[3],
            updated_at=cells[4],
            last_message=cells[5],
        )


@dataclass
class LeadMatch:
    """An existing lead and its 1-based row number in the sheet."""

    row_index: int
    record: LeadRecord


class RowStore(Protocol):
    def read_rows(self, range_a1: str) -> list[list[Any]]: ...

    def append_row(self, range_a1: str, values: list[Any]) -> dict: ...

    def update_range(self, range_a1: str, rows: list[list[Any]]) -> dict: ...


class LeadRepository(Protocol):
    def find_by_phone(self, phone: str) -> LeadMatch | None: ...

    def insert(self, record: LeadRecord) -> None: ...

    def update(self, match: LeadMatch, updated_at: str, last_message: str) -> None: ...


class SheetsLeadRepository:
    """
    Leads stored in the `leads` tab, one row per phone, header in row 1.

    Lookups are a linear scan of every row; if a phone appears twice only the
    first row (in sheet order) is ever read or written.
    """

    def __init__(self, row_store: RowStore):
        self.row_store = row_store

    def find_by_phone(self, phone: str) -> LeadMatch | None:
        rows = self.row_store.read_rows(LEADS_RANGE)
        # Skip header row (row 1), sheet rows are 1-based
        for row_index, row in enumerate(rows[HEADER_ROWS:], start=HEADER_ROWS + 1):
            first_cell = row[0] if row else ""
            if str(first_cell if first_cell is not None else "") == str(phone):
                return LeadMatch(row_index=row_index, record=LeadRecord.from_row(row))
        return None

    def insert(self, record: LeadRecord) -> None:
        self.row_store.append_row(LEADS_RANGE, record.to_row())

    def update(self, match: LeadMatch, updated_at: str, last_message: str) -> None:
        """Overwrite only updatedAt and lastMessage; name, status, createdAt stay as they are."""
        row = match.row_index
        range_a1 = f"{LEADS_TAB}!{UPDATED_AT_COLUMN}{row}:{LAST_MESSAGE_COLUMN}{row}"
        self.row_store.update_range(
            range_a1,
            [[updated_at, safe_str(last_message, MAX_LEAD_MESSAGE_CHARS)]],
        )
