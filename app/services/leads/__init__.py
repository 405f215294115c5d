"""Lead identity and upsert. Re-exports for stable public API."""

from app.services.leads.leads import (
    ACTION_INSERTED,
    ACTION_UPDATED,
    upsert_lead,
)
from app.services.leads.repository import (
    LeadMatch,
    LeadRecord,
    LeadRepository,
    SheetsLeadRepository,
)

__all__ = [
    "ACTION_INSERTED",
    "ACTION_UPDATED",
    "LeadMatch",
    "LeadRecord",
    "LeadRepository",
    "SheetsLeadRepository",
    "upsert_lead",
]
