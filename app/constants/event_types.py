"""
Event type constants used in structured log records (extra={"event_type": ...}).

Use these instead of string literals to ensure consistency.
"""

# ---- Webhook ----
EVENT_WEBHOOK_RECEIVED = "webhook.received"
EVENT_WEBHOOK_INVALID_BODY = "webhook.invalid_body"

# ---- Pipeline ----
EVENT_PIPELINE_DUPLICATE = "pipeline.duplicate"
EVENT_PIPELINE_ECHO = "pipeline.echo"
EVENT_PIPELINE_FAILURE = "pipeline.failure"

# ---- Dedup ----
EVENT_DEDUP_SWEEP = "dedup.sweep"
EVENT_DEDUP_SWEEP_FAILURE = "dedup.sweep_failure"

# ---- Sheets ----
EVENT_SHEETS_LEAD_INSERTED = "sheets.lead_inserted"
EVENT_SHEETS_LEAD_UPDATED = "sheets.lead_updated"

# ---- WhatsApp ----
EVENT_WHATSAPP_SEND_OK = "whatsapp.send_ok"
EVENT_WHATSAPP_SEND_FAILURE = "whatsapp.send_failure"
