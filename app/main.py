import asyncio
import contextlib
import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from app.api.webhooks import router as webhooks_router
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.middleware.correlation_id import CorrelationIdMiddleware
from app.services.dedup import get_dedup_gate, run_sweeper

logger = logging.getLogger(__name__)

LIVENESS_TEXT = "WA Bot Server is running"

app = FastAPI(title="WA Lead Bot")

app.add_middleware(CorrelationIdMiddleware)


@app.on_event("startup")
async def startup_event():
    """Configure logging, start the dedup sweeper and log the integration summary."""
    configure_logging(settings.log_level)

    gate = get_dedup_gate()
    app.state.dedup_sweeper = asyncio.create_task(
        run_sweeper(gate, settings.dedup_sweep_interval_seconds)
    )

    # Credentials are checked at point of use; only report what is configured (no secrets)
    logger.info(
        "Startup: Configuration loaded - "
        f"Environment: {settings.app_env}, "
        f"Sheets: {bool(settings.sheet_id and settings.google_service_account_json)}, "
        f"Green API: {bool(settings.green_api_id and settings.green_api_token)}, "
        f"Auto-reply: {settings.auto_reply_enabled}, "
        f"WhatsApp dry-run: {settings.whatsapp_dry_run}, "
        f"Dedup TTL: {settings.dedup_ttl_seconds}s"
    )
    if not settings.sheet_id or not settings.google_service_account_json:
        logger.warning("SHEET_ID / GOOGLE_SERVICE_ACCOUNT_JSON not set - webhook events will fail")


@app.on_event("shutdown")
async def shutdown_event():
    """Cancel the sweeper so it never keeps the process alive."""
    task = getattr(app.state, "dedup_sweeper", None)
    if task is not None:
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        app.state.dedup_sweeper = None


@app.get("/", response_class=PlainTextResponse)
def root():
    """Liveness check."""
    return LIVENESS_TEXT


@app.get("/health")
def health():
    """
    Health check with integration visibility (no secrets).

    Returns 200 immediately - used for basic health checks.
    """
    gate = get_dedup_gate()
    return {
        "ok": True,
        "integrations": {
            "sheets_configured": bool(settings.sheet_id and settings.google_service_account_json),
            "green_api_configured": bool(settings.green_api_id and settings.green_api_token),
            "whatsapp_dry_run": settings.whatsapp_dry_run,
            "auto_reply_enabled": settings.auto_reply_enabled,
        },
        "dedup": {
            "entries": len(gate),
            "ttl_seconds": settings.dedup_ttl_seconds,
        },
    }


app.include_router(webhooks_router)


def main() -> None:
    """CLI entrypoint: serve the app on HOST:PORT (default 0.0.0.0:3000)."""
    import uvicorn

    configure_logging(settings.log_level)
    logger.info(f"Server running on port {settings.port}")
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
