from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    app_env: str = "dev"
    log_level: str = "INFO"

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    max_body_bytes: int = 15 * 1024 * 1024  # Reject webhook bodies above this size (413)

    # Google Sheets (leads + conversation_logs tabs)
    sheet_id: str | None = None  # Spreadsheet ID
    google_service_account_json: str | None = (
        None  # Raw JSON, base64-encoded JSON, or path to a service account file
    )

    # Green API (WhatsApp send)
    green_api_id: str | None = None  # Instance number only (without "waInstance")
    green_api_token: str | None = None
    green_api_base_url: str = "https://api.green-api.com"
    green_api_timeout_seconds: float = 15.0
    whatsapp_dry_run: bool = False  # When true: log replies instead of sending them

    # Auto-reply
    auto_reply_enabled: bool = True

    # Duplicate suppression
    dedup_ttl_seconds: int = 120
    dedup_sweep_interval_seconds: float = 30.0


# Settings load from environment variables or .env file.
# Nothing is required at startup; missing credentials fail at the point of use.
settings = Settings()
