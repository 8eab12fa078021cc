from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_UPSTREAM_ENDPOINTS = [
    "https://cloudcode-pa.googleapis.com/v1internal:streamGenerateContent?alt=sse",
    "https://daily-cloudcode-pa.sandbox.googleapis.com/v1internal:streamGenerateContent?alt=sse",
]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Listener
    app_host: str = "127.0.0.1"
    app_port: int = 8965

    # Upstream endpoints, tried in order (JSON list when set via env)
    upstream_endpoints: list[str] = list(DEFAULT_UPSTREAM_ENDPOINTS)

    # Minimum spacing between dispatch starts
    min_request_interval_ms: int = 500

    # Outbound HTTP client
    user_agent: str = "antigravity/1.15.8 windows/amd64"
    connect_timeout_seconds: float = 20.0
    request_timeout_seconds: float = 600.0
    pool_max_idle_per_host: int = 16
    pool_idle_timeout_seconds: float = 90.0

    # CORS
    allowed_origins: str = "*"  # comma-separated

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    @property
    def min_request_interval(self) -> float:
        """Minimum interval in seconds."""
        return self.min_request_interval_ms / 1000.0


settings = Settings()


def validate_settings(config: Settings | None = None) -> None:
    """Validate critical settings. Called on startup."""
    config = config or settings
    errors: list[str] = []

    if not config.upstream_endpoints:
        errors.append("UPSTREAM_ENDPOINTS must contain at least one URL")

    for url in config.upstream_endpoints:
        if not url.startswith(("http://", "https://")):
            errors.append(f"UPSTREAM_ENDPOINTS entry is not an http(s) URL: {url!r}")

    if config.min_request_interval_ms < 0:
        errors.append("MIN_REQUEST_INTERVAL_MS must not be negative")

    if config.connect_timeout_seconds <= 0:
        errors.append("CONNECT_TIMEOUT_SECONDS must be positive")
    if config.request_timeout_seconds <= 0:
        errors.append("REQUEST_TIMEOUT_SECONDS must be positive")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
