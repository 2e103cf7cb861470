"""Central environment-driven settings shared by all services.

Each service process loads this once at startup. Push notifications stay
disabled until both VAPID keys are set (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "unknown-service"
    log_level: str = "INFO"
    postgres_dsn: str
    api_key: str = ""
    webhook_secret: str | None = None
    vapid_public_key: str | None = None
    vapid_private_key: str | None = None
    vapid_subject: str = "mailto:admin@example.com"
    push_ttl_seconds: int = 86400
    push_timeout_seconds: float = 10.0
    push_icon: str = "/logo-ov.png"
    currency: str = "BRL"
    currency_locale: str = "pt_BR"
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    @property
    def push_enabled(self) -> bool:
        return bool(self.vapid_public_key and self.vapid_private_key)


settings = CommonSettings()
