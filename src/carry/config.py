"""Configuration system using pydantic-settings with environment variable loading.

Each optional collaborator (OKX private API, Upstash cache, Telegram) has its
own settings class. A collaborator is active only when its credentials are
present; otherwise its calls become no-ops.
"""

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_config(prefix: str) -> SettingsConfigDict:
    """Prefixed env vars, also read from .env in the working directory."""
    return SettingsConfigDict(
        env_prefix=prefix,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


class OkxSettings(BaseSettings):
    """OKX API credentials, only needed for the signed max-loan lookup."""

    model_config = _env_config("OKX_")

    api_key: SecretStr = SecretStr("")
    api_secret: SecretStr = SecretStr("")
    api_passphrase: SecretStr = SecretStr("")

    @property
    def is_configured(self) -> bool:
        return all(
            s.get_secret_value()
            for s in (self.api_key, self.api_secret, self.api_passphrase)
        )


class CacheSettings(BaseSettings):
    """Upstash Redis REST cache for the latest ranking snapshot."""

    model_config = _env_config("UPSTASH_REDIS_REST_")

    url: str = ""
    token: SecretStr = SecretStr("")
    key: str = "arb:latest"
    ttl_seconds: int = 600

    @property
    def is_configured(self) -> bool:
        return bool(self.url and self.token.get_secret_value())


class TelegramSettings(BaseSettings):
    """Telegram bot used as the alert sink."""

    model_config = _env_config("TELEGRAM_")

    bot_token: SecretStr = SecretStr("")
    chat_id: str = ""

    @property
    def is_configured(self) -> bool:
        return bool(self.bot_token.get_secret_value() and self.chat_id)


class AlertSettings(BaseSettings):
    """Spread alert thresholds."""

    model_config = _env_config("ALERT_")

    spread_pct: float = 0.0  # minimum spread (APR %) to include in an alert
    max_rows: int = 5


class RankingSettings(BaseSettings):
    """Opportunity ranking bounds and max-loan enrichment pacing."""

    model_config = _env_config("RANKING_")

    default_top_n: int = 20
    min_top_n: int = 1
    max_top_n: int = 100
    # OKX limit: 5 requests / 2 seconds
    max_loan_delay_seconds: float = 0.45


class PollSettings(BaseSettings):
    """Background poll loop that refreshes the cached snapshot."""

    model_config = _env_config("POLL_")

    enabled: bool = True
    interval_seconds: int = 300
    top_n: int = 20


class ApiSettings(BaseSettings):
    """HTTP API server configuration."""

    model_config = _env_config("API_")

    host: str = "0.0.0.0"
    port: int = 8080


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = "INFO"
    # Built per AppSettings instance so each one reads the current env and .env
    okx: OkxSettings = Field(default_factory=OkxSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    telegram: TelegramSettings = Field(default_factory=TelegramSettings)
    alert: AlertSettings = Field(default_factory=AlertSettings)
    ranking: RankingSettings = Field(default_factory=RankingSettings)
    poll: PollSettings = Field(default_factory=PollSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
