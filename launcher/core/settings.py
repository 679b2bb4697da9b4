"""Application settings loaded from environment variables."""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LISTEN_PORT_DEFAULT = 8000
HTTP_TIMEOUT_DEFAULT = 5.0
ENCRYPTION_KEY_PATH_DEFAULT = (
    "jwt-test-keys/sdc-user-authentication-encryption-sr-public-key.pem"
)
SIGNING_KEY_PATH_DEFAULT = (
    "jwt-test-keys/sdc-user-authentication-signing-rrm-private-key.pem"
)


class LauncherSettings(BaseSettings):
    """Launcher settings, built once at startup and passed to every component."""

    model_config = SettingsConfigDict(frozen=True)

    listen_host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("GO_LAUNCH_A_SURVEY_LISTEN_HOST", "listen_host"),
    )
    listen_port: int = Field(
        default=LISTEN_PORT_DEFAULT,
        validation_alias=AliasChoices("GO_LAUNCH_A_SURVEY_LISTEN_PORT", "listen_port"),
    )
    survey_runner_url: str = "http://localhost:5000"
    survey_runner_schema_url: str = ""
    survey_register_url: str = ""
    schema_validator_url: str = ""
    account_service_url: str = "http://localhost:8000"
    jwt_encryption_key_path: str = ENCRYPTION_KEY_PATH_DEFAULT
    jwt_signing_key_path: str = SIGNING_KEY_PATH_DEFAULT
    http_timeout: float = HTTP_TIMEOUT_DEFAULT
    log_level: str = "info"

    @property
    def schema_base_url(self) -> str:
        """Base URL of the service hosting runner schemas."""
        base = self.survey_runner_schema_url or self.survey_runner_url
        return base.rstrip("/")

    @property
    def runner_base_url(self) -> str:
        """Survey runner URL without a trailing slash."""
        return self.survey_runner_url.rstrip("/")
