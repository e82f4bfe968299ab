from typing import Dict, Tuple

from pydantic import BaseModel
from pydantic_settings import BaseSettings

PLACEHOLDER_ENDPOINT = "your_azure_endpoint"
PLACEHOLDER_KEY = "your_azure_subscription_key"


class Settings(BaseSettings):
    app_name: str = "Content Moderation Engine"
    database_url: str = "postgresql+psycopg2://postgres:postgres@db:5432/moderation"
    database_echo: bool = False
    log_level: str = "INFO"
    log_file: str | None = None

    # Remote classifier (edge function fronting Azure Content Moderator)
    classifier_function_url: str | None = None
    classifier_function_key: str | None = None
    azure_content_moderator_endpoint: str | None = None
    azure_content_moderator_key: str | None = None
    azure_region: str = "francecentral"
    classifier_timeout_seconds: float = 15.0

    sweep_limit: int = 50
    sweep_pace_seconds: float = 0.1

    # bearer key -> reviewer id
    reviewer_api_keys: Dict[str, str] = {}

    class Config:
        env_file = ".env"


class ClassifierConfig(BaseModel):
    """Connection details for the remote classification service."""

    function_url: str | None = None
    function_key: str | None = None
    endpoint: str | None = None
    subscription_key: str | None = None
    region: str = "francecentral"
    timeout_seconds: float = 15.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClassifierConfig":
        return cls(
            function_url=settings.classifier_function_url,
            function_key=settings.classifier_function_key,
            endpoint=settings.azure_content_moderator_endpoint,
            subscription_key=settings.azure_content_moderator_key,
            region=settings.azure_region,
            timeout_seconds=settings.classifier_timeout_seconds,
        )

    def is_configured(self) -> bool:
        has_endpoint = bool(self.endpoint) and self.endpoint != PLACEHOLDER_ENDPOINT
        has_key = bool(self.subscription_key) and self.subscription_key != PLACEHOLDER_KEY
        return has_endpoint and has_key and bool(self.function_url)

    def status(self) -> Tuple[bool, str]:
        if not self.is_configured():
            return False, "Remote classifier not configured, fallback moderation in use"
        return True, "Remote classifier configured and ready"


settings = Settings()
