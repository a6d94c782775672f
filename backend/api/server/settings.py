"""API server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from shared.validators import OriginListEnvSettingsSource, parse_origin_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class ApiServerSettings(BaseSettings):
    model_config = {"env_prefix": "WAXLE_"}

    # Deployment-site identifier injected by the hosting platform; absent when running locally.
    site_id: str | None = None
    # Explicit override for hosts that do not inject a site identifier.
    deployment: Literal["local", "hosted"] | None = None
    # Shared secret for admin operations on hosted deployments.
    admin_key: str | None = None

    storage_backend: Literal["memory", "sqlite"] = "memory"
    database_path: str = Field(default="backend/storage.db", min_length=1)
    list_page_size: int = Field(default=100, ge=1)

    default_limit: int = Field(default=20, ge=1)
    max_limit: int = Field(default=100, ge=1)

    log_dir: str = Field(default="backend/logs/api", min_length=1)
    cors_origins: list[str] = []

    @property
    def is_local(self) -> bool:
        if self.deployment is not None:
            return self.deployment == "local"
        return not self.site_id

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_origin_list(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, OriginListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
