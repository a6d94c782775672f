"""Parsing for the comma-separated CORS origin setting."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo


def parse_origin_list(value: str | list[str]) -> list[str]:
    """Split ``WAXLE_CORS_ORIGINS`` ('https://a.app,https://b.app') into origins.

    Blank segments are dropped, so an unset or blank value means no origins.
    """
    if isinstance(value, list):
        return value
    return [origin.strip() for origin in value.split(",") if origin.strip()]


class OriginListEnvSettingsSource(EnvSettingsSource):
    """Hands the origin list to its validator as the raw env string.

    pydantic-settings would otherwise JSON-decode list-typed env vars and
    reject the comma-separated form.
    """

    origin_list_fields: frozenset[str] = frozenset({"cors_origins"})

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if field_name in self.origin_list_fields and isinstance(value, str):
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
