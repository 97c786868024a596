"""CLI settings loaded with pydantic-settings."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict

from event_layers.classifier import Locale


class EventLayersSettings(BaseSettings):
    """Defaults for the ``event-layers`` command.

    Read from EVENT_LAYERS_* environment variables and a .env file in the
    working directory, e.g. EVENT_LAYERS_LOCALE=zh. Only the CLI loads these;
    it copies them into an EventMergeConfig. Aggregation itself never reads the
    environment; its output depends only on the config it is given.
    """

    model_config = SettingsConfigDict(
        env_prefix="EVENT_LAYERS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    locale: Locale = "en"
    """Language of the placeholder text on synthesized milestones."""

    check_ordering: bool = False
    """Raise EventOrderError when input timestamps decrease. Debug aid only."""
