from __future__ import annotations

import os
from pathlib import Path
from typing import ClassVar

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import PydanticBaseSettingsSource, YamlConfigSettingsSource

from adapters.layout.config import LayoutConfig
from domain.services.item_preparation import ItemThresholds
from domain.services.width_estimation import WidthMetrics

DEFAULT_CONFIG_PATH = Path("config/timeline/layout.yaml")
CONFIG_PATH_ENV = "TLE_CONFIG_PATH"


class WidthSettings(BaseModel):
    pixels_per_unit: float = Field(10.0, gt=0)
    uppercase_bold_px: float = Field(18.0, ge=0)
    bold_px: float = Field(14.0, ge=0)
    capitalized_px: float = Field(14.0, ge=0)
    date_padding_px: float = Field(60.0, ge=0)
    min_bar_width_px: float = Field(40.0, ge=0)
    inline_margin_units: float = Field(5.0, ge=0)
    floating_name_px: float = Field(8.0, ge=0)
    floating_secondary_px: float = Field(6.0, ge=0)
    floating_date_px: float = Field(6.0, ge=0)
    min_floating_label_px: float = Field(120.0, ge=0)
    floating_buffer_units: float = Field(3.0, ge=0)

    def to_width_metrics(self) -> WidthMetrics:
        return WidthMetrics(**self.model_dump())


class LayoutSettings(BaseModel):
    widths: WidthSettings = WidthSettings()
    short_event_threshold: float = Field(15.0, gt=0)
    exclusion_threshold: float = Field(3.0, ge=0)
    bar_margin: float = Field(6.0, ge=0)
    label_margin: float = Field(10.0, ge=0)
    label_offset_padding: float = Field(2.0, ge=0)
    max_relocation_attempts: int = Field(10, ge=0)
    relocation_scan_limit: int = Field(20, ge=1)
    audit_overlap_threshold: float = Field(2.0, ge=0)
    row_height: float = Field(180.0, gt=0)
    bar_anchor_px: float = Field(80.0, ge=0)
    label_anchor_above_px: float = Field(145.0, ge=0)
    label_anchor_below_px: float = Field(175.0, ge=0)
    label_height_px: float = Field(40.0, ge=0)

    @model_validator(mode="after")
    def ensure_thresholds_ordered(self) -> "LayoutSettings":
        if self.exclusion_threshold > self.short_event_threshold:
            msg = "layout.exclusion_threshold must not exceed layout.short_event_threshold"
            raise ValueError(msg)
        return self

    def to_layout_config(self) -> LayoutConfig:
        return LayoutConfig(
            widths=self.widths.to_width_metrics(),
            bar_margin=self.bar_margin,
            label_margin=self.label_margin,
            label_offset_padding=self.label_offset_padding,
            max_relocation_attempts=self.max_relocation_attempts,
            relocation_scan_limit=self.relocation_scan_limit,
            audit_overlap_threshold=self.audit_overlap_threshold,
            row_height=self.row_height,
            bar_anchor_px=self.bar_anchor_px,
            label_anchor_above_px=self.label_anchor_above_px,
            label_anchor_below_px=self.label_anchor_below_px,
            label_height_px=self.label_height_px,
        )

    def to_thresholds(self) -> ItemThresholds:
        return ItemThresholds(
            short_event_threshold=self.short_event_threshold,
            exclusion_threshold=self.exclusion_threshold,
        )


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="TLE_", env_nested_delimiter="__")

    layout: LayoutSettings = LayoutSettings()
    current_year: int | None = None

    _yaml_path: ClassVar[Path | None] = None

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Layout tuning comes from explicit values, TLE_* variables and one YAML file.
        if cls._yaml_path is None:
            return init_settings, env_settings
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_path)
        return init_settings, env_settings, yaml_settings

    @classmethod
    def from_yaml(cls, path: Path | None) -> "AppSettings":
        previous = cls._yaml_path
        cls._yaml_path = path
        try:
            return cls()
        finally:
            cls._yaml_path = previous


def resolve_config_path(config_path: Path | None = None) -> Path | None:
    if config_path is None:
        env_path = os.getenv(CONFIG_PATH_ENV)
        if not env_path:
            return DEFAULT_CONFIG_PATH if DEFAULT_CONFIG_PATH.exists() else None
        config_path = Path(env_path)
    if not config_path.is_file():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)
    return config_path


def load_settings(config_path: Path | None = None) -> AppSettings:
    return AppSettings.from_yaml(resolve_config_path(config_path))
