"""Data-entry models for routes and the assets the surface reports."""

from __future__ import annotations

from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from swapnav.exceptions import ConfigError
from swapnav.types import AssetType


class PreloadTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    params: tuple[Any, ...] = ()


class RouteDefinition(BaseModel):
    """A route as the host application declares it.

    Field order mirrors positional registration: route, partial, title,
    js, css, preload.
    """

    route: str
    partial: str
    title: str
    js: list[str] = Field(default_factory=list)
    css: list[str] = Field(default_factory=list)
    preload: list[PreloadTask] = Field(default_factory=list)

    @field_validator("preload", mode="before")
    @classmethod
    def _names_as_tasks(cls, value: Any) -> Any:
        # A bare string is shorthand for a task without params
        if isinstance(value, list):
            return [{"name": item} if isinstance(item, str) else item for item in value]
        return value


class InjectedAsset(BaseModel):
    """A script or style element currently attached to the rendering surface."""

    model_config = ConfigDict(frozen=True)

    asset_type: AssetType
    url: str
    managed: bool = True
    handle: str | None = None  # surface-specific element id


class RouteTableConfig(BaseModel):
    routes: list[RouteDefinition] = Field(default_factory=list)
    fallback: RouteDefinition | None = None

    @classmethod
    def from_yaml(cls, yaml_str: str) -> RouteTableConfig:
        """Parse a YAML document into a RouteTableConfig.

        Accepts either a mapping with ``routes``/``fallback`` keys or a bare
        list of route definitions.
        """
        if not yaml_str or not yaml_str.strip():
            return cls()
        try:
            raw = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid route YAML: {e}") from e
        if raw is None:
            return cls()
        if isinstance(raw, list):
            raw = {"routes": raw}
        if not isinstance(raw, dict):
            raise ConfigError("Route YAML must be a mapping or a list of routes")
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise ConfigError(f"Invalid route definition: {e}") from e
