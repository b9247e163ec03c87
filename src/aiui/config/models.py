"""The tables an ``aiui.toml`` may contain, with their defaults.

Every key is optional; a site whose manifest is ``aiui.json`` needs no
config file at all.  Unknown keys inside a known table are rejected so a
misspelt option fails loudly instead of silently keeping its default.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from aiui.domain.types import ResolutionStrategy


class _Section(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class ManifestConfig(_Section):
    """``[manifest]``: where the action manifest lives, relative to the site root."""

    path: str = "aiui.json"


class ResolverConfig(_Section):
    """``[resolver]``: how goals map to actions.

    ``keyword`` lets a free-text description pick an action when no ids
    are given; more than *keyword_threshold* of the description's words
    must appear in that action's title, description or id.
    """

    strategy: ResolutionStrategy = ResolutionStrategy.EXPLICIT
    keyword_threshold: float = Field(default=0.5, ge=0.0, lt=1.0)


class ValidationConfig(_Section):
    max_workers: int = Field(default=1, ge=1)


class BindingConfig(_Section):
    """``[binding]``: consult ``ui_hint`` locators before validating."""

    enabled: bool = False


class PluginsConfig(_Section):
    local_dir: str = ".aiui/plugins"
    audit_log: dict[str, Any] = Field(default_factory=lambda: {"enabled": True})


class McpConfig(_Section):
    enabled: bool = True
    transport: Literal["stdio", "sse", "streamable-http"] = "stdio"
