"""AiuiSettings: every tunable of a CLI or MCP session in one frozen object.

Sources, strongest first: keyword arguments (the CLI flags), ``AIUI_*``
environment variables (``AIUI_RESOLVER__STRATEGY=keyword`` reaches into
a section), the site's ``aiui.toml``, then the section defaults.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from aiui.config.discovery import SiteLocation, locate_site, read_toml
from aiui.config.models import (
    BindingConfig,
    ManifestConfig,
    McpConfig,
    PluginsConfig,
    ResolverConfig,
    ValidationConfig,
)

# Sections a site may set from aiui.toml; anything else in the file is ignored.
TOML_SECTIONS = frozenset({"manifest", "resolver", "validation", "binding", "plugins", "mcp"})

# Config file for the settings object currently being built.
_pending_toml: ContextVar[Path | None] = ContextVar("aiui_pending_toml", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Section tables from a site's ``aiui.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], toml_path: Path | None) -> None:
        super().__init__(settings_cls)
        document = read_toml(toml_path) if toml_path and toml_path.is_file() else {}
        self._sections = {k: v for k, v in document.items() if k in TOML_SECTIONS}

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._sections.get(field_name), field_name, field_name in self._sections

    def __call__(self) -> dict[str, Any]:
        return dict(self._sections)


class AiuiSettings(BaseSettings):
    """Settings shared by the CLI, the MCP server, and the services.

    Attributes:
        site_root: Directory relative manifest paths are resolved from.
        config_path: The ``aiui.toml`` in effect, if any.
        manifest_path: ``--manifest`` override; wins over ``[manifest] path``.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "AIUI_",
        "env_nested_delimiter": "__",
    }

    site_root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None
    manifest_path: Path | None = None

    # Session flags
    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False
    sync: bool = True

    # aiui.toml sections
    manifest: ManifestConfig = Field(default_factory=ManifestConfig)
    resolver: ResolverConfig = Field(default_factory=ResolverConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    binding: BindingConfig = Field(default_factory=BindingConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    mcp: McpConfig = Field(default_factory=McpConfig)

    @property
    def manifest_file(self) -> Path:
        """The manifest document to load."""
        if self.manifest_path is not None:
            return self.manifest_path
        configured = Path(self.manifest.path)
        return configured if configured.is_absolute() else self.site_root / configured

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, _pending_toml.get()),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        site_root: Path | None = None,
        manifest_path: str | Path | None = None,
        **cli_flags: Any,
    ) -> AiuiSettings:
        """Build settings for one invocation.

        An explicit *config_path* that does not exist means "no config".
        Without one, the site enclosing *site_root* (or the cwd) is
        located and its ``aiui.toml``, if present, is read.  *site_root*
        itself always wins over the located root.
        """
        location = _explicit_location(config_path) if config_path else locate_site(site_root)
        if site_root is not None:
            root = site_root
        elif location is not None:
            root = location.root
        else:
            root = Path.cwd()
        toml_path = location.config if location else None

        if manifest_path is not None:
            cli_flags["manifest_path"] = Path(manifest_path)

        token = _pending_toml.set(toml_path)
        try:
            return cls(site_root=root, config_path=toml_path, **cli_flags)
        finally:
            _pending_toml.reset(token)


def _explicit_location(config_path: str) -> SiteLocation | None:
    path = Path(config_path)
    return SiteLocation(root=path.parent, config=path) if path.is_file() else None
