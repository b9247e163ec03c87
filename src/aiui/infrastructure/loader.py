"""Manifest document loading from disk.

JSON (``.json``) is read with the stdlib; YAML (``.yaml``/``.yml``) with
ruamel.yaml's safe loader.  The file path becomes the manifest's
``origin``, which traces cite as provenance.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ruamel.yaml import YAML, YAMLError

from aiui.config.discovery import MANIFEST_FILENAMES
from aiui.domain.errors import AiuiError, SchemaViolationError
from aiui.domain.manifest import ManifestSpec, load

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


class ManifestNotFoundError(AiuiError):
    """The manifest file does not exist."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Manifest not found: {path}")


def read_document(path: Path) -> dict[str, Any]:
    """Parse a manifest file into a plain mapping.

    Raises:
        ManifestNotFoundError: If *path* is not a file.
        SchemaViolationError: If the file cannot be decoded or is not a mapping.
    """
    if not path.is_file():
        raise ManifestNotFoundError(path)
    try:
        raw = path.read_text(encoding="utf-8")
        if path.suffix.lower() in _YAML_SUFFIXES:
            data = YAML(typ="safe").load(raw)
        else:
            data = json.loads(raw)
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read manifest {path}: {exc}"
        raise SchemaViolationError(msg) from exc
    except (json.JSONDecodeError, YAMLError) as exc:
        msg = f"Cannot parse manifest {path}: {exc}"
        raise SchemaViolationError(msg) from exc
    if not isinstance(data, dict):
        msg = f"Manifest {path} must contain a mapping at the top level"
        raise SchemaViolationError(msg)
    return data


def load_manifest(path: Path | str) -> ManifestSpec:
    """Read and validate the manifest at *path*."""
    p = Path(path)
    document = read_document(p)
    manifest = load(document, origin=str(path))
    logger.debug(
        "Loaded manifest %s (%d actions, %d goals)",
        p,
        len(manifest.actions),
        len(manifest.goals),
    )
    return manifest


def find_manifest(root: Path) -> Path | None:
    """Return the first default-named manifest file in *root*, if any."""
    for name in MANIFEST_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None
