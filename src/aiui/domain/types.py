"""Closed enums shared across the domain layer."""

from __future__ import annotations

from enum import StrEnum


class ConstraintKind(StrEnum):
    """Tag of a constraint variant."""

    PATTERN = "pattern"
    FORMAT = "format"
    NUMERIC_MINIMUM = "numeric-minimum"


class FormatKind(StrEnum):
    """Structured formats understood by the format constraint."""

    DATE_RANGE = "date-range"


class ProvenanceSource(StrEnum):
    """Origin of data recorded in a trace."""

    MANIFEST = "manifest"
    BINDING = "binding"


class ExecutionMode(StrEnum):
    """How a resolved action would be carried out."""

    DRY_RUN = "dry-run"
    EXECUTE = "execute"


class ResolutionStrategy(StrEnum):
    """Goal-to-action matching policy."""

    EXPLICIT = "explicit"
    KEYWORD = "keyword"
