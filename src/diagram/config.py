"""Decoder configuration.

A ``DecoderConfig`` is an immutable bag of knobs passed explicitly through
the pipeline. There is no global mutable state; ``DEFAULT_CONFIG`` is used
whenever a caller passes ``None``.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Literal, TypeAlias

from diagram.io_utils import load_json

log = logging.getLogger(__name__)

BraceScan: TypeAlias = Literal["first_last", "balanced"]

_BRACE_SCANS: frozenset[str] = frozenset({"first_last", "balanced"})
_TRUE_STRINGS: frozenset[str] = frozenset({"1", "true", "yes", "y"})
_FALSE_STRINGS: frozenset[str] = frozenset({"0", "false", "no", "n", ""})

# Hard ceiling on MalformedDocument excerpts; configs may only lower it.
EXCERPT_LIMIT = 200


@dataclass(frozen=True, slots=True)
class DecoderConfig:
    """Tunables for text repair and structure assembly."""

    excerpt_limit: int = EXCERPT_LIMIT       # max chars of raw input kept on MalformedDocument
    brace_scan: BraceScan = "first_last"     # first_last | balanced
    strip_comments: bool = False             # extra parse attempt without // and /* */ comments
    max_sub_structure_depth: int = 2         # zoom-in levels kept below a sentence

    def __post_init__(self) -> None:
        if not 0 <= self.excerpt_limit <= EXCERPT_LIMIT:
            raise ValueError(
                f"excerpt_limit must be in [0, {EXCERPT_LIMIT}], got {self.excerpt_limit}",
            )
        if self.brace_scan not in _BRACE_SCANS:
            raise ValueError(
                f"brace_scan must be one of {sorted(_BRACE_SCANS)}, got {self.brace_scan!r}",
            )
        if self.max_sub_structure_depth < 0:
            raise ValueError(
                f"max_sub_structure_depth must be >= 0, got {self.max_sub_structure_depth}",
            )


DEFAULT_CONFIG = DecoderConfig()


def config_to_dict(config: DecoderConfig) -> dict[str, Any]:
    """Convert a config to a JSON-serializable dict."""
    return asdict(config)


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_STRINGS:
            return True
        if text in _FALSE_STRINGS:
            return False
        raise ValueError(f"{key} must be a boolean, got {value!r}")
    if isinstance(value, int):
        return bool(value)
    raise ValueError(f"{key} must be a boolean, got {value!r}")


def config_from_dict(d: dict[str, Any]) -> DecoderConfig:
    """Create a config from a dict (e.g., loaded from JSON). Unknown keys are skipped."""
    valid_fields = {f.name for f in fields(DecoderConfig)}
    converted: dict[str, Any] = {}
    for key, val in d.items():
        if key not in valid_fields:
            log.warning("Ignoring unknown decoder config key %r", key)
            continue
        if key == "brace_scan":
            converted[key] = str(val).strip().lower()
        elif key == "strip_comments":
            converted[key] = _as_bool(key, val)
        else:
            converted[key] = int(val)
    return DecoderConfig(**converted)


def load_config(path: Path) -> DecoderConfig:
    """Load a DecoderConfig from a JSON object file."""
    payload = load_json(path)
    if not isinstance(payload, dict):
        raise ValueError(f"config file {path} must contain a JSON object")
    return config_from_dict(payload)
