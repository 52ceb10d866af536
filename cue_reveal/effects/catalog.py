"""Effect catalog: known effects, their aliases, and typed parameters.

WHY: Cue parameters arrive as strings typed by authors (``duration=5``,
``night=true``, ``angledeg=10``). Renderers want numbers, booleans and
defaults, and a typo in an effect name should be reported, not silently
drawn as nothing. The catalog is the single declarative description of
what each effect accepts.

HOW: vfx_catalog.json (shipped as package data) is loaded once and
cached. Each effect becomes an EffectSpec holding ParamSpecs.
coerce_params() converts raw strings per ParamSpec, fills defaults, and
validates the result with jsonschema against the schema produced by
effect_params_schema().

RULES:
- Effect and alias lookup is case-insensitive
- Parameter keys match case-insensitively; unknown keys are ignored
  (debug log), never an error
- Numbers must be finite; integer params reject fractional values
- Booleans accept true/false, 1/0, yes/no, on/off
- Only cue types with a catalog (currently ``vfx``) are validated;
  everything else passes through untouched
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import jsonschema

logger = logging.getLogger(__name__)

_CATALOG_PATHS = {
    "vfx": Path(__file__).resolve().parent / "vfx_catalog.json",
}

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class EffectError(Exception):
    """Base class for effect resolution failures."""


class UnknownEffectError(EffectError):
    """The cue names an effect the catalog does not know."""

    def __init__(self, cue_type: str, effect: str) -> None:
        self.cue_type = cue_type
        self.effect = effect
        super().__init__("Unknown {} effect: {!r}".format(cue_type, effect))


class InvalidEffectParamsError(EffectError):
    """One or more cue parameters could not be coerced or validated."""

    def __init__(self, effect: str, errors: List[str]) -> None:
        self.effect = effect
        self.errors = errors
        super().__init__("Invalid parameters for {}: {}".format(effect, "; ".join(errors)))


# ---------------------------------------------------------------------------
# Specs
# ---------------------------------------------------------------------------


@dataclass
class ParamSpec:
    """One declared effect parameter."""

    key: str
    type: str
    description: str = ""
    min: Optional[float] = None
    max: Optional[float] = None
    step: Optional[float] = None
    options: List[str] = field(default_factory=list)
    default: Any = None

    @property
    def is_integer(self) -> bool:
        return self.type == "number" and self.step is not None and float(self.step).is_integer()

    def json_schema(self) -> Dict[str, Any]:
        if self.type == "number":
            schema: Dict[str, Any] = {"type": "integer" if self.is_integer else "number"}
            if self.min is not None:
                schema["minimum"] = self.min
            if self.max is not None:
                schema["maximum"] = self.max
            return schema
        if self.type == "boolean":
            return {"type": "boolean"}
        if self.type == "select":
            return {"type": "string", "enum": list(self.options)}
        return {"type": "string"}

    def coerce(self, raw: str) -> Any:
        """Convert a raw cue string to this parameter's Python type.

        Raises:
            ValueError: If the string cannot represent a value of this type.
        """
        value = raw.strip()
        if self.type == "number":
            try:
                number = float(value)
            except ValueError:
                raise ValueError("{} must be a number, got {!r}".format(self.key, raw)) from None
            if not math.isfinite(number):
                raise ValueError("{} must be finite, got {!r}".format(self.key, raw))
            if self.is_integer and number.is_integer():
                return int(number)
            return number
        if self.type == "boolean":
            lowered = value.lower()
            if lowered in _TRUE_WORDS:
                return True
            if lowered in _FALSE_WORDS:
                return False
            raise ValueError("{} must be a boolean, got {!r}".format(self.key, raw))
        return value

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"key": self.key, "type": self.type, "description": self.description}
        for name in ("min", "max", "step", "default"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        if self.options:
            data["options"] = list(self.options)
        return data


@dataclass
class EffectSpec:
    """One catalog effect with its aliases and parameters."""

    key: str
    cue_type: str
    aliases: List[str] = field(default_factory=list)
    label: Dict[str, str] = field(default_factory=dict)
    description: str = ""
    params: List[ParamSpec] = field(default_factory=list)

    def names(self) -> List[str]:
        return [self.key.lower()] + [a.lower() for a in self.aliases]

    def param(self, key: str) -> Optional[ParamSpec]:
        lowered = key.strip().lower()
        for spec in self.params:
            if spec.key.lower() == lowered:
                return spec
        return None

    def defaults(self) -> Dict[str, Any]:
        return {p.key: p.default for p in self.params if p.default is not None}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "cue_type": self.cue_type,
            "aliases": list(self.aliases),
            "label": dict(self.label),
            "description": self.description,
            "params": [p.to_dict() for p in self.params],
        }


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


def _load_catalog(cue_type: str, path: Path) -> List[EffectSpec]:
    """Read one catalog file into EffectSpecs.

    Cached at module level after first call to avoid repeated I/O.
    """
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    effects = []
    for entry in data["effects"]:
        params = [
            ParamSpec(
                key=p["key"],
                type=p["type"],
                description=p.get("description", ""),
                min=p.get("min"),
                max=p.get("max"),
                step=p.get("step"),
                options=list(p.get("options", [])),
                default=p.get("default"),
            )
            for p in entry.get("params", [])
        ]
        effects.append(EffectSpec(
            key=entry["key"],
            cue_type=cue_type,
            aliases=list(entry.get("aliases", [])),
            label=dict(entry.get("label", {})),
            description=entry.get("description", ""),
            params=params,
        ))
    logger.debug("Loaded %d %s effects from %s", len(effects), cue_type, path.name)
    return effects


_CACHED_CATALOG: Dict[str, List[EffectSpec]] | None = None


def get_catalog() -> Dict[str, List[EffectSpec]]:
    """All catalogs keyed by cue type."""
    global _CACHED_CATALOG
    if _CACHED_CATALOG is None:
        _CACHED_CATALOG = {
            cue_type: _load_catalog(cue_type, path)
            for cue_type, path in _CATALOG_PATHS.items()
        }
    return _CACHED_CATALOG


def has_catalog(cue_type: str) -> bool:
    return cue_type in get_catalog()


def list_effects(cue_type: Optional[str] = None) -> List[EffectSpec]:
    catalog = get_catalog()
    if cue_type is not None:
        return list(catalog.get(cue_type, []))
    return [spec for specs in catalog.values() for spec in specs]


def resolve_effect(cue_type: str, name: str) -> EffectSpec:
    """Look up an effect by key or alias, case-insensitively.

    Raises:
        UnknownEffectError: If the cue type has no catalog or the name
            matches no effect in it.
    """
    lowered = name.strip().lower()
    for spec in get_catalog().get(cue_type, []):
        if lowered in spec.names():
            return spec
    raise UnknownEffectError(cue_type, name)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


def effect_params_schema(spec: EffectSpec) -> Dict[str, Any]:
    """JSON Schema describing the coerced parameters of ``spec``."""
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": "{} parameters".format(spec.key),
        "type": "object",
        "properties": {p.key: p.json_schema() for p in spec.params},
        "additionalProperties": False,
    }


def coerce_params(spec: EffectSpec, params: Dict[str, str]) -> Dict[str, Any]:
    """Turn raw cue params into typed, defaulted, validated values.

    Args:
        spec: The resolved effect.
        params: Raw ``key -> value`` strings from the cue.

    Returns:
        Dict keyed by the catalog's parameter keys.

    Raises:
        InvalidEffectParamsError: If any value fails coercion or the
            result does not satisfy effect_params_schema(spec).
    """
    values = spec.defaults()
    errors: List[str] = []

    for raw_key, raw_value in params.items():
        param = spec.param(raw_key)
        if param is None:
            logger.debug("Ignoring unknown parameter %r for effect %s", raw_key, spec.key)
            continue
        try:
            values[param.key] = param.coerce(raw_value)
        except ValueError as exc:
            errors.append(str(exc))

    if errors:
        raise InvalidEffectParamsError(spec.key, errors)

    validator = jsonschema.Draft7Validator(effect_params_schema(spec))
    violations = sorted(validator.iter_errors(values), key=lambda e: list(e.path))
    if violations:
        raise InvalidEffectParamsError(
            spec.key,
            ["{}: {}".format(".".join(str(p) for p in v.path) or spec.key, v.message) for v in violations],
        )
    return values
