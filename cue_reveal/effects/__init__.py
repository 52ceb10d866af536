"""Effect catalog, bus and dispatcher.

WHY: The reveal engine only says "this cue fired". This package turns
that into something a renderer can play, and keeps the engine free of
any effect knowledge.

HOW: bus.py delivers CueFiredEvents to subscribers; catalog.py
describes known effects and validates parameters with jsonschema;
dispatch.py routes validated EffectCommands to renderers.
"""

from cue_reveal.effects.bus import EffectBus
from cue_reveal.effects.catalog import (
    EffectError,
    EffectSpec,
    InvalidEffectParamsError,
    ParamSpec,
    UnknownEffectError,
    coerce_params,
    effect_params_schema,
    list_effects,
    resolve_effect,
)
from cue_reveal.effects.dispatch import (
    BaseEffectRenderer,
    EffectCommand,
    EffectDispatcher,
    RecordingEffectRenderer,
)

__all__ = [
    "BaseEffectRenderer",
    "EffectBus",
    "EffectCommand",
    "EffectDispatcher",
    "EffectError",
    "EffectSpec",
    "InvalidEffectParamsError",
    "ParamSpec",
    "RecordingEffectRenderer",
    "UnknownEffectError",
    "coerce_params",
    "effect_params_schema",
    "list_effects",
    "resolve_effect",
]
