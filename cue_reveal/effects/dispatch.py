"""Effect dispatcher: fired cues → validated effect commands → renderers.

WHY: A fired cue is still just strings. Something has to turn
``[cue:fx|Lluvia|angledeg=20]`` into "rain, angleDeg=20.0, intensity=0.5,
..." and hand it to whatever draws rain, while refusing effects that do
not exist or parameters that are out of range.

HOW: EffectDispatcher subscribes to an EffectBus. For each event it
builds an EffectCommand: catalogued cue types are resolved and their
params coerced through the catalog; other types pass through with
their raw params. The command goes to the BaseEffectRenderer registered
for its cue type.

RULES:
- Unknown effects and invalid params are logged as warnings and recorded
  in ``rejected``; they never reach a renderer and never raise
- A command for a cue type with no renderer is still returned (debug log)
- Renderer exceptions propagate to the bus, which logs them
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from cue_reveal.core.ir import Cue, CueFiredEvent
from cue_reveal.effects.bus import EffectBus
from cue_reveal.effects.catalog import EffectError, coerce_params, has_catalog, resolve_effect

logger = logging.getLogger(__name__)


@dataclass
class EffectCommand:
    """A resolved, renderer-ready effect request.

    effect is the catalog key when the cue type has a catalog (aliases
    resolved), otherwise the cue's EFFECT field as written.
    """

    cue_type: str
    effect: str
    params: Dict[str, Any]
    cue: Cue
    progress: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.cue_type,
            "effect": self.effect,
            "params": dict(self.params),
            "source": self.cue.original_text,
        }


class BaseEffectRenderer(ABC):
    """Abstract base for anything that plays effects.

    To add a renderer:
    1. Subclass BaseEffectRenderer
    2. Implement name and render()
    3. Register it on an EffectDispatcher for one cue type
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable renderer name."""

    @abstractmethod
    def render(self, command: EffectCommand) -> None:
        """Play one effect. Must not block for the effect's duration."""


class RecordingEffectRenderer(BaseEffectRenderer):
    """Renderer that only remembers what it was asked to play."""

    def __init__(self) -> None:
        self.history: List[EffectCommand] = []

    @property
    def name(self) -> str:
        return "Recorder"

    def render(self, command: EffectCommand) -> None:
        self.history.append(command)

    def clear(self) -> None:
        self.history.clear()


@dataclass
class EffectDispatcher:
    renderers: Dict[str, BaseEffectRenderer] = field(default_factory=dict)
    rejected: List[Tuple[CueFiredEvent, EffectError]] = field(default_factory=list)
    _unsubscribe: Optional[Callable[[], bool]] = field(default=None, repr=False)

    def register(self, cue_type: str, renderer: BaseEffectRenderer) -> None:
        self.renderers[cue_type] = renderer

    def resolve(self, event: CueFiredEvent) -> EffectCommand:
        """Build the EffectCommand for ``event``.

        Raises:
            UnknownEffectError: Catalogued cue type, unknown effect.
            InvalidEffectParamsError: Params fail coercion or validation.
        """
        cue = event.cue
        if not has_catalog(cue.type):
            return EffectCommand(cue.type, cue.effect, dict(cue.params), cue, event.progress)
        spec = resolve_effect(cue.type, cue.effect)
        return EffectCommand(cue.type, spec.key, coerce_params(spec, cue.params), cue, event.progress)

    def handle(self, event: CueFiredEvent) -> Optional[EffectCommand]:
        try:
            command = self.resolve(event)
        except EffectError as exc:
            logger.warning("Rejected cue %s: %s", event.cue.original_text, exc)
            self.rejected.append((event, exc))
            return None

        renderer = self.renderers.get(command.cue_type)
        if renderer is None:
            logger.debug("No renderer for cue type %s", command.cue_type)
            return command
        logger.debug("Dispatching %s to %s", command.effect, renderer.name)
        renderer.render(command)
        return command

    def attach(self, bus: EffectBus) -> None:
        self.detach()
        self._unsubscribe = bus.subscribe(self.handle)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
