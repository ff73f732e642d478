"""In-process publish/subscribe for engine events."""

import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, DefaultDict, List

from tdd_trainer.exercise import Exercise
from tdd_trainer.phases import PhaseStatus

logger = logging.getLogger(__name__)

Handler = Callable[[Any], None]


@dataclass(frozen=True)
class ExecutionStatusEvent:
    """Published after every check with the status returned to the caller."""
    status: PhaseStatus


@dataclass(frozen=True)
class ExerciseSelectedEvent:
    """Published when an exercise is selected or rolled back to."""
    exercise: Exercise


class EventBus:
    """
    Synchronous event bus owned by whoever constructs the engine.

    Handlers are registered per event class and called in registration
    order. A failing handler is logged and does not stop delivery to the
    others.
    """

    def __init__(self):
        self._handlers: DefaultDict[type, List[Handler]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Handler) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: type, handler: Handler) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: Any) -> None:
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
            except Exception:
                logger.exception("Event handler %r failed for %s", handler, type(event).__name__)
