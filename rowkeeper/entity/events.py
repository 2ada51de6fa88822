"""Per-entity-type lifecycle hooks."""

import logging
from typing import Any, Callable, ClassVar

from pydantic import BaseModel, Field

from ..errors import InvalidArgument

logger = logging.getLogger(__name__)


class EventHooks(BaseModel):
    """Listeners for the lifecycle events of one entity type.

    Listeners registered with :meth:`listen` run first, then the target's
    ``on_<event>`` method if it defines one. For the halting events a listener
    returning exactly ``False`` vetoes the operation; the remaining listeners
    are skipped.
    """

    model_config = {"arbitrary_types_allowed": True}

    EVENTS: ClassVar[tuple[str, ...]] = (
        "booting",
        "booted",
        "retrieved",
        "saving",
        "saved",
        "creating",
        "created",
        "updating",
        "updated",
        "deleting",
        "deleted",
    )
    HALTING: ClassVar[tuple[str, ...]] = ("saving", "creating", "updating", "deleting")

    listeners: dict[str, list[Callable[..., Any]]] = Field(default_factory=dict)

    def _check_event(self, event: str) -> None:
        if event not in self.EVENTS:
            raise InvalidArgument(f"Unknown entity event: {event!r}")

    def listen(self, event: str, hook: Callable[..., Any]) -> None:
        self._check_event(event)
        hooks = self.listeners.setdefault(event, [])
        if hook not in hooks:
            hooks.append(hook)

    def forget(self, event: str, hook: Callable[..., Any]) -> None:
        self._check_event(event)
        if hook in self.listeners.get(event, []):
            self.listeners[event].remove(hook)

    def clear(self, event: str = None) -> None:
        if event is None:
            self.listeners.clear()
        else:
            self.listeners.pop(event, None)

    def fire(self, event: str, target: Any) -> bool:
        """Run the hooks of ``event`` on ``target``; False only when a halting hook vetoed."""
        self._check_event(event)
        callbacks = [lambda hook=hook: hook(target) for hook in self.listeners.get(event, [])]
        method = getattr(target, f"on_{event}", None)
        if callable(method):
            callbacks.append(method)
        for callback in callbacks:
            if callback() is False and event in self.HALTING:
                logger.debug("%s vetoed on %r", event, target)
                return False
        return True
