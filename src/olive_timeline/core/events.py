"""
Change notification for the parameter model.

Every committed mutation of a node input publishes one event on the owning
project's ``EventBus``. Handlers run synchronously, in subscription order,
after the new state is already visible. A failing handler is logged and the
remaining handlers still run; the mutation that published the event stands.
"""
import logging
from dataclasses import dataclass
from threading import Lock
from typing import Any, Callable, ClassVar, Dict, List, Optional, Type, Union

from olive_timeline.core.models import ElementKey, Keyframe
from olive_timeline.core.timerange import TimeRange

logger = logging.getLogger(__name__)

ANY_EVENT = "*"


@dataclass(frozen=True)
class InputEvent:
    name: ClassVar[str] = "InputEvent"
    node_id: str
    key: ElementKey


@dataclass(frozen=True)
class ValueChanged(InputEvent):
    """The evaluated value changed. ``affected`` is None when every time changed."""

    name: ClassVar[str] = "ValueChanged"
    affected: Optional[TimeRange] = None


@dataclass(frozen=True)
class KeyframeAdded(InputEvent):
    name: ClassVar[str] = "KeyframeAdded"
    track: int = 0
    keyframe: Optional[Keyframe] = None


@dataclass(frozen=True)
class KeyframeRemoved(InputEvent):
    name: ClassVar[str] = "KeyframeRemoved"
    track: int = 0
    keyframe: Optional[Keyframe] = None


@dataclass(frozen=True)
class KeyframeEnableChanged(InputEvent):
    name: ClassVar[str] = "KeyframeEnableChanged"
    enabled: bool = False


@dataclass(frozen=True)
class InputConnected(InputEvent):
    name: ClassVar[str] = "InputConnected"
    source_id: str = ""


@dataclass(frozen=True)
class InputDisconnected(InputEvent):
    name: ClassVar[str] = "InputDisconnected"
    source_id: str = ""


@dataclass(frozen=True)
class ArraySizeChanged(InputEvent):
    name: ClassVar[str] = "ArraySizeChanged"
    old_size: int = 0
    new_size: int = 0


Handler = Callable[[Any], None]


class EventBus:
    """
    Synchronous publish/subscribe hub.

    Usage:
        bus = EventBus()
        bus.subscribe(ValueChanged, on_value_changed)
        bus.subscribe(ANY_EVENT, on_anything)
        bus.publish(ValueChanged(node_id="transform", key=ElementKey("opacity")))
    """

    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}
        self._lock = Lock()

    @staticmethod
    def _normalize_event_name(event: Union[str, Type[InputEvent]]) -> str:
        if isinstance(event, str):
            return event
        return event.name

    def subscribe(self, event: Union[str, Type[InputEvent]], handler: Handler) -> None:
        event_name = self._normalize_event_name(event)
        with self._lock:
            handlers = self._subscribers.setdefault(event_name, [])
            if handler not in handlers:
                handlers.append(handler)

    def unsubscribe(self, event: Union[str, Type[InputEvent]], handler: Handler) -> None:
        event_name = self._normalize_event_name(event)
        with self._lock:
            handlers = self._subscribers.get(event_name)
            if handlers and handler in handlers:
                handlers.remove(handler)
                if not handlers:
                    del self._subscribers[event_name]

    def publish(self, event: InputEvent) -> None:
        with self._lock:
            handlers = list(self._subscribers.get(event.name, []))
            handlers += self._subscribers.get(ANY_EVENT, [])
        if not handlers:
            return
        logger.debug("Publishing %s for %s/%s to %d handlers", event.name, event.node_id, event.key, len(handlers))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Error in handler %r for %s", handler, event.name)

    def subscriber_count(self, event: Union[str, Type[InputEvent]]) -> int:
        with self._lock:
            return len(self._subscribers.get(self._normalize_event_name(event), []))
