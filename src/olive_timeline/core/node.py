import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from olive_timeline.config import get_settings
from olive_timeline.core.errors import InputFlagViolation, InvalidElement, UnknownInput
from olive_timeline.core.events import (
    ArraySizeChanged,
    EventBus,
    InputConnected,
    InputDisconnected,
    KeyframeAdded,
    KeyframeEnableChanged,
    KeyframeRemoved,
    ValueChanged,
)
from olive_timeline.core.keyframe_track import KeyframeTrack
from olive_timeline.core.models import ElementKey, InputFlag, Interpolation, Keyframe, ValueType
from olive_timeline.core.rational import Rational, RationalLike
from olive_timeline.core.timerange import TimeRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StandardValue:
    components: Tuple[Any, ...]


@dataclass(frozen=True)
class Keyframed:
    tracks: Tuple[KeyframeTrack, ...]


ElementState = Union[StandardValue, Keyframed]
RemovedElement = Tuple[ElementState, Optional["Node"]]


class Project:
    """Top-level document. Owns nodes and the event bus their inputs publish on."""

    def __init__(self, name: str = "Untitled"):
        self.name = name
        self.events = EventBus()
        self._nodes: Dict[str, "Node"] = {}

    def add_node(self, node_id: str, label: str = "") -> "Node":
        if node_id in self._nodes:
            raise ValueError(f"Node '{node_id}' already exists in project '{self.name}'")
        node = Node(self, node_id, label)
        self._nodes[node_id] = node
        return node

    def node(self, node_id: str) -> "Node":
        found = self._nodes.get(node_id)
        if found is None:
            raise UnknownInput(f"Node '{node_id}' not found in project '{self.name}'")
        return found

    def nodes(self) -> List["Node"]:
        return list(self._nodes.values())

    def __repr__(self) -> str:
        return f"Project({self.name!r})"


class Node:
    def __init__(self, project: Project, node_id: str, label: str = ""):
        self.project = project
        self.id = node_id
        self.label = label
        self._inputs: Dict[str, NodeInput] = {}

    def add_input(
        self,
        input_id: str,
        value_type: ValueType,
        default: Any = None,
        flags: InputFlag = InputFlag.NONE,
        array_size: int = 0,
    ) -> "NodeInput":
        if input_id in self._inputs:
            raise ValueError(f"Input '{input_id}' already exists on node '{self.id}'")
        node_input = NodeInput(self, input_id, value_type, default, flags, array_size)
        self._inputs[input_id] = node_input
        return node_input

    def input(self, input_id: str) -> "NodeInput":
        found = self._inputs.get(input_id)
        if found is None:
            raise UnknownInput(f"Input '{input_id}' not found on node '{self.id}'")
        return found

    def has_input(self, input_id: str) -> bool:
        return input_id in self._inputs

    def inputs(self) -> List["NodeInput"]:
        return list(self._inputs.values())

    def set_input_name(self, input_id: str, name: str) -> None:
        self.input(input_id).name = name

    def __repr__(self) -> str:
        return f"Node({self.id!r})"


class NodeInput:
    """A parameter slot on a node.

    Each element (the whole input, or one array slot) holds either a
    ``StandardValue`` or a ``Keyframed`` set of component tracks. Mutators
    swap the element's state in a single assignment and then publish an
    event on the project bus.
    """

    def __init__(
        self,
        node: Node,
        input_id: str,
        value_type: ValueType,
        default: Any = None,
        flags: InputFlag = InputFlag.NONE,
        array_size: int = 0,
    ):
        self.node = node
        self.id = input_id
        self.name = input_id
        self.value_type = value_type
        self.flags = flags
        self.default = value_type.default() if default is None else default
        self._default_components = value_type.split(self.default)
        self._elements: Dict[Optional[int], ElementState] = {}
        self._connections: Dict[Optional[int], Node] = {}
        if self.is_array:
            for index in range(array_size):
                self._elements[index] = StandardValue(self._default_components)
        else:
            if array_size:
                raise InputFlagViolation(f"Input '{input_id}' is not an array")
            self._elements[None] = StandardValue(self._default_components)

    @property
    def is_array(self) -> bool:
        return bool(self.flags & InputFlag.ARRAY)

    @property
    def is_keyframable(self) -> bool:
        return not self.flags & InputFlag.NOT_KEYFRAMABLE

    @property
    def is_connectable(self) -> bool:
        return not self.flags & InputFlag.NOT_CONNECTABLE

    @property
    def track_count(self) -> int:
        return self.value_type.track_count

    def key(self, element: Optional[int] = None) -> ElementKey:
        return ElementKey(self.id, element)

    def _publish(self, event) -> None:
        self.node.project.events.publish(event)

    def _state(self, element: Optional[int]) -> ElementState:
        try:
            return self._elements[element]
        except KeyError:
            if element is None:
                raise InvalidElement(f"Array input '{self.id}' needs an element index") from None
            raise InvalidElement(
                f"Element {element} out of range for input '{self.id}' (size {self.array_size()})"
            ) from None

    def _check_track(self, track: int) -> None:
        if not 0 <= track < self.track_count:
            raise InvalidElement(f"Track {track} out of range for {self.value_type.label} input '{self.id}'")

    # State

    def get_state(self, element: Optional[int] = None) -> ElementState:
        return self._state(element)

    def set_state(self, state: ElementState, element: Optional[int] = None) -> None:
        """Replace an element's whole state, e.g. when a command restores it."""
        previous = self._state(element)
        self._elements[element] = state
        if isinstance(previous, Keyframed) != isinstance(state, Keyframed):
            self._publish(KeyframeEnableChanged(self.node.id, self.key(element), isinstance(state, Keyframed)))
        self._publish(ValueChanged(self.node.id, self.key(element)))

    # Values

    def is_keyframed(self, element: Optional[int] = None) -> bool:
        return isinstance(self._state(element), Keyframed)

    def get_keyframe_tracks(self, element: Optional[int] = None) -> Tuple[KeyframeTrack, ...]:
        state = self._state(element)
        if isinstance(state, Keyframed):
            return state.tracks
        return ()

    def get_standard_value(self, element: Optional[int] = None) -> Any:
        """Return the standard value, or None while the element is keyframed."""
        state = self._state(element)
        if isinstance(state, Keyframed):
            return None
        return self.value_type.combine(state.components)

    def set_standard_value(self, value: Any, element: Optional[int] = None) -> None:
        state = self._state(element)
        if isinstance(state, Keyframed):
            raise InputFlagViolation(f"Input '{self.id}' is keyframed; set a keyframe instead")
        self._elements[element] = StandardValue(self.value_type.split(value))
        self._publish(ValueChanged(self.node.id, self.key(element)))

    def set_split_standard_value(self, track: int, value: Any, element: Optional[int] = None) -> None:
        self._check_track(track)
        state = self._state(element)
        if isinstance(state, Keyframed):
            raise InputFlagViolation(f"Input '{self.id}' is keyframed; set a keyframe instead")
        components = list(state.components)
        components[track] = value
        self._elements[element] = StandardValue(tuple(components))
        self._publish(ValueChanged(self.node.id, self.key(element)))

    def value_at(self, time: RationalLike, element: Optional[int] = None) -> Any:
        if element is None and self.is_array:
            return [self.value_at(time, index) for index in range(self.array_size())]
        state = self._state(element)
        if isinstance(state, StandardValue):
            return self.value_type.combine(state.components)
        components = tuple(
            track.value_at(time, fallback=self._default_components[index])
            for index, track in enumerate(state.tracks)
        )
        return self.value_type.combine(components)

    # Keyframing

    def set_keyframing(
        self,
        enabled: bool,
        element: Optional[int] = None,
        time: RationalLike = 0,
        interpolation: Optional[Interpolation] = None,
        value: Any = None,
    ) -> ElementState:
        """Convert between a standard value and keyframe tracks, keeping the value.

        Enabling seeds every component track with one keyframe at ``time``;
        disabling keeps the value the tracks evaluate to at ``time``, or
        ``value`` when given. Returns the previous state.
        """
        if enabled and not self.is_keyframable:
            raise InputFlagViolation(f"Input '{self.id}' is not keyframable")
        previous = self._state(element)
        if isinstance(previous, Keyframed) == enabled:
            return previous
        time = time if isinstance(time, Rational) else Rational(time)
        if enabled:
            mode = interpolation or get_settings().default_interpolation
            tracks = tuple(
                KeyframeTrack(self.value_type, [Keyframe(time, component, mode)])
                for component in previous.components
            )
            new_state: ElementState = Keyframed(tracks)
        else:
            kept = self.value_at(time, element) if value is None else value
            new_state = StandardValue(self.value_type.split(kept))
        self._elements[element] = new_state
        logger.debug("Keyframing %s on %s/%s", "enabled" if enabled else "disabled", self.node.id, self.key(element))
        self._publish(KeyframeEnableChanged(self.node.id, self.key(element), enabled))
        self._publish(ValueChanged(self.node.id, self.key(element)))
        return previous

    def _track(self, track: int, element: Optional[int]) -> KeyframeTrack:
        self._check_track(track)
        state = self._state(element)
        if not isinstance(state, Keyframed):
            raise InputFlagViolation(f"Input '{self.id}' is not keyframed")
        return state.tracks[track]

    def _affected_range(self, track: KeyframeTrack, *times: Rational) -> Optional[TimeRange]:
        # The span between the neighbours of the touched keys changes; past the
        # first or last key the value is clamped, so everything changes.
        keys = track.keyframes
        low, high = min(times), max(times)
        before = [k.time for k in keys if k.time < low]
        after = [k.time for k in keys if k.time > high]
        if not before or not after:
            return None
        return TimeRange(before[-1], after[0])

    def edit_keyframes(
        self,
        track: int,
        remove: Iterable[RationalLike] = (),
        insert: Iterable[Keyframe] = (),
        element: Optional[int] = None,
    ) -> Tuple[Tuple[Keyframe, ...], Tuple[Keyframe, ...]]:
        """Apply removals then insertions to one track as a single change.

        Returns ``(removed, replaced)`` as ``KeyframeTrack.edit`` does.
        """
        target = self._track(track, element)
        insert = tuple(insert)
        remove = tuple(remove)
        removed, replaced = target.edit(remove, insert)
        key = self.key(element)
        for keyframe in removed + replaced:
            self._publish(KeyframeRemoved(self.node.id, key, track, keyframe))
        for keyframe in insert:
            self._publish(KeyframeAdded(self.node.id, key, track, keyframe))
        touched = [k.time for k in removed + insert]
        if touched:
            self._publish(ValueChanged(self.node.id, key, self._affected_range(target, *touched)))
        return removed, replaced

    def insert_keyframe(self, track: int, keyframe: Keyframe, element: Optional[int] = None) -> Optional[Keyframe]:
        """Insert a keyframe; one already at the same time is replaced and returned."""
        _, replaced = self.edit_keyframes(track, insert=(keyframe,), element=element)
        return replaced[0] if replaced else None

    def remove_keyframe(self, track: int, time: RationalLike, element: Optional[int] = None) -> Keyframe:
        removed, _ = self.edit_keyframes(track, remove=(time,), element=element)
        return removed[0]

    def keyframe_at(self, track: int, time: RationalLike, element: Optional[int] = None) -> Optional[Keyframe]:
        return self._track(track, element).keyframe_at(time)

    def all_tracks_empty(self, element: Optional[int] = None) -> bool:
        return all(not track for track in self.get_keyframe_tracks(element))

    # Arrays

    def array_size(self) -> int:
        if not self.is_array:
            return 0
        return sum(1 for index in self._elements if index is not None)

    def array_resize(
        self, size: int, restore: Optional[Dict[int, RemovedElement]] = None
    ) -> Dict[int, RemovedElement]:
        """Grow with default elements or shrink from the end.

        Returns the state and connection of every removed element. Passing
        such a mapping back as ``restore`` while growing puts those elements
        back instead of defaults.
        """
        if not self.is_array:
            raise InputFlagViolation(f"Input '{self.id}' is not an array")
        if size < 0:
            raise InvalidElement(f"Array size must be >= 0, got {size}")
        restore = restore or {}
        old_size = self.array_size()
        removed: Dict[int, RemovedElement] = {}
        elements = dict(self._elements)
        connections = dict(self._connections)
        for index in range(size, old_size):
            removed[index] = (elements.pop(index), connections.pop(index, None))
        for index in range(old_size, size):
            state, source = restore.get(index, (StandardValue(self._default_components), None))
            elements[index] = state
            if source is not None:
                connections[index] = source
        self._elements, self._connections = elements, connections
        if old_size != size:
            self._publish(ArraySizeChanged(self.node.id, self.key(), old_size, size))
            self._publish(ValueChanged(self.node.id, self.key()))
        return removed

    # Connections

    def is_connected(self, element: Optional[int] = None) -> bool:
        return element in self._connections

    def connected_node(self, element: Optional[int] = None) -> Optional[Node]:
        return self._connections.get(element)

    def connect(self, source: Node, element: Optional[int] = None) -> Optional[Node]:
        """Connect ``source`` to an element, returning the node it replaced, if any."""
        if not self.is_connectable:
            raise InputFlagViolation(f"Input '{self.id}' is not connectable")
        if element is not None or not self.is_array:
            self._state(element)
        if source.project is not self.node.project:
            raise InputFlagViolation(f"Node '{source.id}' belongs to another project")
        previous = self._connections.get(element)
        self._connections[element] = source
        if previous is not None:
            self._publish(InputDisconnected(self.node.id, self.key(element), previous.id))
        self._publish(InputConnected(self.node.id, self.key(element), source.id))
        self._publish(ValueChanged(self.node.id, self.key(element)))
        return previous

    def disconnect(self, element: Optional[int] = None) -> Node:
        source = self._connections.pop(element, None)
        if source is None:
            raise InvalidElement(f"Input '{self.id}' element {element} is not connected")
        self._publish(InputDisconnected(self.node.id, self.key(element), source.id))
        self._publish(ValueChanged(self.node.id, self.key(element)))
        return source

    def __repr__(self) -> str:
        return f"NodeInput({self.node.id!r}, {self.id!r}, {self.value_type.label})"
