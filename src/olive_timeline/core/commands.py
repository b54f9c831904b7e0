"""
Parameter edit commands.

Every user edit of a node input goes through one of these. Each command
keeps the records it needs to revert itself by value: keyframes are
addressed by (input, element, track, time), never by object identity, so a
keyframe removed and later restored by undo is an equal record in the same
place.
"""
from typing import Any, Dict, Optional, Tuple

from olive_timeline.core.errors import InputFlagViolation, KeyframeNotFound
from olive_timeline.core.events import KeyframeAdded, KeyframeRemoved
from olive_timeline.core.models import Interpolation, Keyframe
from olive_timeline.core.node import ElementState, Node, NodeInput, Project, RemovedElement, StandardValue
from olive_timeline.core.rational import Rational, RationalLike
from olive_timeline.core.undo import UndoCommand


def _rational(time: RationalLike) -> Rational:
    return time if isinstance(time, Rational) else Rational(time)


class InputCommand(UndoCommand):
    def __init__(self, node_input: NodeInput, element: Optional[int], description: str):
        super().__init__(description)
        self.input = node_input
        self.element = element

    def get_relevant_project(self) -> Project:
        return self.input.node.project


class SetKeyframingCommand(InputCommand):
    """Redo: switch an element to or from keyframes. Undo: put the old state back.

    Disabling keeps the value at ``time`` unless ``value`` is given.
    """

    def __init__(
        self,
        node_input: NodeInput,
        enabled: bool,
        element: Optional[int] = None,
        time: RationalLike = 0,
        interpolation: Optional[Interpolation] = None,
        value: Any = None,
    ):
        verb = "Enable" if enabled else "Disable"
        super().__init__(node_input, element, f"{verb} keyframing on {node_input.id}")
        self.enabled = enabled
        self.time = _rational(time)
        self.interpolation = interpolation
        self.value = value
        self._old_state: Optional[ElementState] = None
        self._new_state: Optional[ElementState] = None

    def _redo(self) -> None:
        if self._new_state is None:
            self._old_state = self.input.set_keyframing(
                self.enabled, self.element, self.time, self.interpolation, self.value
            )
            self._new_state = self.input.get_state(self.element)
        else:
            self.input.set_state(self._new_state, self.element)

    def _undo(self) -> None:
        self.input.set_state(self._old_state, self.element)


class InsertKeyframeCommand(InputCommand):
    """Redo: insert a keyframe, replacing any at the same time. Undo: restore what was there."""

    def __init__(self, node_input: NodeInput, track: int, keyframe: Keyframe, element: Optional[int] = None):
        super().__init__(node_input, element, f"Add keyframe to {node_input.id} at {keyframe.time}")
        self.track = track
        self.keyframe = keyframe
        self._replaced: Optional[Keyframe] = None

    def _redo(self) -> None:
        self._replaced = self.input.insert_keyframe(self.track, self.keyframe, self.element)

    def _undo(self) -> None:
        if self._replaced is not None:
            self.input.insert_keyframe(self.track, self._replaced, self.element)
        else:
            self.input.remove_keyframe(self.track, self.keyframe.time, self.element)


class RemoveKeyframeCommand(InputCommand):
    """
    Redo: detach the keyframe at ``time``. Undo: reinsert the same record.

    With ``auto_disable`` set, removing the last keyframe of the last
    non-empty track also turns keyframing off, keeping the value the element
    had at ``time``. That switch publishes ``KeyframeEnableChanged``.
    """

    def __init__(
        self,
        node_input: NodeInput,
        track: int,
        time: RationalLike,
        element: Optional[int] = None,
        auto_disable: bool = False,
    ):
        super().__init__(node_input, element, f"Remove keyframe from {node_input.id} at {time}")
        self.track = track
        self.time = _rational(time)
        self.auto_disable = auto_disable
        self.removed: Optional[Keyframe] = None
        self._keyframed_state: Optional[ElementState] = None

    def _is_last_keyframe(self) -> bool:
        tracks = self.input.get_keyframe_tracks(self.element)
        return sum(len(track) for track in tracks) == 1

    def _redo(self) -> None:
        if self.auto_disable and self._is_last_keyframe():
            keyframe = self.input.keyframe_at(self.track, self.time, self.element)
            if keyframe is None:
                raise KeyframeNotFound(f"No keyframe at time {self.time} on {self.input.id}")
            value = self.input.value_at(self.time, self.element)
            self._keyframed_state = self.input.get_state(self.element)
            # The track inside the saved state keeps the keyframe for undo.
            self.input.set_state(StandardValue(self.input.value_type.split(value)), self.element)
            self.input.node.project.events.publish(
                KeyframeRemoved(self.input.node.id, self.input.key(self.element), self.track, keyframe)
            )
            self.removed = keyframe
            return
        self._keyframed_state = None
        self.removed = self.input.remove_keyframe(self.track, self.time, self.element)

    def _undo(self) -> None:
        if self._keyframed_state is not None:
            self.input.set_state(self._keyframed_state, self.element)
            self.input.node.project.events.publish(
                KeyframeAdded(self.input.node.id, self.input.key(self.element), self.track, self.removed)
            )
        else:
            self.input.insert_keyframe(self.track, self.removed, self.element)


class SetKeyframeTimeCommand(InputCommand):
    """Redo: move a keyframe to ``new_time``. Undo: move it back and restore any key it landed on."""

    def __init__(
        self,
        node_input: NodeInput,
        track: int,
        old_time: RationalLike,
        new_time: RationalLike,
        element: Optional[int] = None,
    ):
        super().__init__(node_input, element, f"Move keyframe on {node_input.id} to {new_time}")
        self.track = track
        self.old_time = _rational(old_time)
        self.new_time = _rational(new_time)
        self._original: Optional[Keyframe] = None
        self._displaced: Tuple[Keyframe, ...] = ()

    def _redo(self) -> None:
        original = self.input.keyframe_at(self.track, self.old_time, self.element)
        if original is None:
            raise KeyframeNotFound(f"No keyframe at time {self.old_time} on {self.input.id}")
        _, self._displaced = self.input.edit_keyframes(
            self.track, remove=(self.old_time,), insert=(original.with_time(self.new_time),), element=self.element
        )
        self._original = original

    def _undo(self) -> None:
        self.input.edit_keyframes(
            self.track,
            remove=(self.new_time,),
            insert=(self._original,) + self._displaced,
            element=self.element,
        )


class SetKeyframeValueCommand(InputCommand):
    def __init__(
        self,
        node_input: NodeInput,
        track: int,
        time: RationalLike,
        new_value: Any,
        element: Optional[int] = None,
    ):
        super().__init__(node_input, element, f"Set keyframe value on {node_input.id} at {time}")
        self.track = track
        self.time = _rational(time)
        self.new_value = new_value
        self._original: Optional[Keyframe] = None

    def _redo(self) -> None:
        original = self.input.keyframe_at(self.track, self.time, self.element)
        if original is None:
            raise KeyframeNotFound(f"No keyframe at time {self.time} on {self.input.id}")
        self.input.insert_keyframe(self.track, original.with_value(self.new_value), self.element)
        self._original = original

    def _undo(self) -> None:
        self.input.insert_keyframe(self.track, self._original, self.element)


class SetStandardValueCommand(InputCommand):
    """Set the non-keyframed value of an element, or of one component ``track`` of it."""

    def __init__(
        self,
        node_input: NodeInput,
        value: Any,
        element: Optional[int] = None,
        track: Optional[int] = None,
    ):
        super().__init__(node_input, element, f"Set {node_input.id}")
        self.value = value
        self.track = track
        self._old_state: Optional[ElementState] = None

    def _redo(self) -> None:
        old_state = self.input.get_state(self.element)
        if self.track is None:
            self.input.set_standard_value(self.value, self.element)
        else:
            self.input.set_split_standard_value(self.track, self.value, self.element)
        self._old_state = old_state

    def _undo(self) -> None:
        self.input.set_state(self._old_state, self.element)


class ArrayResizeCommand(InputCommand):
    def __init__(self, node_input: NodeInput, size: int):
        super().__init__(node_input, None, f"Resize {node_input.id} to {size}")
        self.size = size
        self._old_size = 0
        self._removed: Dict[int, RemovedElement] = {}

    def _redo(self) -> None:
        old_size = self.input.array_size()
        self._removed = self.input.array_resize(self.size)
        self._old_size = old_size

    def _undo(self) -> None:
        self.input.array_resize(self._old_size, restore=self._removed)


class ConnectInputCommand(InputCommand):
    def __init__(self, node_input: NodeInput, source: Node, element: Optional[int] = None):
        super().__init__(node_input, element, f"Connect {source.id} to {node_input.id}")
        if source.project is not node_input.node.project:
            raise InputFlagViolation(f"Node '{source.id}' belongs to another project")
        self.source = source
        self._previous: Optional[Node] = None

    def _redo(self) -> None:
        self._previous = self.input.connect(self.source, self.element)

    def _undo(self) -> None:
        if self._previous is not None:
            self.input.connect(self._previous, self.element)
        else:
            self.input.disconnect(self.element)


class DisconnectInputCommand(InputCommand):
    def __init__(self, node_input: NodeInput, element: Optional[int] = None):
        super().__init__(node_input, element, f"Disconnect {node_input.id}")
        self._source: Optional[Node] = None

    def _redo(self) -> None:
        self._source = self.input.disconnect(self.element)

    def _undo(self) -> None:
        self.input.connect(self._source, self.element)
