import logging
from typing import Any, Dict, List, Optional

from olive_timeline.config import get_settings
from olive_timeline.core.commands import (
    ArrayResizeCommand,
    ConnectInputCommand,
    DisconnectInputCommand,
    InsertKeyframeCommand,
    RemoveKeyframeCommand,
    SetKeyframeTimeCommand,
    SetKeyframeValueCommand,
    SetKeyframingCommand,
    SetStandardValueCommand,
)
from olive_timeline.core.errors import InputFlagViolation, KeyframeNotFound
from olive_timeline.core.models import BezierHandle, Interpolation, Keyframe
from olive_timeline.core.node import NodeInput, Project
from olive_timeline.core.rational import Rational, RationalLike
from olive_timeline.core.undo import CommandStack, MultiUndoCommand, UndoCommand

logger = logging.getLogger(__name__)


def _rational(time: RationalLike) -> Rational:
    return time if isinstance(time, Rational) else Rational(time)


class StackRegistry:
    """Routes each command to the undo stack of the project it reports."""

    def __init__(self):
        self._stacks: Dict[int, CommandStack] = {}

    def stack_for(self, project: Project) -> CommandStack:
        stack = self._stacks.get(id(project))
        if stack is None or stack.project is not project:
            stack = CommandStack(project)
            self._stacks[id(project)] = stack
        return stack

    def execute(self, command: UndoCommand) -> UndoCommand:
        return self.stack_for(command.get_relevant_project()).execute(command)

    def close(self, project: Project) -> None:
        self._stacks.pop(id(project), None)

    def __len__(self) -> int:
        return len(self._stacks)


class ParameterAPI:
    """Edit facade for one project: builds commands, applies them, and pushes them."""

    def __init__(self, project: Project, stack: Optional[CommandStack] = None):
        self.project = project
        self.stack = stack or CommandStack(project)

    def get_input(self, node_id: str, input_id: str) -> NodeInput:
        return self.project.node(node_id).input(input_id)

    def value_at(self, node_id: str, input_id: str, time: RationalLike, element: Optional[int] = None) -> Any:
        return self.get_input(node_id, input_id).value_at(time, element)

    def list_keyframes(self, node_id: str, input_id: str, element: Optional[int] = None) -> List[List[Keyframe]]:
        tracks = self.get_input(node_id, input_id).get_keyframe_tracks(element)
        return [list(track.keyframes) for track in tracks]

    def _run(self, description: str, commands: List[UndoCommand]) -> UndoCommand:
        if len(commands) == 1:
            command = commands[0]
            command.description = description or command.description
        else:
            command = MultiUndoCommand(description, commands)
        logger.debug("Executing '%s' on %r", command.description, self.project)
        return self.stack.execute(command)

    def set_value(
        self,
        node_id: str,
        input_id: str,
        value: Any,
        time: RationalLike = 0,
        element: Optional[int] = None,
    ) -> UndoCommand:
        """Set a value the way a parameter widget does.

        A keyframed element gets a keyframe at ``time`` on every component
        track, updating keys already there; otherwise the standard value is
        replaced.
        """
        node_input = self.get_input(node_id, input_id)
        time = _rational(time)
        if not node_input.is_keyframed(element):
            return self._run(f"Set {input_id}", [SetStandardValueCommand(node_input, value, element)])

        commands: List[UndoCommand] = []
        for track, component in enumerate(node_input.value_type.split(value)):
            if node_input.keyframe_at(track, time, element) is not None:
                commands.append(SetKeyframeValueCommand(node_input, track, time, component, element))
            else:
                mode = self._neighbour_interpolation(node_input, track, time, element)
                commands.append(InsertKeyframeCommand(node_input, track, Keyframe(time, component, mode), element))
        return self._run(f"Set {input_id} at {time}", commands)

    @staticmethod
    def _neighbour_interpolation(
        node_input: NodeInput, track: int, time: Rational, element: Optional[int]
    ) -> Interpolation:
        keys = node_input.get_keyframe_tracks(element)[track].keyframes
        before = [k for k in keys if k.time < time]
        if before:
            return before[-1].interpolation
        if keys:
            return keys[0].interpolation
        return get_settings().default_interpolation

    def set_keyframing(
        self,
        node_id: str,
        input_id: str,
        enabled: bool,
        time: RationalLike = 0,
        element: Optional[int] = None,
    ) -> UndoCommand:
        node_input = self.get_input(node_id, input_id)
        return self._run("", [SetKeyframingCommand(node_input, enabled, element, time)])

    def add_keyframe(
        self,
        node_id: str,
        input_id: str,
        time: RationalLike,
        value: Any,
        interpolation: Optional[Interpolation] = None,
        element: Optional[int] = None,
        bezier_in: Optional[BezierHandle] = None,
        bezier_out: Optional[BezierHandle] = None,
    ) -> UndoCommand:
        """Add one keyframe per component track at ``time``, enabling keyframing first if needed."""
        node_input = self.get_input(node_id, input_id)
        if not node_input.is_keyframable:
            raise InputFlagViolation(f"Input '{input_id}' is not keyframable")
        time = _rational(time)
        mode = interpolation or get_settings().default_interpolation
        commands: List[UndoCommand] = []
        if not node_input.is_keyframed(element):
            commands.append(SetKeyframingCommand(node_input, True, element, time, mode))
        for track, component in enumerate(node_input.value_type.split(value)):
            keyframe = Keyframe(
                time,
                component,
                mode,
                bezier_in=bezier_in or BezierHandle(),
                bezier_out=bezier_out or BezierHandle(),
            )
            commands.append(InsertKeyframeCommand(node_input, track, keyframe, element))
        return self._run(f"Add keyframe to {input_id} at {time}", commands)

    def remove_keyframes_at(
        self,
        node_id: str,
        input_id: str,
        time: RationalLike,
        element: Optional[int] = None,
        auto_disable: bool = False,
    ) -> UndoCommand:
        """Remove the keyframe at ``time`` from every component track.

        With ``auto_disable`` set and no other keyframes left, keyframing is
        turned off as part of the same step, keeping the value the element
        had at ``time`` before any key was removed.
        """
        node_input = self.get_input(node_id, input_id)
        time = _rational(time)
        tracks = node_input.get_keyframe_tracks(element)
        commands: List[UndoCommand] = [
            RemoveKeyframeCommand(node_input, track, time, element)
            for track, keys in enumerate(tracks)
            if keys.keyframe_at(time) is not None
        ]
        if not commands:
            raise KeyframeNotFound(f"No keyframes at {time} on {node_id}.{input_id}")
        if auto_disable and sum(len(keys) for keys in tracks) == len(commands):
            value = node_input.value_at(time, element)
            commands.append(SetKeyframingCommand(node_input, False, element, time, value=value))
        return self._run(f"Remove keyframes from {input_id} at {time}", commands)

    def move_keyframe(
        self,
        node_id: str,
        input_id: str,
        track: int,
        old_time: RationalLike,
        new_time: RationalLike,
        element: Optional[int] = None,
    ) -> UndoCommand:
        node_input = self.get_input(node_id, input_id)
        return self._run("", [SetKeyframeTimeCommand(node_input, track, old_time, new_time, element)])

    def resize_array(self, node_id: str, input_id: str, size: int) -> UndoCommand:
        if size < 0:
            raise ValueError("size must be >= 0")
        node_input = self.get_input(node_id, input_id)
        return self._run("", [ArrayResizeCommand(node_input, size)])

    def connect(self, source_id: str, node_id: str, input_id: str, element: Optional[int] = None) -> UndoCommand:
        source = self.project.node(source_id)
        node_input = self.get_input(node_id, input_id)
        return self._run("", [ConnectInputCommand(node_input, source, element)])

    def disconnect(self, node_id: str, input_id: str, element: Optional[int] = None) -> UndoCommand:
        node_input = self.get_input(node_id, input_id)
        return self._run("", [DisconnectInputCommand(node_input, element)])

    def undo(self) -> bool:
        return self.stack.undo()

    def redo(self) -> bool:
        return self.stack.redo()
