from typing import List, Optional

from olive_timeline.core.models import ValidationError
from olive_timeline.core.node import Keyframed, NodeInput, Project, StandardValue
from olive_timeline.core.timerange import TimeRangeList


class ProjectValidator:
    """Checks the parameter model of a project against its structural invariants."""

    def __init__(self, project: Project):
        self.project = project
        self.errors: List[ValidationError] = []
        self.warnings: List[ValidationError] = []

    def validate_all(self) -> List[ValidationError]:
        self.errors = []
        self.warnings = []
        for node in self.project.nodes():
            for node_input in node.inputs():
                self._validate_input(node_input)
        return self.errors + self.warnings

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def _error(self, message: str, element_type: str = "input", element_id: str = "") -> None:
        self.errors.append(
            ValidationError(
                severity="error",
                message=message,
                element_type=element_type,
                element_id=element_id or None,
            )
        )

    def _warning(self, message: str, element_type: str = "input", element_id: str = "") -> None:
        self.warnings.append(
            ValidationError(
                severity="warning",
                message=message,
                element_type=element_type,
                element_id=element_id or None,
            )
        )

    @staticmethod
    def _elements(node_input: NodeInput) -> List[Optional[int]]:
        if node_input.is_array:
            return list(range(node_input.array_size()))
        return [None]

    def _validate_input(self, node_input: NodeInput) -> None:
        ref = f"{node_input.node.id}.{node_input.id}"
        for element in self._elements(node_input):
            label = ref if element is None else f"{ref}[{element}]"
            state = node_input.get_state(element)
            if isinstance(state, StandardValue):
                if len(state.components) != node_input.track_count:
                    self._error(
                        f"'{label}' has {len(state.components)} standard components, expected {node_input.track_count}",
                        element_id=label,
                    )
            elif isinstance(state, Keyframed):
                self._validate_tracks(node_input, state, label)
            else:
                self._error(f"'{label}' has unknown state {type(state).__name__}", element_id=label)

            source = node_input.connected_node(element)
            if source is not None:
                if not node_input.is_connectable:
                    self._error(f"'{label}' is connected but not connectable", element_id=label)
                if source.project is not self.project:
                    self._error(f"'{label}' is connected to node '{source.id}' of another project", element_id=label)

    def _validate_tracks(self, node_input: NodeInput, state: Keyframed, label: str) -> None:
        if not node_input.is_keyframable:
            self._error(f"'{label}' is keyframed but not keyframable", element_id=label)
        if len(state.tracks) != node_input.track_count:
            self._error(
                f"'{label}' has {len(state.tracks)} keyframe tracks, expected {node_input.track_count}",
                element_id=label,
            )
        for index, track in enumerate(state.tracks):
            keys = track.keyframes
            for prev, curr in zip(keys, keys[1:]):
                if not prev.time < curr.time:
                    self._error(
                        f"'{label}' track {index} has keyframes out of order at {prev.time} and {curr.time}",
                        "track",
                        label,
                    )
        if all(not track for track in state.tracks):
            self._warning(f"'{label}' is keyframed with no keyframes", "track", label)

    def validate_ranges(self, ranges: TimeRangeList, owner: str = "ranges") -> List[ValidationError]:
        """Check that a range list is sorted, non-empty per entry, and fully merged."""
        found: List[ValidationError] = []
        entries = list(ranges)
        for entry in entries:
            if entry.is_empty():
                found.append(ValidationError("error", f"Empty range {entry!r} stored", "range", owner))
        for prev, curr in zip(entries, entries[1:]):
            if not prev.out_point < curr.in_point:
                found.append(
                    ValidationError("error", f"Ranges {prev!r} and {curr!r} overlap or touch", "range", owner)
                )
        self.errors.extend(found)
        return found
