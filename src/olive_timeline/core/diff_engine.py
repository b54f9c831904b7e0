import json
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from olive_timeline.core.models import Keyframe
from olive_timeline.core.node import Keyframed, Project

ElementId = Tuple[str, str, Optional[int]]


def _keyframe_dict(keyframe: Keyframe) -> Dict[str, Any]:
    return {
        "time": str(keyframe.time),
        "value": _jsonable(keyframe.value),
        "interpolation": keyframe.interpolation.value,
        "bezierIn": [str(keyframe.bezier_in.time), keyframe.bezier_in.value],
        "bezierOut": [str(keyframe.bezier_out.time), keyframe.bezier_out.value],
    }


def _jsonable(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    return str(value)


@dataclass(frozen=True)
class ElementSnapshot:
    keyframed: bool
    standard: Tuple[Any, ...] = ()
    tracks: Tuple[Tuple[Keyframe, ...], ...] = ()
    connected_to: Optional[str] = None


class ProjectSnapshot:
    """Value copy of every input element of a project at one moment."""

    def __init__(self, project: Project):
        self.project_name = project.name
        self.elements: Dict[ElementId, ElementSnapshot] = {}
        for node in project.nodes():
            for node_input in node.inputs():
                indices = range(node_input.array_size()) if node_input.is_array else [None]
                for element in indices:
                    state = node_input.get_state(element)
                    source = node_input.connected_node(element)
                    source_id = source.id if source is not None else None
                    if isinstance(state, Keyframed):
                        snap = ElementSnapshot(
                            keyframed=True,
                            tracks=tuple(track.keyframes for track in state.tracks),
                            connected_to=source_id,
                        )
                    else:
                        snap = ElementSnapshot(keyframed=False, standard=state.components, connected_to=source_id)
                    self.elements[(node.id, node_input.id, element)] = snap

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ProjectSnapshot):
            return NotImplemented
        return self.elements == other.elements


@dataclass
class ElementChange:
    change_type: str
    node_id: str
    input_id: str
    element: Optional[int] = None
    track: Optional[int] = None
    keyframes: List[Dict[str, Any]] = field(default_factory=list)
    old_value: Any = None
    new_value: Any = None


@dataclass
class DiffSummary:
    source: str
    target: str
    added: List[ElementChange]
    removed: List[ElementChange]
    values: List[ElementChange]
    keyframing: List[ElementChange]
    keyframes: List[ElementChange]
    connections: List[ElementChange]

    @property
    def total_changes(self) -> int:
        return (
            len(self.added)
            + len(self.removed)
            + len(self.values)
            + len(self.keyframing)
            + len(self.keyframes)
            + len(self.connections)
        )


class DiffEngine:
    def __init__(self, source: ProjectSnapshot, target: ProjectSnapshot):
        self.source = source
        self.target = target
        self._summary: Optional[DiffSummary] = None

    def compute_diff(self) -> DiffSummary:
        added: List[ElementChange] = []
        removed: List[ElementChange] = []
        values: List[ElementChange] = []
        keyframing: List[ElementChange] = []
        keyframes: List[ElementChange] = []
        connections: List[ElementChange] = []

        for ident, new in self.target.elements.items():
            old = self.source.elements.get(ident)
            if old is None:
                added.append(ElementChange("added", *ident))
                continue
            if old.connected_to != new.connected_to:
                connections.append(
                    ElementChange("connection", *ident, old_value=old.connected_to, new_value=new.connected_to)
                )
            if old.keyframed != new.keyframed:
                keyframing.append(
                    ElementChange("keyframing", *ident, old_value=old.keyframed, new_value=new.keyframed)
                )
            elif not new.keyframed and old.standard != new.standard:
                values.append(
                    ElementChange(
                        "value",
                        *ident,
                        old_value=_jsonable(old.standard),
                        new_value=_jsonable(new.standard),
                    )
                )
            elif new.keyframed:
                for index, (old_keys, new_keys) in enumerate(zip(old.tracks, new.tracks)):
                    if old_keys == new_keys:
                        continue
                    gone = [k for k in old_keys if k not in new_keys]
                    came = [k for k in new_keys if k not in old_keys]
                    if gone:
                        keyframes.append(
                            ElementChange(
                                "keyframes-removed", *ident, track=index, keyframes=[_keyframe_dict(k) for k in gone]
                            )
                        )
                    if came:
                        keyframes.append(
                            ElementChange(
                                "keyframes-added", *ident, track=index, keyframes=[_keyframe_dict(k) for k in came]
                            )
                        )

        for ident in self.source.elements:
            if ident not in self.target.elements:
                removed.append(ElementChange("removed", *ident))

        self._summary = DiffSummary(
            source=self.source.project_name,
            target=self.target.project_name,
            added=added,
            removed=removed,
            values=values,
            keyframing=keyframing,
            keyframes=keyframes,
            connections=connections,
        )
        return self._summary

    def to_dict(self, summary: Optional[DiffSummary] = None) -> Dict[str, object]:
        current = summary or self._summary or self.compute_diff()
        return {
            "source": current.source,
            "target": current.target,
            "changes": {
                "added": [asdict(c) for c in current.added],
                "removed": [asdict(c) for c in current.removed],
                "values": [asdict(c) for c in current.values],
                "keyframing": [asdict(c) for c in current.keyframing],
                "keyframes": [asdict(c) for c in current.keyframes],
                "connections": [asdict(c) for c in current.connections],
            },
            "stats": {"total_changes": current.total_changes},
        }

    def to_json(self, summary: Optional[DiffSummary] = None) -> str:
        return json.dumps(self.to_dict(summary), indent=2)
