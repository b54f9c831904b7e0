import logging
from typing import Dict, Optional, Set

from olive_timeline.core.events import ValueChanged
from olive_timeline.core.node import Project
from olive_timeline.core.timerange import TimeRange, TimeRangeList

logger = logging.getLogger(__name__)


class InvalidationTracker:
    """Keeps, per node, the time spans whose evaluated output is still current.

    Evaluation marks spans valid after computing them; every ``ValueChanged``
    on the project bus knocks the affected span back out for the changed node
    and for every node downstream of it through input connections.
    """

    def __init__(self, project: Project):
        self.project = project
        self._valid: Dict[str, TimeRangeList] = {}
        project.events.subscribe(ValueChanged, self._on_value_changed)

    def close(self) -> None:
        self.project.events.unsubscribe(ValueChanged, self._on_value_changed)

    def mark_valid(self, node_id: str, time_range: TimeRange) -> None:
        self._valid.setdefault(node_id, TimeRangeList()).insert_time_range(time_range)

    def valid_ranges(self, node_id: str) -> TimeRangeList:
        return TimeRangeList(self._valid.get(node_id, ()))

    def is_valid(self, node_id: str, time_range: TimeRange) -> bool:
        valid = self._valid.get(node_id)
        if valid is None:
            return time_range.is_empty()
        return valid.contains_time_range(time_range)

    def invalid_ranges(self, node_id: str, time_range: TimeRange) -> TimeRangeList:
        """Return the parts of ``time_range`` that need recomputing."""
        needed = TimeRangeList([time_range])
        for valid in self._valid.get(node_id, TimeRangeList()).intersects(time_range):
            needed.remove_time_range(valid)
        return needed

    def invalidate(self, node_id: str, time_range: Optional[TimeRange] = None) -> None:
        for affected in self._downstream(node_id):
            valid = self._valid.get(affected)
            if valid is None:
                continue
            if time_range is None:
                valid.clear()
            else:
                valid.remove_time_range(time_range)
            logger.debug("Invalidated %s over %s", affected, time_range or "all time")

    def _downstream(self, node_id: str) -> Set[str]:
        seen = {node_id}
        pending = [node_id]
        while pending:
            current = pending.pop()
            for node in self.project.nodes():
                if node.id in seen:
                    continue
                for node_input in node.inputs():
                    sources = [node_input.connected_node(e) for e in self._connected_elements(node_input)]
                    if any(source is not None and source.id == current for source in sources):
                        seen.add(node.id)
                        pending.append(node.id)
                        break
        return seen

    @staticmethod
    def _connected_elements(node_input):
        elements = [None]
        if node_input.is_array:
            elements += list(range(node_input.array_size()))
        return elements

    def _on_value_changed(self, event: ValueChanged) -> None:
        self.invalidate(event.node_id, event.affected)
