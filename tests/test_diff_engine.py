import json

from olive_timeline.core.diff_engine import DiffEngine, ProjectSnapshot
from olive_timeline.core.models import Keyframe
from olive_timeline.core.rational import Rational


class TestProjectSnapshot:
    def test_equal_snapshots(self, project, transform):
        assert ProjectSnapshot(project) == ProjectSnapshot(project)

    def test_snapshot_is_a_copy(self, project, transform):
        before = ProjectSnapshot(project)
        transform.input("opacity").set_standard_value(0.5)
        assert ProjectSnapshot(project) != before
        assert before.elements[("transform", "opacity", None)].standard == (1.0,)

    def test_array_elements_listed(self, project, transform):
        snapshot = ProjectSnapshot(project)
        assert ("transform", "points", 0) in snapshot.elements
        assert ("transform", "points", 1) in snapshot.elements


class TestDiffEngine:
    def test_no_changes(self, project, transform):
        snapshot = ProjectSnapshot(project)
        summary = DiffEngine(snapshot, snapshot).compute_diff()
        assert summary.total_changes == 0

    def test_value_change(self, project, transform):
        before = ProjectSnapshot(project)
        transform.input("opacity").set_standard_value(0.5)
        summary = DiffEngine(before, ProjectSnapshot(project)).compute_diff()
        assert len(summary.values) == 1
        change = summary.values[0]
        assert (change.node_id, change.input_id, change.old_value, change.new_value) == (
            "transform",
            "opacity",
            [1.0],
            [0.5],
        )

    def test_keyframing_and_keyframes(self, project, transform):
        opacity = transform.input("opacity")
        before = ProjectSnapshot(project)
        opacity.set_keyframing(True)
        middle = ProjectSnapshot(project)
        opacity.insert_keyframe(0, Keyframe(Rational(10), 0.0))
        after = ProjectSnapshot(project)

        assert len(DiffEngine(before, middle).compute_diff().keyframing) == 1
        summary = DiffEngine(middle, after).compute_diff()
        assert [change.change_type for change in summary.keyframes] == ["keyframes-added"]
        assert summary.keyframes[0].keyframes[0]["time"] == "10"

    def test_array_resize_and_connection(self, project, transform):
        before = ProjectSnapshot(project)
        points = transform.input("points")
        points.array_resize(3)
        transform.input("opacity").connect(project.add_node("src"))
        summary = DiffEngine(before, ProjectSnapshot(project)).compute_diff()
        assert [(c.input_id, c.element) for c in summary.added] == [("points", 2)]
        assert summary.connections[0].new_value == "src"

        shrink = DiffEngine(ProjectSnapshot(project), before).compute_diff()
        assert [(c.input_id, c.element) for c in shrink.removed] == [("points", 2)]

    def test_to_json(self, project, transform):
        before = ProjectSnapshot(project)
        transform.input("position").set_standard_value((1.0, 2.0))
        engine = DiffEngine(before, ProjectSnapshot(project))
        payload = json.loads(engine.to_json())
        assert payload["source"] == "Test"
        assert payload["stats"]["total_changes"] == 1
        assert payload["changes"]["values"][0]["new_value"] == [1.0, 2.0]
