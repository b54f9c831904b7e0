import pytest

from olive_timeline.api.parameters import ParameterAPI, StackRegistry
from olive_timeline.core.commands import SetStandardValueCommand
from olive_timeline.core.errors import InputFlagViolation, KeyframeNotFound, UnknownInput
from olive_timeline.core.models import Interpolation, Keyframe
from olive_timeline.core.node import Project
from olive_timeline.core.rational import Rational


@pytest.fixture
def api(project, transform, stack):
    return ParameterAPI(project, stack)


class TestParameterAPI:
    def test_set_standard_value_is_undoable(self, api):
        api.set_value("transform", "opacity", 0.5)
        assert api.value_at("transform", "opacity", 0) == 0.5
        assert api.undo()
        assert api.value_at("transform", "opacity", 0) == 1.0
        assert api.redo()
        assert api.value_at("transform", "opacity", 0) == 0.5

    def test_unknown_input(self, api):
        with pytest.raises(UnknownInput):
            api.set_value("transform", "missing", 1.0)

    def test_add_keyframe_enables_keyframing_in_one_step(self, api, stack):
        api.add_keyframe("transform", "position", 10, (4.0, 8.0))
        assert stack.count() == 1
        assert api.list_keyframes("transform", "position") == [
            [Keyframe(Rational(10), 4.0)],
            [Keyframe(Rational(10), 8.0)],
        ]
        assert api.value_at("transform", "position", 5) == (4.0, 8.0)
        api.undo()
        assert api.list_keyframes("transform", "position") == []

    def test_add_keyframe_not_keyframable(self, api):
        with pytest.raises(InputFlagViolation):
            api.add_keyframe("transform", "label", 0, "x")

    def test_set_value_on_keyframed_input(self, api):
        api.add_keyframe("transform", "opacity", 10, 0.0, Interpolation.HOLD)
        api.set_value("transform", "opacity", 0.25, time=10)
        api.set_value("transform", "opacity", 0.75, time=20)
        keys = api.list_keyframes("transform", "opacity")[0]
        assert [(k.time, k.value) for k in keys] == [(10, 0.25), (20, 0.75)]
        assert keys[-1].interpolation == Interpolation.HOLD

    def test_remove_keyframes_at(self, api, stack):
        api.set_keyframing("transform", "position", True)
        api.add_keyframe("transform", "position", 10, (1.0, 1.0))
        api.remove_keyframes_at("transform", "position", 10)
        assert all(len(track) == 1 for track in api.list_keyframes("transform", "position"))
        api.undo()
        assert all(len(track) == 2 for track in api.list_keyframes("transform", "position"))

    def test_remove_keyframes_at_auto_disable(self, api, stack):
        api.add_keyframe("transform", "position", 5, (3.0, 4.0))
        api.remove_keyframes_at("transform", "position", 5, auto_disable=True)
        node_input = api.get_input("transform", "position")
        assert not node_input.is_keyframed()
        assert node_input.get_standard_value() == (3.0, 4.0)
        assert stack.count() == 2
        api.undo()
        assert node_input.is_keyframed()
        assert api.list_keyframes("transform", "position") == [
            [Keyframe(Rational(5), 3.0)],
            [Keyframe(Rational(5), 4.0)],
        ]
        api.redo()
        assert node_input.get_standard_value() == (3.0, 4.0)

    def test_auto_disable_keeps_keyframing_while_keys_remain(self, api):
        api.set_keyframing("transform", "position", True)
        api.add_keyframe("transform", "position", 10, (3.0, 4.0))
        api.remove_keyframes_at("transform", "position", 10, auto_disable=True)
        node_input = api.get_input("transform", "position")
        assert node_input.is_keyframed()
        assert node_input.value_at(10) == (0.0, 0.0)

    def test_remove_keyframes_at_empty_time(self, api):
        api.set_keyframing("transform", "opacity", True)
        with pytest.raises(KeyframeNotFound):
            api.remove_keyframes_at("transform", "opacity", 99)

    def test_move_keyframe(self, api):
        api.set_keyframing("transform", "opacity", True)
        api.add_keyframe("transform", "opacity", 10, 0.0)
        api.move_keyframe("transform", "opacity", 0, 10, Rational(15, 2))
        times = [k.time for k in api.list_keyframes("transform", "opacity")[0]]
        assert times == [0, Rational(15, 2)]

    def test_resize_and_connect(self, api, project):
        project.add_node("src")
        api.resize_array("transform", "points", 3)
        api.connect("src", "transform", "points", element=2)
        assert api.get_input("transform", "points").connected_node(2).id == "src"
        api.disconnect("transform", "points", element=2)
        assert not api.get_input("transform", "points").is_connected(2)
        api.undo()
        api.undo()
        api.undo()
        assert api.get_input("transform", "points").array_size() == 2

    def test_resize_negative(self, api):
        with pytest.raises(ValueError):
            api.resize_array("transform", "points", -1)


class TestStackRegistry:
    def test_routes_by_project(self, transform):
        other = Project("Other").add_node("n").add_input("x", transform.input("opacity").value_type)
        registry = StackRegistry()
        registry.execute(SetStandardValueCommand(transform.input("opacity"), 0.5))
        registry.execute(SetStandardValueCommand(other, 2.0))
        assert len(registry) == 2
        first = registry.stack_for(transform.project)
        second = registry.stack_for(other.node.project)
        assert first is not second
        assert first.count() == 1 and second.count() == 1

    def test_same_project_shares_stack(self, project):
        registry = StackRegistry()
        assert registry.stack_for(project) is registry.stack_for(project)
        registry.close(project)
        assert len(registry) == 0
