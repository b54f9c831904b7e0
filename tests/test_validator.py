from olive_timeline.core.keyframe_track import KeyframeTrack
from olive_timeline.core.models import Keyframe, ValueType
from olive_timeline.core.node import Keyframed, StandardValue
from olive_timeline.core.rational import Rational
from olive_timeline.core.timerange import TimeRange, TimeRangeList
from olive_timeline.core.validator import ProjectValidator


class TestProjectValidator:
    def test_fresh_project_is_valid(self, project, transform):
        validator = ProjectValidator(project)
        assert validator.validate_all() == []
        assert validator.is_valid

    def test_keyframed_without_keys_warns(self, project, transform):
        opacity = transform.input("opacity")
        opacity.set_keyframing(True)
        opacity.remove_keyframe(0, 0)
        validator = ProjectValidator(project)
        issues = validator.validate_all()
        assert validator.is_valid
        assert [issue.severity for issue in issues] == ["warning"]
        assert issues[0].element_id == "transform.opacity"

    def test_wrong_component_count(self, project, transform):
        transform.input("position").set_state(StandardValue((1.0,)))
        validator = ProjectValidator(project)
        validator.validate_all()
        assert not validator.is_valid
        assert "expected 2" in validator.errors[0].message

    def test_wrong_track_count(self, project, transform):
        transform.input("position").set_state(Keyframed((KeyframeTrack(ValueType.FLOAT),)))
        validator = ProjectValidator(project)
        validator.validate_all()
        assert any("keyframe tracks" in error.message for error in validator.errors)

    def test_keyframed_but_not_keyframable(self, project, transform):
        track = KeyframeTrack(ValueType.TEXT, [Keyframe(Rational(0), "x")])
        transform.input("label").set_state(Keyframed((track,)))
        validator = ProjectValidator(project)
        validator.validate_all()
        assert any("not keyframable" in error.message for error in validator.errors)

    def test_array_elements_labelled(self, project, transform):
        transform.input("points").set_state(StandardValue(()), element=1)
        validator = ProjectValidator(project)
        validator.validate_all()
        assert validator.errors[0].element_id == "transform.points[1]"

    def test_revalidation_resets(self, project, transform):
        position = transform.input("position")
        position.set_state(StandardValue((1.0,)))
        validator = ProjectValidator(project)
        validator.validate_all()
        position.set_state(StandardValue((1.0, 2.0)))
        assert validator.validate_all() == []


class TestRangeValidation:
    def test_well_formed_list(self, project):
        ranges = TimeRangeList([TimeRange(0, 10), TimeRange(20, 30)])
        assert ProjectValidator(project).validate_ranges(ranges) == []

    def test_touching_entries_flagged(self, project):
        ranges = TimeRangeList()
        ranges._ranges = [TimeRange(0, 10), TimeRange(10, 20)]
        found = ProjectValidator(project).validate_ranges(ranges, "cache")
        assert len(found) == 1
        assert found[0].element_id == "cache"

    def test_empty_entry_flagged(self, project):
        ranges = TimeRangeList()
        ranges._ranges = [TimeRange(5, 5)]
        validator = ProjectValidator(project)
        assert len(validator.validate_ranges(ranges)) == 1
        assert not validator.is_valid
