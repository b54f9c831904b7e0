"""Rational time ranges and undoable keyframe parameters for a node-based editor."""

from olive_timeline.core.node import Project
from olive_timeline.core.rational import Rational
from olive_timeline.core.timerange import TimeRange, TimeRangeList
from olive_timeline.core.undo import CommandStack

__all__ = ["Project", "Rational", "TimeRange", "TimeRangeList", "CommandStack"]

__version__ = "0.1.0"
