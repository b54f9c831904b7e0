from olive_timeline.core.diff_engine import DiffEngine, ProjectSnapshot
from olive_timeline.core.keyframe_track import KeyframeTrack
from olive_timeline.core.node import Node, NodeInput, Project
from olive_timeline.core.rational import Rational
from olive_timeline.core.timerange import TimeRange, TimeRangeList
from olive_timeline.core.undo import CommandStack, MultiUndoCommand, UndoCommand
from olive_timeline.core.validator import ProjectValidator

__all__ = [
    "Rational",
    "TimeRange",
    "TimeRangeList",
    "KeyframeTrack",
    "Project",
    "Node",
    "NodeInput",
    "UndoCommand",
    "MultiUndoCommand",
    "CommandStack",
    "ProjectValidator",
    "DiffEngine",
    "ProjectSnapshot",
]
