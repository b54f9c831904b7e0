from typing import Dict


class TimelineError(Exception):
    code = "ERROR"

    def __init__(self, message: str, code: str = ""):
        super().__init__(message)
        self.code = code or self.code
        self.message = message


class InvalidRational(TimelineError, ZeroDivisionError):
    code = "INVALID_RATIONAL"


class MalformedRange(TimelineError, ValueError):
    code = "MALFORMED_RANGE"


class InvalidCommandTransition(TimelineError, RuntimeError):
    """A command was redone while applied or undone while unapplied."""

    code = "INVALID_COMMAND_TRANSITION"


class CrossDocumentCommand(TimelineError, ValueError):
    code = "CROSS_DOCUMENT_COMMAND"


class UnknownInput(TimelineError, KeyError):
    code = "UNKNOWN_INPUT"

    def __str__(self) -> str:
        return self.message


class InvalidElement(TimelineError, IndexError):
    code = "INVALID_ELEMENT"


class InputFlagViolation(TimelineError, ValueError):
    code = "INPUT_FLAG_VIOLATION"


class KeyframeNotFound(TimelineError, LookupError):
    code = "KEYFRAME_NOT_FOUND"


ERROR_CODES: Dict[str, int] = {
    "ERROR": 1,
    "INVALID_INPUT": 2,
    "INVALID_RATIONAL": 3,
    "MALFORMED_RANGE": 4,
    "INVALID_COMMAND_TRANSITION": 5,
    "CROSS_DOCUMENT_COMMAND": 6,
    "UNKNOWN_INPUT": 7,
    "INVALID_ELEMENT": 8,
    "INPUT_FLAG_VIOLATION": 9,
    "KEYFRAME_NOT_FOUND": 10,
}
