import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import typer

from olive_timeline import __version__
from olive_timeline.config import get_settings
from olive_timeline.core.errors import ERROR_CODES, TimelineError
from olive_timeline.core.keyframe_track import KeyframeTrack
from olive_timeline.core.models import Interpolation, Keyframe, ValueType
from olive_timeline.core.rational import Rational
from olive_timeline.core.timerange import TimeRange, TimeRangeList

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False, help="Inspect rational time ranges and keyframe interpolation")

_EVAL_TYPES = {
    "float": (ValueType.FLOAT, float),
    "int": (ValueType.INT, int),
    "rational": (ValueType.RATIONAL, Rational.from_string),
}


def _print(payload: Dict[str, Any]) -> None:
    typer.echo(json.dumps(payload, indent=2))


def _ok(command: str, data: Dict[str, Any]) -> None:
    _print({"ok": True, "command": command, "data": data})


def _fail(command: str, code: str, message: str) -> None:
    _print(
        {
            "ok": False,
            "command": command,
            "error": {"code": code, "message": message},
        }
    )
    raise SystemExit(ERROR_CODES.get(code, 1))


def _jsonable(value: Any) -> Any:
    if isinstance(value, Rational):
        return str(value)
    return value


def _range_dict(time_range: TimeRange) -> Dict[str, str]:
    return {
        "in": str(time_range.in_point),
        "out": str(time_range.out_point),
        "length": str(time_range.length),
    }


def _parse_range(text: str) -> TimeRange:
    try:
        in_text, out_text = text.split(":")
    except ValueError:
        raise ValueError(f"Range must look like IN:OUT, got {text!r}") from None
    return TimeRange(Rational.from_string(in_text), Rational.from_string(out_text))


def _parse_op(text: str) -> Tuple[str, TimeRange]:
    op, sep, rest = text.partition(":")
    if not sep or op not in ("insert", "remove"):
        raise ValueError(f"Operation must look like insert:IN:OUT or remove:IN:OUT, got {text!r}")
    return op, _parse_range(rest)


def _parse_keyframe(text: str, parse_value) -> Keyframe:
    parts = text.split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Keyframe must look like TIME:VALUE[:INTERPOLATION], got {text!r}")
    mode = Interpolation(parts[2].lower()) if len(parts) == 3 else get_settings().default_interpolation
    return Keyframe(Rational.from_string(parts[0]), parse_value(parts[1]), mode)


@app.callback()
def main_callback(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level, e.g. DEBUG"),
) -> None:
    level = (log_level or get_settings().log_level).upper()
    logging.basicConfig(level=getattr(logging, level, logging.WARNING))


@app.command("ranges")
def ranges(
    ops: List[str] = typer.Argument(..., help="insert:IN:OUT or remove:IN:OUT, applied in order"),
    contains: Optional[str] = typer.Option(None, "--contains", help="Report whether IN:OUT is covered"),
    intersect: Optional[str] = typer.Option(None, "--intersect", help="Report the parts inside IN:OUT"),
) -> None:
    try:
        time_ranges = TimeRangeList()
        for text in ops:
            op, time_range = _parse_op(text)
            if op == "insert":
                time_ranges.insert_time_range(time_range)
            else:
                time_ranges.remove_time_range(time_range)
            logger.debug("%s %r -> %r", op, time_range, time_ranges)
        data: Dict[str, Any] = {
            "ranges": [_range_dict(r) for r in time_ranges],
            "totalLength": str(time_ranges.total_length()),
        }
        if contains is not None:
            data["contains"] = time_ranges.contains_time_range(_parse_range(contains))
        if intersect is not None:
            data["intersection"] = [_range_dict(r) for r in time_ranges.intersects(_parse_range(intersect))]
    except TimelineError as exc:
        _fail("ranges", exc.code, exc.message)
    except ValueError as exc:
        _fail("ranges", "INVALID_INPUT", str(exc))
    _ok("ranges", data)


@app.command("eval")
def evaluate(
    keyframes: List[str] = typer.Argument(..., help="TIME:VALUE[:linear|hold|bezier]"),
    at: List[str] = typer.Option(["0"], "--at", help="Time to evaluate at; repeatable"),
    value_type: str = typer.Option("float", "--type", help="float, int or rational"),
) -> None:
    if value_type not in _EVAL_TYPES:
        _fail("eval", "INVALID_INPUT", f"Unsupported type {value_type!r}; use one of {', '.join(_EVAL_TYPES)}")
    kind, parse_value = _EVAL_TYPES[value_type]
    try:
        track = KeyframeTrack(kind, [_parse_keyframe(text, parse_value) for text in keyframes])
        values = []
        for text in at:
            time = Rational.from_string(text)
            values.append({"time": str(time), "value": _jsonable(track.value_at(time))})
    except TimelineError as exc:
        _fail("eval", exc.code, exc.message)
    except ValueError as exc:
        _fail("eval", "INVALID_INPUT", str(exc))
    _ok("eval", {"type": kind.label, "keyframes": len(track), "values": values})


@app.command("version")
def version() -> None:
    _ok("version", {"version": __version__})


def main() -> None:
    app()


if __name__ == "__main__":
    main()
