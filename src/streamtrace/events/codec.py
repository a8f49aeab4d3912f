"""Event codec — flat JSON records to and from lifecycle events.

Two framings are accepted when loading:

- a single JSON array of records (``[{...}, {...}]``)
- one JSON record per line (NDJSON), blank lines ignored

The framing is detected from the first non-whitespace character after an
optional UTF-8 byte order mark.  Records
that are not well-formed events are skipped and counted; a load never fails
on bad data.

Record shape (wire names kept compatible with existing logs)::

    {"type": "next", "timestamp": 1764410778180, "observableId": 3,
     "subscriptionId": 7, "value": 42, "runId": 1764410778000}

"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from streamtrace._errors import EventFormatError, LogReadError
from streamtrace.events.model import (
    EVENT_TYPES,
    MISSING,
    Failed,
    StageCreated,
    ValueEmitted,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from streamtrace.events.model import TraceEvent

UNKNOWN_LABEL = "unknown"

# Payload keys and the only kind allowed to carry each of them.
_PAYLOAD_OWNER: dict[str, str] = {"value": "next", "error": "error"}

# Fields that belong to creation records only, and the one creation lacks.
_CREATION_ONLY = ("operatorInfo", "label", "parentId", "info")
_SUBSCRIPTION_KEY = "subscriptionId"


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Outcome of parsing an event log.

    Attributes:
        events: Well-formed events in record order.
        skipped: Number of records that were not valid events.

    """

    events: tuple[TraceEvent, ...]
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.events)


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def _require_int(record: dict[str, Any], *names: str) -> int:
    """Return the first present field among ``names`` as an int."""
    for name in names:
        if name in record:
            return _as_int(record[name], name)
    msg = f"missing required field {names[0]!r}"
    raise EventFormatError(msg)


def _as_int(value: object, name: str) -> int:
    if isinstance(value, bool):
        msg = f"field {name!r} must be an integer, got bool"
        raise EventFormatError(msg)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    msg = f"field {name!r} must be an integer, got {value!r}"
    raise EventFormatError(msg)


def _optional_int(record: dict[str, Any], name: str) -> int | None:
    value = record.get(name)
    if value is None:
        return None
    return _as_int(value, name)


def _creation_fields(record: dict[str, Any]) -> tuple[str, int | None]:
    """Extract label and parent id from the several historical shapes."""
    info = record.get("operatorInfo")
    label: object = None
    parent: object = None
    if isinstance(info, dict):
        label = info.get("name")
        parent = info.get("parent")
    if label is None:
        label = record.get("label", record.get("info"))
    if parent is None:
        parent = record.get("parentId")

    label_text = str(label) if label not in (None, "") else UNKNOWN_LABEL
    parent_id = None if parent is None else _as_int(parent, "parentId")
    return label_text, parent_id


def decode_record(record: object) -> TraceEvent:
    """Convert one flat JSON record into an event.

    Raises:
        EventFormatError: The record is not a well-formed event.

    """
    if not isinstance(record, dict):
        msg = f"record must be an object, got {type(record).__name__}"
        raise EventFormatError(msg)

    kind = record.get("type", record.get("kind"))
    if not isinstance(kind, str) or kind not in EVENT_TYPES:
        msg = f"unknown event kind {kind!r}"
        raise EventFormatError(msg)

    for key, owner in _PAYLOAD_OWNER.items():
        if key in record and kind != owner:
            msg = f"field {key!r} is not allowed on {kind!r} events"
            raise EventFormatError(msg)
    if kind == StageCreated.kind:
        misplaced = [_SUBSCRIPTION_KEY] if _SUBSCRIPTION_KEY in record else []
    else:
        misplaced = [key for key in _CREATION_ONLY if key in record]
    if misplaced:
        msg = f"field {misplaced[0]!r} is not allowed on {kind!r} events"
        raise EventFormatError(msg)

    timestamp = _require_int(record, "timestamp")
    stage_id = _require_int(record, "observableId", "stageId")
    run_id = _optional_int(record, "runId")

    if kind == StageCreated.kind:
        label, parent_id = _creation_fields(record)
        return StageCreated(
            stage_id=stage_id,
            label=label,
            parent_id=parent_id,
            timestamp=timestamp,
            run_id=run_id,
        )

    subscription_id = _require_int(record, "subscriptionId")

    if kind == ValueEmitted.kind:
        return ValueEmitted(
            stage_id=stage_id,
            subscription_id=subscription_id,
            timestamp=timestamp,
            value=record.get("value", MISSING),
            run_id=run_id,
        )
    if kind == Failed.kind:
        return Failed(
            stage_id=stage_id,
            subscription_id=subscription_id,
            timestamp=timestamp,
            error=record.get("error", MISSING),
            run_id=run_id,
        )

    cls = EVENT_TYPES[kind]
    return cls(
        stage_id=stage_id,
        subscription_id=subscription_id,
        timestamp=timestamp,
        run_id=run_id,
    )


def _decode_all(records: Iterable[object]) -> LoadResult:
    events: list[TraceEvent] = []
    skipped = 0
    for record in records:
        try:
            events.append(decode_record(record))
        except EventFormatError:
            skipped += 1
    return LoadResult(events=tuple(events), skipped=skipped)


def load_events(text: str) -> LoadResult:
    """Parse an event log in either framing.

    A document starting with ``[`` is read as one JSON array; anything else
    is read one record per line.  An array document that is not valid JSON
    counts as a single skipped record.

    """
    text = text.removeprefix("\ufeff")
    stripped = text.lstrip()
    if not stripped:
        return LoadResult(events=())

    if stripped.startswith("["):
        try:
            records = json.loads(stripped)
        except json.JSONDecodeError:
            return LoadResult(events=(), skipped=1)
        if not isinstance(records, list):
            return LoadResult(events=(), skipped=1)
        return _decode_all(records)

    events: list[TraceEvent] = []
    skipped = 0
    for line in text.splitlines():
        if not line.strip():
            continue
        try:
            events.append(decode_record(json.loads(line)))
        except (json.JSONDecodeError, EventFormatError):
            skipped += 1
    return LoadResult(events=tuple(events), skipped=skipped)


def read_events(path: Path) -> LoadResult:
    """Read and parse an event log file.

    Raises:
        LogReadError: The file does not exist or cannot be read.

    """
    try:
        text = path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as exc:
        msg = f"cannot read event log {path}: {exc}"
        raise LogReadError(msg) from exc
    return load_events(text)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def jsonable(value: object) -> object:
    """Coerce a payload into something ``json.dumps`` accepts.

    Exceptions become ``"TypeName: message"``; other unserializable values
    fall back to ``str()``.

    """
    if isinstance(value, BaseException):
        return f"{type(value).__name__}: {value}"
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def encode_event(event: TraceEvent) -> dict[str, Any]:
    """Convert an event into its flat wire record."""
    record: dict[str, Any] = {
        "type": event.kind,
        "timestamp": event.timestamp,
        "observableId": event.stage_id,
    }
    if event.run_id is not None:
        record["runId"] = event.run_id

    if isinstance(event, StageCreated):
        info: dict[str, Any] = {"name": event.label}
        if event.parent_id is not None:
            info["parent"] = event.parent_id
        record["operatorInfo"] = info
        return record

    record["subscriptionId"] = event.subscription_id
    if isinstance(event, ValueEmitted) and event.value is not MISSING:
        record["value"] = jsonable(event.value)
    elif isinstance(event, Failed) and event.error is not MISSING:
        record["error"] = jsonable(event.error)
    return record


def encode_line(event: TraceEvent) -> str:
    """Encode one event as a single NDJSON line (without newline)."""
    return json.dumps(encode_event(event), separators=(",", ":"))


def dumps_ndjson(events: Iterable[TraceEvent]) -> str:
    """Encode events one record per line."""
    return "".join(encode_line(event) + "\n" for event in events)


def dumps_array(events: Iterable[TraceEvent]) -> str:
    """Encode events as a single JSON array document."""
    return json.dumps([encode_event(event) for event in events], indent=2)

