"""
Wire protocol for sensor clients.

Every message is one flat JSON object per transport read (no framing). An
optional ``type`` field selects the operation:

    absent / "sensor_data"  the object itself is a reading:
                            {"timestamp"?, "temperature", "humidity", "light", "sensor_id"?}
    "get_all_data"          reply is the JSON array of all stored records
    "search_anomalies"      {"start"?, "end"?, "sort_by"?, "descending"?};
                            reply is the JSON array of findings
    "search_data"           same arguments as search_anomalies;
                            reply is the JSON array of every record in the window

Readings are acknowledged with a fixed status string. Decode failures are
answered with an error string and the connection stays open.
"""

import json
import math
from enum import Enum
from typing import Any

from sensorlog.anomaly.search import SortKey, normalize_bound
from sensorlog.core.models import UNKNOWN_SENSOR_ID, SensorRecord
from sensorlog.core.timestamps import normalize_timestamp, now_timestamp

ACK = "OK: data received"
ERROR_MALFORMED = "Error: malformed JSON payload"
ERROR_INTERNAL = "Error: internal server error"
ERROR_BUSY = "Error: server busy"

REQUIRED_METRICS = ("temperature", "humidity", "light")


class MessageType(Enum):
    """Operations a client can request"""

    SENSOR_DATA = "sensor_data"
    GET_ALL_DATA = "get_all_data"
    SEARCH_ANOMALIES = "search_anomalies"
    SEARCH_DATA = "search_data"


class DecodeError(Exception):
    """Base class for messages that cannot be decoded; ``reply`` goes back to the client"""

    reply = ERROR_MALFORMED

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.reply)
        self.detail = detail


class MalformedPayloadError(DecodeError):
    reply = ERROR_MALFORMED


class MissingFieldError(DecodeError):
    def __init__(self, field: str):
        super().__init__(f"missing required field '{field}'")
        self.field = field
        self.reply = f"Error: missing required field '{field}'"


class InvalidFieldError(DecodeError):
    def __init__(self, field: str, detail: str = ""):
        super().__init__(detail or f"invalid value for field '{field}'")
        self.field = field
        self.reply = f"Error: invalid value for field '{field}'"


class UnknownMessageTypeError(DecodeError):
    def __init__(self, message_type: Any):
        super().__init__(f"unknown message type {message_type!r}")
        self.message_type = message_type
        self.reply = f"Error: unknown message type '{message_type}'"


def decode_message(payload: bytes) -> dict[str, Any]:
    """Parse raw bytes into a JSON object

    Raises:
        MalformedPayloadError: If the bytes are not UTF-8 JSON or not an object
    """
    try:
        message = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise MalformedPayloadError(str(e)) from e

    if not isinstance(message, dict):
        raise MalformedPayloadError(f"expected a JSON object, got {type(message).__name__}")
    return message


def message_type(message: dict[str, Any]) -> MessageType:
    """Resolve the operation a message asks for (readings when untyped)"""
    raw = message.get("type", MessageType.SENSOR_DATA.value)
    try:
        return MessageType(raw)
    except ValueError as e:
        raise UnknownMessageTypeError(raw) from e


def parse_record(message: dict[str, Any]) -> SensorRecord:
    """Build a SensorRecord from a flat reading

    Missing ``timestamp`` defaults to now, missing ``sensor_id`` to "unknown".
    Supplied timestamps are normalized to the canonical UTC form.

    Raises:
        MissingFieldError: If a metric is absent
        InvalidFieldError: If a metric is not a finite number, or the
            timestamp / sensor_id is not a valid string
    """
    metrics = {}
    for field in REQUIRED_METRICS:
        if field not in message:
            raise MissingFieldError(field)
        metrics[field] = _read_number(message, field)

    raw_timestamp = message.get("timestamp")
    if raw_timestamp is None:
        timestamp = now_timestamp()
    else:
        try:
            timestamp = normalize_timestamp(raw_timestamp)
        except (TypeError, ValueError) as e:
            raise InvalidFieldError("timestamp", str(e)) from e

    sensor_id = _read_text(message, "sensor_id", UNKNOWN_SENSOR_ID)

    return SensorRecord(timestamp=timestamp, sensor_id=sensor_id, **metrics)


def parse_search_query(message: dict[str, Any]) -> dict[str, Any]:
    """Extract window and sort arguments from a search_anomalies or search_data message"""
    query = {}
    for field in ("start", "end"):
        value = message.get(field) or ""
        if not isinstance(value, str):
            raise InvalidFieldError(field)
        try:
            query[field] = normalize_bound(value)
        except ValueError as e:
            raise InvalidFieldError(field, str(e)) from e

    try:
        query["sort_key"] = SortKey(message.get("sort_by", SortKey.TIMESTAMP.value))
    except ValueError as e:
        raise InvalidFieldError("sort_by") from e

    descending = message.get("descending", False)
    if not isinstance(descending, bool):
        raise InvalidFieldError("descending")
    query["descending"] = descending
    return query


def encode_reply(payload: Any) -> bytes:
    """Encode a status string or a JSON-serializable query result"""
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload).encode("utf-8")


def _read_number(message: dict[str, Any], field: str) -> float:
    value = message[field]
    # bool is an int subclass but not a reading
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidFieldError(field)
    try:
        value = float(value)
    except OverflowError as e:
        raise InvalidFieldError(field, "value out of range") from e
    if not math.isfinite(value):
        raise InvalidFieldError(field, "value must be finite")
    return value


def _read_text(message: dict[str, Any], field: str, default: str) -> str:
    value = message.get(field, default)
    if not isinstance(value, str):
        raise InvalidFieldError(field)
    # JSON escapes can carry lone surrogates, which cannot be written back out as UTF-8
    try:
        value.encode("utf-8")
    except UnicodeEncodeError as e:
        raise InvalidFieldError(field, "value is not valid UTF-8 text") from e
    return value

