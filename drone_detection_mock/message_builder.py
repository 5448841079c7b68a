"""
JSON wire format for detection records.

A detection message looks like:

    {"ts":1700000000000,"detected":true,"count":2,
     "objects":[{"confidence":0.873,"center":[0.412,0.301],
                 "bbox":[0.372,0.261,0.08,0.08],"area":0.0064}, ...]}

or, when nothing is detected:

    {"ts":1700000000000,"detected":false,"count":0,"objects":[]}

Keys are emitted in that fixed order. Confidence, center and bbox values
are rounded to 3 decimal places, area to 4.
"""

import json
from typing import Any, Dict, Union

from .error_handling import SerializationError
from .models import DetectionObject, DetectionRecord


COORD_DECIMALS = 3
AREA_DECIMALS = 4
MESSAGE_FIELDS = ('ts', 'detected', 'count', 'objects')
OBJECT_FIELDS = ('confidence', 'center', 'bbox', 'area')


def _object_to_dict(obj: DetectionObject) -> Dict[str, Any]:
    return {
        'confidence': round(float(obj.confidence), COORD_DECIMALS),
        'center': [round(float(c), COORD_DECIMALS) for c in obj.center],
        'bbox': [round(float(v), COORD_DECIMALS) for v in obj.bbox],
        'area': round(float(obj.area), AREA_DECIMALS)
    }


def to_message(record: DetectionRecord) -> Dict[str, Any]:
    """
    Build the ordered message tree for a record.

    Args:
        record: Detection record to encode

    Returns:
        Dictionary whose insertion order matches the wire field order
    """
    if not record.detected or record.count == 0:
        return {
            'ts': int(record.timestamp),
            'detected': False,
            'count': 0,
            'objects': []
        }

    return {
        'ts': int(record.timestamp),
        'detected': True,
        'count': record.count,
        'objects': [_object_to_dict(obj) for obj in record.objects]
    }


def to_wire(record: DetectionRecord) -> bytes:
    """
    Encode a record as compact UTF-8 JSON.

    Args:
        record: Detection record to encode

    Returns:
        Encoded message payload

    Raises:
        SerializationError: If the record holds non-finite or non-numeric
            values, or memory runs out while encoding
    """
    try:
        message = to_message(record)
        return json.dumps(message, separators=(',', ':'), allow_nan=False).encode('utf-8')
    except (TypeError, ValueError, OverflowError) as e:
        raise SerializationError(
            f"Failed to serialize detection record: {e}",
            error_code="ENCODE_ERROR",
            context={"timestamp": getattr(record, 'timestamp', None)}
        )
    except MemoryError as e:
        raise SerializationError(
            f"Out of memory serializing detection record: {e}",
            error_code="OUT_OF_MEMORY"
        )


def validate_message_schema(message: Dict[str, Any]) -> bool:
    """
    Check that a decoded message has the detection message shape.

    Args:
        message: Decoded message dictionary

    Returns:
        True if message is valid, False otherwise
    """
    if not isinstance(message, dict):
        return False

    if list(message.keys()) != list(MESSAGE_FIELDS):
        return False

    if not isinstance(message['ts'], int) or isinstance(message['ts'], bool):
        return False
    if not isinstance(message['detected'], bool):
        return False
    if not isinstance(message['count'], int) or isinstance(message['count'], bool):
        return False

    objects = message['objects']
    if not isinstance(objects, list) or len(objects) != message['count']:
        return False

    if not message['detected'] and message['count'] != 0:
        return False

    for obj in objects:
        if not isinstance(obj, dict) or list(obj.keys()) != list(OBJECT_FIELDS):
            return False
        if not _is_number(obj['confidence']) or not _is_number(obj['area']):
            return False
        if not _is_number_list(obj['center'], 2) or not _is_number_list(obj['bbox'], 4):
            return False

    return True


def from_wire(payload: Union[bytes, str]) -> DetectionRecord:
    """
    Decode a wire message back into a DetectionRecord.

    Values come back at wire precision.

    Raises:
        SerializationError: If the payload is not a valid detection message
    """
    try:
        message = json.loads(payload)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Malformed detection message: {e}", error_code="DECODE_ERROR")

    if not validate_message_schema(message):
        raise SerializationError("Detection message does not match schema", error_code="SCHEMA_ERROR")

    if not message['detected']:
        return DetectionRecord.empty(message['ts'])

    objects = tuple(
        DetectionObject(
            confidence=float(obj['confidence']),
            center=(float(obj['center'][0]), float(obj['center'][1])),
            bbox=tuple(float(v) for v in obj['bbox']),
            area=float(obj['area'])
        )
        for obj in message['objects']
    )
    return DetectionRecord(timestamp=message['ts'], detected=True, objects=objects)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_number_list(value: Any, length: int) -> bool:
    return isinstance(value, list) and len(value) == length and all(_is_number(v) for v in value)
