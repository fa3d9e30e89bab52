"""
JSON utilities shared by the codecs and the manifest writer.

Nested row values are stored as JSON text in the SQL and Excel artifacts,
and manifests are written as indented JSON.
"""

import json
import logging
from datetime import datetime, date

log = logging.getLogger(__name__)

def _json_serial(obj):
    """JSON serializer for objects not serializable by default JSON encoder.

    Args:
        obj: Object to serialize

    Returns:
        str: String representation of the object
    """
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, bytes):
        return obj.hex()
    return str(obj)

def dumps(data, **kwargs):
    """JSON dumps that tolerates datetimes, bytes and other stray types.

    Args:
        data: Data to serialize
        **kwargs: Additional arguments to pass to json.dumps

    Returns:
        str: JSON string
    """
    return json.dumps(data, default=_json_serial, ensure_ascii=False, **kwargs)

def loads_object(text):
    """Parse text that looks like a JSON object, returning it unchanged when it isn't one.

    Args:
        text: Candidate JSON text

    Returns:
        The parsed value, or ``text`` itself if parsing fails
    """
    try:
        return json.loads(text)
    except ValueError:
        return text

def read_json_file(path):
    """Load a JSON document from disk."""
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)

def write_json_file(path, data):
    """Write ``data`` as indented JSON."""
    with open(path, 'w', encoding='utf-8') as f:
        f.write(dumps(data, indent=2))
