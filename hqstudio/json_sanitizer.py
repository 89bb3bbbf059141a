"""JSON sanitization for model responses.

Scripts come back from the text model as JSON. Before the fields reach the
panel store they pass through this layer, which removes null bytes and
invisible characters, normalizes Unicode (so "NARRAÇÃO" compares equal no
matter how the model composed the accents) and recovers the JSON object
when the model wraps it in prose or code fences.

Usage:
    from hqstudio.json_sanitizer import parse_json_object, sanitize_text

    data = parse_json_object(raw_response)   # dict or None
    caption = sanitize_text(data["panel_text"])
"""

import json
import re
import unicodedata
from typing import Any, Dict, Optional

_NULL_BYTE_PATTERN = re.compile(r"\x00")
_JSON_NULL_ESCAPE_PATTERN = re.compile(r"\\u0000")

# \u followed by fewer than 4 hex digits
_MALFORMED_UNICODE_ESCAPE = re.compile(r"\\u(?:[0-9a-fA-F]{0,3}(?=[^0-9a-fA-F]|$))")

_INVISIBLE_CHARS = re.compile(
    r"[\u200b\u200c\u200d\u200e\u200f"  # zero-width spaces/joiners/marks
    r"\u202a-\u202e"  # bidi control
    r"\ufeff"  # BOM
    r"\ufffc"  # object replacement character
    r"\ufffe\uffff"  # noncharacters
    r"]"
)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def sanitize_text(text: str) -> str:
    """Sanitize a single string.

    Removes null bytes, invisible characters and control characters other
    than tab/newline, then normalizes to NFC. Idempotent.
    """
    if not text:
        return text

    text = _NULL_BYTE_PATTERN.sub("", text)
    text = _INVISIBLE_CHARS.sub("", text)
    text = "".join(
        ch for ch in text
        if ch in ("\t", "\n", "\r") or unicodedata.category(ch) != "Cc"
    )
    return unicodedata.normalize("NFC", text)


def sanitize_json_string(raw: str) -> str:
    """Clean a raw JSON string before ``json.loads``.

    Only touches things that can never be valid content: null escapes,
    literal null bytes, object replacement characters and truncated
    ``\\u`` escapes. Code fences around the payload are stripped.
    """
    if not raw:
        return raw

    raw = raw.strip()
    raw = _CODE_FENCE.sub("", raw)
    raw = _JSON_NULL_ESCAPE_PATTERN.sub("", raw)
    raw = _NULL_BYTE_PATTERN.sub("", raw)
    raw = raw.replace("\ufffc", "")
    return _MALFORMED_UNICODE_ESCAPE.sub("", raw)


def sanitize_parsed_response(data: Any) -> Any:
    """Recursively apply ``sanitize_text`` to every string in a parsed structure."""
    if isinstance(data, str):
        return sanitize_text(data)
    elif isinstance(data, dict):
        return {k: sanitize_parsed_response(v) for k, v in data.items()}
    elif isinstance(data, list):
        return [sanitize_parsed_response(item) for item in data]
    return data


def extract_json(text: str) -> Optional[str]:
    """Return the substring between the first ``{`` and the last ``}`` if it parses."""
    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace >= 0 and last_brace > first_brace:
        candidate = text[first_brace:last_brace + 1]
        try:
            json.loads(candidate)
            return candidate
        except json.JSONDecodeError:
            pass
    return None


def parse_json_object(raw: str) -> Optional[Dict[str, Any]]:
    """Parse a model response into a sanitized dict.

    Tries a direct parse first, then the outermost braces. Returns None
    when neither yields a JSON object.
    """
    if not raw:
        return None

    cleaned = sanitize_json_string(raw)

    data = None
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError:
        extracted = extract_json(cleaned)
        if extracted:
            data = json.loads(extracted)

    if not isinstance(data, dict):
        return None
    return sanitize_parsed_response(data)


def safe_json_dumps(data: Any, **kwargs: Any) -> str:
    """Serialize with UTF-8 characters kept literal (``ensure_ascii=False``)."""
    kwargs.setdefault("ensure_ascii", False)
    return json.dumps(data, **kwargs)
