import re
from typing import NamedTuple
from urllib.parse import unquote

# Any '%' that does not start a two-digit hex escape
_BAD_ESCAPE_RE = re.compile(r"%(?![0-9A-Fa-f]{2})")


class MalformedEncodingError(ValueError):
    """Raised when a scope value carries an invalid percent-encoded sequence."""


class ScopesMatch(NamedTuple):
    success: bool
    manufacturer: str
    name: str
    model: str


class FastScopesMatch(NamedTuple):
    success: bool
    name: str
    model: str


NO_MATCH = ScopesMatch(False, "", "", "")
NO_FAST_MATCH = FastScopesMatch(False, "", "")


def is_empty(value: str | None) -> bool:
    return value is None or value == ""


def decode_component(value: str | None) -> str:
    """Percent-decode a single scope path component.

    Escapes are decoded as UTF-8 octets; '+' stays literal. Unlike
    ``urllib.parse.unquote`` defaults, invalid input is rejected instead of
    being passed through or replaced, since identity strings decoded here may
    feed vendor allow-lists downstream.
    """
    if not value:
        return ""

    bad_escape = _BAD_ESCAPE_RE.search(value)
    if bad_escape:
        raise MalformedEncodingError(
            f"Invalid percent escape at offset {bad_escape.start()} in {value!r}"
        )

    try:
        return unquote(value, encoding="utf-8", errors="strict")
    except UnicodeDecodeError as e:
        raise MalformedEncodingError(f"Escaped octets in {value!r} are not valid UTF-8") from e
