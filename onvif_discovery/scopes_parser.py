"""Pattern-based extraction of device identity from WS-Discovery scopes.

Every match runs through the ``regex`` engine with a wall-clock cap because
scopes arrive from unauthenticated network peers. A match that exceeds the
cap is reported as "no match", never as a hang or an exception.
"""

import functools
import logging

import regex

from scopes_logging import TRACE
from scopes_common import NO_MATCH, ScopesMatch, decode_component, is_empty
from scopes_settings import resolve_regex_timeout_ms

logger = logging.getLogger(__name__)

# scheme, authority, path segments, leaf (group 6), trailing query, fragment
SCOPE_PATTERN = r"^((onvifs?|ftp):/)?/?([^:/\s]+)((/\w+)*/)([\w\-.]+[^#?\s]+)(.*)?(#[\w\-]+)?$"
LEAF_GROUP = 6

_SCOPE_RE = regex.compile(SCOPE_PATTERN)

# Text after the first 'hardware/' up to the next whitespace or end of input
_MODEL_RE = regex.compile(r"(?<=hardware/).*?(?=\s|\Z)")

_MANUFACTURER_MARKERS = ("mfr/", "manufacturer/")


@functools.lru_cache(maxsize=1)
def _configured_timeout_ms():
    """Configured cap, resolved once per process.

    Later changes to ONVIF_SCOPES_REGEX_TIMEOUT_MS or config.yaml are not
    picked up; call ``_configured_timeout_ms.cache_clear()`` to re-read them.
    """
    return resolve_regex_timeout_ms()


def _timeout_seconds(timeout_ms):
    if timeout_ms is None:
        timeout_ms = _configured_timeout_ms()
    return timeout_ms / 1000.0


def _first_token(scopes, markers):
    for token in scopes.split():
        if any(marker in token for marker in markers):
            return token
    return None


def _leaf(value, timeout):
    match = _SCOPE_RE.match(value, timeout=timeout)
    if match is None:
        return ""
    return match.group(LEAF_GROUP) or ""


def _truncate_at_space(value):
    if ' ' in value:
        return value.split(' ', 1)[0]
    return value


def parse_name(scopes, timeout_ms=None):
    """Decoded leaf of the first token containing ``name/``, cut at the first space.

    Raises TimeoutError if the match exceeds its cap.
    """
    token = _first_token(scopes or "", ("name/",))
    if token is None:
        return ""
    return _truncate_at_space(decode_component(_leaf(token, _timeout_seconds(timeout_ms))))


def parse_manufacturer(scopes, name, timeout_ms=None):
    """Manufacturer from a ``mfr/`` or ``manufacturer/`` token, else derived from *name*.

    The dedicated token keeps its full decoded value, spaces included. The
    name-derived fallback keeps only the text before the first space; a
    name that is not URI-shaped is its own leaf.
    """
    timeout = _timeout_seconds(timeout_ms)
    token = _first_token(scopes or "", _MANUFACTURER_MARKERS)
    if token is not None:
        return decode_component(_leaf(token, timeout))

    if is_empty(name):
        return ""

    match = _SCOPE_RE.match(name, timeout=timeout)
    leaf = match.group(LEAF_GROUP) if match is not None else name
    return _truncate_at_space(leaf or "")


def parse_model(scopes, timeout_ms=None):
    match = _MODEL_RE.search(scopes or "", timeout=_timeout_seconds(timeout_ms))
    if match is None:
        return ""
    return decode_component(match.group(0))


def parse_scopes(scopes, timeout_ms=None) -> ScopesMatch:
    """Extract manufacturer, name and model from a scopes string.

    ``success`` is true only when both name and model are non-empty; the
    manufacturer may be empty on success. A regex timeout yields an empty,
    unsuccessful result. MalformedEncodingError propagates to the caller.
    """
    scopes = scopes or ""
    if not scopes:
        return NO_MATCH

    try:
        name = parse_name(scopes, timeout_ms)
        manufacturer = parse_manufacturer(scopes, name, timeout_ms)
        model = parse_model(scopes, timeout_ms)
    except TimeoutError:
        logger.warning(
            "Scopes pattern match exceeded %s ms on %s chars of input; treating as no match.",
            timeout_ms if timeout_ms is not None else _configured_timeout_ms(),
            len(scopes),
        )
        return NO_MATCH

    success = not is_empty(model) and not is_empty(name)
    logger.log(
        TRACE,
        "Pattern scopes parse: success=%s manufacturer=%r name=%r model=%r",
        success, manufacturer, name, model,
    )
    return ScopesMatch(success, manufacturer, name, model)
