import logging
from dataclasses import dataclass
from enum import Enum

from scopes_automaton import parse_scopes_fast
from scopes_common import MalformedEncodingError
from scopes_parser import parse_manufacturer, parse_scopes
from scopes_settings import resolve_strategy

logger = logging.getLogger(__name__)


class ParseStrategy(str, Enum):
    PATTERN = "pattern"
    AUTOMATON = "automaton"
    AUTO = "auto"


@dataclass(frozen=True)
class DeviceIdentity:
    name: str
    manufacturer: str
    model: str
    strategy: ParseStrategy


def _has_whitespace(value):
    return any(ch.isspace() for ch in value)


def _from_automaton(scopes, timeout_ms, strict=False):
    fast = parse_scopes_fast(scopes)
    if not fast.success:
        return None
    # A value holding whitespace has run over into a foreign scope token
    if strict and (_has_whitespace(fast.name) or _has_whitespace(fast.model)):
        logger.debug("Automaton fields span several scope tokens; trying the pattern parser.")
        return None
    try:
        manufacturer = parse_manufacturer(scopes, fast.name, timeout_ms)
    except TimeoutError:
        logger.warning("Manufacturer lookup timed out; keeping identity without manufacturer.")
        manufacturer = ""
    return DeviceIdentity(fast.name, manufacturer, fast.model, ParseStrategy.AUTOMATON)


def _from_pattern(scopes, timeout_ms):
    result = parse_scopes(scopes, timeout_ms)
    if not result.success:
        return None
    return DeviceIdentity(result.name, result.manufacturer, result.model, ParseStrategy.PATTERN)


def extract_identity(scopes, strategy=None, timeout_ms=None):
    """Build a device identity from a scopes string, or None when extraction fails.

    AUTO runs the linear-time automaton first and only falls back to the
    bounded pattern parser when that fails or returns a field containing
    whitespace. Both paths derive the manufacturer with the pattern rules.
    A malformed percent escape fails the whole call.
    """
    strategy = ParseStrategy(strategy or resolve_strategy())

    try:
        if strategy is ParseStrategy.PATTERN:
            identity = _from_pattern(scopes, timeout_ms)
        elif strategy is ParseStrategy.AUTOMATON:
            identity = _from_automaton(scopes, timeout_ms)
        else:
            identity = _from_automaton(scopes, timeout_ms, strict=True) or _from_pattern(scopes, timeout_ms)
    except MalformedEncodingError as e:
        logger.warning("Discarding scopes with malformed encoding: %s", e)
        return None

    if identity is None:
        logger.debug("No device identity in scopes (%s strategy).", strategy.value)
    else:
        logger.debug(
            "Device identity via %s: name=%r manufacturer=%r model=%r",
            identity.strategy.value, identity.name, identity.manufacturer, identity.model,
        )
    return identity
