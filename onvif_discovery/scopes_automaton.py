"""Single-pass automaton extraction of device name and model from scopes.

The automaton walks the input once, so its cost is linear in the input
length whatever the input looks like. That bound is the reason this path
exists next to the pattern-based parser.

While seeking, it recognizes ``/name/`` and ``/hardware/`` together. When one
completes, it reads the value up to the next ``onvif:`` or ``onvifs:`` scope
(or the end of input). It then goes back to seeking whichever keyword is
still missing.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from scopes_logging import TRACE
from scopes_common import NO_FAST_MATCH, FastScopesMatch, decode_component, is_empty

logger = logging.getLogger(__name__)

# A value ends where the next onvif- or onvifs-scheme scope token begins
VALUE_TERMINATOR = " onvif:"
SECURE_VALUE_TERMINATOR = " onvifs:"
VALUE_TERMINATORS = (VALUE_TERMINATOR, SECURE_VALUE_TERMINATOR)


def _failure_table(literal):
    """KMP failure table: for each prefix, the length of its longest proper border."""
    table = [0] * len(literal)
    border = 0
    for i in range(1, len(literal)):
        while border and literal[i] != literal[border]:
            border = table[border - 1]
        if literal[i] == literal[border]:
            border += 1
        table[i] = border
    return table


class LiteralRecognizer:
    """Incremental recognizer for one literal, fed one character at a time.

    A mismatch falls back to the longest prefix of the literal that is still a
    suffix of the input seen so far, so a character that breaks one attempt can
    open the next. Work per character is amortized O(1).
    """

    __slots__ = ("literal", "matched", "_fallback")

    def __init__(self, literal: str):
        if not literal:
            raise ValueError("LiteralRecognizer needs a non-empty literal")
        self.literal = literal
        self.matched = 0
        self._fallback = _failure_table(literal)

    def reset(self) -> None:
        self.matched = 0

    def feed(self, ch: str) -> bool:
        """Advance by *ch*; return True when the literal has just been completed."""
        matched = self.matched
        while matched and self.literal[matched] != ch:
            matched = self._fallback[matched - 1]
        if self.literal[matched] == ch:
            matched += 1

        if matched == len(self.literal):
            self.matched = 0
            return True
        self.matched = matched
        return False


@dataclass(frozen=True)
class ScopeKeyword:
    field: str
    segment: str

    @property
    def literal(self) -> str:
        return f"/{self.segment}/"


NAME_KEYWORD = ScopeKeyword(field="name", segment="name")
MODEL_KEYWORD = ScopeKeyword(field="model", segment="hardware")
KEYWORDS = (NAME_KEYWORD, MODEL_KEYWORD)


class ScanState(Enum):
    SEEK_KEYWORD = "seek_keyword"
    READ_VALUE = "read_value"


def _decode_value(raw):
    return decode_component(raw).strip()


def parse_scopes_fast(scopes) -> FastScopesMatch:
    """Extract name and model in one pass over *scopes*.

    ``success`` requires both fields to be non-empty; a single found field is
    still reported so callers can inspect it. MalformedEncodingError
    propagates to the caller.
    """
    if not scopes:
        return NO_FAST_MATCH

    pending = [(keyword, LiteralRecognizer(keyword.literal)) for keyword in KEYWORDS]
    terminators = [LiteralRecognizer(literal) for literal in VALUE_TERMINATORS]
    found = {}

    state = ScanState.SEEK_KEYWORD
    current = None
    start = 0

    for index, ch in enumerate(scopes):
        if state is ScanState.SEEK_KEYWORD:
            for keyword, recognizer in pending:
                if recognizer.feed(ch):
                    current = keyword
                    start = index + 1
                    for terminator in terminators:
                        terminator.reset()
                    state = ScanState.READ_VALUE
                    break
        else:
            # every recognizer sees every character
            completed = [terminator.literal for terminator in terminators if terminator.feed(ch)]
            if not completed:
                continue
            end = index + 1 - len(completed[0])
            found[current.field] = _decode_value(scopes[start:end])
            logger.log(TRACE, "Automaton read %s=%r from [%s:%s]", current.field, found[current.field], start, end)

            pending = [(keyword, recognizer) for keyword, recognizer in pending if keyword is not current]
            if not pending:
                break
            for _, recognizer in pending:
                recognizer.reset()
            current = None
            state = ScanState.SEEK_KEYWORD
    else:
        if state is ScanState.READ_VALUE:
            found[current.field] = _decode_value(scopes[start:])
            logger.log(TRACE, "Automaton read %s=%r from [%s:]", current.field, found[current.field], start)

    name = found.get(NAME_KEYWORD.field, "")
    model = found.get(MODEL_KEYWORD.field, "")
    success = not is_empty(name) and not is_empty(model)
    return FastScopesMatch(success, name, model)
