"""
Recover JSON from model output.

Models often wrap the answer in prose or markdown fences, or produce
almost-valid JSON (trailing commas, comments, single quotes, bare keys).
StructuredTextParser walks a chain of increasingly aggressive strategies and
returns the first structure that parses, or None.
"""
import json
import logging
import re
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger('structured_parser')

_FENCE_OPEN = re.compile(r'^```[a-zA-Z0-9_-]*\s*')
_FENCE_CLOSE = re.compile(r'\s*```\s*$')
_TRAILING_COMMA = re.compile(r',(\s*[}\]])')
_UNQUOTED_KEY = re.compile(r'([{,]\s*)([A-Za-z_$][A-Za-z0-9_$]*)\s*:')
_SINGLE_QUOTE = re.compile(r"(?<!\\)'")
_BAD_LITERAL = re.compile(r'[+-]?\bInfinity\b|\bNaN\b|\bundefined\b')
_GREEDY_OBJECT = re.compile(r'\{[\s\S]*\}')

_PAIRS = {'{': '}', '[': ']'}


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON literal: {name}")


def strict_loads(text: str) -> Any:
    """json.loads without the NaN/Infinity extensions Python accepts by default."""
    return json.loads(text, parse_constant=_reject_constant)


def strip_fences(raw: str) -> str:
    cleaned = raw.strip().lstrip('\ufeff').strip()
    cleaned = _FENCE_OPEN.sub('', cleaned)
    cleaned = _FENCE_CLOSE.sub('', cleaned)
    return cleaned.strip()


def trim_to_structure(text: str) -> str:
    """Cut text down to the span from the first opener to the last matching closer."""
    first_brace = text.find('{')
    first_bracket = text.find('[')
    if first_brace == -1 and first_bracket == -1:
        return text

    if first_brace != -1 and (first_bracket == -1 or first_brace < first_bracket):
        start, closer = first_brace, '}'
    else:
        start, closer = first_bracket, ']'

    end = text.rfind(closer)
    if end < start:
        return text[start:]
    return text[start:end + 1]


def extract_balanced(text: str, opener: str) -> Optional[str]:
    """Return the first balanced opener...closer span, ignoring symbols inside strings."""
    closer = _PAIRS[opener]
    depth = 0
    start = -1
    in_string = False
    escaped = False

    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            continue

        if ch == '"':
            in_string = True
        elif ch == opener:
            if depth == 0:
                start = i
            depth += 1
        elif ch == closer and depth > 0:
            depth -= 1
            if depth == 0:
                return text[start:i + 1]

    return None


def strip_comments(text: str) -> str:
    """Drop // and /* */ comments that sit outside string literals."""
    out: List[str] = []
    i = 0
    n = len(text)
    in_string = False
    escaped = False

    while i < n:
        ch = text[i]
        if in_string:
            out.append(ch)
            if escaped:
                escaped = False
            elif ch == '\\':
                escaped = True
            elif ch == '"':
                in_string = False
            i += 1
            continue

        if ch == '"':
            in_string = True
            out.append(ch)
            i += 1
        elif text.startswith('//', i):
            newline = text.find('\n', i)
            i = n if newline == -1 else newline
        elif text.startswith('/*', i):
            close = text.find('*/', i + 2)
            i = n if close == -1 else close + 2
        else:
            out.append(ch)
            i += 1

    return ''.join(out)


def remove_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r'\1', text)


def repair(text: str) -> str:
    """Best-effort rewrite of JavaScript-ish object text into JSON."""
    fixed = strip_comments(text)
    fixed = remove_trailing_commas(fixed)
    fixed = _UNQUOTED_KEY.sub(r'\1"\2":', fixed)
    # Naive: an apostrophe inside a double-quoted string is converted too
    fixed = _SINGLE_QUOTE.sub('"', fixed)
    fixed = _BAD_LITERAL.sub('null', fixed)
    return fixed


class StructuredTextParser:
    """Pure, deterministic recovery of a JSON value from model text."""

    def parse(self, raw: Any) -> Optional[Any]:
        if not isinstance(raw, str) or not raw.strip():
            logger.debug("parse: empty or non-string input")
            return None

        cleaned = trim_to_structure(strip_fences(raw))

        strategies: List[Tuple[str, Callable[[str], Optional[Any]]]] = [
            ('direct', self._direct),
            ('balanced', self._balanced),
            ('repaired', self._repaired),
            ('regex', self._regex),
        ]
        for name, strategy in strategies:
            result = strategy(cleaned)
            if result is not None:
                logger.debug(f"parse: {name} strategy succeeded")
                return result

        logger.info(f"parse: all strategies failed; text starts with {cleaned[:200]!r}")
        return None

    @staticmethod
    def _try(text: Optional[str]) -> Optional[Any]:
        if not text:
            return None
        try:
            return strict_loads(text)
        except (ValueError, RecursionError):
            # RecursionError: nesting deeper than the decoder can follow
            return None

    def _direct(self, cleaned: str) -> Optional[Any]:
        return self._try(cleaned)

    def _balanced(self, cleaned: str) -> Optional[Any]:
        parsed = self._try(extract_balanced(cleaned, '{'))
        if parsed is not None:
            return parsed
        return self._try(extract_balanced(cleaned, '['))

    def _repaired(self, cleaned: str) -> Optional[Any]:
        return self._try(repair(cleaned))

    def _regex(self, cleaned: str) -> Optional[Any]:
        match = _GREEDY_OBJECT.search(cleaned)
        if not match:
            return None
        return self._try(remove_trailing_commas(match.group(0)))


_default_parser = StructuredTextParser()


def parse_json_from_text(raw: Any) -> Optional[Any]:
    """Module-level shortcut for StructuredTextParser().parse."""
    return _default_parser.parse(raw)
