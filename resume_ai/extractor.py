"""
Normalize the many shapes a model response can take into one text payload.
"""
import json
import logging
from enum import Enum
from typing import Any, NamedTuple, Optional, Sequence, Tuple, Union

logger = logging.getLogger(__name__)

_MISSING = object()

PathStep = Union[str, int]


class ResponseShape(str, Enum):
    OUTPUT_TEXT = "output_text"
    TEXT = "text"
    NESTED_RESPONSE = "response"
    CANDIDATE_PARTS = "candidates.content.parts"
    CANDIDATE = "candidates"
    CONTENT_PARTS = "content.parts"
    CHAT_CHOICES = "choices.message"
    PLAIN_STRING = "string"
    SCHEMA_OBJECT = "schema_object"
    UNKNOWN = "unknown"


class DecodedResponse(NamedTuple):
    shape: ResponseShape
    text: str


# Probed in order; first non-empty value wins.
RESPONSE_PATHS: Sequence[Tuple[ResponseShape, Tuple[PathStep, ...]]] = (
    (ResponseShape.OUTPUT_TEXT, ('output_text',)),
    (ResponseShape.TEXT, ('text',)),
    (ResponseShape.NESTED_RESPONSE, ('response', 'output_text')),
    (ResponseShape.NESTED_RESPONSE, ('response', 'text')),
    (ResponseShape.CANDIDATE_PARTS, ('candidates', 0, 'content', 'parts', 0, 'output_text')),
    (ResponseShape.CANDIDATE_PARTS, ('candidates', 0, 'content', 'parts', 0, 'text')),
    (ResponseShape.CANDIDATE, ('candidates', 0, 'output_text')),
    (ResponseShape.CANDIDATE, ('candidates', 0, 'text')),
    (ResponseShape.CONTENT_PARTS, ('content', 'parts', 0, 'output_text')),
    (ResponseShape.CONTENT_PARTS, ('content', 'parts', 0, 'text')),
    (ResponseShape.CHAT_CHOICES, ('choices', 0, 'message', 'content')),
)


def _step(value: Any, key: PathStep) -> Any:
    """Follow one path step through a mapping, sequence or object attribute."""
    if value is None:
        return _MISSING
    try:
        if isinstance(key, int):
            if isinstance(value, (str, bytes, dict)):
                return _MISSING
            return value[key]
        if isinstance(value, dict):
            return value.get(key, _MISSING)
        # SDK objects expose fields as properties; some raise when empty
        return getattr(value, key, _MISSING)
    except (AttributeError, IndexError, KeyError, TypeError, ValueError):
        return _MISSING


def _probe(response: Any, path: Tuple[PathStep, ...]) -> Any:
    value = response
    for key in path:
        value = _step(value, key)
        if value is _MISSING:
            return _MISSING
    return value


def _as_text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value if value.strip() else None
    if isinstance(value, (dict, list)) and value:
        try:
            return json.dumps(value)
        except (TypeError, ValueError):
            return None
    return None


class ResponseTextExtractor:
    """Pull the model's text out of whatever the client handed back."""

    def decode(self, response: Any) -> DecodedResponse:
        if response is None:
            return DecodedResponse(ResponseShape.UNKNOWN, '')

        if not isinstance(response, str):
            for shape, path in RESPONSE_PATHS:
                text = _as_text(_probe(response, path))
                if text:
                    return DecodedResponse(shape, text)

        if isinstance(response, str):
            if response.strip():
                return DecodedResponse(ResponseShape.PLAIN_STRING, response.strip())
            return DecodedResponse(ResponseShape.UNKNOWN, '')

        # Already a parsed answer, e.g. a client that decoded JSON itself
        if isinstance(response, dict) and ('score' in response or 'strengths' in response):
            try:
                return DecodedResponse(ResponseShape.SCHEMA_OBJECT, json.dumps(response))
            except (TypeError, ValueError):
                logger.warning("Response object could not be serialized")

        return DecodedResponse(ResponseShape.UNKNOWN, '')

    def extract(self, response: Any) -> str:
        """Return the response text, or '' when nothing usable was found."""
        decoded = self.decode(response)
        if decoded.shape is ResponseShape.UNKNOWN:
            logger.debug(f"No text found in response of type {type(response).__name__}")
        return decoded.text
