"""
Response normalization for raw model output.

Models reliably return near-valid JSON: wrapped in markdown fences, with
trailing commas, or with a stray unescaped quote inside a string value. The
normalizer cleans these up in a fixed sequence and allows exactly one repair
pass before giving up with a ParseError.
"""

import json
import logging
import re
from typing import Any, List

from .errors import ParseError

logger = logging.getLogger(__name__)


_OPENING_FENCE = re.compile(r'^\s*```[\w-]*\s*')
_CLOSING_FENCE = re.compile(r'\s*```\s*$')
_TRAILING_COMMA = re.compile(r',\s*([\]}])')
_WHITESPACE_RUN = re.compile(r'\s+')
# An object string value: opening delimiter after ':', closing delimiter
# before ',' or '}'. Anything in between is the candidate value.
_STRING_VALUE = re.compile(r'(:\s*")(.*?)("\s*[,}])')
_UNESCAPED_QUOTE = re.compile(r'(?<!\\)"')


def strip_code_fences(text: str) -> str:
    """Remove a leading ```/```json fence and a trailing ``` fence."""
    text = _OPENING_FENCE.sub('', text, count=1)
    return _CLOSING_FENCE.sub('', text, count=1)


def repair_syntax(text: str) -> str:
    """Drop trailing commas before closing brackets and collapse whitespace."""
    text = _TRAILING_COMMA.sub(r'\1', text)
    return _WHITESPACE_RUN.sub(' ', text).strip()


def extract_array(text: str) -> str:
    """Slice from the first '[' to the last ']', discarding surrounding prose."""
    start = text.find('[')
    end = text.rfind(']')
    if start == -1 or end == -1 or end < start:
        raise ParseError("No JSON array found in model response", text)
    return text[start:end + 1]


def repair_inner_quotes(text: str) -> str:
    """Escape quote marks nested inside object string values."""
    def _escape(match):
        inner = _UNESCAPED_QUOTE.sub(r'\\"', match.group(2))
        return f"{match.group(1)}{inner}{match.group(3)}"

    return _STRING_VALUE.sub(_escape, text)


class ResponseNormalizer:
    """Turns raw model output into a list of loosely-typed records."""

    def normalize(self, raw_text: str) -> List[Any]:
        """
        Extract, repair and parse a raw response.

        Args:
            raw_text: Raw text returned by the model

        Returns:
            The parsed JSON array

        Raises:
            ParseError: if no array can be recovered
        """
        if not raw_text or not raw_text.strip():
            raise ParseError("Model response is empty")

        text = strip_code_fences(raw_text.strip())
        text = repair_syntax(text)
        candidate = extract_array(text)

        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError as first_error:
            logger.warning("Strict parse failed (%s); retrying with quote repair", first_error)
            repaired = repair_inner_quotes(candidate)
            try:
                parsed = json.loads(repaired)
            except json.JSONDecodeError as second_error:
                raise ParseError(
                    f"Model response is not valid JSON: {second_error.msg}", candidate
                ) from second_error

        if not isinstance(parsed, list):
            raise ParseError("Model response is not a JSON array", candidate)

        logger.debug("Normalized response into %d records", len(parsed))
        return parsed
