"""
Normalization of free-text model replies into Verdicts.

The model is asked for a bare JSON object but routinely wraps it in
markdown fences, adds prose around it, renames fields or returns
out-of-range numbers. normalize_response() absorbs all of that and always
returns a well-formed Verdict. It never raises.
"""

import json
import logging
import math
import re
from typing import Any

from pydantic import ValidationError

# Handle both package imports and standalone imports
try:
    from ...models import MAX_VERDICT_TEXT_LENGTH, Verdict, VerdictStatus
except ImportError:
    from models import MAX_VERDICT_TEXT_LENGTH, Verdict, VerdictStatus

logger = logging.getLogger(__name__)


# =============================================================================
# Defaults
# =============================================================================

DEFAULT_EVIDENCE = "No evidence provided"
DEFAULT_REASONING = "No reasoning provided"
DEFAULT_CONFIDENCE = 50
PARSE_FAILURE_EVIDENCE = "Unable to parse LLM response"

# Length of the raw reply excerpt quoted in parse-failure reasoning
RAW_EXCERPT_LENGTH = 100

# Accepted field names, in lookup order
STATUS_KEYS = ("status", "Status")
EVIDENCE_KEYS = ("evidence", "Evidence", "quote")
REASONING_KEYS = ("reasoning", "Reasoning", "reason")
CONFIDENCE_KEYS = ("confidence", "Confidence", "score")

_JSON_FENCE_RE = re.compile(r"```json\s*", re.IGNORECASE)
_FENCE_RE = re.compile(r"```\s*")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")


# =============================================================================
# Helper Functions
# =============================================================================


def clean_text(text: str, limit: int | None = None) -> str:
    """
    Make text safe for a Verdict field.

    Characters that cannot be encoded as UTF-8 (lone surrogates from JSON
    escapes like "\\ud83d") are replaced with "?", then the text is cut
    to ``limit`` characters when one is given.
    """
    text = text.encode("utf-8", "replace").decode("utf-8")
    return text if limit is None else text[:limit]


def _truncate(text: str, limit: int = MAX_VERDICT_TEXT_LENGTH) -> str:
    return clean_text(text, limit)


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _lookup(data: dict[str, Any], keys: tuple[str, ...]) -> Any:
    """
    Return the first present value among ``keys``.

    Exact names are tried in order first, then a case-insensitive match.
    Null and empty-string values count as missing.
    """
    for key in keys:
        value = data.get(key)
        if not _is_missing(value):
            return value

    lowered = {str(k).lower(): v for k, v in data.items()}
    for key in keys:
        value = lowered.get(key.lower())
        if not _is_missing(value):
            return value

    return None


def extract_json_text(raw_text: str) -> str:
    """
    Strip markdown fences and surrounding prose from a model reply.

    Returns the span from the first ``{`` to the last ``}`` when both exist
    in that order, otherwise the cleaned text unchanged.
    """
    text = _JSON_FENCE_RE.sub("", raw_text)
    text = _FENCE_RE.sub("", text).strip()

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end != -1 and end > start:
        text = text[start : end + 1]

    return text.strip()


def _parse_json_object(text: str) -> dict[str, Any]:
    """
    Parse ``text`` as a JSON object.

    If the whole span does not parse (e.g. prose between two objects),
    the first balanced object starting at the first ``{`` is tried.

    Raises:
        ValueError: If no JSON object can be parsed.
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as first_error:
        start = text.find("{")
        if start == -1:
            raise
        try:
            parsed, _ = json.JSONDecoder().raw_decode(text, start)
        except json.JSONDecodeError:
            raise first_error from None

    if not isinstance(parsed, dict):
        raise ValueError(f"expected a JSON object, got {type(parsed).__name__}")
    return parsed


def parse_confidence(value: Any) -> int | None:
    """
    Parse a confidence value to an integer without clamping.

    Accepts ints, finite floats (truncated) and strings with a leading
    integer such as "87", "87.5" or "87%". Returns None when unparsable.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        if not match:
            return None
        try:
            return int(match.group(1))
        except ValueError:
            # Digit strings beyond the interpreter's conversion limit
            return None
    return None


def _clamp(value: int, low: int = 0, high: int = 100) -> int:
    return max(low, min(high, value))


def _fallback_verdict(rule: str, error: Exception, content: str) -> Verdict:
    """Build the error Verdict returned when a reply cannot be parsed."""
    reasoning = f"Parse error: {error}. Raw content: {content[:RAW_EXCERPT_LENGTH]}"
    return Verdict(
        rule=clean_text(rule),
        status=VerdictStatus.ERROR,
        evidence=PARSE_FAILURE_EVIDENCE,
        reasoning=_truncate(reasoning),
        confidence=0,
    )


# =============================================================================
# Main Normalization Function
# =============================================================================


def normalize_response(raw_text: str, rule: str) -> Verdict:
    """
    Convert a raw model reply into a Verdict.

    Field handling:
    - status: lower-cased; anything other than "pass" or "fail" becomes "fail"
    - evidence / reasoning: placeholders when missing, truncated to 200 chars
    - confidence: integer clamped to [0, 100], 50 when missing or unparsable

    A "pass" that arrives without a usable confidence is downgraded to
    "fail", so a defaulted confidence never accompanies a pass.

    Args:
        raw_text: Reply content from the completion API.
        rule: The rule being validated, echoed into the Verdict.

    Returns:
        A well-formed Verdict. Unparsable replies yield status "error"
        with confidence 0.
    """
    content = extract_json_text(raw_text or "")
    logger.debug("Cleaned response: %s", content)

    try:
        data = _parse_json_object(content)
    except (ValueError, RecursionError) as e:
        logger.warning("Failed to parse LLM response: %s", e)
        logger.debug("Content that failed to parse: %s", content)
        return _fallback_verdict(rule, e, content)

    status_raw = _lookup(data, STATUS_KEYS)
    status = str(status_raw).strip().lower() if status_raw is not None else "fail"
    if status not in (VerdictStatus.PASS.value, VerdictStatus.FAIL.value):
        status = VerdictStatus.FAIL.value

    evidence = _lookup(data, EVIDENCE_KEYS)
    reasoning = _lookup(data, REASONING_KEYS)

    confidence = parse_confidence(_lookup(data, CONFIDENCE_KEYS))
    if confidence is None:
        confidence = DEFAULT_CONFIDENCE
        if status == VerdictStatus.PASS.value:
            logger.warning("Pass verdict without usable confidence, downgrading to fail")
            status = VerdictStatus.FAIL.value

    try:
        verdict = Verdict(
            rule=clean_text(rule),
            status=VerdictStatus(status),
            evidence=_truncate(DEFAULT_EVIDENCE if evidence is None else str(evidence)),
            reasoning=_truncate(DEFAULT_REASONING if reasoning is None else str(reasoning)),
            confidence=_clamp(confidence),
        )
    except ValidationError as e:
        logger.warning("LLM response produced an invalid verdict: %s", e)
        return _fallback_verdict(rule, e, content)
    logger.info(
        "Validation result: %s (%d%%)", verdict.status.value.upper(), verdict.confidence
    )
    return verdict
