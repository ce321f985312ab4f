"""
Rule validation orchestration.

Runs each rule through prompt building, one completion request and
response normalization, strictly in submission order with a fixed pause
between requests.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

# Handle both package imports and standalone imports
try:
    from ...models import MAX_VERDICT_TEXT_LENGTH, Verdict, VerdictStatus
except ImportError:
    from models import MAX_VERDICT_TEXT_LENGTH, Verdict, VerdictStatus

from .exceptions import CompletionError
from .normalizer import clean_text, normalize_response
from .prompts import build_validation_prompt

logger = logging.getLogger(__name__)

# Default pause between consecutive rule requests, in seconds
REQUEST_DELAY_SECONDS = 1.0

CompleteFn = Callable[[str, str], Awaitable[str]]
SleepFn = Callable[[float], Awaitable[None]]


def error_verdict(rule: str, error: Exception) -> Verdict:
    """Build the Verdict recorded when a rule's completion request fails."""
    return Verdict(
        rule=clean_text(rule),
        status=VerdictStatus.ERROR,
        evidence="N/A",
        reasoning=clean_text(str(error), MAX_VERDICT_TEXT_LENGTH),
        confidence=0,
    )


async def validate_rules(
    document_text: str,
    rules: Sequence[str],
    complete: CompleteFn,
    delay_seconds: float = REQUEST_DELAY_SECONDS,
    sleep: SleepFn = asyncio.sleep,
) -> list[Verdict]:
    """
    Validate every rule against the document text.

    Rules are processed one at a time. A failed completion request is
    recorded as an "error" Verdict and processing continues with the next
    rule; failed requests are not retried.

    Args:
        document_text: Text extracted from the document.
        rules: Rules in submission order.
        complete: Coroutine taking (system_prompt, user_prompt) and
            returning the raw reply text.
        delay_seconds: Pause between consecutive requests.
        sleep: Awaitable sleep used for the pause.

    Returns:
        One Verdict per rule, in the same order as ``rules``.
    """
    logger.info(
        "Validating %d rule(s) against %d characters of text",
        len(rules),
        len(document_text),
    )

    results: list[Verdict] = []
    for index, rule in enumerate(rules):
        logger.info("Rule %d/%d: %r", index + 1, len(rules), rule)

        system_prompt, user_prompt = build_validation_prompt(rule, document_text)
        try:
            raw_text = await complete(system_prompt, user_prompt)
        except CompletionError as e:
            logger.error("Error validating rule %r: %s", rule, e)
            results.append(error_verdict(rule, e))
        except Exception as e:
            logger.exception("Unexpected error validating rule %r", rule)
            results.append(error_verdict(rule, e))
        else:
            logger.debug("Raw response: %s", raw_text)
            results.append(normalize_response(raw_text, rule))

        if index < len(rules) - 1 and delay_seconds > 0:
            logger.info("Waiting %.1fs before next request", delay_seconds)
            await sleep(delay_seconds)

    logger.info(
        "Validation complete: %d passed, %d failed, %d errors",
        sum(1 for r in results if r.status == VerdictStatus.PASS),
        sum(1 for r in results if r.status == VerdictStatus.FAIL),
        sum(1 for r in results if r.status == VerdictStatus.ERROR),
    )
    return results
