"""
Prompt construction for rule validation.
"""

# Only this many characters of the document are sent to the model
MAX_DOCUMENT_CHARS = 4000


# =============================================================================
# Validation System Prompt
# =============================================================================

VALIDATION_SYSTEM_PROMPT = """You are a document validation assistant. You MUST respond with ONLY a JSON object, nothing else.
The JSON must have exactly these fields:
- status: either "pass" or "fail"
- evidence: a relevant quote from the document
- reasoning: brief explanation
- confidence: a number between 0-100

Example response format:
{"status":"pass","evidence":"The document states 'Purpose: To establish guidelines'","reasoning":"Document contains a clear purpose statement","confidence":95}"""


def build_validation_prompt(rule: str, document_text: str) -> tuple[str, str]:
    """
    Build the system/user prompt pair for checking one rule.

    The document is truncated to MAX_DOCUMENT_CHARS. The rule is embedded
    as-is; empty rules are allowed.

    Args:
        rule: Natural-language rule to check.
        document_text: Text extracted from the document.

    Returns:
        Tuple of (system_prompt, user_prompt).
    """
    excerpt = document_text[:MAX_DOCUMENT_CHARS]

    user_prompt = f"""Check if this document meets the rule: "{rule}"

Document text (first {MAX_DOCUMENT_CHARS} characters):
{excerpt}

Respond with ONLY the JSON object, no other text."""

    return VALIDATION_SYSTEM_PROMPT, user_prompt
