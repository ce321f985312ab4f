"""
Pydantic models for the rule validation pipeline.

Defines the Verdict wire contract returned for every rule and the
request/response shapes of the HTTP API.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

# Upper bound for evidence and reasoning text in a Verdict
MAX_VERDICT_TEXT_LENGTH = 200


class VerdictStatus(str, Enum):
    """Outcome of checking one rule against a document."""

    PASS = "pass"
    FAIL = "fail"
    ERROR = "error"  # Pipeline-level failure, never produced by the model


class Verdict(BaseModel):
    """
    Structured result of validating one rule against extracted text.

    Verdicts are immutable. They are built either from a parsed model reply
    or from an error fallback, and are always well-formed.

    Attributes:
        rule: The rule text, echoed verbatim.
        status: pass, fail or error.
        evidence: Quote or excerpt from the document.
        reasoning: Short explanation of the verdict.
        confidence: Integer confidence between 0 and 100.
    """

    model_config = ConfigDict(frozen=True)

    rule: str = Field(..., description="Rule text as submitted")
    status: VerdictStatus = Field(..., description="Validation outcome")
    evidence: str = Field(
        ...,
        max_length=MAX_VERDICT_TEXT_LENGTH,
        description="Supporting quote from the document",
    )
    reasoning: str = Field(
        ...,
        max_length=MAX_VERDICT_TEXT_LENGTH,
        description="Explanation of the outcome",
    )
    confidence: int = Field(
        ...,
        ge=0,
        le=100,
        description="Confidence score (0-100)",
    )


class ValidateResponse(BaseModel):
    """Response from POST /api/validate."""

    results: list[Verdict] = Field(
        default_factory=list,
        description="One verdict per rule, in submission order",
    )


class HealthResponse(BaseModel):
    """Health check response."""

    model_config = ConfigDict(populate_by_name=True)

    status: str = Field(default="ok")
    message: str = Field(default="Server is running")
    api_key_configured: bool = Field(
        default=False,
        alias="apiKeyConfigured",
        description="Whether the completion API key is set (never its value)",
    )


class TestKeyResponse(BaseModel):
    """Result of probing the completion provider with the configured key."""

    __test__ = False  # Not a pytest test class

    model_config = ConfigDict(populate_by_name=True)

    valid: bool
    message: str | None = None
    error: str | None = None
    available_models: list[str] | None = Field(
        default=None,
        alias="availableModels",
    )


class ErrorResponse(BaseModel):
    """Top-level error returned instead of a result list."""

    error: str


# Decoder for the multipart "rules" field: a JSON array of strings
RULES_ADAPTER = TypeAdapter(list[str])
