"""Tests for batch rule validation and the AIService wrapper."""

import pytest

from app.backend.models import VerdictStatus
from app.backend.services.ai import AIService, get_ai_service
from app.backend.services.ai.exceptions import (
    ConfigurationError,
    RateLimitError,
    TransportError,
    UpstreamError,
)
from app.backend.services.ai.validation import error_verdict, validate_rules

DOCUMENT = "Purpose: to define onboarding steps. Effective date: 2024-01-01."
RULES = [
    "The document must state a purpose.",
    "The document must have a signature.",
    "The document must have an effective date.",
]


class SleepRecorder:
    """Records requested pauses instead of sleeping."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def _reply(status: str, confidence: int = 90) -> str:
    return (
        f'{{"status":"{status}","evidence":"e","reasoning":"r","confidence":{confidence}}}'
    )


class TestValidateRules:
    """Tests for the validate_rules orchestration function."""

    @pytest.mark.asyncio
    async def test_one_verdict_per_rule_in_order(self, fake_completion_client):
        fake = fake_completion_client([_reply("pass"), _reply("fail"), _reply("pass")])
        results = await validate_rules(
            DOCUMENT, RULES, fake.complete, sleep=SleepRecorder()
        )

        assert [r.rule for r in results] == RULES
        assert [r.status for r in results] == [
            VerdictStatus.PASS,
            VerdictStatus.FAIL,
            VerdictStatus.PASS,
        ]
        # Prompts are sent in submission order
        for (_, user_prompt), rule in zip(fake.calls, RULES):
            assert rule in user_prompt

    @pytest.mark.asyncio
    async def test_failed_rule_isolated(self, fake_completion_client):
        """Test that a transport failure on one rule does not abort the batch."""
        fake = fake_completion_client(
            [_reply("pass"), TransportError("Could not reach completion API"), _reply("fail")]
        )
        results = await validate_rules(
            DOCUMENT, RULES, fake.complete, sleep=SleepRecorder()
        )

        assert len(results) == 3
        assert results[0].status == VerdictStatus.PASS
        assert results[2].status == VerdictStatus.FAIL

        failed = results[1]
        assert failed.rule == RULES[1]
        assert failed.status == VerdictStatus.ERROR
        assert failed.evidence == "N/A"
        assert failed.reasoning == "Could not reach completion API"
        assert failed.confidence == 0

    @pytest.mark.asyncio
    async def test_unexpected_error_isolated(self, fake_completion_client):
        fake = fake_completion_client([RuntimeError("kaboom"), _reply("pass")])
        results = await validate_rules(
            DOCUMENT, RULES[:2], fake.complete, sleep=SleepRecorder()
        )
        assert results[0].status == VerdictStatus.ERROR
        assert results[0].reasoning == "kaboom"
        assert results[1].status == VerdictStatus.PASS

    @pytest.mark.asyncio
    async def test_no_retries(self, fake_completion_client):
        """Test that each rule is requested exactly once, even after a failure."""
        fake = fake_completion_client(
            [RateLimitError("Rate limit exceeded"), _reply("pass"), _reply("pass")]
        )
        await validate_rules(DOCUMENT, RULES, fake.complete, sleep=SleepRecorder())
        assert len(fake.calls) == len(RULES)

    @pytest.mark.asyncio
    async def test_pacing_between_requests_only(self, fake_completion_client):
        """Test that the delay is applied between rules but not after the last."""
        fake = fake_completion_client([_reply("pass")] * 3)
        sleep = SleepRecorder()
        await validate_rules(DOCUMENT, RULES, fake.complete, delay_seconds=0.5, sleep=sleep)
        assert sleep.delays == [0.5, 0.5]

    @pytest.mark.asyncio
    async def test_single_rule_no_pause(self, fake_completion_client):
        fake = fake_completion_client([_reply("pass")])
        sleep = SleepRecorder()
        await validate_rules(DOCUMENT, RULES[:1], fake.complete, sleep=sleep)
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_pause_also_follows_failed_rule(self, fake_completion_client):
        fake = fake_completion_client([TransportError("down"), _reply("pass")])
        sleep = SleepRecorder()
        await validate_rules(DOCUMENT, RULES[:2], fake.complete, delay_seconds=1.0, sleep=sleep)
        assert sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_unparsable_reply_becomes_error_verdict(self, fake_completion_client):
        fake = fake_completion_client(["I think it passes."])
        results = await validate_rules(DOCUMENT, RULES[:1], fake.complete)
        assert results[0].status == VerdictStatus.ERROR
        assert results[0].confidence == 0

    @pytest.mark.asyncio
    async def test_empty_rule_list(self, fake_completion_client):
        fake = fake_completion_client([])
        assert await validate_rules(DOCUMENT, [], fake.complete) == []
        assert fake.calls == []

    @pytest.mark.asyncio
    async def test_end_to_end_scenario(self, fake_completion_client):
        reply = (
            '{"status":"pass","evidence":"Purpose: to define onboarding steps.",'
            '"reasoning":"Document opens with an explicit purpose statement.","confidence":93}'
        )
        fake = fake_completion_client([reply])
        results = await validate_rules(DOCUMENT, RULES[:1], fake.complete)

        assert results[0].model_dump(mode="json") == {
            "rule": "The document must state a purpose.",
            "status": "pass",
            "evidence": "Purpose: to define onboarding steps.",
            "reasoning": "Document opens with an explicit purpose statement.",
            "confidence": 93,
        }
        assert DOCUMENT in fake.calls[0][1]


class TestErrorVerdict:
    """Tests for error_verdict."""

    def test_fields(self):
        verdict = error_verdict("rule", TransportError("network down"))
        assert verdict.status == VerdictStatus.ERROR
        assert verdict.evidence == "N/A"
        assert verdict.reasoning == "network down"
        assert verdict.confidence == 0

    def test_long_message_truncated(self):
        verdict = error_verdict("rule", TransportError("x" * 500))
        assert len(verdict.reasoning) == 200

    def test_surrogates_in_message_replaced(self):
        verdict = error_verdict("rule \udc00", UpstreamError("bad byte \ud83d"))
        assert verdict.rule == "rule ?"
        assert verdict.reasoning == "bad byte ?"


class TestAIService:
    """Tests for the AIService wrapper."""

    def test_unconfigured_without_key(self):
        service = AIService(api_key=None)
        assert service.api_key_configured is False

    def test_configured_with_key(self):
        service = AIService(api_key="gsk-test")
        assert service.api_key_configured is True

    def test_completion_client_requires_key(self):
        service = AIService(api_key="")
        with pytest.raises(ConfigurationError):
            service.completion_client

    @pytest.mark.asyncio
    async def test_validate_rules_fails_fast_without_key(self):
        """Test that a missing key aborts the batch before any rule is tried."""
        service = AIService(api_key=None)
        with pytest.raises(ConfigurationError, match="not configured"):
            await service.validate_rules(DOCUMENT, RULES)

    @pytest.mark.asyncio
    async def test_validate_rules_delegates(self, fake_completion_client):
        fake = fake_completion_client([_reply("pass"), _reply("fail")])
        service = AIService(completion_client=fake, request_delay=0)
        results = await service.validate_rules(DOCUMENT, RULES[:2])
        assert [r.status for r in results] == [VerdictStatus.PASS, VerdictStatus.FAIL]

    @pytest.mark.asyncio
    async def test_test_key_without_key(self):
        result = await AIService(api_key=None).test_key()
        assert result.valid is False
        assert "not configured" in result.error

    @pytest.mark.asyncio
    async def test_test_key_valid(self, fake_completion_client):
        fake = fake_completion_client(models=["llama-3.3-70b-versatile", "mixtral"])
        result = await AIService(completion_client=fake).test_key()
        assert result.valid is True
        assert result.available_models == ["llama-3.3-70b-versatile", "mixtral"]
        assert result.message

    @pytest.mark.asyncio
    async def test_test_key_rejected(self, fake_completion_client):
        from app.backend.services.ai.exceptions import AuthError

        fake = fake_completion_client(models=AuthError("Invalid API key"))
        result = await AIService(completion_client=fake).test_key()
        assert result.valid is False
        assert result.error == "Invalid API key"

    def test_from_settings(self):
        from app.backend.config import Settings

        settings = Settings(
            _env_file=None,
            groq_api_key="gsk-test",
            groq_model="custom-model",
            request_delay_seconds=0.25,
        )
        service = AIService.from_settings(settings)
        assert service.api_key == "gsk-test"
        assert service.model == "custom-model"
        assert service.request_delay == 0.25

    def test_singleton(self):
        assert get_ai_service() is get_ai_service()
