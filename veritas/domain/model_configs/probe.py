"""Connectivity Prober.

Tests a transient (never persisted) profile with one minimal chat completion
against the upstream and classifies the outcome. The prober never touches
the store and never raises: every failure resolves to a ProbeResult.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, Optional, Tuple

import httpx

from veritas.adapters.upstreams_ai.client import DEFAULT_TIMEOUT, invoke_openai_compatible
from veritas.domain.model_configs.models import TestModelConfigRequest, TestModelConfigResponse
from veritas.logging_hardening import redact_text

logger = logging.getLogger(__name__)

PROBE_PROMPT = "Hello"
PROBE_MAX_TOKENS = 10


class ProbeOutcome(str, Enum):
    SUCCESS = "success"
    TIMEOUT = "timeout"
    AUTH_FAILED = "auth_failed"
    MODEL_NOT_FOUND = "model_not_found"
    RATE_LIMITED = "rate_limited"
    OTHER = "other"


# Checked in order; the first rule with a matching marker wins.
CLASSIFICATION_RULES: Tuple[Tuple[ProbeOutcome, Tuple[str, ...]], ...] = (
    (ProbeOutcome.AUTH_FAILED, ("401", "unauthorized", "invalid_api_key")),
    (ProbeOutcome.MODEL_NOT_FOUND, ("404", "model_not_found")),
    (ProbeOutcome.RATE_LIMITED, ("429", "rate_limit")),
    (ProbeOutcome.TIMEOUT, ("context deadline exceeded", "timed out", "timeout")),
)

# Caller-visible text per outcome: (message, errorDetails)
_MESSAGES: Dict[ProbeOutcome, Tuple[str, Optional[str]]] = {
    ProbeOutcome.SUCCESS: ("Connection successful", None),
    ProbeOutcome.TIMEOUT: ("Connection timeout", "Request timed out"),
    ProbeOutcome.AUTH_FAILED: ("Authentication failed", "Invalid API key"),
    ProbeOutcome.MODEL_NOT_FOUND: ("Invalid model ID", "The specified model does not exist"),
    ProbeOutcome.RATE_LIMITED: ("Rate limit exceeded", "Too many requests, please try again later"),
    ProbeOutcome.OTHER: ("Connection failed", None),
}


def classify_probe_error(error_text: str) -> ProbeOutcome:
    text = (error_text or "").lower()
    for outcome, markers in CLASSIFICATION_RULES:
        if any(marker in text for marker in markers):
            return outcome
    return ProbeOutcome.OTHER


@dataclass(frozen=True)
class ProbeProfile:
    base_url: str
    model_id: str
    api_key: str = field(repr=False)

    @classmethod
    def from_request(cls, request: TestModelConfigRequest) -> "ProbeProfile":
        return cls(base_url=request.base_url, model_id=request.model_id, api_key=request.api_key)


@dataclass(frozen=True)
class ProbeResult:
    outcome: ProbeOutcome
    latency_ms: Optional[float] = None
    raw_message: Optional[str] = None  # OTHER only, already scrubbed

    @property
    def success(self) -> bool:
        return self.outcome is ProbeOutcome.SUCCESS

    def to_response(self) -> TestModelConfigResponse:
        message, error_details = _MESSAGES[self.outcome]
        if self.success:
            return TestModelConfigResponse(
                success=True,
                message=message,
                details={
                    "responseTime": f"{self.latency_ms:.0f}ms",
                    "modelAvailable": "true",
                },
            )
        if self.outcome is ProbeOutcome.OTHER:
            error_details = self.raw_message or "Unknown error"
        return TestModelConfigResponse(success=False, message=message, error_details=error_details)


Invoker = Callable[..., Awaitable[dict]]


class ConnectivityProber:
    """Runs one bounded completion request per probe. No retries."""

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT,
        invoke: Invoker = invoke_openai_compatible,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._invoke = invoke
        self._transport = transport

    async def probe(self, profile: ProbeProfile) -> ProbeResult:
        started = time.perf_counter()
        try:
            await asyncio.wait_for(self._call(profile), timeout=self._timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            result = ProbeResult(ProbeOutcome.TIMEOUT)
        except asyncio.CancelledError:
            # A cancelled probe still answers with a classified result.
            result = ProbeResult(ProbeOutcome.TIMEOUT)
        except Exception as e:
            outcome = classify_probe_error(str(e))
            raw = redact_text(str(e), profile.api_key) if outcome is ProbeOutcome.OTHER else None
            result = ProbeResult(outcome, raw_message=raw)
        else:
            latency_ms = (time.perf_counter() - started) * 1000
            result = ProbeResult(ProbeOutcome.SUCCESS, latency_ms=latency_ms)

        logger.info("Connectivity probe for model %s: %s", profile.model_id, result.outcome.value)
        return result

    async def _call(self, profile: ProbeProfile) -> dict:
        kwargs = {}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return await self._invoke(
            base_url=profile.base_url,
            model_name=profile.model_id,
            messages=[{"role": "user", "content": PROBE_PROMPT}],
            api_key=profile.api_key,
            max_tokens=PROBE_MAX_TOKENS,
            timeout=self._timeout,
            **kwargs,
        )
