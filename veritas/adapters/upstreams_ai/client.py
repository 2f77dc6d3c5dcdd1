"""LLM Upstream Client - Real HTTP invocation."""
import httpx
from typing import Dict, Any, Optional

from veritas.core.config import DEFAULT_OPENAI_BASE_URL

# Timeout configuration
DEFAULT_TIMEOUT = 30.0


def resolve_base_url(base_url: Optional[str]) -> str:
    """Empty base URL means the provider default."""
    return (base_url or DEFAULT_OPENAI_BASE_URL).rstrip("/")


async def invoke_openai_compatible(
    base_url: str,
    model_name: str,
    messages: list,
    api_key: str,
    max_tokens: Optional[int] = None,
    timeout: float = DEFAULT_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """Invoke an OpenAI-compatible chat completions endpoint."""
    headers = {
        "Content-Type": "application/json"
    }

    # Local providers (Ollama) run without a credential
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"

    payload: Dict[str, Any] = {
        "model": model_name,
        "messages": messages,
    }

    if max_tokens:
        payload["max_tokens"] = max_tokens

    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        response = await client.post(
            f"{resolve_base_url(base_url)}/chat/completions",
            headers=headers,
            json=payload
        )

        if response.status_code == 429:
            raise UpstreamRateLimitError(f"Upstream returned 429: {response.text}")
        elif response.status_code >= 500:
            raise UpstreamServerError(f"Upstream returned {response.status_code}")
        elif response.status_code >= 400:
            raise UpstreamClientError(f"Upstream returned {response.status_code}: {response.text}")

        return response.json()


class UpstreamError(Exception):
    """Base upstream error."""
    pass


class UpstreamRateLimitError(UpstreamError):
    """Upstream rate limited (429)."""
    pass


class UpstreamServerError(UpstreamError):
    """Upstream server error (5xx)."""
    pass


class UpstreamClientError(UpstreamError):
    """Upstream client error (4xx)."""
    pass
