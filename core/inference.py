"""
HealthMate - Inference Engines
Sends the assembled chat context to a hosted model (OpenRouter, OpenAI, Groq
or Cloudflare Workers AI) and returns the reply as plain text.
"""
import json
import logging
from typing import Any, Dict, List

from core.exceptions import InferenceError

logger = logging.getLogger(__name__)


def normalize_reply(raw: Any) -> str:
    """
    Coerce a model response into a plain string.

    Accepts a bare string or an object carrying the text in "output_text",
    "result" or "response". Anything else is serialized rather than failing
    the turn.
    """
    if isinstance(raw, str):
        return raw
    if isinstance(raw, dict):
        for key in ("output_text", "result", "response"):
            if isinstance(raw.get(key), str):
                return raw[key]
        if isinstance(raw.get("result"), dict):
            return normalize_reply(raw["result"])
    if raw is None:
        return ""
    try:
        return json.dumps(raw)
    except (TypeError, ValueError):
        return str(raw)


class InferenceEngine:
    """Base class for inference engines."""

    model_name = "unknown"

    def infer(self, messages: List[Dict[str, str]]) -> str:
        raise NotImplementedError

    def get_status(self) -> Dict[str, Any]:
        return {"engine": type(self).__name__, "model": self.model_name}

    def close(self) -> None:
        """Release network clients held by the engine."""


class OpenAIEngine(InferenceEngine):
    """
    Inference engine using OpenAI-compatible APIs (OpenRouter, OpenAI, Groq).
    """
    def __init__(self, api_key: str, base_url: str = None, client=None):
        from config.settings import (
            LLM_MODEL_NAME, LLM_MAX_NEW_TOKENS,
            LLM_TEMPERATURE, INFERENCE_TIMEOUT,
        )

        if client is None:
            import openai
            client = openai.OpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=INFERENCE_TIMEOUT,
                max_retries=0,
            )
        self.client = client

        self.model_name = LLM_MODEL_NAME
        self.max_tokens = LLM_MAX_NEW_TOKENS
        self.temperature = LLM_TEMPERATURE

    def infer(self, messages: List[Dict[str, str]]) -> str:
        try:
            response = self.client.chat.completions.create(
                model=self.model_name,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
            content = response.choices[0].message.content
        except Exception as e:
            logger.error(f"API Generation Error: {e}")
            raise InferenceError(f"Error communicating with AI provider: {e}") from e

        if content is None:
            raise InferenceError("AI provider returned an empty completion")
        return normalize_reply(content).strip()

    def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            close()


class WorkersAIEngine(InferenceEngine):
    """
    Inference engine using the Cloudflare Workers AI REST API.
    """
    def __init__(self, account_id: str, api_token: str, transport=None):
        from config.settings import (
            WORKERS_AI_BASE_URL, WORKERS_AI_MODEL,
            LLM_MAX_NEW_TOKENS, INFERENCE_TIMEOUT,
        )
        import httpx

        self.model_name = WORKERS_AI_MODEL
        self.max_tokens = LLM_MAX_NEW_TOKENS
        self.url = f"{WORKERS_AI_BASE_URL}/accounts/{account_id}/ai/run/{self.model_name}"
        self._client = httpx.Client(
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=INFERENCE_TIMEOUT,
            transport=transport,
        )

    def infer(self, messages: List[Dict[str, str]]) -> str:
        import httpx

        payload = {"messages": messages, "max_tokens": self.max_tokens}
        try:
            response = self._client.post(self.url, json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Workers AI call failed: {e}")
            raise InferenceError(f"Workers AI call failed: {e}") from e
        except ValueError as e:
            raise InferenceError(f"Workers AI returned invalid JSON: {e}") from e

        if isinstance(data, dict) and data.get("success") is False:
            errors = data.get("errors") or []
            raise InferenceError(f"Workers AI reported errors: {errors}")
        return normalize_reply(data).strip()

    def close(self) -> None:
        self._client.close()


class MockEngine(InferenceEngine):
    """
    Demo engine used when no API credentials are configured.
    """
    model_name = "demo"

    def infer(self, messages: List[Dict[str, str]]) -> str:
        question = messages[-1]["content"] if messages else ""
        return (
            "**Health Info (Demo Mode):**\n\n"
            "I'm HealthMate, not a doctor, so please check with a healthcare "
            "professional for advice about your situation.\n\n"
            f"Regarding \"{question}\": with an API key configured I would give "
            "you practical, evidence-based wellness tips here.\n\n"
            "*(Note: This is a simulated response because no API Key was found. "
            "To enable real AI replies, please configure `OPENROUTER_API_KEY`.)*"
        )


# Factory
def get_inference_engine() -> InferenceEngine:
    from config import settings

    provider = settings.LLM_PROVIDER
    if provider == "workers-ai":
        if settings.CLOUDFLARE_ACCOUNT_ID and settings.CLOUDFLARE_API_TOKEN:
            return WorkersAIEngine(settings.CLOUDFLARE_ACCOUNT_ID, settings.CLOUDFLARE_API_TOKEN)
        logger.warning("No Cloudflare credentials found. Falling back to Mock.")
        return MockEngine()

    if provider in ("openai", "openrouter", "groq"):
        if provider == "openrouter" and settings.OPENROUTER_API_KEY:
            return OpenAIEngine(settings.OPENROUTER_API_KEY, settings.OPENROUTER_BASE_URL)
        if provider == "groq" and settings.GROQ_API_KEY:
            return OpenAIEngine(settings.GROQ_API_KEY, settings.GROQ_BASE_URL)
        if settings.OPENAI_API_KEY:
            return OpenAIEngine(settings.OPENAI_API_KEY)
        logger.warning(f"No API key found for {provider}. Falling back to Mock.")
        return MockEngine()

    if provider != "mock":
        logger.warning(f"Unknown LLM_PROVIDER '{provider}', using Mock.")
    return MockEngine()
