# business_agent/core/llm_client.py
import logging
from typing import Dict, List, Optional

import httpx

from business_agent.core.config import Settings, get_settings
from business_agent.core.errors import GenerationError
from business_agent.core.logging_config import log_llm_event

logger = logging.getLogger(__name__)


class LLMClient:
    """
    OpenAI 호환 /chat/completions 엔드포인트에 대한 얇은 async 래퍼.
    네트워크/쿼터/응답 형식 오류는 모두 GenerationError 로 변환한다.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openai.com/v1",
        default_model: str = "gpt-4.1-mini",
        timeout: float = 60.0,
        temperature: Optional[float] = None,
        log_events: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.url = f"{base_url.rstrip('/')}/chat/completions"
        self.default_model = default_model
        self.timeout = timeout
        self.temperature = temperature
        self.log_events = log_events
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "LLMClient":
        settings = settings or get_settings()
        return cls(
            api_key=settings.OPENAI_API_KEY,
            base_url=settings.OPENAI_BASE_URL,
            default_model=settings.OPENAI_SQL_MODEL,
            timeout=settings.LLM_TIMEOUT_SECONDS,
            temperature=settings.LLM_TEMPERATURE,
            log_events=settings.LOG_LLM,
        )

    async def chat(self, messages: List[Dict], model: Optional[str] = None) -> str:
        use_model = model or self.default_model

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"model": use_model, "messages": messages}
        if self.temperature is not None:
            payload["temperature"] = self.temperature

        log_llm_event(self.log_events, "llm_request", model=use_model, messages=messages)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.url, headers=headers, json=payload)
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException as e:
            logger.error("LLM call timed out after %ss (model=%s)", self.timeout, use_model)
            raise GenerationError(f"Model call timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            logger.error("LLM call failed: HTTP %s", e.response.status_code)
            raise GenerationError(
                f"Model call failed with HTTP {e.response.status_code}: {e.response.text[:500]}"
            ) from e
        except httpx.HTTPError as e:
            logger.error("LLM call failed: %s", e)
            raise GenerationError(f"Model call failed: {e}") from e
        except ValueError as e:
            raise GenerationError("Model returned a non-JSON response") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError("Model response did not contain any message content") from e

        log_llm_event(self.log_events, "llm_response", model=use_model, content=content)
        return content or ""

    async def complete(self, prompt: str, model: Optional[str] = None) -> str:
        """
        단일 프롬프트 → 단일 텍스트. 구조화된 function calling 은 사용하지 않는다.
        """
        return await self.chat([{"role": "user", "content": prompt}], model=model)
