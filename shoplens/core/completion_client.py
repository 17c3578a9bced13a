import logging
from typing import Optional

import httpx

from ..config import CompletionSettings
from ..exceptions import CompletionServiceError

logger = logging.getLogger(__name__)


class CompletionClient:
    """
    Thin client for an OpenAI-compatible chat-completions endpoint (Groq).
    Settings are fixed at construction.
    """
    def __init__(self, http_client: httpx.AsyncClient, settings: CompletionSettings):
        self.http_client = http_client
        self.settings = settings

    async def complete(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        payload = {
            "messages": [{"role": "user", "content": prompt}],
            "model": self.settings.model,
            "temperature": self.settings.temperature if temperature is None else temperature,
            "max_tokens": self.settings.max_tokens if max_tokens is None else max_tokens,
            "top_p": 1,
            "stream": False,
            "stop": None,
        }
        headers = {"Content-Type": "application/json"}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"

        try:
            response = await self.http_client.post(
                self.settings.api_url,
                json=payload,
                headers=headers,
                timeout=self.settings.timeout_seconds,
            )
            response.raise_for_status()
            body = response.json()
            return body["choices"][0]["message"]["content"].strip()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Completion API returned an error",
                extra={"status_code": e.response.status_code, "detail": e.response.text[:500]}
            )
            raise CompletionServiceError("Failed to fetch recommendations") from e
        except httpx.HTTPError as e:
            logger.error("Completion API unreachable", extra={"error": repr(e)})
            raise CompletionServiceError("Failed to fetch recommendations") from e
        except (ValueError, KeyError, IndexError, TypeError, AttributeError) as e:
            logger.error("Completion API returned an unexpected payload", extra={"error": repr(e)})
            raise CompletionServiceError("Failed to fetch recommendations") from e
