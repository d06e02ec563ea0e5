"""Groq LLM client wrapper with error handling.

Groq exposes an OpenAI-compatible REST API; answers are streamed as
server-sent events.
"""
import json
import httpx
from typing import AsyncIterator, List, Dict, Optional
import structlog

from docmind import config
from docmind.errors import LLMError, RateLimitError

logger = structlog.get_logger()


class GroqClient:
    """Async client for the Groq chat completions API."""

    def __init__(
        self,
        api_key: str = None,
        base_url: str = None,
        model: str = None,
        timeout: float = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Groq client.

        Args:
            api_key: Groq API key (defaults to config.GROQ_API_KEY)
            base_url: API base URL (defaults to config.GROQ_BASE_URL)
            model: Chat model name (defaults to config.CHAT_MODEL)
            timeout: Request timeout in seconds
            transport: Optional httpx transport, used by tests
        """
        self.api_key = api_key or config.GROQ_API_KEY
        self.base_url = (base_url or config.GROQ_BASE_URL).rstrip("/")
        self.model = model or config.CHAT_MODEL
        self.timeout = timeout or config.REQUEST_TIMEOUT
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"Authorization": f"Bearer {self.api_key}"},
            transport=self._transport,
        )

    def _payload(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str],
        stream: bool,
        temperature: Optional[float],
    ) -> Dict:
        if system:
            messages = [{"role": "system", "content": system}] + list(messages)
        payload = {
            "model": self.model,
            "messages": messages,
            "stream": stream,
        }
        if temperature is not None:
            payload["temperature"] = temperature
        return payload

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.status_code == 429:
            logger.warning("groq_rate_limited", retry_after=response.headers.get("retry-after"))
            raise RateLimitError("Chat model provider is rate limiting requests")
        if response.is_error:
            logger.error(
                "groq_http_error",
                status_code=response.status_code,
                body_preview=response.text[:200],
            )
            raise LLMError(f"Chat completion failed with HTTP {response.status_code}")

    async def chat(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """Send a chat completion request and return the full answer.

        Args:
            messages: List of message dicts with 'role' and 'content'
            system: Optional system prompt prepended to the messages
            temperature: Sampling temperature

        Returns:
            Assistant message content

        Raises:
            RateLimitError: On HTTP 429
            LLMError: On any other API or connection error
        """
        payload = self._payload(messages, system, False, temperature)

        try:
            async with self._client() as client:
                logger.info(
                    "groq_chat_request",
                    model=self.model,
                    message_count=len(payload["messages"]),
                    stream=False,
                )
                response = await client.post("/chat/completions", json=payload)
                self._raise_for_status(response)
                data = response.json()
        except httpx.HTTPError as e:
            logger.error("groq_connection_error", error=str(e), base_url=self.base_url)
            raise LLMError(f"Chat completion request failed: {e}") from e

        content = data["choices"][0]["message"]["content"] or ""
        logger.info("groq_chat_response", model=self.model, response_length=len(content))
        return content

    async def chat_stream(
        self,
        messages: List[Dict[str, str]],
        system: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> AsyncIterator[str]:
        """Stream a chat completion, yielding content deltas as they arrive.

        Raises:
            RateLimitError: On HTTP 429
            LLMError: On any other API or connection error
        """
        payload = self._payload(messages, system, True, temperature)
        total_chars = 0

        try:
            async with self._client() as client:
                logger.info(
                    "groq_chat_request",
                    model=self.model,
                    message_count=len(payload["messages"]),
                    stream=True,
                )
                async with client.stream("POST", "/chat/completions", json=payload) as response:
                    if response.is_error:
                        await response.aread()
                    self._raise_for_status(response)

                    async for line in response.aiter_lines():
                        if not line.startswith("data:"):
                            continue
                        data = line[len("data:"):].strip()
                        if data == "[DONE]":
                            break
                        try:
                            event = json.loads(data)
                        except json.JSONDecodeError:
                            logger.warning("groq_stream_bad_event", event_preview=data[:100])
                            continue
                        choices = event.get("choices") or []
                        if not choices:
                            continue
                        delta = choices[0].get("delta") or {}
                        if content := delta.get("content"):
                            total_chars += len(content)
                            yield content
        except httpx.HTTPError as e:
            logger.error("groq_connection_error", error=str(e), base_url=self.base_url)
            raise LLMError(f"Chat completion stream failed: {e}") from e

        logger.info("groq_stream_completed", model=self.model, response_length=total_chars)

    async def list_models(self) -> List[str]:
        """List the model ids available to this API key.

        Raises:
            LLMError: On API errors
        """
        try:
            async with self._client() as client:
                response = await client.get("/models")
                self._raise_for_status(response)
                data = response.json()
        except httpx.HTTPError as e:
            logger.error("groq_list_models_error", error=str(e))
            raise LLMError(f"Listing models failed: {e}") from e
        return [m["id"] for m in data.get("data", [])]
