"""Chat flow: retrieval, prompt selection and answer streaming."""
from pathlib import Path
from typing import AsyncIterator, Dict, List, Optional, Sequence
import yaml
import structlog

from docmind import config
from docmind.errors import EmbeddingError, VectorStoreError
from docmind.messages import ChatMessage
from docmind.rag.retriever import RetrievedContext

logger = structlog.get_logger()

PROMPT_MODES = ("fallback", "strict")
REQUIRED_PROMPTS = ("context", "context_strict", "general", "not_found")


def load_prompts(path: Path = None) -> Dict[str, str]:
    """Load system prompt templates from a YAML file."""
    path = path or config.PROMPTS_PATH
    with open(path, "r", encoding="utf-8") as f:
        prompts = yaml.safe_load(f) or {}

    missing = [name for name in REQUIRED_PROMPTS if name not in prompts]
    if missing:
        raise ValueError(f"Prompt file {path} is missing: {', '.join(missing)}")
    return prompts


class ChatService:
    """Answers chat turns, grounding them in retrieved document context."""

    def __init__(
        self,
        llm,
        retriever,
        prompts: Optional[Dict[str, str]] = None,
        prompt_mode: str = None,
    ):
        """Initialize the chat service.

        Args:
            llm: Object with an async-iterator ``chat_stream(messages, system=)``
            retriever: Object with an async ``retrieve_context(query)``
            prompts: Prompt templates (loaded from PROMPTS_PATH if omitted)
            prompt_mode: "fallback" or "strict" (default from config)
        """
        self.llm = llm
        self.retriever = retriever
        self.prompts = prompts or load_prompts()
        self.prompt_mode = prompt_mode or config.PROMPT_MODE

        if self.prompt_mode not in PROMPT_MODES:
            raise ValueError(
                f"Unknown prompt mode {self.prompt_mode!r}, expected one of {PROMPT_MODES}"
            )

    def build_system_prompt(self, context: str) -> str:
        """Pick the system prompt for a turn.

        Non-empty context selects a context-grounded prompt; empty context
        selects the general-knowledge prompt, or the "not found" prompt in
        strict mode.
        """
        strict = self.prompt_mode == "strict"
        if context:
            template = self.prompts["context_strict" if strict else "context"]
            return template.format(context=context)
        return self.prompts["not_found" if strict else "general"]

    async def _retrieve(self, query: str) -> RetrievedContext:
        """Retrieve context for a query.

        In fallback mode a provider failure degrades to an empty context, so
        the turn is answered with the general prompt. In strict mode the
        error propagates: an outage must not be reported as "not found in
        the documents".
        """
        try:
            return await self.retriever.retrieve_context(query)
        except (EmbeddingError, VectorStoreError) as e:
            logger.error(
                "rag_retrieval_failed",
                error=str(e),
                error_type=type(e).__name__,
                prompt_mode=self.prompt_mode,
            )
            if self.prompt_mode == "strict":
                raise
            return RetrievedContext(context="", matches=[])

    async def answer_stream(self, messages: Sequence[ChatMessage]) -> AsyncIterator[str]:
        """Stream the assistant's answer to a conversation.

        When the last message is not a user turn the history is sent to the
        model as is, with no retrieval and no system prompt.
        """
        history: List[Dict[str, str]] = [m.to_llm() for m in messages]
        last = messages[-1] if messages else None

        if last is None or last.role != "user":
            logger.info("rag_bypassed", message_count=len(history))
            async for token in self.llm.chat_stream(history):
                yield token
            return

        retrieved = await self._retrieve(last.content)
        system_prompt = self.build_system_prompt(retrieved.context)

        logger.info(
            "chat_turn_prepared",
            message_count=len(history),
            used_rag=bool(retrieved.context),
            sources=retrieved.sources,
            prompt_mode=self.prompt_mode,
        )

        async for token in self.llm.chat_stream(history, system=system_prompt):
            yield token
