"""Chat message schema validated at the HTTP boundary.

Clients send messages in one of three shapes:

- ``{"role": "user", "content": "text"}``
- ``{"role": "user", "content": {"text": "text"}}``
- ``{"role": "user", "parts": [{"type": "text", "text": "te"}, ...]}``

All of them are normalised to a single ``ChatMessage(role, content)``;
anything else fails validation.
"""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class MessagePart(BaseModel):
    """One part of a multi-part message. Only ``text`` parts carry content."""

    model_config = ConfigDict(extra="ignore")

    type: str
    text: Optional[str] = None


class ChatMessage(BaseModel):
    """A single chat turn."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str

    @model_validator(mode="before")
    @classmethod
    def normalize_shape(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            raise ValueError("message must be an object")

        parts = data.get("parts")
        if parts is not None:
            if not isinstance(parts, list):
                raise ValueError("parts must be a list")
            validated = [MessagePart.model_validate(p) for p in parts]
            text = "".join(p.text or "" for p in validated if p.type == "text")
            return {"role": data.get("role"), "content": text}

        content = data.get("content")
        if isinstance(content, dict):
            if not isinstance(content.get("text"), str):
                raise ValueError("content object must have a string 'text'")
            return {"role": data.get("role"), "content": content["text"]}
        if isinstance(content, str):
            return data
        raise ValueError("message needs string content, a content object or parts")

    def to_llm(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


class ChatRequest(BaseModel):
    """Body of ``POST /api/chat``."""

    messages: List[ChatMessage] = Field(min_length=1)

    @property
    def last_message(self) -> ChatMessage:
        return self.messages[-1]
