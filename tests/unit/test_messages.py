"""Tests for chat message validation at the HTTP boundary."""
import pytest
from pydantic import ValidationError

from docmind.messages import ChatMessage, ChatRequest


class TestChatMessageShapes:

    def test_plain_string_content(self):
        message = ChatMessage.model_validate({"role": "user", "content": "hi"})
        assert message.role == "user"
        assert message.content == "hi"

    def test_content_object_with_text(self):
        message = ChatMessage.model_validate(
            {"role": "assistant", "content": {"text": "hello"}}
        )
        assert message.content == "hello"

    def test_parts_text_concatenated(self):
        message = ChatMessage.model_validate({
            "role": "user",
            "parts": [
                {"type": "text", "text": "What is "},
                {"type": "step-start"},
                {"type": "text", "text": "RAG?"},
            ],
        })
        assert message.content == "What is RAG?"

    def test_parts_take_precedence_over_content(self):
        message = ChatMessage.model_validate({
            "role": "user",
            "content": "ignored",
            "parts": [{"type": "text", "text": "used"}],
        })
        assert message.content == "used"

    def test_parts_without_text_give_empty_content(self):
        message = ChatMessage.model_validate(
            {"role": "user", "parts": [{"type": "file"}]}
        )
        assert message.content == ""

    def test_extra_fields_are_ignored(self):
        message = ChatMessage.model_validate(
            {"id": "123", "role": "user", "content": "hi", "createdAt": "now"}
        )
        assert message.to_llm() == {"role": "user", "content": "hi"}


class TestChatMessageRejects:

    @pytest.mark.parametrize(
        "payload",
        [
            {"role": "user"},
            {"role": "user", "content": 42},
            {"role": "user", "content": {"body": "no text key"}},
            {"role": "user", "parts": "not a list"},
            {"role": "user", "parts": [{"text": "missing type"}]},
            {"role": "robot", "content": "hi"},
            "just a string",
        ],
    )
    def test_malformed_messages(self, payload):
        with pytest.raises(ValidationError):
            ChatMessage.model_validate(payload)


class TestChatRequest:

    def test_last_message(self):
        request = ChatRequest.model_validate({
            "messages": [
                {"role": "user", "content": "first"},
                {"role": "assistant", "content": "reply"},
                {"role": "user", "content": "second"},
            ]
        })
        assert request.last_message.content == "second"

    def test_empty_messages_rejected(self):
        with pytest.raises(ValidationError):
            ChatRequest.model_validate({"messages": []})

    def test_missing_messages_rejected(self):
        with pytest.raises(ValidationError):
            ChatRequest.model_validate({})
