"""Tests for the chat completion model client."""

from unittest.mock import patch

import aiohttp
import pytest

from answer_rag.config.settings import Settings
from answer_rag.core.exceptions import GenerationError
from answer_rag.rag.generation import SYSTEM_PROMPT, ChatCompletionModel, build_user_prompt
from tests.utils import MockFactory


def completion(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class TestPrompts:

    def test_user_prompt_template(self):
        prompt = build_user_prompt("Why?", "- Because.")
        assert prompt == "Context:\n- Because.\n\nQuestion: Why?\n\nAnswer based on the above context:"


class TestChatCompletionModel:
    """OpenAI-compatible chat completion client."""

    @pytest.fixture
    def model(self, test_settings: Settings) -> ChatCompletionModel:
        return ChatCompletionModel(test_settings)

    def _with_session(self, model: ChatCompletionModel, session) -> ChatCompletionModel:
        model._session = session
        model._initialized = True
        return model

    def test_endpoint_url(self, model: ChatCompletionModel):
        assert model.endpoint_url == "http://mock-model-api:4000/chat/completions"
        assert model.model_name == "test-model"

    def test_build_request(self, model: ChatCompletionModel, test_settings: Settings):
        request = model.build_request("Why?", "ctx")

        assert request["model"] == "test-model"
        assert request["max_tokens"] == test_settings.GENERATION_MAX_TOKENS
        assert request["temperature"] == test_settings.GENERATION_TEMPERATURE
        assert request["messages"] == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": build_user_prompt("Why?", "ctx")},
        ]

    async def test_initialize_sets_auth_header(self, test_settings: Settings):
        test_settings.GENERATION_API_KEY = "secret"
        model = ChatCompletionModel(test_settings)

        with patch("aiohttp.ClientSession") as session_cls:
            await model.initialize()

        assert session_cls.call_args.kwargs["headers"]["Authorization"] == "Bearer secret"

    async def test_generate_not_initialized(self, model: ChatCompletionModel):
        with pytest.raises(GenerationError, match="not initialized"):
            await model.generate("q", "c")

    async def test_generate_returns_stripped_content(self, model: ChatCompletionModel):
        session = MockFactory.create_aiohttp_session_mock(completion("  Add an index.\n"))
        model = self._with_session(model, session)

        assert await model.generate("Why slow?", "ctx") == "Add an index."
        url = session.post.call_args.args[0]
        assert url == "http://mock-model-api:4000/chat/completions"
        assert session.post.call_args.kwargs["json"]["messages"][1]["content"].endswith(
            "Question: Why slow?\n\nAnswer based on the above context:"
        )

    async def test_error_status(self, model: ChatCompletionModel):
        session = MockFactory.create_aiohttp_session_mock(None, status=500, error_text="boom")
        model = self._with_session(model, session)

        with pytest.raises(GenerationError, match="500 - boom"):
            await model.generate("q", "c")

    async def test_client_error(self, model: ChatCompletionModel):
        session = MockFactory.create_aiohttp_session_mock(completion("x"))
        session.post.side_effect = aiohttp.ClientConnectionError("refused")
        model = self._with_session(model, session)

        with pytest.raises(GenerationError, match="refused"):
            await model.generate("q", "c")

    @pytest.mark.parametrize("data", [
        {},
        {"choices": []},
        {"choices": [{"message": {}}]},
        completion("   "),
        completion(None),
    ])
    async def test_empty_responses(self, model: ChatCompletionModel, data):
        session = MockFactory.create_aiohttp_session_mock(data)
        model = self._with_session(model, session)

        with pytest.raises(GenerationError):
            await model.generate("q", "c")
