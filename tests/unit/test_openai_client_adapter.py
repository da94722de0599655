import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import openai
import pytest

from app.description.openai_client_adapter import OpenAIVisionClientAdapter
from app.processor.exceptions import (
    InferenceRejected,
    InferenceTimeout,
    InferenceUnavailable,
)


def _make_mock_response(content: str | None) -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    response = MagicMock()
    response.choices = [choice]
    return response


def _status_error(cls: type[openai.APIStatusError], status: int) -> openai.APIStatusError:
    request = httpx.Request("POST", "https://api.openai.test/v1/chat/completions")
    response = httpx.Response(status, request=request)
    return cls("failure", response=response, body=None)


def _complete(side_effect: object = None, return_value: object = None) -> str | None:
    mock_client = MagicMock()
    mock_client.chat.completions.create = AsyncMock(
        side_effect=side_effect, return_value=return_value
    )
    with patch(
        "app.description.openai_client_adapter.openai.AsyncOpenAI",
        return_value=mock_client,
    ):
        adapter = OpenAIVisionClientAdapter(api_key="k", timeout_seconds=60)
        return asyncio.run(
            adapter.create_image_completion(
                model="gpt-4o",
                prompt="describe",
                image_url="https://gw.test/ipfs/Qm",
                max_tokens=300,
            )
        )


class TestOpenAIVisionClientAdapter:
    def test_returns_content(self) -> None:
        content = _complete(return_value=_make_mock_response("Event Name: Demo"))
        assert content == "Event Name: Demo"

    def test_sends_prompt_and_image_url(self) -> None:
        mock_client = MagicMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_make_mock_response("ok")
        )
        with patch(
            "app.description.openai_client_adapter.openai.AsyncOpenAI",
            return_value=mock_client,
        ):
            adapter = OpenAIVisionClientAdapter(api_key="k", timeout_seconds=60)
            asyncio.run(
                adapter.create_image_completion(
                    model="gpt-4o",
                    prompt="describe",
                    image_url="https://gw.test/ipfs/Qm",
                    max_tokens=300,
                )
            )
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        content = kwargs["messages"][0]["content"]
        assert content[0] == {"type": "text", "text": "describe"}
        assert content[1] == {
            "type": "image_url",
            "image_url": {"url": "https://gw.test/ipfs/Qm"},
        }

    def test_returns_none_for_empty_content(self) -> None:
        assert _complete(return_value=_make_mock_response(None)) is None

    def test_returns_none_without_choices(self) -> None:
        response = MagicMock()
        response.choices = []
        assert _complete(return_value=response) is None

    def test_timeout_maps_to_inference_timeout(self) -> None:
        with pytest.raises(InferenceTimeout, match="timed out"):
            _complete(side_effect=openai.APITimeoutError(request=MagicMock()))

    def test_httpx_timeout_maps_to_inference_timeout(self) -> None:
        with pytest.raises(InferenceTimeout):
            _complete(side_effect=httpx.ReadTimeout("slow"))

    def test_connection_error_is_unavailable(self) -> None:
        with pytest.raises(InferenceUnavailable, match="network error"):
            _complete(side_effect=openai.APIConnectionError(request=MagicMock()))

    @pytest.mark.parametrize(
        ("cls", "status"),
        [
            (openai.AuthenticationError, 401),
            (openai.PermissionDeniedError, 403),
            (openai.RateLimitError, 429),
            (openai.InternalServerError, 500),
        ],
    )
    def test_auth_and_capacity_errors_are_unavailable(
        self, cls: type[openai.APIStatusError], status: int
    ) -> None:
        with pytest.raises(InferenceUnavailable, match="unavailable"):
            _complete(side_effect=_status_error(cls, status))

    def test_bad_request_is_rejected(self) -> None:
        with pytest.raises(InferenceRejected, match="400"):
            _complete(side_effect=_status_error(openai.BadRequestError, 400))
