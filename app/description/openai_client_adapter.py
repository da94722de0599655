import httpx
import openai

from app.description.client_base import BaseVisionClient
from app.processor.exceptions import (
    InferenceRejected,
    InferenceTimeout,
    InferenceUnavailable,
)


class OpenAIVisionClientAdapter(BaseVisionClient):
    """Vision client adapter built on the OpenAI-compatible chat API."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        self._client = openai.AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
        )

    async def create_image_completion(
        self,
        *,
        model: str,
        prompt: str,
        image_url: str,
        max_tokens: int,
    ) -> str | None:
        try:
            response = await self._client.chat.completions.create(
                model=model,
                max_tokens=max_tokens,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": prompt},
                            {"type": "image_url", "image_url": {"url": image_url}},
                        ],
                    }
                ],
            )
        except (openai.APITimeoutError, httpx.TimeoutException) as exc:
            raise InferenceTimeout(f"AI provider timed out: {exc}") from exc
        except (openai.APIConnectionError, httpx.TransportError) as exc:
            raise InferenceUnavailable(f"AI provider network error: {exc}") from exc
        except (
            openai.AuthenticationError,
            openai.PermissionDeniedError,
            openai.RateLimitError,
            openai.InternalServerError,
        ) as exc:
            raise InferenceUnavailable(f"AI provider unavailable: {exc}") from exc
        except openai.APIStatusError as exc:
            raise InferenceRejected(
                f"AI provider rejected request ({exc.status_code}): {exc}"
            ) from exc
        except openai.APIError as exc:
            raise InferenceUnavailable(f"AI provider API error: {exc}") from exc

        if not response.choices:
            return None
        return response.choices[0].message.content

    async def aclose(self) -> None:
        await self._client.close()
