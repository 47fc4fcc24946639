import asyncio
import json
import logging

import httpx
from google import genai
from google.genai import errors, types

from joblands.core.config import Settings
from joblands.core.exceptions import UpstreamError, UpstreamTimeoutError, UpstreamUnavailableError
from joblands.services.prompt_builder import InvocationOptions, PromptPair

logger = logging.getLogger(__name__)


def _error_body(e: errors.APIError) -> str:
    if e.details is None:
        return e.message or ""
    try:
        return json.dumps(e.details)
    except (TypeError, ValueError):
        return str(e.details)


class ModelInvoker:
    """Sends a prompt pair to Gemini and returns the raw completion text.

    No JSON handling and no retries happen here; the caller owns both.
    """

    def __init__(self, client: genai.Client, model: str) -> None:
        self._client = client
        self._model = model

    @classmethod
    def from_settings(cls, settings: Settings) -> "ModelInvoker":
        return cls(genai.Client(api_key=settings.google_ai_api_key), settings.gemini_model)

    async def invoke(self, prompt: PromptPair, options: InvocationOptions) -> str:
        config = types.GenerateContentConfig(
            system_instruction=prompt.system,
            temperature=options.temperature,
            max_output_tokens=options.max_tokens,
        )
        logger.info(
            "Calling %s (prompt %d chars, timeout %.0fs)",
            self._model,
            len(prompt.system) + len(prompt.user),
            options.timeout_seconds,
        )
        try:
            # wait_for cancels the in-flight request once the budget is spent
            response = await asyncio.wait_for(
                self._client.aio.models.generate_content(
                    model=self._model,
                    contents=prompt.user,
                    config=config,
                ),
                timeout=options.timeout_seconds,
            )
        except TimeoutError as e:
            logger.warning("%s timed out after %.0fs", self._model, options.timeout_seconds)
            raise UpstreamTimeoutError(
                f"Model call exceeded {options.timeout_seconds}s"
            ) from e
        except errors.APIError as e:
            body = _error_body(e)
            logger.error("%s rejected the request (%s): %s", self._model, e.code, body)
            raise UpstreamError(
                f"Model API error: {e.code} {e.status}", status_code=e.code, body=body
            ) from e
        except httpx.TransportError as e:
            logger.error("%s unreachable: %s", self._model, e)
            raise UpstreamUnavailableError(f"Model endpoint unreachable: {e}") from e

        text = response.text
        if not text:
            raise UpstreamError("No content returned from the model", body="")
        logger.info("Received %d chars from %s", len(text), self._model)
        return text
