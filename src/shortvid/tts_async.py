"""
Asynchronous text-to-speech synthesis with OpenAI.
"""

import logging
from collections.abc import Awaitable, Callable

from openai import AsyncOpenAI, OpenAIError

from .errors import ProviderError

logger = logging.getLogger("shortvid")


async def tts_speak_openai_async(
    client: AsyncOpenAI,
    text: str,
    model: str = "tts-1",
    voice: str = "alloy",
) -> bytes:
    """Asynchronously synthesize speech and return the mp3 payload."""
    try:
        response = await client.audio.speech.create(
            model=model,
            voice=voice,
            input=text,
            response_format="mp3",
        )
    except OpenAIError as e:
        logger.error(f"OpenAI TTS failed for text '{text[:50]}...': {e}")
        raise ProviderError(f"Speech synthesis failed: {e}") from e

    payload = response.content
    if not payload:
        raise ProviderError("Speech synthesis returned an empty payload")
    return payload


def make_synth_openai_async(
    client: AsyncOpenAI, model: str, voice: str
) -> Callable[[str], Awaitable[bytes]]:
    """Create an async TTS synthesis function for OpenAI."""

    async def synth_func_async(text: str) -> bytes:
        return await tts_speak_openai_async(client, text, model, voice)

    return synth_func_async
