"""
Speech-to-text transcription to word-level timestamps.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import lru_cache
from pathlib import Path

from openai import AsyncOpenAI, OpenAIError
from pydub import AudioSegment

from .errors import ProviderError
from .models import WordObservation

logger = logging.getLogger("shortvid")


def _field(item, name: str, default=None):
    if isinstance(item, dict):
        return item.get(name, default)
    return getattr(item, name, default)


def audio_length_seconds(audio_path: str | Path) -> float:
    return len(AudioSegment.from_file(str(audio_path))) / 1000.0


def words_from_response(resp, audio_path: str | Path) -> list[WordObservation]:
    """Extract word observations from a verbose_json transcription response."""
    words = _field(resp, "words") or []
    out: list[WordObservation] = []
    for w in words:
        text = str(_field(w, "word", "")).strip()
        if not text:
            continue
        out.append(
            WordObservation(
                text=text,
                start=float(_field(w, "start", 0.0)),
                end=float(_field(w, "end", 0.0)),
            )
        )
    if out:
        return out

    full_text = str(_field(resp, "text", "") or "").strip()
    if full_text:
        logger.warning("No word timestamps in response; using one caption for the whole clip.")
        return [WordObservation(text=full_text, start=0.0, end=audio_length_seconds(audio_path))]
    return []


async def transcribe_words_api(
    client: AsyncOpenAI, audio_path: str | Path, model: str = "whisper-1"
) -> list[WordObservation]:
    """Transcribe audio with OpenAI Whisper at word granularity."""
    try:
        with open(audio_path, "rb") as f:
            logger.info(f"Transcribing {Path(audio_path).name} with {model} …")
            resp = await client.audio.transcriptions.create(
                model=model,
                file=f,
                response_format="verbose_json",
                timestamp_granularities=["word"],
            )
    except OpenAIError as e:
        logger.error(f"Transcription failed for {audio_path}: {e}")
        raise ProviderError(f"Transcription failed: {e}") from e
    # The no-word fallback decodes the whole file with pydub.
    return await asyncio.to_thread(words_from_response, resp, audio_path)


@lru_cache(maxsize=2)
def _load_local_model(name: str):
    try:
        from faster_whisper import WhisperModel
    except ImportError as e:
        raise ProviderError(
            "faster-whisper is not installed. Install with: pip install 'shortvid[local]'"
        ) from e
    return WhisperModel(name, device="cpu", compute_type="int8")


def transcribe_words_local(audio_path: str | Path, local_model: str = "base") -> list[WordObservation]:
    """Transcribe audio locally with faster-whisper word timestamps."""
    logger.info(f"Transcribing {Path(audio_path).name} locally with faster-whisper ({local_model}) …")
    model = _load_local_model(local_model)
    segments_iter, _info = model.transcribe(str(audio_path), vad_filter=True, word_timestamps=True)
    out: list[WordObservation] = []
    for seg in segments_iter:
        for w in seg.words or []:
            text = str(w.word).strip()
            if text:
                out.append(WordObservation(text=text, start=float(w.start), end=float(w.end)))
    return out


def make_transcriber_api(
    client: AsyncOpenAI, model: str
) -> Callable[[Path], Awaitable[list[WordObservation]]]:
    """Create an OpenAI Whisper transcriber."""

    async def _transcribe(audio_path: Path) -> list[WordObservation]:
        return await transcribe_words_api(client, audio_path, model)

    return _transcribe


def make_transcriber_local(local_model: str) -> Callable[[Path], Awaitable[list[WordObservation]]]:
    """Create a faster-whisper transcriber that runs in a worker thread."""

    async def _transcribe(audio_path: Path) -> list[WordObservation]:
        return await asyncio.to_thread(transcribe_words_local, audio_path, local_model)

    return _transcribe
