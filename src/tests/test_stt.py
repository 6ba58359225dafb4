"""
Tests for transcription response handling.
"""

import asyncio
import threading
from types import SimpleNamespace

from shortvid import stt
from shortvid.models import WordObservation


def test_words_from_object_response(tmp_path):
    resp = SimpleNamespace(
        text="Hello world",
        words=[
            SimpleNamespace(word=" Hello", start=0.0, end=0.4),
            SimpleNamespace(word="world", start=0.45, end=0.9),
        ],
    )

    words = stt.words_from_response(resp, tmp_path / "audio0.mp3")

    assert words == [
        WordObservation("Hello", 0.0, 0.4),
        WordObservation("world", 0.45, 0.9),
    ]


def test_words_from_dict_response_skips_blank(tmp_path):
    resp = {
        "text": "Hi",
        "words": [
            {"word": "Hi", "start": 0.1, "end": 0.3},
            {"word": " ", "start": 0.3, "end": 0.31},
        ],
    }

    words = stt.words_from_response(resp, tmp_path / "audio0.mp3")

    assert words == [WordObservation("Hi", 0.1, 0.3)]


def test_text_without_words_spans_whole_audio(monkeypatch, tmp_path):
    """Missing word timings fall back to one caption over the full clip."""
    monkeypatch.setattr(stt, "audio_length_seconds", lambda path: 2.5)
    resp = SimpleNamespace(text="Some narration", words=None)

    words = stt.words_from_response(resp, tmp_path / "audio0.mp3")

    assert words == [WordObservation("Some narration", 0.0, 2.5)]


def test_silent_response_has_no_words(tmp_path):
    resp = SimpleNamespace(text="", words=[])

    assert stt.words_from_response(resp, tmp_path / "audio0.mp3") == []


def test_api_fallback_measures_audio_off_the_event_loop(monkeypatch, tmp_path):
    """Decoding the audio for the whole-clip fallback happens in a worker thread."""
    audio = tmp_path / "audio0.mp3"
    audio.write_bytes(b"mp3")
    measured_on = []

    def fake_length(path):
        measured_on.append(threading.get_ident())
        return 3.0

    async def fake_create(**kwargs):
        return SimpleNamespace(text="No word timings here", words=[])

    client = SimpleNamespace(
        audio=SimpleNamespace(transcriptions=SimpleNamespace(create=fake_create))
    )
    monkeypatch.setattr(stt, "audio_length_seconds", fake_length)

    async def go():
        loop_thread = threading.get_ident()
        words = await stt.transcribe_words_api(client, audio)
        return loop_thread, words

    loop_thread, words = asyncio.run(go())

    assert words == [WordObservation("No word timings here", 0.0, 3.0)]
    assert measured_on and measured_on[0] != loop_thread
