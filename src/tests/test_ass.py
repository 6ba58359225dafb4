"""
Tests for ASS subtitle documents.
"""

import pytest

from shortvid.ass import SubtitleDocument, escape_text, format_time, serialize
from shortvid.config import CaptionStyle
from shortvid.errors import InvalidInput
from shortvid.models import SubtitleEvent


def test_format_time():
    """Test H:MM:SS.cc formatting."""
    assert format_time(0) == "0:00:00.00"
    assert format_time(1.5) == "0:00:01.50"
    assert format_time(65.25) == "0:01:05.25"
    assert format_time(3661.07) == "1:01:01.07"
    assert format_time(59.999) == "0:01:00.00"


def test_serialize_document_structure():
    """Header, style table and one dialogue line per event."""
    events = [
        SubtitleEvent("Hello", 0.0, 0.5),
        SubtitleEvent("world", 0.51, 1.2),
    ]

    doc = serialize(events, "Scene 0")
    lines = doc.splitlines()

    assert lines[0] == "[Script Info]"
    assert "Title: Scene 0" in lines
    assert "PlayResX: 1080" in lines
    assert "PlayResY: 1920" in lines
    assert "[V4+ Styles]" in lines
    assert any(ln.startswith("Style: Default,Arial,96,") for ln in lines)
    dialogue = [ln for ln in lines if ln.startswith("Dialogue:")]
    assert dialogue == [
        "Dialogue: 0,0:00:00.00,0:00:00.50,Default,,0,0,0,,Hello",
        "Dialogue: 0,0:00:00.51,0:00:01.20,Default,,0,0,0,,world",
    ]


def test_serialize_uses_custom_style():
    style = CaptionStyle(name="Pop", fontname="Impact", fontsize=120)

    doc = serialize([SubtitleEvent("Hi", 0.0, 0.4)], "Scene 3", style=style)

    assert "Style: Pop,Impact,120," in doc
    assert ",Pop,,0,0,0,,Hi" in doc


def test_serialize_rejects_overlapping_events():
    events = [
        SubtitleEvent("a", 0.0, 1.0),
        SubtitleEvent("b", 0.5, 1.5),
    ]
    with pytest.raises(InvalidInput):
        serialize(events, "Scene 0")


def test_serialize_rejects_unordered_events():
    events = [
        SubtitleEvent("b", 2.0, 2.5),
        SubtitleEvent("a", 0.0, 0.5),
    ]
    with pytest.raises(InvalidInput):
        serialize(events, "Scene 0")


def test_escape_text():
    assert escape_text("{\\b1}bold") == "(\\b1)bold"
    assert escape_text("two\nlines") == "two\\Nlines"


def test_document_builder():
    """Events added to the model appear in order."""
    doc = SubtitleDocument(title="t", width=720, height=1280)
    doc.add_event(SubtitleEvent("x", 0.0, 0.3))
    doc.add_event(SubtitleEvent("y", 0.3, 0.6))

    out = doc.dumps()

    assert "PlayResX: 720" in out
    assert out.index(",,x") < out.index(",,y")
    assert out.endswith("\n")
