"""
ASS (Advanced SubStation Alpha) subtitle documents for burned-in captions.
"""

import itertools
from dataclasses import dataclass, field

from .config import CaptionStyle
from .errors import InvalidInput
from .models import SubtitleEvent

STYLE_FORMAT = (
    "Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, "
    "Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, "
    "Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding"
)
EVENT_FORMAT = "Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text"


def format_time(seconds: float) -> str:
    """Format seconds as ASS ``H:MM:SS.cc`` (hours unpadded)."""
    cs = int(round(max(0.0, seconds) * 100))
    h, cs = divmod(cs, 360000)
    m, cs = divmod(cs, 6000)
    s, cs = divmod(cs, 100)
    return f"{h}:{m:02d}:{s:02d}.{cs:02d}"


def escape_text(text: str) -> str:
    """Make caption text safe for a Dialogue line."""
    text = text.replace("{", "(").replace("}", ")")
    return text.replace("\r\n", "\\N").replace("\n", "\\N")


def style_line(style: CaptionStyle) -> str:
    values = [
        style.name,
        style.fontname,
        style.fontsize,
        style.primary_color,
        style.secondary_color,
        style.outline_color,
        style.back_color,
        style.bold,
        0,  # italic
        0,  # underline
        0,  # strikeout
        100,
        100,
        0,
        0,
        1,  # outline + drop shadow
        style.outline,
        style.shadow,
        style.alignment,
        60,
        60,
        style.margin_v,
        1,
    ]
    return "Style: " + ",".join(str(v) for v in values)


@dataclass
class SubtitleDocument:
    """A style table plus timed dialogue events, serialized with ``dumps``."""

    title: str
    width: int = 1080
    height: int = 1920
    styles: list[CaptionStyle] = field(default_factory=lambda: [CaptionStyle()])
    events: list[SubtitleEvent] = field(default_factory=list)

    def add_event(self, event: SubtitleEvent) -> None:
        self.events.append(event)

    def dumps(self) -> str:
        style_name = self.styles[0].name
        lines = [
            "[Script Info]",
            f"Title: {self.title}",
            "ScriptType: v4.00+",
            "WrapStyle: 0",
            "ScaledBorderAndShadow: yes",
            f"PlayResX: {self.width}",
            f"PlayResY: {self.height}",
            "",
            "[V4+ Styles]",
            f"Format: {STYLE_FORMAT}",
            *(style_line(s) for s in self.styles),
            "",
            "[Events]",
            f"Format: {EVENT_FORMAT}",
        ]
        for ev in self.events:
            lines.append(
                f"Dialogue: 0,{format_time(ev.start)},{format_time(ev.end)},"
                f"{style_name},,0,0,0,,{escape_text(ev.text)}"
            )
        return "\n".join(lines) + "\n"


def serialize(
    events: list[SubtitleEvent],
    scene_label: str,
    style: CaptionStyle | None = None,
    width: int = 1080,
    height: int = 1920,
) -> str:
    """Render an ordered, non-overlapping event list as an ASS document."""
    for prev, cur in itertools.pairwise(events):
        if cur.start < prev.start or prev.end > cur.start:
            raise InvalidInput(
                f"Caption events out of order: {prev.text!r} [{prev.start}, {prev.end}] "
                f"then {cur.text!r} [{cur.start}, {cur.end}]"
            )
    doc = SubtitleDocument(
        title=scene_label,
        width=width,
        height=height,
        styles=[style or CaptionStyle()],
    )
    for ev in events:
        doc.add_event(ev)
    return doc.dumps()
