"""
Runtime configuration: fixed pipeline constants with environment overrides.
"""

import logging
import os
from dataclasses import dataclass, field, fields

logger = logging.getLogger("shortvid")

ENV_PREFIX = "SHORTVID_"


@dataclass(frozen=True)
class VideoFormat:
    """Encoding parameters shared by every scene clip."""

    width: int = 1080
    height: int = 1920
    fps: int = 30
    video_codec: str = "libx264"
    audio_codec: str = "aac"
    crf: int = 20
    preset: str = "medium"
    audio_bitrate: str = "192k"
    audio_rate: int = 44100

    @property
    def frame_interval(self) -> float:
        return 1.0 / self.fps


@dataclass(frozen=True)
class CaptionStyle:
    """ASS style used for burned-in word captions."""

    name: str = "Default"
    fontname: str = "Arial"
    fontsize: int = 96
    primary_color: str = "&H00FFFFFF"
    secondary_color: str = "&H000000FF"
    outline_color: str = "&H00000000"
    back_color: str = "&H80000000"
    bold: int = -1
    outline: int = 6
    shadow: int = 2
    alignment: int = 2  # bottom center
    margin_v: int = 420


@dataclass(frozen=True)
class Settings:
    """Pipeline settings. Every field can be overridden with ``SHORTVID_<FIELD>``."""

    output_root: str = "out"

    # Script generation
    script_model: str = "gpt-4o"
    script_max_tokens: int = 1000

    # Image generation
    image_model: str = "dall-e-3"
    image_size: str = "1024x1792"
    image_quality: str = "hd"

    # Speech synthesis
    tts_model: str = "tts-1"
    tts_voice: str = "alloy"

    # Transcription
    stt_backend: str = "openai"  # openai | local
    whisper_model: str = "whisper-1"
    local_whisper_model: str = "base"

    # Caption timing
    min_caption_duration: float = 0.3
    caption_epsilon: float = 0.01

    # Provider calls
    request_timeout: float = 120.0
    max_retries: int = 0

    video: VideoFormat = field(default_factory=VideoFormat)
    caption_style: CaptionStyle = field(default_factory=CaptionStyle)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "Settings":
        """Build settings from defaults plus ``SHORTVID_*`` environment variables."""
        env = os.environ if environ is None else environ
        overrides = {}
        for f in fields(cls):
            if f.name in ("video", "caption_style"):
                continue
            raw = env.get(ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            try:
                overrides[f.name] = type(f.default)(raw)
            except ValueError as e:
                raise ValueError(f"Invalid value for {ENV_PREFIX}{f.name.upper()}: {raw!r}") from e
            logger.debug("Config override %s=%r", f.name, overrides[f.name])
        if overrides.get("stt_backend", cls.stt_backend) not in ("openai", "local"):
            raise ValueError(f"Unknown STT backend: {overrides['stt_backend']!r}")
        return cls(**overrides)
