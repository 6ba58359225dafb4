"""
Data models for the short video pipeline.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path


@dataclass(frozen=True)
class Scene:
    """One segment of the output video."""

    description: str  # drives image generation
    narration: str  # drives speech synthesis


@dataclass(frozen=True)
class Script:
    """Ordered scenes; order is the final video order."""

    scenes: tuple[Scene, ...]

    def to_dict(self) -> dict:
        return {
            "scenes": [
                {"scene_description": s.description, "narration": s.narration}
                for s in self.scenes
            ]
        }


@dataclass(frozen=True)
class WordObservation:
    """A transcribed word with raw timing."""

    text: str
    start: float  # seconds
    end: float  # seconds


@dataclass(frozen=True)
class SubtitleEvent:
    """A caption cue with adjusted, non-overlapping timing."""

    text: str
    start: float
    end: float


@dataclass(frozen=True)
class SceneAssets:
    """Files owned by one scene, ready for rendering."""

    index: int
    image_path: Path
    audio_path: Path
    audio_duration: float
    subtitle_path: Path | None = None


@dataclass(frozen=True)
class RenderedClip:
    """An encoded scene clip."""

    file_path: Path
    duration: float


@dataclass(frozen=True)
class Run:
    """
    One end-to-end execution, scoped to a single output directory.

    The directory is created once and never reused: ``create`` fails if it
    already exists. Per-scene artifacts are namespaced by the 0-based scene index.
    """

    name: str
    directory: Path

    @classmethod
    def create(cls, output_root: str | Path, name: str, now: datetime | None = None) -> "Run":
        """Create a fresh ``<output_root>/<name>-<YYYYMMDD-HHMMSS>`` directory."""
        timestamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
        directory = Path(output_root) / f"{name}-{timestamp}"
        directory.mkdir(parents=True, exist_ok=False)
        return cls(name=name, directory=directory)

    @property
    def script_path(self) -> Path:
        return self.directory / "script.json"

    @property
    def final_path(self) -> Path:
        return self.directory / "final_output.mp4"

    @property
    def manifest_path(self) -> Path:
        return self.directory / "concat_list.txt"

    def image_path(self, index: int) -> Path:
        return self.directory / f"image{index}.jpg"

    def audio_path(self, index: int) -> Path:
        return self.directory / f"audio{index}.mp3"

    def subtitle_path(self, index: int) -> Path:
        return self.directory / f"subtitles{index}.ass"

    def clip_path(self, index: int) -> Path:
        return self.directory / f"scene_{index}.mp4"
