"""
Media probing, scene rendering and clip concatenation using ffmpeg/ffprobe.
"""

import asyncio
import logging
from pathlib import Path

from .config import VideoFormat
from .errors import CommandError, ConcatError, EmptyInput, EncodeError, MissingAsset
from .models import RenderedClip

logger = logging.getLogger("shortvid")


async def run_async(cmd: list[str]) -> str:
    """Run a command without blocking the event loop and return its combined output."""
    cmd = [str(c) for c in cmd]
    logger.debug("Running: %s", " ".join(cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd, stdout=asyncio.subprocess.PIPE, stderr=asyncio.subprocess.STDOUT
        )
    except OSError as e:
        raise CommandError(cmd, None, str(e)) from e
    try:
        out, _ = await proc.communicate()
    except asyncio.CancelledError:
        logger.debug("Killing cancelled command: %s", cmd[0])
        proc.kill()
        await proc.wait()
        raise
    text = out.decode("utf-8", errors="replace")
    if proc.returncode != 0:
        logger.error("Command failed with code %d: %s", proc.returncode, text)
        raise CommandError(cmd, proc.returncode, text)
    return text


class Encoder:
    """
    Handle to the external media engine.

    Encode jobs are serialized through a semaphore (one job at a time by default);
    probes are read-only and run without taking a slot.
    """

    def __init__(self, ffmpeg: str = "ffmpeg", ffprobe: str = "ffprobe", max_jobs: int = 1) -> None:
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe
        self._slots = asyncio.Semaphore(max_jobs)

    async def encode(self, args: list[str]) -> str:
        """Run ffmpeg with ``args`` once a job slot is free."""
        async with self._slots:
            return await run_async([self.ffmpeg, "-hide_banner", *args])

    async def probe_duration(self, path: str | Path) -> float:
        """Get media duration in seconds."""
        if not Path(path).exists():
            raise MissingAsset(f"Cannot probe missing file: {path}")
        try:
            out = await run_async(
                [
                    self.ffprobe,
                    "-v",
                    "error",
                    "-show_entries",
                    "format=duration",
                    "-of",
                    "default=noprint_wrappers=1:nokey=1",
                    str(path),
                ]
            )
        except CommandError as e:
            raise EncodeError(f"ffprobe failed for {path}: {e.output.strip()}") from e
        try:
            seconds = float(out.strip())
        except ValueError:
            raise EncodeError(f"No duration metadata for {path}: {out.strip()!r}") from None
        if seconds <= 0:
            raise EncodeError(f"Non-positive duration {seconds} for {path}")
        return seconds


def escape_filter_value(value: str) -> str:
    """Escape a value for use as a filter option inside an ffmpeg filtergraph."""
    # Option level, then graph level; backslash first at each level.
    for ch in "\\':":
        value = value.replace(ch, "\\" + ch)
    for ch in "\\'[],;":
        value = value.replace(ch, "\\" + ch)
    return value


def scene_filter(fmt: VideoFormat, subtitle_path: str | Path | None) -> str:
    """Fill the frame at the target resolution, then burn subtitles on top."""
    vf = (
        f"scale={fmt.width}:{fmt.height}:force_original_aspect_ratio=increase,"
        f"crop={fmt.width}:{fmt.height},setsar=1"
    )
    if subtitle_path is not None:
        vf += f",subtitles=filename={escape_filter_value(str(subtitle_path))}"
    return vf


async def render_scene(
    encoder: Encoder,
    image_path: str | Path,
    audio_path: str | Path,
    subtitle_path: str | Path | None,
    duration: float,
    output_path: str | Path,
    fmt: VideoFormat | None = None,
) -> RenderedClip:
    """Hold a still image for ``duration`` seconds over the narration, with hard subtitles."""
    fmt = fmt or VideoFormat()
    inputs = [image_path, audio_path] + ([subtitle_path] if subtitle_path is not None else [])
    for p in inputs:
        if not Path(p).exists():
            raise MissingAsset(f"Scene input not found: {p}")
    if duration <= 0:
        raise EncodeError(f"Cannot render a clip of duration {duration}")

    args = [
        "-y",
        "-loop",
        "1",
        "-framerate",
        str(fmt.fps),
        "-i",
        str(image_path),
        "-i",
        str(audio_path),
        "-map",
        "0:v:0",
        "-map",
        "1:a:0",
        "-vf",
        scene_filter(fmt, subtitle_path),
        "-t",
        f"{duration:.3f}",
        "-r",
        str(fmt.fps),
        "-c:v",
        fmt.video_codec,
        "-preset",
        fmt.preset,
        "-crf",
        str(fmt.crf),
        "-tune",
        "stillimage",
        "-pix_fmt",
        "yuv420p",
        "-c:a",
        fmt.audio_codec,
        "-b:a",
        fmt.audio_bitrate,
        "-ar",
        str(fmt.audio_rate),
        "-ac",
        "2",
        "-movflags",
        "+faststart",
        str(output_path),
    ]
    try:
        await encoder.encode(args)
    except CommandError as e:
        raise EncodeError(f"Encoding {output_path} failed: {e.output.strip()[-2000:]}") from e

    measured = await encoder.probe_duration(output_path)
    if abs(measured - duration) > fmt.frame_interval:
        logger.warning(
            f"[dur] {Path(output_path).name} = {measured:.3f}s, expected {duration:.3f}s"
        )
    logger.info(f"Rendered {output_path} ({measured:.3f}s)")
    return RenderedClip(file_path=Path(output_path), duration=measured)


def quote_manifest_path(path: str | Path) -> str:
    """Quote a path for an ffmpeg concat demuxer ``file`` directive."""
    return "'" + str(Path(path).resolve()).replace("'", "'\\''") + "'"


def write_manifest(clips: list[RenderedClip], manifest_path: str | Path) -> None:
    lines = [f"file {quote_manifest_path(c.file_path)}" for c in clips]
    Path(manifest_path).write_text("\n".join(lines) + "\n", encoding="utf-8")


async def concatenate(
    encoder: Encoder,
    clips: list[RenderedClip],
    output_path: str | Path,
    manifest_path: str | Path | None = None,
) -> Path:
    """Join same-format clips in order with the concat demuxer (stream copy)."""
    if not clips:
        raise EmptyInput("No clips to concatenate")
    for c in clips:
        if not Path(c.file_path).exists():
            raise MissingAsset(f"Clip not found: {c.file_path}")

    output_path = Path(output_path)
    manifest = Path(manifest_path) if manifest_path else output_path.with_suffix(".concat.txt")
    write_manifest(clips, manifest)
    try:
        await encoder.encode(
            [
                "-y",
                "-f",
                "concat",
                "-safe",
                "0",
                "-i",
                str(manifest),
                "-c",
                "copy",
                "-movflags",
                "+faststart",
                str(output_path),
            ]
        )
    except CommandError as e:
        raise ConcatError(f"Concatenating {len(clips)} clips failed: {e.output.strip()[-2000:]}") from e
    finally:
        manifest.unlink(missing_ok=True)

    logger.info(f"Concatenated {len(clips)} clips -> {output_path}")
    return output_path
