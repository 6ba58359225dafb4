"""
Pipeline orchestration: script -> scene assets -> captions -> clips -> final video.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from tqdm import tqdm

from .ass import serialize
from .captions import build_timeline
from .config import Settings
from .cost import estimate_costs
from .errors import PipelineFailed
from .io_ffmpeg import Encoder, concatenate, render_scene
from .models import RenderedClip, Run, Scene, SceneAssets, Script, WordObservation
from .script import parse_script, write_script
from .tasks import gather_fail_fast

logger = logging.getLogger("shortvid")


class PipelineState(Enum):
    INIT = "init"
    SCRIPT_GENERATED = "script_generated"
    ASSETS_GENERATED = "assets_generated"
    TRANSCRIBED = "transcribed"
    RENDERED = "rendered"
    CONCATENATED = "concatenated"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Providers:
    """External capabilities the pipeline calls out to."""

    script_generator: Callable[[str], Awaitable[str]]
    image_generator: Callable[[str], Awaitable[str]]
    image_fetcher: Callable[[str, Path], Awaitable[None]]
    speech_synthesizer: Callable[[str], Awaitable[bytes]]
    transcriber: Callable[[Path], Awaitable[list[WordObservation]]]


class Pipeline:
    """
    Runs one prompt through every stage, advancing ``state`` as each stage completes.

    Any stage error moves the pipeline to FAILED and is re-raised as
    ``PipelineFailed(stage, cause)``, where ``stage`` is the last state reached.
    Files already written to the run directory are left in place.
    """

    def __init__(
        self,
        run: Run,
        providers: Providers,
        encoder: Encoder,
        settings: Settings | None = None,
    ) -> None:
        self.run = run
        self.providers = providers
        self.encoder = encoder
        self.settings = settings or Settings()
        self.state = PipelineState.INIT

    async def execute(self, prompt: str) -> Path:
        """Produce ``final_output.mp4`` for ``prompt`` and return its path."""
        script = await self._advance(PipelineState.SCRIPT_GENERATED, self.generate_script(prompt))
        assets = await self._advance(PipelineState.ASSETS_GENERATED, self.generate_assets(script))
        assets = await self._advance(PipelineState.TRANSCRIBED, self.transcribe(assets))
        clips = await self._advance(PipelineState.RENDERED, self.render(assets))
        final = await self._advance(PipelineState.CONCATENATED, self.concatenate(clips))
        self._set_state(PipelineState.DONE)
        logger.info(f"Final video generated: {final}")
        return final

    async def _advance(self, target: PipelineState, stage: Awaitable):
        try:
            result = await stage
        except Exception as e:
            failed_in = self.state
            self.state = PipelineState.FAILED
            logger.error(f"Stage '{failed_in.value}' -> '{target.value}' failed: {e}")
            raise PipelineFailed(failed_in, e) from e
        self._set_state(target)
        return result

    def _set_state(self, state: PipelineState) -> None:
        logger.info(f"Pipeline state: {self.state.value} -> {state.value}")
        self.state = state

    async def generate_script(self, prompt: str) -> Script:
        """Call the script generator once, validate, and persist before anything else runs."""
        raw = await self.providers.script_generator(prompt)
        script = parse_script(raw)
        write_script(script, self.run.script_path)
        logger.info(f"Script saved to: {self.run.script_path} ({len(script.scenes)} scenes)")

        est = estimate_costs(
            len(script.scenes),
            sum(len(s.narration) for s in script.scenes),
            stt_mode=self.settings.stt_backend,
        )
        logger.info(f"=== Estimated costs (~{est['audio_minutes']:.2f} min narration) ===")
        logger.info(f"Images: ${est['image_cost']:.4f}  TTS: ${est['tts_cost']:.4f}  "
                    f"STT: ${est['stt_cost']:.4f}  Script: ${est['script_cost']:.4f}")
        logger.info(f"TOTAL: ${est['total']:.4f}")
        return script

    async def _make_image(self, index: int, scene: Scene) -> Path:
        url = await self.providers.image_generator(scene.description)
        path = self.run.image_path(index)
        await self.providers.image_fetcher(url, path)
        return path

    async def _make_audio(self, index: int, scene: Scene) -> Path:
        payload = await self.providers.speech_synthesizer(scene.narration)
        path = self.run.audio_path(index)
        path.write_bytes(payload)
        logger.info(f"Generated audio saved to: {path}")
        return path

    async def generate_assets(self, script: Script) -> list[SceneAssets]:
        """Request every image and every narration at once, then probe audio durations."""
        jobs = {}
        for i, scene in enumerate(script.scenes):
            jobs[("image", i)] = self._make_image(i, scene)
            jobs[("audio", i)] = self._make_audio(i, scene)
        files = await gather_fail_fast(jobs, desc="Scene assets")

        durations = await gather_fail_fast(
            {i: self.encoder.probe_duration(files[("audio", i)]) for i in range(len(script.scenes))},
            desc="Probe audio",
        )
        return [
            SceneAssets(
                index=i,
                image_path=files[("image", i)],
                audio_path=files[("audio", i)],
                audio_duration=durations[i],
            )
            for i in range(len(script.scenes))
        ]

    async def _caption_scene(self, assets: SceneAssets) -> Path | None:
        words = await self.providers.transcriber(assets.audio_path)
        events = build_timeline(
            words, self.settings.min_caption_duration, self.settings.caption_epsilon
        )
        if not events:
            logger.info(f"Scene {assets.index} has no captions; rendering without subtitles")
            return None
        doc = serialize(
            events,
            f"Scene {assets.index}",
            style=self.settings.caption_style,
            width=self.settings.video.width,
            height=self.settings.video.height,
        )
        path = self.run.subtitle_path(assets.index)
        path.write_text(doc, encoding="utf-8")
        logger.info(f"Subtitles saved to: {path} ({len(events)} captions)")
        return path

    async def transcribe(self, assets: list[SceneAssets]) -> list[SceneAssets]:
        """Transcribe every scene concurrently and write one subtitle document per scene."""
        subtitle_paths = await gather_fail_fast(
            {a.index: self._caption_scene(a) for a in assets}, desc="Transcribe"
        )
        return [replace(a, subtitle_path=subtitle_paths[a.index]) for a in assets]

    async def render(self, assets: list[SceneAssets]) -> list[RenderedClip]:
        """Render scenes one after another; the encoder is a single shared resource."""
        clips: list[RenderedClip] = []
        for a in tqdm(assets, desc="Render scenes"):
            clip = await render_scene(
                self.encoder,
                a.image_path,
                a.audio_path,
                a.subtitle_path,
                a.audio_duration,
                self.run.clip_path(a.index),
                self.settings.video,
            )
            clips.append(clip)
        return clips

    async def concatenate(self, clips: list[RenderedClip]) -> Path:
        return await concatenate(
            self.encoder, clips, self.run.final_path, manifest_path=self.run.manifest_path
        )
