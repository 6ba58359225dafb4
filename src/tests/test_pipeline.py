"""
Tests for pipeline orchestration with fake providers and encoder.
"""

import asyncio
import json

import pytest

from shortvid.errors import PipelineFailed, ProviderError, ScriptParseError
from shortvid.models import Run, WordObservation
from shortvid.pipeline import Pipeline, PipelineState, Providers

SCRIPT = json.dumps(
    {
        "scenes": [
            {"scene_description": f"image {i}", "narration": f"narration {i}"}
            for i in range(3)
        ]
    }
)


class FakeEncoder:
    """Writes output files, records renders and concat order, tracks concurrency."""

    def __init__(self):
        self.renders: list[list[str]] = []
        self.concat_manifest: str | None = None
        self.active = 0
        self.peak = 0

    async def encode(self, args):
        self.active += 1
        self.peak = max(self.peak, self.active)
        try:
            await asyncio.sleep(0.001)
            if "concat" in args:
                with open(args[args.index("-i") + 1], encoding="utf-8") as f:
                    self.concat_manifest = f.read()
            else:
                self.renders.append(list(args))
            with open(args[-1], "wb") as f:
                f.write(b"mp4")
        finally:
            self.active -= 1
        return ""

    async def probe_duration(self, path):
        return 2.0


class FakeProviders:
    """Records every provider call; scene N finishes after scene N+1."""

    def __init__(self, script_text=SCRIPT, fail_image=None, words=None):
        self.script_text = script_text
        self.fail_image = fail_image
        self.words = words
        self.calls: list[tuple[str, str]] = []
        self.script_on_disk_before_assets: bool | None = None
        self.run: Run | None = None

    async def script_generator(self, prompt):
        self.calls.append(("script", prompt))
        return self.script_text

    async def image_generator(self, description):
        self.calls.append(("image", description))
        if self.script_on_disk_before_assets is None:
            self.script_on_disk_before_assets = self.run.script_path.exists()
        i = int(description.split()[-1])
        await asyncio.sleep(0.01 * (3 - i))
        if self.fail_image == i:
            raise ProviderError("rate limited")
        return f"https://img.example/{i}.png"

    async def image_fetcher(self, url, path):
        self.calls.append(("fetch", url))
        path.write_bytes(b"jpg")

    async def speech_synthesizer(self, text):
        self.calls.append(("speech", text))
        i = int(text.split()[-1])
        await asyncio.sleep(0.01 * (3 - i))
        return f"mp3-{i}".encode()

    async def transcriber(self, audio_path):
        self.calls.append(("transcribe", audio_path.name))
        if self.words is not None:
            return self.words
        return [
            WordObservation("narration", 0.0, 0.6),
            WordObservation(audio_path.stem, 0.7, 1.2),
        ]

    def bundle(self):
        return Providers(
            script_generator=self.script_generator,
            image_generator=self.image_generator,
            image_fetcher=self.image_fetcher,
            speech_synthesizer=self.speech_synthesizer,
            transcriber=self.transcriber,
        )


def _pipeline(tmp_path, fakes):
    run = Run.create(tmp_path, "test")
    fakes.run = run
    encoder = FakeEncoder()
    return Pipeline(run, fakes.bundle(), encoder), run, encoder


def test_full_run_produces_all_artifacts(tmp_path):
    fakes = FakeProviders()
    pipeline, run, encoder = _pipeline(tmp_path, fakes)

    final = asyncio.run(pipeline.execute("a cat story"))

    assert final == run.final_path
    assert final.exists()
    assert pipeline.state is PipelineState.DONE
    assert fakes.script_on_disk_before_assets is True
    for i in range(3):
        assert run.image_path(i).exists()
        assert run.audio_path(i).read_bytes() == f"mp3-{i}".encode()
        assert run.subtitle_path(i).read_text(encoding="utf-8").startswith("[Script Info]")
        assert run.clip_path(i).exists()
    assert not run.manifest_path.exists()


def test_assets_are_matched_by_scene_not_completion_order(tmp_path):
    """Later scenes finish first, yet every scene keeps its own files and order."""
    fakes = FakeProviders()
    pipeline, run, encoder = _pipeline(tmp_path, fakes)

    asyncio.run(pipeline.execute("a cat story"))

    assert "audio2" in run.subtitle_path(2).read_text(encoding="utf-8")
    rendered_outputs = [args[-1] for args in encoder.renders]
    assert rendered_outputs == [str(run.clip_path(i)) for i in range(3)]
    for i, args in enumerate(encoder.renders):
        assert str(run.image_path(i)) in args
        assert str(run.audio_path(i)) in args
    manifest_lines = encoder.concat_manifest.splitlines()
    assert [ln.rsplit("/", 1)[-1] for ln in manifest_lines] == [
        "scene_0.mp4'",
        "scene_1.mp4'",
        "scene_2.mp4'",
    ]


def test_renders_never_overlap(tmp_path):
    fakes = FakeProviders()
    pipeline, run, encoder = _pipeline(tmp_path, fakes)

    asyncio.run(pipeline.execute("a cat story"))

    assert encoder.peak == 1


def test_invalid_script_stops_before_any_asset(tmp_path):
    """A script that does not parse fails the run with zero downstream calls."""
    fakes = FakeProviders(script_text="I'd rather not.")
    pipeline, run, encoder = _pipeline(tmp_path, fakes)

    with pytest.raises(PipelineFailed) as exc_info:
        asyncio.run(pipeline.execute("a cat story"))

    assert exc_info.value.stage is PipelineState.INIT
    assert isinstance(exc_info.value.cause, ScriptParseError)
    assert pipeline.state is PipelineState.FAILED
    assert [kind for kind, _ in fakes.calls] == ["script"]
    assert not run.script_path.exists()
    assert encoder.renders == []


def test_asset_failure_aborts_run_and_keeps_artifacts(tmp_path):
    fakes = FakeProviders(fail_image=1)
    pipeline, run, encoder = _pipeline(tmp_path, fakes)

    with pytest.raises(PipelineFailed) as exc_info:
        asyncio.run(pipeline.execute("a cat story"))

    assert exc_info.value.stage is PipelineState.SCRIPT_GENERATED
    assert isinstance(exc_info.value.cause, ProviderError)
    assert run.script_path.exists()
    assert not any(kind == "transcribe" for kind, _ in fakes.calls)
    assert encoder.renders == []
    assert not run.final_path.exists()


def test_scene_without_words_renders_without_subtitles(tmp_path):
    fakes = FakeProviders(words=[])
    pipeline, run, encoder = _pipeline(tmp_path, fakes)

    asyncio.run(pipeline.execute("a silent film"))

    assert not run.subtitle_path(0).exists()
    assert all(
        "subtitles" not in args[args.index("-vf") + 1] for args in encoder.renders
    )
    assert run.final_path.exists()
