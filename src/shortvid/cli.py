"""
Command-line interface for the short video pipeline.
"""

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import httpx
from dotenv import load_dotenv
from openai import AsyncOpenAI

from .config import Settings
from .errors import PipelineFailed
from .images import make_image_fetcher, make_image_generator
from .io_ffmpeg import Encoder
from .models import Run
from .pipeline import Pipeline, Providers
from .script import make_script_generator
from .stt import make_transcriber_api, make_transcriber_local
from .tts_async import make_synth_openai_async

logger = logging.getLogger("shortvid")


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    ap = argparse.ArgumentParser(description="Generate a vertical short video from a text prompt")
    ap.add_argument(
        "--file", "-f", default=None, help="Path to the file containing the prompt (default: stdin)"
    )
    ap.add_argument("--runname", "-r", default="run", help="Name for the output folder")
    ap.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    return ap.parse_args(argv)


def read_prompt(path: str | None) -> str:
    """Read the prompt from a file, or from stdin when no file is given."""
    if path:
        return Path(path).read_text(encoding="utf-8")
    return sys.stdin.read()


def build_providers(client: AsyncOpenAI, http: httpx.AsyncClient, settings: Settings) -> Providers:
    """Wire OpenAI-backed providers from settings."""
    if settings.stt_backend == "local":
        transcriber = make_transcriber_local(settings.local_whisper_model)
    else:
        transcriber = make_transcriber_api(client, settings.whisper_model)
    return Providers(
        script_generator=make_script_generator(
            client, settings.script_model, settings.script_max_tokens
        ),
        image_generator=make_image_generator(
            client, settings.image_model, settings.image_size, settings.image_quality
        ),
        image_fetcher=make_image_fetcher(http),
        speech_synthesizer=make_synth_openai_async(client, settings.tts_model, settings.tts_voice),
        transcriber=transcriber,
    )


async def main_async(argv: list[str] | None = None) -> int:
    """Main async CLI entry point; returns the process exit code."""
    project_root = Path(__file__).parent.parent.parent
    env_path = project_root / ".env"
    if env_path.exists():
        load_dotenv(env_path)
    else:
        load_dotenv()

    args = parse_args(argv)
    setup_logging(args.verbose)
    settings = Settings.from_env()

    prompt = read_prompt(args.file).strip()
    if not prompt:
        logger.error("Prompt is empty; pass --file or pipe a prompt on stdin.")
        return 2

    openai_key = os.getenv("OPENAI_API_KEY")
    if not openai_key:
        logger.error("OPENAI_API_KEY is not set. Put it in .env or environment.")
        return 2

    run = Run.create(settings.output_root, args.runname)
    logger.info(f"Run directory: {run.directory}")

    client = AsyncOpenAI(
        api_key=openai_key,
        organization=os.getenv("OPENAI_API_ORG") or None,
        timeout=settings.request_timeout,
        max_retries=settings.max_retries,
    )
    async with httpx.AsyncClient(follow_redirects=True, timeout=settings.request_timeout) as http:
        pipeline = Pipeline(run, build_providers(client, http, settings), Encoder(), settings)
        try:
            final = await pipeline.execute(prompt)
        except PipelineFailed as e:
            logger.error(f"Run failed in stage '{e.stage.value}': {e.cause}")
            logger.error(f"Artifacts so far are in {run.directory}")
            return 1
        finally:
            await client.close()

    logger.info(f"Done -> {final}")
    return 0


def main() -> None:
    """Main CLI entry point."""
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
