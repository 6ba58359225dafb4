"""
Scene image generation with DALL-E and download to the run directory.
"""

import base64
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

import httpx
from openai import AsyncOpenAI, OpenAIError

from .errors import ProviderError

logger = logging.getLogger("shortvid")


async def generate_image_url(
    client: AsyncOpenAI,
    description: str,
    model: str = "dall-e-3",
    size: str = "1024x1792",
    quality: str = "hd",
) -> str:
    """Generate one image and return a URL (or a ``data:`` URL for base64 payloads)."""
    try:
        resp = await client.images.generate(
            model=model,
            prompt=description,
            n=1,
            size=size,
            quality=quality,
            response_format="url",
        )
    except OpenAIError as e:
        logger.error(f"Image generation failed for '{description[:50]}...': {e}")
        raise ProviderError(f"Image generation failed: {e}") from e

    if not resp.data:
        raise ProviderError("Image generation returned no data")
    item = resp.data[0]
    if item.url:
        return item.url
    if item.b64_json:
        return "data:image/png;base64," + item.b64_json
    raise ProviderError("Image generation returned neither url nor b64_json")


def make_image_generator(
    client: AsyncOpenAI, model: str, size: str, quality: str
) -> Callable[[str], Awaitable[str]]:
    """Create an image generator bound to a client and model."""

    async def _generate(description: str) -> str:
        return await generate_image_url(client, description, model, size, quality)

    return _generate


async def download_image(http: httpx.AsyncClient, url: str, out_path: str | Path) -> None:
    """Fetch an image URL to ``out_path``."""
    if url.startswith("data:"):
        _, _, payload = url.partition(",")
        Path(out_path).write_bytes(base64.b64decode(payload))
        return
    try:
        async with http.stream("GET", url) as r:
            r.raise_for_status()
            with open(out_path, "wb") as f:
                async for chunk in r.aiter_bytes():
                    f.write(chunk)
    except httpx.HTTPError as e:
        logger.error(f"Image download failed: {e}")
        raise ProviderError(f"Image download failed: {e}") from e
    logger.info(f"Generated image saved to: {out_path}")


def make_image_fetcher(http: httpx.AsyncClient) -> Callable[[str, str | Path], Awaitable[None]]:
    """Create an image fetcher bound to an HTTP client."""

    async def _fetch(url: str, out_path: str | Path) -> None:
        await download_image(http, url, out_path)

    return _fetch
