"""
Script generation with GPT and validation of the structured scene list.
"""

import json
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path

from openai import AsyncOpenAI, OpenAIError

from .errors import ProviderError, ScriptParseError
from .models import Scene, Script

logger = logging.getLogger("shortvid")

SYSTEM_PROMPT = (
    "You are a helpful assistant that generates a TikTok video script in JSON format. "
    "Split the story into short scenes. "
    'Return ONLY a JSON object of the form {"scenes": [{"scene_description": "<what the image '
    'shows>", "narration": "<what the narrator says>"}]} with no extra text.'
)


async def generate_script_text(
    client: AsyncOpenAI, prompt: str, model: str, max_tokens: int = 1000
) -> str:
    """Ask the chat model for a JSON script and return the raw reply."""
    logger.info(f"Generating script with {model} …")
    try:
        chat = await client.chat.completions.create(
            model=model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=max_tokens,
        )
    except OpenAIError as e:
        logger.error(f"Script generation failed: {e}")
        raise ProviderError(f"Script generation failed: {e}") from e
    return chat.choices[0].message.content or ""


def make_script_generator(
    client: AsyncOpenAI, model: str, max_tokens: int = 1000
) -> Callable[[str], Awaitable[str]]:
    """Create a script generator bound to a client and model."""

    async def _generate(prompt: str) -> str:
        return await generate_script_text(client, prompt, model, max_tokens)

    return _generate


def _load_json_object(text: str) -> object:
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass
    # Models sometimes wrap the object in prose or a code fence.
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ScriptParseError("Model did not return a JSON object")
    try:
        return json.loads(text[start : end + 1])
    except json.JSONDecodeError as e:
        raise ScriptParseError(f"Model did not return valid JSON: {e}") from e


def parse_script(text: str) -> Script:
    """Parse ``{"scenes": [{"scene_description", "narration"}, ...]}`` into a Script."""
    if not text or not text.strip():
        raise ScriptParseError("Script text is empty")
    data = _load_json_object(text)
    if not isinstance(data, dict):
        raise ScriptParseError("Script must be a JSON object")
    raw_scenes = data.get("scenes")
    if not isinstance(raw_scenes, list) or not raw_scenes:
        raise ScriptParseError("Script must contain a non-empty 'scenes' list")

    scenes: list[Scene] = []
    for i, item in enumerate(raw_scenes):
        if not isinstance(item, dict):
            raise ScriptParseError(f"Scene {i} is not an object")
        description = item.get("scene_description")
        narration = item.get("narration")
        for key, value in (("scene_description", description), ("narration", narration)):
            if not isinstance(value, str) or not value.strip():
                raise ScriptParseError(f"Scene {i} has no usable '{key}'")
        scenes.append(Scene(description=description.strip(), narration=narration.strip()))
    return Script(scenes=tuple(scenes))


def write_script(script: Script, path: str | Path) -> None:
    """Persist the validated script as JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(script.to_dict(), f, ensure_ascii=False, indent=2)
