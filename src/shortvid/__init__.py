"""
Short Video Generator - Prompt-to-vertical-video pipeline with burned-in captions.

A pipeline for:
- Generating a multi-scene script from a text prompt with GPT
- Generating one image and one narration track per scene
- Transcribing narration to word-level timestamps (OpenAI Whisper or faster-whisper)
- Building non-overlapping word captions and ASS subtitle documents
- Rendering 1080x1920 scene clips with ffmpeg and concatenating them losslessly
"""

__version__ = "0.1.0"
