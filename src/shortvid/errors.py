"""
Exception types raised across the pipeline.
"""


class ShortVidError(Exception):
    """Base class for pipeline errors."""


class ProviderError(ShortVidError, RuntimeError):
    """A script, image, speech or transcription service call failed."""


class ScriptParseError(ShortVidError, ValueError):
    """Generated script text is not a valid scene list."""


class InvalidInput(ShortVidError, ValueError):
    """Malformed timing data."""


class EmptyInput(ShortVidError, ValueError):
    """An operation received nothing to work on."""


class MissingAsset(ShortVidError, FileNotFoundError):
    """An expected file is absent before a dependent stage."""


class CommandError(ShortVidError, RuntimeError):
    """An external command exited non-zero or could not be started."""

    def __init__(self, cmd: list[str], returncode: int | None, output: str) -> None:
        self.cmd = cmd
        self.returncode = returncode
        self.output = output
        super().__init__(f"{cmd[0]} failed with code {returncode}: {output.strip()[-500:]}")


class EncodeError(ShortVidError, RuntimeError):
    """The media encoder failed to probe or encode a scene."""


class ConcatError(ShortVidError, RuntimeError):
    """The media encoder failed to concatenate clips."""


class PipelineFailed(ShortVidError):
    """Terminal failure of a run; carries the state it failed in and the cause."""

    def __init__(self, stage, cause: BaseException) -> None:
        self.stage = stage
        self.cause = cause
        super().__init__(f"Pipeline failed in stage '{stage.value}': {cause}")
