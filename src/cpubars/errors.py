"""Error types for cpubars."""


class CpuBarsError(Exception):
    """Base class for all cpubars errors."""


class SamplerError(CpuBarsError):
    """A single sampling attempt failed."""


class TransportError(SamplerError):
    """The server answered with a non-success status, or not at all."""

    def __init__(self, status: int | None, reason: str = "") -> None:
        self.status = status
        self.reason = reason
        if status is None:
            message = f"no response: {reason}" if reason else "no response"
        else:
            message = f"HTTP error status: {status}"
        super().__init__(message)


class DecodeError(SamplerError):
    """A payload was not valid JSON or not an array of numbers."""

    def __init__(self, message: str, payload: str | bytes = "") -> None:
        self.payload = payload
        preview = payload[:40] if payload else ""
        super().__init__(f"{message}: {preview!r}" if preview else message)


class RenderError(CpuBarsError):
    """A snapshot entry could not be formatted as a number."""
