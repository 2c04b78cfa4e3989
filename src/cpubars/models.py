"""Data models for cpubars."""

import json
import math
from dataclasses import dataclass
from enum import Enum

from cpubars.errors import DecodeError, SamplerError


class SamplerMode(Enum):
    """How snapshots are obtained from the server."""

    POLL = "poll"
    STREAM = "stream"


@dataclass(slots=True, frozen=True)
class Snapshot:
    """Immutable per-core CPU usage sample, core i at position i."""

    cores: tuple[float, ...]

    def __len__(self) -> int:
        return len(self.cores)


@dataclass(slots=True, frozen=True)
class Sample:
    """Outcome of one sampling attempt: a snapshot or the error that replaced it."""

    sequence: int
    snapshot: Snapshot | None = None
    error: SamplerError | None = None

    @property
    def ok(self) -> bool:
        """True when the attempt produced a snapshot."""
        return self.error is None and self.snapshot is not None


def _is_number(value: object) -> bool:
    # bool is an int subclass but never a valid percentage
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _reject_constant(token: str) -> float:
    raise ValueError(f"{token} is not valid JSON")


def decode_snapshot(payload: str | bytes) -> Snapshot:
    """
    Decode a JSON payload into a Snapshot.

    Args:
        payload: Raw response body or stream message.

    Raises:
        DecodeError: If the payload is not JSON or not an array of finite
            numbers.
    """
    try:
        data = json.loads(payload, parse_constant=_reject_constant)
    except (ValueError, TypeError) as exc:
        raise DecodeError("invalid JSON", payload) from exc

    if not isinstance(data, list):
        raise DecodeError(f"expected a JSON array, got {type(data).__name__}", payload)

    cores = []
    for index, value in enumerate(data):
        if not _is_number(value):
            raise DecodeError(f"core {index} is not a number", payload)
        try:
            number = float(value)
        except OverflowError as exc:
            raise DecodeError(f"core {index} is out of range", payload) from exc
        # 1e400 parses to inf without going through parse_constant
        if not math.isfinite(number):
            raise DecodeError(f"core {index} is not finite", payload)
        cores.append(number)

    return Snapshot(cores=tuple(cores))
