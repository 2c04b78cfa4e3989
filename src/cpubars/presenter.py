"""Snapshot presentation for cpubars."""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass

from textual.widgets import Static

from cpubars.errors import RenderError
from cpubars.models import Snapshot

log = logging.getLogger(__name__)

DEFAULT_BAR_WIDTH = 20
MAX_OVERFLOW_BARS = 1
WAITING_TEXT = "Waiting for data..."


@dataclass(slots=True, frozen=True)
class BarLine:
    """One rendered core: its label and bar fill percentage."""

    index: int
    value: float
    label: str
    fill: float  # percent of the bar, unclamped


def format_label(index: int, value: float) -> str:
    """Label for the core at 0-based ``index``."""
    try:
        return f"CPU {index + 1}: {value:.2f}%"
    except (TypeError, ValueError) as exc:
        raise RenderError(f"core {index} value {value!r} is not a number") from exc


def project(snapshot: Snapshot) -> tuple[BarLine, ...]:
    """Project a snapshot into one BarLine per core, in core order."""
    return tuple(
        BarLine(index=i, value=value, label=format_label(i, value), fill=value)
        for i, value in enumerate(snapshot.cores)
    )


def bar_markup(fill: float, width: int = DEFAULT_BAR_WIDTH) -> str:
    """
    Rich markup for a bar ``width`` cells wide filled to ``fill`` percent.

    Fills above 100 draw past the bar, up to MAX_OVERFLOW_BARS extra bar
    widths; fills below 0 draw nothing.
    """
    limit = width * (1 + MAX_OVERFLOW_BARS)
    cells = fill / 100 * width
    filled = 0 if math.isnan(cells) else round(max(0.0, min(cells, limit)))
    empty = max(0, width - filled)
    return "[green]█[/green]" * filled + "[dim]░[/dim]" * empty


def to_markup(lines: tuple[BarLine, ...], width: int = DEFAULT_BAR_WIDTH) -> str:
    """Markup for the whole bar list. An empty list renders as an empty string."""
    # Escaped brackets so Rich does not read the bar container as a tag
    return "\n".join(f"\\[{bar_markup(line.fill, width)}] {line.label}" for line in lines)


class Presenter:
    """
    Owns the single display state and swaps it as a unit on every render.

    The state is either empty (nothing delivered yet) or showing one
    snapshot. Every render regenerates the full markup from the snapshot and
    hands it to the target in one call.

    With ``ordered=True`` a delivery whose sequence number is not newer than
    the last applied one is dropped. By default every delivery is applied in
    arrival order, so the last one to arrive wins.
    """

    def __init__(
        self,
        target: Callable[[str], None],
        width: int = DEFAULT_BAR_WIDTH,
        ordered: bool = False,
    ) -> None:
        self._target = target
        self._width = width
        self._ordered = ordered
        self._snapshot: Snapshot | None = None
        self._markup: str | None = None
        self._last_sequence: int | None = None

    @property
    def snapshot(self) -> Snapshot | None:
        """The snapshot currently shown, or None while empty."""
        return self._snapshot

    @property
    def markup(self) -> str | None:
        """The markup currently shown, or None while empty."""
        return self._markup

    @property
    def last_sequence(self) -> int | None:
        """Sequence number of the last applied delivery, if it had one."""
        return self._last_sequence

    @property
    def is_empty(self) -> bool:
        return self._snapshot is None

    def render(self, snapshot: Snapshot, sequence: int | None = None) -> bool:
        """
        Replace the display with ``snapshot``.

        Returns:
            False if the delivery was dropped as stale, True otherwise.

        Raises:
            RenderError: If an entry cannot be formatted. The display is left
                unchanged.
        """
        if (
            self._ordered
            and sequence is not None
            and self._last_sequence is not None
            and sequence <= self._last_sequence
        ):
            log.debug("Dropping stale snapshot #%d (last applied #%d)", sequence, self._last_sequence)
            return False

        markup = to_markup(project(snapshot), self._width)
        self._snapshot = snapshot
        self._markup = markup
        if sequence is not None:
            self._last_sequence = sequence
        self._target(markup)
        return True


class CpuBars(Static):
    """Widget showing one bar per CPU core."""

    DEFAULT_CSS = """
    CpuBars {
        height: auto;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize CpuBars."""
        super().__init__(WAITING_TEXT, *args, **kwargs)
