"""cpubars - Main Textual application."""

import argparse
import logging
from functools import partial

from textual import on
from textual.app import App, ComposeResult
from textual.message import Message
from textual.widgets import Footer
from textual.worker import Worker, WorkerState

from cpubars.config import ClientConfig, configure_logging
from cpubars.errors import CpuBarsError
from cpubars.models import Sample, SamplerMode
from cpubars.presenter import CpuBars, Presenter
from cpubars.sampler import PollingSampler, StreamingSampler

log = logging.getLogger(__name__)


class CpuBarsApp(App):
    """Live per-core CPU usage display fed by a remote metrics server."""

    TITLE = "cpubars"
    SUB_TITLE = "Live CPU Usage"

    CSS = """
    Screen {
        layout: vertical;
    }

    #cpu-bars {
        height: 1fr;
        border: solid $primary;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    class SampleArrived(Message):
        """A poll response came back from a worker thread."""

        def __init__(self, sample: Sample) -> None:
            super().__init__()
            self.sample = sample

    def __init__(
        self,
        config: ClientConfig | None = None,
        sampler: PollingSampler | StreamingSampler | None = None,
    ) -> None:
        """
        Initialize the CpuBarsApp.

        Args:
            config: Session settings. Read from the environment if omitted.
            sampler: Sampler matching ``config.mode``. Built from the config
                if omitted.
        """
        super().__init__()
        self._client_config = config if config is not None else ClientConfig()
        self._sampler = sampler if sampler is not None else self._build_sampler()
        self._presenter = Presenter(
            self._show,
            width=self._client_config.bar_width,
            ordered=self._client_config.ordered,
        )
        self._tick_count = 0
        self.last_error: BaseException | None = None

    def _build_sampler(self) -> PollingSampler | StreamingSampler:
        if self._client_config.mode is SamplerMode.STREAM:
            return StreamingSampler(self._client_config.base_url)
        return PollingSampler(self._client_config.base_url, timeout=self._client_config.timeout)

    @property
    def client_config(self) -> ClientConfig:
        return self._client_config

    @property
    def presenter(self) -> Presenter:
        return self._presenter

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield CpuBars(id="cpu-bars")
        yield Footer()

    def on_mount(self) -> None:
        """Start the configured sampling mode."""
        if self._client_config.mode is SamplerMode.STREAM:
            log.info("Streaming from %s", self._sampler.url)
            self.run_worker(
                self._consume_stream(),
                name="stream",
                group="stream",
                exit_on_error=False,
            )
        else:
            log.info("Polling %s every %.2fs", self._sampler.url, self._client_config.poll_interval)
            self.set_interval(self._client_config.poll_interval, self._tick)

    def _tick(self) -> None:
        """Issue one poll without waiting for earlier ones to finish."""
        self._tick_count += 1
        self.run_worker(
            partial(self._poll_once, self._tick_count),
            name=f"poll-{self._tick_count}",
            group="poll",
            thread=True,
            exit_on_error=False,
        )

    def _poll_once(self, sequence: int) -> None:
        """Runs in a worker thread; hands the result to the UI thread on arrival."""
        sample = self._sampler.sample(sequence)
        # post_message is thread-safe and never blocks on a closing app
        self.post_message(self.SampleArrived(sample))

    @on(SampleArrived)
    def _on_sample_arrived(self, message: SampleArrived) -> None:
        self.deliver(message.sample)

    async def _consume_stream(self) -> None:
        async for sample in self._sampler.samples():
            self.deliver(sample)
        log.warning("Stream ended; display will no longer update")

    def deliver(self, sample: Sample) -> None:
        """Apply a sample to the display, or report why it failed."""
        if not sample.ok:
            self._report(sample.error, sample.sequence)
            return
        try:
            self._presenter.render(sample.snapshot, sample.sequence)
        except CpuBarsError as exc:
            # The display keeps the previous snapshot
            self._report(exc, sample.sequence)

    def _report(self, error: CpuBarsError, sequence: int) -> None:
        self.last_error = error
        log.warning("Sample #%d failed (%s): %s", sequence, type(error).__name__, error)

    def _show(self, markup: str) -> None:
        self.query_one("#cpu-bars", CpuBars).update(markup)

    def on_worker_state_changed(self, event: Worker.StateChanged) -> None:
        """Log workers that died with an exception."""
        if event.state is WorkerState.ERROR:
            error = event.worker.error
            self.last_error = error
            log.error("Worker %s failed: %s", event.worker.name, error, exc_info=error)

    def action_quit(self) -> None:
        """Handle quit action with graceful cleanup."""
        if isinstance(self._sampler, PollingSampler):
            self._sampler.close()
        self.exit()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line options. Unset options fall back to the environment."""
    parser = argparse.ArgumentParser(
        prog="cpubars",
        description="Show live per-core CPU usage from a metrics server.",
    )
    parser.add_argument("--url", dest="base_url", help="server base URL")
    parser.add_argument("--mode", choices=[mode.value for mode in SamplerMode])
    parser.add_argument(
        "--interval",
        dest="poll_interval",
        type=float,
        help="poll interval in seconds (0.2-1.0)",
    )
    parser.add_argument(
        "--ordered",
        action="store_true",
        default=None,
        help="drop poll results older than the one already shown",
    )
    parser.add_argument("--timeout", type=float, help="poll request timeout in seconds")
    parser.add_argument("--log-level", dest="log_level")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Entry point for cpubars application."""
    args = parse_args(argv)
    config = ClientConfig().with_overrides(**vars(args))
    configure_logging(config.log_level)
    app = CpuBarsApp(config)
    app.run()


if __name__ == "__main__":
    main()
