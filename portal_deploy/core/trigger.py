"""Delayed, cancellable deployment started by a commit"""

import asyncio
import logging
import math
import os
import signal
from typing import Callable, Iterable, Mapping, Optional, TextIO, TYPE_CHECKING

from ..api.exceptions import NothingToDeploy, PortalDeployError
from ..constants import CANCEL_KEYS, DEFAULT_TRIGGER_DELAY, ENV_SKIP_DEPLOY, PROCEED_KEYS
from ..models import DeploymentResult, DeploymentStatus

if TYPE_CHECKING:
    from ..services.deploy_service import DeployService

logger = logging.getLogger(__name__)

TickCallback = Callable[[int], None]


class Countdown:
    """Wait for a delay unless cancelled or told to proceed early

    ``cancel`` and ``proceed`` may be called from signal handlers, other
    threads or before ``wait`` starts. Waiting blocks on events, never on
    polling.
    """

    def __init__(self, delay: float = DEFAULT_TRIGGER_DELAY,
                 on_tick: Optional[TickCallback] = None):
        self.delay = max(0.0, float(delay))
        self.on_tick = on_tick
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._cancel_event: Optional[asyncio.Event] = None
        self._proceed_event: Optional[asyncio.Event] = None
        self._cancel_requested = False
        self._proceed_requested = False

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested

    def cancel(self) -> None:
        """Abort the pending deployment"""
        self._cancel_requested = True
        self._notify(lambda: self._cancel_event)

    def proceed(self) -> None:
        """Stop waiting and deploy now"""
        self._proceed_requested = True
        self._notify(lambda: self._proceed_event)

    def _notify(self, get_event: Callable[[], Optional[asyncio.Event]]) -> None:
        if self._loop is None or self._loop.is_closed():
            return

        def set_event():
            event = get_event()
            if event is not None:
                event.set()

        self._loop.call_soon_threadsafe(set_event)

    async def wait(self) -> bool:
        """
        Run the countdown

        Returns:
            True to deploy, False if cancelled
        """
        self._loop = asyncio.get_running_loop()
        self._cancel_event = asyncio.Event()
        self._proceed_event = asyncio.Event()
        if self._cancel_requested:
            self._cancel_event.set()
        if self._proceed_requested:
            self._proceed_event.set()

        remaining = self.delay
        while remaining > 0 and not self._settled():
            if self.on_tick:
                self.on_tick(math.ceil(remaining))
            step = min(1.0, remaining)
            await self._wait_for_signal(step)
            remaining -= step

        return not self._cancel_event.is_set()

    def _settled(self) -> bool:
        return self._cancel_event.is_set() or self._proceed_event.is_set()

    async def _wait_for_signal(self, timeout: float) -> None:
        waiters = [
            asyncio.ensure_future(self._cancel_event.wait()),
            asyncio.ensure_future(self._proceed_event.wait()),
        ]
        try:
            await asyncio.wait(waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for waiter in waiters:
                waiter.cancel()
            await asyncio.gather(*waiters, return_exceptions=True)


class CountdownInputs:
    """Wire interrupt signals and a terminal to a countdown

    SIGINT/SIGTERM cancel. A line read from the terminal proceeds when it
    is empty or ``y``, and cancels on ``n``, ``q`` or ``c``.
    """

    SIGNALS = (signal.SIGINT, signal.SIGTERM)

    def __init__(self, countdown: Countdown, terminal: Optional[TextIO] = None):
        self.countdown = countdown
        self.terminal = terminal
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._signals = []
        self._reader_attached = False

    def attach(self) -> None:
        self._loop = asyncio.get_running_loop()

        for sig in self.SIGNALS:
            try:
                self._loop.add_signal_handler(sig, self.countdown.cancel)
                self._signals.append(sig)
            except (ValueError, RuntimeError, NotImplementedError) as e:
                # Only the main thread may install signal handlers
                logger.debug(f"Cannot watch signal {sig}: {e}")

        if self.terminal is not None:
            try:
                self._loop.add_reader(self.terminal.fileno(), self._on_input)
                self._reader_attached = True
            except (ValueError, OSError, NotImplementedError) as e:
                logger.debug(f"Cannot watch terminal input: {e}")

    def detach(self) -> None:
        if self._loop is None:
            return
        for sig in self._signals:
            self._loop.remove_signal_handler(sig)
        self._signals.clear()
        if self._reader_attached:
            self._loop.remove_reader(self.terminal.fileno())
            self._reader_attached = False

    def _on_input(self) -> None:
        line = self.terminal.readline()
        if not line:
            # EOF, stop watching
            self._loop.remove_reader(self.terminal.fileno())
            self._reader_attached = False
            return

        key = line.strip().lower()
        if key in CANCEL_KEYS:
            self.countdown.cancel()
        elif key in PROCEED_KEYS:
            self.countdown.proceed()


class DeploymentTrigger:
    """Run a deployment for a commit's change-set after a cancellable delay"""

    def __init__(self,
                 service: 'DeployService',
                 delay: float = DEFAULT_TRIGGER_DELAY,
                 environ: Optional[Mapping[str, str]] = None,
                 on_tick: Optional[TickCallback] = None,
                 terminal: Optional[TextIO] = None,
                 countdown_factory: Callable[..., Countdown] = Countdown):
        """
        Initialize trigger

        Args:
            service: Deployment pipeline to invoke
            delay: Countdown length in seconds
            environ: Environment consulted for the opt-out flag
            on_tick: Called with the remaining whole seconds
            terminal: Stream read for proceed/cancel keystrokes
            countdown_factory: Builds the countdown for each firing
        """
        self.service = service
        self.delay = delay
        self.environ = os.environ if environ is None else environ
        self.on_tick = on_tick
        self.terminal = terminal
        self.countdown_factory = countdown_factory

    def opted_out(self) -> bool:
        """Check the SKIP_DEPLOY opt-out flag"""
        return bool(self.environ.get(ENV_SKIP_DEPLOY, ""))

    def fire(self, changed_paths: Iterable[str], skip_reload: bool = False) -> DeploymentResult:
        """
        Deploy the files touched by a change-set

        Args:
            changed_paths: Paths changed by the commit, relative to the source root
            skip_reload: Leave the service config and reload out of the run

        Returns:
            DeploymentResult
        """
        changed_paths = list(changed_paths)
        result = DeploymentResult(status=DeploymentStatus.SKIPPED)

        if self.opted_out():
            logger.info(f"{ENV_SKIP_DEPLOY} is set, skipping deployment")
            return result.complete(
                DeploymentStatus.SKIPPED,
                f"Deployment skipped ({ENV_SKIP_DEPLOY} is set)"
            )

        try:
            unit = self.service.resolve(changed_paths, include_config=not skip_reload)
        except NothingToDeploy as e:
            logger.info("No deployable files changed")
            return result.complete(DeploymentStatus.NOTHING_TO_DEPLOY, str(e))
        except PortalDeployError as e:
            return self.service.failure_result(e, result)

        logger.info(f"Deploying {len(unit)} file(s) in {self.delay:g}s")
        countdown = self.countdown_factory(self.delay, self.on_tick)
        if not asyncio.run(self._run_countdown(countdown)):
            logger.warning("Deployment cancelled")
            return result.complete(DeploymentStatus.CANCELLED, "Deployment cancelled during countdown")

        return self.service.deploy(
            changed_paths=changed_paths,
            force=True,
            skip_reload=skip_reload
        )

    async def _run_countdown(self, countdown: Countdown) -> bool:
        inputs = CountdownInputs(countdown, self.terminal)
        inputs.attach()
        try:
            return await countdown.wait()
        finally:
            inputs.detach()
