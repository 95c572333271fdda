"""
Tests for the commit-triggered, cancellable deployment.
"""

import asyncio
import os
import signal
import threading
import time
from unittest.mock import Mock

import pytest

from portal_deploy.core.trigger import Countdown, CountdownInputs, DeploymentTrigger
from portal_deploy.models import DeploymentStatus
from portal_deploy.services.deploy_service import DeployService


def immediate_countdown(delay, on_tick=None):
    return Countdown(0, on_tick)


def cancelled_countdown(delay, on_tick=None):
    countdown = Countdown(delay, on_tick)
    countdown.cancel()
    return countdown


class InterruptedCountdown(Countdown):
    """Countdown that receives SIGINT shortly after it starts waiting"""

    async def wait(self) -> bool:
        asyncio.get_running_loop().call_later(0.05, os.kill, os.getpid(), signal.SIGINT)
        return await super().wait()


class TestCountdown:
    """Test Countdown"""

    @pytest.mark.asyncio
    async def test_zero_delay_proceeds(self):
        assert await Countdown(0).wait() is True

    @pytest.mark.asyncio
    async def test_cancel_before_wait(self):
        countdown = Countdown(30)
        countdown.cancel()

        assert await countdown.wait() is False
        assert countdown.cancelled

    @pytest.mark.asyncio
    async def test_proceed_early(self):
        countdown = Countdown(30)
        asyncio.get_running_loop().call_later(0.05, countdown.proceed)

        started = time.monotonic()
        assert await countdown.wait() is True
        assert time.monotonic() - started < 5

    @pytest.mark.asyncio
    async def test_cancel_during_countdown(self):
        countdown = Countdown(30)
        asyncio.get_running_loop().call_later(0.05, countdown.cancel)

        started = time.monotonic()
        assert await countdown.wait() is False
        assert time.monotonic() - started < 5

    @pytest.mark.asyncio
    async def test_cancel_from_another_thread(self):
        countdown = Countdown(30)
        timer = threading.Timer(0.05, countdown.cancel)
        timer.start()
        try:
            assert await countdown.wait() is False
        finally:
            timer.cancel()

    @pytest.mark.asyncio
    async def test_ticks_count_down_whole_seconds(self):
        ticks = []

        assert await Countdown(1.2, on_tick=ticks.append).wait() is True
        assert ticks == [2, 1]


class TestCountdownInputs:
    """Test signal and keyboard input handling"""

    @pytest.fixture
    def terminal(self):
        read_fd, write_fd = os.pipe()
        reader = os.fdopen(read_fd, 'r')
        yield reader, write_fd
        reader.close()
        os.close(write_fd)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("keys, expected", [
        (b"n\n", False),
        (b"q\n", False),
        (b"\n", True),
        (b"y\n", True),
    ])
    async def test_keys(self, terminal, keys, expected):
        reader, write_fd = terminal
        countdown = Countdown(30)
        inputs = CountdownInputs(countdown, reader)

        inputs.attach()
        try:
            os.write(write_fd, keys)
            assert await asyncio.wait_for(countdown.wait(), timeout=10) is expected
        finally:
            inputs.detach()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sig", [signal.SIGINT, signal.SIGTERM])
    async def test_signal_cancels(self, sig):
        countdown = Countdown(30)
        inputs = CountdownInputs(countdown)

        inputs.attach()
        try:
            asyncio.get_running_loop().call_later(0.05, os.kill, os.getpid(), sig)
            assert await asyncio.wait_for(countdown.wait(), timeout=10) is False
        finally:
            inputs.detach()

    @pytest.mark.asyncio
    async def test_detach_restores_handlers(self):
        inputs = CountdownInputs(Countdown(30))

        inputs.attach()
        inputs.detach()

        assert signal.getsignal(signal.SIGINT) is signal.default_int_handler


class TestDeploymentTrigger:
    """Test DeploymentTrigger"""

    @pytest.fixture
    def service(self, deploy_config, controller):
        return DeployService(deploy_config, controller=controller)

    def test_opt_out(self, service, controller, live_root, snapshot):
        factory = Mock(side_effect=immediate_countdown)
        trigger = DeploymentTrigger(service, environ={"SKIP_DEPLOY": "1"}, countdown_factory=factory)

        result = trigger.fire(["www/index.html"])

        assert result.status == DeploymentStatus.SKIPPED
        factory.assert_not_called()
        assert controller.calls == []
        assert snapshot(live_root) == {}

    def test_empty_opt_out_value_does_not_skip(self, service):
        trigger = DeploymentTrigger(
            service, environ={"SKIP_DEPLOY": ""}, countdown_factory=immediate_countdown
        )

        assert not trigger.opted_out()

    def test_nothing_to_deploy_skips_countdown(self, service, live_root, snapshot):
        factory = Mock(side_effect=immediate_countdown)
        trigger = DeploymentTrigger(service, environ={}, countdown_factory=factory)

        result = trigger.fire(["README.md", "docs/notes.txt"])

        assert result.status == DeploymentStatus.NOTHING_TO_DEPLOY
        assert result.exit_code == 0
        factory.assert_not_called()
        assert snapshot(live_root) == {}

    def test_cancelled(self, service, controller, live_root, snapshot):
        trigger = DeploymentTrigger(service, environ={}, countdown_factory=cancelled_countdown)

        result = trigger.fire(["www/index.html"])

        assert result.status == DeploymentStatus.CANCELLED
        assert result.exit_code == 0
        assert snapshot(live_root) == {}

    def test_interrupt_during_countdown_cancels(self, service, controller, live_root, snapshot):
        trigger = DeploymentTrigger(
            service, delay=30, environ={}, countdown_factory=InterruptedCountdown
        )

        started = time.monotonic()
        result = trigger.fire(["www/index.html"])

        assert result.status == DeploymentStatus.CANCELLED
        assert time.monotonic() - started < 10
        assert controller.calls == []
        assert snapshot(live_root) == {}

    def test_deploys_change_set_after_countdown(self, service, controller, deploy_config):
        ticks = []
        trigger = DeploymentTrigger(
            service, delay=3, environ={}, on_tick=ticks.append,
            countdown_factory=immediate_countdown
        )

        result = trigger.fire(["www/index.html", "README.md"])

        assert result.status == DeploymentStatus.SUCCESS
        assert result.files_written == 1
        assert not result.reload_performed
        assert controller.calls == []
        assert (deploy_config.web_target / "index.html").exists()

    def test_pre_flight_error_is_reported(self, service, source_root):
        (source_root / "www" / "index.html").unlink()
        factory = Mock(side_effect=immediate_countdown)
        trigger = DeploymentTrigger(service, environ={}, countdown_factory=factory)

        result = trigger.fire(["www/index.html"])

        assert result.status == DeploymentStatus.FAILED
        assert result.exit_code == 1
        factory.assert_not_called()
