"""Tests for the per-widget refresh scheduler."""

import asyncio
import threading

import pytest
import pytest_asyncio

from feedboard.core.results import Inbox
from feedboard.core.scheduler import MIN_SPEED_FACTOR, RefreshScheduler
from feedboard.errors import RefreshError


class FakeWidget:
    """Refreshable whose behaviour the test controls."""

    def __init__(self, widget_id, result="ok", error=None, gate=None):
        self.widget_id = widget_id
        self.result = result
        self.error = error
        self.gate = gate
        self.calls = 0

    def refresh(self, ctx):
        self.calls += 1
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.error is not None:
            raise self.error
        return f"{self.result}-{self.calls}"


class ConcurrencyTrackingWidget(FakeWidget):
    """Records the most refresh() calls ever running at the same time."""

    def __init__(self, widget_id, gate=None):
        super().__init__(widget_id, gate=gate)
        self._lock = threading.Lock()
        self._active = 0
        self.peak = 0

    def refresh(self, ctx):
        with self._lock:
            self._active += 1
            self.peak = max(self.peak, self._active)
        try:
            return super().refresh(ctx)
        finally:
            with self._lock:
                self._active -= 1


async def wait_for(predicate, timeout=2.0):
    deadline = asyncio.get_running_loop().time() + timeout
    while not predicate():
        if asyncio.get_running_loop().time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture
def inbox():
    return Inbox()


@pytest_asyncio.fixture
async def scheduler(inbox):
    s = RefreshScheduler(asyncio.get_running_loop(), inbox, default_interval=60, timeout=1.0)
    yield s
    s.stop()


class TestRegistration:
    @pytest.mark.asyncio
    async def test_duplicate_widget_raises(self, scheduler):
        scheduler.register(FakeWidget("a"))
        with pytest.raises(ValueError, match="already registered"):
            scheduler.register(FakeWidget("a"))

    @pytest.mark.asyncio
    async def test_default_interval(self, scheduler):
        scheduler.register(FakeWidget("a"))
        scheduler.register(FakeWidget("b"), interval=5)
        assert scheduler.interval_for("a") == 60
        assert scheduler.interval_for("b") == 5


class TestRefreshing:
    @pytest.mark.asyncio
    async def test_start_refreshes_every_widget_once(self, scheduler, inbox):
        a, b = FakeWidget("a"), FakeWidget("b")
        scheduler.register(a)
        scheduler.register(b)
        scheduler.start()
        await wait_for(lambda: len(inbox) == 2)
        results = {r.widget_id: r for r in inbox.drain()}
        assert results["a"].ok and results["a"].payload == "ok-1"
        assert results["b"].seq == 1

    @pytest.mark.asyncio
    async def test_cadence_produces_increasing_sequence_numbers(self, scheduler, inbox):
        scheduler.register(FakeWidget("a"), interval=0.02)
        scheduler.start()
        await wait_for(lambda: len(inbox) >= 3)
        seqs = [r.seq for r in inbox.drain()]
        assert seqs == sorted(seqs)
        assert len(set(seqs)) == len(seqs)

    @pytest.mark.asyncio
    async def test_failure_is_isolated_to_its_widget(self, scheduler, inbox):
        scheduler.register(FakeWidget("bad", error=RuntimeError("feed down")))
        scheduler.register(FakeWidget("good"))
        scheduler.start()
        await wait_for(lambda: len(inbox) == 2)
        results = {r.widget_id: r for r in inbox.drain()}
        assert not results["bad"].ok
        assert results["bad"].error == "feed down"
        assert results["good"].ok
        assert scheduler.running

    @pytest.mark.asyncio
    async def test_refresh_error_message_is_posted_as_is(self, scheduler, inbox):
        scheduler.register(FakeWidget("img", error=RefreshError("cannot read art.png: No such file or directory")))
        scheduler.start()
        await wait_for(lambda: len(inbox) == 1)
        (result,) = list(inbox.drain())
        assert result.error == "cannot read art.png: No such file or directory"


class TestInFlight:
    @pytest.mark.asyncio
    async def test_manual_refresh_while_in_flight_is_dropped(self, scheduler, inbox):
        gate = threading.Event()
        widget = FakeWidget("slow", gate=gate)
        scheduler.register(widget)
        scheduler.start()
        await wait_for(lambda: widget.calls == 1)

        assert scheduler.is_in_flight("slow")
        assert scheduler.request("slow") is False
        gate.set()
        await wait_for(lambda: len(inbox) == 1)
        assert widget.calls == 1
        await wait_for(lambda: not scheduler.is_in_flight("slow"))

    @pytest.mark.asyncio
    async def test_timer_firing_while_busy_only_rearms(self, scheduler, inbox):
        gate = threading.Event()
        widget = FakeWidget("slow", gate=gate)
        scheduler.register(widget, interval=0.02)
        scheduler.start()
        await asyncio.sleep(0.15)
        assert widget.calls == 1
        gate.set()
        await wait_for(lambda: widget.calls >= 2)

    @pytest.mark.asyncio
    async def test_manual_refresh_when_idle(self, scheduler, inbox):
        widget = FakeWidget("a")
        scheduler.register(widget)
        scheduler.start()
        await wait_for(lambda: len(inbox) == 1)
        assert scheduler.request("a") is True
        await wait_for(lambda: len(inbox) == 2)
        assert [r.seq for r in inbox.drain()] == [1, 2]

    @pytest.mark.asyncio
    async def test_unknown_widget_request(self, scheduler):
        scheduler.start()
        assert scheduler.request("nope") is False


class TestTimeout:
    @pytest.mark.asyncio
    async def test_hanging_refresh_times_out_and_recovers(self, inbox):
        gate = threading.Event()
        scheduler = RefreshScheduler(asyncio.get_running_loop(), inbox, default_interval=60, timeout=0.05)
        widget = FakeWidget("hang", gate=gate)
        scheduler.register(widget)
        scheduler.start()
        try:
            await wait_for(lambda: len(inbox) == 1)
            (result,) = list(inbox.drain())
            assert not result.ok
            assert "timed out" in result.error

            # The abandoned thread is still inside refresh(); the slot stays taken
            assert scheduler.is_in_flight("hang")
            assert scheduler.request("hang") is False

            gate.set()
            await wait_for(lambda: not scheduler.is_in_flight("hang"))
            assert len(inbox) == 0

            widget.gate = None
            assert scheduler.request("hang") is True
            await wait_for(lambda: len(inbox) == 1)
            (result,) = list(inbox.drain())
            assert result.ok
            assert result.seq == 2
            assert result.payload == "ok-2"
        finally:
            gate.set()
            scheduler.stop()

    @pytest.mark.asyncio
    async def test_hung_widget_never_runs_twice_at_once(self, inbox):
        gate = threading.Event()
        scheduler = RefreshScheduler(asyncio.get_running_loop(), inbox, default_interval=60, timeout=0.05)
        widget = ConcurrencyTrackingWidget("hang", gate=gate)
        scheduler.register(widget, interval=0.02)
        scheduler.start()
        try:
            await asyncio.sleep(0.4)
            assert widget.calls == 1
            assert widget.peak == 1
        finally:
            gate.set()
            scheduler.stop()

    @pytest.mark.asyncio
    async def test_hung_widget_does_not_starve_others(self, inbox):
        gate = threading.Event()
        scheduler = RefreshScheduler(
            asyncio.get_running_loop(), inbox, default_interval=60, timeout=0.1, max_workers=2
        )
        hung = FakeWidget("hang", gate=gate)
        fast = FakeWidget("fast")
        scheduler.register(hung, interval=0.02)
        scheduler.register(fast, interval=0.02)
        scheduler.start()
        try:
            await asyncio.sleep(0.6)
            results = [r for r in inbox.drain() if r.widget_id == "fast"]
            assert len(results) >= 5
            assert all(r.ok for r in results)
            assert hung.calls == 1
        finally:
            gate.set()
            scheduler.stop()


class TestStop:
    @pytest.mark.asyncio
    async def test_in_flight_result_after_stop_is_never_posted(self, inbox):
        gate = threading.Event()
        scheduler = RefreshScheduler(asyncio.get_running_loop(), inbox, default_interval=60, timeout=5)
        widget = FakeWidget("slow", gate=gate)
        scheduler.register(widget)
        scheduler.start()
        await wait_for(lambda: widget.calls == 1)

        scheduler.stop()
        gate.set()
        await asyncio.sleep(0.1)
        assert len(inbox) == 0
        assert not scheduler.running

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, scheduler):
        scheduler.start()
        scheduler.stop()
        scheduler.stop()
        assert not scheduler.running


class TestSpeedFactor:
    @pytest.mark.asyncio
    async def test_scales_intervals(self, scheduler):
        scheduler.register(FakeWidget("a"), interval=100)
        scheduler.set_speed_factor(0.5)
        assert scheduler.interval_for("a") == 50

    @pytest.mark.asyncio
    async def test_clamped(self, scheduler):
        scheduler.register(FakeWidget("a"), interval=100)
        scheduler.set_speed_factor(0.01)
        assert scheduler.speed_factor == MIN_SPEED_FACTOR
        scheduler.set_speed_factor(3)
        assert scheduler.speed_factor == 1.0
