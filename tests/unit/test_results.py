"""Tests for refresh results and the loop inbox."""

from feedboard.core.results import Inbox, RefreshResult


class TestRefreshResult:
    def test_success(self):
        r = RefreshResult.success("w", 3, ["item"])
        assert r.ok
        assert r.payload == ["item"]
        assert r.error is None

    def test_failure_records_time(self):
        r = RefreshResult.failure("w", 4, "boom", at=123.0)
        assert not r.ok
        assert r.error == "boom"
        assert r.failed_at == 123.0

    def test_failure_needs_a_message(self):
        assert RefreshResult.failure("w", 1, "").error == "refresh failed"


class TestInbox:
    def test_drains_in_arrival_order(self):
        inbox = Inbox()
        for seq in (1, 2, 3):
            inbox.post(RefreshResult.success("w", seq, seq))
        assert [r.seq for r in inbox.drain()] == [1, 2, 3]
        assert len(inbox) == 0

    def test_closed_inbox_drops_posts(self):
        inbox = Inbox()
        inbox.post(RefreshResult.success("w", 1, None))
        inbox.close()
        assert inbox.closed
        assert not inbox.post(RefreshResult.success("w", 2, None))
        assert list(inbox.drain()) == []
