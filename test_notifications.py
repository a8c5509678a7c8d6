"""
Unit tests for the notification deduplicator.
"""

import pytest

from ecovision import Settings
from ecovision.notifications import NotificationKind, Notifier


@pytest.fixture
def notifier(clock):
    return Notifier(Settings(secret_key="s"), clock=clock)


class TestNotify:
    """Test posting and duplicate suppression."""

    def test_duplicate_within_window_suppressed(self, notifier, clock):
        """Test two identical notifications within 2 seconds store one."""
        assert notifier.notify("success", "Done", "Saved") is not None
        clock.advance(2)
        assert notifier.notify("success", "Done again", "Saved") is None

        assert len(notifier.notifications) == 1
        assert notifier.unread_count == 1

    def test_duplicate_after_window_allowed(self, notifier, clock):
        """Test the window expires after five seconds."""
        notifier.success("Saved")
        clock.advance(5)
        assert notifier.success("Saved") is not None
        assert len(notifier.notifications) == 2

    def test_dedup_key_is_kind_and_message(self, notifier):
        """Test different kinds or messages are not duplicates."""
        notifier.success("Saved")
        notifier.error("Saved")
        notifier.success("Saved twice")
        assert len(notifier.notifications) == 3

    def test_default_titles(self, notifier):
        """Test helpers fill in the kind's heading."""
        assert notifier.info("hello").title == "Information"
        assert notifier.warning("careful").title == "Warning"
        assert notifier.error("broken", title="Upload").title == "Upload"

    def test_capacity(self, notifier, clock):
        """Test only the ten newest notifications are kept."""
        for index in range(12):
            notifier.info(f"message {index}")

        messages = [n.message for n in notifier.notifications]
        assert len(messages) == 10
        assert messages[0] == "message 11"
        assert messages[-1] == "message 2"

    def test_repost_after_clear(self, notifier, clock):
        """Test a cleared notification no longer suppresses its repeat."""
        notifier.success("Saved")
        notifier.clear()
        clock.advance(1)

        assert notifier.success("Saved") is not None
        assert notifier.unread_count == 1

    def test_repost_after_eviction(self, notifier):
        """Test a notification pushed out of the buffer can be posted again."""
        for index in range(11):
            notifier.info(f"m{index}")
        assert "m0" not in [n.message for n in notifier.notifications]

        assert notifier.info("m0") is not None
        assert notifier.notifications[0].message == "m0"

    def test_unknown_kind(self, notifier):
        """Test invalid kinds are rejected."""
        with pytest.raises(ValueError):
            notifier.notify("fatal", "x", "y")


class TestReadState:
    """Test read tracking."""

    def test_mark_read(self, notifier):
        """Test mark_read is idempotent and ignores unknown ids."""
        first = notifier.success("one")
        notifier.success("two")

        notifier.mark_read(first.id)
        notifier.mark_read(first.id)
        notifier.mark_read("unknown")

        assert notifier.unread_count == 1
        assert [n.read for n in notifier.notifications] == [False, True]

    def test_clear(self, notifier):
        """Test clear empties the buffer."""
        notifier.success("one")
        notifier.clear()
        assert notifier.notifications == []
        assert notifier.unread_count == 0

    def test_kinds(self, notifier):
        """Test stored kinds are enum members."""
        assert notifier.notify("warning", None, "x").kind == NotificationKind.WARNING
