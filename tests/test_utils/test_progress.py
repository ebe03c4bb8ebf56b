from __future__ import annotations

import threading
from unittest.mock import MagicMock

import pytest

from depfloor.utils.progress import ProgressReporter


@pytest.mark.unit
class TestProgressReporter:
    """Tests for ProgressReporter."""

    def test_initial_state(self) -> None:
        reporter = ProgressReporter()

        assert reporter.total == 0
        assert reporter.completed == 0
        assert reporter.is_done is False

    def test_counts_to_total(self) -> None:
        on_update = MagicMock()
        reporter = ProgressReporter(on_update=on_update)

        reporter.set_total_tasks(3)
        reporter.advance()
        reporter.advance()

        assert reporter.completed == 2
        assert not reporter.is_done
        assert [c.args for c in on_update.call_args_list] == [(0, 3), (1, 3), (2, 3)]

    def test_done_fires_once(self) -> None:
        on_done = MagicMock()
        reporter = ProgressReporter(on_done=on_done)

        reporter.set_total_tasks(1)
        reporter.advance()
        reporter.advance()

        assert reporter.is_done
        on_done.assert_called_once_with()

    def test_new_batch_resets(self) -> None:
        on_done = MagicMock()
        reporter = ProgressReporter(on_done=on_done)

        reporter.set_total_tasks(1)
        reporter.advance()
        reporter.set_total_tasks(2)

        assert reporter.completed == 0
        assert not reporter.is_done

        reporter.advance()
        reporter.advance()
        assert on_done.call_count == 2

    def test_empty_batch_is_never_done(self) -> None:
        on_done = MagicMock()
        reporter = ProgressReporter(on_done=on_done)

        reporter.set_total_tasks(0)

        assert not reporter.is_done
        on_done.assert_not_called()

    def test_thread_safe_advance(self) -> None:
        reporter = ProgressReporter()
        reporter.set_total_tasks(400)

        threads = [
            threading.Thread(target=lambda: [reporter.advance() for _ in range(100)])
            for _ in range(4)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert reporter.completed == 400
        assert reporter.is_done
