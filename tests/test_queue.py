"""Tests for EditQueue — debouncing, single-flight runs and cancellation."""

from __future__ import annotations

import asyncio
import logging

from vault_embeddings.queue import EditQueue

DELAY = 0.05


class Recorder:
    """Async process callback that records paths and can block or fail."""

    def __init__(self, *, fail_on: tuple[str, ...] = (), hold: asyncio.Event | None = None):
        self.calls: list[str] = []
        self.active = 0
        self.max_active = 0
        self.fail_on = fail_on
        self.hold = hold

    async def __call__(self, path: str) -> None:
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            self.calls.append(path)
            if self.hold is not None:
                await self.hold.wait()
            if path in self.fail_on:
                msg = f"cannot embed {path}"
                raise RuntimeError(msg)
        finally:
            self.active -= 1


class TestDebounce:
    async def test_rapid_edits_coalesce(self):
        recorder = Recorder()
        queue = EditQueue(recorder, delay=DELAY)
        queue.notify("a.md")
        await asyncio.sleep(DELAY / 5)
        queue.notify("a.md")
        await queue.join()
        assert recorder.calls == ["a.md"]

    async def test_each_edit_restarts_quiet_period(self):
        recorder = Recorder()
        queue = EditQueue(recorder, delay=DELAY)
        for _ in range(4):
            queue.notify("a.md")
            await asyncio.sleep(DELAY / 2)
        assert recorder.calls == []
        await queue.join()
        assert recorder.calls == ["a.md"]

    async def test_distinct_paths_each_processed(self):
        recorder = Recorder()
        queue = EditQueue(recorder, delay=DELAY)
        queue.notify("b.md")
        queue.notify("a.md")
        queue.notify("b.md")
        await queue.join()
        assert sorted(recorder.calls) == ["a.md", "b.md"]

    async def test_pending_snapshot(self):
        queue = EditQueue(Recorder(), delay=10)
        queue.notify("a.md")
        queue.notify("a.md")
        assert queue.pending == frozenset({"a.md"})
        queue.cancel()

    async def test_excluded_folders_skipped(self):
        recorder = Recorder()
        queue = EditQueue(recorder, delay=DELAY, excluded_folders=["Templates"])
        queue.notify("Templates/daily.md")
        queue.notify("notes/a.md")
        await queue.join()
        assert recorder.calls == ["notes/a.md"]


class TestSingleFlight:
    async def test_runs_never_overlap(self):
        hold = asyncio.Event()
        recorder = Recorder(hold=hold)
        queue = EditQueue(recorder, delay=0.01)
        queue.notify("a.md")
        await asyncio.sleep(0.05)
        assert queue.is_running

        queue.notify("b.md")
        await asyncio.sleep(0.05)
        assert recorder.calls == ["a.md"]

        hold.set()
        await queue.join()
        assert recorder.calls == ["a.md", "b.md"]
        assert recorder.max_active == 1

    async def test_edit_during_run_is_picked_up(self):
        hold = asyncio.Event()
        recorder = Recorder(hold=hold)
        queue = EditQueue(recorder, delay=0.01)
        queue.notify("a.md")
        await asyncio.sleep(0.05)
        queue.notify("a.md")
        hold.set()
        await queue.join()
        assert recorder.calls == ["a.md", "a.md"]


class TestFailures:
    async def test_failure_logged_and_next_path_processed(self, caplog):
        recorder = Recorder(fail_on=("a.md",))
        queue = EditQueue(recorder, delay=DELAY)
        queue.notify("a.md")
        queue.notify("b.md")
        with caplog.at_level(logging.WARNING, logger="vault_embeddings.queue"):
            await queue.join()
        assert recorder.calls == ["a.md", "b.md"]
        assert "Auto-embed failed for a.md" in caplog.text
        assert not queue.is_running


class TestFlushAndCancel:
    async def test_flush_processes_immediately(self):
        recorder = Recorder()
        queue = EditQueue(recorder, delay=10)
        queue.notify("a.md")
        await queue.flush()
        assert recorder.calls == ["a.md"]
        assert queue.pending == frozenset()

    async def test_flush_with_nothing_pending(self):
        recorder = Recorder()
        queue = EditQueue(recorder, delay=DELAY)
        await queue.flush()
        assert recorder.calls == []

    async def test_cancel_before_fire(self):
        recorder = Recorder()
        queue = EditQueue(recorder, delay=DELAY)
        queue.notify("a.md")
        queue.cancel()
        await asyncio.sleep(DELAY * 2)
        assert recorder.calls == []
        assert queue.pending == frozenset({"a.md"})

    async def test_cancel_mid_run_requeues_remaining(self):
        hold = asyncio.Event()
        recorder = Recorder(hold=hold)
        queue = EditQueue(recorder, delay=0.01)
        queue.notify("a.md")
        queue.notify("b.md")
        queue.notify("c.md")
        await asyncio.sleep(0.05)
        assert recorder.calls == ["a.md"]

        queue.cancel()
        hold.set()
        await queue.join()
        assert recorder.calls == ["a.md"]
        assert queue.pending == frozenset({"b.md", "c.md"})

    async def test_close_waits_for_run(self):
        hold = asyncio.Event()
        recorder = Recorder(hold=hold)
        queue = EditQueue(recorder, delay=0.01)
        queue.notify("a.md")
        await asyncio.sleep(0.05)
        closing = asyncio.ensure_future(queue.close())
        await asyncio.sleep(0.01)
        assert not closing.done()
        hold.set()
        await closing
        assert not queue.is_running
