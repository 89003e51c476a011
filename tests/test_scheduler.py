from __future__ import annotations

import threading
from dataclasses import replace

from tagsync.models import SyncReport
from tagsync.scheduler import SyncJob

from conftest import make_config

LEVELS = "Levels,https://api/levels,,json-format"


class StubOrchestrator:
    def __init__(self) -> None:
        self.runs = 0
        self.publish_flags = []

    def run(self, publish: bool = True) -> SyncReport:
        self.runs += 1
        self.publish_flags.append(publish)
        return SyncReport()


class BlockingOrchestrator(StubOrchestrator):
    """Se queda dentro de run() hasta que el test lo libera."""

    def __init__(self) -> None:
        super().__init__()
        self.started = threading.Event()
        self.release = threading.Event()

    def run(self, publish: bool = True) -> SyncReport:
        self.started.set()
        self.release.wait(timeout=5)
        return super().run(publish)


def test_job_runs_when_enabled_and_leader() -> None:
    orchestrator = StubOrchestrator()
    job = SyncJob(orchestrator, make_config(LEVELS))

    report = job.run(publish=False)

    assert isinstance(report, SyncReport)
    assert orchestrator.publish_flags == [False]


def test_disabled_job_does_not_run() -> None:
    orchestrator = StubOrchestrator()
    config = replace(make_config(LEVELS), enabled=False)

    assert SyncJob(orchestrator, config).run() is None
    assert orchestrator.runs == 0


def test_non_leader_does_not_run_when_leader_only() -> None:
    orchestrator = StubOrchestrator()
    config = replace(make_config(LEVELS), run_on_leader=True, is_leader=False)

    assert SyncJob(orchestrator, config).run() is None
    assert orchestrator.runs == 0


def test_non_leader_runs_when_not_leader_only() -> None:
    orchestrator = StubOrchestrator()
    config = replace(make_config(LEVELS), run_on_leader=False, is_leader=False)

    assert SyncJob(orchestrator, config).run() is not None
    assert orchestrator.runs == 1


def test_overlapping_trigger_is_skipped() -> None:
    orchestrator = BlockingOrchestrator()
    job = SyncJob(orchestrator, replace(make_config(LEVELS), concurrent=False))
    results = []

    first = threading.Thread(target=lambda: results.append(job.run()))
    first.start()
    assert orchestrator.started.wait(timeout=5)
    second = job.run()
    orchestrator.release.set()
    first.join(timeout=5)

    assert second is None
    assert orchestrator.runs == 1
    assert isinstance(results[0], SyncReport)


def test_concurrent_job_does_not_take_lock() -> None:
    orchestrator = StubOrchestrator()
    job = SyncJob(orchestrator, replace(make_config(LEVELS), concurrent=True))

    job._lock.acquire()
    try:
        report = job.run()
    finally:
        job._lock.release()

    assert report is not None
    assert orchestrator.runs == 1
