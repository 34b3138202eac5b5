# rtoops/jobs/rto.py
from __future__ import annotations

from rtoops.jobs.rto_orchestrator import process_job
from rtoops.jobs.rto_runner import main, run_batch, run_cli, run_single
from rtoops.jobs.rto_types import JobResult, JobStatus, ReturnJob

__all__ = [
    "JobResult",
    "JobStatus",
    "ReturnJob",
    "process_job",
    "run_batch",
    "run_single",
    "main",
    "run_cli",
]


if __name__ == "__main__":
    run_cli()
