from __future__ import annotations

import threading
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from .storage import append_event, read_json, state_path, write_json_atomic
from .types import ExportJob, ExportStatus


_STATE_LOCK = threading.RLock()


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def save_job_state(job: ExportJob) -> ExportJob:
    with _STATE_LOCK:
        job.updated_at = now_utc()
        write_json_atomic(state_path(job.id), job.model_dump(mode='json'))
    return job


def load_job_state(job_id: UUID | str) -> ExportJob | None:
    try:
        path = state_path(job_id)
    except ValueError:
        return None
    if not path.exists():
        return None
    with _STATE_LOCK:
        payload = read_json(path)
    return ExportJob.model_validate(payload)


def update_job_state(job_id: UUID | str, **fields: Any) -> ExportJob:
    with _STATE_LOCK:
        existing = load_job_state(job_id)
        if existing is None:
            raise FileNotFoundError(f'Export job not found: {job_id}')
        for key, value in fields.items():
            setattr(existing, key, value)
        existing.updated_at = now_utc()
        write_json_atomic(state_path(job_id), existing.model_dump(mode='json'))
    return existing


def set_status(job_id: UUID | str, status: ExportStatus, message: str, *, event: str | None = None) -> ExportJob:
    job = update_job_state(job_id, status=status, progress_message=message)
    append_event(job_id, event or 'status', status=status.value, message=message)
    return job


def set_progress(job_id: UUID | str, message: str) -> ExportJob:
    job = update_job_state(job_id, progress_message=message)
    append_event(job_id, 'progress', message=message)
    return job


def complete_job(job_id: UUID | str, *, output_path: str, page_count: int) -> ExportJob:
    job = update_job_state(
        job_id,
        status=ExportStatus.completed,
        progress_message='Export complete.',
        output_path=output_path,
        page_count=page_count,
    )
    append_event(job_id, 'completed', output_path=output_path, page_count=page_count)
    return job


def fail_job(job_id: UUID | str, *, message: str, error: str) -> ExportJob:
    job = update_job_state(job_id, status=ExportStatus.failed, progress_message=message, error=error)
    append_event(job_id, 'failed', message=message, error=error)
    return job
