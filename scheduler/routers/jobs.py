# scheduler/routers/jobs.py
"""
Job board.

GET    /jobs                - Published job posts (public)
GET    /admin/jobs          - All job posts
GET    /admin/jobs/{job_id} - One job post
PUT    /admin/jobs/{job_id} - Create or replace a post
DELETE /admin/jobs/{job_id} - Remove a post
"""

import logging

from fastapi import APIRouter, Depends

from ..dependencies import get_store, require_admin
from ..errors import NotFoundError, ValidationError
from ..schemas.jobs import JobPostRead, JobPostWrite
from ..services.storage import BookingStore, JobPostRecord

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["jobs"])
admin_router = APIRouter(prefix="/admin/jobs", tags=["jobs"], dependencies=[Depends(require_admin)])


@router.get("", response_model=list[JobPostRead])
def list_published_jobs(store: BookingStore = Depends(get_store)):
    return [job for job in store.list_jobs() if job.is_published]


@admin_router.get("", response_model=list[JobPostRead])
def list_jobs(store: BookingStore = Depends(get_store)):
    return store.list_jobs()


@admin_router.get("/{job_id}", response_model=JobPostRead)
def get_job(job_id: str, store: BookingStore = Depends(get_store)):
    job = store.get_job(job_id)
    if job is None:
        raise NotFoundError("Job post not found")
    return job


@admin_router.put("/{job_id}", response_model=JobPostRead)
def save_job(job_id: str, data: JobPostWrite, store: BookingStore = Depends(get_store)):
    if data.id != job_id:
        raise ValidationError("Job id in body does not match the path")

    job = JobPostRecord(**data.model_dump())
    store.save_job(job)
    logger.info(f"Saved job post {job_id} (published={job.is_published})")
    return job


@admin_router.delete("/{job_id}")
def delete_job(job_id: str, store: BookingStore = Depends(get_store)):
    if not store.delete_job(job_id):
        raise NotFoundError("Job post not found")
    logger.info(f"Deleted job post {job_id}")
    return {"success": True}
