# scheduler/schemas/jobs.py

from typing import Optional

from pydantic import Field

from .base import CamelModel


class JobPostWrite(CamelModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str = ""
    salary: Optional[str] = None
    apply_link: Optional[str] = None
    contact_emails: list[str] = Field(default_factory=list)
    is_published: bool = False


class JobPostRead(JobPostWrite):
    pass
