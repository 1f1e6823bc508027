"""
Job and candidate schemas.

These are the records the recruiter-side screens manage; the aptitude
test workflow reads job title, description and skills from them.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List
from uuid import uuid4


class CandidateStatus(str, Enum):
    """Where a candidate stands in the hiring funnel."""
    PENDING = "pending"
    CONTACTED = "contacted"
    TEST_SENT = "test_sent"
    TEST_COMPLETED = "test_completed"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    REJECTED = "rejected"
    HIRED = "hired"


@dataclass
class JobDescription:
    """
    A job posting.
    """
    job_id: str = field(default_factory=lambda: uuid4().hex[:12])
    title: str = ""
    description: str = ""
    skills: List[str] = field(default_factory=list)
    location: str = "Remote"
    salary: str = ""
    employment_type: str = "full_time"  # full_time, part_time, contract
    status: str = "active"
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "job_id": self.job_id,
            "title": self.title,
            "description": self.description,
            "skills": self.skills,
            "location": self.location,
            "salary": self.salary,
            "employment_type": self.employment_type,
            "status": self.status,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class Candidate:
    """A person who applied to one or more jobs."""
    candidate_id: str = field(default_factory=lambda: uuid4().hex[:12])
    name: str = ""
    email: str = ""
    applied_jobs: List[str] = field(default_factory=list)
    status: CandidateStatus = CandidateStatus.PENDING
    notes: str = ""
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "candidate_id": self.candidate_id,
            "name": self.name,
            "email": self.email,
            "applied_jobs": self.applied_jobs,
            "status": self.status.value,
            "notes": self.notes,
            "updated_at": self.updated_at.isoformat(),
        }
