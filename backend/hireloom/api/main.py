"""
FastAPI main application.

This is the entry point for the REST API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Union
from uuid import uuid4

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..agents.assignment_author import AssignmentInput
from ..agents.orchestrator import AssessmentOrchestrator
from ..agents.test_delivery import EmailSender, TestDeliveryAgent, build_test_link
from ..core.config import Settings, configure_logging, get_settings
from ..core.errors import InvalidTransitionError, TestNotFoundError, ValidationError
from ..core.exam_runner import ExamSession, ExamState, to_test_response
from ..schemas.assessment import AptitudeTest, Difficulty, TestResponse
from ..schemas.job import Candidate, CandidateStatus, JobDescription
from ..utils.email_templates import render_custom_email, render_invitation
from ..utils.mailer import HttpEmailSender, SmtpEmailSender


logger = logging.getLogger(__name__)


# ---------------------
# Pydantic Models (API Layer)
# ---------------------

class JobCreateRequest(BaseModel):
    """Request to create or replace a job posting."""
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="")
    skills: List[str] = Field(default_factory=list)
    location: str = Field(default="Remote")
    salary: str = Field(default="")
    employment_type: str = Field(default="full_time")
    status: str = Field(default="active")


class CandidateCreateRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    notes: str = Field(default="")


class CandidateStatusRequest(BaseModel):
    status: CandidateStatus


class AssessmentCreateRequest(BaseModel):
    """Open a create-and-send dialog for a job."""
    created_by: str = Field(default="current_user")


class GenerateQuestionsRequest(BaseModel):
    difficulty: Difficulty = Difficulty.MEDIUM
    question_count: int = Field(default=10, ge=0, le=50)
    use_llm: bool = False


class AssignmentRequest(BaseModel):
    title: str = ""
    description: str = ""
    skill: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    time_limit: Optional[int] = 60
    requirements: List[str] = Field(default_factory=list)
    deliverables: List[str] = Field(default_factory=list)
    resources: List[str] = Field(default_factory=list)
    evaluation_criteria: List[str] = Field(default_factory=list)


class TestConfigRequest(BaseModel):
    duration: int = Field(default=30)
    passing_score: int = Field(default=70)


class SendTestRequest(BaseModel):
    candidate_email: str
    candidate_name: str = ""
    duration: int = 30
    passing_score: int = 70


class StartExamRequest(BaseModel):
    candidate_name: str = ""


class AnswerRequest(BaseModel):
    question_id: str
    answer: Union[int, str]


class SendTestEmailRequest(BaseModel):
    """Payload accepted by the test invitation email collaborator."""
    to: str
    subject: str
    testId: str
    jobTitle: str
    candidateName: str = ""
    questions: List[Dict[str, Any]] = Field(default_factory=list)
    html: str = ""
    testLink: str = ""


class SendCustomEmailRequest(BaseModel):
    to: str
    subject: str
    message: str
    candidateName: str = ""
    jobTitle: str = ""


# ---------------------
# In-Memory Storage (Replace with DB in production)
# ---------------------

jobs_db: Dict[str, JobDescription] = {}
candidates_db: Dict[str, Candidate] = {}
tests_db: Dict[str, AptitudeTest] = {}
responses_db: Dict[str, List[TestResponse]] = {}  # test_id -> responses
assessments: Dict[str, AssessmentOrchestrator] = {}
exam_sessions: Dict[str, ExamSession] = {}  # live sessions only; removed on completion or close

EXAM_TICK_INTERVAL = 1.0  # seconds between countdown ticks


# ---------------------
# Dependencies
# ---------------------

def get_email_sender(settings: Settings = Depends(get_settings)) -> EmailSender:
    """HTTP collaborator when EMAIL_API_URL is set, otherwise SMTP in-process."""
    if settings.email_api_url:
        return HttpEmailSender(settings.email_api_url)
    return SmtpEmailSender(settings)


def get_smtp_sender(settings: Settings = Depends(get_settings)) -> EmailSender:
    return SmtpEmailSender(settings)


# ---------------------
# Application Lifecycle
# ---------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    configure_logging()
    logger.info("Hireloom assessment API starting")
    yield
    for session in list(exam_sessions.values()):
        session.close()
    exam_sessions.clear()
    logger.info("Hireloom assessment API shutting down")


# ---------------------
# FastAPI Application
# ---------------------

app = FastAPI(
    title="Hireloom Assessments",
    description="""
    Recruiting backend for AI-assisted aptitude tests.

    ## Features
    - **Question generation** from a job's skills (templates or LLM)
    - **Custom assignments** authored by recruiters
    - **Email delivery** of unique per-candidate test links
    - **Timed exams** with automatic submission at timeout
    - **Scoring** with a per-question breakdown for review
    """,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(InvalidTransitionError)
async def transition_error_handler(request: Request, exc: InvalidTransitionError):
    return JSONResponse(status_code=400, content={"detail": str(exc)})


# ---------------------
# Helpers
# ---------------------

def _get_job(job_id: str) -> JobDescription:
    if job_id not in jobs_db:
        raise HTTPException(status_code=404, detail="Job not found")
    return jobs_db[job_id]


def _get_assessment(assessment_id: str) -> AssessmentOrchestrator:
    if assessment_id not in assessments:
        raise HTTPException(status_code=404, detail="Assessment not found")
    return assessments[assessment_id]


def _get_session(test_id: str, session_id: str) -> ExamSession:
    session = exam_sessions.get(session_id)
    if session is None or session.state.test_id != test_id:
        raise HTTPException(status_code=404, detail="Exam session not found")
    return session


def _load_test(test_id: str) -> AptitudeTest:
    if test_id not in tests_db:
        raise TestNotFoundError(f"Unknown test: {test_id}")
    return tests_db[test_id]


def _update_candidate_status(job_id: str, email: str, status: CandidateStatus) -> None:
    for candidate in candidates_db.values():
        if candidate.email.lower() == email.lower() and job_id in candidate.applied_jobs:
            candidate.status = status


def _record_completion(session_id: str, state: ExamState) -> None:
    """Persist a completed exam for the recruiter side and release its session."""
    exam_sessions.pop(session_id, None)
    response = to_test_response(state)
    responses_db.setdefault(state.test_id, []).append(response)
    _update_candidate_status(state.test.job_id, state.candidate_email, CandidateStatus.TEST_COMPLETED)


# ---------------------
# Health Check
# ---------------------

@app.get("/health", tags=["System"])
async def health_check(settings: Settings = Depends(get_settings)):
    """Check API health."""
    return {
        "status": "healthy",
        "version": "1.0.0",
        "groq_configured": bool(settings.groq_api_key),
        "email_transport": "http" if settings.email_api_url else "smtp",
    }


# ---------------------
# Job Endpoints
# ---------------------

@app.post("/api/jobs", tags=["Jobs"])
async def create_job(job: JobCreateRequest):
    """Create a new job posting."""
    job_desc = JobDescription(**job.model_dump())
    jobs_db[job_desc.job_id] = job_desc
    return {"job_id": job_desc.job_id, "message": "Job created successfully"}


@app.get("/api/jobs", tags=["Jobs"])
async def list_jobs():
    """List all job postings."""
    return {"jobs": [j.to_dict() for j in jobs_db.values()]}


@app.get("/api/jobs/{job_id}", tags=["Jobs"])
async def get_job(job_id: str):
    return _get_job(job_id).to_dict()


@app.put("/api/jobs/{job_id}", tags=["Jobs"])
async def update_job(job_id: str, job: JobCreateRequest):
    existing = _get_job(job_id)
    jobs_db[job_id] = JobDescription(job_id=job_id, created_at=existing.created_at, **job.model_dump())
    return jobs_db[job_id].to_dict()


@app.delete("/api/jobs/{job_id}", tags=["Jobs"])
async def delete_job(job_id: str):
    _get_job(job_id)
    del jobs_db[job_id]
    return {"message": "Job deleted"}


# ---------------------
# Candidate Endpoints
# ---------------------

@app.post("/api/jobs/{job_id}/candidates", tags=["Candidates"])
async def add_candidate(job_id: str, candidate: CandidateCreateRequest):
    """Add a candidate to a job posting."""
    _get_job(job_id)
    record = Candidate(
        name=candidate.name,
        email=candidate.email,
        notes=candidate.notes,
        applied_jobs=[job_id],
    )
    candidates_db[record.candidate_id] = record
    return {"candidate_id": record.candidate_id, "message": "Candidate added successfully"}


@app.get("/api/jobs/{job_id}/candidates", tags=["Candidates"])
async def list_candidates(job_id: str):
    """List all candidates for a job."""
    _get_job(job_id)
    return {
        "candidates": [
            c.to_dict() for c in candidates_db.values() if job_id in c.applied_jobs
        ]
    }


@app.patch("/api/candidates/{candidate_id}/status", tags=["Candidates"])
async def update_candidate_status(candidate_id: str, request: CandidateStatusRequest):
    if candidate_id not in candidates_db:
        raise HTTPException(status_code=404, detail="Candidate not found")
    candidates_db[candidate_id].status = request.status
    return candidates_db[candidate_id].to_dict()


# ---------------------
# Recruiter Assessment Endpoints
# ---------------------

@app.post("/api/jobs/{job_id}/assessments", tags=["Assessments"])
async def create_assessment(
    job_id: str,
    request: AssessmentCreateRequest,
    sender: EmailSender = Depends(get_email_sender),
    settings: Settings = Depends(get_settings),
):
    """Open a create-and-send dialog for a job."""
    job = _get_job(job_id)
    orchestrator = AssessmentOrchestrator(
        job=job,
        delivery=TestDeliveryAgent(sender=sender, origin=settings.app_base_url),
        created_by=request.created_by,
    )
    assessment_id = orchestrator.state.workflow_id
    assessments[assessment_id] = orchestrator
    return {"assessment_id": assessment_id, **orchestrator.get_summary()}


@app.get("/api/assessments/{assessment_id}", tags=["Assessments"])
async def get_assessment(assessment_id: str):
    return _get_assessment(assessment_id).get_summary()


@app.post("/api/assessments/{assessment_id}/questions", tags=["Assessments"])
def generate_assessment_questions(assessment_id: str, request: GenerateQuestionsRequest):
    orchestrator = _get_assessment(assessment_id)
    response = orchestrator.generate_questions(
        difficulty=request.difficulty,
        question_count=request.question_count,
        use_llm=request.use_llm,
    )
    if not response.is_successful():
        raise HTTPException(status_code=400, detail=response.explanation)
    return {
        "questions": [q.to_dict() for q in response.output],
        "explanation": response.explanation,
        "stage": orchestrator.stage.value,
    }


@app.post("/api/assessments/{assessment_id}/assignments", tags=["Assessments"])
async def add_assignment(assessment_id: str, request: AssignmentRequest):
    orchestrator = _get_assessment(assessment_id)
    response = orchestrator.add_custom_assignment(AssignmentInput(**request.model_dump()))
    if not response.is_successful():
        raise HTTPException(status_code=400, detail=response.explanation)
    return response.output.to_dict()


@app.delete("/api/assessments/{assessment_id}/assignments/{assignment_id}", tags=["Assessments"])
async def remove_assignment(assessment_id: str, assignment_id: str):
    orchestrator = _get_assessment(assessment_id)
    if not orchestrator.remove_custom_assignment(assignment_id):
        raise HTTPException(status_code=404, detail="Assignment not found or test already created")
    return {"message": "Assignment removed"}


@app.post("/api/assessments/{assessment_id}/test", tags=["Assessments"])
async def create_test(assessment_id: str, request: TestConfigRequest):
    orchestrator = _get_assessment(assessment_id)
    response = orchestrator.create_test(request.duration, request.passing_score)
    if not response.is_successful():
        raise HTTPException(status_code=400, detail=response.explanation)
    tests_db[response.output.id] = response.output
    return response.output.to_dict()


@app.post("/api/assessments/{assessment_id}/send", tags=["Assessments"])
def send_assessment(assessment_id: str, request: SendTestRequest):
    """Email the test link to one candidate."""
    orchestrator = _get_assessment(assessment_id)
    response = orchestrator.send_to_candidate(
        request.candidate_email,
        request.candidate_name,
        duration=request.duration,
        passing_score=request.passing_score,
    )
    # Kept even when the send fails, so only the send step is retried
    if orchestrator.test is not None:
        tests_db[orchestrator.test.id] = orchestrator.test

    if not response.is_successful():
        status = 502 if orchestrator.test is not None else 400
        raise HTTPException(status_code=status, detail=response.explanation)

    _update_candidate_status(orchestrator.job.job_id, request.candidate_email, CandidateStatus.TEST_SENT)
    return {
        "test_id": orchestrator.test.id,
        "test_link": response.output,
        "message": response.explanation,
    }


@app.get("/api/aptitude-tests/{test_id}/responses", tags=["Results"])
async def list_test_responses(test_id: str):
    """Completed attempts for a test, for recruiter review."""
    if test_id not in tests_db:
        raise HTTPException(status_code=404, detail="Test not found")
    return {"responses": [r.to_dict() for r in responses_db.get(test_id, [])]}


# ---------------------
# Candidate Exam Endpoints
# ---------------------

@app.get("/api/take-test/{test_id}", tags=["Exam"])
async def get_public_test(test_id: str):
    """Test definition without answer keys."""
    if test_id not in tests_db:
        raise HTTPException(status_code=404, detail="Test not found")
    return tests_db[test_id].to_public_dict()


@app.post("/api/take-test/{test_id}/sessions", tags=["Exam"])
async def open_exam_session(test_id: str, candidate: str = ""):
    """Resolve the test from the link; an unknown id yields the error state."""
    session_id = uuid4().hex
    session = ExamSession(
        test_id,
        candidate,
        loader=_load_test,
        on_complete=lambda state: _record_completion(session_id, state),
        tick_interval=EXAM_TICK_INTERVAL,
    )
    state = session.load()
    exam_sessions[session_id] = session
    return {"session_id": session_id, **state.to_dict()}


@app.get("/api/take-test/{test_id}/sessions/{session_id}", tags=["Exam"])
async def get_exam_session(test_id: str, session_id: str):
    return _get_session(test_id, session_id).state.to_dict()


@app.post("/api/take-test/{test_id}/sessions/{session_id}/start", tags=["Exam"])
async def start_exam(test_id: str, session_id: str, request: StartExamRequest):
    return _get_session(test_id, session_id).start(request.candidate_name).to_dict()


@app.post("/api/take-test/{test_id}/sessions/{session_id}/answer", tags=["Exam"])
async def answer_question(test_id: str, session_id: str, request: AnswerRequest):
    return _get_session(test_id, session_id).answer(request.question_id, request.answer).to_dict()


@app.post("/api/take-test/{test_id}/sessions/{session_id}/next", tags=["Exam"])
async def next_question(test_id: str, session_id: str):
    return _get_session(test_id, session_id).next_question().to_dict()


@app.post("/api/take-test/{test_id}/sessions/{session_id}/submit", tags=["Exam"])
async def submit_exam(test_id: str, session_id: str):
    return _get_session(test_id, session_id).submit().to_dict()


@app.delete("/api/take-test/{test_id}/sessions/{session_id}", tags=["Exam"])
async def close_exam_session(test_id: str, session_id: str):
    """Abandon the exam. Stops the countdown; nothing is recorded."""
    session = _get_session(test_id, session_id)
    session.close()
    exam_sessions.pop(session_id, None)
    return {"message": "Exam session closed"}


# ---------------------
# Email Collaborator Endpoints
# ---------------------

@app.post("/api/send-test-email", tags=["Email"])
def send_test_email(
    request: SendTestEmailRequest,
    sender: EmailSender = Depends(get_smtp_sender),
    settings: Settings = Depends(get_settings),
):
    """Send an invitation, rendering it from the questions unless html is supplied."""
    payload = request.model_dump()
    if not payload["testLink"]:
        payload["testLink"] = build_test_link(settings.app_base_url, request.testId, request.to)
    if not payload["html"]:
        payload["html"] = render_invitation(
            request.jobTitle, request.candidateName, request.questions, payload["testLink"]
        )
    result = sender.send(payload)
    if not result.success:
        return JSONResponse(status_code=500, content=result.to_dict())
    return {"success": True, "message": "Email sent successfully"}


@app.post("/api/send-custom-email", tags=["Email"])
def send_custom_email(request: SendCustomEmailRequest, sender: EmailSender = Depends(get_smtp_sender)):
    html = render_custom_email(request.subject, request.message, request.candidateName, request.jobTitle)
    result = sender.send({"to": request.to, "subject": request.subject, "html": html})
    if not result.success:
        return JSONResponse(status_code=500, content=result.to_dict())
    return {"success": True, "message": "Email sent successfully"}


# ---------------------
# Run directly for development
# ---------------------

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("hireloom.api.main:app", host="0.0.0.0", port=8000, reload=True)
