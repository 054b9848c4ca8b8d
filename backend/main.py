"""
Timed Technical Interview - FastAPI Backend

Walks a candidate through a six-question interview:
- Resume upload with contact extraction
- Per-question countdown with automatic submission on timeout
- LLM scoring with a deterministic local fallback
- Resumable sessions across restarts

Compatible with llama.cpp style /completion servers.
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, File, HTTPException, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware

from utils.config import config
from utils.logging_setup import configure_logging
from models.schemas import (
    CandidateDetail,
    DraftRequest,
    InterviewStatus,
    ParsedResume,
    SessionView,
    SubmitAnswerRequest,
    SubmitProfileRequest,
    UpdateCandidateRequest,
)
from interview.errors import (
    CollaboratorError,
    NoActiveInterviewError,
    ProfileValidationError,
)
from interview.session import SessionCoordinator
from resume.parser import parse_resume
from storage.store import JsonFileStore

configure_logging()
logger = logging.getLogger(__name__)

# ================================================================
# FastAPI App Initialization
# ================================================================

app = FastAPI(
    title="Interview Session API",
    description="Timed technical interviews with resumable sessions and fallback scoring",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ================================================================
# Session Management
# ================================================================

# One coordinator per process, created on first use so tests can swap it
_coordinator: Optional[SessionCoordinator] = None


def get_coordinator() -> SessionCoordinator:
    """Get the process-wide session coordinator."""
    global _coordinator
    if _coordinator is None:
        _coordinator = SessionCoordinator(store=JsonFileStore(config.storage.state_path))
    return _coordinator


def set_coordinator(coordinator: Optional[SessionCoordinator]) -> None:
    """Replace the coordinator (None resets to lazy creation)."""
    global _coordinator
    _coordinator = coordinator


def _bad_request(error: ProfileValidationError) -> HTTPException:
    return HTTPException(
        status_code=400,
        detail={"field": error.field, "message": error.message}
    )


# ================================================================
# API Endpoints
# ================================================================

@app.get("/")
def root():
    """Health check endpoint."""
    coordinator = get_coordinator()
    return {
        "status": "running",
        "version": "1.0.0",
        "service": "Interview Session API",
        "timestamp": datetime.now().isoformat(),
        "candidates": len(coordinator.state.candidates),
        "interviews": len(coordinator.state.interviews),
        "current_interview": coordinator.current_status(),
    }


@app.post("/resume", response_model=ParsedResume)
async def upload_resume(file: UploadFile = File(...)):
    """
    Extract contact details from a PDF or DOCX resume.

    Returns:
        Parsed fields plus the list of fields the candidate must fill in
    """
    content = await file.read()
    try:
        return parse_resume(content, file.content_type or "")
    except ProfileValidationError as e:
        raise _bad_request(e)
    except CollaboratorError as e:
        raise HTTPException(status_code=422, detail=str(e))


@app.post("/profile", response_model=SessionView)
def submit_profile(request: SubmitProfileRequest):
    """
    Create the candidate and start their interview.

    Args:
        request: Contact fields and optional resume text

    Returns:
        Session view positioned on the first question
    """
    try:
        return get_coordinator().start_profile(
            name=request.name,
            email=request.email,
            phone=request.phone,
            resume_text=request.resume_text,
        )
    except ProfileValidationError as e:
        raise _bad_request(e)


@app.get("/session", response_model=SessionView)
def get_session():
    """Current candidate, interview, question and timer state."""
    return get_coordinator().view()


@app.post("/session/draft")
def save_draft(request: DraftRequest):
    """Store the answer typed so far; it is submitted if time runs out."""
    get_coordinator().update_draft(request.text)
    return {"status": "Draft saved"}


@app.post("/session/answer", response_model=SessionView)
def submit_answer(request: SubmitAnswerRequest):
    """
    Submit the answer to the current question.

    Returns:
        Session view on the next question, or the completed interview
    """
    try:
        return get_coordinator().submit_answer(request.text, time_spent=request.time_spent)
    except NoActiveInterviewError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.get("/session/resumable")
def get_resumable():
    """Offer an unfinished interview from a previous run, if any."""
    offered = get_coordinator().detect_resumable()
    if offered is None:
        return {"resumable": False}
    return {
        "resumable": True,
        "interview": offered.interview,
        "candidate": offered.candidate,
    }


@app.post("/session/resume", response_model=SessionView)
def resume_interview(interview_id: Optional[str] = Query(None)):
    """Continue the offered interview."""
    try:
        return get_coordinator().resume(interview_id)
    except NoActiveInterviewError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.post("/session/start-new", response_model=SessionView)
def start_new_interview(interview_id: Optional[str] = Query(None)):
    """Discard the offered interview and return to profile entry."""
    try:
        return get_coordinator().start_new(interview_id)
    except NoActiveInterviewError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.get("/candidates")
def list_candidates(
    search: Optional[str] = Query(None),
    status: Optional[InterviewStatus] = Query(None),
    sort_by: str = Query("created_at", pattern="^(created_at|name|score|status)$"),
):
    """Interviewer dashboard listing."""
    return get_coordinator().list_candidates(search=search, status=status, sort_by=sort_by)


@app.get("/candidates/{candidate_id}", response_model=CandidateDetail)
def view_candidate(candidate_id: str):
    """Candidate profile with their latest interview and per-answer scores."""
    detail = get_coordinator().view_candidate(candidate_id)
    if detail is None:
        raise HTTPException(status_code=404, detail=f"Candidate not found: {candidate_id}")
    return detail


@app.patch("/candidates/{candidate_id}")
def update_candidate(candidate_id: str, request: UpdateCandidateRequest):
    """Correct a candidate's contact details."""
    try:
        updated = get_coordinator().update_candidate(
            candidate_id,
            name=request.name,
            email=request.email,
            phone=request.phone,
        )
    except ProfileValidationError as e:
        raise _bad_request(e)
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Candidate not found: {candidate_id}")
    return updated


# ================================================================
# Main Entry Point
# ================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
