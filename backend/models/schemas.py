"""
Pydantic schemas for the interview engine.
Covers persisted records, collaborator payloads, and API view models.
"""
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Enums
# ============================================================================

class Difficulty(str, Enum):
    """Question difficulty tier."""
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def get_order(cls) -> List["Difficulty"]:
        return [cls.EASY, cls.MEDIUM, cls.HARD]


class InterviewStatus(str, Enum):
    """Lifecycle status of an interview."""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    COMPLETED = "completed"


class ResumePolicy(str, Enum):
    """Tie-break used when more than one interview is resumable."""
    DISCOVERY = "discovery"
    LATEST_STARTED = "latest_started"
    LATEST_RESUMED = "latest_resumed"


# ============================================================================
# Persisted records
# ============================================================================

class CandidateProfile(BaseModel):
    id: str
    name: str
    email: str
    phone: str
    created_at: datetime


class Question(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    difficulty: Difficulty
    time_limit: int  # seconds
    order: int


class Answer(BaseModel):
    question_id: str
    text: str
    time_spent: int  # seconds
    timestamp: datetime
    score: Optional[int] = None
    ai_analysis: Optional[str] = None


class Interview(BaseModel):
    id: str
    candidate_id: str
    status: InterviewStatus = InterviewStatus.NOT_STARTED
    current_question_index: int = 0
    questions: List[Question] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)
    final_score: Optional[int] = None
    final_summary: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    last_resumed_at: Optional[datetime] = None


class SessionContext(BaseModel):
    """Which candidate and interview the session is acting upon."""
    model_config = ConfigDict(frozen=True)

    current_candidate_id: Optional[str] = None
    current_interview_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.current_candidate_id is None and self.current_interview_id is None


class AppState(BaseModel):
    """Everything that survives a process restart."""
    candidates: Dict[str, CandidateProfile] = Field(default_factory=dict)
    interviews: Dict[str, Interview] = Field(default_factory=dict)
    current_candidate_id: Optional[str] = None
    current_interview_id: Optional[str] = None
    is_resuming: bool = False

    @property
    def context(self) -> SessionContext:
        return SessionContext(
            current_candidate_id=self.current_candidate_id,
            current_interview_id=self.current_interview_id,
        )

    def set_context(self, context: SessionContext) -> None:
        # Both pointers change together.
        self.current_candidate_id = context.current_candidate_id
        self.current_interview_id = context.current_interview_id


# ============================================================================
# Collaborator payloads
# ============================================================================

class ParsedResume(BaseModel):
    """Best-effort extraction result; absent fields are listed in missing_fields."""
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    full_text: str = ""
    missing_fields: List[str] = Field(default_factory=list)


class GeneratedQuestion(BaseModel):
    """One question as returned by the generator, before ids are assigned."""
    text: str = Field(..., min_length=1)
    difficulty: Difficulty
    time_limit: Optional[int] = Field(None, alias="timeLimit")
    order: Optional[int] = None

    model_config = ConfigDict(populate_by_name=True)


class ScoreResult(BaseModel):
    score: int = Field(..., ge=1, le=10)
    analysis: str


class SummaryResult(BaseModel):
    score: int = Field(..., ge=0, le=100)
    summary: str


# ============================================================================
# Views and requests
# ============================================================================

class ResumableSession(BaseModel):
    interview: Interview
    candidate: CandidateProfile


class SessionView(BaseModel):
    """State surfaced to the presentation layer after every action."""
    context: SessionContext
    candidate: Optional[CandidateProfile] = None
    interview: Optional[Interview] = None
    current_question: Optional[Question] = None
    question_number: int = 0
    total_questions: int = 0
    time_remaining: int = 0
    timer_active: bool = False
    is_scoring: bool = False
    is_paused: bool = False
    is_resuming: bool = False


class CandidateSummary(BaseModel):
    """Row for the interviewer dashboard."""
    id: str
    name: str
    email: str
    phone: str
    created_at: datetime
    status: InterviewStatus = InterviewStatus.NOT_STARTED
    final_score: Optional[int] = None
    completed_at: Optional[datetime] = None


class CandidateDetail(BaseModel):
    candidate: CandidateProfile
    interview: Optional[Interview] = None


class SubmitProfileRequest(BaseModel):
    name: str
    email: str
    phone: str
    resume_text: Optional[str] = Field(
        None,
        description="Full text extracted from the uploaded resume"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Ada Lovelace",
                "email": "ada@example.com",
                "phone": "555-123-4567",
                "resume_text": "Ada Lovelace\nada@example.com\n..."
            }
        }
    }


class SubmitAnswerRequest(BaseModel):
    text: str = ""
    time_spent: Optional[int] = Field(None, ge=0)


class DraftRequest(BaseModel):
    text: str = ""


class UpdateCandidateRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
