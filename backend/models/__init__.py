# Schemas module
from .schemas import (
    Difficulty,
    InterviewStatus,
    CandidateProfile,
    Question,
    Answer,
    Interview,
    SessionContext,
    AppState,
)
