"""
Interview state machine.
Owns one interview's lifecycle: question progression, answer recording,
and the in_progress -> completed transition.
"""
import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from models.schemas import Answer, Interview, InterviewStatus, Question
from interview.questions import new_id

logger = logging.getLogger(__name__)


class InterviewStateMachine:
    """
    Wraps an Interview record and mutates it in place.

    Invariant violations (duplicate answer, advancing past the last question,
    finalizing twice) are rejected: the method logs a warning, returns a
    falsy value, and leaves the record untouched.
    """

    def __init__(self, interview: Interview, clock: Callable[[], datetime] = datetime.now):
        self.interview = interview
        self.clock = clock

    @classmethod
    def create(
        cls,
        candidate_id: str,
        questions: List[Question],
        clock: Callable[[], datetime] = datetime.now,
        interview_id: Optional[str] = None,
    ) -> "InterviewStateMachine":
        """
        Start a new interview over a fixed question sequence.

        Args:
            candidate_id: The candidate taking the interview
            questions: The question set; never changes afterwards
            interview_id: Optional explicit id

        Returns:
            A state machine for an in_progress interview at question 0
        """
        if not questions:
            raise ValueError("An interview needs at least one question")

        interview = Interview(
            id=interview_id or new_id(),
            candidate_id=candidate_id,
            status=InterviewStatus.IN_PROGRESS,
            current_question_index=0,
            questions=list(questions),
            answers=[],
            started_at=clock(),
        )
        logger.info(f"Interview {interview.id} created with {len(questions)} questions")
        return cls(interview, clock=clock)

    # ========================================
    # Queries
    # ========================================

    @property
    def status(self) -> InterviewStatus:
        return self.interview.status

    @property
    def is_completed(self) -> bool:
        return self.interview.status == InterviewStatus.COMPLETED

    @property
    def is_abandoned(self) -> bool:
        """Completed without a final score, i.e. discarded by the candidate."""
        return self.is_completed and self.interview.final_score is None

    @property
    def current_question(self) -> Optional[Question]:
        index = self.interview.current_question_index
        if 0 <= index < len(self.interview.questions):
            return self.interview.questions[index]
        return None

    @property
    def is_last_question(self) -> bool:
        return self.interview.current_question_index >= len(self.interview.questions) - 1

    def answer_for(self, question_id: str) -> Optional[Answer]:
        for answer in self.interview.answers:
            if answer.question_id == question_id:
                return answer
        return None

    def has_answered(self, question_id: str) -> bool:
        return self.answer_for(question_id) is not None

    # ========================================
    # Transitions
    # ========================================

    def record_answer(self, question_id: str, text: str, time_spent: int) -> Optional[Answer]:
        """
        Append the answer for the current question.

        Returns:
            The new Answer, or None if the submission was rejected
        """
        if self.interview.status != InterviewStatus.IN_PROGRESS:
            logger.warning(f"Interview {self.interview.id}: answer rejected, status is {self.interview.status.value}")
            return None

        current = self.current_question
        if current is None or current.id != question_id:
            logger.warning(f"Interview {self.interview.id}: answer rejected, {question_id} is not the current question")
            return None

        if self.has_answered(question_id):
            logger.warning(f"Interview {self.interview.id}: duplicate answer for {question_id} ignored")
            return None

        answer = Answer(
            question_id=question_id,
            text=text,
            time_spent=max(0, int(time_spent)),
            timestamp=self.clock(),
        )
        self.interview.answers.append(answer)
        return answer

    def attach_score(self, question_id: str, score: int, analysis: str) -> bool:
        """Fill in scoring metadata on an existing answer. Never touches the text."""
        answer = self.answer_for(question_id)
        if answer is None:
            logger.warning(f"Interview {self.interview.id}: no answer to score for {question_id}")
            return False

        answer.score = score
        answer.ai_analysis = analysis
        return True

    def advance(self) -> bool:
        """Move to the next question. Past the last question this is a no-op."""
        if self.interview.status != InterviewStatus.IN_PROGRESS:
            logger.warning(f"Interview {self.interview.id}: cannot advance while {self.interview.status.value}")
            return False

        if self.is_last_question:
            logger.warning(f"Interview {self.interview.id}: already at the last question, finalize instead")
            return False

        self.interview.current_question_index += 1
        return True

    def finalize(self, score: int, summary: str) -> bool:
        """Complete the interview with its final assessment."""
        if self.interview.status != InterviewStatus.IN_PROGRESS:
            logger.warning(f"Interview {self.interview.id}: finalize rejected, status is {self.interview.status.value}")
            return False

        self.interview.final_score = score
        self.interview.final_summary = summary
        self.interview.completed_at = self.clock()
        self.interview.status = InterviewStatus.COMPLETED
        logger.info(f"Interview {self.interview.id} completed with score {score}/100")
        return True

    def resume(self) -> bool:
        """Re-enter in_progress after a restart. Position and answers are kept."""
        if self.is_completed:
            logger.warning(f"Interview {self.interview.id}: cannot resume a completed interview")
            return False

        self.interview.status = InterviewStatus.IN_PROGRESS
        self.interview.last_resumed_at = self.clock()
        return True

    def abandon(self) -> bool:
        """Mark the interview terminal without scores so it is never offered again."""
        if self.is_completed:
            return False

        self.interview.status = InterviewStatus.COMPLETED
        self.interview.completed_at = self.clock()
        logger.info(f"Interview {self.interview.id} abandoned at question {self.interview.current_question_index}")
        return True

    # ========================================
    # Status
    # ========================================

    def get_status(self) -> Dict[str, Any]:
        """Get current interview status."""
        scored = [a.score for a in self.interview.answers if a.score is not None]
        return {
            "interview_id": self.interview.id,
            "candidate_id": self.interview.candidate_id,
            "status": self.interview.status.value,
            "question_number": self.interview.current_question_index + 1,
            "total_questions": len(self.interview.questions),
            "answers_recorded": len(self.interview.answers),
            "average_score": round(sum(scored) / len(scored), 1) if scored else None,
            "final_score": self.interview.final_score,
            "is_ended": self.is_completed,
        }
