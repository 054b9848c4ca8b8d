"""
Session coordinator.
The only component that changes which candidate and interview are current.
Composes the timer, scoring pipeline and state machine per user action, and
persists after every mutation so a crash mid-interview can be resumed.
"""
import logging
from datetime import datetime
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

from models.schemas import (
    AppState,
    CandidateDetail,
    CandidateProfile,
    CandidateSummary,
    Interview,
    InterviewStatus,
    ResumePolicy,
    ResumableSession,
    SessionContext,
    SessionView,
)
from interview.errors import NoActiveInterviewError
from interview.questions import QuestionGenerator, new_id
from interview.scoring import ScoringPipeline
from interview.state import InterviewStateMachine
from interview.timer import Scheduler, Timer
from resume.validation import validate_profile
from storage.store import StateStore
from utils.config import config

logger = logging.getLogger(__name__)

RESUMABLE_STATUSES = (InterviewStatus.IN_PROGRESS, InterviewStatus.PAUSED)


class SessionCoordinator:
    """
    Routes user actions (submit profile, submit answer, resume, start new)
    into the interview state machine.

    Every action accepts an optional SessionContext naming the candidate and
    interview to act upon; when omitted, the persisted current pointers are
    used. Every action returns a SessionView whose context is the new pair.
    """

    def __init__(
        self,
        store: StateStore,
        generator: Optional[QuestionGenerator] = None,
        pipeline: Optional[ScoringPipeline] = None,
        scheduler: Optional[Scheduler] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.generator = generator or QuestionGenerator()
        self.pipeline = pipeline or ScoringPipeline()
        self.timer = Timer(scheduler=scheduler)
        self.clock = clock

        self.state: AppState = store.load()
        self.is_scoring = False
        self._draft = ""
        self._lock = RLock()
        logger.info(
            f"SessionCoordinator loaded {len(self.state.candidates)} candidates, "
            f"{len(self.state.interviews)} interviews"
        )

    # ========================================
    # Helpers
    # ========================================

    def _persist(self) -> None:
        self.store.save(self.state)

    def _machine(self, interview: Interview) -> InterviewStateMachine:
        return InterviewStateMachine(interview, clock=self.clock)

    def _resolve(self, context: Optional[SessionContext]) -> SessionContext:
        return context if context is not None else self.state.context

    def _set_current(self, context: SessionContext) -> SessionContext:
        self.state.set_context(context)
        return context

    def _is_current(self, interview: Interview) -> bool:
        """The timer only ever counts down for the current interview."""
        return interview.id == self.state.current_interview_id

    def _active_interview(self, context: SessionContext) -> Interview:
        interview = self.state.interviews.get(context.current_interview_id or "")
        if interview is None or interview.status != InterviewStatus.IN_PROGRESS:
            raise NoActiveInterviewError("No interview in progress. Please start an interview first.")
        return interview

    def _begin_question(self, interview: Interview) -> None:
        """Start the countdown for the interview's current question."""
        machine = self._machine(interview)
        question = machine.current_question
        if interview.status != InterviewStatus.IN_PROGRESS or question is None:
            self.timer.stop()
            return

        self._draft = ""
        self.timer.start(
            question.time_limit,
            on_expire=lambda: self.handle_timeout(interview.id, question.id),
        )

    # ========================================
    # Views
    # ========================================

    def view(self, context: Optional[SessionContext] = None) -> SessionView:
        """Current view state. Reads only; safe to call while scoring."""
        ctx = self._resolve(context)
        candidate = self.state.candidates.get(ctx.current_candidate_id or "")
        interview = self.state.interviews.get(ctx.current_interview_id or "")

        view = SessionView(
            context=ctx,
            candidate=candidate,
            interview=interview,
            is_scoring=self.is_scoring,
            is_resuming=self.state.is_resuming,
        )
        if interview is None:
            return view

        view.total_questions = len(interview.questions)
        if interview.status != InterviewStatus.COMPLETED:
            machine = self._machine(interview)
            view.current_question = machine.current_question
            view.question_number = interview.current_question_index + 1
            counting = self.timer.is_active and self._is_current(interview)
            view.timer_active = counting
            view.time_remaining = self.timer.time_remaining if counting else 0
            # Paused is never stored: in progress with nothing counting down
            view.is_paused = interview.status in RESUMABLE_STATUSES and not counting and not self.is_scoring
        return view

    def current_status(self) -> Optional[Dict[str, Any]]:
        """Progress summary of the current interview, if there is one."""
        interview = self.state.interviews.get(self.state.current_interview_id or "")
        if interview is None:
            return None
        return self._machine(interview).get_status()

    # ========================================
    # Profile and interview creation
    # ========================================

    def start_profile(
        self,
        name: str,
        email: str,
        phone: str,
        resume_text: Optional[str] = None,
    ) -> SessionView:
        """
        Create a candidate and their interview, and make both current.

        Raises:
            ProfileValidationError: before anything is stored
        """
        fields = validate_profile(name, email, phone)

        with self._lock:
            self.timer.stop()

            candidate = CandidateProfile(id=new_id(), created_at=self.clock(), **fields)
            questions = self.generator.generate(resume_text)
            machine = InterviewStateMachine.create(candidate.id, questions, clock=self.clock)

            self.state.candidates[candidate.id] = candidate
            self.state.interviews[machine.interview.id] = machine.interview
            context = self._set_current(SessionContext(
                current_candidate_id=candidate.id,
                current_interview_id=machine.interview.id,
            ))
            self.state.is_resuming = False
            self._persist()

            logger.info(f"Started interview {machine.interview.id} for candidate {candidate.id}")
            self._begin_question(machine.interview)
            return self.view(context)

    # ========================================
    # Answers
    # ========================================

    def update_draft(self, text: str) -> None:
        """Keep the in-progress answer so a timeout can submit it."""
        self._draft = text or ""

    def submit_answer(
        self,
        text: str,
        time_spent: Optional[int] = None,
        context: Optional[SessionContext] = None,
    ) -> SessionView:
        """
        Record, score, then advance or finalize.

        Args:
            text: The answer text
            time_spent: Seconds to record; defaults to the timer's elapsed time
            context: Which interview to act upon. Only the current interview
                owns the timer; answering another one leaves the countdown alone

        Raises:
            NoActiveInterviewError: nothing is in progress for the context
        """
        with self._lock:
            ctx = self._resolve(context)
            interview = self._active_interview(ctx)
            question = self._machine(interview).current_question
            return self._submit(ctx, interview, question.id, text, time_spent)

    def handle_timeout(self, interview_id: str, question_id: str) -> Optional[SessionView]:
        """
        Timer expiry: submit whatever was drafted with the full time limit.
        A no-op if the question was already answered by hand.
        """
        with self._lock:
            interview = self.state.interviews.get(interview_id)
            if interview is None or interview.status != InterviewStatus.IN_PROGRESS:
                return None

            machine = self._machine(interview)
            question = machine.current_question
            if question is None or question.id != question_id or machine.has_answered(question_id):
                logger.debug(f"Late timeout for {question_id} ignored")
                return None

            logger.info(f"Time is up on question {question.order} of interview {interview_id}")
            ctx = SessionContext(
                current_candidate_id=interview.candidate_id,
                current_interview_id=interview.id,
            )
            return self._submit(ctx, interview, question_id, self._draft, question.time_limit)

    def _submit(
        self,
        ctx: SessionContext,
        interview: Interview,
        question_id: str,
        text: str,
        time_spent: Optional[int],
    ) -> SessionView:
        machine = self._machine(interview)
        question = machine.current_question

        owns_timer = self._is_current(interview)
        if time_spent is not None:
            elapsed = time_spent
        else:
            elapsed = self.timer.time_spent if owns_timer else 0

        text = (text or "").strip() or config.interview.no_answer_text
        answer = machine.record_answer(question_id, text, elapsed)
        if answer is None:
            return self.view(ctx)
        if owns_timer:
            self.timer.stop()
        self._persist()

        self.is_scoring = True
        try:
            result = self.pipeline.score_answer(question, answer)
        finally:
            self.is_scoring = False
        machine.attach_score(question_id, result.score, result.analysis)

        if machine.is_last_question:
            self.is_scoring = True
            try:
                summary = self.pipeline.summarize(interview.questions, interview.answers)
            finally:
                self.is_scoring = False
            machine.finalize(summary.score, summary.summary)
        else:
            machine.advance()

        self._persist()
        if owns_timer:
            self._draft = ""
            self._begin_question(interview)
        return self.view(ctx)

    # ========================================
    # Resumability
    # ========================================

    def _resumable_candidates(self) -> List[ResumableSession]:
        found = []
        for interview in self.state.interviews.values():
            if interview.status not in RESUMABLE_STATUSES:
                continue
            candidate = self.state.candidates.get(interview.candidate_id)
            if candidate is not None:
                found.append(ResumableSession(interview=interview, candidate=candidate))
        return found

    @staticmethod
    def _pick(found: List[ResumableSession], policy: ResumePolicy) -> ResumableSession:
        if policy == ResumePolicy.LATEST_STARTED:
            return max(found, key=lambda s: s.interview.started_at or datetime.min)
        if policy == ResumePolicy.LATEST_RESUMED:
            return max(
                found,
                key=lambda s: s.interview.last_resumed_at or s.interview.started_at or datetime.min,
            )
        return found[0]

    def detect_resumable(self, policy: Optional[ResumePolicy] = None) -> Optional[ResumableSession]:
        """
        Find an interview left in progress whose candidate still exists.
        Offers it without resuming; at most one is surfaced.
        """
        policy = ResumePolicy(policy or config.interview.resume_policy)
        with self._lock:
            found = self._resumable_candidates()
            if not found:
                return None
            if len(found) > 1:
                logger.warning(f"{len(found)} resumable interviews found, choosing by {policy.value}")

            chosen = self._pick(found, policy)
            if not self.state.is_resuming:
                self.state.is_resuming = True
                self._persist()
            return chosen

    def _target_for(self, interview_id: Optional[str]) -> Interview:
        if interview_id is not None:
            interview = self.state.interviews.get(interview_id)
        else:
            offered = self.detect_resumable()
            interview = offered.interview if offered else None
        if interview is None or interview.status not in RESUMABLE_STATUSES:
            raise NoActiveInterviewError("No resumable interview found")
        return interview

    def resume(self, interview_id: Optional[str] = None) -> SessionView:
        """Continue the offered interview at the question it stopped on."""
        with self._lock:
            interview = self._target_for(interview_id)
            self._machine(interview).resume()

            context = self._set_current(SessionContext(
                current_candidate_id=interview.candidate_id,
                current_interview_id=interview.id,
            ))
            self.state.is_resuming = False
            self._persist()

            logger.info(f"Resumed interview {interview.id} at question {interview.current_question_index}")
            self._begin_question(interview)
            return self.view(context)

    def start_new(self, interview_id: Optional[str] = None) -> SessionView:
        """
        Abandon the offered interview. When it is the current one, its timer
        stops and the current pointers are cleared; otherwise the current
        interview keeps running untouched.
        """
        with self._lock:
            interview = self._target_for(interview_id)
            was_current = self._is_current(interview)
            self._machine(interview).abandon()

            if was_current:
                self.timer.stop()
                self._draft = ""
                context = self._set_current(SessionContext())
            else:
                context = self.state.context
            self.state.is_resuming = False
            self._persist()
            return self.view(context)

    # ========================================
    # Candidates
    # ========================================

    def _latest_interview(self, candidate_id: str) -> Optional[Interview]:
        interviews = [i for i in self.state.interviews.values() if i.candidate_id == candidate_id]
        if not interviews:
            return None
        return max(interviews, key=lambda i: i.started_at or datetime.min)

    def view_candidate(self, candidate_id: str) -> Optional[CandidateDetail]:
        candidate = self.state.candidates.get(candidate_id)
        if candidate is None:
            return None
        return CandidateDetail(candidate=candidate, interview=self._latest_interview(candidate_id))

    def update_candidate(
        self,
        candidate_id: str,
        name: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Optional[CandidateProfile]:
        """Correct contact fields. Validation runs on the merged result."""
        with self._lock:
            candidate = self.state.candidates.get(candidate_id)
            if candidate is None:
                return None

            fields = validate_profile(
                name if name is not None else candidate.name,
                email if email is not None else candidate.email,
                phone if phone is not None else candidate.phone,
            )
            updated = candidate.model_copy(update=fields)
            self.state.candidates[candidate_id] = updated
            self._persist()
            return updated

    def list_candidates(
        self,
        search: Optional[str] = None,
        status: Optional[InterviewStatus] = None,
        sort_by: str = "created_at",
    ) -> List[CandidateSummary]:
        """Dashboard rows, filtered and sorted."""
        rows = []
        for candidate in self.state.candidates.values():
            interview = self._latest_interview(candidate.id)
            rows.append(CandidateSummary(
                **candidate.model_dump(),
                status=interview.status if interview else InterviewStatus.NOT_STARTED,
                final_score=interview.final_score if interview else None,
                completed_at=interview.completed_at if interview else None,
            ))

        if search:
            term = search.lower()
            rows = [
                r for r in rows
                if term in r.name.lower() or term in r.email.lower() or search in r.phone
            ]

        if status is not None:
            rows = [r for r in rows if r.status == status]

        if sort_by == "name":
            rows.sort(key=lambda r: r.name.lower())
        elif sort_by == "score":
            rows.sort(key=lambda r: r.final_score or 0, reverse=True)
        elif sort_by == "status":
            rows.sort(key=lambda r: r.status.value)
        else:
            rows.sort(key=lambda r: r.created_at, reverse=True)
        return rows
