"""
Answer scoring and final assessment.
Primary scores come from the LLM; a deterministic heuristic takes over
whenever the LLM is unreachable or its output does not validate.
"""
import math
import re
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from models.schemas import (
    Answer,
    Difficulty,
    Question,
    ScoreResult,
    SummaryResult,
)
from interview.errors import CollaboratorError
from llm.client import LLMClient, llm_client
from llm.prompts import Prompts
from utils.config import config

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class AnswerScorer:
    """
    Deterministic local scoring. Same inputs, same output, no randomness.
    """

    # Overall score bands, checked top-down
    BANDS = [
        (80, "Excellent performance! Strong technical knowledge and problem-solving skills demonstrated."),
        (70, "Good performance with solid technical foundation. Some areas for improvement in advanced concepts."),
        (60, "Satisfactory performance. Recommend strengthening core concepts and practicing system design."),
        (0, "Needs improvement. Focus on fundamental concepts and hands-on practice recommended."),
    ]

    VOCABULARY_FEEDBACK = {
        Difficulty.EASY: ("Good technical terminology.", "Could use more technical details."),
        Difficulty.MEDIUM: ("Demonstrates technical knowledge.", "Missing technical depth."),
        Difficulty.HARD: ("Shows technical understanding.", "Could elaborate more on technical aspects."),
    }

    _vocabulary_pattern = None

    @classmethod
    def vocabulary_pattern(cls) -> re.Pattern:
        if cls._vocabulary_pattern is None:
            words = "|".join(re.escape(w) for w in config.interview.technical_vocabulary)
            cls._vocabulary_pattern = re.compile(rf"\b({words})\b", re.IGNORECASE)
        return cls._vocabulary_pattern

    @staticmethod
    def clamp(value: int, low: int, high: int) -> int:
        return max(low, min(high, value))

    @classmethod
    def fallback_score(cls, question: Question, answer: Answer) -> ScoreResult:
        """
        Score from answer length against the tier's threshold, plus a bonus
        for technical vocabulary. Near-empty answers always score 1.
        """
        text = answer.text or ""
        length = len(text.strip())
        has_vocabulary = bool(cls.vocabulary_pattern().search(text))

        if length < config.interview.near_empty_length:
            return ScoreResult(score=1, analysis="Very brief response. More detailed explanations needed.")

        threshold, long_base, short_base, bonus = config.interview.fallback_rules[question.difficulty.value]
        score = long_base if length > threshold else short_base
        if has_vocabulary:
            score += bonus

        good, weak = cls.VOCABULARY_FEEDBACK[question.difficulty]
        if question.difficulty == Difficulty.HARD:
            lead = f"{question.difficulty.value} question requiring deep knowledge."
        else:
            lead = f"{question.difficulty.value} question response."
        analysis = f"{lead} {good if has_vocabulary else weak}"

        return ScoreResult(score=cls.clamp(score, 1, 10), analysis=analysis)

    @classmethod
    def get_band(cls, overall_score: int) -> str:
        for floor, text in cls.BANDS:
            if overall_score >= floor:
                return text
        return cls.BANDS[-1][1]

    @classmethod
    def bucket_averages(
        cls,
        questions: Sequence[Question],
        answers: Sequence[Answer]
    ) -> Dict[Difficulty, float]:
        """Mean score per difficulty tier; tiers with no answers average 0."""
        by_id = {q.id: q for q in questions}
        buckets: Dict[Difficulty, List[int]] = {d: [] for d in Difficulty.get_order()}
        for answer in answers:
            question = by_id.get(answer.question_id)
            if question is not None:
                buckets[question.difficulty].append(answer.score or 0)
        return {
            difficulty: sum(scores) / max(len(scores), 1)
            for difficulty, scores in buckets.items()
        }

    @classmethod
    def fallback_summary(
        cls,
        questions: Sequence[Question],
        answers: Sequence[Answer]
    ) -> SummaryResult:
        total = sum(a.score or 0 for a in answers)
        average = round_half_up(total / len(answers) * 10) / 10 if answers else 0.0
        overall = cls.clamp(round_half_up(average * 10), 0, 100)

        averages = cls.bucket_averages(questions, answers)
        breakdown = ", ".join(
            f"{d.value} Questions {averages[d]:.1f}/10" for d in Difficulty.get_order()
        )
        summary = (
            f"Interview completed with an overall score of {overall}/100. "
            f"Performance breakdown: {breakdown}. "
            f"{cls.get_band(overall)}"
        )
        return SummaryResult(score=overall, summary=summary)


class ScoringPipeline:
    """
    Stateless scorer. Never raises: a failed or malformed LLM call is
    replaced by the AnswerScorer heuristic with the same result shape.
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or llm_client

    # ========================================
    # Boundary validation
    # ========================================

    @staticmethod
    def _coerce_score(raw: Any, low: int, high: int) -> int:
        if isinstance(raw, bool):
            raise CollaboratorError(f"Score is not numeric: {raw!r}")
        try:
            value = float(raw)
        except (TypeError, ValueError):
            raise CollaboratorError(f"Score is not numeric: {raw!r}")
        if math.isnan(value) or math.isinf(value):
            raise CollaboratorError(f"Score is not finite: {raw!r}")
        return AnswerScorer.clamp(round_half_up(value), low, high)

    @staticmethod
    def _require_text(raw: Any, key: str) -> str:
        if not isinstance(raw, str) or not raw.strip():
            raise CollaboratorError(f"Missing '{key}' text in LLM output")
        return raw.strip()

    def _request_json(self, prompt: str, max_tokens: int) -> Dict[str, Any]:
        try:
            result, is_valid = self.llm.generate_json(prompt, max_tokens=max_tokens, temperature=0.3)
        except Exception as e:
            raise CollaboratorError(f"LLM call failed: {e}") from e
        if not is_valid or not isinstance(result, dict):
            raise CollaboratorError("LLM returned no usable JSON")
        return result

    # ========================================
    # Per-answer
    # ========================================

    def _score_with_llm(self, question: Question, answer: Answer) -> ScoreResult:
        prompt = Prompts.score_answer(
            question=question.text,
            difficulty=question.difficulty.value,
            time_limit=question.time_limit,
            answer=answer.text,
            time_spent=answer.time_spent,
        )
        result = self._request_json(prompt, max_tokens=500)
        try:
            return ScoreResult(
                score=self._coerce_score(result.get("score"), 1, 10),
                analysis=self._require_text(result.get("analysis"), "analysis"),
            )
        except ValidationError as e:
            raise CollaboratorError(str(e)) from e

    def score_answer(self, question: Question, answer: Answer) -> ScoreResult:
        try:
            scored = self._score_with_llm(question, answer)
            logger.info(f"LLM scored question {question.order}: {scored.score}/10")
            return scored
        except CollaboratorError as e:
            logger.warning(f"Scoring fell back to heuristic for question {question.order}: {e}")
            return AnswerScorer.fallback_score(question, answer)

    # ========================================
    # Final summary
    # ========================================

    @staticmethod
    def _summary_items(questions: Sequence[Question], answers: Sequence[Answer]) -> List[dict]:
        answered = {a.question_id: a for a in answers}
        items = []
        for question in questions:
            answer = answered.get(question.id)
            if answer is None:
                continue
            items.append({
                "question": question.text,
                "difficulty": question.difficulty.value,
                "answer": answer.text,
                "score": answer.score or 0,
                "time_spent": answer.time_spent,
                "time_limit": question.time_limit,
            })
        return items

    def _summarize_with_llm(self, questions: Sequence[Question], answers: Sequence[Answer]) -> SummaryResult:
        prompt = Prompts.final_summary(self._summary_items(questions, answers))
        result = self._request_json(prompt, max_tokens=800)
        try:
            return SummaryResult(
                score=self._coerce_score(result.get("score"), 0, 100),
                summary=self._require_text(result.get("summary"), "summary"),
            )
        except ValidationError as e:
            raise CollaboratorError(str(e)) from e

    def summarize(self, questions: Sequence[Question], answers: Sequence[Answer]) -> SummaryResult:
        try:
            summary = self._summarize_with_llm(questions, answers)
            logger.info(f"LLM final score: {summary.score}/100")
            return summary
        except CollaboratorError as e:
            logger.warning(f"Final summary fell back to heuristic: {e}")
            return AnswerScorer.fallback_summary(questions, answers)
