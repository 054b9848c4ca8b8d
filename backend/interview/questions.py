"""
Interview question set generation.
"""
import uuid
import logging
from collections import Counter
from typing import List, Optional

from pydantic import ValidationError

from models.schemas import Difficulty, GeneratedQuestion, Question
from interview.errors import CollaboratorError
from llm.client import LLMClient, llm_client
from llm.prompts import Prompts, FALLBACK_QUESTIONS
from utils.config import config

logger = logging.getLogger(__name__)


def new_id() -> str:
    return uuid.uuid4().hex[:12]


class QuestionGenerator:
    """
    Produces the fixed-shape question set: 2 Easy, 2 Medium, 2 Hard.
    Falls back to a built-in set whenever the LLM output does not fit that shape.
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm or llm_client

    @staticmethod
    def _build(items: List[GeneratedQuestion]) -> List[Question]:
        # Time limits always follow the tier, whatever the generator said
        ordered = sorted(
            enumerate(items),
            key=lambda pair: (Difficulty.get_order().index(pair[1].difficulty), pair[0])
        )
        return [
            Question(
                id=new_id(),
                text=item.text.strip(),
                difficulty=item.difficulty,
                time_limit=config.interview.time_limit_for(item.difficulty.value),
                order=position,
            )
            for position, (_, item) in enumerate(ordered)
        ]

    @staticmethod
    def validate_shape(raw: object) -> List[GeneratedQuestion]:
        """Check raw generator output; raises CollaboratorError if it is unusable."""
        if not isinstance(raw, list):
            raise CollaboratorError("Question set is not a list")
        if len(raw) != config.interview.total_questions:
            raise CollaboratorError(
                f"Expected {config.interview.total_questions} questions, got {len(raw)}"
            )

        try:
            items = [GeneratedQuestion.model_validate(entry) for entry in raw]
        except ValidationError as e:
            raise CollaboratorError(f"Malformed question: {e}") from e

        counts = Counter(item.difficulty for item in items)
        for difficulty in Difficulty.get_order():
            if counts[difficulty] != config.interview.questions_per_tier:
                raise CollaboratorError(
                    f"Expected {config.interview.questions_per_tier} {difficulty.value} questions, "
                    f"got {counts[difficulty]}"
                )
        return items

    @classmethod
    def fallback_questions(cls) -> List[Question]:
        items = [GeneratedQuestion.model_validate(q) for q in FALLBACK_QUESTIONS]
        return cls._build(items)

    def _generate_with_llm(self, resume_text: Optional[str]) -> List[Question]:
        snippet = resume_text[:config.interview.resume_prompt_chars] if resume_text else None
        try:
            raw, is_valid = self.llm.generate_json_array(Prompts.generate_questions(snippet))
        except Exception as e:
            raise CollaboratorError(f"LLM call failed: {e}") from e
        if not is_valid:
            raise CollaboratorError("LLM returned no usable JSON array")
        return self._build(self.validate_shape(raw))

    def generate(self, resume_text: Optional[str] = None) -> List[Question]:
        """
        Generate the interview questions, tailored to the resume when given.

        Returns:
            Six questions ordered Easy, Medium, Hard
        """
        try:
            questions = self._generate_with_llm(resume_text)
            logger.info(f"Generated {len(questions)} questions via LLM")
            return questions
        except CollaboratorError as e:
            logger.warning(f"Question generation failed, using fallback set: {e}")
            return self.fallback_questions()
