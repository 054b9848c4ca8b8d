import pytest

from models.schemas import InterviewStatus
from interview.questions import QuestionGenerator
from interview.state import InterviewStateMachine

from conftest import StepClock


@pytest.fixture
def machine():
    return InterviewStateMachine.create("cand-1", QuestionGenerator.fallback_questions(), clock=StepClock())


def _answer_all(machine, text="A reasonable answer"):
    for _ in range(len(machine.interview.questions)):
        question = machine.current_question
        assert machine.record_answer(question.id, text, 30) is not None
        machine.attach_score(question.id, 5, "ok")
        if not machine.is_last_question:
            assert machine.advance()


def test_create_starts_at_first_question(machine):
    interview = machine.interview
    assert interview.status == InterviewStatus.IN_PROGRESS
    assert interview.current_question_index == 0
    assert interview.answers == []
    assert interview.started_at is not None
    assert machine.current_question == interview.questions[0]


def test_create_requires_questions():
    with pytest.raises(ValueError):
        InterviewStateMachine.create("cand-1", [])


def test_record_answer_appends_once(machine):
    question = machine.current_question
    answer = machine.record_answer(question.id, "first", 12)
    assert answer.text == "first"
    assert answer.time_spent == 12
    assert answer.score is None

    assert machine.record_answer(question.id, "second", 20) is None
    assert len(machine.interview.answers) == 1
    assert machine.answer_for(question.id).text == "first"


def test_record_answer_rejects_non_current_question(machine):
    later = machine.interview.questions[3]
    assert machine.record_answer(later.id, "skipping ahead", 5) is None
    assert machine.record_answer("nope", "unknown", 5) is None
    assert machine.interview.answers == []


def test_negative_time_spent_is_floored(machine):
    answer = machine.record_answer(machine.current_question.id, "text", -4)
    assert answer.time_spent == 0


def test_attach_score_keeps_text(machine):
    question = machine.current_question
    machine.record_answer(question.id, "original", 10)
    assert machine.attach_score(question.id, 7, "Nice.")
    answer = machine.answer_for(question.id)
    assert (answer.text, answer.score, answer.ai_analysis) == ("original", 7, "Nice.")


def test_attach_score_without_answer(machine):
    assert not machine.attach_score(machine.current_question.id, 7, "Nice.")


def test_advance_stops_at_last_question(machine):
    for expected in range(1, 6):
        assert machine.advance()
        assert machine.interview.current_question_index == expected
    assert machine.is_last_question
    assert not machine.advance()
    assert machine.interview.current_question_index == 5


def test_finalize_completes_once(machine):
    _answer_all(machine)
    assert machine.finalize(55, "Fine.")
    interview = machine.interview
    assert interview.status == InterviewStatus.COMPLETED
    assert (interview.final_score, interview.final_summary) == (55, "Fine.")
    assert interview.completed_at is not None
    assert not machine.is_abandoned

    assert not machine.finalize(90, "Again.")
    assert interview.final_score == 55


def test_completed_interview_rejects_everything(machine):
    _answer_all(machine)
    machine.finalize(55, "Fine.")
    assert machine.record_answer(machine.current_question.id, "late", 1) is None
    assert not machine.advance()
    assert not machine.resume()
    assert not machine.abandon()


def test_completed_interview_survives_serialisation(machine):
    _answer_all(machine)
    machine.finalize(55, "Fine.")
    restored = type(machine.interview).model_validate_json(machine.interview.model_dump_json())
    assert restored == machine.interview
    assert [a.question_id for a in restored.answers] == [q.id for q in restored.questions]


def test_resume_keeps_position_and_stamps_time(machine):
    machine.record_answer(machine.current_question.id, "one", 10)
    machine.advance()
    assert machine.interview.last_resumed_at is None

    assert machine.resume()
    assert machine.status == InterviewStatus.IN_PROGRESS
    assert machine.interview.current_question_index == 1
    assert len(machine.interview.answers) == 1
    assert machine.interview.last_resumed_at is not None


def test_resume_accepts_legacy_paused_status(machine):
    machine.interview.status = InterviewStatus.PAUSED
    assert machine.resume()
    assert machine.status == InterviewStatus.IN_PROGRESS


def test_abandon_completes_without_score(machine):
    assert machine.abandon()
    assert machine.is_completed
    assert machine.is_abandoned
    assert machine.interview.final_score is None
    assert machine.interview.completed_at is not None


def test_get_status(machine):
    question = machine.current_question
    machine.record_answer(question.id, "one", 10)
    machine.attach_score(question.id, 6, "ok")
    status = machine.get_status()
    assert status["question_number"] == 1
    assert status["total_questions"] == 6
    assert status["answers_recorded"] == 1
    assert status["average_score"] == 6.0
    assert status["is_ended"] is False
