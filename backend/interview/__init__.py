# Interview module
from .timer import Timer, ManualScheduler, ThreadingScheduler
from .state import InterviewStateMachine
from .scoring import AnswerScorer, ScoringPipeline
from .questions import QuestionGenerator
from .session import SessionCoordinator
