"""
Configuration settings for the interview engine.
All settings can be overridden via environment variables.
"""
import os
from typing import Dict, List, Tuple
from dataclasses import dataclass, field


@dataclass
class LLMConfig:
    """LLM server configuration."""
    base_url: str = field(default_factory=lambda: os.getenv("LLM_URL", "http://localhost:9000"))
    completion_endpoint: str = "/completion"
    timeout: int = field(default_factory=lambda: int(os.getenv("LLM_TIMEOUT", "60")))
    max_retries: int = field(default_factory=lambda: int(os.getenv("LLM_MAX_RETRIES", "2")))

    # Default generation parameters
    default_temperature: float = 0.7
    default_top_p: float = 0.9
    default_repeat_penalty: float = 1.1


@dataclass
class InterviewConfig:
    """Question set shape and scoring heuristics."""
    # Seconds allowed per difficulty tier
    time_limits: Dict[str, int] = field(default_factory=lambda: {
        "Easy": 180,
        "Medium": 420,
        "Hard": 900,
    })
    questions_per_tier: int = 2

    # Fallback scoring: (length threshold, base score above it, base score below it, vocabulary bonus)
    fallback_rules: Dict[str, Tuple[int, int, int, int]] = field(default_factory=lambda: {
        "Easy": (50, 7, 4, 1),
        "Medium": (100, 6, 4, 2),
        "Hard": (200, 5, 3, 2),
    })
    near_empty_length: int = 10
    technical_vocabulary: List[str] = field(default_factory=lambda: [
        "function", "const", "let", "var", "class", "import",
        "export", "async", "await", "promise", "callback",
    ])

    # Resume text sent to the generator is truncated to this many characters
    resume_prompt_chars: int = 2000
    no_answer_text: str = "No answer provided"

    resume_policy: str = field(default_factory=lambda: os.getenv("RESUME_POLICY", "discovery"))

    @property
    def total_questions(self) -> int:
        return self.questions_per_tier * len(self.time_limits)

    def time_limit_for(self, difficulty: str) -> int:
        return self.time_limits.get(difficulty, self.time_limits["Medium"])


@dataclass
class UploadConfig:
    """Resume upload and profile validation rules."""
    allowed_mime_types: Dict[str, str] = field(default_factory=lambda: {
        "application/pdf": "pdf",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    })
    max_size_mb: int = 10
    min_phone_digits: int = 10
    min_name_length: int = 2

    @property
    def max_size_bytes(self) -> int:
        return self.max_size_mb * 1024 * 1024


@dataclass
class StorageConfig:
    """Persisted state location."""
    state_path: str = field(default_factory=lambda: os.getenv("STATE_PATH", "./interview_state.json"))


@dataclass
class LoggingConfig:
    level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))


class Config:
    """Main configuration class combining all config sections."""

    def __init__(self):
        self.llm = LLMConfig()
        self.interview = InterviewConfig()
        self.upload = UploadConfig()
        self.storage = StorageConfig()
        self.logging = LoggingConfig()


# Global config instance
config = Config()
