"""
Response cleaning utilities for LLM outputs.
Strips chain-of-thought blocks and markdown fences, then isolates the JSON payload.

Completion servers running reasoning models (DeepSeek R1 and friends) emit
<think> blocks before the actual answer, and chat-tuned models like to wrap
JSON in ```json fences. Everything here is pure string work; parsing and
schema validation happen in the callers.
"""
import re
from typing import Optional


class ResponseCleaner:
    """
    Cleans raw completion text down to a parseable JSON document.
    """

    THINK_BLOCK = re.compile(r"<think>.*?</think>", re.DOTALL | re.IGNORECASE)
    # An opened but never closed think tag swallows the rest of the text
    DANGLING_THINK = re.compile(r"<think>.*$", re.DOTALL | re.IGNORECASE)
    FENCE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)

    @classmethod
    def strip_reasoning(cls, text: str) -> str:
        """Remove <think> blocks and stray closing tags."""
        if not text:
            return ""

        cleaned = cls.THINK_BLOCK.sub("", text)
        cleaned = re.sub(r"</think\s*>", "", cleaned, flags=re.IGNORECASE)
        cleaned = cls.DANGLING_THINK.sub("", cleaned)
        return cleaned.strip()

    @classmethod
    def unfence(cls, text: str) -> str:
        """Return the body of the first fenced block, or the text unchanged."""
        match = cls.FENCE.search(text)
        if match:
            return match.group(1).strip()
        return text

    @classmethod
    def _slice_between(cls, text: str, opener: str, closer: str) -> Optional[str]:
        start = text.find(opener)
        end = text.rfind(closer)
        if start == -1 or end == -1 or end <= start:
            return None
        return text[start:end + 1]

    @classmethod
    def clean_json_response(cls, text: str) -> str:
        """Clean response and extract a JSON object."""
        cleaned = cls.unfence(cls.strip_reasoning(text))
        return cls._slice_between(cleaned, "{", "}") or "{}"

    @classmethod
    def clean_json_array_response(cls, text: str) -> str:
        """Clean response and extract a JSON array."""
        cleaned = cls.unfence(cls.strip_reasoning(text))
        return cls._slice_between(cleaned, "[", "]") or "[]"

    @staticmethod
    def fix_trailing_commas(text: str) -> str:
        """Drop trailing commas before closing brackets."""
        return re.sub(r",\s*([}\]])", r"\1", text)
