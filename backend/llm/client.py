"""
HTTP client for a llama.cpp style /completion server.

The question generator and the scoring pipeline only ever ask for one JSON
document per call, so the client's job is: send the prompt, retry transport
failures, clean the completion text and parse it. Failures are reported as
an invalid result, never raised.
"""
import json
import time
import logging
from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass, field

import requests

from utils.config import config
from utils.cleaning import ResponseCleaner

logger = logging.getLogger(__name__)

JSONDocument = Union[Dict[str, Any], List[Any]]


@dataclass
class LLMResponse:
    """Raw completion plus what the server reported about it."""
    content: str
    is_valid: bool
    raw_response: Dict[str, Any] = field(default_factory=dict)
    tokens_used: int = 0


class LLMClient:
    """Talks to the completion endpoint; see generate_json for the structured path."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = (base_url or config.llm.base_url).rstrip("/")
        self.completion_url = self.base_url + config.llm.completion_endpoint
        self.timeout = config.llm.timeout
        self.max_retries = config.llm.max_retries
        logger.info(f"LLM client for {self.completion_url} (timeout={self.timeout}s, retries={self.max_retries})")

    # ========================================
    # Transport
    # ========================================

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST with retries. Raises ConnectionError once every attempt has failed."""
        attempts = self.max_retries + 1
        last_error: Optional[Exception] = None

        for attempt in range(1, attempts + 1):
            try:
                response = requests.post(self.completion_url, json=payload, timeout=self.timeout)
                response.raise_for_status()
                return response.json()
            except requests.exceptions.RequestException as e:
                last_error = e
                if attempt < attempts:
                    # Timeouts usually mean a busy server; wait longer before retrying
                    delay = attempt if isinstance(e, requests.exceptions.Timeout) else 0.5 * attempt
                    logger.warning(f"LLM attempt {attempt}/{attempts} failed ({e}), retrying in {delay}s")
                    time.sleep(delay)

        raise ConnectionError(f"LLM server unreachable after {attempts} attempts: {last_error}")

    def _payload(self, prompt: str, max_tokens: int, temperature: Optional[float]) -> Dict[str, Any]:
        return {
            "prompt": prompt,
            "n_predict": max_tokens,
            "temperature": config.llm.default_temperature if temperature is None else temperature,
            "top_p": config.llm.default_top_p,
            "repeat_penalty": config.llm.default_repeat_penalty,
        }

    def generate(self, prompt: str, max_tokens: int = 200, temperature: Optional[float] = None) -> LLMResponse:
        """Plain completion. An empty or failed completion has is_valid=False."""
        try:
            body = self._post(self._payload(prompt, max_tokens, temperature))
        except (ConnectionError, ValueError) as e:
            # ValueError: the server answered with a non-JSON body
            logger.warning(f"LLM request failed: {e}")
            return LLMResponse(content="", is_valid=False, raw_response={"error": str(e)})

        content = body.get("content") or ""
        return LLMResponse(
            content=content,
            is_valid=bool(content.strip()),
            raw_response=body,
            tokens_used=body.get("tokens_predicted", 0),
        )

    # ========================================
    # Structured output
    # ========================================

    @staticmethod
    def _loads(cleaned: str) -> Optional[JSONDocument]:
        for candidate in (cleaned, ResponseCleaner.fix_trailing_commas(cleaned)):
            try:
                return json.loads(candidate)
            except json.JSONDecodeError:
                continue
        return None

    def _generate_document(
        self,
        prompt: str,
        expected: type,
        max_tokens: int,
        temperature: float,
    ) -> Tuple[Optional[JSONDocument], bool]:
        response = self.generate(prompt, max_tokens=max_tokens, temperature=temperature)
        if not response.is_valid:
            return None, False

        if expected is list:
            cleaned = ResponseCleaner.clean_json_array_response(response.content)
        else:
            cleaned = ResponseCleaner.clean_json_response(response.content)

        parsed = self._loads(cleaned)
        if isinstance(parsed, expected) and parsed:
            return parsed, True

        logger.warning(f"LLM returned no usable JSON {expected.__name__}: {response.content[:200]!r}")
        return None, False

    def generate_json(
        self,
        prompt: str,
        max_tokens: int = 400,
        temperature: float = 0.3,
    ) -> Tuple[Optional[Dict[str, Any]], bool]:
        """
        Completion parsed as a single non-empty JSON object.

        Returns:
            (object, True) on success, (None, False) otherwise
        """
        return self._generate_document(prompt, dict, max_tokens, temperature)

    def generate_json_array(
        self,
        prompt: str,
        max_tokens: int = 1500,
        temperature: float = 0.7,
    ) -> Tuple[Optional[List[Any]], bool]:
        """Completion parsed as a non-empty JSON array; (None, False) otherwise."""
        return self._generate_document(prompt, list, max_tokens, temperature)

    def health_check(self) -> bool:
        return self.generate("Hello", max_tokens=5).is_valid


# Global client instance
llm_client = LLMClient()
