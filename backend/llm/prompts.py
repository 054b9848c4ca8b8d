"""
Prompt templates for the question generator and the scoring pipeline.
Each prompt is designed to:
1. Prevent chain-of-thought leaking
2. Produce a single JSON document and nothing else
"""
from typing import List, Optional


class Prompts:
    """Collection of all generator prompts."""

    # ============================================================
    # QUESTION GENERATION
    # ============================================================

    @staticmethod
    def generate_questions(resume_text: Optional[str] = None) -> str:
        """Prompt for the six-question interview set."""
        if resume_text:
            context = f"""Tailor the questions to the candidate's experience level, the technologies they mention, and their background.

RESUME:
{resume_text}
"""
        else:
            context = "Focus on React and Node.js.\n"

        return f"""You are an AI interviewer for a full-stack developer position.

CRITICAL RULES:
1. Do NOT include any thinking, reasoning, or commentary.
2. Respond with ONLY a JSON array.

YOUR TASK: Generate exactly 6 technical interview questions: 2 Easy, 2 Medium, and 2 Hard, in that order.
{context}
Each array item must be an object with:
- "text": the question
- "difficulty": "Easy", "Medium" or "Hard"
- "timeLimit": Easy 180, Medium 420, Hard 900 (seconds)
- "order": 0-5

JSON array:"""

    # ============================================================
    # SCORING
    # ============================================================

    @staticmethod
    def score_answer(
        question: str,
        difficulty: str,
        time_limit: int,
        answer: str,
        time_spent: int
    ) -> str:
        """Prompt for scoring one answer."""
        return f"""You are an expert technical interviewer evaluating answers for a full-stack developer position.

SCORING CRITERIA:
- Technical accuracy and depth
- Clarity of explanation
- Use of appropriate terminology
- Completeness of the answer
- Time efficiency (they had {time_limit}s and used {time_spent}s)

QUESTION DIFFICULTY: {difficulty}
QUESTION: "{question}"
CANDIDATE'S ANSWER: "{answer}"

Respond with ONLY this JSON (no other text):

{{
    "score": <1-10, 10 being excellent>,
    "analysis": "<2-3 sentences of feedback>"
}}"""

    @staticmethod
    def final_summary(items: List[dict]) -> str:
        """Prompt for the overall assessment."""
        lines = []
        for i, item in enumerate(items, 1):
            lines.append(
                f"Question {i} ({item['difficulty']}): {item['question']}\n"
                f"Answer: {item['answer']}\n"
                f"Score: {item['score']}/10, Time: {item['time_spent']}s/{item['time_limit']}s"
            )
        results = "\n\n".join(lines) if lines else "No answers were provided."

        return f"""You are an expert technical interviewer providing a final assessment for a full-stack developer candidate.

INTERVIEW RESULTS:
{results}

Cover strengths and weaknesses, technical competency level, areas for improvement, and a hiring recommendation.
Consider both technical accuracy and the candidate's ability to explain concepts clearly.

Respond with ONLY this JSON (no other text):

{{
    "score": <0-100>,
    "summary": "<4-6 sentence assessment>"
}}"""


# ============================================================
# FALLBACK QUESTIONS (used when the generator fails)
# ============================================================

FALLBACK_QUESTIONS = [
    {
        "text": "What is the difference between let, const, and var in JavaScript?",
        "difficulty": "Easy",
    },
    {
        "text": "Explain the concept of closures in JavaScript with an example.",
        "difficulty": "Easy",
    },
    {
        "text": "How would you implement a simple REST API using Node.js and Express? Walk me through the basic setup.",
        "difficulty": "Medium",
    },
    {
        "text": "What are React hooks and how do useState and useEffect work? Provide examples.",
        "difficulty": "Medium",
    },
    {
        "text": "Design a scalable system for handling real-time chat messages. Consider database design, WebSocket connections, and message delivery guarantees.",
        "difficulty": "Hard",
    },
    {
        "text": "Implement a function that efficiently finds the longest common subsequence between two strings. Explain the time and space complexity.",
        "difficulty": "Hard",
    },
]
