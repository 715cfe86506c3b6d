import json
import logging
import math
import re
from typing import Optional

from errors import AIUnavailableError


logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Full Stack Developer (React/Node.js)"
DIFFICULTIES = ("easy", "medium", "hard")
TIME_LIMITS = {"easy": 20, "medium": 60, "hard": 120}

FALLBACK_QUESTIONS = [
    {"id": "q1", "question": "What is React and why is it useful?", "difficulty": "easy", "time_limit": 20},
    {"id": "q2", "question": "Explain the difference between let, const, and var in JavaScript.", "difficulty": "easy", "time_limit": 20},
    {"id": "q3", "question": "How do React hooks work? Explain useState and useEffect.", "difficulty": "medium", "time_limit": 60},
    {"id": "q4", "question": "What is the event loop in Node.js?", "difficulty": "medium", "time_limit": 60},
    {"id": "q5", "question": "Design a REST API for a social media platform. Explain your architecture choices.", "difficulty": "hard", "time_limit": 120},
    {"id": "q6", "question": "How would you optimize a React application for performance?", "difficulty": "hard", "time_limit": 120},
]
FALLBACK_ANALYSIS = "Answer evaluated. Consider providing more technical details and examples."

_PAYLOAD_PATTERNS = {
    "[": (re.compile(r"\[[\s\S]*?\]"), re.compile(r"\[[\s\S]*\]")),
    "{": (re.compile(r"\{[\s\S]*?\}"), re.compile(r"\{[\s\S]*\}")),
}


def _extract_response_text(response) -> str:
    # Prefer direct text field if present.
    text = (getattr(response, "text", "") or "").strip()
    if text:
        return text
    # Fallback: join candidate parts.
    candidates = getattr(response, "candidates", None) or []
    parts = []
    for candidate in candidates:
        content = getattr(candidate, "content", None)
        candidate_parts = getattr(content, "parts", None) or []
        for part in candidate_parts:
            value = getattr(part, "text", "") or ""
            if value:
                parts.append(value.strip())
    return "\n".join(parts).strip()


def extract_json_payload(text: str, opener: str = "{"):
    """Decode the first ``[...]`` or ``{...}`` block embedded in free text.

    The shortest match is tried first, then the longest one so nested payloads
    still decode. Returns None when nothing decodes.
    """
    if not text:
        return None
    for pattern in _PAYLOAD_PATTERNS[opener]:
        match = pattern.search(text)
        if not match:
            continue
        try:
            return json.loads(match.group(0))
        except json.JSONDecodeError:
            continue
    return None


def _to_number(value) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _normalize_questions(payload) -> list[dict]:
    # Accept only a list of objects that all carry question text.
    if not isinstance(payload, list) or not payload:
        return []
    questions = []
    for position, item in enumerate(payload, start=1):
        if not isinstance(item, dict):
            return []
        text = str(item.get("question") or "").strip()
        if not text:
            return []
        difficulty = str(item.get("difficulty") or "").strip().lower()
        if difficulty not in DIFFICULTIES:
            difficulty = "medium"
        time_limit = _to_number(item.get("timeLimit", item.get("time_limit")))
        if time_limit is None or not math.isfinite(time_limit) or time_limit <= 0:
            time_limit = TIME_LIMITS[difficulty]
        questions.append(
            {
                "id": str(item.get("id") or f"q{position}"),
                "question": text,
                "difficulty": difficulty,
                "time_limit": math.ceil(time_limit),
            }
        )
    return questions


def fallback_evaluation(answer: str) -> dict:
    word_count = len((answer or "").split())
    score = min(10, max(1, word_count // 5))
    return {"score": score, "analysis": FALLBACK_ANALYSIS}


def average_score(questions: list) -> float:
    if not questions:
        return 0.0
    total = sum(float(q.get("score") or 0) for q in questions)
    return round(total / len(questions), 1)


def fallback_summary(questions: list, candidate_name: str) -> dict:
    avg = average_score(questions)
    return {
        "score": avg,
        "summary": (
            f"{candidate_name} completed the interview with an average score of {avg}/10. "
            "Review individual answers for detailed assessment."
        ),
    }


class GeminiService:
    """Thin client over the Gemini text model with static fallbacks.

    Every public entry point returns usable data: transport errors, a missing
    API key, and unparseable responses all resolve to the documented default.
    """

    def __init__(self, api_key: str = "", model: str = "gemini-1.5-flash", client=None, role: str = DEFAULT_ROLE):
        self.api_key = (api_key or "").strip()
        self.model = model
        self.role = role
        self._client = client

    @classmethod
    def from_config(cls, config) -> "GeminiService":
        return cls(api_key=config.get("GEMINI_API_KEY", ""), model=config.get("GEMINI_MODEL", "gemini-1.5-flash"))

    def _get_client(self):
        if self._client is not None:
            return self._client
        if not self.api_key:
            raise AIUnavailableError("GEMINI_API_KEY is empty")
        # Lazy import so the app can start without the Gemini package.
        from google import genai

        self._client = genai.Client(api_key=self.api_key)
        return self._client

    def make_request(self, prompt: str) -> str:
        try:
            client = self._get_client()
            response = client.models.generate_content(model=self.model, contents=prompt)
        except AIUnavailableError:
            raise
        except Exception as exc:
            raise AIUnavailableError(str(exc)) from exc
        return _extract_response_text(response)

    def _request_payload(self, prompt: str, opener: str, purpose: str):
        try:
            text = self.make_request(prompt)
        except AIUnavailableError as exc:
            logger.warning("Gemini %s unavailable, using fallback: %s", purpose, exc)
            return None
        payload = extract_json_payload(text, opener)
        if payload is None:
            logger.warning("Gemini %s response parse failed. Raw text: %s", purpose, text[:500])
        return payload

    def generate_interview_questions(self, resume_text: str) -> list[dict]:
        prompt = f"""
Based on this resume for a {self.role} position, generate exactly 6 interview questions in JSON format:
- 2 Easy questions (20 seconds each)
- 2 Medium questions (60 seconds each)
- 2 Hard questions (120 seconds each)

Resume: {resume_text}

Return only a JSON array of objects with the keys "id", "question", "difficulty" and "timeLimit", e.g.
[{{"id": "q1", "question": "Easy question text here", "difficulty": "easy", "timeLimit": 20}}]

Order the questions easy, medium, hard. Make them specific to the role and tailor them to
the candidate's experience level shown in the resume.
""".strip()
        questions = _normalize_questions(self._request_payload(prompt, "[", "question generation"))
        if questions:
            return questions
        return [dict(item) for item in FALLBACK_QUESTIONS]

    def evaluate_answer(self, question: str, answer: str) -> dict:
        prompt = f"""
Evaluate this interview answer for a {self.role} position:

Question: {question}
Answer: {answer}

Provide a score from 0-10 and analysis in this exact JSON format:
{{"score": 7, "analysis": "Good understanding shown but could improve on..."}}

Consider technical accuracy, depth of knowledge, and communication clarity.
""".strip()
        payload = self._request_payload(prompt, "{", "evaluation")
        if isinstance(payload, dict):
            score = _to_number(payload.get("score"))
            if score is not None:
                return {
                    "score": round(max(0.0, min(10.0, score)), 1),
                    "analysis": str(payload.get("analysis") or "").strip() or FALLBACK_ANALYSIS,
                }
        return fallback_evaluation(answer)

    def generate_final_summary(self, questions: list[dict], candidate_name: str) -> dict:
        fallback = fallback_summary(questions, candidate_name)
        lines = []
        for position, q in enumerate(questions, start=1):
            lines.append(
                f"{position}. {q.get('question')}\n"
                f"Answer: {q.get('answer') or 'No answer'}\n"
                f"Score: {q.get('score') or 0}/10\n"
                f"Analysis: {q.get('ai_analysis') or 'Not analyzed'}"
            )
        prompt = f"""
Generate a final interview summary for {candidate_name}:

Questions and Scores:
{chr(10).join(lines)}

Average Score: {fallback['score']}/10

Provide a JSON response with overall assessment:
{{"score": {fallback['score']}, "summary": "Comprehensive summary of candidate's strengths, weaknesses, and recommendation"}}
""".strip()
        payload = self._request_payload(prompt, "{", "summary")
        if isinstance(payload, dict):
            score = _to_number(payload.get("score"))
            summary = str(payload.get("summary") or "").strip()
            if score is not None and summary:
                return {"score": round(max(0.0, min(10.0, score)), 1), "summary": summary}
        return fallback
