import sys
from types import SimpleNamespace

import pytest

from services.gemini_service import (
    FALLBACK_ANALYSIS,
    FALLBACK_QUESTIONS,
    GeminiService,
    _extract_response_text,
    extract_json_payload,
    fallback_evaluation,
)


class _Models:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def generate_content(self, model, contents, **kwargs):
        self.prompts.append(contents)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(text=self.reply)


def _service(reply=None, error=None):
    client = SimpleNamespace(models=_Models(reply=reply, error=error))
    return GeminiService(api_key="test-key", client=client)


def test_extract_json_payload_finds_embedded_array():
    text = 'Sure! Here you go:\n[{"id": "q1", "question": "Q?"}]\nGood luck.'
    assert extract_json_payload(text, "[") == [{"id": "q1", "question": "Q?"}]


def test_extract_json_payload_handles_nested_objects():
    text = 'Result: {"score": 6, "meta": {"tone": "calm"}} end'
    assert extract_json_payload(text, "{") == {"score": 6, "meta": {"tone": "calm"}}


@pytest.mark.parametrize("text", ["", "no structure here", "{score: seven", "[not json]"])
def test_extract_json_payload_returns_none_when_malformed(text):
    assert extract_json_payload(text, "{") is None
    assert extract_json_payload(text, "[") is None


def test_extract_response_text_joins_candidate_parts():
    part = SimpleNamespace(text=" hello ")
    response = SimpleNamespace(text="", candidates=[SimpleNamespace(content=SimpleNamespace(parts=[part, part]))])
    assert _extract_response_text(response) == "hello\nhello"


def test_generate_questions_normalizes_payload():
    reply = """```json
[
  {"id": "a", "question": "Easy one", "difficulty": "EASY", "timeLimit": 20},
  {"question": "No limit given", "difficulty": "hard"},
  {"id": "c", "question": "Odd difficulty", "difficulty": "extreme", "timeLimit": 45}
]
```"""
    questions = _service(reply).generate_interview_questions("resume text")

    assert questions == [
        {"id": "a", "question": "Easy one", "difficulty": "easy", "time_limit": 20},
        {"id": "q2", "question": "No limit given", "difficulty": "hard", "time_limit": 120},
        {"id": "c", "question": "Odd difficulty", "difficulty": "medium", "time_limit": 45},
    ]


def test_generate_questions_includes_resume_in_prompt():
    service = _service('[{"question": "Q"}]')
    service.generate_interview_questions("Built a React dashboard")
    assert "Built a React dashboard" in service._client.models.prompts[0]


def test_every_entry_point_falls_back_on_malformed_reply():
    service = _service("I'm sorry, I can't produce JSON today.")

    assert service.generate_interview_questions("resume") == FALLBACK_QUESTIONS

    evaluation = service.evaluate_answer("What is React?", "A library for building user interfaces")
    assert evaluation == {"score": 1, "analysis": FALLBACK_ANALYSIS}

    summary = service.generate_final_summary([{"question": "Q", "score": 4}, {"question": "Q2", "score": 7}], "Ada")
    assert summary["score"] == 5.5
    assert summary["summary"].startswith("Ada completed the interview with an average score of 5.5/10.")


def test_every_entry_point_falls_back_on_transport_error():
    service = _service(error=RuntimeError("503 Service Unavailable"))

    assert len(service.generate_interview_questions("resume")) == 6
    assert service.evaluate_answer("Q", "word " * 30)["score"] == 6
    assert service.generate_final_summary([], "Ada")["score"] == 0.0


def test_missing_api_key_uses_fallbacks_without_network():
    service = GeminiService(api_key="")
    assert service.generate_interview_questions("resume") == FALLBACK_QUESTIONS
    assert service.evaluate_answer("Q", "")["analysis"] == FALLBACK_ANALYSIS


def test_evaluate_answer_clamps_score():
    service = _service('{"score": 14, "analysis": "Excellent depth."}')
    assert service.evaluate_answer("Q", "A") == {"score": 10.0, "analysis": "Excellent depth."}


def test_evaluate_answer_rejects_non_numeric_score():
    service = _service('{"score": "great", "analysis": "n/a"}')
    assert service.evaluate_answer("Q", "one two three")["analysis"] == FALLBACK_ANALYSIS


def test_summary_uses_model_reply_when_well_formed():
    service = _service('Here: {"score": 8.2, "summary": "Strong hire."}')
    result = service.generate_final_summary([{"question": "Q", "score": 8}], "Ada")
    assert result == {"score": 8.2, "summary": "Strong hire."}


@pytest.mark.parametrize(
    "answer, expected",
    [("", 1), ("one two three", 1), ("word " * 25, 5), ("word " * 100, 10)],
)
def test_fallback_evaluation_scales_with_length(answer, expected):
    assert fallback_evaluation(answer)["score"] == expected


def test_missing_gemini_package_falls_back(monkeypatch):
    monkeypatch.setitem(sys.modules, "google", None)
    service = GeminiService(api_key="real-key")

    assert service.evaluate_answer("Q", "one two") == {"score": 1, "analysis": FALLBACK_ANALYSIS}
    assert service.generate_interview_questions("resume") == FALLBACK_QUESTIONS
    assert service.generate_final_summary([{"question": "Q", "score": 6}], "Ada")["score"] == 6.0


def test_fractional_time_limit_rounds_up():
    reply = '[{"question": "Quick one", "difficulty": "easy", "timeLimit": 0.5}, {"question": "Odd", "difficulty": "hard", "timeLimit": 45.2}]'
    questions = _service(reply).generate_interview_questions("resume")
    assert [q["time_limit"] for q in questions] == [1, 46]
