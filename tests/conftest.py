import sys
from pathlib import Path

import pytest


ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


QUESTIONS = [
    {"id": "q1", "question": "What is JSX?", "difficulty": "easy", "time_limit": 20},
    {"id": "q2", "question": "What does npm do?", "difficulty": "easy", "time_limit": 20},
    {"id": "q3", "question": "Explain useEffect cleanup.", "difficulty": "medium", "time_limit": 60},
    {"id": "q4", "question": "How does Express middleware work?", "difficulty": "medium", "time_limit": 60},
    {"id": "q5", "question": "Design a rate limiter.", "difficulty": "hard", "time_limit": 120},
    {"id": "q6", "question": "Scale a chat service to a million users.", "difficulty": "hard", "time_limit": 120},
]


class FakeAI:
    """Deterministic stand-in for GeminiService."""

    def __init__(self, score=7):
        self.score = score
        self.evaluated = []
        self.summaries = 0

    def generate_interview_questions(self, resume_text):
        return [dict(item) for item in QUESTIONS]

    def evaluate_answer(self, question, answer):
        self.evaluated.append((question, answer))
        return {"score": self.score, "analysis": f"Reviewed: {answer[:20]}"}

    def generate_final_summary(self, questions, candidate_name):
        self.summaries += 1
        scores = [q.get("score") or 0 for q in questions]
        avg = round(sum(scores) / len(scores), 1)
        return {"score": avg, "summary": f"{candidate_name} averaged {avg}/10."}


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class RecordSink:
    def __init__(self):
        self.records = []

    def add(self, record):
        self.records.append(record)


@pytest.fixture
def fake_ai():
    return FakeAI()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sink():
    return RecordSink()


@pytest.fixture
def app(fake_ai, clock):
    from app import create_app
    from config import TestConfig

    app = create_app(TestConfig)
    app.config["READ_DELAY_ENABLED"] = False
    app.extensions["gemini"] = fake_ai
    app.extensions["interview_clock"] = clock
    yield app

    from models import db

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def interviewer(client):
    response = client.post("/api/auth/login", json={"email": "interviewer@admin.com", "password": "Admin@123"})
    assert response.status_code == 200
    return client
