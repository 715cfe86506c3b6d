from datetime import datetime
from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


class InterviewSessionRow(db.Model):
    """The "interview" namespace: one full session snapshot per session id."""

    __tablename__ = "interview_sessions"

    session_id = db.Column(db.String(64), primary_key=True)
    payload = db.Column(db.JSON, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class CandidateRecordRow(db.Model):
    """The "candidates" namespace: completed interviews, written once."""

    __tablename__ = "candidate_records"

    id = db.Column(db.String(64), primary_key=True)
    session_id = db.Column(db.String(64), nullable=True, index=True)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), nullable=False, default="")
    phone = db.Column(db.String(50), nullable=True, index=True)
    resume_text = db.Column(db.Text, nullable=True)
    questions = db.Column(db.JSON, nullable=False)
    final_score = db.Column(db.Float, nullable=False)
    ai_summary = db.Column(db.Text, nullable=False)
    completed_at = db.Column(db.Float, nullable=False, index=True)
    duration = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
