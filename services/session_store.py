from uuid import uuid4

from errors import NotFoundError
from models import InterviewSessionRow, db
from services.interview_service import InterviewSession


def create_session() -> InterviewSession:
    session = InterviewSession(session_id=uuid4().hex)
    save_session(session)
    return session


def load_session(session_id: str) -> InterviewSession:
    row = db.session.get(InterviewSessionRow, session_id)
    if row is None:
        raise NotFoundError("Interview session not found.")
    return InterviewSession.from_dict(row.payload)


def save_session(session: InterviewSession) -> None:
    # The whole session is written on every change.
    row = db.session.get(InterviewSessionRow, session.session_id)
    if row is None:
        row = InterviewSessionRow(session_id=session.session_id)
        db.session.add(row)
    row.payload = session.to_dict()
    db.session.commit()

