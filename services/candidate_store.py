from sqlalchemy import asc, desc, func, or_

from errors import NotFoundError, ValidationError
from models import CandidateRecordRow, db
from services.interview_service import DIFFICULTY_ORDER, CandidateRecord


SORT_COLUMNS = {
    "score": CandidateRecordRow.final_score,
    "name": func.lower(CandidateRecordRow.name),
    "date": CandidateRecordRow.completed_at,
}
EXCELLENT_SCORE = 8
GOOD_SCORE = 6


def _to_record(row: CandidateRecordRow) -> CandidateRecord:
    return CandidateRecord.from_dict(
        {
            "id": row.id,
            "session_id": row.session_id,
            "name": row.name,
            "email": row.email,
            "phone": row.phone,
            "resume_text": row.resume_text,
            "questions": row.questions,
            "final_score": row.final_score,
            "ai_summary": row.ai_summary,
            "completed_at": row.completed_at,
            "duration": row.duration,
        }
    )


class CandidateStore:
    """Append-only store of completed interviews."""

    def add(self, record: CandidateRecord) -> None:
        payload = record.to_dict()
        db.session.add(CandidateRecordRow(**payload))
        db.session.commit()

    def get(self, record_id: str) -> CandidateRecord:
        row = db.session.get(CandidateRecordRow, record_id)
        if row is None:
            raise NotFoundError("Candidate not found.")
        return _to_record(row)

    def delete(self, record_id: str) -> None:
        row = db.session.get(CandidateRecordRow, record_id)
        if row is None:
            raise NotFoundError("Candidate not found.")
        db.session.delete(row)
        db.session.commit()

    def list_records(self, search: str = "", sort_by: str = "score", order: str = "desc") -> list[CandidateRecord]:
        if sort_by not in SORT_COLUMNS:
            raise ValidationError("sort_by must be one of: score, name, date.")
        if order not in {"asc", "desc"}:
            raise ValidationError("order must be asc or desc.")

        query = CandidateRecordRow.query
        search = (search or "").strip().lower()
        if search:
            pattern = f"%{search}%"
            query = query.filter(
                or_(
                    func.lower(CandidateRecordRow.name).like(pattern),
                    func.lower(CandidateRecordRow.email).like(pattern),
                )
            )
        direction = asc if order == "asc" else desc
        query = query.order_by(direction(SORT_COLUMNS[sort_by]), direction(CandidateRecordRow.completed_at))
        return [_to_record(row) for row in query.all()]

    def find_by_phone(self, phone: str):
        phone = (phone or "").strip()
        if not phone:
            return None
        row = (
            CandidateRecordRow.query.filter_by(phone=phone)
            .order_by(desc(CandidateRecordRow.completed_at))
            .first()
        )
        return _to_record(row) if row else None


def score_band(score: float) -> str:
    if score >= EXCELLENT_SCORE:
        return "excellent"
    if score >= GOOD_SCORE:
        return "good"
    return "needs-improvement"


def stats(records: list[CandidateRecord]) -> dict:
    total = len(records)
    if not total:
        return {
            "total_candidates": 0,
            "average_score": 0.0,
            "excellent_candidates": 0,
            "excellent_percent": 0,
            "average_duration": 0,
        }
    excellent = sum(1 for r in records if r.final_score >= EXCELLENT_SCORE)
    return {
        "total_candidates": total,
        "average_score": round(sum(r.final_score for r in records) / total, 1),
        "excellent_candidates": excellent,
        "excellent_percent": round(excellent / total * 100),
        "average_duration": round(sum(r.duration for r in records) / total),
    }


def difficulty_breakdown(record: CandidateRecord) -> dict:
    # Average per difficulty over the questions actually asked at that level.
    breakdown = {}
    for difficulty in DIFFICULTY_ORDER:
        scores = [float(q.score or 0) for q in record.questions if q.difficulty == difficulty]
        breakdown[difficulty] = round(sum(scores) / len(scores), 1) if scores else None
    return breakdown
