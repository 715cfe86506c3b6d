import logging
import math
import time
from dataclasses import asdict, dataclass, field, fields
from typing import Callable, Optional
from uuid import uuid4

from errors import InvalidStateError, ValidationError


logger = logging.getLogger(__name__)

PHASE_IDLE = "idle"
PHASE_READING = "reading"
PHASE_ANSWERING = "answering"
PHASE_SUBMITTING = "submitting"
PHASE_DONE = "done"

DIFFICULTY_ORDER = ("easy", "medium", "hard")
READ_TIMES = {"easy": 8, "medium": 15, "hard": 20}
DEFAULT_READ_TIME = 10

TIME_UP_ANSWER = "No answer provided due to time limit."
TIME_UP_PARTIAL_SCORE = 3
DEFAULT_RESUME_PROMPT = "Full Stack Developer position"


@dataclass
class Question:
    id: str
    question: str
    difficulty: str
    time_limit: int
    answer: Optional[str] = None
    score: Optional[float] = None
    ai_analysis: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Question":
        return cls(
            id=str(data["id"]),
            question=data["question"],
            difficulty=data["difficulty"],
            time_limit=int(data["time_limit"]),
            answer=data.get("answer"),
            score=data.get("score"),
            ai_analysis=data.get("ai_analysis"),
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class QuestionResult:
    """Read-only copy of a question as it stood when the interview finished."""

    id: str
    question: str
    difficulty: str
    time_limit: int
    answer: Optional[str]
    score: Optional[float]
    ai_analysis: Optional[str]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class CandidateInfo:
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    resume_text: Optional[str] = None


@dataclass
class InterviewSession:
    session_id: str = ""
    candidate_info: CandidateInfo = field(default_factory=CandidateInfo)
    questions: list = field(default_factory=list)
    current_question_index: int = 0
    time_remaining: int = 0
    is_active: bool = False
    is_paused: bool = False
    is_completed: bool = False
    final_score: Optional[float] = None
    ai_summary: Optional[str] = None
    start_time: Optional[float] = None
    phase: str = PHASE_IDLE
    read_remaining: int = 0
    read_deadline: Optional[float] = None
    answer_deadline: Optional[float] = None
    draft: str = ""
    record_id: Optional[str] = None

    @property
    def current_question(self) -> Optional[Question]:
        if 0 <= self.current_question_index < len(self.questions):
            return self.questions[self.current_question_index]
        return None

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "InterviewSession":
        known = {f.name for f in fields(cls)}
        values = {key: value for key, value in data.items() if key in known}
        values["candidate_info"] = CandidateInfo(**(data.get("candidate_info") or {}))
        values["questions"] = [Question.from_dict(item) for item in data.get("questions") or []]
        return cls(**values)


@dataclass(frozen=True)
class CandidateRecord:
    id: str
    name: str
    email: str
    questions: tuple
    final_score: float
    ai_summary: str
    completed_at: float
    duration: int
    phone: Optional[str] = None
    resume_text: Optional[str] = None
    session_id: Optional[str] = None

    @classmethod
    def from_session(cls, session: InterviewSession, completed_at: float) -> "CandidateRecord":
        info = session.candidate_info
        started = session.start_time or completed_at
        return cls(
            id=f"candidate_{uuid4().hex}",
            name=info.name or "Unknown",
            email=info.email or "",
            phone=info.phone,
            resume_text=info.resume_text,
            questions=tuple(QuestionResult(**q.to_dict()) for q in session.questions),
            final_score=float(session.final_score or 0.0),
            ai_summary=session.ai_summary or "",
            completed_at=completed_at,
            duration=int(round((completed_at - started) / 60)),
            session_id=session.session_id or None,
        )

    @classmethod
    def from_dict(cls, data: dict) -> "CandidateRecord":
        questions = tuple(
            QuestionResult(
                id=str(q["id"]),
                question=q["question"],
                difficulty=q["difficulty"],
                time_limit=int(q["time_limit"]),
                answer=q.get("answer"),
                score=q.get("score"),
                ai_analysis=q.get("ai_analysis"),
            )
            for q in data.get("questions") or []
        )
        return cls(
            id=data["id"],
            name=data["name"],
            email=data.get("email") or "",
            phone=data.get("phone"),
            resume_text=data.get("resume_text"),
            questions=questions,
            final_score=float(data["final_score"]),
            ai_summary=data.get("ai_summary") or "",
            completed_at=float(data["completed_at"]),
            duration=int(data.get("duration") or 0),
            session_id=data.get("session_id"),
        )

    def to_dict(self) -> dict:
        payload = asdict(self)
        payload["questions"] = [q.to_dict() for q in self.questions]
        return payload


def read_time_for(difficulty: str) -> int:
    return READ_TIMES.get(difficulty, DEFAULT_READ_TIME)


def _seconds_until(deadline: Optional[float], now: float) -> int:
    if deadline is None:
        return 0
    return max(0, math.ceil(deadline - now))


class InterviewEngine:
    """Drives one interview session forward.

    The engine owns the timed question flow: an optional read delay, an
    answering window checked against an absolute deadline, manual or
    automatic submission, and completion. Collaborators are injected:

    * ``ai`` provides ``generate_interview_questions``, ``evaluate_answer``
      and ``generate_final_summary``.
    * ``records`` (optional) receives the ``CandidateRecord`` emitted when the
      session completes, via ``add(record)``.
    * ``clock`` returns the current time in seconds.
    """

    def __init__(
        self,
        session: InterviewSession,
        ai,
        records=None,
        clock: Callable[[], float] = time.time,
        read_delay_enabled: bool = True,
    ):
        self.session = session
        self.ai = ai
        self.records = records
        self.clock = clock
        self.read_delay_enabled = read_delay_enabled

    # Candidate details.

    def set_candidate_info(self, **values) -> CandidateInfo:
        info = self.session.candidate_info
        for key, value in values.items():
            if not hasattr(info, key):
                raise ValidationError(f"Unknown candidate field: {key}")
            if value:
                setattr(info, key, value)
        return info

    # Lifecycle.

    def start(self, session_id: Optional[str] = None) -> InterviewSession:
        s = self.session
        if s.is_completed:
            raise InvalidStateError("Interview already completed. Reset to start again.")
        if s.is_active:
            raise InvalidStateError("Interview already in progress.")
        info = s.candidate_info
        missing = [field for field in ("name", "email", "phone") if not getattr(info, field)]
        if missing:
            raise InvalidStateError("Candidate details are incomplete.", detail={"missing_fields": missing})

        generated = self.ai.generate_interview_questions(s.candidate_info.resume_text or DEFAULT_RESUME_PROMPT)
        s.questions = [Question.from_dict(item) for item in generated]
        if not s.questions:
            raise InvalidStateError("No interview questions available.")

        s.session_id = session_id or s.session_id or f"interview_{uuid4().hex}"
        s.start_time = self.clock()
        s.current_question_index = 0
        s.time_remaining = s.questions[0].time_limit
        s.is_active = True
        s.is_paused = False
        s.draft = ""
        logger.info("Interview %s started with %d questions", s.session_id, len(s.questions))
        self.enter_question()
        return s

    def enter_question(self) -> None:
        s = self.session
        question = s.current_question
        s.answer_deadline = None
        if self.read_delay_enabled:
            s.phase = PHASE_READING
            s.read_remaining = read_time_for(question.difficulty)
            s.read_deadline = self.clock() + s.read_remaining
        else:
            s.read_remaining = 0
            s.read_deadline = None
            self._arm_answer_timer()

    def begin_answering(self) -> None:
        s = self.session
        self._require_running()
        if s.is_paused:
            raise InvalidStateError("Interview is paused.")
        if s.phase != PHASE_READING:
            raise InvalidStateError("Answering can only start after reading the question.")
        if _seconds_until(s.read_deadline, self.clock()) > 0:
            raise InvalidStateError("Please finish reading the question first.")
        s.read_remaining = 0
        s.read_deadline = None
        self._arm_answer_timer()

    def _arm_answer_timer(self) -> None:
        s = self.session
        s.phase = PHASE_ANSWERING
        s.time_remaining = s.current_question.time_limit
        s.answer_deadline = self.clock() + s.time_remaining

    def tick(self) -> Optional[CandidateRecord]:
        """Refresh countdowns; auto-submits the draft once the answer time is spent."""
        s = self.session
        if not s.is_active or s.is_paused or s.is_completed:
            return None
        now = self.clock()
        if s.phase == PHASE_READING:
            s.read_remaining = _seconds_until(s.read_deadline, now)
            return None
        if s.phase != PHASE_ANSWERING:
            return None
        s.time_remaining = _seconds_until(s.answer_deadline, now)
        if s.time_remaining <= 0:
            logger.info("Time limit reached on question %d of %s", s.current_question_index + 1, s.session_id)
            return self.time_up(s.draft)
        return None

    def answer_time_spent(self) -> bool:
        s = self.session
        if not s.is_active or s.is_paused or s.phase != PHASE_ANSWERING:
            return False
        return _seconds_until(s.answer_deadline, self.clock()) <= 0

    def save_draft(self, text: str) -> None:
        self._require_answering()
        self.session.draft = text or ""

    def submit_answer(self, text: str) -> Optional[CandidateRecord]:
        answer = (text or "").strip()
        if not answer:
            raise ValidationError("Please provide an answer before submitting.")
        self._require_answering()
        s = self.session
        s.phase = PHASE_SUBMITTING
        evaluation = self.ai.evaluate_answer(s.current_question.question, answer)
        return self._record_and_advance(answer, evaluation["score"], evaluation["analysis"])

    def time_up(self, draft: str = "") -> Optional[CandidateRecord]:
        self._require_answering()
        partial = (draft or "").strip()
        self.session.phase = PHASE_SUBMITTING
        analysis = "Time limit exceeded. " + ("Partial answer submitted." if partial else "No answer provided.")
        return self._record_and_advance(
            partial or TIME_UP_ANSWER,
            TIME_UP_PARTIAL_SCORE if partial else 0,
            analysis,
        )

    def _record_and_advance(self, answer: str, score, analysis: str) -> Optional[CandidateRecord]:
        question = self.session.current_question
        question.answer = answer
        question.score = score
        question.ai_analysis = analysis
        self.session.draft = ""
        return self.advance()

    def advance(self) -> Optional[CandidateRecord]:
        s = self.session
        if s.is_completed:
            return None
        if s.current_question_index < len(s.questions) - 1:
            s.current_question_index += 1
            s.time_remaining = s.current_question.time_limit
            self.enter_question()
            return None
        return self.complete()

    def complete(self) -> Optional[CandidateRecord]:
        """Finish the session; emits the candidate record only on the first call."""
        s = self.session
        if s.is_completed:
            return None
        result = self.ai.generate_final_summary(
            [q.to_dict() for q in s.questions],
            s.candidate_info.name or "Candidate",
        )
        s.is_completed = True
        s.is_active = False
        s.is_paused = False
        s.phase = PHASE_DONE
        s.final_score = result["score"]
        s.ai_summary = result["summary"]
        s.time_remaining = 0
        s.read_remaining = 0
        s.answer_deadline = None
        s.read_deadline = None

        record = CandidateRecord.from_session(s, completed_at=self.clock())
        s.record_id = record.id
        if self.records is not None:
            self.records.add(record)
        logger.info("Interview %s completed with score %s", s.session_id, s.final_score)
        return record

    def pause(self) -> None:
        s = self.session
        self._require_running()
        if s.is_paused:
            return
        now = self.clock()
        # Freeze the remaining seconds; resume re-arms the deadline from them.
        if s.phase == PHASE_READING:
            s.read_remaining = _seconds_until(s.read_deadline, now)
            s.read_deadline = None
        elif s.phase == PHASE_ANSWERING:
            s.time_remaining = _seconds_until(s.answer_deadline, now)
            s.answer_deadline = None
        s.is_paused = True

    def resume(self) -> None:
        s = self.session
        self._require_running()
        if not s.is_paused:
            return
        now = self.clock()
        if s.phase == PHASE_READING:
            s.read_deadline = now + s.read_remaining
        elif s.phase == PHASE_ANSWERING:
            s.answer_deadline = now + s.time_remaining
        s.is_paused = False

    def reset(self) -> InterviewSession:
        self.session = InterviewSession(session_id=self.session.session_id)
        return self.session

    # Guards.

    def _require_running(self) -> None:
        s = self.session
        if s.is_completed:
            raise InvalidStateError("Interview already completed.")
        if not s.is_active:
            raise InvalidStateError("Interview has not started.")

    def _require_answering(self) -> None:
        self._require_running()
        s = self.session
        if s.is_paused:
            raise InvalidStateError("Interview is paused.")
        if s.phase != PHASE_ANSWERING:
            raise InvalidStateError("Not accepting answers right now.")

    def view(self) -> dict:
        """Client-facing state: hides answers for questions not yet reached."""
        s = self.session
        question = s.current_question if s.is_active else None
        return {
            "session_id": s.session_id,
            "phase": s.phase,
            "candidate_info": asdict(s.candidate_info),
            "current_question_index": s.current_question_index,
            "total_questions": len(s.questions),
            "current_question": (
                {
                    "id": question.id,
                    "question": question.question,
                    "difficulty": question.difficulty,
                    "time_limit": question.time_limit,
                }
                if question
                else None
            ),
            "time_remaining": s.time_remaining,
            "read_time_remaining": s.read_remaining,
            "is_active": s.is_active,
            "is_paused": s.is_paused,
            "is_completed": s.is_completed,
            "resumable": bool(s.session_id and s.is_active and s.is_paused and not s.is_completed),
            "final_score": s.final_score,
            "ai_summary": s.ai_summary,
            "record_id": s.record_id,
            "answered": [
                {"id": q.id, "score": q.score, "ai_analysis": q.ai_analysis}
                for q in s.questions
                if q.answer is not None
            ],
        }
