from flask import Blueprint, current_app, jsonify, request

from errors import ValidationError
from services.candidate_store import CandidateStore
from services.interview_service import InterviewEngine
from services.resume_service import get_missing_fields, parse_resume, validate_candidate_info, validate_upload
from services.session_store import create_session, load_session, save_session


interview_bp = Blueprint("interview", __name__, url_prefix="/api/interview")


def _payload() -> dict:
    return request.get_json(silent=True) or request.form.to_dict()


def _engine(session_id: str) -> InterviewEngine:
    return InterviewEngine(
        session=load_session(session_id),
        ai=current_app.extensions["gemini"],
        records=CandidateStore(),
        clock=current_app.extensions["interview_clock"],
        read_delay_enabled=current_app.config.get("READ_DELAY_ENABLED", True),
    )


def _respond(engine: InterviewEngine, record=None, status: int = 200):
    save_session(engine.session)
    body = engine.view()
    if record is not None:
        body["record"] = record.to_dict()
    return jsonify(body), status


@interview_bp.route("", methods=["POST"])
def create_interview():
    session = create_session()
    return jsonify({"session_id": session.session_id}), 201


@interview_bp.route("/<string:session_id>", methods=["GET"])
def interview_state(session_id: str):
    engine = _engine(session_id)
    record = engine.tick()
    return _respond(engine, record)


@interview_bp.route("/<string:session_id>/upload", methods=["POST"])
def upload_resume(session_id: str):
    engine = _engine(session_id)
    uploaded = request.files.get("file")
    if uploaded is None or not uploaded.filename:
        raise ValidationError("Please choose a resume file to upload.")

    raw = uploaded.read()
    validate_upload(uploaded.filename, len(raw), current_app.config["MAX_RESUME_BYTES"])
    resume = parse_resume(uploaded.filename, raw)
    engine.set_candidate_info(
        name=resume.name,
        email=resume.email,
        phone=resume.phone,
        resume_text=resume.full_text,
    )
    save_session(engine.session)
    missing = get_missing_fields(resume)
    current_app.logger.info("Resume parsed for %s; missing fields: %s", session_id, missing or "none")
    return jsonify({"resume": resume.to_dict(), "missing_fields": missing})


@interview_bp.route("/<string:session_id>/candidate", methods=["POST"])
def candidate_info(session_id: str):
    engine = _engine(session_id)
    data = _payload()
    cleaned = validate_candidate_info(data.get("name", ""), data.get("email", ""), data.get("phone", ""))
    engine.set_candidate_info(**cleaned)
    return _respond(engine)


@interview_bp.route("/<string:session_id>/start", methods=["POST"])
def start_interview(session_id: str):
    engine = _engine(session_id)
    engine.start()
    return _respond(engine)


@interview_bp.route("/<string:session_id>/answering", methods=["POST"])
def begin_answering(session_id: str):
    engine = _engine(session_id)
    engine.tick()
    engine.begin_answering()
    return _respond(engine)


@interview_bp.route("/<string:session_id>/draft", methods=["POST"])
def save_draft(session_id: str):
    engine = _engine(session_id)
    text = str(_payload().get("answer") or "")
    # Text arriving after the deadline belongs to the question that timed out.
    if engine.answer_time_spent():
        return _respond(engine, engine.time_up(text))
    record = engine.tick()
    if record is None and not engine.session.is_completed:
        engine.save_draft(text)
    return _respond(engine, record)


@interview_bp.route("/<string:session_id>/answer", methods=["POST"])
def submit_answer(session_id: str):
    engine = _engine(session_id)
    data = _payload()
    answer = str(data.get("answer", "")).strip()
    auto_timeout = str(data.get("auto_timeout", "")).strip() in {"1", "true"}

    # An expired deadline counts as a timeout whatever the client reports.
    if auto_timeout or engine.answer_time_spent():
        record = engine.time_up(answer)
    else:
        record = engine.submit_answer(answer)
    return _respond(engine, record)


@interview_bp.route("/<string:session_id>/pause", methods=["POST"])
def pause_interview(session_id: str):
    engine = _engine(session_id)
    record = engine.tick()
    if record is None and not engine.session.is_completed:
        engine.pause()
    return _respond(engine, record)


@interview_bp.route("/<string:session_id>/resume", methods=["POST"])
def resume_interview(session_id: str):
    engine = _engine(session_id)
    engine.resume()
    return _respond(engine)


@interview_bp.route("/<string:session_id>/reset", methods=["POST"])
def reset_interview(session_id: str):
    engine = _engine(session_id)
    engine.reset()
    return _respond(engine)
