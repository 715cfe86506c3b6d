import hmac
from functools import wraps

from flask import Blueprint, current_app, jsonify, request, session

from errors import AuthenticationError
from services.candidate_store import CandidateStore, difficulty_breakdown, score_band, stats


dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api")


def interviewer_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if session.get("user_type") != "interviewer":
            raise AuthenticationError("Interviewer login required.")
        return view(*args, **kwargs)

    return wrapper


def _summary_row(record) -> dict:
    return {
        "id": record.id,
        "name": record.name,
        "email": record.email,
        "phone": record.phone,
        "final_score": record.final_score,
        "score_band": score_band(record.final_score),
        "completed_at": record.completed_at,
        "duration": record.duration,
        "question_count": len(record.questions),
    }


def _detail(record) -> dict:
    detail = record.to_dict()
    detail["score_band"] = score_band(record.final_score)
    detail["difficulty_scores"] = difficulty_breakdown(record)
    return detail


@dashboard_bp.route("/auth/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or request.form.to_dict()
    email = str(data.get("email", "")).strip()
    password = str(data.get("password", ""))
    email_ok = hmac.compare_digest(email.encode(), current_app.config["INTERVIEWER_EMAIL"].encode())
    password_ok = hmac.compare_digest(password.encode(), current_app.config["INTERVIEWER_PASSWORD"].encode())
    if not (email_ok and password_ok):
        current_app.logger.warning("Rejected interviewer login for %s", email or "<blank>")
        raise AuthenticationError("Invalid email or password.")
    session["user_type"] = "interviewer"
    session["email"] = email
    return jsonify({"user_type": "interviewer", "email": email})


@dashboard_bp.route("/auth/logout", methods=["POST"])
def logout():
    session.pop("user_type", None)
    session.pop("email", None)
    return jsonify({"logged_out": True})


@dashboard_bp.route("/dashboard/candidates", methods=["GET"])
@interviewer_required
def list_candidates():
    store = CandidateStore()
    records = store.list_records(
        search=request.args.get("search", ""),
        sort_by=request.args.get("sort_by", "score"),
        order=request.args.get("order", "desc"),
    )
    return jsonify(
        {
            "candidates": [_summary_row(record) for record in records],
            "stats": stats(store.list_records()),
        }
    )


@dashboard_bp.route("/dashboard/candidates/<string:record_id>", methods=["GET"])
@interviewer_required
def candidate_detail(record_id: str):
    return jsonify(_detail(CandidateStore().get(record_id)))


@dashboard_bp.route("/dashboard/candidates/<string:record_id>", methods=["DELETE"])
@interviewer_required
def delete_candidate(record_id: str):
    CandidateStore().delete(record_id)
    return jsonify({"deleted": record_id})


@dashboard_bp.route("/results", methods=["GET"])
def candidate_results():
    # Unknown phone numbers get an empty result rather than an error.
    record = CandidateStore().find_by_phone(request.args.get("phone", ""))
    return jsonify({"candidate": _detail(record) if record else None})
