import logging
import time

from flask import Flask, current_app, jsonify
from werkzeug.exceptions import RequestEntityTooLarge

from config import Config
from errors import InterviewError, ValidationError
from models import db
from routes.dashboard_routes import dashboard_bp
from routes.interview_routes import interview_bp
from services.gemini_service import GeminiService


def handle_interview_error(exc: InterviewError):
    return jsonify(exc.to_dict()), exc.status_code


def handle_upload_too_large(exc: RequestEntityTooLarge):
    limit_mb = current_app.config["MAX_RESUME_BYTES"] // (1024 * 1024)
    error = ValidationError(f"File size must be less than {limit_mb}MB.")
    return jsonify(error.to_dict()), 413


def configure_logging(app: Flask) -> None:
    level = app.config.get("LOG_LEVEL", "INFO")
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    app.logger.setLevel(level)


def create_app(config_object=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_object)
    configure_logging(app)

    db.init_app(app)
    app.extensions["gemini"] = GeminiService.from_config(app.config)
    app.extensions["interview_clock"] = time.time

    app.register_blueprint(interview_bp)
    app.register_blueprint(dashboard_bp)
    app.register_error_handler(InterviewError, handle_interview_error)
    app.register_error_handler(RequestEntityTooLarge, handle_upload_too_large)

    with app.app_context():
        db.create_all()

    if not app.config.get("GEMINI_API_KEY", "").strip():
        app.logger.warning("GEMINI_API_KEY is empty. Interviews will use fallback questions and scoring.")

    return app


if __name__ == "__main__":
    create_app().run(debug=True)
