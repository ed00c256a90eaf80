"""Discourse Service HTTP handler.

This module provides the HTTP interface for the Discourse Service. The job
pipeline posts a finished lesson transcript and receives the deterministic
half of the compliance judgment.

No transcript text in logs - only its length and fingerprint.
Lesson identifiers are hashed with hash_pii() before logging.
"""
import logging
import os
from typing import Optional, Tuple

from flask import Flask, jsonify, request

from lessonguard.shared.utils import configure_pii_salt, hash_pii, hash_text_for_audit
from . import behavior_detector, contradiction_analyzer, legal_compliance_checker
from .config import EngineConfig

logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)

# Configure PII salt from environment
pii_salt = os.getenv("PII_HASH_SALT", "default_dev_salt_change_in_production_32chars")
configure_pii_salt(pii_salt)

config = EngineConfig(
    pattern_version=os.getenv("PATTERN_VERSION", EngineConfig.pattern_version),
)

ANALYZERS = {
    "behavior": behavior_detector.analyze,
    "context": contradiction_analyzer.analyze,
    "compliance": legal_compliance_checker.check_compliance,
}

# Known-clean lesson run through the full pipeline by /ready
READINESS_TRANSCRIPT = "Hoje vamos falar sobre respeito e bullying. O que vocês acham?"


@app.route("/health", methods=["GET"])
def health():
    """Health check endpoint for the load balancer.

    Returns:
        200 with service status
    """
    return jsonify({
        "status": "healthy",
        "service": "discourse-service",
        "pattern_version": config.pattern_version,
    }), 200


@app.route("/ready", methods=["GET"])
def ready():
    """Readiness check - runs a known lesson through the compliance pipeline.

    Returns:
        200 if ready, 503 if not
    """
    try:
        ANALYZERS["compliance"](READINESS_TRANSCRIPT).to_dict()
    except Exception as e:
        logger.error(
            "READINESS_CHECK_FAILED",
            extra={"error": str(e), "error_type": type(e).__name__}
        )
        return jsonify({"status": "not_ready", "reason": "analysis_failed"}), 503
    return jsonify({"status": "ready"}), 200


def _read_transcript(endpoint: str) -> Tuple[Optional[str], Optional[str], Optional[tuple]]:
    """Validate the request body.

    Returns:
        (transcript, lesson_id, error_response); error_response is None
        when the body is valid
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        logger.warning(
            "ANALYSIS_REQUEST_INVALID",
            extra={"endpoint": endpoint, "reason": "body_not_json_object"}
        )
        return None, None, (jsonify({"error": "JSON object body required"}), 400)

    transcript = data.get("transcript")
    if transcript is not None and not isinstance(transcript, str):
        logger.warning(
            "ANALYSIS_REQUEST_INVALID",
            extra={"endpoint": endpoint, "reason": "transcript_not_string"}
        )
        return None, None, (jsonify({"error": "Field 'transcript' must be a string"}), 400)

    lesson_id = data.get("lesson_id", "unknown")
    return transcript, str(lesson_id), None


def _run_analysis(endpoint: str):
    """Shared request flow for every analysis endpoint.

    Error Handling:
        400 for malformed bodies; 500 (logged) for unexpected failures.
        A null or missing transcript is analyzed as empty text.
    """
    transcript, lesson_id, error = _read_transcript(endpoint)
    if error is not None:
        return error

    lesson_id_hash = hash_pii(lesson_id)
    logger.info(
        "ANALYSIS_REQUESTED",
        extra={
            "endpoint": endpoint,
            "lesson_id_hash": lesson_id_hash,
            "text_hash": hash_text_for_audit(transcript),
            "transcript_length": len(transcript or ""),
        }
    )

    try:
        report = ANALYZERS[endpoint](transcript)
    except Exception as e:
        logger.error(
            "ANALYSIS_ERROR",
            extra={
                "endpoint": endpoint,
                "lesson_id_hash": lesson_id_hash,
                "error": str(e),
                "error_type": type(e).__name__,
            }
        )
        return jsonify({"error": "Analysis failed"}), 500

    body = report.to_dict()
    body["pattern_version"] = config.pattern_version
    return jsonify(body), 200


@app.route("/analyze/behavior", methods=["POST"])
def analyze_behavior():
    """Run the five behavior detectors.

    Request Body:
        {"transcript": "...", "lesson_id": "lesson_123" (optional)}

    Response:
        BehaviorReport: per-family results, safety_score, lei_13185_risk, summary
    """
    return _run_analysis("behavior")


@app.route("/analyze/context", methods=["POST"])
def analyze_context():
    """Compare lesson topics with practiced behaviors.

    Response:
        ContextReport: detected_topics, contradictions, hypocrisy_score,
        teaching/practicing flags, recommendation
    """
    return _run_analysis("context")


@app.route("/compliance", methods=["POST"])
def compliance():
    """Full Lei 13.185 compliance check.

    Response:
        {
            "lei_13185": {...},
            "context_analysis": {...},
            "behavior": {...},
            "overall_compliance": "compliant" | "partial" | "non_compliant" | "violation",
            "overall_risk": "none" | "low" | "medium" | "high" | "critical",
            "combined_score": 0-100,
            "legal_summary": "✅ CONFORME - ..."
        }
    """
    return _run_analysis("compliance")


if __name__ == "__main__":
    # Configure logging
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    # Run development server
    port = int(os.getenv("PORT", "8002"))
    app.run(host="0.0.0.0", port=port, debug=False)
