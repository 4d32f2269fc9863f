"""
Onboarding Request Blueprint

Endpoints:
    POST   /api/onboarding                 → create request (201)
    GET    /api/onboarding                 → list (status, assignedTeam, search, page, limit)
    GET    /api/onboarding/stats           → total / byStatus / byTeam
    GET    /api/onboarding/<id>            → detail incl. status history + team assignments
    PUT    /api/onboarding/<id>            → update client fields
    PATCH  /api/onboarding/<id>/status     → status transition (actor from X-User-ID)
    PATCH  /api/onboarding/<id>/team       → manual team override
    GET    /api/onboarding/<id>/history    → status history, newest first

Responses use the ``{"success": bool, "data": ...}`` envelope.
Service layer owns all business logic and commits.
"""

import logging

from email_validator import EmailNotValidError, validate_email
from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

from app.blueprints import FIELD_MAP, page_args, request_actor, to_model_fields
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.services import onboarding_service as svc
from app.utils.errors import E, api_error

logger = logging.getLogger(__name__)

onboarding_bp = Blueprint("onboarding", __name__, url_prefix="/api/onboarding")

_REQUIRED = ("tradingName", "contactName", "contactEmail")


# ── Error handlers ────────────────────────────────────────────────────────────


@onboarding_bp.errorhandler(NotFoundError)
def _handle_not_found(error: NotFoundError):
    return api_error(E.NOT_FOUND, "Request not found")


@onboarding_bp.errorhandler(ValidationError)
def _handle_validation(error: ValidationError):
    return api_error(E.VALIDATION_INVALID, str(error), details=error.details)


@onboarding_bp.errorhandler(StorageError)
def _handle_storage(error: StorageError):
    logger.error("Storage failure in onboarding endpoint=%s: %s", request.endpoint, error)
    return api_error(E.DATABASE, "Failed to process onboarding request")


@onboarding_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return error
    logger.exception("Unexpected error in onboarding_bp endpoint=%s", request.endpoint)
    return api_error(E.INTERNAL, "Internal server error")


# ── Input validation ──────────────────────────────────────────────────────────


def _validate_payload(data, *, partial=False):
    """Check required fields, string types and the contact email.

    Returns a details dict (empty when valid). Normalises contactEmail in place.
    """
    errors = {}
    for key in _REQUIRED:
        if partial and key not in data:
            continue
        value = data.get(key)
        if not isinstance(value, str) or not value.strip():
            errors[key] = "is required"

    # keys outside FIELD_MAP (status, completionPercentage, ...) are dropped later
    for key, value in data.items():
        if key in FIELD_MAP and key not in _REQUIRED and value is not None and not isinstance(value, str):
            errors[key] = "must be a string"

    email = data.get("contactEmail")
    if "contactEmail" not in errors and isinstance(email, str) and email.strip():
        try:
            data["contactEmail"] = validate_email(email.strip(), check_deliverability=False).normalized
        except EmailNotValidError as e:
            errors["contactEmail"] = f"Valid email is required ({e})"
    return errors


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


# ═════════════════════════════════════════════════════════════════════════
# Collection
# ═════════════════════════════════════════════════════════════════════════


@onboarding_bp.route("", methods=["POST"])
def create_request():
    """Create an onboarding request; routing is scheduled in the background."""
    data = _json_body()
    errors = _validate_payload(data)
    if errors:
        return api_error(E.VALIDATION_REQUIRED, "Validation error", details=errors)

    req = svc.create_request(to_model_fields(data), actor=request_actor())
    return jsonify({"success": True, "data": req.to_dict()}), 201


@onboarding_bp.route("", methods=["GET"])
def list_requests():
    """Filtered, paginated list ordered newest first."""
    page, limit = page_args()
    result = svc.list_requests(
        status=request.args.get("status") or None,
        assigned_team=request.args.get("assignedTeam") or None,
        search=request.args.get("search") or None,
        page=page,
        limit=limit,
    )
    return jsonify({
        "success": True,
        "data": [r.to_dict() for r in result["items"]],
        "pagination": {
            "page": result["page"],
            "limit": result["limit"],
            "total": result["total"],
            "totalPages": result["totalPages"],
        },
    })


@onboarding_bp.route("/stats", methods=["GET"])
def get_stats():
    return jsonify({"success": True, "data": svc.get_stats()})


# ═════════════════════════════════════════════════════════════════════════
# Single request
# ═════════════════════════════════════════════════════════════════════════


@onboarding_bp.route("/<request_id>", methods=["GET"])
def get_request(request_id):
    req = svc.get_request(request_id)
    return jsonify({"success": True, "data": req.to_dict(include_history=True)})


@onboarding_bp.route("/<request_id>", methods=["PUT"])
def update_request(request_id):
    """Update client fields. Status and completion are not editable here."""
    data = _json_body()
    errors = _validate_payload(data, partial=True)
    if errors:
        return api_error(E.VALIDATION_REQUIRED, "Validation error", details=errors)

    req = svc.update_fields(request_id, to_model_fields(data), actor=request_actor())
    return jsonify({"success": True, "data": req.to_dict()})


@onboarding_bp.route("/<request_id>/status", methods=["PATCH"])
def update_status(request_id):
    """Body: {"status": str, "notes"?: str}."""
    data = _json_body()
    status = data.get("status")
    if not isinstance(status, str) or not status:
        return api_error(E.VALIDATION_REQUIRED, "Validation error",
                         details={"status": "is required"})
    notes = data.get("notes")
    if notes is not None and not isinstance(notes, str):
        return api_error(E.VALIDATION_INVALID, "Validation error",
                         details={"notes": "must be a string"})

    req = svc.transition_status(request_id, status, actor=request_actor(), notes=notes)
    return jsonify({"success": True, "data": req.to_dict()})


@onboarding_bp.route("/<request_id>/team", methods=["PATCH"])
def reassign_team(request_id):
    """Body: {"assignedTeam": str}."""
    data = _json_body()
    team = data.get("assignedTeam")
    if not isinstance(team, str):
        return api_error(E.VALIDATION_REQUIRED, "Validation error",
                         details={"assignedTeam": "is required"})
    req = svc.reassign_team(request_id, team, actor=request_actor())
    return jsonify({"success": True, "data": req.to_dict()})


@onboarding_bp.route("/<request_id>/history", methods=["GET"])
def get_history(request_id):
    entries = svc.get_history(request_id)
    return jsonify({"success": True, "data": [e.to_dict() for e in entries]})
