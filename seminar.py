"""Seminar landing page, registration form and registration endpoint."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Tuple

from flask import (
    Blueprint,
    current_app,
    flash,
    jsonify,
    redirect,
    render_template,
    request,
    url_for,
)

from mailer import EmailSender, SmtpConfig
from seminar_db import RegistrationStore
from seminar_settings import (
    FLASH_FAILURE,
    FLASH_SUCCESS,
    REGISTRATION_COMPLETED,
    REGISTRATION_FAILED,
    SEMINAR_ADMIN_EMAIL,
    SEMINAR_CONTACT_EMAIL,
    SEMINAR_CREATE_SCHEMA,
    SEMINAR_DATE,
    SEMINAR_DESCRIPTION,
    SEMINAR_ID,
    SEMINAR_ORGANIZER,
    SEMINAR_SERIES,
    SEMINAR_SUBTITLE,
    SEMINAR_TIME,
    SEMINAR_TITLE,
)

seminar_bp = Blueprint("seminar", __name__, template_folder="templates")

logger = logging.getLogger(__name__)

FORM_FIELDS = ("company", "name", "position", "email", "phone", "challenge")
REQUIRED_FIELDS = ("company", "name", "position", "email", "phone")

_REQUIRED_MESSAGES = {
    "company": "会社名は必須です",
    "name": "名前は必須です",
    "position": "役職は必須です",
    "email": "メールアドレスは必須です",
    "phone": "電話番号は必須です",
}
_INVALID_EMAIL_MESSAGE = "有効なメールアドレスを入力してください"


def _seminar_context() -> Dict[str, str]:
    return dict(
        id=SEMINAR_ID,
        series=SEMINAR_SERIES,
        title=SEMINAR_TITLE,
        subtitle=SEMINAR_SUBTITLE,
        date=SEMINAR_DATE,
        time=SEMINAR_TIME,
        description=SEMINAR_DESCRIPTION,
        organizer=SEMINAR_ORGANIZER,
        contact_email=SEMINAR_CONTACT_EMAIL,
    )


# ───────────────────────────────────────────────────────────────
# Collaborators
# ───────────────────────────────────────────────────────────────
def _resolve_store() -> RegistrationStore:
    store = current_app.config.get("SEMINAR_STORE")
    if store is None:
        store = RegistrationStore.from_env(create_schema=SEMINAR_CREATE_SCHEMA)
        current_app.config["SEMINAR_STORE"] = store
    return store


def _resolve_sender() -> EmailSender:
    sender = current_app.config.get("EMAIL_SENDER")
    if sender is None:
        sender = EmailSender(SmtpConfig.from_env())
        current_app.config["EMAIL_SENDER"] = sender
    return sender


def _resolve_admin_email() -> str:
    return current_app.config.get("SEMINAR_ADMIN_EMAIL") or SEMINAR_ADMIN_EMAIL


# ───────────────────────────────────────────────────────────────
# Emails
# ───────────────────────────────────────────────────────────────
def _header_text(value: str) -> str:
    # Header values may not contain CR/LF.
    return " ".join(value.split())


def _compose_admin_email(record: Mapping[str, Any]) -> Tuple[str, str, str]:
    subject = _header_text(f"【セミナー申込】{record['company_name']} {record['name']}様")
    context = dict(seminar=_seminar_context(), registration=record)
    text_body = render_template("email/seminar_admin_notice.txt", **context)
    html_body = render_template("email/seminar_admin_notice.html", **context)
    return subject, text_body, html_body


def _compose_confirmation_email(record: Mapping[str, Any]) -> Tuple[str, str, str]:
    subject = f"【{SEMINAR_ORGANIZER}】セミナーお申し込みありがとうございます"
    context = dict(seminar=_seminar_context(), registration=record)
    text_body = render_template("email/seminar_confirmation.txt", **context)
    html_body = render_template("email/seminar_confirmation.html", **context)
    return subject, text_body, html_body


# ───────────────────────────────────────────────────────────────
# Registration procedure
# ───────────────────────────────────────────────────────────────
def submit_registration(
    payload: Mapping[str, Any],
    store: RegistrationStore,
    sender: EmailSender,
    admin_email: str,
) -> Dict[str, Any]:
    """Store one registration, then notify the admin and the submitter.

    Only the insert decides the outcome. Store errors are logged and turned
    into a failure result; email failures are logged and otherwise ignored.
    Must be called inside an application context (email bodies are templates).
    """
    record = {
        "company_name": payload["company"],
        "name": payload["name"],
        "position": payload["position"],
        "email": payload["email"],
        "phone": payload["phone"],
        "challenge": payload.get("challenge"),
    }

    try:
        store.create(record)
    except Exception:
        logger.exception("Registration insert failed for %s", record["email"])
        return {"success": False, "message": REGISTRATION_FAILED}

    subject, text_body, html_body = _compose_admin_email(record)
    if not sender.send(admin_email, subject, text_body, html_body):
        logger.warning("Admin notification not sent (subject=%r)", subject)

    subject, text_body, html_body = _compose_confirmation_email(record)
    if not sender.send(record["email"], subject, text_body, html_body):
        logger.warning("Confirmation email not sent to %s", record["email"])

    return {"success": True, "message": REGISTRATION_COMPLETED}


# ───────────────────────────────────────────────────────────────
# Form
# ───────────────────────────────────────────────────────────────
def _registration_form_payload() -> Dict[str, str]:
    return {field: (request.form.get(field) or "").strip() for field in FORM_FIELDS}


def validate_registration_form(form: Mapping[str, str]) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for field in REQUIRED_FIELDS:
        if not (form.get(field) or "").strip():
            errors[field] = _REQUIRED_MESSAGES[field]
    email = (form.get("email") or "").strip()
    if email and "@" not in email:
        errors["email"] = _INVALID_EMAIL_MESSAGE
    return errors


def _render_page(form: Mapping[str, str] | None = None, errors: Mapping[str, str] | None = None):
    return render_template(
        "seminar.html",
        seminar=_seminar_context(),
        form_data=form or {},
        errors=errors or {},
        submitted=request.args.get("submitted") == "1",
    )


# ───────────────────────────────────────────────────────────────
# Views
# ───────────────────────────────────────────────────────────────
@seminar_bp.get("/")
def landing_page():
    return _render_page()


@seminar_bp.post("/submit")
def submit_form():
    form = _registration_form_payload()

    errors = validate_registration_form(form)
    if errors:
        return _render_page(form, errors), 400

    payload = dict(form)
    payload["challenge"] = form["challenge"] or None

    result = submit_registration(payload, _resolve_store(), _resolve_sender(), _resolve_admin_email())
    if result["success"]:
        flash(FLASH_SUCCESS, "success")
        return redirect(url_for("seminar.landing_page", submitted=1, _anchor="registration-form"))

    flash(FLASH_FAILURE, "error")
    return _render_page(form)


def _transport_errors(data: Any) -> list[str]:
    if not isinstance(data, dict):
        return ["Request body must be a JSON object."]
    errors = []
    for field in REQUIRED_FIELDS:
        if not isinstance(data.get(field), str):
            errors.append(f"{field} must be a string.")
    challenge = data.get("challenge")
    if challenge is not None and not isinstance(challenge, str):
        errors.append("challenge must be a string or null.")
    return errors


@seminar_bp.post("/api/seminar/registrations")
def submit_registration_api():
    data = request.get_json(silent=True)
    errors = _transport_errors(data)
    if errors:
        return jsonify({"success": False, "message": "Invalid input", "errors": errors}), 400

    result = submit_registration(data, _resolve_store(), _resolve_sender(), _resolve_admin_email())
    return jsonify(result), 200
