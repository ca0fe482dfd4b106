import os, logging
from flask import Flask, Response, redirect, request
from sqlalchemy import text
from werkzeug.middleware.proxy_fix import ProxyFix

from mailer import EmailSender, SmtpConfig
from seminar_db import RegistrationStore
from seminar_settings import SEMINAR_ADMIN_EMAIL, SEMINAR_CREATE_SCHEMA, SESSION_COOKIE_SECURE

# ---------------- App & config ----------------
app = Flask(__name__)
app.secret_key = os.getenv("SECRET_KEY", "dev-secret-change-me")
app.config.update(
    SESSION_COOKIE_SECURE=SESSION_COOKIE_SECURE,
    SESSION_COOKIE_HTTPONLY=True,
    SESSION_COOKIE_SAMESITE="Lax",
)
app.json.ensure_ascii = False

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=LOG_LEVEL)
log = logging.getLogger("seminar-lp")

CANONICAL_HOST = os.getenv("CANONICAL_HOST", "").strip().lower()

# -------------- Collaborators --------------
STORE = RegistrationStore.from_env(create_schema=SEMINAR_CREATE_SCHEMA)
app.config["SEMINAR_STORE"] = STORE
app.config["EMAIL_SENDER"] = EmailSender(SmtpConfig.from_env())
app.config["SEMINAR_ADMIN_EMAIL"] = SEMINAR_ADMIN_EMAIL

if not STORE.available:
    log.warning("Starting without a database; registrations will fail until one is configured")

# -------------- Routes --------------
@app.get("/robots.txt")
def robots_txt() -> Response:
    return Response("User-agent: *\nDisallow:\n", mimetype="text/plain")

@app.get("/healthz")
def healthz():
    if STORE.engine is None:
        return "db error", 500
    try:
        with STORE.engine.begin() as c:
            c.execute(text("SELECT 1"))
        return "ok", 200
    except Exception:
        log.exception("Health check failed")
        return "db error", 500

# ---- Blueprints ----
from seminar import seminar_bp
app.register_blueprint(seminar_bp)

# Trust the hosting proxy so scheme/host are correct
app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)

@app.before_request
def force_canonical_host():
    if CANONICAL_HOST and request.host.lower() != CANONICAL_HOST:
        return redirect(request.url.replace(f"://{request.host}", f"://{CANONICAL_HOST}", 1), 301)


# ---------------------------------------------------------------
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=int(os.getenv("PORT", 8080)), debug=False)
