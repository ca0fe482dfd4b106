"""SMTP email sender used for registration notifications."""
from __future__ import annotations

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from seminar_settings import _get_env_setting

log = logging.getLogger(__name__)


def _load_secret_file(path: str) -> str:
    if not path:
        return ""
    try:
        with open(path, "r", encoding="utf-8") as handle:
            return handle.read().strip()
    except OSError:
        log.warning("Unable to read secret file %s", path)
        return ""


@dataclass(frozen=True)
class SmtpConfig:
    """Connection settings and credential for the outgoing mail server."""

    host: str = "smtp.gmail.com"
    port: int = 465
    username: str = ""
    password: str = ""
    from_address: str = ""
    timeout: Optional[float] = None
    starttls: bool = False
    auth_method: str = ""

    @property
    def has_credential(self) -> bool:
        return bool(self.username and self.password)

    @classmethod
    def from_env(cls) -> "SmtpConfig":
        port = int(_get_env_setting("SMTP_PORT", "465"))

        timeout_raw = _get_env_setting("SMTP_TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else None
        except ValueError:
            log.warning("Invalid SMTP_TIMEOUT value %s; ignoring", timeout_raw)
            timeout = None

        password = _get_env_setting("SMTP_PASSWORD")
        if not password:
            password = _load_secret_file(_get_env_setting("SMTP_PASSWORD_FILE"))

        starttls_default = "true" if port not in (25, 2525, 465) else "false"
        starttls = _get_env_setting("SMTP_STARTTLS", starttls_default).lower() in {
            "1",
            "true",
            "yes",
            "on",
        }

        username = _get_env_setting("SMTP_USERNAME")
        return cls(
            host=_get_env_setting("SMTP_HOST", "smtp.gmail.com"),
            port=port,
            username=username,
            password=password,
            from_address=_get_env_setting("SMTP_FROM", username),
            timeout=timeout,
            starttls=starttls,
            auth_method=_get_env_setting("SMTP_AUTH_METHOD").upper(),
        )


class EmailSender:
    """Sends one message per call; reports the outcome as a boolean."""

    def __init__(self, config: SmtpConfig):
        self.config = config

    def _authenticate(self, session: smtplib.SMTP) -> None:
        username, password = self.config.username, self.config.password
        session.user, session.password = username, password
        if self.config.auth_method:
            method = self.config.auth_method.replace("-", "_")
            auth_callable = getattr(session, f"auth_{method.lower()}", None)
            if not auth_callable:
                raise smtplib.SMTPException(
                    f"SMTP auth method {self.config.auth_method} is not supported by smtplib"
                )
            session.auth(self.config.auth_method, auth_callable)
        else:
            session.login(username, password)

    def _build_message(self, to: str, subject: str, text: str, html: str | None) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.config.from_address or self.config.username
        message["To"] = to
        message.set_content(text)
        if html:
            message.add_alternative(html, subtype="html")
        return message

    def send(self, to: str, subject: str, text: str, html: str | None = None) -> bool:
        if not self.config.has_credential:
            log.warning("Email skipped: SMTP credential not configured")
            return False
        if not to:
            log.warning("Email skipped: no recipient (subject=%r)", subject)
            return False

        cfg = self.config

        try:
            message = self._build_message(to, subject, text, html)
            if cfg.port == 465:
                with smtplib.SMTP_SSL(
                    cfg.host, cfg.port, context=ssl.create_default_context(), timeout=cfg.timeout
                ) as smtp:
                    self._authenticate(smtp)
                    refused = smtp.send_message(message)
            else:
                with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout) as smtp:
                    if cfg.starttls:
                        smtp.ehlo()
                        smtp.starttls(context=ssl.create_default_context())
                        smtp.ehlo()
                    self._authenticate(smtp)
                    refused = smtp.send_message(message)
        except Exception:
            log.exception("Failed to send email to %s", to)
            return False

        if refused:
            log.warning("SMTP server refused recipients %s", sorted(refused))
            return False

        log.info("Email sent to %s", to)
        return True
