"""Shared seminar configuration pulled from environment variables."""
import os


def _get_env_setting(key: str, default: str = "") -> str:
    value = os.getenv(key)
    if value is None:
        return default.strip()
    return value.strip()


def _bool_env(name: str, default: str = "false") -> bool:
    value = os.getenv(name, default)
    if value is None:
        return False
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


SEMINAR_ID = _get_env_setting("SEMINAR_ID", "vol3")
SEMINAR_SERIES = _get_env_setting("SEMINAR_SERIES", "産業機械DXウェビナー 営業改革シリーズ")
SEMINAR_TITLE = _get_env_setting("SEMINAR_TITLE", "「商談時間」を最大化する")
SEMINAR_SUBTITLE = _get_env_setting("SEMINAR_SUBTITLE", "～煩雑な業務をAIで自動化し、顧客に向き合う～")
SEMINAR_DATE = _get_env_setting("SEMINAR_DATE", "2026年3月3日(火)")
SEMINAR_TIME = _get_env_setting("SEMINAR_TIME", "14:00～15:00")
SEMINAR_DESCRIPTION = _get_env_setting(
    "SEMINAR_DESCRIPTION",
    "提案書作成、顧客フォロー、見積調整に時間をとられていませんか？"
    "最新AIツールを活用して、顧客価値を最大化する営業へ進化しましょう！",
)
SEMINAR_ORGANIZER = _get_env_setting("SEMINAR_ORGANIZER", "anyenv株式会社")
SEMINAR_CONTACT_EMAIL = _get_env_setting("SEMINAR_CONTACT_EMAIL", "info@anyenv-inc.com")

# Every registration is copied to this address.
SEMINAR_ADMIN_EMAIL = _get_env_setting("SEMINAR_ADMIN_EMAIL", SEMINAR_CONTACT_EMAIL)

# Create the registrations table on startup when it is missing.
SEMINAR_CREATE_SCHEMA = _bool_env("SEMINAR_CREATE_SCHEMA", "true")

REGISTRATION_COMPLETED = "Registration completed"
REGISTRATION_FAILED = "Registration failed"

FLASH_SUCCESS = "申し込みが完了しました。確認メールをご確認ください。"
FLASH_FAILURE = "申し込み処理中にエラーが発生しました。もう一度お試しください。"

# Disable when serving plain HTTP.
SESSION_COOKIE_SECURE = _bool_env("SESSION_COOKIE_SECURE", "true")
