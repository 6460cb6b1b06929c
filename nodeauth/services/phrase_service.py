import secrets
import time

import structlog
from sqlalchemy.orm import Session

from nodeauth.models.login_phrase import PHRASE_KIND_EMERGENCY, PHRASE_KIND_LOGIN, LoginPhrase
from nodeauth.services.store import delete_matching, first_or_none, insert_record

logger = structlog.get_logger()

TIMESTAMP_DIGITS = 13
MIN_PHRASE_LENGTH = 40


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def generate_phrase(timestamp_ms: int | None = None) -> str:
    """
    Generate a login phrase.

    Format: 13-digit epoch milliseconds || 32 hex chars of randomness (45 chars).
    """
    if timestamp_ms is None:
        timestamp_ms = now_ms()
    return f"{timestamp_ms:0{TIMESTAMP_DIGITS}d}{secrets.token_hex(16)}"


def phrase_timestamp(phrase: str) -> int | None:
    """Leading timestamp of a phrase, or None if it does not start with 13 digits."""
    head = phrase[:TIMESTAMP_DIGITS]
    if len(head) != TIMESTAMP_DIGITS or not head.isascii() or not head.isdigit():
        return None
    return int(head)


def _issue_phrase(db: Session, kind: str, timestamp_ms: int | None) -> LoginPhrase:
    if timestamp_ms is None:
        timestamp_ms = now_ms()

    phrase = LoginPhrase(
        login_phrase=generate_phrase(timestamp_ms),
        kind=kind,
        created_at=timestamp_ms,
    )
    insert_record(db, phrase)

    logger.info("login_phrase_issued", kind=kind, phrase_id=phrase.id)
    return phrase


def issue_login_phrase(db: Session, timestamp_ms: int | None = None) -> LoginPhrase:
    """Generate and persist a login phrase. Store failures raise StoreError."""
    return _issue_phrase(db, PHRASE_KIND_LOGIN, timestamp_ms)


def issue_emergency_phrase(db: Session, timestamp_ms: int | None = None) -> LoginPhrase:
    """
    Generate and persist an emergency login phrase.

    No hardware or DOS preconditions apply. Only the configured admin
    identity may log in with it.
    """
    return _issue_phrase(db, PHRASE_KIND_EMERGENCY, timestamp_ms)


def find_latest_phrase(db: Session, login_phrase: str) -> LoginPhrase | None:
    """Most recent unconsumed record for a phrase, or None if there is none."""
    query = (
        db.query(LoginPhrase)
        .filter(
            LoginPhrase.login_phrase == login_phrase,
            LoginPhrase.consumed_at == None,  # noqa: E711 - SQLAlchemy requires ==
        )
        .order_by(LoginPhrase.created_at.desc())
    )
    return first_or_none(query)


def mark_consumed(phrase: LoginPhrase, timestamp_ms: int | None = None) -> None:
    """
    Mark a phrase as used so it cannot log in again.

    Does not commit; the caller persists it together with the login record.
    """
    phrase.consumed_at = now_ms() if timestamp_ms is None else timestamp_ms


def cleanup_expired_phrases(db: Session, max_age_ms: int, timestamp_ms: int | None = None) -> int:
    """Delete phrases older than the validity window. Returns count of deleted rows."""
    if timestamp_ms is None:
        timestamp_ms = now_ms()
    query = db.query(LoginPhrase).filter(LoginPhrase.created_at < timestamp_ms - max_age_ms)
    return delete_matching(db, query)
