import re
from typing import Protocol

import structlog
from sqlalchemy.orm import Session

from nodeauth.config import settings
from nodeauth.errors import ExpiredChallengeError, SignatureError, ValidationError
from nodeauth.models.logged_user import LoggedUser
from nodeauth.models.login_phrase import LoginPhrase
from nodeauth.schemas.login import LoginRequest
from nodeauth.services.phrase_service import (
    MIN_PHRASE_LENGTH,
    find_latest_phrase,
    mark_consumed,
    now_ms,
    phrase_timestamp,
)
from nodeauth.services.store import delete_matching, insert_record

logger = structlog.get_logger()

# Single-signature address: leading "1", 25 to 34 characters
ZELID_PATTERN = re.compile(r"1.{24,33}")

PRIVILEGE_USER = "user"
PRIVILEGE_ADMIN = "admin"


class SignatureVerifier(Protocol):
    def verify(self, message: str, address: str, signature: str) -> bool: ...


def resolve_privilege(zelid: str) -> str:
    if settings.admin_zelid and zelid == settings.admin_zelid:
        return PRIVILEGE_ADMIN
    return PRIVILEGE_USER


def validate_message(message: str, timestamp_ms: int) -> int:
    """
    Check the shape of a signed message and return its embedded timestamp.

    The message must be at least 40 characters and start with a 13-digit
    timestamp no older than the phrase lifetime and not ahead of the clock
    by more than the allowed skew.
    """
    ts = phrase_timestamp(message)
    if len(message) < MIN_PHRASE_LENGTH or ts is None:
        raise ValidationError("Signed message is not valid")
    if ts < timestamp_ms - settings.login_phrase_max_age_ms:
        raise ValidationError("Signed message is not valid")
    if ts > timestamp_ms + settings.login_phrase_future_skew_ms:
        raise ValidationError("Signed message is not valid")
    return ts


def is_phrase_fresh(phrase: LoginPhrase, timestamp_ms: int) -> bool:
    age = timestamp_ms - phrase.created_at
    return 0 <= age <= settings.login_phrase_max_age_ms


def verify_login(
    db: Session,
    request: LoginRequest,
    verifier: SignatureVerifier,
    timestamp_ms: int | None = None,
) -> LoggedUser:
    """
    Authenticate a signed login phrase.

    Checks run in a fixed order and stop at the first failure: identity,
    message shape, stored phrase, signature. On success the phrase is
    consumed and the session recorded in one commit.
    """
    if timestamp_ms is None:
        timestamp_ms = now_ms()

    zelid = request.identity
    if not zelid:
        raise ValidationError("No ZelID is specified")
    if not ZELID_PATTERN.fullmatch(zelid):
        raise ValidationError("ZelID is not valid")

    message = request.message
    if not message:
        raise ValidationError("No message is specified")
    validate_message(message, timestamp_ms)

    privilege = resolve_privilege(zelid)

    phrase = find_latest_phrase(db, message)
    if phrase is None or not is_phrase_fresh(phrase, timestamp_ms):
        raise ExpiredChallengeError()
    if phrase.is_emergency and privilege != PRIVILEGE_ADMIN:
        logger.warning("emergency_phrase_rejected", zelid=zelid)
        raise ExpiredChallengeError()

    signature = request.signature or ""
    if not verifier.verify(message, zelid, signature):
        logger.warning("login_signature_invalid", zelid=zelid)
        raise SignatureError()

    mark_consumed(phrase, timestamp_ms)
    logged_user = LoggedUser(
        zelid=zelid,
        login_phrase=message,
        signature=signature,
        privilege=privilege,
        created_at=timestamp_ms,
    )
    insert_record(db, logged_user)

    logger.info("login_succeeded", zelid=zelid, privilege=privilege, emergency=phrase.is_emergency)
    return logged_user


def logout(db: Session, zelid: str, login_phrase: str, signature: str) -> int:
    """
    Remove the session recorded for an identity and phrase.

    The signature must match the one stored at login. Returns rows removed.
    """
    query = db.query(LoggedUser).filter(
        LoggedUser.zelid == zelid,
        LoggedUser.login_phrase == login_phrase,
        LoggedUser.signature == signature,
    )
    removed = delete_matching(db, query)
    logger.info("logout", zelid=zelid, sessions_removed=removed)
    return removed
