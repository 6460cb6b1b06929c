"""Tests for signed login verification."""

import pytest
from sqlalchemy.exc import SQLAlchemyError

from nodeauth.config import settings
from nodeauth.errors import ExpiredChallengeError, SignatureError, StoreError, ValidationError
from nodeauth.models.logged_user import LoggedUser
from nodeauth.models.login_phrase import LoginPhrase
from nodeauth.schemas.login import LoginRequest
from nodeauth.services.login_service import logout, verify_login
from nodeauth.services.phrase_service import (
    find_latest_phrase,
    issue_emergency_phrase,
    issue_login_phrase,
)
from nodeauth.services.signature_service import BitcoinMessageVerifier, sign_message
from tests.test_utils import TEST_ZELID, FakeVerifier, make_identity

NOW = 1_700_000_000_000
FIVE_MINUTES = 300_000


def message_at(ts: int) -> str:
    return f"{ts}11111111111111111111111111111"


def login(db, verifier=None, timestamp_ms=NOW, **fields):
    return verify_login(db, LoginRequest(**fields), verifier or FakeVerifier(True), timestamp_ms)


class TestRequestValidation:
    def test_missing_identity(self, db_session):
        with pytest.raises(ValidationError, match="No ZelID is specified"):
            login(db_session, signature="1234356asdf", message="message")

    @pytest.mark.parametrize(
        "zelid",
        [
            "2Z123434",
            "1Z123434",
            "1Z1234341Z1234341Z1234341Z1234341Z12",
            "2Z1234341Z1234341Z1234341Z1234341",
            "1" + "a" * 23,
        ],
    )
    def test_invalid_identity(self, db_session, zelid):
        with pytest.raises(ValidationError, match="ZelID is not valid"):
            login(db_session, zelid=zelid, signature="1234356asdf", message="message")

    @pytest.mark.parametrize("zelid", ["1" + "a" * 24, "1" + "a" * 33])
    def test_identity_length_bounds_are_inclusive(self, db_session, zelid):
        with pytest.raises(ValidationError, match="No message is specified"):
            login(db_session, zelid=zelid, signature="1234356asdf")

    def test_address_field_is_accepted_as_identity(self, db_session):
        with pytest.raises(ValidationError, match="No message is specified"):
            login(db_session, address=TEST_ZELID, signature="1234356asdf", message="")

    @pytest.mark.parametrize("message", [None, ""])
    def test_missing_message(self, db_session, message):
        with pytest.raises(ValidationError, match="No message is specified"):
            login(db_session, zelid=TEST_ZELID, signature="1234356asdf", message=message)

    @pytest.mark.parametrize(
        "message",
        [
            "1234",
            "111111111111111111111111111111111111111111111",
            "999999999999911111111111111111111111111111111",
            "abcdefghijklm11111111111111111111111111111111",
            message_at(NOW - 900_001),
            message_at(NOW + 1),
            message_at(NOW)[:39],
        ],
    )
    def test_invalid_message(self, db_session, message):
        with pytest.raises(ValidationError, match="Signed message is not valid"):
            login(db_session, zelid=TEST_ZELID, signature="1234356asdf", message=message)

    def test_future_skew_is_configurable(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "login_phrase_future_skew_ms", 5000)

        with pytest.raises(ExpiredChallengeError):
            login(db_session, zelid=TEST_ZELID, signature="sig", message=message_at(NOW + 4000))


class TestPhraseLookup:
    def test_unknown_phrase(self, db_session):
        with pytest.raises(ExpiredChallengeError, match="no longer valid"):
            login(
                db_session,
                zelid=TEST_ZELID,
                signature="1234356asdf",
                message=message_at(NOW - FIVE_MINUTES),
            )

    def test_stored_phrase_from_the_future_is_rejected(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "login_phrase_future_skew_ms", 20_000)
        phrase = issue_login_phrase(db_session, NOW + 10_000)

        with pytest.raises(ExpiredChallengeError):
            login(db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase)

    def test_emergency_phrase_requires_admin(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "admin_zelid", "1AdminAdminAdminAdminAdminAdmin")
        phrase = issue_emergency_phrase(db_session, NOW - 1000)

        with pytest.raises(ExpiredChallengeError):
            login(db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase)

    def test_phrase_is_single_use(self, db_session):
        phrase = issue_login_phrase(db_session, NOW - 1000)
        login(db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase)

        with pytest.raises(ExpiredChallengeError):
            login(db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase)


class TestSignatureCheck:
    def test_failed_verification(self, db_session):
        phrase = issue_login_phrase(db_session, NOW - 10_000)
        verifier = FakeVerifier(False)

        with pytest.raises(SignatureError, match="Invalid signature"):
            login(
                db_session,
                verifier,
                zelid=TEST_ZELID,
                signature="1234356asdf",
                message=phrase.login_phrase,
            )

        assert verifier.calls == [(phrase.login_phrase, TEST_ZELID, "1234356asdf")]
        assert db_session.query(LoggedUser).count() == 0
        assert find_phrase(db_session, phrase.login_phrase).consumed_at is None

    def test_missing_signature_is_invalid(self, db_session):
        phrase = issue_login_phrase(db_session, NOW - 10_000)

        with pytest.raises(SignatureError):
            login(
                db_session,
                BitcoinMessageVerifier(),
                zelid=TEST_ZELID,
                message=phrase.login_phrase,
            )


def find_phrase(db, value):
    return db.query(LoginPhrase).filter(LoginPhrase.login_phrase == value).first()


class TestSuccessfulLogin:
    def test_signed_round_trip(self, db_session):
        private_key, address = make_identity()
        phrase = issue_login_phrase(db_session, NOW - 10_000)
        signature = sign_message(private_key, phrase.login_phrase)

        logged_user = login(
            db_session,
            BitcoinMessageVerifier(),
            zelid=address,
            signature=signature,
            message=phrase.login_phrase,
        )

        assert logged_user.zelid == address
        assert logged_user.login_phrase == phrase.login_phrase
        assert logged_user.signature == signature
        assert logged_user.privilege == "user"
        assert logged_user.created_at == NOW
        assert find_phrase(db_session, phrase.login_phrase).consumed_at == NOW

    def test_admin_identity_gets_admin_privilege(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "admin_zelid", TEST_ZELID)
        phrase = issue_login_phrase(db_session, NOW - 1000)

        logged_user = login(
            db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase
        )

        assert logged_user.privilege == "admin"

    def test_admin_can_use_emergency_phrase(self, db_session, monkeypatch):
        monkeypatch.setattr(settings, "admin_zelid", TEST_ZELID)
        phrase = issue_emergency_phrase(db_session, NOW - 1000)

        logged_user = login(
            db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase
        )

        assert logged_user.privilege == "admin"

    def test_store_failure_is_not_reported_as_invalid_signature(self, db_session, monkeypatch):
        phrase = issue_login_phrase(db_session, NOW - 1000)

        def fail_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db_session, "commit", fail_commit)

        with pytest.raises(StoreError) as exc_info:
            login(db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase)

        assert exc_info.value.name == "SQLAlchemyError"
        assert exc_info.value.message == "disk full"

    def test_failed_login_leaves_phrase_usable(self, db_session, monkeypatch):
        phrase = issue_login_phrase(db_session, NOW - 1000)

        def fail_commit():
            raise SQLAlchemyError("disk full")

        monkeypatch.setattr(db_session, "commit", fail_commit)
        with pytest.raises(StoreError):
            login(db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase)
        monkeypatch.undo()

        assert find_latest_phrase(db_session, phrase.login_phrase) is not None
        assert db_session.query(LoggedUser).count() == 0


class TestLogout:
    def test_logout_removes_session(self, db_session):
        phrase = issue_login_phrase(db_session, NOW - 1000)
        login(db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase)

        removed = logout(db_session, TEST_ZELID, phrase.login_phrase, "sig")

        assert removed == 1
        assert db_session.query(LoggedUser).count() == 0

    def test_logout_requires_matching_signature(self, db_session):
        phrase = issue_login_phrase(db_session, NOW - 1000)
        login(db_session, zelid=TEST_ZELID, signature="sig", message=phrase.login_phrase)

        removed = logout(db_session, TEST_ZELID, phrase.login_phrase, "forged")

        assert removed == 0
        assert db_session.query(LoggedUser).count() == 1

    def test_logout_without_session(self, db_session):
        assert logout(db_session, TEST_ZELID, "unknown", "sig") == 0
