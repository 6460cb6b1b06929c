import structlog
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from nodeauth.config import settings
from nodeauth.database import get_db
from nodeauth.dependencies import (
    get_hardware_inspector,
    get_health_oracle,
    get_signature_verifier,
    get_tier_oracle,
)
from nodeauth.errors import NodeAuthError
from nodeauth.middleware.rate_limit import limiter
from nodeauth.schemas.login import (
    LoginRequest,
    LoginSuccessData,
    LoginSuccessResponse,
    LogoutRequest,
    LogoutResponse,
    MessageData,
)
from nodeauth.schemas.phrase import ErrorData, ErrorResponse, PhraseResponse
from nodeauth.services.admission_service import request_login_phrase
from nodeauth.services.login_service import logout, verify_login
from nodeauth.services.phrase_service import issue_emergency_phrase

router = APIRouter()
logger = structlog.get_logger()


def error_response(error: NodeAuthError) -> ErrorResponse:
    return ErrorResponse(data=ErrorData(code=error.code, name=error.name, message=error.message))


@router.get("/id/loginphrase", response_model=None)
@limiter.limit(settings.rate_limit_phrases)
async def login_phrase(
    request: Request,
    db: Session = Depends(get_db),
    inspector=Depends(get_hardware_inspector),
    tier_oracle=Depends(get_tier_oracle),
    health_oracle=Depends(get_health_oracle),
):
    """
    Request a phrase to sign for login.

    Refused while this node's hardware is below its tier or the network
    reports a DOS state.
    """
    try:
        phrase = await request_login_phrase(db, inspector, tier_oracle, health_oracle)
    except NodeAuthError as e:
        logger.info("login_phrase_refused", error_name=e.name, code=e.code)
        return error_response(e)

    return PhraseResponse(data=phrase.login_phrase)


@router.get("/id/emergencyphrase", response_model=None)
@limiter.limit(settings.rate_limit_phrases)
async def emergency_phrase(request: Request, db: Session = Depends(get_db)):
    """Request a recovery phrase. Only the admin identity can log in with it."""
    try:
        phrase = issue_emergency_phrase(db)
    except NodeAuthError as e:
        return error_response(e)

    return PhraseResponse(data=phrase.login_phrase)


@router.post("/id/verifylogin", response_model=None)
@limiter.limit(settings.rate_limit_logins)
async def verify_login_endpoint(
    request: Request,
    login: LoginRequest,
    db: Session = Depends(get_db),
    verifier=Depends(get_signature_verifier),
):
    """Log in by submitting a login phrase signed with the identity's key."""
    try:
        logged_user = verify_login(db, login, verifier)
    except NodeAuthError as e:
        return error_response(e)

    return LoginSuccessResponse(
        data=LoginSuccessData(
            zelid=logged_user.zelid,
            loginPhrase=logged_user.login_phrase,
            signature=logged_user.signature,
            privilage=logged_user.privilege,
        )
    )


@router.post("/id/logout", response_model=None)
@limiter.limit(settings.rate_limit_logins)
async def logout_endpoint(
    request: Request,
    logout_data: LogoutRequest,
    db: Session = Depends(get_db),
):
    """End the session created by a login phrase."""
    try:
        logout(db, logout_data.zelid, logout_data.login_phrase, logout_data.signature)
    except NodeAuthError as e:
        return error_response(e)

    return LogoutResponse(data=MessageData(message="Successfully logged out"))
