from nodeauth.schemas.login import (
    LoginRequest,
    LoginSuccessData,
    LoginSuccessResponse,
    LogoutRequest,
    LogoutResponse,
    MessageData,
)
from nodeauth.schemas.phrase import ErrorData, ErrorResponse, PhraseResponse

__all__ = [
    "ErrorData",
    "ErrorResponse",
    "LoginRequest",
    "LoginSuccessData",
    "LoginSuccessResponse",
    "LogoutRequest",
    "LogoutResponse",
    "MessageData",
    "PhraseResponse",
]
