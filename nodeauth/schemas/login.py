from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    """
    Signed login submitted by a client.

    Every field is optional here; missing or malformed values are rejected by
    the login service with their own messages, in a fixed order.
    """

    model_config = ConfigDict(extra="ignore")

    zelid: str | None = None
    address: str | None = None
    signature: str | None = None
    message: str | None = None

    @property
    def identity(self) -> str | None:
        return self.zelid or self.address


class LogoutRequest(BaseModel):
    zelid: str = Field(..., min_length=1)
    login_phrase: str = Field(..., alias="loginPhrase", min_length=1)
    signature: str = Field(..., min_length=1)


class LoginSuccessData(BaseModel):
    message: str = "Successfully logged in"
    zelid: str
    loginPhrase: str
    signature: str
    # Field name is part of the public payload
    privilage: str


class LoginSuccessResponse(BaseModel):
    status: str = "success"
    data: LoginSuccessData


class MessageData(BaseModel):
    message: str


class LogoutResponse(BaseModel):
    status: str = "success"
    data: MessageData
