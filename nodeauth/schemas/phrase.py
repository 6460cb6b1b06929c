from pydantic import BaseModel


class PhraseResponse(BaseModel):
    status: str = "success"
    data: str


class ErrorData(BaseModel):
    code: int | str | None = None
    name: str | None = None
    message: str


class ErrorResponse(BaseModel):
    status: str = "error"
    data: ErrorData
