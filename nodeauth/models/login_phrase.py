import uuid

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from nodeauth.database import Base

PHRASE_KIND_LOGIN = "login"
PHRASE_KIND_EMERGENCY = "emergency"


class LoginPhrase(Base):
    __tablename__ = "login_phrases"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    login_phrase: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    kind: Mapped[str] = mapped_column(String(16), default=PHRASE_KIND_LOGIN, nullable=False)

    # Epoch milliseconds, matching the phrase's leading 13 digits
    created_at: Mapped[int] = mapped_column(BigInteger, index=True, nullable=False)
    consumed_at: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    @property
    def is_emergency(self) -> bool:
        return self.kind == PHRASE_KIND_EMERGENCY
