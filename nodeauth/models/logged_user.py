import uuid

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from nodeauth.database import Base


class LoggedUser(Base):
    __tablename__ = "logged_users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    zelid: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    login_phrase: Mapped[str] = mapped_column(String(64), nullable=False)
    signature: Mapped[str] = mapped_column(String(256), nullable=False)
    privilege: Mapped[str] = mapped_column(String(16), default="user", nullable=False)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
