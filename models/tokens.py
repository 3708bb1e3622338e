from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship


class Token(SQLModel, table=True):
    """Token JWT emitido al personal. Solo los tokens con status_token=True autentican."""
    __tablename__ = "tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    id_user: int = Field(foreign_key="users.id", index=True)
    token: str = Field(max_length=512, nullable=False, index=True)
    status_token: bool = Field(default=True)
    expiration: datetime = Field(nullable=False)
    date_token: datetime = Field(nullable=False)

    # Relaciones
    user: "User" = Relationship(back_populates="tokens")

    def revoke(self) -> None:
        self.status_token = False


if TYPE_CHECKING:
    from models.users import User
