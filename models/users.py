from datetime import datetime
from typing import Optional, List, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship

from models.enums import UserRole


class User(SQLModel, table=True):
    """Modelo para 'users' (personal del restaurante)."""
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, nullable=False)
    username: str = Field(max_length=50, unique=True, nullable=False)
    password: str = Field(max_length=100, nullable=False)
    email: str = Field(max_length=100, unique=True, nullable=False)
    role: UserRole = Field(default=UserRole.STAFF, nullable=False)

    created_at: Optional[datetime] = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default_factory=datetime.utcnow)
    last_connection: Optional[datetime] = Field(default=None)
    is_active: bool = Field(default=True, nullable=False)

    # Relaciones
    tokens: List["Token"] = Relationship(back_populates="user")


if TYPE_CHECKING:
    from models.tokens import Token
