from datetime import datetime
from typing import Optional, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship


class CustomerNote(SQLModel, table=True):
    """Nota interna del personal sobre un cliente."""
    __tablename__ = "customer_notes"

    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: int = Field(foreign_key="customers.id", index=True, nullable=False)
    user_id: int = Field(foreign_key="users.id", nullable=False)
    note: str = Field(max_length=1000, nullable=False)
    is_important: bool = Field(default=False)
    created_at: Optional[datetime] = Field(default_factory=datetime.utcnow)

    # Relaciones
    customer: "Customer" = Relationship(back_populates="notes")
    user: "User" = Relationship()


if TYPE_CHECKING:
    from models.customers import Customer
    from models.users import User
