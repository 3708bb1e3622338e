from sqlmodel import SQLModel, Field
from pydantic import EmailStr
from typing import Optional
from datetime import datetime

from models.enums import UserRole


class UserLogin(SQLModel):
    username: str = Field(max_length=50)
    password: str = Field(max_length=100)

class UserRead(SQLModel):
    id: int
    name: str
    username: str
    email: EmailStr
    role: UserRole
    is_active: bool
    last_connection: Optional[datetime] = None

    class Config:
        from_attributes = True
