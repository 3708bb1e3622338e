from sqlmodel import SQLModel, Field


class AccessTokenResponse(SQLModel):
    """Schema usado para la respuesta del endpoint de login."""
    access_token: str
    token_type: str = Field(default="bearer")
    role_name: str
