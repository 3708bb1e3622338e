from datetime import datetime
from typing import Optional, List
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel, Relationship


class MenuCategory(SQLModel, table=True):
    """Modelo para 'menu_categories' (secciones de la carta)."""
    __tablename__ = "menu_categories"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=100, unique=True, nullable=False)
    name_en: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    display_order: int = Field(default=0)
    is_active: bool = Field(default=True, nullable=False)

    created_at: Optional[datetime] = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default_factory=datetime.utcnow)

    # Relaciones
    items: List["MenuItem"] = Relationship(back_populates="category")


class MenuItem(SQLModel, table=True):
    """Modelo para 'menu_items' (platos de la carta)."""
    __tablename__ = "menu_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    category_id: int = Field(foreign_key="menu_categories.id", index=True, nullable=False)
    name: str = Field(max_length=150, index=True, nullable=False)
    name_en: Optional[str] = Field(default=None, max_length=150)
    description: str = Field(max_length=1000, nullable=False)
    description_en: Optional[str] = Field(default=None, max_length=1000)
    price: float = Field(nullable=False)

    is_available: bool = Field(default=True)
    is_signature: bool = Field(default=False)
    is_new: bool = Field(default=False)
    is_seasonal_special: bool = Field(default=False)

    # Información dietética
    is_vegetarian: bool = Field(default=False)
    is_vegan: bool = Field(default=False)
    is_gluten_free: bool = Field(default=False)
    is_lactose_free: bool = Field(default=False)
    allergens: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    display_order: int = Field(default=0)
    created_by_id: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: Optional[datetime] = Field(default_factory=datetime.utcnow)
    updated_at: Optional[datetime] = Field(default_factory=datetime.utcnow)

    # Relaciones
    category: Optional[MenuCategory] = Relationship(back_populates="items")
