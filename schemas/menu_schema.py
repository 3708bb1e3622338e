from sqlmodel import SQLModel, Field
from typing import List, Optional
from datetime import datetime

from models.enums import Allergen


# --- Categorías ---
class MenuCategoryBase(SQLModel):
    name: str = Field(min_length=1, max_length=100)
    name_en: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    display_order: int = Field(default=0, ge=0)
    is_active: bool = True

class MenuCategoryCreate(MenuCategoryBase):
    pass

class MenuCategoryUpdate(SQLModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    name_en: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    display_order: Optional[int] = Field(default=None, ge=0)
    is_active: Optional[bool] = None

class MenuCategoryRead(MenuCategoryBase):
    id: int
    item_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# --- Platos ---
class MenuItemBase(SQLModel):
    category_id: int
    name: str = Field(min_length=1, max_length=150)
    name_en: Optional[str] = Field(default=None, max_length=150)
    description: str = Field(min_length=1, max_length=1000)
    description_en: Optional[str] = Field(default=None, max_length=1000)
    price: float = Field(gt=0, le=999.99, description="Precio del plato")

    is_available: bool = True
    is_signature: bool = False
    is_new: bool = False
    is_seasonal_special: bool = False

    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_lactose_free: bool = False
    allergens: List[Allergen] = Field(default_factory=list)

    display_order: int = Field(default=0, ge=0)

class MenuItemCreate(MenuItemBase):
    pass

class MenuItemUpdate(SQLModel):
    category_id: Optional[int] = None
    name: Optional[str] = Field(default=None, min_length=1, max_length=150)
    name_en: Optional[str] = Field(default=None, max_length=150)
    description: Optional[str] = Field(default=None, min_length=1, max_length=1000)
    description_en: Optional[str] = Field(default=None, max_length=1000)
    price: Optional[float] = Field(default=None, gt=0, le=999.99)
    is_available: Optional[bool] = None
    is_signature: Optional[bool] = None
    is_new: Optional[bool] = None
    is_seasonal_special: Optional[bool] = None
    is_vegetarian: Optional[bool] = None
    is_vegan: Optional[bool] = None
    is_gluten_free: Optional[bool] = None
    is_lactose_free: Optional[bool] = None
    allergens: Optional[List[Allergen]] = None
    display_order: Optional[int] = Field(default=None, ge=0)

class MenuItemRead(MenuItemBase):
    id: int
    created_by_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
