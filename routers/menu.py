import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import func, select

from core.database import SessionDep
from core.exceptions import ConflictException, NotFoundException
from core.security import ManagerUser, StaffUser
from models.enums import Allergen
from models.menu import MenuCategory, MenuItem
from schemas.menu_schema import (
    MenuCategoryCreate,
    MenuCategoryRead,
    MenuCategoryUpdate,
    MenuItemCreate,
    MenuItemRead,
    MenuItemUpdate,
)
from services.menu import MenuFilter, build_public_menu

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/menu", tags=["MENU"])


def _get_category_or_404(session: SessionDep, category_id: int) -> MenuCategory:
    category = session.get(MenuCategory, category_id)
    if not category:
        raise NotFoundException(f"Menu category {category_id} not found")
    return category


def _get_item_or_404(session: SessionDep, item_id: int) -> MenuItem:
    item = session.get(MenuItem, item_id)
    if not item:
        raise NotFoundException(f"Menu item {item_id} not found")
    return item


def _item_count(session: SessionDep, category_id: int) -> int:
    return session.exec(
        select(func.count()).select_from(MenuItem).where(MenuItem.category_id == category_id)
    ).one()


def _category_read(session: SessionDep, category: MenuCategory) -> MenuCategoryRead:
    read = MenuCategoryRead.model_validate(category)
    read.item_count = _item_count(session, category.id)
    return read


def _ensure_category_name_free(session: SessionDep, name: str, category_id: Optional[int] = None) -> None:
    existing = session.exec(select(MenuCategory).where(MenuCategory.name == name)).first()
    if existing and existing.id != category_id:
        raise ConflictException("Category with this name already exists")


def _ensure_item_name_free(session: SessionDep, category_id: int, name: str, item_id: Optional[int] = None) -> None:
    existing = session.exec(
        select(MenuItem).where(MenuItem.category_id == category_id, MenuItem.name == name)
    ).first()
    if existing and existing.id != item_id:
        raise ConflictException("Menu item with this name already exists in this category")


# ======================================================================
# CARTA PÚBLICA (GET /api/menu)
# ======================================================================

@router.get("", summary="Carta pública agrupada por categorías")
def read_public_menu(
    session: SessionDep,
    category_id: Optional[int] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100, description="Buscar en nombre o descripción."),
    is_signature: bool = Query(default=False),
    is_vegetarian: bool = Query(default=False),
    is_vegan: bool = Query(default=False),
    is_gluten_free: bool = Query(default=False),
    price_min: Optional[float] = Query(default=None, ge=0),
    price_max: Optional[float] = Query(default=None, ge=0),
    exclude_allergens: List[Allergen] = Query(default=[], description="Alérgenos a excluir."),
):
    filters = MenuFilter(
        category_id=category_id,
        search=search,
        is_signature=is_signature,
        is_vegetarian=is_vegetarian,
        is_vegan=is_vegan,
        is_gluten_free=is_gluten_free,
        price_min=price_min,
        price_max=price_max,
        exclude_allergens=exclude_allergens,
    )

    categories = session.exec(select(MenuCategory).where(MenuCategory.is_active == True)).all()
    items = session.exec(select(MenuItem).where(MenuItem.is_available == True)).all()
    menu = build_public_menu(categories, items, filters)

    return {
        "categories": [
            {
                "id": category.id,
                "name": category.name,
                "name_en": category.name_en,
                "description": category.description,
                "display_order": category.display_order,
                "items": [MenuItemRead.model_validate(item) for item in category_items],
            }
            for category, category_items in menu["categories"]
        ],
        "summary": menu["summary"],
    }


# ======================================================================
# CATEGORÍAS
# ======================================================================

@router.get("/categories", response_model=List[MenuCategoryRead])
def list_categories(session: SessionDep, _: StaffUser, include_inactive: bool = Query(default=False)):
    query = select(MenuCategory)
    if not include_inactive:
        query = query.where(MenuCategory.is_active == True)
    categories = session.exec(query.order_by(MenuCategory.display_order, MenuCategory.name)).all()
    return [_category_read(session, category) for category in categories]


@router.post("/categories", response_model=MenuCategoryRead, status_code=status.HTTP_201_CREATED)
def create_category(category_data: MenuCategoryCreate, session: SessionDep, _: ManagerUser):
    _ensure_category_name_free(session, category_data.name)
    try:
        category = MenuCategory.model_validate(category_data.model_dump())
        session.add(category)
        session.commit()
        session.refresh(category)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error creating menu category")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create menu category")
    return _category_read(session, category)


@router.patch("/categories/{category_id}", response_model=MenuCategoryRead)
def update_category(category_id: int, category_data: MenuCategoryUpdate, session: SessionDep, _: ManagerUser):
    category = _get_category_or_404(session, category_id)
    data_to_update = category_data.model_dump(exclude_unset=True)
    if "name" in data_to_update and data_to_update["name"] != category.name:
        _ensure_category_name_free(session, data_to_update["name"], category_id=category.id)

    try:
        category.sqlmodel_update(data_to_update)
        category.updated_at = datetime.utcnow()
        session.add(category)
        session.commit()
        session.refresh(category)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error updating menu category %s", category_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update menu category")
    return _category_read(session, category)


@router.delete("/categories/{category_id}")
def delete_category(category_id: int, session: SessionDep, current_user: ManagerUser):
    """Una categoría con platos no se puede borrar; hay que moverlos o borrarlos antes."""
    category = _get_category_or_404(session, category_id)
    item_count = _item_count(session, category.id)
    if item_count:
        raise ConflictException(
            "Cannot delete category with existing menu items",
            details={"item_count": item_count},
        )

    try:
        session.delete(category)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error deleting menu category %s", category_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete menu category")

    logger.info("Categoría %s eliminada por %s", category_id, current_user.username)
    return {"message": "Menu category deleted successfully"}


# ======================================================================
# PLATOS
# ======================================================================

@router.get("/items", response_model=List[MenuItemRead])
def list_items(
    session: SessionDep,
    _: StaffUser,
    category_id: Optional[int] = Query(default=None),
    is_available: Optional[bool] = Query(default=None),
    search: Optional[str] = Query(default=None, max_length=100),
):
    query = select(MenuItem)
    if category_id is not None:
        query = query.where(MenuItem.category_id == category_id)
    if is_available is not None:
        query = query.where(MenuItem.is_available == is_available)
    if search:
        query = query.where(MenuItem.name.ilike(f"%{search}%"))
    return session.exec(query.order_by(MenuItem.category_id, MenuItem.display_order, MenuItem.name)).all()


@router.post("/items", response_model=MenuItemRead, status_code=status.HTTP_201_CREATED)
def create_item(item_data: MenuItemCreate, session: SessionDep, current_user: ManagerUser):
    _get_category_or_404(session, item_data.category_id)
    _ensure_item_name_free(session, item_data.category_id, item_data.name)

    try:
        item = MenuItem.model_validate(item_data.model_dump(mode="json"))
        item.created_by_id = current_user.id
        session.add(item)
        session.commit()
        session.refresh(item)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error creating menu item")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create menu item")
    return item


@router.patch("/items/{item_id}", response_model=MenuItemRead)
def update_item(item_id: int, item_data: MenuItemUpdate, session: SessionDep, _: ManagerUser):
    item = _get_item_or_404(session, item_id)
    data_to_update = item_data.model_dump(mode="json", exclude_unset=True)

    category_id = data_to_update.get("category_id", item.category_id)
    if category_id != item.category_id:
        _get_category_or_404(session, category_id)
    name = data_to_update.get("name", item.name)
    if name != item.name or category_id != item.category_id:
        _ensure_item_name_free(session, category_id, name, item_id=item.id)

    try:
        item.sqlmodel_update(data_to_update)
        item.updated_at = datetime.utcnow()
        session.add(item)
        session.commit()
        session.refresh(item)
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error updating menu item %s", item_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to update menu item")
    return item


@router.delete("/items/{item_id}")
def delete_item(item_id: int, session: SessionDep, current_user: ManagerUser):
    item = _get_item_or_404(session, item_id)
    try:
        session.delete(item)
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        logger.exception("Error deleting menu item %s", item_id)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to delete menu item")

    logger.info("Plato %s eliminado por %s", item_id, current_user.username)
    return {"message": "Menu item deleted successfully"}
