"""Carta pública: filtros dietéticos, exclusión de alérgenos y resumen."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from models.enums import Allergen
from models.menu import MenuCategory, MenuItem


@dataclass
class MenuFilter:
    category_id: Optional[int] = None
    search: Optional[str] = None
    is_signature: bool = False
    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    price_min: Optional[float] = None
    price_max: Optional[float] = None
    exclude_allergens: List[Allergen] = field(default_factory=list)


def _matches_search(item: MenuItem, term: str) -> bool:
    term = term.lower()
    texts = (item.name, item.name_en, item.description, item.description_en)
    return any(term in text.lower() for text in texts if text)


def item_matches(item: MenuItem, filters: MenuFilter) -> bool:
    if not item.is_available:
        return False
    if filters.category_id is not None and item.category_id != filters.category_id:
        return False
    if filters.search and not _matches_search(item, filters.search):
        return False
    # Los filtros booleanos solo restringen cuando se activan
    if filters.is_signature and not item.is_signature:
        return False
    if filters.is_vegetarian and not item.is_vegetarian:
        return False
    if filters.is_vegan and not item.is_vegan:
        return False
    if filters.is_gluten_free and not item.is_gluten_free:
        return False
    if filters.price_min is not None and item.price < filters.price_min:
        return False
    if filters.price_max is not None and item.price > filters.price_max:
        return False
    excluded = {allergen.value for allergen in filters.exclude_allergens}
    return not excluded.intersection(item.allergens or [])


def _item_order(item: MenuItem):
    return (not item.is_signature, item.display_order, item.name)


def build_public_menu(
    categories: Sequence[MenuCategory],
    items: Sequence[MenuItem],
    filters: MenuFilter,
) -> Dict[str, Any]:
    """
    Agrupa los platos disponibles por categoría activa.
    Las categorías sin platos que cumplan los filtros no aparecen.
    """
    matching = sorted((item for item in items if item_matches(item, filters)), key=_item_order)

    sections = []
    for category in sorted((c for c in categories if c.is_active), key=lambda c: (c.display_order, c.name)):
        category_items = [item for item in matching if item.category_id == category.id]
        if category_items:
            sections.append((category, category_items))

    shown = [item for _, category_items in sections for item in category_items]
    prices = [item.price for item in shown]
    price_range = None
    if prices:
        price_range = {
            "min": min(prices),
            "max": max(prices),
            "average": round(sum(prices) / len(prices), 2),
        }

    return {
        "categories": sections,
        "summary": {
            "total_items": len(shown),
            "signature_items": sum(1 for item in shown if item.is_signature),
            "vegetarian_items": sum(1 for item in shown if item.is_vegetarian),
            "vegan_items": sum(1 for item in shown if item.is_vegan),
            "price_range": price_range,
        },
    }
