"""Shops and their menus, menu categories and menu items."""

import logging

from sqlalchemy.orm import Session

from lunch_api.core.errors import NotFound, ValidationError
from lunch_api.models import Menu, MenuCategory, MenuItem, Shop
from lunch_api.schemas.lunch import (
    CategoryCreate,
    CategoryUpdate,
    MenuCreate,
    MenuItemCreate,
    MenuItemUpdate,
    MenuUpdate,
    ShopCreate,
    ShopUpdate,
)

logger = logging.getLogger(__name__)

DEFAULT_MENU_NAME = "Main menu"


def _apply(target: object, changes: dict) -> None:
    for field, value in changes.items():
        setattr(target, field, value)


class ShopService:
    def __init__(self, db: Session) -> None:
        self.db = db

    # --- Shops ---

    def list_shops(self, *, is_active: bool | None = None, search_name: str | None = None) -> list[Shop]:
        query = self.db.query(Shop)
        if is_active is not None:
            query = query.filter(Shop.is_active == is_active)
        if search_name and search_name.strip():
            query = query.filter(Shop.name.ilike(f"%{search_name.strip()}%"))
        return query.order_by(Shop.name).all()

    def get_shop(self, shop_id: str) -> Shop:
        shop = self.db.get(Shop, shop_id)
        if shop is None:
            raise NotFound("Shop not found")
        return shop

    def create_shop(self, data: ShopCreate) -> Shop:
        """Create a shop together with its default menu."""
        shop = Shop(**data.model_dump())
        shop.menus.append(Menu(name=DEFAULT_MENU_NAME, is_default=True, is_available=True))
        self.db.add(shop)
        self.db.commit()
        self.db.refresh(shop)
        logger.info("Shop created", extra={"shop_id": shop.id})
        return shop

    def update_shop(self, shop_id: str, data: ShopUpdate) -> Shop:
        shop = self.get_shop(shop_id)
        _apply(shop, data.model_dump(exclude_unset=True, exclude_none=True))
        self.db.commit()
        self.db.refresh(shop)
        return shop

    def delete_shop(self, shop_id: str) -> None:
        shop = self.get_shop(shop_id)
        self.db.delete(shop)
        self.db.commit()
        logger.info("Shop deleted", extra={"shop_id": shop_id})

    # --- Menus ---

    def list_menus(self, shop_id: str) -> list[Menu]:
        return list(self.get_shop(shop_id).menus)

    def get_menu(self, menu_id: str, shop_id: str | None = None) -> Menu:
        menu = self.db.get(Menu, menu_id)
        if menu is None or (shop_id is not None and menu.shop_id != shop_id):
            raise NotFound("Menu not found")
        return menu

    def _demote_defaults(self, shop_id: str, keep_menu_id: str | None = None) -> None:
        query = self.db.query(Menu).filter(Menu.shop_id == shop_id, Menu.is_default.is_(True))
        for menu in query.all():
            if menu.id != keep_menu_id:
                menu.is_default = False

    def create_menu(self, shop_id: str, data: MenuCreate) -> Menu:
        shop = self.get_shop(shop_id)
        if data.is_default:
            self._demote_defaults(shop.id)
        menu = Menu(shop_id=shop.id, **data.model_dump())
        self.db.add(menu)
        self.db.commit()
        self.db.refresh(menu)
        return menu

    def update_menu(self, shop_id: str, menu_id: str, data: MenuUpdate) -> Menu:
        menu = self.get_menu(menu_id, shop_id)
        changes = data.model_dump(exclude_unset=True, exclude_none=True)
        if changes.get("is_default"):
            self._demote_defaults(shop_id, keep_menu_id=menu.id)
        _apply(menu, changes)
        self.db.commit()
        self.db.refresh(menu)
        return menu

    def delete_menu(self, shop_id: str, menu_id: str) -> None:
        menu = self.get_menu(menu_id, shop_id)
        self.db.delete(menu)
        self.db.commit()

    # --- Categories ---

    def list_categories(self, menu_id: str) -> list[MenuCategory]:
        return list(self.get_menu(menu_id).categories)

    def get_category(self, menu_id: str, category_id: str) -> MenuCategory:
        category = self.db.get(MenuCategory, category_id)
        if category is None or category.menu_id != menu_id:
            raise NotFound("Category not found")
        return category

    def create_category(self, menu_id: str, data: CategoryCreate) -> MenuCategory:
        menu = self.get_menu(menu_id)
        category = MenuCategory(menu_id=menu.id, **data.model_dump())
        self.db.add(category)
        self.db.commit()
        self.db.refresh(category)
        return category

    def update_category(self, menu_id: str, category_id: str, data: CategoryUpdate) -> MenuCategory:
        category = self.get_category(menu_id, category_id)
        _apply(category, data.model_dump(exclude_unset=True, exclude_none=True))
        self.db.commit()
        self.db.refresh(category)
        return category

    def delete_category(self, menu_id: str, category_id: str) -> None:
        category = self.get_category(menu_id, category_id)
        for item in list(category.items):
            item.category_id = None
        self.db.delete(category)
        self.db.commit()

    # --- Items ---

    def list_items(self, menu_id: str, *, available_only: bool = False) -> list[MenuItem]:
        items = self.get_menu(menu_id).items
        if available_only:
            return [item for item in items if item.is_available]
        return list(items)

    def get_item(self, menu_id: str, item_id: str) -> MenuItem:
        item = self.db.get(MenuItem, item_id)
        if item is None or item.menu_id != menu_id:
            raise NotFound("Menu item not found")
        return item

    def _check_category(self, menu_id: str, category_id: str | None) -> None:
        if category_id is None:
            return
        category = self.db.get(MenuCategory, category_id)
        if category is None or category.menu_id != menu_id:
            raise ValidationError(errors=["category_id: must belong to the same menu"])

    def create_item(self, menu_id: str, data: MenuItemCreate) -> MenuItem:
        return self.create_items(menu_id, [data])[0]

    def create_items(self, menu_id: str, items: list[MenuItemCreate]) -> list[MenuItem]:
        """Insert several items in one transaction; nothing is written if any is invalid."""
        menu = self.get_menu(menu_id)
        for data in items:
            self._check_category(menu.id, data.category_id)
        created = [MenuItem(menu_id=menu.id, **data.model_dump()) for data in items]
        self.db.add_all(created)
        self.db.commit()
        for item in created:
            self.db.refresh(item)
        return created

    def update_item(self, menu_id: str, item_id: str, data: MenuItemUpdate) -> MenuItem:
        item = self.get_item(menu_id, item_id)
        changes = data.model_dump(exclude_unset=True)
        if "category_id" in changes:
            self._check_category(menu_id, changes["category_id"])
        for field in ("name", "price", "is_available", "sort_order"):
            if field in changes and changes[field] is None:
                del changes[field]
        _apply(item, changes)
        self.db.commit()
        self.db.refresh(item)
        return item

    def delete_item(self, menu_id: str, item_id: str) -> None:
        item = self.get_item(menu_id, item_id)
        self.db.delete(item)
        self.db.commit()
