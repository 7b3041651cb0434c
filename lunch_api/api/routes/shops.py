"""Shop and menu endpoints. Reading needs a session; changes need ADMIN or MODERATOR."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from lunch_api.core.database import get_db
from lunch_api.core.dependencies import CurrentSession, ElevatedSession
from lunch_api.schemas.auth import MessageResponse
from lunch_api.schemas.lunch import (
    CategoryCreate,
    CategoryOut,
    CategoryUpdate,
    MenuCreate,
    MenuItemBatchCreate,
    MenuItemCreate,
    MenuItemOut,
    MenuItemUpdate,
    MenuOut,
    MenuUpdate,
    ShopCreate,
    ShopDetail,
    ShopOut,
    ShopUpdate,
)
from lunch_api.services.shops import ShopService

router = APIRouter()
menus_router = APIRouter()


def get_shop_service(db: Annotated[Session, Depends(get_db)]) -> ShopService:
    return ShopService(db)


Shops = Annotated[ShopService, Depends(get_shop_service)]


@router.get("", response_model=list[ShopOut])
def list_shops(
    _session: CurrentSession,
    shops: Shops,
    is_active: bool | None = None,
    search_name: Annotated[str | None, Query(max_length=255)] = None,
) -> list[ShopOut]:
    return shops.list_shops(is_active=is_active, search_name=search_name)


@router.post("", response_model=ShopDetail, status_code=201)
def create_shop(body: ShopCreate, _session: ElevatedSession, shops: Shops) -> ShopDetail:
    """Create a shop; a default menu is created with it."""
    return shops.create_shop(body)


@router.get("/{shop_id}", response_model=ShopDetail)
def get_shop(shop_id: str, _session: CurrentSession, shops: Shops) -> ShopDetail:
    return shops.get_shop(shop_id)


@router.patch("/{shop_id}", response_model=ShopOut)
def update_shop(shop_id: str, body: ShopUpdate, _session: ElevatedSession, shops: Shops) -> ShopOut:
    return shops.update_shop(shop_id, body)


@router.delete("/{shop_id}", response_model=MessageResponse)
def delete_shop(shop_id: str, _session: ElevatedSession, shops: Shops) -> MessageResponse:
    shops.delete_shop(shop_id)
    return MessageResponse(message="Shop deleted")


@router.get("/{shop_id}/menus", response_model=list[MenuOut])
def list_menus(shop_id: str, _session: CurrentSession, shops: Shops) -> list[MenuOut]:
    return shops.list_menus(shop_id)


@router.post("/{shop_id}/menus", response_model=MenuOut, status_code=201)
def create_menu(shop_id: str, body: MenuCreate, _session: ElevatedSession, shops: Shops) -> MenuOut:
    return shops.create_menu(shop_id, body)


@router.get("/{shop_id}/menus/{menu_id}", response_model=MenuOut)
def get_menu(shop_id: str, menu_id: str, _session: CurrentSession, shops: Shops) -> MenuOut:
    return shops.get_menu(menu_id, shop_id)


@router.patch("/{shop_id}/menus/{menu_id}", response_model=MenuOut)
def update_menu(
    shop_id: str, menu_id: str, body: MenuUpdate, _session: ElevatedSession, shops: Shops
) -> MenuOut:
    """Making a menu the default demotes the shop's previous default."""
    return shops.update_menu(shop_id, menu_id, body)


@router.delete("/{shop_id}/menus/{menu_id}", response_model=MessageResponse)
def delete_menu(shop_id: str, menu_id: str, _session: ElevatedSession, shops: Shops) -> MessageResponse:
    shops.delete_menu(shop_id, menu_id)
    return MessageResponse(message="Menu deleted")


# --- /menus/{menu_id}/categories and /menus/{menu_id}/items ---


@menus_router.get("/{menu_id}/categories", response_model=list[CategoryOut])
def list_categories(menu_id: str, _session: CurrentSession, shops: Shops) -> list[CategoryOut]:
    return shops.list_categories(menu_id)


@menus_router.post("/{menu_id}/categories", response_model=CategoryOut, status_code=201)
def create_category(
    menu_id: str, body: CategoryCreate, _session: ElevatedSession, shops: Shops
) -> CategoryOut:
    return shops.create_category(menu_id, body)


@menus_router.patch("/{menu_id}/categories/{category_id}", response_model=CategoryOut)
def update_category(
    menu_id: str,
    category_id: str,
    body: CategoryUpdate,
    _session: ElevatedSession,
    shops: Shops,
) -> CategoryOut:
    return shops.update_category(menu_id, category_id, body)


@menus_router.delete("/{menu_id}/categories/{category_id}", response_model=MessageResponse)
def delete_category(
    menu_id: str, category_id: str, _session: ElevatedSession, shops: Shops
) -> MessageResponse:
    """Items in the category are kept and become uncategorized."""
    shops.delete_category(menu_id, category_id)
    return MessageResponse(message="Category deleted")


@menus_router.get("/{menu_id}/items", response_model=list[MenuItemOut])
def list_items(
    menu_id: str,
    _session: CurrentSession,
    shops: Shops,
    available_only: bool = False,
) -> list[MenuItemOut]:
    return shops.list_items(menu_id, available_only=available_only)


@menus_router.post("/{menu_id}/items", response_model=MenuItemOut, status_code=201)
def create_item(
    menu_id: str, body: MenuItemCreate, _session: ElevatedSession, shops: Shops
) -> MenuItemOut:
    return shops.create_item(menu_id, body)


@menus_router.post("/{menu_id}/items/batch", response_model=list[MenuItemOut], status_code=201)
def create_items_batch(
    menu_id: str, body: MenuItemBatchCreate, _session: ElevatedSession, shops: Shops
) -> list[MenuItemOut]:
    """Create several items at once; all or nothing."""
    return shops.create_items(menu_id, body.items)


@menus_router.patch("/{menu_id}/items/{item_id}", response_model=MenuItemOut)
def update_item(
    menu_id: str, item_id: str, body: MenuItemUpdate, _session: ElevatedSession, shops: Shops
) -> MenuItemOut:
    return shops.update_item(menu_id, item_id, body)


@menus_router.delete("/{menu_id}/items/{item_id}", response_model=MessageResponse)
def delete_item(menu_id: str, item_id: str, _session: ElevatedSession, shops: Shops) -> MessageResponse:
    shops.delete_item(menu_id, item_id)
    return MessageResponse(message="Menu item deleted")
