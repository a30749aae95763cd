"""Menu catalog routes. Reads are public, writes need an admin."""

from typing import Annotated

from fastapi import APIRouter, Depends

from hospital_meal_service.auth.api_dependencies import require_admin
from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.handlers.responses import MessageResponse
from hospital_meal_service.handlers.service_dependencies import get_menu_service
from hospital_meal_service.models.base import ApiModel
from hospital_meal_service.models.menu_models import (
    MenuItem,
    MenuItemCreateRequest,
    MenuItemUpdateRequest,
)
from hospital_meal_service.services.menu_service import MenuService

router = APIRouter(prefix="/menu", tags=["Menu"])

AdminIdentity = Annotated[Identity, Depends(require_admin)]
Menu = Annotated[MenuService, Depends(get_menu_service)]


class MenuItemMutationResponse(ApiModel):
    message: str
    menu_item: MenuItem


@router.get("", response_model=list[MenuItem])
async def list_menu(
    menu: Menu,
    category: str | None = None,
    search: str | None = None,
    available: bool | None = None,
) -> list[MenuItem]:
    return await menu.list_items(category=category, search=search, available=available)


@router.get("/categories/list", response_model=list[str])
async def list_categories(menu: Menu) -> list[str]:
    return await menu.list_categories()


@router.get("/{item_id}", response_model=MenuItem)
async def get_menu_item(item_id: str, menu: Menu) -> MenuItem:
    return await menu.get_item(item_id)


@router.post("", response_model=MenuItemMutationResponse, status_code=201)
async def create_menu_item(
    body: MenuItemCreateRequest, admin: AdminIdentity, menu: Menu
) -> MenuItemMutationResponse:
    item = await menu.create_item(admin, body)
    return MenuItemMutationResponse(message="Menu item created successfully", menu_item=item)


@router.put("/{item_id}", response_model=MenuItemMutationResponse)
async def update_menu_item(
    item_id: str, body: MenuItemUpdateRequest, _admin: AdminIdentity, menu: Menu
) -> MenuItemMutationResponse:
    item = await menu.update_item(item_id, body)
    return MenuItemMutationResponse(message="Menu item updated successfully", menu_item=item)


@router.delete("/{item_id}", response_model=MessageResponse)
async def delete_menu_item(item_id: str, _admin: AdminIdentity, menu: Menu) -> MessageResponse:
    await menu.delete_item(item_id)
    return MessageResponse(message="Menu item deleted successfully")
