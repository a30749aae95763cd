"""Menu catalog service."""

import logging
import uuid
from datetime import UTC, datetime

from hospital_meal_service.auth.token_service import Identity
from hospital_meal_service.errors import NotFoundError
from hospital_meal_service.models.menu_models import (
    MenuCategory,
    MenuItem,
    MenuItemCreateRequest,
    MenuItemUpdateRequest,
)
from hospital_meal_service.observability.decorators import traced
from hospital_meal_service.repositories.menu_repository import MenuItemRepository

logger = logging.getLogger(__name__)


class MenuService:
    """Service for browsing and maintaining the menu."""

    def __init__(self, menu_repository: MenuItemRepository) -> None:
        """Initialize the MenuService.

        Args:
            menu_repository: Repository for menu items
        """
        self.menu_repository = menu_repository

    async def list_items(
        self,
        category: str | None = None,
        search: str | None = None,
        available: bool | None = None,
    ) -> list[MenuItem]:
        """List menu items, newest first.

        Args:
            category: Category name; ``None`` or ``"all"`` disables the filter
            search: Case-insensitive substring matched against name,
                description and tags
            available: Restrict to available (True) or unavailable (False) items

        Returns:
            Matching menu items
        """
        items = self.menu_repository.list_items()

        if category and category != "all":
            items = [item for item in items if item.category.value == category]

        if search:
            needle = search.lower()
            items = [
                item
                for item in items
                if needle in item.name.lower()
                or needle in item.description.lower()
                or any(needle in tag.lower() for tag in item.tags)
            ]

        if available is not None:
            items = [item for item in items if item.is_available == available]

        return items

    async def get_item(self, item_id: str) -> MenuItem:
        item = self.menu_repository.get_item(item_id)
        if item is None:
            raise NotFoundError("Menu item not found")
        return item

    async def list_categories(self) -> list[str]:
        """Distinct categories in use, in menu order."""
        used = {item.category for item in self.menu_repository.list_items()}
        return [category.value for category in MenuCategory if category in used]

    @traced("create_menu_item")
    async def create_item(self, identity: Identity, request: MenuItemCreateRequest) -> MenuItem:
        item = MenuItem(
            id=str(uuid.uuid4()),
            **request.model_dump(),
            created_by=identity.user_id,
            created_at=datetime.now(UTC),
        )
        self.menu_repository.save_item(item)

        logger.info(f"Menu item {item.id} ({item.name}) created by {identity.user_id}")
        return item

    @traced("update_menu_item")
    async def update_item(self, item_id: str, request: MenuItemUpdateRequest) -> MenuItem:
        """Apply a partial update to a menu item.

        Orders already placed keep the name and price captured at order time.

        Raises:
            NotFoundError: No such menu item
        """
        item = await self.get_item(item_id)
        changes = request.model_dump(exclude_unset=True, exclude_none=True)
        changes["updated_at"] = datetime.now(UTC)

        updated = MenuItem.model_validate({**item.model_dump(), **changes})
        self.menu_repository.save_item(updated)
        return updated

    @traced("delete_menu_item")
    async def delete_item(self, item_id: str) -> None:
        if not self.menu_repository.delete_item(item_id):
            raise NotFoundError("Menu item not found")
        logger.info(f"Menu item {item_id} deleted")
