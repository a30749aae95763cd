"""Menu catalog models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import Field

from hospital_meal_service.models.base import ApiModel, drop_none, from_decimal, to_decimal


class MenuCategory(str, Enum):
    """Closed set of menu categories."""

    BREAKFAST = "Breakfast"
    LUNCH = "Lunch"
    DINNER = "Dinner"
    SNACKS = "Snacks"
    BEVERAGES = "Beverages"


DEFAULT_IMAGE = "default-food.jpg"


class NutritionalInfo(ApiModel):
    """Per-serving nutritional facts. All values optional."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None
    sodium: float | None = None

    def to_dynamodb_map(self) -> dict[str, Any]:
        return drop_none({name: to_decimal(value) for name, value in self.model_dump().items()})

    @classmethod
    def from_dynamodb_map(cls, data: dict[str, Any]) -> "NutritionalInfo":
        return cls(**{name: from_decimal(value) for name, value in data.items()})


class DietaryInfo(ApiModel):
    """Dietary suitability flags."""

    is_vegetarian: bool = False
    is_vegan: bool = False
    is_gluten_free: bool = False
    is_dairy_free: bool = False
    is_nut_free: bool = False


class MenuItem(ApiModel):
    """Menu catalog entry.

    Stored in DynamoDB with ``item_id`` as partition key. Orders reference
    items by id but keep their own snapshot, so deleting an item never touches
    existing orders.
    """

    id: str = Field(..., description="Unique identifier for the menu item")
    name: str = Field(..., description="Item name")
    description: str = Field(..., description="Item description")
    price: float = Field(..., description="Unit price", ge=0)
    category: MenuCategory = Field(..., description="Menu category")
    image: str = Field(default=DEFAULT_IMAGE, description="Image URL")
    tags: list[str] = Field(default_factory=list)
    nutritional_info: NutritionalInfo = Field(default_factory=NutritionalInfo)
    allergens: list[str] = Field(default_factory=list)
    dietary_info: DietaryInfo = Field(default_factory=DietaryInfo)
    is_available: bool = Field(default=True, description="Whether item can be ordered")
    created_by: str | None = Field(None, description="User who created the item")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last modification timestamp")

    def to_dynamodb_item(self) -> dict[str, Any]:
        """Convert to DynamoDB item format.

        Returns:
            dict: DynamoDB-compatible representation
        """
        item: dict[str, Any] = {
            "item_id": self.id,
            "name": self.name,
            "description": self.description,
            "price": to_decimal(self.price),
            "category": self.category.value,
            "image": self.image,
            "tags": self.tags,
            "nutritional_info": self.nutritional_info.to_dynamodb_map(),
            "allergens": self.allergens,
            "dietary_info": self.dietary_info.model_dump(),
            "is_available": self.is_available,
            "created_at": self.created_at.isoformat(),
        }

        if self.created_by is not None:
            item["created_by"] = self.created_by

        if self.updated_at is not None:
            item["updated_at"] = self.updated_at.isoformat()

        return item

    @classmethod
    def from_dynamodb_item(cls, item: dict[str, Any]) -> "MenuItem":
        """Create MenuItem from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            MenuItem: Parsed model instance
        """
        data: dict[str, Any] = {
            "id": item["item_id"],
            "name": item["name"],
            "description": item.get("description", ""),
            "price": from_decimal(item["price"]),
            "category": MenuCategory(item["category"]),
            "image": item.get("image", DEFAULT_IMAGE),
            "tags": list(item.get("tags", [])),
            "nutritional_info": NutritionalInfo.from_dynamodb_map(item.get("nutritional_info", {})),
            "allergens": list(item.get("allergens", [])),
            "dietary_info": DietaryInfo(**item.get("dietary_info", {})),
            "is_available": item.get("is_available", True),
            "created_by": item.get("created_by"),
            "created_at": datetime.fromisoformat(item["created_at"]),
        }

        if "updated_at" in item:
            data["updated_at"] = datetime.fromisoformat(item["updated_at"])

        return cls(**data)


class MenuItemCreateRequest(ApiModel):
    """Payload for adding a menu item."""

    name: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: MenuCategory
    image: str = DEFAULT_IMAGE
    tags: list[str] = Field(default_factory=list)
    nutritional_info: NutritionalInfo = Field(default_factory=NutritionalInfo)
    allergens: list[str] = Field(default_factory=list)
    dietary_info: DietaryInfo = Field(default_factory=DietaryInfo)
    is_available: bool = True


class MenuItemUpdateRequest(ApiModel):
    """Partial update for a menu item. Omitted fields are left unchanged."""

    name: str | None = None
    description: str | None = None
    price: float | None = Field(None, ge=0)
    category: MenuCategory | None = None
    image: str | None = None
    tags: list[str] | None = None
    nutritional_info: NutritionalInfo | None = None
    allergens: list[str] | None = None
    dietary_info: DietaryInfo | None = None
    is_available: bool | None = None
