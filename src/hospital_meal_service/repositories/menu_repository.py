"""DynamoDB repository for the menu catalog."""

import logging

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from hospital_meal_service.errors import RepositoryError
from hospital_meal_service.models.menu_models import MenuItem
from hospital_meal_service.repositories.dynamodb import is_conditional_check_failure, scan_all

logger = logging.getLogger(__name__)


class MenuItemRepository:
    """Repository for menu item CRUD operations.

    Manages menu items in DynamoDB with ``item_id`` as partition key.
    """

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def save_item(self, item: MenuItem) -> None:
        """Insert or overwrite a menu item.

        Args:
            item: MenuItem to save
        """
        try:
            self.table.put_item(Item=item.to_dynamodb_item())

        except ClientError as e:
            logger.error(f"Failed to save menu item: {e}")
            raise RepositoryError(str(e)) from e

    def get_item(self, item_id: str) -> MenuItem | None:
        """Retrieve a menu item by id.

        Args:
            item_id: Menu item identifier

        Returns:
            MenuItem if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"item_id": item_id})

            if "Item" not in response:
                return None

            return MenuItem.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get menu item: {e}")
            raise RepositoryError(str(e)) from e

    def list_items(self) -> list[MenuItem]:
        """List the whole catalog, newest first.

        Returns:
            list: Menu items (empty list if none found)
        """
        try:
            items = scan_all(self.table)

        except ClientError as e:
            logger.error(f"Failed to list menu items: {e}")
            raise RepositoryError(str(e)) from e

        menu = [MenuItem.from_dynamodb_item(item) for item in items]
        menu.sort(key=lambda m: m.created_at, reverse=True)
        return menu

    def delete_item(self, item_id: str) -> bool:
        """Delete a menu item. Orders keep their own snapshot of it.

        Args:
            item_id: Menu item identifier

        Returns:
            bool: True if a record was deleted, False if none existed
        """
        try:
            self.table.delete_item(
                Key={"item_id": item_id},
                ConditionExpression="attribute_exists(item_id)",
            )
            return True

        except ClientError as e:
            if is_conditional_check_failure(e):
                return False
            logger.error(f"Failed to delete menu item: {e}")
            raise RepositoryError(str(e)) from e
