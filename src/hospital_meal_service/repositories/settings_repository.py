"""DynamoDB repository for settings documents."""

import logging

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from hospital_meal_service.errors import RepositoryError
from hospital_meal_service.models.settings_models import SettingsCategory, SettingsRecord

logger = logging.getLogger(__name__)


class SettingsRepository:
    """Repository for settings documents keyed by ``category``."""

    def __init__(self, dynamodb_resource: DynamoDBServiceResource, table_name: str) -> None:
        """Initialize repository.

        Args:
            dynamodb_resource: Boto3 DynamoDB resource
            table_name: Name of the DynamoDB table
        """
        self.dynamodb = dynamodb_resource
        self.table_name = table_name
        self.table: Table = dynamodb_resource.Table(table_name)

    def get_settings(self, category: SettingsCategory) -> SettingsRecord | None:
        """Retrieve a settings document.

        Args:
            category: Settings category

        Returns:
            SettingsRecord if stored, None otherwise
        """
        try:
            response = self.table.get_item(Key={"category": category.value})

            if "Item" not in response:
                return None

            return SettingsRecord.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get {category.value} settings: {e}")
            raise RepositoryError(str(e)) from e

    def save_settings(self, record: SettingsRecord) -> None:
        """Insert or overwrite a settings document.

        Args:
            record: SettingsRecord to save
        """
        try:
            self.table.put_item(Item=record.to_dynamodb_item())

        except ClientError as e:
            logger.error(f"Failed to save {record.category.value} settings: {e}")
            raise RepositoryError(str(e)) from e
