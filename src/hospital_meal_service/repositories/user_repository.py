"""DynamoDB repository for user accounts."""

import logging

from boto3.dynamodb.conditions import Attr
from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from hospital_meal_service.errors import RepositoryError
from hospital_meal_service.models.user_models import Role, User
from hospital_meal_service.repositories.dynamodb import is_conditional_check_failure, scan_all

logger = logging.getLogger(__name__)


class UserRepository:
    """Repository for user CRUD operations.

    Manages user records in DynamoDB with ``user_id`` as partition key and
    ``email-index`` / ``patient_id-index`` GSIs for uniqueness lookups.
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

    def create_user(self, user: User) -> bool:
        """Insert a new user.

        Args:
            user: User to insert

        Returns:
            bool: True if inserted, False if the id is already taken
        """
        try:
            self.table.put_item(
                Item=user.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(user_id)",
            )
            return True

        except ClientError as e:
            if is_conditional_check_failure(e):
                return False
            logger.error(f"Failed to create user: {e}")
            raise RepositoryError(str(e)) from e

    def save_user(self, user: User) -> None:
        """Overwrite an existing user record.

        Args:
            user: User to save
        """
        try:
            self.table.put_item(Item=user.to_dynamodb_item())

        except ClientError as e:
            logger.error(f"Failed to save user: {e}")
            raise RepositoryError(str(e)) from e

    def get_user(self, user_id: str) -> User | None:
        """Retrieve a user by id.

        Args:
            user_id: User identifier

        Returns:
            User if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"user_id": user_id})

            if "Item" not in response:
                return None

            return User.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get user: {e}")
            raise RepositoryError(str(e)) from e

    def get_user_by_email(self, email: str) -> User | None:
        """Look up a user by login email via the email GSI."""
        return self._get_by_index("email-index", "email", email)

    def get_user_by_patient_id(self, patient_id: str) -> User | None:
        """Look up a user by hospital patient id via the patient_id GSI."""
        if not patient_id:
            return None
        return self._get_by_index("patient_id-index", "patient_id", patient_id)

    def _get_by_index(self, index_name: str, attribute: str, value: str) -> User | None:
        try:
            response = self.table.query(
                IndexName=index_name,
                KeyConditionExpression=f"{attribute} = :value",
                ExpressionAttributeValues={":value": value},
                Limit=1,
            )

        except ClientError as e:
            logger.error(f"Failed to query users by {attribute}: {e}")
            raise RepositoryError(str(e)) from e

        items = response.get("Items", [])
        return User.from_dynamodb_item(items[0]) if items else None

    def list_users(self, role: Role | None = None) -> list[User]:
        """List users, optionally restricted to one role, newest first.

        Args:
            role: Optional role filter

        Returns:
            list: Users (empty list if none found)
        """
        kwargs = {}
        if role is not None:
            kwargs["FilterExpression"] = Attr("role").eq(role.value)

        try:
            items = scan_all(self.table, **kwargs)

        except ClientError as e:
            logger.error(f"Failed to list users: {e}")
            raise RepositoryError(str(e)) from e

        users = [User.from_dynamodb_item(item) for item in items]
        users.sort(key=lambda u: u.created_at, reverse=True)
        return users

    def delete_user(self, user_id: str) -> bool:
        """Delete a user.

        Args:
            user_id: User identifier

        Returns:
            bool: True if a record was deleted, False if none existed
        """
        try:
            self.table.delete_item(
                Key={"user_id": user_id},
                ConditionExpression="attribute_exists(user_id)",
            )
            return True

        except ClientError as e:
            if is_conditional_check_failure(e):
                return False
            logger.error(f"Failed to delete user: {e}")
            raise RepositoryError(str(e)) from e
