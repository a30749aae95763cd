"""DynamoDB repository for orders.

Status changes go through a single conditional ``UpdateItem`` so that the
read-validate-write done by the lifecycle engine cannot silently overwrite a
concurrent change: the write only lands if the stored status is still the one
that was validated.
"""

import logging
from datetime import datetime

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import DynamoDBServiceResource, Table

from hospital_meal_service.errors import RepositoryError
from hospital_meal_service.models.order_models import Order, OrderStatus, PaymentStatus
from hospital_meal_service.repositories.dynamodb import (
    is_conditional_check_failure,
    query_all,
    scan_all,
)

logger = logging.getLogger(__name__)


class OrderRepository:
    """Repository for order CRUD operations.

    Manages order records in DynamoDB with ``order_id`` as partition key and a
    ``user_id-index`` GSI sorted by ``created_at``.
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

    def create_order(self, order: Order) -> bool:
        """Insert a new order.

        Args:
            order: Order to insert

        Returns:
            bool: True if inserted, False if an order with the same id exists
        """
        try:
            self.table.put_item(
                Item=order.to_dynamodb_item(),
                ConditionExpression="attribute_not_exists(order_id)",
            )
            return True

        except ClientError as e:
            if is_conditional_check_failure(e):
                return False
            logger.error(f"Failed to create order: {e}")
            raise RepositoryError(str(e)) from e

    def get_order(self, order_id: str) -> Order | None:
        """Retrieve an order by id.

        Args:
            order_id: Order identifier

        Returns:
            Order if found, None otherwise
        """
        try:
            response = self.table.get_item(Key={"order_id": order_id}, ConsistentRead=True)

            if "Item" not in response:
                return None

            return Order.from_dynamodb_item(response["Item"])

        except ClientError as e:
            logger.error(f"Failed to get order: {e}")
            raise RepositoryError(str(e)) from e

    def list_orders_for_user(self, user_id: str, limit: int | None = None) -> list[Order]:
        """List a user's orders, newest first.

        Uses a Global Secondary Index on user_id.

        Args:
            user_id: Owner identifier
            limit: Optional maximum number of orders to return

        Returns:
            list: Orders (empty list if none found)
        """
        try:
            items = query_all(
                self.table,
                IndexName="user_id-index",
                KeyConditionExpression="user_id = :uid",
                ExpressionAttributeValues={":uid": user_id},
                ScanIndexForward=False,  # Most recent first
            )

        except ClientError as e:
            logger.error(f"Failed to list orders for user: {e}")
            raise RepositoryError(str(e)) from e

        orders = [Order.from_dynamodb_item(item) for item in items]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders[:limit] if limit is not None else orders

    def list_orders(self, status: OrderStatus | None = None) -> list[Order]:
        """List all orders, optionally restricted to one status, newest first.

        Args:
            status: Optional status filter

        Returns:
            list: Orders (empty list if none found)
        """
        kwargs: dict = {}
        if status is not None:
            kwargs = {
                "FilterExpression": "#status = :status",
                "ExpressionAttributeNames": {"#status": "status"},
                "ExpressionAttributeValues": {":status": status.value},
            }

        try:
            items = scan_all(self.table, **kwargs)

        except ClientError as e:
            logger.error(f"Failed to list orders: {e}")
            raise RepositoryError(str(e)) from e

        orders = [Order.from_dynamodb_item(item) for item in items]
        orders.sort(key=lambda o: o.created_at, reverse=True)
        return orders

    def update_status(
        self,
        order_id: str,
        expected_status: OrderStatus,
        new_status: OrderStatus,
        updated_at: datetime,
        expected_payment_status: PaymentStatus | None = None,
        new_payment_status: PaymentStatus | None = None,
        transaction_id: str | None = None,
    ) -> Order | None:
        """Atomically move an order from one status to another.

        The status, timestamp and optional payment fields are written in one
        UpdateItem guarded by a condition on the values the caller read.

        Args:
            order_id: Order identifier
            expected_status: Status the order must still have
            new_status: Status to write
            updated_at: New modification timestamp
            expected_payment_status: Payment status the order must still have
            new_payment_status: Payment status to write, if it changes
            transaction_id: Payment transaction reference to write, if any

        Returns:
            The updated Order, or None if the stored values no longer match
        """
        set_clauses = ["#status = :status", "updated_at = :updated_at"]
        conditions = ["#status = :expected_status"]
        names = {"#status": "status"}
        values: dict = {
            ":status": new_status.value,
            ":updated_at": updated_at.isoformat(),
            ":expected_status": expected_status.value,
        }

        if new_payment_status is not None:
            set_clauses.append("payment_details.#payment_status = :payment_status")
            names["#payment_status"] = "status"
            values[":payment_status"] = new_payment_status.value

        if transaction_id is not None:
            set_clauses.append("payment_details.transaction_id = :transaction_id")
            values[":transaction_id"] = transaction_id

        if expected_payment_status is not None:
            conditions.append("payment_details.#payment_status = :expected_payment_status")
            names["#payment_status"] = "status"
            values[":expected_payment_status"] = expected_payment_status.value

        try:
            response = self.table.update_item(
                Key={"order_id": order_id},
                UpdateExpression="SET " + ", ".join(set_clauses),
                ConditionExpression=" AND ".join(conditions),
                ExpressionAttributeNames=names,
                ExpressionAttributeValues=values,
                ReturnValues="ALL_NEW",
            )

        except ClientError as e:
            if is_conditional_check_failure(e):
                logger.warning(
                    f"Conditional status update rejected for order {order_id} "
                    f"(expected {expected_status.value})"
                )
                return None
            logger.error(f"Failed to update order status: {e}")
            raise RepositoryError(str(e)) from e

        return Order.from_dynamodb_item(response["Attributes"])
