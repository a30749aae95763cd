"""Shared pytest fixtures and configuration for all tests."""

import os

# Must be set before the entry point modules are imported by any test
os.environ.setdefault("ENVIRONMENT", "test")

import copy  # noqa: E402
import threading  # noqa: E402
from datetime import UTC, datetime  # noqa: E402
from typing import Any  # noqa: E402

import pytest  # noqa: E402
from botocore.exceptions import ClientError  # noqa: E402

from hospital_meal_service.auth.token_service import TokenService  # noqa: E402
from hospital_meal_service.models.user_models import Role, User  # noqa: E402
from tests.factories import make_user  # noqa: E402

TEST_TOKEN_SECRET = "test-secret-key"


def conditional_check_failed(operation: str) -> ClientError:
    return ClientError(
        {"Error": {"Code": "ConditionalCheckFailedException", "Message": "The conditional request failed"}},
        operation,
    )


class FakeDynamoTable:
    """In-memory stand-in for a boto3 DynamoDB Table.

    Understands the expression shapes the repositories emit: ``attribute_exists``
    / ``attribute_not_exists`` guards, ``SET a = :a, b.#c = :c`` updates with
    ``AND``-joined equality conditions, single-key queries and equality scan
    filters. Writes are serialized by a lock so conditional updates behave
    atomically across threads.

    ``read_barrier`` (if set) is awaited by the first ``barrier_reads`` calls
    to ``get_item``, which lets a test force two readers to see the same
    version before either writes.
    """

    def __init__(self, key_name: str) -> None:
        self.key_name = key_name
        self.items: dict[str, dict[str, Any]] = {}
        self.lock = threading.Lock()
        self.read_barrier: threading.Barrier | None = None
        self.barrier_reads = 0

    def seed(self, item: dict[str, Any]) -> None:
        self.items[item[self.key_name]] = copy.deepcopy(item)

    def get_item(self, Key: dict[str, Any], **kwargs: Any) -> dict[str, Any]:  # noqa: N803
        with self.lock:
            item = copy.deepcopy(self.items.get(Key[self.key_name]))
            wait = self.read_barrier is not None and self.barrier_reads > 0
            if wait:
                self.barrier_reads -= 1

        if wait:
            self.read_barrier.wait(timeout=5)

        return {"Item": item} if item is not None else {}

    def put_item(self, Item: dict[str, Any], ConditionExpression: str | None = None) -> dict:  # noqa: N803
        with self.lock:
            exists = Item[self.key_name] in self.items
            if ConditionExpression and ConditionExpression.startswith("attribute_not_exists") and exists:
                raise conditional_check_failed("PutItem")
            self.items[Item[self.key_name]] = copy.deepcopy(Item)
        return {}

    def delete_item(self, Key: dict[str, Any], ConditionExpression: str | None = None) -> dict:  # noqa: N803
        with self.lock:
            key = Key[self.key_name]
            if ConditionExpression and ConditionExpression.startswith("attribute_exists") and key not in self.items:
                raise conditional_check_failed("DeleteItem")
            self.items.pop(key, None)
        return {}

    def update_item(
        self,
        Key: dict[str, Any],  # noqa: N803
        UpdateExpression: str,  # noqa: N803
        ExpressionAttributeValues: dict[str, Any],  # noqa: N803
        ConditionExpression: str | None = None,  # noqa: N803
        ExpressionAttributeNames: dict[str, str] | None = None,  # noqa: N803
        ReturnValues: str = "NONE",  # noqa: N803
    ) -> dict[str, Any]:
        names = ExpressionAttributeNames or {}
        values = ExpressionAttributeValues

        with self.lock:
            item = self.items.get(Key[self.key_name])

            if ConditionExpression:
                for clause in ConditionExpression.split(" AND "):
                    path, placeholder = (part.strip() for part in clause.split("="))
                    if item is None or _resolve(item, path, names) != values[placeholder]:
                        raise conditional_check_failed("UpdateItem")

            if item is None:
                item = dict(Key)
                self.items[Key[self.key_name]] = item

            for assignment in UpdateExpression.removeprefix("SET ").split(","):
                path, placeholder = (part.strip() for part in assignment.split("="))
                _assign(item, path, names, values[placeholder])

            return {"Attributes": copy.deepcopy(item)} if ReturnValues == "ALL_NEW" else {}

    def query(
        self,
        KeyConditionExpression: str,  # noqa: N803
        ExpressionAttributeValues: dict[str, Any],  # noqa: N803
        Limit: int | None = None,  # noqa: N803
        **kwargs: Any,
    ) -> dict[str, Any]:
        attribute, placeholder = (part.strip() for part in KeyConditionExpression.split("="))
        with self.lock:
            matches = [
                copy.deepcopy(item)
                for item in self.items.values()
                if item.get(attribute) == ExpressionAttributeValues[placeholder]
            ]
        return {"Items": matches[:Limit] if Limit else matches}

    def scan(
        self,
        FilterExpression: Any = None,  # noqa: N803
        ExpressionAttributeNames: dict[str, str] | None = None,  # noqa: N803
        ExpressionAttributeValues: dict[str, Any] | None = None,  # noqa: N803
        **kwargs: Any,
    ) -> dict[str, Any]:
        with self.lock:
            items = [copy.deepcopy(item) for item in self.items.values()]

        if FilterExpression is None:
            return {"Items": items}

        if isinstance(FilterExpression, str):
            path, placeholder = (part.strip() for part in FilterExpression.split("="))
            expected = (ExpressionAttributeValues or {})[placeholder]
            names = ExpressionAttributeNames or {}
            return {"Items": [i for i in items if _resolve(i, path, names) == expected]}

        # boto3 condition object, e.g. Attr("role").eq("admin")
        expression = FilterExpression.get_expression()
        attribute, expected = expression["values"]
        return {"Items": [i for i in items if i.get(attribute.name) == expected]}


def _resolve(item: dict[str, Any], path: str, names: dict[str, str]) -> Any:
    current: Any = item
    for part in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(names.get(part, part))
    return current


def _assign(item: dict[str, Any], path: str, names: dict[str, str], value: Any) -> None:
    parts = [names.get(part, part) for part in path.split(".")]
    target = item
    for part in parts[:-1]:
        target = target.setdefault(part, {})
    target[parts[-1]] = value


class FakeDynamoResource:
    """Stand-in for ``boto3.resource("dynamodb")``.

    Tables are created on first use; the key attribute is picked from the
    table name suffix.
    """

    KEY_NAMES = {"users": "user_id", "menu": "item_id", "orders": "order_id", "settings": "category"}

    def __init__(self) -> None:
        self.tables: dict[str, FakeDynamoTable] = {}

    def Table(self, name: str) -> FakeDynamoTable:  # noqa: N802
        if name not in self.tables:
            key_name = next(key for suffix, key in self.KEY_NAMES.items() if name.endswith(suffix))
            self.tables[name] = FakeDynamoTable(key_name)
        return self.tables[name]


@pytest.fixture
def fake_dynamodb() -> FakeDynamoResource:
    """Fixture providing an empty in-memory DynamoDB resource."""
    return FakeDynamoResource()


@pytest.fixture
def token_service() -> TokenService:
    """Fixture providing a token service with a fixed test secret."""
    return TokenService(secret_key=TEST_TOKEN_SECRET)


@pytest.fixture
def now() -> datetime:
    return datetime(2024, 3, 14, 9, 30, tzinfo=UTC)


@pytest.fixture
def patient() -> User:
    return make_user("patient_1", Role.PATIENT)


@pytest.fixture
def admin() -> User:
    return make_user("admin_1", Role.ADMIN)


@pytest.fixture
def superadmin() -> User:
    return make_user("super_1", Role.SUPERADMIN)
