"""In-memory stand-ins for the DynamoDB resource and S3 client.

They implement only the calls the repositories and image store make, with
the same request and error shapes boto3 uses, so the real repositories,
services and HTTP app can be exercised without AWS.
"""

import copy
from typing import Any

from botocore.exceptions import ClientError

ADMIN_SECRET = "component-secret"
PUBLIC_BASE_URL = "https://menu-images.example.com"

KEY_SCHEMAS = {
    "menu-categories": ("category_id",),
    "menu-items": ("category_id", "item_id"),
    "menu-ratings": ("rating_id",),
}


def _client_error(code: str, operation: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": f"{operation} failed"}}, operation)


class FakeTable:
    """Dictionary-backed DynamoDB table."""

    def __init__(self, key_attributes: tuple[str, ...]) -> None:
        self.key_attributes = key_attributes
        self.records: dict[tuple[Any, ...], dict[str, Any]] = {}
        self.failing: set[str] = set()
        self.calls: list[str] = []

    def _key(self, values: dict[str, Any]) -> tuple[Any, ...]:
        return tuple(values[attribute] for attribute in self.key_attributes)

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.failing:
            raise _client_error("InternalServerError", operation)

    def scan(self, **kwargs: Any) -> dict[str, Any]:
        self._check("Scan")
        return {"Items": [copy.deepcopy(r) for r in self.records.values()]}

    def query(self, **kwargs: Any) -> dict[str, Any]:
        self._check("Query")
        partition = kwargs["ExpressionAttributeValues"][":cid"]
        items = [
            copy.deepcopy(r) for r in self.records.values() if r["category_id"] == partition
        ]
        return {"Items": items}

    def get_item(self, Key: dict[str, Any]) -> dict[str, Any]:
        self._check("GetItem")
        record = self.records.get(self._key(Key))
        return {"Item": copy.deepcopy(record)} if record is not None else {}

    def put_item(self, Item: dict[str, Any]) -> dict[str, Any]:
        self._check("PutItem")
        self.records[self._key(Item)] = copy.deepcopy(Item)
        return {}

    def update_item(
        self,
        Key: dict[str, Any],
        UpdateExpression: str,
        ConditionExpression: str,
        ExpressionAttributeNames: dict[str, str],
        ExpressionAttributeValues: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        self._check("UpdateItem")
        record = self.records.get(self._key(Key))
        if record is None:
            raise _client_error("ConditionalCheckFailedException", "UpdateItem")

        values = ExpressionAttributeValues or {}
        set_clause, _, remove_clause = UpdateExpression.removeprefix("SET ").partition(" REMOVE ")
        for assignment in set_clause.split(", "):
            name, value = assignment.split(" = ")
            record[ExpressionAttributeNames[name]] = copy.deepcopy(values[value])
        for name in filter(None, remove_clause.split(", ")):
            record.pop(ExpressionAttributeNames[name], None)
        return {}

    def delete_item(self, Key: dict[str, Any]) -> dict[str, Any]:
        self._check("DeleteItem")
        self.records.pop(self._key(Key), None)
        return {}


class FakeDynamoDB:
    """DynamoDB resource handing out one FakeTable per table name."""

    def __init__(self) -> None:
        self.tables = {name: FakeTable(keys) for name, keys in KEY_SCHEMAS.items()}

    def Table(self, name: str) -> FakeTable:  # noqa: N802
        return self.tables[name]


class FakeS3:
    """Dictionary-backed S3 client for a single bucket."""

    def __init__(self) -> None:
        self.objects: dict[str, dict[str, Any]] = {}
        self.failing: set[str] = set()

    def put_object(self, Bucket: str, Key: str, Body: bytes, ContentType: str) -> dict[str, Any]:
        if "PutObject" in self.failing:
            raise _client_error("ServiceUnavailable", "PutObject")
        self.objects[Key] = {"Body": Body, "ContentType": ContentType}
        return {}

    def delete_object(self, Bucket: str, Key: str) -> dict[str, Any]:
        if "DeleteObject" in self.failing:
            raise _client_error("ServiceUnavailable", "DeleteObject")
        self.objects.pop(Key, None)
        return {}


class FakeClock:
    """Manually advanced monotonic clock for the category cache."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

