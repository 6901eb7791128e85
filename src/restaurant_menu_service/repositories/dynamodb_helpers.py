"""Small helpers shared by the DynamoDB repositories."""

from typing import Any

from botocore.exceptions import ClientError
from mypy_boto3_dynamodb.service_resource import Table


def scan_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Scan a table, following LastEvaluatedKey until every page is read.

    Args:
        table: DynamoDB table resource
        **kwargs: Extra scan arguments (e.g. ProjectionExpression)

    Returns:
        list: All items returned by the scan
    """
    response = table.scan(**kwargs)
    items = list(response.get("Items", []))

    while "LastEvaluatedKey" in response:
        response = table.scan(ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs)
        items.extend(response.get("Items", []))

    return items


def query_all(table: Table, **kwargs: Any) -> list[dict[str, Any]]:
    """Query a table, following LastEvaluatedKey until every page is read."""
    response = table.query(**kwargs)
    items = list(response.get("Items", []))

    while "LastEvaluatedKey" in response:
        response = table.query(ExclusiveStartKey=response["LastEvaluatedKey"], **kwargs)
        items.extend(response.get("Items", []))

    return items


def build_update_expression(
    fields: dict[str, Any], key_attribute: str
) -> dict[str, Any]:
    """Build update_item arguments that merge fields into an existing item.

    Fields whose value is None are removed from the item. Every attribute
    name goes through a placeholder because several of ours ('order',
    'name') are DynamoDB reserved words. The update is conditional on the
    item existing, so a missing document fails instead of being created.

    Args:
        fields: Attribute names mapped to their new values
        key_attribute: Partition key attribute used for the existence check

    Returns:
        dict: Keyword arguments for Table.update_item (without Key)
    """
    set_parts: list[str] = []
    remove_parts: list[str] = []
    names: dict[str, str] = {"#pk": key_attribute}
    values: dict[str, Any] = {}

    for index, (attribute, value) in enumerate(fields.items()):
        name = f"#f{index}"
        names[name] = attribute
        if value is None:
            remove_parts.append(name)
        else:
            set_parts.append(f"{name} = :v{index}")
            values[f":v{index}"] = value

    expression = "SET " + ", ".join(set_parts)
    if remove_parts:
        expression += " REMOVE " + ", ".join(remove_parts)

    arguments: dict[str, Any] = {
        "UpdateExpression": expression,
        "ConditionExpression": "attribute_exists(#pk)",
        "ExpressionAttributeNames": names,
    }
    if values:
        arguments["ExpressionAttributeValues"] = values
    return arguments


def is_missing_item_error(error: ClientError) -> bool:
    """Whether a ClientError came from a failed attribute_exists condition."""
    return error.response.get("Error", {}).get("Code") == "ConditionalCheckFailedException"
