"""
Key-value storage for tenant tokens on a DynamoDB table.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Optional

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.exceptions import BotoCoreError, ClientError

from salla_relay.clients.kv_backend import StoreUnavailableError
from salla_relay.core.config import StoreSettings


class DynamoDBStore:
    """Documents live in a ``data`` attribute of items keyed by ``pk``."""

    name = "dynamodb"

    def __init__(self, settings: StoreSettings, table: Any = None) -> None:
        if table is None:
            if not settings.dynamodb_table_name:
                raise ValueError("DYNAMODB_TABLE_NAME is required for the dynamodb backend.")
            resource = boto3.resource("dynamodb", region_name=settings.region_name)
            table = resource.Table(settings.dynamodb_table_name)
        self._table = table

    def set(self, key: str, value: Dict[str, Any]) -> None:
        """Put an item in the DynamoDB table."""
        item = {"pk": key, "data": json.dumps(value, sort_keys=True)}
        try:
            self._table.put_item(Item=item)
        except (BotoCoreError, ClientError) as exc:
            raise StoreUnavailableError(f"DynamoDB put failed for {key}: {exc}") from exc

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Retrieve an item using its key."""
        try:
            response = self._table.get_item(Key={"pk": key})
        except (BotoCoreError, ClientError) as exc:
            raise StoreUnavailableError(f"DynamoDB get failed for {key}: {exc}") from exc
        item = response.get("Item")
        if not item:
            return None
        return json.loads(item["data"])

    def iter_keys(self, prefix: str) -> Iterator[str]:
        """Scan the table page by page for keys starting with ``prefix``."""
        scan_kwargs: Dict[str, Any] = {
            "FilterExpression": Attr("pk").begins_with(prefix),
            "ProjectionExpression": "pk",
        }
        while True:
            try:
                response = self._table.scan(**scan_kwargs)
            except (BotoCoreError, ClientError) as exc:
                raise StoreUnavailableError(f"DynamoDB scan failed: {exc}") from exc
            for item in response.get("Items", []):
                yield item["pk"]
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return
            scan_kwargs["ExclusiveStartKey"] = last_key


__all__ = ["DynamoDBStore"]
