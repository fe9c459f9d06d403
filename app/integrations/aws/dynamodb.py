"""DynamoDB client returning OperationResult.

Wraps a boto3 DynamoDB client with consistent error classification and
automatic pagination for query and scan.

Usage:
    client = DynamoDBClient(region_name="ca-central-1")
    result = client.get_item("notifications", Key={"id": {"S": "123"}})
    if result.is_success:
        item = result.data
"""

from typing import Any, Dict, List, Optional

import boto3  # type: ignore
from botocore.client import BaseClient  # type: ignore
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore

from infrastructure.logging import get_module_logger
from infrastructure.operations import OperationResult, classify_aws_error

logger = get_module_logger()


class DynamoDBClient:
    """Thin DynamoDB client; every call returns an OperationResult.

    Args:
        region_name: AWS region
        endpoint_url: Optional endpoint override (local DynamoDB)
        client: Optional pre-built boto3 client
    """

    def __init__(
        self,
        region_name: str = "ca-central-1",
        endpoint_url: Optional[str] = None,
        client: Optional[BaseClient] = None,
    ) -> None:
        self._region_name = region_name
        self._endpoint_url = endpoint_url
        self._client = client

    @property
    def client(self) -> BaseClient:
        if self._client is None:
            kwargs: Dict[str, Any] = {"region_name": self._region_name}
            if self._endpoint_url:
                kwargs["endpoint_url"] = self._endpoint_url
            self._client = boto3.client("dynamodb", **kwargs)
        return self._client

    def get_item(self, table_name: str, Key: Dict[str, Any], **kwargs) -> OperationResult:
        """Get an item; ``data`` is the item or None when absent."""
        result = self._call("get_item", TableName=table_name, Key=Key, **kwargs)
        if result.is_success:
            result.data = result.data.get("Item")
        return result

    def put_item(
        self, table_name: str, Item: Dict[str, Any], **kwargs
    ) -> OperationResult:
        return self._call("put_item", TableName=table_name, Item=Item, **kwargs)

    def delete_item(
        self, table_name: str, Key: Dict[str, Any], **kwargs
    ) -> OperationResult:
        return self._call("delete_item", TableName=table_name, Key=Key, **kwargs)

    def query(self, table_name: str, **kwargs) -> OperationResult:
        """Query all pages (or up to ``Limit`` items); ``data`` is the item list."""
        return self._paginate("query", TableName=table_name, **kwargs)

    def scan(self, table_name: str, **kwargs) -> OperationResult:
        """Scan all pages; ``data`` is the item list."""
        return self._paginate("scan", TableName=table_name, **kwargs)

    def _call(self, method: str, **kwargs) -> OperationResult:
        try:
            response = getattr(self.client, method)(**kwargs)
        except (ClientError, BotoCoreError) as e:
            result = classify_aws_error(e)
            logger.error(
                "dynamodb_call_failed",
                method=method,
                table=kwargs.get("TableName"),
                error=result.message,
                error_code=result.error_code,
            )
            return result
        return OperationResult.success(data=response)

    def _paginate(self, method: str, **kwargs) -> OperationResult:
        limit = kwargs.pop("Limit", None)
        items: List[Dict[str, Any]] = []
        try:
            while True:
                if limit is not None:
                    kwargs["Limit"] = limit - len(items)
                response = getattr(self.client, method)(**kwargs)
                items.extend(response.get("Items", []))
                last_key = response.get("LastEvaluatedKey")
                if not last_key or (limit is not None and len(items) >= limit):
                    break
                kwargs["ExclusiveStartKey"] = last_key
        except (ClientError, BotoCoreError) as e:
            result = classify_aws_error(e)
            logger.error(
                "dynamodb_call_failed",
                method=method,
                table=kwargs.get("TableName"),
                error=result.message,
                error_code=result.error_code,
            )
            return result

        logger.debug(
            "dynamodb_pagination_completed",
            method=method,
            table=kwargs.get("TableName"),
            item_count=len(items),
        )
        return OperationResult.success(data=items)
