"""AWS integrations."""

from integrations.aws.dynamodb import DynamoDBClient

__all__ = ["DynamoDBClient"]
