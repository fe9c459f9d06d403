"""Error classifiers for provider exceptions.

Converts exceptions raised by the Expo push API (``requests``) and the AWS
SDK (``botocore``) into OperationResult objects.

Usage:
    from infrastructure.operations.classifiers import classify_http_error

    try:
        tickets = provider.send_batch(messages)
    except Exception as exc:
        result = classify_http_error(exc)
"""

from typing import Optional

import requests
from botocore.exceptions import ClientError

from infrastructure.operations.result import OperationResult

THROTTLING_CODES = ("ThrottlingException", "ProvisionedThroughputExceededException")
INVALID_REQUEST_CODES = ("ValidationException", "InvalidParameterException")


def classify_http_error(exc: Exception) -> OperationResult:
    """Classify ``requests`` errors into OperationResult.

    Status Code Mapping:
    - 429: Rate limiting -> TRANSIENT_ERROR (``RATE_LIMITED``)
    - 5xx: Server error -> TRANSIENT_ERROR (``SERVER_ERROR``)
    - 401 / 403: Access token refused -> PERMANENT_ERROR (``UNAUTHORIZED``)
    - Other 4xx: Bad request or endpoint -> PERMANENT_ERROR

    Timeouts, connection failures and any other non-HTTP exception are
    transient.
    """
    if isinstance(exc, requests.Timeout):
        return OperationResult.transient_error(
            f"Request timed out: {exc}", error_code="TIMEOUT"
        )

    if not isinstance(exc, requests.HTTPError):
        return OperationResult.transient_error(
            f"Connection error: {type(exc).__name__}: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    response = exc.response
    status_code: Optional[int] = response.status_code if response is not None else None

    if status_code == 429:
        return OperationResult.transient_error(
            "Push provider rate limited the request", error_code="RATE_LIMITED"
        )

    if status_code and 500 <= status_code < 600:
        return OperationResult.transient_error(
            f"Push provider server error ({status_code})", error_code="SERVER_ERROR"
        )

    if status_code in (401, 403):
        return OperationResult.permanent_error(
            f"Push provider refused the access token ({status_code})",
            error_code="UNAUTHORIZED",
        )

    return OperationResult.permanent_error(
        f"Push provider rejected the request ({status_code}): {str(exc)}",
        error_code="HTTP_ERROR",
    )


def classify_aws_error(exc: Exception) -> OperationResult:
    """Classify DynamoDB client errors into OperationResult.

    ``ConditionalCheckFailedException`` keeps its AWS code so the store can
    recognise a refused versioned write. Throttling and unknown service
    errors are transient; validation errors, missing tables and denied access
    are permanent.
    """
    if not isinstance(exc, ClientError):
        return OperationResult.transient_error(
            f"AWS connection error: {type(exc).__name__}: {str(exc)}",
            error_code="CONNECTION_ERROR",
        )

    error_code = exc.response.get("Error", {}).get("Code", "Unknown")

    if error_code in THROTTLING_CODES:
        return OperationResult.transient_error(
            "DynamoDB throttled the request", error_code="RATE_LIMITED"
        )

    if error_code == "ConditionalCheckFailedException":
        return OperationResult.permanent_error(
            "DynamoDB condition check failed", error_code=error_code
        )

    if error_code in INVALID_REQUEST_CODES:
        return OperationResult.permanent_error(
            f"DynamoDB rejected the request: {error_code}",
            error_code="INVALID_REQUEST",
        )

    if error_code in ("AccessDeniedException", "ResourceNotFoundException"):
        return OperationResult.permanent_error(
            f"DynamoDB table unavailable: {error_code}", error_code=error_code
        )

    return OperationResult.transient_error(
        f"AWS client error: {error_code}", error_code="AWS_CLIENT_ERROR"
    )
