"""Expo push notification API client."""

import re
from typing import Any, Dict, List, Optional

import requests

from infrastructure.logging import get_module_logger
from infrastructure.notifications.models import PushMessage, PushReceipt, PushTicket

logger = get_module_logger()

EXPO_API_URL = "https://exp.host/--/api/v2"
SEND_CHUNK_SIZE = 100
RECEIPT_CHUNK_SIZE = 1000

_TOKEN_PATTERN = re.compile(r"^Expo(nent)?PushToken\[.+\]$")
_UUID_PATTERN = re.compile(
    r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE
)


class ExpoPushError(Exception):
    """The push API answered with request-level errors."""

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []


def is_expo_push_token(token: Optional[str]) -> bool:
    """True for ``ExponentPushToken[...]``, ``ExpoPushToken[...]`` or a raw UUID."""
    if not isinstance(token, str):
        return False
    return bool(_TOKEN_PATTERN.match(token) or _UUID_PATTERN.match(token))


def chunk_items(items: List[Any], size: int) -> List[List[Any]]:
    """Split ``items`` into lists of at most ``size`` elements."""
    return [items[i : i + size] for i in range(0, len(items), size)]


class ExpoPushClient:
    """Client for the Expo push API.

    Sends messages in chunks of 100 and fetches receipts in chunks of 1000.
    HTTP errors propagate as ``requests`` exceptions; request-level API errors
    raise ExpoPushError.

    Example:
        client = ExpoPushClient(access_token=settings.expo.EXPO_ACCESS_TOKEN)
        tickets = client.send_batch([PushMessage(to=token, title="t", body="b")])
        receipts = client.get_receipts([t.id for t in tickets if t.is_ok])
    """

    def __init__(
        self,
        api_url: str = EXPO_API_URL,
        access_token: Optional[str] = None,
        timeout_seconds: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._access_token = access_token
        self._session = session or requests.Session()

    def is_valid_token(self, token: str) -> bool:
        return is_expo_push_token(token)

    def send_batch(self, messages: List[PushMessage]) -> List[PushTicket]:
        """Send messages; returns one ticket per message, in order."""
        tickets: List[PushTicket] = []
        for chunk in chunk_items(messages, SEND_CHUNK_SIZE):
            body = self._post("/push/send", [m.to_payload() for m in chunk])
            data = body.get("data") or []
            if isinstance(data, dict):
                data = [data]
            tickets.extend(PushTicket(**ticket) for ticket in data)
            logger.debug(
                "expo_push_chunk_sent",
                message_count=len(chunk),
                ticket_count=len(data),
            )
        return tickets

    def get_receipts(self, ticket_ids: List[str]) -> Dict[str, PushReceipt]:
        """Fetch receipts; ids without a receipt yet are absent."""
        receipts: Dict[str, PushReceipt] = {}
        for chunk in chunk_items(ticket_ids, RECEIPT_CHUNK_SIZE):
            body = self._post("/push/getReceipts", {"ids": chunk})
            for ticket_id, receipt in (body.get("data") or {}).items():
                receipts[ticket_id] = PushReceipt(**receipt)
        return receipts

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/json",
            "Accept-Encoding": "gzip, deflate",
            "Content-Type": "application/json",
        }
        if self._access_token:
            headers["Authorization"] = f"Bearer {self._access_token}"
        return headers

    def _post(self, path: str, payload: Any) -> Dict[str, Any]:
        response = self._session.post(
            f"{self.api_url}{path}",
            json=payload,
            headers=self._headers(),
            timeout=self.timeout_seconds,
        )
        if response.status_code >= 400:
            logger.error(
                "expo_request_failed",
                path=path,
                response_code=response.status_code,
            )
        response.raise_for_status()

        body = response.json()
        errors = body.get("errors")
        if errors:
            logger.error("expo_request_errors", path=path, errors=errors)
            raise ExpoPushError(
                f"Expo push API returned errors: {errors[0].get('message', errors[0])}",
                errors=errors,
            )
        return body
