"""
Async client for the care request REST backend.

Request-level problems (connect, timeout, decoding, redirects) surface as ``ServiceUnavailableError``; any non-2xx
answer as ``RemoteServiceError`` (or ``SignupConflictError`` for a 409 on
signup). No timeout or retry is layered on top of httpx's defaults.
"""

import logging
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from eldercare.errors import (
    RemoteServiceError,
    ServiceUnavailableError,
    SignupConflictError,
)
from eldercare.models import (
    CaregiverDecision,
    NewServiceRequest,
    RequestAction,
    ServiceRequest,
    SignupRequest,
    User,
)

logger = logging.getLogger(__name__)


def extract_detail(payload: Any) -> str | None:
    """
    Pull a readable message out of a ``{"detail": ...}`` error body.
    ``detail`` may be a string or a list of ``{"msg": ...}`` entries.
    """
    if not isinstance(payload, dict):
        return None
    detail = payload.get("detail")
    if isinstance(detail, str) and detail:
        return detail
    if isinstance(detail, list):
        msgs = [
            str(item["msg"])
            for item in detail
            if isinstance(item, dict) and item.get("msg")
        ]
        if msgs:
            return ", ".join(msgs)
    return None


class CareApiClient:
    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    @classmethod
    def from_base_url(cls, base_url: str, **kwargs: Any) -> "CareApiClient":
        return cls(httpx.AsyncClient(base_url=base_url, **kwargs))

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _send(
        self, method: str, url: str, *, json: Any | None = None
    ) -> httpx.Response:
        try:
            return await self._http.request(method, url, json=json)
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, url, exc)
            raise ServiceUnavailableError(str(exc) or type(exc).__name__) from exc

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return None

    def _raise_for_status(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        detail = extract_detail(self._json_or_none(response))
        logger.warning(
            "%s %s -> %s %s",
            response.request.method,
            response.request.url.path,
            response.status_code,
            detail or "",
            extra={"status_code": response.status_code},
        )
        raise RemoteServiceError(response.status_code, detail)

    async def signup(self, body: SignupRequest) -> User | None:
        response = await self._send(
            "POST", "/signup", json=body.model_dump(mode="json", by_alias=True)
        )
        if response.status_code == 409:
            raise SignupConflictError(extract_detail(self._json_or_none(response)))
        self._raise_for_status(response)

        payload = self._json_or_none(response)
        user = payload.get("user") if isinstance(payload, dict) else None
        if not isinstance(user, dict):
            return None
        try:
            return User.model_validate(user)
        except ValidationError:
            logger.warning("Signup succeeded but returned an unusable user record")
            return None

    async def create_service_request(
        self, body: NewServiceRequest
    ) -> ServiceRequest | None:
        """
        A 2xx means the request was created. The echoed record is returned
        when it validates, otherwise ``None``.
        """
        response = await self._send(
            "POST",
            "/service-request",
            json=body.model_dump(mode="json", by_alias=True),
        )
        self._raise_for_status(response)
        try:
            return ServiceRequest.model_validate(self._json_or_none(response))
        except ValidationError as exc:
            logger.warning(
                "Service request created but the response body is unusable: %s errors",
                exc.error_count(),
            )
            return None

    async def list_pending_requests(self) -> list[ServiceRequest]:
        response = await self._send("GET", "/service-requests/pending")
        self._raise_for_status(response)

        payload = self._json_or_none(response)
        if not isinstance(payload, dict):
            raise RemoteServiceError(response.status_code, "Malformed pending list")
        items = payload.get("requests") or []
        if not isinstance(items, list):
            raise RemoteServiceError(response.status_code, "Malformed pending list")

        requests: list[ServiceRequest] = []
        for item in items:
            try:
                requests.append(ServiceRequest.model_validate(item))
            except ValidationError as exc:
                logger.warning(
                    "Skipping malformed pending request: %s errors",
                    exc.error_count(),
                )
        return requests

    async def act_on_request(
        self, request_id: str, action: RequestAction, decision: CaregiverDecision
    ) -> None:
        response = await self._send(
            "PATCH",
            f"/service-request/{quote(request_id, safe='')}/{action.value}",
            json=decision.model_dump(mode="json", by_alias=True),
        )
        self._raise_for_status(response)
