"""
Caregiver side: approve or reject one pending request.

A request id is marked in flight before the network call goes out; further
calls for the same id are ignored until the first one settles. Success drops
the request from the local pending view, failure leaves it there so it can be
retried by hand or reappear on the next poll.
"""

import logging
from enum import StrEnum

from eldercare.client import CareApiClient
from eldercare.errors import ElderCareError
from eldercare.models import CaregiverDecision, RequestAction, User
from eldercare.polling import PendingView

logger = logging.getLogger(__name__)


class ActionOutcome(StrEnum):
    APPLIED = "applied"
    FAILED = "failed"
    SKIPPED = "skipped"


class RequestActionService:
    def __init__(
        self, client: CareApiClient, view: PendingView, caregiver: User
    ) -> None:
        self._client = client
        self._view = view
        self._decision = CaregiverDecision.from_user(caregiver)

    def is_in_flight(self, request_id: str) -> bool:
        return request_id in self._view.in_flight

    async def act(self, request_id: str, action: RequestAction) -> ActionOutcome:
        # set before any awaits so concurrent calls can't interleave here
        if request_id in self._view.in_flight:
            logger.debug("Ignoring %s for %s: already in flight", action, request_id)
            return ActionOutcome.SKIPPED
        self._view.in_flight.add(request_id)

        try:
            await self._client.act_on_request(request_id, action, self._decision)
        except ElderCareError as exc:
            logger.error(
                "Could not %s request %s: %s",
                action.value,
                request_id,
                exc.message,
                extra={"request_id": request_id, "action": action.value},
            )
            return ActionOutcome.FAILED
        finally:
            self._view.in_flight.discard(request_id)

        self._view.remove(request_id)
        logger.info(
            "Request %s %s",
            request_id,
            action.resulting_status.value,
            extra={"request_id": request_id, "action": action.value},
        )
        return ActionOutcome.APPLIED

    async def approve(self, request_id: str) -> ActionOutcome:
        return await self.act(request_id, RequestAction.APPROVE)

    async def reject(self, request_id: str) -> ActionOutcome:
        return await self.act(request_id, RequestAction.REJECT)
