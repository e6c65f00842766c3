"""
Care-seeker side: validate and send a new service request.

All three fields are checked before anything goes over the wire. Failures are
collected into one ``FormValidationError``; ``submit`` turns every outcome into
a message the view can show as-is.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from eldercare.client import CareApiClient
from eldercare.errors import (
    ElderCareError,
    ErrorCategory,
    FormValidationError,
    RemoteServiceError,
    ServiceUnavailableError,
)
from eldercare.models import (
    SERVICE_CATALOGUE,
    NewServiceRequest,
    ServiceRequest,
    ServiceType,
    User,
)

logger = logging.getLogger(__name__)

NowFn = Callable[[], datetime]

MSG_SERVICE_REQUIRED = "Please select a service."
MSG_REQUIREMENTS_REQUIRED = "Please describe your requirements."
MSG_INVALID_COST = "Please enter a valid cost amount."
MSG_SUBMITTED = (
    "Service request submitted successfully! "
    "A caregiver will review your request soon."
)
MSG_FAILED = "Failed to submit request. Please try again."
MSG_CONNECTION = "Failed to submit request. Please check your connection and try again."
MSG_ALREADY_SUBMITTING = "A request is already being submitted."


@dataclass
class RequestForm:
    service_type: str = ""
    requirements: str = ""
    cost: str = ""

    def clear(self) -> None:
        self.service_type = ""
        self.requirements = ""
        self.cost = ""

    @property
    def rate_hint(self) -> str | None:
        try:
            offering = SERVICE_CATALOGUE[ServiceType(self.service_type)]
        except ValueError:
            return None
        return f"Typical rate for {offering.name}: {offering.suggested_rate}"


@dataclass(frozen=True)
class ValidRequestForm:
    service_type: ServiceType
    requirements: str
    cost: Decimal


@dataclass(frozen=True)
class SubmissionOutcome:
    ok: bool
    message: str
    category: ErrorCategory | None = None
    request: ServiceRequest | None = None


def parse_cost(raw: str) -> Decimal | None:
    try:
        value = Decimal(raw.strip())
    except (InvalidOperation, AttributeError):
        return None
    if not value.is_finite() or value <= 0:
        return None
    # the wire format is a JSON number, so it must fit in a float
    if not math.isfinite(float(value)):
        return None
    return value


def validate_request_form(form: RequestForm) -> ValidRequestForm:
    errors: list[str] = []

    service_type: ServiceType | None = None
    try:
        service_type = ServiceType(form.service_type)
    except ValueError:
        errors.append(MSG_SERVICE_REQUIRED)

    requirements = form.requirements.strip()
    if not requirements:
        errors.append(MSG_REQUIREMENTS_REQUIRED)

    cost = parse_cost(form.cost)
    if cost is None:
        errors.append(MSG_INVALID_COST)

    if errors or service_type is None or cost is None:
        raise FormValidationError(errors)
    return ValidRequestForm(service_type, requirements, cost)


class RequestSubmissionService:
    def __init__(
        self,
        client: CareApiClient,
        user: User,
        *,
        now_fn: NowFn = lambda: datetime.now(UTC),
    ) -> None:
        self._client = client
        self._user = user
        self._now_fn = now_fn
        self.form = RequestForm()
        self.submitting = False

    async def submit(self) -> SubmissionOutcome:
        if self.submitting:
            return SubmissionOutcome(False, MSG_ALREADY_SUBMITTING)

        try:
            valid = validate_request_form(self.form)
        except FormValidationError as exc:
            return SubmissionOutcome(False, exc.message, exc.category)

        body = NewServiceRequest(
            user_id=self._user.id,
            user_name=self._user.name,
            user_email=self._user.email,
            service_type=valid.service_type,
            requirements=valid.requirements,
            cost=valid.cost,
            created_at=self._now_fn(),
        )

        self.submitting = True
        try:
            created = await self._client.create_service_request(body)
        except ServiceUnavailableError as exc:
            logger.error("Submitting service request failed: %s", exc.message)
            return SubmissionOutcome(False, MSG_CONNECTION, exc.category)
        except RemoteServiceError as exc:
            return SubmissionOutcome(False, exc.detail or MSG_FAILED, exc.category)
        except ElderCareError as exc:
            logger.error("Submitting service request failed: %s", exc.message)
            return SubmissionOutcome(False, MSG_FAILED, exc.category)
        finally:
            self.submitting = False

        if created is not None:
            logger.info(
                "Service request %s created",
                created.id,
                extra={"request_id": created.id},
            )
        self.form.clear()
        return SubmissionOutcome(True, MSG_SUBMITTED, request=created)
