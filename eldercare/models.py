"""
Domain models shared by the client services and the reference server.
"""

from datetime import datetime
from decimal import Decimal
from enum import StrEnum
from typing import Annotated

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
)


class Role(StrEnum):
    PATIENT = "patient"
    FAMILY = "family"
    CAREGIVER = "caregiver"


class ServiceType(StrEnum):
    MEDICAL = "medical"
    PERSONAL = "personal"
    HOUSEHOLD = "household"
    COMPANIONSHIP = "companionship"
    TRANSPORTATION = "transportation"
    MEDICATION = "medication"


class RequestStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestAction(StrEnum):
    APPROVE = "approve"
    REJECT = "reject"

    @property
    def resulting_status(self) -> RequestStatus:
        if self is RequestAction.APPROVE:
            return RequestStatus.APPROVED
        return RequestStatus.REJECTED


class ServiceOffering(BaseModel):
    id: ServiceType
    name: str
    suggested_rate: str


SERVICE_CATALOGUE: dict[ServiceType, ServiceOffering] = {
    o.id: o
    for o in (
        ServiceOffering(
            id=ServiceType.MEDICAL, name="Medical Care", suggested_rate="$25-40/hr"
        ),
        ServiceOffering(
            id=ServiceType.PERSONAL, name="Personal Care", suggested_rate="$20-35/hr"
        ),
        ServiceOffering(
            id=ServiceType.HOUSEHOLD,
            name="Household Tasks",
            suggested_rate="$15-25/hr",
        ),
        ServiceOffering(
            id=ServiceType.COMPANIONSHIP,
            name="Companionship",
            suggested_rate="$15-30/hr",
        ),
        ServiceOffering(
            id=ServiceType.TRANSPORTATION,
            name="Transportation",
            suggested_rate="$20-35/hr",
        ),
        ServiceOffering(
            id=ServiceType.MEDICATION,
            name="Medication Management",
            suggested_rate="$30-45/hr",
        ),
    )
}


# cost goes over the wire as a JSON number, not a decimal string
Cost = Annotated[
    Decimal,
    Field(gt=0),
    PlainSerializer(float, return_type=float, when_used="json"),
]


class WireModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class User(WireModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("id", "_id"),
        serialization_alias="id",
    )
    name: str
    email: str
    role: Role
    date_of_birth: str | None = Field(default=None, alias="dateOfBirth")


class Session(WireModel):
    user: User
    remember_me: bool = Field(default=False, exclude=True)


class ServiceRequest(WireModel):
    id: str = Field(
        min_length=1,
        validation_alias=AliasChoices("id", "_id"),
        serialization_alias="id",
    )
    user_id: str = Field(alias="userId")
    user_name: str = Field(alias="userName")
    user_email: str = Field(alias="userEmail")
    service_type: ServiceType = Field(alias="serviceType")
    requirements: str = Field(min_length=1)
    cost: Cost
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime = Field(alias="createdAt")
    caregiver_id: str | None = Field(default=None, alias="caregiverId")
    caregiver_name: str | None = Field(default=None, alias="caregiverName")
    caregiver_email: str | None = Field(default=None, alias="caregiverEmail")


class NewServiceRequest(WireModel):
    """Body of ``POST /service-request``."""

    user_id: str = Field(alias="userId")
    user_name: str = Field(alias="userName")
    user_email: str = Field(alias="userEmail")
    service_type: ServiceType = Field(alias="serviceType")
    requirements: str = Field(min_length=1)
    cost: Cost
    status: RequestStatus = RequestStatus.PENDING
    created_at: datetime = Field(alias="createdAt")


class CaregiverDecision(WireModel):
    """Body of ``PATCH /service-request/{id}/{action}``."""

    caregiver_id: str = Field(alias="caregiverId")
    caregiver_name: str = Field(alias="caregiverName")
    caregiver_email: str = Field(alias="caregiverEmail")

    @classmethod
    def from_user(cls, user: User) -> "CaregiverDecision":
        return cls(
            caregiver_id=user.id,
            caregiver_name=user.name,
            caregiver_email=user.email,
        )


class SignupRequest(WireModel):
    """Body of ``POST /signup``."""

    name: str = Field(min_length=2)
    email: str = Field(pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    password: str = Field(min_length=8)
    date_of_birth: str = Field(alias="dateOfBirth")
    role: Role
