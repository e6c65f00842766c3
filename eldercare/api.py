"""
In-memory reference server for the care request REST contract.

Used for local development and by the test suite; the client talks to it
exactly as it would to the real backend.
"""

import hashlib
import logging
import secrets
from uuid import uuid4

from fastapi import APIRouter, FastAPI, HTTPException, Request
from pydantic import BaseModel

from eldercare.database import InMemoryKeyValueDatabase
from eldercare.models import (
    CaregiverDecision,
    NewServiceRequest,
    RequestAction,
    RequestStatus,
    ServiceRequest,
    SignupRequest,
    User,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class StoredUser(BaseModel):
    user: User
    password_salt: str
    password_hash: str


Record = StoredUser | ServiceRequest


def _hash_password(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac(
        "sha256", password.encode(), bytes.fromhex(salt), 100_000
    ).hex()


def _db(request: Request) -> InMemoryKeyValueDatabase[str, Record]:
    return request.app.state.database


@router.get("/health")
async def health_check() -> dict[str, str]:
    return {"status": "ok"}


@router.post("/signup", status_code=201)
async def signup(body: SignupRequest, request: Request) -> dict:
    db = _db(request)
    email = body.email.strip().lower()
    key = f"user:{email}"

    if db.get(key) is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    salt = secrets.token_hex(16)
    user = User(
        id=request.app.state.id_fn(),
        name=body.name.strip(),
        email=email,
        role=body.role,
        date_of_birth=body.date_of_birth,
    )
    db.put(
        key,
        StoredUser(
            user=user,
            password_salt=salt,
            password_hash=_hash_password(body.password, salt),
        ),
    )
    logger.info("Registered user %s (%s)", user.id, user.role.value)
    return {"user": user.model_dump(mode="json", by_alias=True)}


@router.post("/service-request", status_code=201)
async def create_service_request(body: NewServiceRequest, request: Request) -> dict:
    if not body.requirements.strip():
        raise HTTPException(status_code=400, detail="Requirements must not be blank")
    if body.status is not RequestStatus.PENDING:
        raise HTTPException(
            status_code=400, detail="New requests must have status 'pending'"
        )

    record = ServiceRequest(
        id=request.app.state.id_fn(),
        **body.model_dump(by_alias=False),
    )
    _db(request).put(f"request:{record.id}", record)
    return record.model_dump(mode="json", by_alias=True)


@router.get("/service-requests/pending")
async def list_pending_requests(request: Request) -> dict:
    pending = sorted(
        (
            r
            for r in _db(request).all()
            if isinstance(r, ServiceRequest) and r.status is RequestStatus.PENDING
        ),
        key=lambda r: r.created_at,
    )
    return {"requests": [r.model_dump(mode="json", by_alias=True) for r in pending]}


@router.patch("/service-request/{request_id}/{action}")
async def act_on_request(
    request_id: str,
    action: RequestAction,
    decision: CaregiverDecision,
    request: Request,
) -> dict:
    db = _db(request)
    key = f"request:{request_id}"

    existing = db.get(key)
    if not existing or not isinstance(existing, ServiceRequest):
        raise HTTPException(status_code=404, detail="Service request not found")

    # first decision wins; terminal states never go back to pending
    updated = db.update_if(
        key,
        lambda r: isinstance(r, ServiceRequest) and r.status is RequestStatus.PENDING,
        lambda r: r.model_copy(
            update={
                "status": action.resulting_status,
                "caregiver_id": decision.caregiver_id,
                "caregiver_name": decision.caregiver_name,
                "caregiver_email": decision.caregiver_email,
            }
        ),
    )
    if not isinstance(updated, ServiceRequest):
        raise HTTPException(
            status_code=409, detail="Service request has already been actioned"
        )

    logger.info(
        "Request %s %s by %s",
        request_id,
        updated.status.value,
        decision.caregiver_id,
    )
    return updated.model_dump(mode="json", by_alias=True)


def create_app() -> FastAPI:
    app = FastAPI(title="Eldercare reference backend")
    db: InMemoryKeyValueDatabase[str, Record] = InMemoryKeyValueDatabase()
    app.state.database = db

    app.state.id_fn = lambda: uuid4().hex

    app.include_router(router)
    return app
