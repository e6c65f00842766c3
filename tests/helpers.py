import asyncio
from collections.abc import Callable
from datetime import UTC, datetime
from decimal import Decimal

from eldercare.models import Role, ServiceRequest, ServiceType, User


def _p(msg: str) -> None:
    # pytest captures stdout unless you run with -s
    print(msg, flush=True)


def _banner(name: str) -> None:
    _p("\n" + "=" * 88)
    _p(f"test: {name}")
    _p("=" * 88)


class ManualSleeper:
    """
    Fake sleep function that only returns when the test ticks it, so a poll
    interval passes exactly when the test says so.
    """

    def __init__(self) -> None:
        self.requested: list[float] = []
        self._event = asyncio.Event()

    def tick(self) -> None:
        _p(f"[time] tick (sleeps requested so far: {self.requested})")
        self._event.set()

    async def sleep(self, seconds: float) -> None:
        self.requested.append(seconds)
        await self._event.wait()
        self._event.clear()


async def eventually(
    condition: Callable[[], bool], *, timeout: float = 2.0
) -> None:
    async def _wait() -> None:
        while not condition():
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_wait(), timeout)


async def settle(rounds: int = 20) -> None:
    for _ in range(rounds):
        await asyncio.sleep(0)


def make_user(
    role: Role = Role.PATIENT, *, id: str = "user-1", name: str = "Maria Lopez"
) -> User:
    return User(
        id=id,
        name=name,
        email=f"{id}@example.com",
        role=role,
        date_of_birth="1950-03-14",
    )


def make_request(
    id: str, *, service_type: ServiceType = ServiceType.MEDICAL
) -> ServiceRequest:
    return ServiceRequest(
        id=id,
        user_id="user-1",
        user_name="Maria Lopez",
        user_email="user-1@example.com",
        service_type=service_type,
        requirements="help bathing",
        cost=Decimal("30"),
        created_at=datetime(2025, 7, 2, 8, 0, tzinfo=UTC),
    )
