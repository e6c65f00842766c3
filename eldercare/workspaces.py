"""
Role-based entry points.

``open_workspace`` maps the current auth state onto exactly one of four
variants. Callers match on the variant instead of branching on roles.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from eldercare.actions import RequestActionService
from eldercare.auth import AuthContext, AuthStatus
from eldercare.client import CareApiClient
from eldercare.config import Settings
from eldercare.models import Role, User
from eldercare.polling import PendingView, PollHandle, RequestPollingEngine, SleepFn
from eldercare.submission import RequestSubmissionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Loading:
    """Stored session not read yet; do not redirect."""


@dataclass(frozen=True)
class SignInRequired:
    redirect_to: str = "/login"


@dataclass
class SeekerWorkspace:
    user: User
    submission: RequestSubmissionService


@dataclass
class CaregiverWorkspace:
    user: User
    view: PendingView
    poller: RequestPollingEngine
    actions: RequestActionService
    _handle: PollHandle | None = field(default=None, init=False, repr=False)

    @property
    def mounted(self) -> bool:
        return self._handle is not None and self._handle.active

    def mount(self) -> PollHandle:
        self._handle = self.poller.start()
        logger.info("Caregiver workspace mounted for %s", self.user.id)
        return self._handle

    async def unmount(self) -> None:
        if self._handle is not None:
            await self._handle.stop()
            self._handle = None
            logger.info("Caregiver workspace unmounted for %s", self.user.id)

    async def __aenter__(self) -> "CaregiverWorkspace":
        self.mount()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.unmount()


Workspace = Loading | SignInRequired | SeekerWorkspace | CaregiverWorkspace


def _seeker_workspace(user: User, client: CareApiClient) -> SeekerWorkspace:
    return SeekerWorkspace(user=user, submission=RequestSubmissionService(client, user))


def _caregiver_workspace(
    user: User, client: CareApiClient, interval: float, sleep_fn: SleepFn | None
) -> CaregiverWorkspace:
    view = PendingView()
    poller = RequestPollingEngine(
        client, view, interval=interval, sleep_fn=sleep_fn or asyncio.sleep
    )
    return CaregiverWorkspace(
        user=user,
        view=view,
        poller=poller,
        actions=RequestActionService(client, view, user),
    )


def open_workspace(
    auth: AuthContext,
    client: CareApiClient,
    settings: Settings,
    *,
    sleep_fn: SleepFn | None = None,
) -> Workspace:
    if auth.status is AuthStatus.LOADING:
        return Loading()
    user = auth.user
    if auth.status is AuthStatus.ANONYMOUS or user is None:
        return SignInRequired()

    match user.role:
        case Role.CAREGIVER:
            return _caregiver_workspace(
                user, client, settings.poll_interval_seconds, sleep_fn
            )
        case Role.PATIENT | Role.FAMILY:
            return _seeker_workspace(user, client)
