import logging

from eldercare.auth import AuthContext
from eldercare.client import CareApiClient
from eldercare.config import Settings, get_settings
from eldercare.database import (
    InMemoryKeyValueDatabase,
    JsonFileKeyValueDatabase,
    KeyValueStore,
)
from eldercare.logging_config import setup_logging
from eldercare.polling import SleepFn
from eldercare.session_store import SessionStore
from eldercare.signup import SignupService
from eldercare.workspaces import CaregiverWorkspace, Workspace, open_workspace

logger = logging.getLogger(__name__)


class Application:
    """
    Wires the client services together. ``start()`` reads the stored session
    once; ``aclose()`` unmounts any open caregiver workspace and closes the
    HTTP client.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: CareApiClient | None = None,
        short_lived: KeyValueStore | None = None,
        long_lived: KeyValueStore | None = None,
        sleep_fn: SleepFn | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or CareApiClient.from_base_url(self.settings.api_base_url)
        self.store = SessionStore(
            short_lived if short_lived is not None else InMemoryKeyValueDatabase(),
            long_lived
            if long_lived is not None
            else JsonFileKeyValueDatabase(self.settings.session_file),
            key=self.settings.session_key,
        )
        self.auth = AuthContext(self.store)
        self._sleep_fn = sleep_fn
        self._workspace: Workspace | None = None

    def start(self) -> None:
        setup_logging(self.settings.log_level, self.settings.log_format)
        self.auth.start()

    def signup_service(self) -> SignupService:
        return SignupService(self.client)

    async def open_workspace(self) -> Workspace:
        """Close the current workspace, if any, and open one for the current user."""
        await self.close_workspace()
        self._workspace = open_workspace(
            self.auth, self.client, self.settings, sleep_fn=self._sleep_fn
        )
        return self._workspace

    async def close_workspace(self) -> None:
        if isinstance(self._workspace, CaregiverWorkspace):
            await self._workspace.unmount()
        self._workspace = None

    async def logout(self) -> None:
        await self.close_workspace()
        self.auth.logout()

    async def aclose(self) -> None:
        await self.close_workspace()
        self.auth.close()
        await self.client.aclose()
        logger.debug("Application closed")

    async def __aenter__(self) -> "Application":
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
