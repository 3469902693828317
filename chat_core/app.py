"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .briefs import BriefGenerator
from .chat import ChatService
from .config import InsightSettings, resolve_db_path
from .event_bus import EventBus
from .llm import ILLMProvider, LLMProvider
from .logging_config import get_logger
from .models import Team, User
from .roster import Roster
from .storage import IStorage, Storage
from .tracker import Tracker

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        insight_settings: InsightSettings | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._insight_settings = insight_settings or InsightSettings.from_env()

        # Components (initialized in start())
        self._storage: IStorage | None = None
        self._event_bus: EventBus | None = None
        self._tracker: Tracker | None = None
        self._roster: Roster | None = None
        self._llm: ILLMProvider | None = None
        self._chat_service: ChatService | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. EventBus (depends on Storage for persistence)
        self._event_bus = EventBus(self._storage)

        # 3. Tracker (depends on EventBus + Storage)
        self._tracker = Tracker(self._event_bus, self._storage)
        await self._tracker.start()

        # 4. Roster (seeded from Storage)
        self._roster = Roster(await self._storage.get_users())
        logger.info("Roster loaded with %s users", len(self._roster.members()))

        # 5. LLMProvider, optional: briefs fall back to canned content
        try:
            self._llm = LLMProvider()
            logger.info("LLM provider initialized")
        except ValueError as e:
            self._llm = None
            logger.warning("LLM provider disabled: %s", e)

        # 6. ChatService (depends on everything above)
        self._chat_service = ChatService(
            event_bus=self._event_bus,
            tracker=self._tracker,
            task_sink=self._storage,
            records_sink=self._storage,
            roster=self._roster,
            insight_settings=self._insight_settings,
            brief_generator=BriefGenerator(self._llm),
        )
        await self._chat_service.start()
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._chat_service:
            await self._chat_service.stop()
        if self._tracker:
            await self._tracker.stop()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Drop all conversations and stored data, then resume."""
        if self._chat_service:
            await self._chat_service.stop()

        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

        if self._roster:
            self._roster.clear()

        if self._chat_service:
            await self._chat_service.start()
            logger.info("Reset complete")

    async def register_user(self, user: User, team: Team | None = None) -> None:
        """Persist a user and make it visible to name resolution."""
        if team is not None:
            await self.storage.save_team(team)
        await self.storage.save_user(user)
        self.roster.add(user)

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def roster(self) -> Roster:
        """Get roster instance."""
        if not self._roster:
            raise RuntimeError("Application not started")
        return self._roster

    @property
    def chat_service(self) -> ChatService:
        """Get chat service instance."""
        if not self._chat_service:
            raise RuntimeError("Application not started")
        return self._chat_service
