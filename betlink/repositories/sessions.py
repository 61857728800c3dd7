"""Per-user session storage."""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from contextlib import suppress
from pathlib import Path
from typing import Any, Protocol

from sqlalchemy import func, text
from sqlalchemy.dialects.postgresql import Insert, insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from structlog.stdlib import BoundLogger

from betlink.config import Settings
from betlink.db.enums import ConversationState
from betlink.db.models import SessionRecord
from betlink.db.session import create_engine_and_session_factory
from betlink.services.types import AffiliateParams, UserSession


class SessionStore(Protocol):
    async def get(self, user_id: str) -> UserSession: ...

    async def save(self, session: UserSession) -> None: ...

    async def reset(self, user_id: str) -> UserSession: ...

    async def is_ready(self) -> bool: ...

    async def close(self) -> None: ...


def encode_session(session: UserSession) -> dict[str, Any]:
    affiliate = session.affiliate
    return {
        "step": session.state.value,
        "affiliate": None
        if affiliate is None
        else {
            "siteid": affiliate.site_id,
            "affid": affiliate.aff_id,
            "adid": affiliate.ad_id,
            "c": affiliate.c,
        },
    }


def decode_session(user_id: str, payload: object) -> UserSession:
    """Rebuild a session from its JSON form, raising ValueError on malformed data."""

    if not isinstance(payload, dict):
        raise ValueError("session payload must be an object")

    state = ConversationState(payload.get("step", ConversationState.IDLE.value))
    raw_affiliate = payload.get("affiliate")
    affiliate = None
    if raw_affiliate is not None:
        if not isinstance(raw_affiliate, dict):
            raise ValueError("affiliate payload must be an object")
        try:
            affiliate = AffiliateParams(
                site_id=str(raw_affiliate["siteid"]),
                aff_id=str(raw_affiliate["affid"]),
                ad_id=str(raw_affiliate["adid"]),
                c=str(raw_affiliate["c"]),
            )
        except KeyError as exc:
            raise ValueError(f"affiliate payload is missing {exc}") from exc

    return UserSession(user_id=user_id, state=state, affiliate=affiliate)


class InMemorySessionStore:
    def __init__(self) -> None:
        self._sessions: dict[str, UserSession] = {}

    async def get(self, user_id: str) -> UserSession:
        stored = self._sessions.setdefault(user_id, UserSession.default(user_id))
        return UserSession(user_id=user_id, state=stored.state, affiliate=stored.affiliate)

    async def save(self, session: UserSession) -> None:
        self._sessions[session.user_id] = UserSession(
            user_id=session.user_id,
            state=session.state,
            affiliate=session.affiliate,
        )

    async def reset(self, user_id: str) -> UserSession:
        session = UserSession.default(user_id)
        await self.save(session)
        return session

    async def is_ready(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class JsonFileSessionStore:
    """All users in a single JSON document, rewritten atomically on every save.

    The layout matches the legacy ``db.json`` file:
    ``{"users": {"<id>": {"step": "idle", "affiliate": null}}}``.
    """

    def __init__(self, path: Path, logger: BoundLogger) -> None:
        self._path = path
        self._logger = logger
        self._lock = asyncio.Lock()

    def _load(self) -> dict[str, Any]:
        if not self._path.exists():
            return {"users": {}}

        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            self._logger.warning("session_file_unreadable", path=str(self._path), exc_info=True)
            return {"users": {}}

        if not isinstance(data, dict) or not isinstance(data.get("users"), dict):
            self._logger.warning("session_file_malformed", path=str(self._path))
            return {"users": {}}
        return data

    def _dump(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self._path)
        except Exception:
            with suppress(FileNotFoundError):
                os.unlink(tmp_name)
            raise

    async def get(self, user_id: str) -> UserSession:
        async with self._lock:
            data = await asyncio.to_thread(self._load)

        payload = data["users"].get(user_id)
        if payload is None:
            return UserSession.default(user_id)

        try:
            return decode_session(user_id, payload)
        except ValueError:
            self._logger.warning("session_record_malformed", user_id=user_id, exc_info=True)
            return UserSession.default(user_id)

    async def save(self, session: UserSession) -> None:
        async with self._lock:
            data = await asyncio.to_thread(self._load)
            data["users"][session.user_id] = encode_session(session)
            await asyncio.to_thread(self._dump, data)

    async def reset(self, user_id: str) -> UserSession:
        session = UserSession.default(user_id)
        await self.save(session)
        return session

    async def is_ready(self) -> bool:
        directory = self._path.resolve().parent
        while not directory.exists():
            directory = directory.parent
        return os.access(directory, os.W_OK)

    async def close(self) -> None:
        return None


class SqlSessionStore:
    """One ``user_sessions`` row per user, upserted on save."""

    def __init__(
        self,
        engine: AsyncEngine,
        session_factory: async_sessionmaker[AsyncSession],
        logger: BoundLogger,
    ) -> None:
        self._engine = engine
        self._session_factory = session_factory
        self._logger = logger

    @staticmethod
    def to_domain(record: SessionRecord) -> UserSession:
        affiliate = None
        fields = (record.site_id, record.aff_id, record.ad_id, record.campaign)
        if all(value is not None for value in fields):
            affiliate = AffiliateParams(
                site_id=record.site_id,
                aff_id=record.aff_id,
                ad_id=record.ad_id,
                c=record.campaign,
            )
        return UserSession(user_id=record.user_id, state=record.state, affiliate=affiliate)

    async def get(self, user_id: str) -> UserSession:
        try:
            async with self._session_factory() as db_session:
                record = await db_session.get(SessionRecord, user_id)
        except (SQLAlchemyError, OSError, LookupError):
            self._logger.warning("session_read_failed", user_id=user_id, exc_info=True)
            return UserSession.default(user_id)

        if record is None:
            return UserSession.default(user_id)
        return self.to_domain(record)

    @staticmethod
    def build_upsert(session: UserSession) -> Insert:
        affiliate = session.affiliate
        values = {
            "state": session.state,
            "site_id": affiliate.site_id if affiliate else None,
            "aff_id": affiliate.aff_id if affiliate else None,
            "ad_id": affiliate.ad_id if affiliate else None,
            "campaign": affiliate.c if affiliate else None,
        }
        return (
            insert(SessionRecord)
            .values(user_id=session.user_id, **values)
            .on_conflict_do_update(
                index_elements=[SessionRecord.user_id],
                set_={**values, "updated_at": func.now()},
            )
        )

    async def save(self, session: UserSession) -> None:
        stmt = self.build_upsert(session)
        async with self._session_factory() as db_session:
            async with db_session.begin():
                await db_session.execute(stmt)

    async def reset(self, user_id: str) -> UserSession:
        session = UserSession.default(user_id)
        await self.save(session)
        return session

    async def is_ready(self) -> bool:
        try:
            async with self._session_factory() as db_session:
                await db_session.execute(text("SELECT 1"))
        except Exception:
            return False
        return True

    async def close(self) -> None:
        await self._engine.dispose()


def create_session_store(settings: Settings, logger: BoundLogger) -> SessionStore:
    if settings.database_url:
        engine, session_factory = create_engine_and_session_factory(settings.database_url)
        logger.info("session_store_selected", backend="sql")
        return SqlSessionStore(engine, session_factory, logger)

    logger.info("session_store_selected", backend="json_file", path=settings.sessions_file)
    return JsonFileSessionStore(Path(settings.sessions_file), logger)
