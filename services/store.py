"""
Record store for loan requests, backed by an async SQLAlchemy session factory.

Every committed insert or status update notifies the table's change listeners.
Notifications carry no payload; listeners re-query whatever slice they need.
"""
from __future__ import annotations

import asyncio
import logging
import threading
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Optional, Union

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from exceptions import RecordNotFoundError, StoreError
from models import LoanRequest
from schemas.loan_request import LoanRecord, LoanStatus, NewLoanRecord

logger = logging.getLogger(__name__)

ChangeListener = Callable[[], None]


class SubscriptionHandle:
    """Returned by subscribe_to_table_changes; release() stops delivery."""

    def __init__(self, notifier: "ChangeNotifier", listener_id: int):
        self._notifier = notifier
        self._listener_id = listener_id
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._notifier._remove(self._listener_id)
        self._released = True


class ChangeNotifier:
    """Listener registry for table-wide change notifications."""

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners: dict[int, ChangeListener] = {}
        self._next_id = 0

    def subscribe(self, callback: ChangeListener) -> SubscriptionHandle:
        with self._lock:
            self._next_id += 1
            listener_id = self._next_id
            self._listeners[listener_id] = callback
        return SubscriptionHandle(self, listener_id)

    def _remove(self, listener_id: int) -> None:
        with self._lock:
            self._listeners.pop(listener_id, None)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def notify(self) -> None:
        with self._lock:
            listeners = list(self._listeners.values())
        for callback in listeners:
            try:
                callback()
            except Exception:
                # keep delivering to the remaining listeners
                logger.exception("Change listener failed")


def _new_record_id() -> str:
    return f"req-{uuid.uuid4().hex[:12]}"


class RecordStore:
    """
    With serialize_sessions every session runs under one asyncio.Lock, one at a
    time. Needed on SQLite: a shared in-memory connection cannot carry two open
    transactions, and a file database takes one writer at a time.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        notifier: Optional[ChangeNotifier] = None,
        *,
        serialize_sessions: bool = False,
    ):
        self._session_factory = session_factory
        self.notifier = notifier or ChangeNotifier()
        self._session_lock: Optional[asyncio.Lock] = asyncio.Lock() if serialize_sessions else None

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[AsyncSession]:
        if self._session_lock is None:
            async with self._session_factory() as session:
                yield session
            return
        async with self._session_lock:
            async with self._session_factory() as session:
                yield session

    async def insert(self, fields: NewLoanRecord) -> LoanRecord:
        now = datetime.now(timezone.utc)
        row = LoanRequest(
            id=_new_record_id(),
            applicant_name=fields.applicant_name,
            mobile_number=fields.mobile_number,
            pan_number=fields.pan_number,
            aadhaar_number=fields.aadhaar_number,
            amount=fields.amount,
            purpose=fields.purpose,
            status=LoanStatus.PENDING.value,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._session() as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Insert into loan_requests failed: %s", e)
            raise StoreError("Failed to save loan request") from e
        logger.info("Created loan request %s for ****%s", row.id, fields.mobile_number[-4:])
        self.notifier.notify()
        return LoanRecord.model_validate(row)

    async def get(self, record_id: str) -> LoanRecord:
        try:
            async with self._session() as session:
                result = await session.execute(select(LoanRequest).where(LoanRequest.id == record_id))
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Read of loan request %s failed: %s", record_id, e)
            raise StoreError("Failed to fetch loan request") from e
        if row is None:
            raise RecordNotFoundError(record_id)
        return LoanRecord.model_validate(row)

    async def query_by_mobile(self, mobile: str) -> list[LoanRecord]:
        return await self._query(
            select(LoanRequest)
            .where(LoanRequest.mobile_number == mobile.strip())
            .order_by(LoanRequest.created_at.desc())
        )

    async def query_all(self) -> list[LoanRecord]:
        return await self._query(select(LoanRequest).order_by(LoanRequest.created_at.desc()))

    async def _query(self, stmt) -> list[LoanRecord]:
        try:
            async with self._session() as session:
                result = await session.execute(stmt)
                rows = result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Query on loan_requests failed: %s", e)
            raise StoreError("Failed to fetch loan requests") from e
        return [LoanRecord.model_validate(r) for r in rows]

    async def update_status(
        self,
        record_id: str,
        status: Union[LoanStatus, str],
        *,
        expected_status: Union[LoanStatus, str, None] = None,
        updated_at: Optional[datetime] = None,
    ) -> bool:
        """
        Persist a new status and refresh updated_at.
        With expected_status the update only applies while the row still has that
        status; returns False when it matched nothing. Raises RecordNotFoundError
        for an unknown id.
        """
        stmt = (
            update(LoanRequest)
            .where(LoanRequest.id == record_id)
            .values(
                status=LoanStatus(status).value,
                updated_at=updated_at or datetime.now(timezone.utc),
            )
        )
        if expected_status is not None:
            stmt = stmt.where(LoanRequest.status == LoanStatus(expected_status).value)
        try:
            async with self._session() as session:
                result = await session.execute(stmt)
                matched = result.rowcount
                if not matched:
                    exists = await session.execute(select(LoanRequest.id).where(LoanRequest.id == record_id))
                    if exists.scalar_one_or_none() is None:
                        raise RecordNotFoundError(record_id)
                await session.commit()
        except SQLAlchemyError as e:
            logger.error("Status update of %s failed: %s", record_id, e)
            raise StoreError("Failed to update loan request") from e
        if matched:
            self.notifier.notify()
        return bool(matched)

    def subscribe_to_table_changes(self, callback: ChangeListener) -> SubscriptionHandle:
        return self.notifier.subscribe(callback)
