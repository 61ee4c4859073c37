"""
SQLAlchemy-backed booking repository.

Uniqueness of email and slot is enforced by database constraints, so two
concurrent writers can never both store a booking for the same slot: the
loser gets an ``IntegrityError`` which surfaces as ``DuplicateError``.
"""

import asyncio
import logging
import threading
import uuid
from contextlib import nullcontext
from datetime import datetime
from typing import Any, Callable, List, Optional

import pendulum
from pendulum import DateTime
from sqlalchemy import DateTime as SqlDateTime
from sqlalchemy import Select, String, UniqueConstraint, create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from ..domain.exceptions import DuplicateError, StorageFailure
from ..domain.models import Booking, Year
from ..domain.slot_grid import floor_to_granularity

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class BookingRow(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        UniqueConstraint("email", name="uq_bookings_email"),
        UniqueConstraint("slot_start", name="uq_bookings_slot_start"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_no: Mapped[str] = mapped_column(String(64), nullable=False)
    year: Mapped[str] = mapped_column(String(16), nullable=False)
    branch: Mapped[str] = mapped_column(String(255), nullable=False)
    # Timestamps are stored as naive UTC.
    preferred_time: Mapped[datetime] = mapped_column(SqlDateTime, nullable=False, index=True)
    slot_start: Mapped[datetime] = mapped_column(SqlDateTime, nullable=False)
    resume_url: Mapped[str] = mapped_column(String(2048), nullable=False)
    created_at: Mapped[datetime] = mapped_column(SqlDateTime, nullable=False)


def _to_utc_naive(moment: DateTime) -> datetime:
    return moment.in_timezone("UTC").naive()


def _from_utc_naive(value: datetime) -> DateTime:
    return pendulum.instance(value, tz="UTC")


def _row_to_booking(row: BookingRow) -> Booking:
    return Booking(
        id=row.id,
        name=row.name,
        email=row.email,
        phone_no=row.phone_no,
        year=Year.parse(row.year),
        branch=row.branch,
        preferred_time=_from_utc_naive(row.preferred_time),
        resume_url=row.resume_url,
        created_at=_from_utc_naive(row.created_at),
    )


def build_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    SQLite connections are shared across worker threads; in-memory SQLite
    uses a single static connection so every session sees the same data.
    """
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


class SqlBookingRepository:
    """
    Stores bookings through SQLAlchemy.

    Blocking database calls run in a worker thread so the event loop keeps
    serving other requests. An engine with a single static connection
    (in-memory SQLite) is used by one thread at a time.
    """

    def __init__(self, engine: Engine, granularity_minutes: int = 15):
        self.engine = engine
        self.granularity_minutes = granularity_minutes
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        if isinstance(engine.pool, StaticPool):
            self._connection_lock = threading.Lock()
        else:
            self._connection_lock = nullcontext()

    @classmethod
    def from_url(cls, database_url: str, granularity_minutes: int = 15) -> "SqlBookingRepository":
        """
        Open the database at ``database_url`` and create missing tables.

        Raises:
            StorageFailure: If the URL is unusable or the schema cannot be created
        """
        try:
            engine = build_engine(database_url)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Invalid database URL {database_url!r}: {exc}") from exc

        repository = cls(engine, granularity_minutes=granularity_minutes)
        try:
            repository.create_schema()
        except StorageFailure:
            repository.dispose()
            raise
        return repository

    def create_schema(self) -> None:
        try:
            with self._connection_lock:
                Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to prepare booking storage: {exc}") from exc

    def dispose(self) -> None:
        self.engine.dispose()

    async def create(self, booking: Booking) -> Booking:
        return await self._in_thread(self._create, booking)

    async def find_by_email(self, email: str) -> Optional[Booking]:
        return await self._in_thread(self._find_by_email, email)

    async def find_in_range(self, start: DateTime, end: DateTime) -> List[Booking]:
        return await self._in_thread(self._find_in_range, start, end)

    async def list_all_sorted_by_time(self) -> List[Booking]:
        return await self._in_thread(self._list_all_sorted_by_time)

    async def _in_thread(self, func: Callable[..., Any], *args: Any) -> Any:
        return await asyncio.to_thread(self._locked, func, *args)

    def _locked(self, func: Callable[..., Any], *args: Any) -> Any:
        with self._connection_lock:
            return func(*args)

    def _create(self, booking: Booking) -> Booking:
        slot_start = floor_to_granularity(booking.preferred_time, self.granularity_minutes)
        row = BookingRow(
            id=uuid.uuid4().hex,
            name=booking.name,
            email=booking.email.lower(),
            phone_no=booking.phone_no,
            year=booking.year.value,
            branch=booking.branch,
            preferred_time=_to_utc_naive(booking.preferred_time),
            slot_start=_to_utc_naive(slot_start),
            resume_url=booking.resume_url,
            created_at=_to_utc_naive(pendulum.now("UTC")),
        )

        try:
            with self._session_factory() as session, session.begin():
                session.add(row)
        except IntegrityError as exc:
            field = "email" if "email" in str(exc.orig).lower() else "slot"
            value = row.email if field == "email" else slot_start.to_iso8601_string()
            logger.warning("Unique constraint on %s rejected booking: %s", field, value)
            raise DuplicateError(field, value) from exc
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to store booking: {exc}") from exc

        return _row_to_booking(row)

    def _find_by_email(self, email: str) -> Optional[Booking]:
        stmt = select(BookingRow).where(BookingRow.email == email.strip().lower()).limit(1)
        bookings = self._fetch(stmt)
        return bookings[0] if bookings else None

    def _find_in_range(self, start: DateTime, end: DateTime) -> List[Booking]:
        stmt = (
            select(BookingRow)
            .where(
                BookingRow.preferred_time >= _to_utc_naive(start),
                BookingRow.preferred_time < _to_utc_naive(end),
            )
            .order_by(BookingRow.preferred_time.asc())
        )
        return self._fetch(stmt)

    def _list_all_sorted_by_time(self) -> List[Booking]:
        return self._fetch(select(BookingRow).order_by(BookingRow.preferred_time.asc()))

    def _fetch(self, stmt: Select) -> List[Booking]:
        try:
            with self._session_factory() as session:
                return [_row_to_booking(row) for row in session.scalars(stmt)]
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Failed to read bookings: {exc}") from exc
