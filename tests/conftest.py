"""
Shared fixtures for the Savor test suite.
"""

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from infrastructure.database.base import init_db
from infrastructure.database.models import Company, Employee


# ============================================================================
# Scheduler
# ============================================================================


class FakeHandle:
    def __init__(self, delay, callback, args):
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class FakeScheduler:
    """Records call_later() instead of waiting on the event loop."""

    def __init__(self):
        self.calls = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(delay, callback, args)
        self.calls.append(handle)
        return handle

    @property
    def pending(self):
        return [h for h in self.calls if not h.cancelled]

    def fire(self, handle):
        handle.cancelled = True
        handle.callback(*handle.args)


@pytest.fixture
def scheduler():
    return FakeScheduler()


# ============================================================================
# Order rows
# ============================================================================


def order_row(**overrides):
    row = {
        "id": "abc12345-0000-4000-8000-000000000001",
        "status": "pending",
        "total_price": 150,
        "items": [{"item_id": "1", "name": "Latte", "quantity": 2, "price": 75}],
        "floor_number": 4,
        "company_id": "company-1",
        "employee_id": "employee-1",
        "employee_name": "Abebe Kebede",
        "created_at": "2026-01-01T09:00:00+00:00",
        "updated_at": "2026-01-01T09:00:00+00:00",
    }
    row.update(overrides)
    return row


@pytest.fixture
def make_row():
    return order_row


# ============================================================================
# Database (file-backed aiosqlite per test)
# ============================================================================


@pytest.fixture
async def engine(tmp_path):
    db_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'savor.db'}")
    await init_db(db_engine)
    yield db_engine
    await db_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def seeded(session_maker):
    """One company with a linked and an unlinked employee."""
    async with session_maker() as session:
        session.add(Company(id="company-1", name="Acme Trading", floor_number=4))
        session.add(
            Employee(
                id="employee-1",
                company_id="company-1",
                name="Abebe Kebede",
                phone="+251912345678",
                telegram_chat_id="777",
            )
        )
        session.add(
            Employee(
                id="employee-2",
                company_id="company-1",
                name="Sara Tesfaye",
                phone="0911223344",
            )
        )
        await session.commit()
    return session_maker
