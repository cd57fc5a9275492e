from datetime import date, datetime
from typing import Any, AsyncGenerator, Callable

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from clinisched.db.meta import meta
from clinisched.db.models import load_all_models
from clinisched.schedule import (
    ActorContext,
    ActorRole,
    ScheduleItem,
    ScheduleStatus,
    create_item,
)

TODAY = date(2024, 2, 15)  # Thursday
NOW = datetime(2024, 2, 15, 8, 0)


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def clinician() -> ActorContext:
    return ActorContext(role=ActorRole.CLINICIAN, actor_id="clin-1", name="Dr. Grey")


@pytest.fixture
def admin() -> ActorContext:
    return ActorContext(
        role=ActorRole.HOSPITAL_ADMIN,
        actor_id="admin-1",
        name="Hospital Admin",
    )


@pytest.fixture
def make_item() -> Callable[..., ScheduleItem]:
    """Build items directly in any status."""

    def factory(
        status: ScheduleStatus = ScheduleStatus.ACCEPTED,
        requires_approval: bool = False,
        **overrides: Any,
    ) -> ScheduleItem:
        data: dict[str, Any] = {
            "id": overrides.pop("id", "item-1"),
            "title": "Ward round",
            "type": "task",
            "date": TODAY,
            "startTime": "09:00",
            "endTime": "10:00",
            "clinician_id": "clin-1",
            "status": status,
            "requires_approval": requires_approval,
            "created_at": NOW,
            "updated_at": NOW,
        }
        data.update(overrides)
        return ScheduleItem.model_validate(data)

    return factory


@pytest.fixture
def assigned_item() -> ScheduleItem:
    """Admin-originated item waiting for approval."""
    return create_item(
        {
            "id": "surgery-1",
            "title": "Cardiac Surgery - Patient John Doe",
            "type": "surgery",
            "date": TODAY,
            "startTime": "08:00 AM",
            "endTime": "12:00 PM",
            "assignedBy": "Hospital Admin",
            "assignedById": "admin-1",
            "clinicianId": "clin-1",
            "priority": "urgent",
        },
        now=NOW,
    )


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """In-memory SQLite database with all tables."""
    load_all_models()
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(meta.create_all)

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()
