"""
Unit tests for the CMS repositories
"""
import pytest

from crud.booking import BookingRepository
from crud.message import MessageRepository
from crud.project import ProjectRepository
from models.bookings import BookingCreate, BookingsQuery
from models.common import total_pages
from models.messages import MessagesQuery
from models.projects import ProjectsQuery
from tests.factories import add_booking, add_message, add_project


@pytest.mark.parametrize(
    "total,page_size,expected",
    [(0, 20, 1), (1, 20, 1), (20, 20, 1), (21, 20, 2), (45, 20, 3), (100, 1, 100)],
)
def test_total_pages(total, page_size, expected):
    assert total_pages(total, page_size) == expected


@pytest.mark.asyncio
async def test_list_projects_paginates_with_meta(test_db):
    for i in range(25):
        await add_project(test_db, index=i)

    rows, meta = await ProjectRepository(test_db).list_projects(ProjectsQuery(page=2, page_size=10))

    assert len(rows) == 10
    assert meta.total == 25
    assert meta.total_pages == 3
    assert meta.model_dump(by_alias=True) == {"page": 2, "pageSize": 10, "total": 25, "totalPages": 3}


@pytest.mark.asyncio
async def test_list_projects_empty_still_has_one_page(test_db):
    rows, meta = await ProjectRepository(test_db).list_projects(ProjectsQuery())
    assert rows == []
    assert meta.total == 0
    assert meta.total_pages == 1


@pytest.mark.asyncio
async def test_list_projects_orders_by_sort_order_then_newest(test_db):
    await add_project(test_db, index=1, sort_order=1)
    await add_project(test_db, index=2, sort_order=0)
    await add_project(test_db, index=3, sort_order=0)

    rows, _ = await ProjectRepository(test_db).list_projects(ProjectsQuery())

    assert [p.slug for p in rows] == ["project-3", "project-2", "project-1"]


@pytest.mark.asyncio
async def test_list_projects_filters_status_and_search(test_db):
    await add_project(test_db, index=1, title="Weather dashboard")
    await add_project(test_db, index=2, title="Budget app", description="Tracks WEATHER spending")
    await add_project(test_db, index=3, title="Weather bot", status="draft")

    repo = ProjectRepository(test_db)
    rows, meta = await repo.list_projects(ProjectsQuery(status="published", search="weather"))

    assert meta.total == 2
    assert {p.slug for p in rows} == {"project-1", "project-2"}


@pytest.mark.asyncio
async def test_featured_filter(test_db):
    await add_project(test_db, index=1, featured=True)
    await add_project(test_db, index=2, featured=False)

    rows, _ = await ProjectRepository(test_db).list_projects(ProjectsQuery(), featured=True)

    assert [p.slug for p in rows] == ["project-1"]


@pytest.mark.asyncio
async def test_unread_messages_include_null_read_flag(test_db):
    await add_message(test_db, is_read=False)
    await add_message(test_db, is_read=None)
    await add_message(test_db, is_read=True)

    repo = MessageRepository(test_db)
    unread, unread_meta = await repo.list_messages(MessagesQuery(status="unread"))
    read, read_meta = await repo.list_messages(MessagesQuery(status="read"))

    assert unread_meta.total == 2
    assert read_meta.total == 1
    assert await repo.count_unread() == 2


@pytest.mark.asyncio
async def test_upcoming_returns_only_confirmed_from_today(test_db):
    await add_booking(test_db, date="2030-01-09", status="confirmed")
    await add_booking(test_db, date="2030-01-10", time="09:00", status="confirmed")
    await add_booking(test_db, date="2030-01-10", time="11:00", status="cancelled")
    await add_booking(test_db, date="2030-01-12", status="confirmed")

    repo = BookingRepository(test_db)
    rows, meta = await repo.list_bookings(BookingsQuery(upcoming=True), today="2030-01-10")

    assert meta.total == 2
    assert [(b.date, b.time) for b in rows] == [("2030-01-10", "09:00"), ("2030-01-12", "10:00")]
    assert all(b.status == "confirmed" for b in rows)
    assert await repo.count_upcoming(today="2030-01-10") == 2


@pytest.mark.asyncio
async def test_booking_filters_are_conjunctive(test_db):
    await add_booking(test_db, date="2030-01-10", status="cancelled")
    await add_booking(test_db, date="2030-01-10", status="confirmed")
    await add_booking(test_db, date="2030-01-11", status="cancelled")

    rows, meta = await BookingRepository(test_db).list_bookings(
        BookingsQuery(status="cancelled", date="2030-01-10"),
    )

    assert meta.total == 1
    assert rows[0].date == "2030-01-10"
    assert rows[0].status == "cancelled"


@pytest.mark.asyncio
async def test_create_booking_is_always_confirmed(test_db):
    data = BookingCreate.model_validate({
        "name": "Grace",
        "email": "grace@example.com",
        "date": "2030-01-07",
        "time": "10:00",
        "duration": 45,
        "meeting_type": "consultation",
        "status": "cancelled",
    })

    booking = await BookingRepository(test_db).create_booking(data)

    assert booking.id is not None
    assert booking.status == "confirmed"
    assert booking.booking_reminders == []
