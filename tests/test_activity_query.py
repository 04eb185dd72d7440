from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError

from gallery_admin.models.activity import FlaggedKind
from gallery_admin.models.user import UserRole
from gallery_admin.services.activity_query import ActivityFilters, ActivityQueryService, clamp_page

BASE = datetime(2026, 3, 10, 9, 0, tzinfo=UTC)


@pytest.fixture
def service(db_session, clock):
    return ActivityQueryService(db_session, clock=clock)


def _ids(events):
    return [event.id for event in events]


def test_clamp_page_bounds():
    assert clamp_page(0, 0) == (1, 1)
    assert clamp_page(-3, 20) == (1, 20)
    assert clamp_page(4, 500) == (4, 100)


def test_query_orders_newest_first_and_paginates(service, admin_user, make_event):
    events = [make_event(admin_user, "IMAGE_UPLOAD", BASE + timedelta(minutes=i)) for i in range(5)]

    first = service.query(ActivityFilters(), page=1, page_size=2)
    last = service.query(ActivityFilters(), page=3, page_size=2)

    assert _ids(first.events) == [events[4].id, events[3].id]
    assert _ids(last.events) == [events[0].id]
    assert (first.total, first.pages, first.limit) == (5, 3, 2)
    assert last.total == first.total


def test_query_clamps_page_and_limit(service, admin_user, make_event):
    make_event(admin_user, "LOGOUT", BASE)

    result = service.query(ActivityFilters(), page=0, page_size=1000)

    assert result.page == 1
    assert result.limit == 100
    assert result.total == 1


def test_query_is_idempotent(service, admin_user, make_event):
    for i in range(3):
        make_event(admin_user, "CATEGORY_UPDATE", BASE + timedelta(minutes=i))
    filters = ActivityFilters(action="category")

    assert _ids(service.query(filters).events) == _ids(service.query(filters).events)


def test_date_range_is_inclusive(service, admin_user, make_event):
    early = make_event(admin_user, "IMAGE_UPLOAD", BASE)
    middle = make_event(admin_user, "IMAGE_UPLOAD", BASE + timedelta(hours=1))
    make_event(admin_user, "IMAGE_UPLOAD", BASE + timedelta(hours=2))

    result = service.query(ActivityFilters(start_date=BASE, end_date=BASE + timedelta(hours=1)))

    assert _ids(result.events) == [middle.id, early.id]


def test_search_matches_action_email_and_image_title(service, make_user, make_image, make_event):
    alice = make_user(email="alice@gallery.test")
    bob = make_user(email="bob@gallery.test")
    harbor = make_image(bob, title="Harbor at dawn")

    by_email = make_event(alice, "LOGOUT", BASE)
    by_title = make_event(bob, "IMAGE_UPDATE", BASE + timedelta(minutes=1), subject=harbor)
    by_action = make_event(bob, "PASSWORD_CHANGE", BASE + timedelta(minutes=2))

    assert _ids(service.query(ActivityFilters(search="ALICE")).events) == [by_email.id]
    assert _ids(service.query(ActivityFilters(search="harbor")).events) == [by_title.id]
    assert _ids(service.query(ActivityFilters(search="password")).events) == [by_action.id]


def test_search_treats_wildcards_literally(service, admin_user, make_event):
    make_event(admin_user, "IMAGE_UPLOAD", BASE)

    assert service.query(ActivityFilters(search="%")).total == 0
    assert service.query(ActivityFilters(search="_")).total == 1  # IMAGE_UPLOAD contains "_"


def test_filters_combine_with_and(service, make_user, make_event):
    alice, bob = make_user(), make_user()
    wanted = make_event(alice, "IMAGE_DELETE", BASE)
    make_event(alice, "IMAGE_UPLOAD", BASE)
    make_event(bob, "IMAGE_DELETE", BASE)

    result = service.query(ActivityFilters(action="delete", actor_id=alice.id))

    assert _ids(result.events) == [wanted.id]


def test_flagged_only_and_action_both_apply(service, admin_user, make_event):
    rapid = make_event(admin_user, FlaggedKind.RAPID_ACTIONS.action, BASE, details={"flagged": True})
    make_event(admin_user, FlaggedKind.BULK_DELETIONS.action, BASE, details={"flagged": True})
    make_event(admin_user, "IMAGE_DELETE", BASE)

    flagged = service.query(ActivityFilters(flagged_only=True))
    narrowed = service.query(ActivityFilters(flagged_only=True, action="rapid"))

    assert flagged.total == 2
    assert all(event.is_suspicious for event in flagged.events)
    assert _ids(narrowed.events) == [rapid.id]


def test_export_returns_every_match(service, admin_user, make_event):
    for i in range(150):
        make_event(admin_user, "IMAGE_UPDATE", BASE + timedelta(seconds=i))

    assert len(service.export(ActivityFilters())) == 150
    assert len(service.query(ActivityFilters(), page_size=500).events) == 100


def test_recent_returns_newest_events(service, admin_user, make_event):
    events = [make_event(admin_user, "LOGOUT", BASE + timedelta(minutes=i)) for i in range(4)]

    assert _ids(service.recent(2)) == [events[3].id, events[2].id]


def test_query_failure_raises_fetch_error():
    class BrokenSession:
        def scalar(self, stmt):
            raise SQLAlchemyError("no such table")

    with pytest.raises(HTTPException) as excinfo:
        ActivityQueryService(BrokenSession()).query(ActivityFilters())

    assert excinfo.value.status_code == 500
    assert excinfo.value.detail["error"]["code"] == "ACTIVITY_FETCH_FAILED"


def test_stats_on_empty_log(service, clock):
    stats = service.stats()

    assert (stats.total, stats.today, stats.week, stats.month, stats.suspicious) == (0, 0, 0, 0, 0)
    assert stats.top_actions == []
    assert stats.top_users == []
    assert stats.recent_suspicious == []
    assert [day.count for day in stats.activity_trend] == [0] * 7
    assert stats.activity_trend[0].date == "2026-03-08"
    assert stats.activity_trend[-1].date == clock.now.date().isoformat()


def test_stats_counts_leaders_and_windows(service, make_user, make_event, clock):
    alice = make_user(role=UserRole.ADMIN)
    bob = make_user()
    now = clock.now
    make_event(alice, "IMAGE_UPLOAD", now - timedelta(hours=2))
    make_event(alice, "IMAGE_UPLOAD", now - timedelta(days=3))
    make_event(alice, "IMAGE_DELETE", now - timedelta(days=20))
    make_event(bob, "LOGOUT", now - timedelta(days=40))

    stats = service.stats()

    assert (stats.total, stats.today, stats.week, stats.month) == (4, 1, 2, 3)
    assert [(entry.user.id, entry.count) for entry in stats.top_users] == [(alice.id, 3), (bob.id, 1)]
    assert (stats.top_actions[0].action, stats.top_actions[0].count) == ("IMAGE_UPLOAD", 2)
    assert sum(entry.count for entry in stats.top_actions) == 4


def test_stats_trend_buckets_by_utc_day(service, admin_user, make_event, clock):
    make_event(admin_user, "LOGOUT", clock.now - timedelta(minutes=5))
    make_event(admin_user, "LOGOUT", clock.now - timedelta(days=2))
    make_event(admin_user, "LOGOUT", clock.now - timedelta(days=2, hours=1))
    make_event(admin_user, "LOGOUT", clock.now - timedelta(days=9))

    stats = service.stats()

    assert [day.count for day in stats.activity_trend] == [0, 0, 0, 0, 2, 0, 1]


def test_stats_recent_suspicious_keeps_five_newest(service, admin_user, make_event, clock):
    flagged = [
        make_event(
            admin_user,
            FlaggedKind.MULTIPLE_FAILED_LOGINS.action,
            clock.now - timedelta(minutes=10 - i),
            details={"flagged": True},
        )
        for i in range(6)
    ]
    make_event(admin_user, "LOGIN_FAILED", clock.now)

    stats = service.stats()

    assert stats.suspicious == 6
    assert _ids(stats.recent_suspicious) == [event.id for event in reversed(flagged[1:])]
    assert all(event.actor.email == admin_user.email for event in stats.recent_suspicious)


def test_stats_failure_raises_stats_error():
    class BrokenSession:
        def scalar(self, stmt):
            raise SQLAlchemyError("connection reset")

    with pytest.raises(HTTPException) as excinfo:
        ActivityQueryService(BrokenSession()).stats()

    assert excinfo.value.status_code == 500
    assert excinfo.value.detail["error"]["code"] == "ACTIVITY_STATS_FAILED"
