"""Unit tests for agenda_service module."""

from datetime import UTC, date, datetime, timedelta

import pytest

from habitshare.core.errors import RecordStoreError
from habitshare.domain.context import RefreshContext
from habitshare.models.service_models import DayStatus
from habitshare.services import agenda_service


NOW = datetime(2024, 2, 7, 9, 0, tzinfo=UTC)
TODAY = date(2024, 2, 7)


@pytest.fixture
def seeded_store(in_memory_store):
    """Store holding tasks, a habit and a share edge for user u1."""
    store = in_memory_store
    store.add(
        "tasks",
        {
            "id": "t1",
            "user_id": "u1",
            "text": "Stretch",
            "date": "2024-02-01",
            "repeat_type": "daily",
            "completed_days": ["2024-02-07"],
        },
    )
    store.add("tasks", {"id": "t2", "user_id": "u1", "text": "Dentist", "date": "2024-02-07"})
    store.add(
        "tasks",
        {
            "id": "t3",
            "user_id": "u1",
            "text": "Broken",
            "date": "2024-02-01",
            "repeat_type": "custom",
            "custom_repeat_frequency": 0,
            "custom_repeat_unit": "days",
        },
    )
    store.add("tasks", {"id": "t4", "user_id": "u1", "text": "No date"})
    store.add("tasks", {"id": "t5", "user_id": "u2", "text": "Not mine", "date": "2024-02-07"})
    store.add(
        "habits",
        {
            "id": "h1",
            "user_id": "u1",
            "title": "Read",
            "date": "2024-01-01",
            "repeat_type": "daily",
            "target_per_week": 2,
            "completed_days": ["2024-02-05", "2024-02-06"],
        },
    )
    store.add(
        "share_edges",
        {
            "id": "s1",
            "original_task_id": "orig",
            "copied_task_id": "t1",
            "shared_by": "u2",
            "shared_with": "u1",
            "status": "accepted",
            "created": "2024-02-06T08:00:00Z",
        },
    )
    return store


@pytest.mark.unit
@pytest.mark.asyncio
class TestBuildAgenda:
    """Tests for build_agenda function."""

    async def test_due_items(self, seeded_store, test_settings):
        """Due items come from the recurrence evaluator for the agenda date."""
        agenda, _ = await agenda_service.build_agenda(
            seeded_store,
            user_id="u1",
            on_date=TODAY,
            context=RefreshContext(),
            now=NOW,
            app_settings=test_settings,
        )

        assert [item.item_id for item in agenda.due_items] == ["t1", "t2", "h1"]
        assert agenda.due_items[0].completed is True
        assert agenda.due_items[1].completed is False

    async def test_skips_bad_records_and_reports_malformed_rules(self, seeded_store, test_settings):
        """Unreadable records are counted and malformed rules are listed."""
        agenda, _ = await agenda_service.build_agenda(
            seeded_store,
            user_id="u1",
            on_date=TODAY,
            context=RefreshContext(),
            now=NOW,
            app_settings=test_settings,
        )

        assert agenda.skipped_records == 1
        assert agenda.malformed_rule_item_ids == ["t3"]

    async def test_habit_badges(self, seeded_store, test_settings):
        """Habit badges carry streak, progress and the week strip."""
        agenda, _ = await agenda_service.build_agenda(
            seeded_store,
            user_id="u1",
            on_date=TODAY,
            context=RefreshContext(),
            now=NOW,
            app_settings=test_settings,
        )

        badge = agenda.habit_badges[0]
        assert badge.habit_id == "h1"
        assert badge.streak == 1
        assert badge.progress.completed == 2
        assert badge.progress.target_met is True
        assert badge.week[:3] == [DayStatus.COMPLETED, DayStatus.COMPLETED, DayStatus.PENDING]

    async def test_sharing_participants(self, seeded_store, test_settings):
        """The recipient's copy shows the sender as a participant."""
        agenda, _ = await agenda_service.build_agenda(
            seeded_store,
            user_id="u1",
            on_date=TODAY,
            context=RefreshContext(),
            now=NOW,
            app_settings=test_settings,
        )

        assert agenda.sharing.item_ids() == ["t1", "t2", "t3", "h1"]
        assert agenda.sharing.items[0].participants[0].user_id == "u2"
        assert agenda.sharing.unresolved_references == 0

    async def test_updates_refresh_context(self, seeded_store, test_settings):
        """The returned context records the refresh and the newest share activity."""
        _, context = await agenda_service.build_agenda(
            seeded_store,
            user_id="u1",
            on_date=TODAY,
            context=RefreshContext(),
            now=NOW,
            app_settings=test_settings,
        )

        assert context.last_refreshed_at == NOW
        assert context.last_share_activity_at == datetime(2024, 2, 6, 8, 0, tzinfo=UTC)
        assert agenda_service.should_refresh(context, NOW + timedelta(minutes=1), test_settings) is False
        assert agenda_service.should_refresh(context, NOW + timedelta(minutes=10), test_settings) is True

    async def test_only_queries_own_records(self, seeded_store, test_settings):
        """Every query is filtered to the current user."""
        await agenda_service.build_agenda(
            seeded_store,
            user_id="u1",
            on_date=TODAY,
            context=RefreshContext(),
            now=NOW,
            app_settings=test_settings,
        )

        assert seeded_store.queries == [
            ("tasks", 'user_id = "u1"'),
            ("habits", 'user_id = "u1"'),
            ("share_edges", 'shared_by = "u1" || shared_with = "u1"'),
        ]

    async def test_store_failure_propagates(self, seeded_store, test_settings):
        """A store failure is raised rather than rendering a partial view."""
        seeded_store.fail_collections.add("habits")

        with pytest.raises(RecordStoreError):
            await agenda_service.build_agenda(
                seeded_store,
                user_id="u1",
                on_date=TODAY,
                context=RefreshContext(),
                now=NOW,
                app_settings=test_settings,
            )


@pytest.mark.unit
@pytest.mark.asyncio
class TestLoaders:
    """Tests for the record loaders."""

    async def test_load_items_counts_skipped(self, seeded_store):
        """Loaders return parsed items and the number skipped."""
        items, skipped = await agenda_service.load_items(seeded_store, owner_id="u1")

        assert [item.id for item in items] == ["t1", "t2", "t3"]
        assert skipped == 1

    async def test_load_share_edges_as_sender_or_recipient(self, seeded_store):
        """Share edges are loaded for both parties."""
        as_recipient, _ = await agenda_service.load_share_edges(seeded_store, user_id="u1")
        as_sender, _ = await agenda_service.load_share_edges(seeded_store, user_id="u2")
        unrelated, _ = await agenda_service.load_share_edges(seeded_store, user_id="u3")

        assert [edge.id for edge in as_recipient] == ["s1"]
        assert [edge.id for edge in as_sender] == ["s1"]
        assert unrelated == []


@pytest.mark.unit
class TestShouldRefresh:
    """Tests for should_refresh function."""

    def test_never_refreshed(self, test_settings):
        """An empty context always refreshes."""
        assert agenda_service.should_refresh(RefreshContext(), NOW, test_settings) is True

    def test_unseen_share_activity(self, test_settings):
        """Share activity newer than the last refresh triggers a refresh."""
        context = RefreshContext(last_refreshed_at=NOW, last_share_activity_at=NOW + timedelta(seconds=1))
        assert agenda_service.should_refresh(context, NOW + timedelta(seconds=2), test_settings) is True

    def test_naive_now(self, test_settings):
        """A current time without an offset is read as UTC."""
        context = RefreshContext(last_refreshed_at=NOW)

        assert agenda_service.should_refresh(context, NOW.replace(tzinfo=None), test_settings) is False
        assert agenda_service.should_refresh(context, datetime(2024, 2, 8, 9, 0), test_settings) is True
