"""Unit tests for RefreshContext."""

from datetime import UTC, datetime, timedelta

import pytest

from habitshare.domain.context import RefreshContext


T0 = datetime(2024, 2, 7, 9, 0, tzinfo=UTC)


@pytest.mark.unit
class TestRefreshContext:
    """Tests for RefreshContext."""

    def test_new_context_is_stale(self):
        """A context that never refreshed is stale."""
        assert RefreshContext().is_stale(T0, timedelta(minutes=5)) is True

    def test_staleness_by_age(self):
        """A context becomes stale once max_age has passed."""
        context = RefreshContext().refreshed(T0)

        assert context.is_stale(T0 + timedelta(minutes=4), timedelta(minutes=5)) is False
        assert context.is_stale(T0 + timedelta(minutes=5), timedelta(minutes=5)) is True

    def test_share_activity_keeps_newest(self):
        """Older share activity does not overwrite newer activity."""
        context = RefreshContext().with_share_activity(T0).with_share_activity(T0 - timedelta(hours=1))
        assert context.last_share_activity_at == T0

    def test_unseen_share_activity(self):
        """Activity after the last refresh is unseen until the next refresh."""
        context = RefreshContext().refreshed(T0).with_share_activity(T0 + timedelta(seconds=30))

        assert context.has_unseen_share_activity() is True
        assert context.refreshed(T0 + timedelta(minutes=1)).has_unseen_share_activity() is False

    def test_contexts_are_immutable(self):
        """Updates return new contexts."""
        context = RefreshContext()
        context.refreshed(T0)
        assert context.last_refreshed_at is None


@pytest.mark.unit
class TestRefreshContextTimezones:
    """Tests for timestamps given without a UTC offset."""

    def test_naive_now_against_aware_refresh(self):
        """A naive current time is compared as UTC."""
        context = RefreshContext().refreshed(T0)

        assert context.is_stale(datetime(2024, 2, 7, 9, 4), timedelta(minutes=5)) is False
        assert context.is_stale(datetime(2024, 2, 7, 9, 5), timedelta(minutes=5)) is True

    def test_naive_fields_stored_as_utc(self):
        """Naive field values are held as aware UTC timestamps."""
        context = RefreshContext(
            last_refreshed_at=datetime(2024, 2, 7, 9, 0),
            last_share_activity_at=datetime(2024, 2, 7, 9, 1),
        )

        assert context.last_refreshed_at == T0
        assert context.last_share_activity_at == T0 + timedelta(minutes=1)
        assert context.has_unseen_share_activity() is True
        assert context.is_stale(T0 + timedelta(minutes=1), timedelta(minutes=5)) is False

    def test_naive_updates_mix_with_aware_values(self):
        """Naive refresh and share times combine with aware ones."""
        context = (
            RefreshContext()
            .with_share_activity(T0)
            .with_share_activity(datetime(2024, 2, 7, 10, 0))
            .refreshed(datetime(2024, 2, 7, 9, 30))
        )

        assert context.last_share_activity_at == T0 + timedelta(hours=1)
        assert context.last_refreshed_at == T0 + timedelta(minutes=30)
        assert context.has_unseen_share_activity() is True
