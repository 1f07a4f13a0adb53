from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from app.core.errors import NotFoundError, TransientIOError
from app.core.result import Result
from app.schemas.follow_up import FollowUpCreate
from app.core.enums import FollowUpType
from app.services import timeline as timeline_service
from app.services.follow_ups import create_follow_up
from app.services.timeline import ACTIVITY, FOLLOW_UP, build_timeline, merge_timeline

DAY = datetime(2024, 3, 1, tzinfo=timezone.utc)


def _at(hour, minute=0):
    return DAY.replace(hour=hour, minute=minute)


class TestMergeTimeline:

    def test_interleaves_by_own_timestamp(self):
        activity_a = SimpleNamespace(name="A", created_at=_at(10))
        activity_b = SimpleNamespace(name="B", created_at=_at(9))
        follow_up_f = SimpleNamespace(name="F", scheduled_at=_at(9, 30))

        merged = merge_timeline([activity_a, activity_b], [follow_up_f])

        assert [e.item.name for e in merged] == ["A", "F", "B"]
        assert [e.kind for e in merged] == [ACTIVITY, FOLLOW_UP, ACTIVITY]

    def test_equal_timestamps_keep_input_order(self):
        first = SimpleNamespace(name="first", created_at=_at(8))
        second = SimpleNamespace(name="second", created_at=_at(8))
        follow_up = SimpleNamespace(name="fu", scheduled_at=_at(8))

        merged = merge_timeline([first, second], [follow_up])

        assert [e.item.name for e in merged] == ["first", "second", "fu"]

    def test_empty(self):
        assert merge_timeline([], []) == []

    def test_length_is_sum_of_inputs(self):
        activities = [SimpleNamespace(created_at=_at(h)) for h in range(5)]
        follow_ups = [SimpleNamespace(scheduled_at=_at(h, 15)) for h in range(3)]
        assert len(merge_timeline(activities, follow_ups)) == 8


@pytest.mark.timeline
class TestBuildTimeline:

    async def _lead_with_follow_up(self, db_session, agent_user, create_lead_factory):
        lead = await create_lead_factory()
        payload = FollowUpCreate(scheduled_at=DAY + timedelta(days=30), type=FollowUpType.CALL)
        await create_follow_up(db_session, lead.id, payload, agent_user.id)
        return lead

    @pytest.mark.asyncio
    async def test_complete_timeline(self, db_session, agent_user, create_lead_factory):
        lead = await self._lead_with_follow_up(db_session, agent_user, create_lead_factory)

        res = await build_timeline(db_session, lead.id)

        assert res.ok
        assert not res.value.incomplete
        assert sorted(e.kind for e in res.value.items) == [ACTIVITY, FOLLOW_UP]

    @pytest.mark.asyncio
    async def test_unknown_lead(self, db_session):
        res = await build_timeline(db_session, "missing")
        assert isinstance(res.error, NotFoundError)

    @pytest.mark.asyncio
    async def test_missing_activity_feed_is_flagged(self, db_session, agent_user, create_lead_factory):
        lead = await self._lead_with_follow_up(db_session, agent_user, create_lead_factory)

        async def failing(db, lead_id):
            return Result.failure(TransientIOError("down"))

        with patch.object(timeline_service, "list_activities", failing):
            res = await build_timeline(db_session, lead.id)

        assert res.ok
        assert res.value.incomplete
        assert [e.kind for e in res.value.items] == [FOLLOW_UP]
        assert res.value.warnings[0].details["feed"] == "activities"

    @pytest.mark.asyncio
    async def test_both_feeds_missing_fails(self, db_session, agent_user, create_lead_factory):
        lead = await self._lead_with_follow_up(db_session, agent_user, create_lead_factory)

        async def failing(db, lead_id):
            return Result.failure(TransientIOError("down"))

        with patch.object(timeline_service, "list_activities", failing), \
                patch.object(timeline_service, "list_follow_ups", failing):
            res = await build_timeline(db_session, lead.id)

        assert isinstance(res.error, TransientIOError)
        assert res.error.retryable
