from datetime import datetime
from typing import Optional
from app.models.base import as_utc
from app.models.lead import Lead
from app.models.follow_up import FollowUp
from app.models.activity import Activity
from app.models.user import User
from app.schemas.activity import ActivityOut, ActivityUser
from app.schemas.auth import UserOut
from app.schemas.follow_up import FollowUpOut
from app.schemas.lead import LeadMetadata, LeadOut, LeadStatsOut
from app.schemas.timeline import ActivityEntry, FollowUpEntry, TimelineOut, TimelineWarning
from app.services.follow_ups import follow_up_badge
from app.services.lead_stats import LeadStats
from app.services.lead_status import status_color, status_label
from app.services.timeline import ACTIVITY, Timeline
from app.utils.formatting import format_budget, format_phone_number


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    return as_utc(value) if value else None


def build_lead_metadata(lead: Lead) -> Optional[LeadMetadata]:
    if not (lead.referral_code or lead.channel_partner_id or lead.submitted_from):
        return None
    return LeadMetadata(
        referral_code=lead.referral_code,
        channel_partner_id=lead.channel_partner_id,
        submitted_from=lead.submitted_from,
    )


def build_lead_response(lead: Lead) -> LeadOut:
    return LeadOut(
        id=lead.id,
        name=lead.name,
        phone=lead.phone,
        phone_display=format_phone_number(lead.phone),
        email=lead.email,
        status=lead.status,
        status_label=status_label(lead.status),
        status_color=status_color(lead.status),
        source=lead.source,
        budget=lead.budget,
        budget_display=format_budget(lead.budget) if lead.budget else None,
        notes=lead.notes,
        assigned_agent_id=lead.assigned_agent_id,
        created_by=lead.created_by,
        metadata=build_lead_metadata(lead),
        created_at=_utc(lead.created_at),
        updated_at=_utc(lead.updated_at),
    )


def build_follow_up_response(follow_up: FollowUp, now: Optional[datetime] = None) -> FollowUpOut:
    return FollowUpOut(
        id=follow_up.id,
        lead_id=follow_up.lead_id,
        user_id=follow_up.user_id,
        scheduled_at=_utc(follow_up.scheduled_at),
        completed_at=_utc(follow_up.completed_at),
        status=follow_up.status,
        type=follow_up.type,
        notes=follow_up.notes,
        reminder=follow_up.reminder,
        display_status=follow_up_badge(follow_up, now),
        created_at=_utc(follow_up.created_at),
        updated_at=_utc(follow_up.updated_at),
    )


def with_display_status(follow_up: FollowUpOut, now: Optional[datetime] = None) -> FollowUpOut:
    """Recompute the badge of a follow-up served from a cached view."""
    return follow_up.model_copy(update={"display_status": follow_up_badge(follow_up, now)})


def build_activity_response(activity: Activity) -> ActivityOut:
    user = None
    if activity.user is not None:
        user = ActivityUser(
            id=activity.user.id,
            full_name=activity.user.full_name,
            email=activity.user.email,
        )
    return ActivityOut(
        id=activity.id,
        lead_id=activity.lead_id,
        activity_type=activity.activity_type,
        description=activity.description,
        metadata=activity.activity_metadata,
        created_at=_utc(activity.created_at),
        user=user,
    )


def build_timeline_response(timeline: Timeline, now: Optional[datetime] = None) -> TimelineOut:
    entries = []
    for entry in timeline.items:
        if entry.kind == ACTIVITY:
            entries.append(ActivityEntry(activity=build_activity_response(entry.item)))
        else:
            entries.append(FollowUpEntry(follow_up=build_follow_up_response(entry.item, now)))
    return TimelineOut(
        lead_id=timeline.lead_id,
        entries=entries,
        incomplete=timeline.incomplete,
        warnings=[TimelineWarning(code=w.code, message=w.message) for w in timeline.warnings],
    )


def build_stats_response(stats: LeadStats) -> LeadStatsOut:
    return LeadStatsOut(
        total=stats.total,
        converted=stats.converted,
        pending=stats.pending,
        this_month=stats.this_month,
        hot=stats.hot,
        conversion_rate=stats.conversion_rate,
        unassigned=stats.unassigned,
        active_partners=stats.active_partners,
        total_value=format(stats.total_value, "f"),
        total_value_display=format_budget(stats.total_value),
        by_status=stats.by_status,
    )


def build_user_response(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        username=user.username,
        role=user.role,
        full_name=user.full_name,
        email=user.email,
        referral_code=user.referral_code,
    )


def build_lead_response_list(leads: list) -> list:
    return [build_lead_response(lead) for lead in leads]


def build_follow_up_response_list(follow_ups: list, now: Optional[datetime] = None) -> list:
    return [build_follow_up_response(follow_up, now) for follow_up in follow_ups]


def build_activity_response_list(activities: list) -> list:
    return [build_activity_response(activity) for activity in activities]
