"""Dashboard figures for a set of leads"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Iterable, List, Optional

from app.core.config import settings
from app.core.enums import LeadStatus
from app.models.base import as_utc, utcnow

OPEN_STATUSES = {LeadStatus.NEW.value, LeadStatus.CONTACTED.value}


@dataclass
class LeadStats:
    total: int
    converted: int
    pending: int
    this_month: int
    hot: int
    conversion_rate: int
    unassigned: int
    active_partners: int
    total_value: Decimal
    by_status: Dict[str, int]


def lead_budget(lead) -> Optional[Decimal]:
    if not lead.budget:
        return None
    return Decimal(lead.budget)


def conversion_rate(leads: List) -> int:
    """Converted share as a whole percentage, halves rounded up."""
    if not leads:
        return 0
    converted = sum(1 for lead in leads if lead.status == LeadStatus.CONVERTED.value)
    rate = Decimal(converted * 100) / Decimal(len(leads))
    return int(rate.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def is_this_month(value: datetime, now: datetime) -> bool:
    value = as_utc(value)
    return value.year == now.year and value.month == now.month


def hot_leads(leads: Iterable, threshold: Optional[int] = None) -> list:
    threshold = settings.HOT_LEAD_BUDGET if threshold is None else threshold
    return [lead for lead in leads if lead.budget and lead_budget(lead) >= threshold]


def group_leads_by_status(leads: Iterable) -> Dict[str, list]:
    groups: Dict[str, list] = {}
    for lead in leads:
        groups.setdefault(lead.status, []).append(lead)
    return groups


def calculate_lead_stats(
    leads: Iterable,
    now: Optional[datetime] = None,
    hot_threshold: Optional[int] = None
) -> LeadStats:
    leads = list(leads)
    now = as_utc(now) if now else utcnow()
    groups = group_leads_by_status(leads)

    return LeadStats(
        total=len(leads),
        converted=len(groups.get(LeadStatus.CONVERTED.value, [])),
        pending=sum(len(groups.get(status, [])) for status in OPEN_STATUSES),
        this_month=sum(1 for lead in leads if is_this_month(lead.created_at, now)),
        hot=len(hot_leads(leads, hot_threshold)),
        conversion_rate=conversion_rate(leads),
        unassigned=sum(1 for lead in leads if not lead.channel_partner_id),
        active_partners=len({lead.channel_partner_id for lead in leads if lead.channel_partner_id}),
        total_value=sum((lead_budget(lead) or Decimal(0) for lead in leads), Decimal(0)),
        by_status={status: len(items) for status, items in groups.items()},
    )
