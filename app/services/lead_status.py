"""Lead status state machine.

The stored status is always a `LeadStatus` token. By default any token may be
written at any time. Strict mode restricts writes to forward moves along the
sales funnel, with `lost` reachable from every open stage after `new`.
"""
from typing import Union

from app.core.enums import LeadStatus
from app.core.errors import InvalidTransitionError, ValidationError
from app.core.result import Result

TERMINAL_STATUSES = {LeadStatus.CONVERTED, LeadStatus.LOST}

# site_visit is an optional stop between qualified and negotiation
ALLOWED_TRANSITIONS = {
    LeadStatus.NEW: {LeadStatus.CONTACTED},
    LeadStatus.CONTACTED: {LeadStatus.QUALIFIED, LeadStatus.LOST},
    LeadStatus.QUALIFIED: {LeadStatus.SITE_VISIT, LeadStatus.NEGOTIATION, LeadStatus.LOST},
    LeadStatus.SITE_VISIT: {LeadStatus.NEGOTIATION, LeadStatus.LOST},
    LeadStatus.NEGOTIATION: {LeadStatus.CONVERTED, LeadStatus.LOST},
    LeadStatus.CONVERTED: set(),
    LeadStatus.LOST: set(),
}

STATUS_COLORS = {
    LeadStatus.NEW: "badge-blue",
    LeadStatus.CONTACTED: "badge-indigo",
    LeadStatus.QUALIFIED: "badge-purple",
    LeadStatus.SITE_VISIT: "badge-yellow",
    LeadStatus.NEGOTIATION: "badge-orange",
    LeadStatus.CONVERTED: "badge-green",
    LeadStatus.LOST: "badge-red",
}


def parse_status(value: Union[str, LeadStatus]) -> Result[LeadStatus]:
    try:
        return Result.success(LeadStatus(value))
    except ValueError:
        allowed = ", ".join(s.value for s in LeadStatus)
        return Result.failure(
            ValidationError("Invalid lead status", {"status": f"Must be one of: {allowed}"})
        )


def transition(
    current: Union[str, LeadStatus],
    requested: Union[str, LeadStatus],
    strict: bool = False,
) -> Result[LeadStatus]:
    """Validate a status write and return the status to store."""
    parsed = parse_status(requested)
    if not parsed.ok:
        return parsed
    target = parsed.value

    # stored values are always valid; a bad one here is a programming error
    source = LeadStatus(current)

    if not strict or source == target:
        return Result.success(target)

    if target not in ALLOWED_TRANSITIONS[source]:
        return Result.failure(
            InvalidTransitionError(
                f"Cannot move lead from {status_label(source)} to {status_label(target)}",
                {"from": source.value, "to": target.value},
            )
        )
    return Result.success(target)


def is_terminal(status: Union[str, LeadStatus]) -> bool:
    return LeadStatus(status) in TERMINAL_STATUSES


def status_label(status: Union[str, LeadStatus]) -> str:
    value = status.value if isinstance(status, LeadStatus) else str(status)
    return " ".join(word[:1].upper() + word[1:] for word in value.split("_"))


def status_color(status: Union[str, LeadStatus]) -> str:
    try:
        return STATUS_COLORS[LeadStatus(status)]
    except ValueError:
        return ""
