"""Authentication and authorization utilities"""
from fastapi import HTTPException
from sqlalchemy import or_
from app.core.enums import UserRole
from app.core.result import Result


def filter_by_user(query, model, current_user):

    if current_user.role == UserRole.AGENT:
        return query.where(or_(
            model.created_by == current_user.id,
            model.assigned_agent_id == current_user.id,
        ))
    if current_user.role == UserRole.CHANNEL_PARTNER:
        return query.where(model.channel_partner_id == current_user.id)
    return query


def can_access_lead(lead, current_user) -> bool:
    if current_user.role == UserRole.ADMIN:
        return True
    if current_user.role == UserRole.AGENT:
        return current_user.id in (lead.created_by, lead.assigned_agent_id)
    if current_user.role == UserRole.CHANNEL_PARTNER:
        return lead.channel_partner_id == current_user.id
    return False


def check_ownership(lead, current_user) -> None:

    if not can_access_lead(lead, current_user):
        raise HTTPException(
            status_code=403,
            detail="Forbidden: You can only access your own leads"
        )


def raise_for_result(result: Result):
    """Return the value of a successful result, or raise the matching HTTP error."""
    if result.ok:
        return result.value
    error = result.error
    headers = {"Retry-After": "5"} if error.retryable else None
    raise HTTPException(status_code=error.status_code, detail=error.to_dict(), headers=headers)
