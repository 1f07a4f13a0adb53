from enum import Enum


class UserRole(str, Enum):
    ADMIN = "admin"
    AGENT = "agent"
    CHANNEL_PARTNER = "channel_partner"

    def __str__(self):
        return self.value


class LeadStatus(str, Enum):
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    SITE_VISIT = "site_visit"
    NEGOTIATION = "negotiation"
    CONVERTED = "converted"
    LOST = "lost"

    def __str__(self):
        return self.value


class LeadSource(str, Enum):
    WEBSITE = "website"
    REFERRAL = "referral"
    SOCIAL_MEDIA = "social_media"
    WALK_IN = "walk_in"
    EVENT = "event"
    OTHER = "other"

    def __str__(self):
        return self.value


class FollowUpStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    def __str__(self):
        return self.value


class FollowUpType(str, Enum):
    CALL = "call"
    MEETING = "meeting"
    EMAIL = "email"
    WHATSAPP = "whatsapp"

    def __str__(self):
        return self.value


class FollowUpBadge(str, Enum):
    PENDING = "Pending"
    OVERDUE = "Overdue"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    def __str__(self):
        return self.value


class ActivityType(str, Enum):
    LEAD_CREATED = "lead_created"
    LEAD_UPDATED = "lead_updated"
    STATUS_CHANGED = "status_changed"
    FOLLOW_UP_SCHEDULED = "follow_up_scheduled"
    FOLLOW_UP_COMPLETED = "follow_up_completed"
    FOLLOW_UP_CANCELLED = "follow_up_cancelled"

    def __str__(self):
        return self.value
