"""Constants for barter/session statuses, notification types, audit actions and marketplace sort orders."""

from enum import Enum


class BarterStatus(str, Enum):
    """Enumeration of barter request statuses."""

    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    completed = "completed"


class SessionStatus(str, Enum):
    """Enumeration of skill session statuses."""

    pending = "pending"
    accepted = "accepted"
    declined = "declined"
    completed = "completed"


# Allowed status moves; anything else is rejected with 400
BARTER_TRANSITIONS = {
    BarterStatus.pending: {BarterStatus.accepted, BarterStatus.declined},
    BarterStatus.accepted: {BarterStatus.completed},
    BarterStatus.declined: set(),
    BarterStatus.completed: set(),
}

SESSION_TRANSITIONS = {
    SessionStatus.pending: {SessionStatus.accepted, SessionStatus.declined},
    SessionStatus.accepted: {SessionStatus.completed},
    SessionStatus.declined: set(),
    SessionStatus.completed: set(),
}


class NotificationType(str, Enum):
    """Enumeration of notification categories."""

    barter = "barter"
    chat = "chat"
    session = "session"
    review = "review"


class AuditAction(str, Enum):
    """Enumeration of audited actions."""

    barter_created = "barter_created"
    barter_accepted = "barter_accepted"
    barter_declined = "barter_declined"
    barter_completed = "barter_completed"
    barter_deleted = "barter_deleted"

    review_created = "review_created"
    review_updated = "review_updated"
    review_deleted = "review_deleted"

    session_created = "session_created"
    session_accepted = "session_accepted"
    session_declined = "session_declined"
    session_completed = "session_completed"

    profile_updated = "profile_updated"


class MarketplaceSort(str, Enum):
    """Sort orders offered by the marketplace listing."""

    rating = "rating"
    match_quality = "matchQuality"
    newest = "newest"
    alphabetical = "alphabetical"


class SkillMatchType(str, Enum):
    """Which skill list a skill filter applies to."""

    offered = "offered"
    wanted = "wanted"
    any = "any"


class RelayEvent(str, Enum):
    """Event names on the real-time channel."""

    # client -> server
    authenticate = "authenticate"
    join_chat = "join_chat"
    leave_chat = "leave_chat"
    send_message = "send_message"
    typing = "typing"
    mark_read = "mark_read"

    # server -> client
    new_message = "new_message"
    messages_read = "messages_read"
    user_typing = "user_typing"
    chat_notification = "chat_notification"
    new_chat = "new_chat"
    authenticated = "authenticated"
    joined_chat = "joined_chat"
    left_chat = "left_chat"
    error = "error"


DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
MIN_PASSWORD_LENGTH = 6
