"""
Ticket constants - statuses, priorities, categories, sentiments, sender roles.
"""


class TicketStatus:
    """Possible ticket statuses"""
    OPEN = 'open'
    IN_PROGRESS = 'in_progress'
    PENDING = 'pending'
    RESOLVED = 'resolved'
    CLOSED = 'closed'

    ALL = [OPEN, IN_PROGRESS, PENDING, RESOLVED, CLOSED]

    # Timestamp column stamped (once) on entering the status
    STAMPS = {
        RESOLVED: 'resolved_at',
        CLOSED: 'closed_at',
    }


class TicketPriority:
    """Ticket priorities"""
    LOW = 'low'
    MEDIUM = 'medium'
    HIGH = 'high'
    URGENT = 'urgent'

    ALL = [LOW, MEDIUM, HIGH, URGENT]
    DEFAULT = MEDIUM


class TicketCategory:
    """Ticket categories"""
    TECHNICAL = 'technical'
    BILLING = 'billing'
    GENERAL = 'general'
    FEATURE_REQUEST = 'feature_request'
    BUG_REPORT = 'bug_report'

    ALL = [TECHNICAL, BILLING, GENERAL, FEATURE_REQUEST, BUG_REPORT]
    DEFAULT = GENERAL


class Sentiment:
    """AI sentiment values"""
    POSITIVE = 'positive'
    NEUTRAL = 'neutral'
    NEGATIVE = 'negative'

    ALL = [POSITIVE, NEUTRAL, NEGATIVE]


class SenderRole:
    """Message author kinds"""
    CUSTOMER = 'customer'
    AGENT = 'agent'
    SYSTEM = 'system'
    AI = 'ai'

    ALL = [CUSTOMER, AGENT, SYSTEM, AI]


TITLE_MAX_LENGTH = 200
