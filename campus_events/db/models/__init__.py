# Import all models so SQLAlchemy metadata is fully populated on startup.
from campus_events.db.models.user import User
from campus_events.db.models.event import Event
from campus_events.db.models.form_field import FormField
from campus_events.db.models.registration import Registration, FormAnswer
from campus_events.db.models.form_audit_log import FormAuditLog


__all__ = [
    "User",
    "Event",
    "FormField",
    "Registration",
    "FormAnswer",
    "FormAuditLog",
]
