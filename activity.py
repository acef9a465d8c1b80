"""Analytics events and user notifications.

Both helpers only add rows to the current session; the caller commits them
together with the change they describe.
"""
from models import AnalyticsEvent, Notification, db, utcnow


def record_event(event_type, user_id, entity_type, entity_id, **metadata):
    metadata.setdefault('timestamp', utcnow().isoformat())
    event = AnalyticsEvent(
        event_type=event_type,
        user_id=user_id,
        entity_type=entity_type,
        entity_id=entity_id,
        event_metadata=metadata
    )
    db.session.add(event)
    return event


def notify(user_id, title, message, type='info', reference_id=None):
    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        reference_id=reference_id
    )
    db.session.add(notification)
    return notification
