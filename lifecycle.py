"""Issue lifecycle: who may write which fields, and how a write is recorded.

Every accepted change is appended to the ``IssueUpdate`` log, one row per
changed field. The issue row is the current projection of that log.
"""
from activity import notify
from errors import AuthorizationError, ValidationError
from models import Department, Issue, IssueUpdate, Worker, db, utcnow

CONTENT_FIELDS = frozenset({'title', 'description', 'category', 'priority', 'address', 'location'})
ASSIGNMENT_FIELDS = frozenset({'assigned_worker_id', 'status', 'estimated_resolution_time'})
UPDATABLE_FIELDS = CONTENT_FIELDS | ASSIGNMENT_FIELDS | {'department_id'}

# Role -> fields the role may write on any issue
FIELD_PERMISSIONS = {
    'admin': UPDATABLE_FIELDS,
    'worker': ASSIGNMENT_FIELDS,
    'citizen': frozenset(),
}

# Extra grant for the reporter, valid while the issue is not closed
OWNER_FIELDS = CONTENT_FIELDS

RESOLVED = 'resolved'
CLOSED = 'closed'


def is_owner(user, issue):
    return issue.user_id == user.id


def writable_fields(user, issue):
    fields = set(FIELD_PERMISSIONS.get(user.role, frozenset()))
    if is_owner(user, issue) and issue.status != CLOSED:
        fields |= OWNER_FIELDS
    return fields


def authorize_update(user, issue, requested_fields):
    forbidden = sorted(set(requested_fields) - writable_fields(user, issue))
    if forbidden:
        raise AuthorizationError(f"Not authorized to update: {', '.join(forbidden)}")


def can_delete(user, issue):
    return is_owner(user, issue) or user.role == 'admin'


def can_see_private_comments(user, issue):
    return is_owner(user, issue) or user.role in ('admin', 'worker')


def can_view_history(user, issue):
    return can_see_private_comments(user, issue)


def _stringify(value):
    if value is None:
        return ''
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def _location_text(latitude, longitude):
    if latitude is None or longitude is None:
        return ''
    return f'POINT({longitude} {latitude})'


def _check_references(changes):
    worker_id = changes.get('assigned_worker_id')
    if worker_id is not None and db.session.get(Worker, worker_id) is None:
        raise ValidationError.for_field('assigned_worker_id', 'Worker not found')

    department_id = changes.get('department_id')
    if department_id is not None and db.session.get(Department, department_id) is None:
        raise ValidationError.for_field('department_id', 'Department not found')


def apply_update(issue, changes, actor):
    """Write ``changes`` onto ``issue`` and append the audit rows.

    ``changes`` maps field names to new values; ``location`` is a mapping with
    ``latitude`` and ``longitude``. Returns the names of the fields that
    actually changed. Does not commit.
    """
    _check_references(changes)

    audit = []

    for field, new_value in changes.items():
        if field == 'location':
            old_text = _location_text(issue.latitude, issue.longitude)
            new_text = _location_text(new_value['latitude'], new_value['longitude'])
            if old_text != new_text:
                issue.latitude = new_value['latitude']
                issue.longitude = new_value['longitude']
                audit.append((field, old_text, new_text))
            continue

        old_value = getattr(issue, field)
        if old_value == new_value:
            continue
        setattr(issue, field, new_value)
        audit.append((field, _stringify(old_value), _stringify(new_value)))

        if field == 'status':
            if new_value == RESOLVED:
                resolved_at = utcnow()
                audit.append(('resolved_at', _stringify(issue.resolved_at), _stringify(resolved_at)))
                issue.resolved_at = resolved_at
            elif old_value == RESOLVED and issue.resolved_at is not None:
                # Reopening clears the timestamp so resolved_at tracks the status
                audit.append(('resolved_at', _stringify(issue.resolved_at), ''))
                issue.resolved_at = None

    for field, old_text, new_text in audit:
        db.session.add(IssueUpdate(
            issue_id=issue.id,
            updated_by=actor.id,
            field_name=field,
            old_value=old_text,
            new_value=new_text
        ))

    changed = [field for field, _, _ in audit]
    _notify_changes(issue, changed, actor)
    return changed


def _notify_changes(issue, changed, actor):
    if 'status' in changed and issue.user_id != actor.id:
        status_name = issue.status.replace('_', ' ')
        notify(
            issue.user_id,
            'Issue Status Updated',
            f'Your issue "{issue.title}" is now {status_name}.',
            type='success' if issue.status == RESOLVED else 'issue_update',
            reference_id=issue.id
        )

    if 'assigned_worker_id' in changed and issue.assigned_worker_id:
        worker = db.session.get(Worker, issue.assigned_worker_id)
        if worker.user_id != actor.id:
            notify(
                worker.user_id,
                'New Issue Assigned',
                f'You have been assigned to "{issue.title}".',
                type='assignment',
                reference_id=issue.id
            )


def issue_history(issue_id):
    return IssueUpdate.query.filter_by(issue_id=issue_id) \
        .order_by(IssueUpdate.created_at.asc()).all()


def replay_history(issue_id):
    """Fold the audit log into the last recorded value of every field."""
    state = {}
    for update in issue_history(issue_id):
        state[update.field_name] = update.new_value
    return state


def snapshot(issue: Issue):
    """Current values of the audited fields, rendered like the audit log."""
    values = {field: _stringify(getattr(issue, field)) for field in UPDATABLE_FIELDS if field != 'location'}
    values['location'] = _location_text(issue.latitude, issue.longitude)
    values['resolved_at'] = _stringify(issue.resolved_at)
    return values
