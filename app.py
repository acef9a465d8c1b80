import logging
import math
import os
import uuid
from functools import wraps

import click
import sqlalchemy as sa
from flask import Blueprint, Flask, current_app, jsonify, request, send_file
from flask_login import LoginManager, current_user, login_required, login_user, logout_user
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException
from werkzeug.security import check_password_hash, generate_password_hash

import geo
from activity import notify, record_event
from charts import dashboard_charts, resolution_rate
from classifier import classify_image
from config import Config, create_directories, validate_config
from errors import (AuthenticationError, AuthorizationError, CitiZenError, DependencyError,
                    NotFoundError, ValidationError)
from lifecycle import (apply_update, authorize_update, can_delete, can_see_private_comments,
                       can_view_history, issue_history)
from models import (Department, Issue, IssueAttachment, IssueComment, Notification, User, Worker,
                    db, utcnow)
from schemas import (CommentCreateRequest, DepartmentCreateRequest, IssueCreateRequest,
                     IssueUpdateRequest, LoginRequest, MarkNotificationsRequest,
                     ProfileUpdateRequest, SignupRequest, VoteRequest, parse_body)
from storage import ObjectStorage, file_type_category, get_storage, object_path, validate_upload
from voting import apply_vote, get_vote_status

login_manager = LoginManager()

api = Blueprint('api', __name__, url_prefix='/api')
site = Blueprint('site', __name__)


@login_manager.user_loader
def load_user(user_id):
    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        return None
    return user


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Not authenticated'}), 401


# Custom decorator for role-gated endpoints
def role_required(*roles):
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                raise AuthenticationError()
            if current_user.role not in roles:
                raise AuthorizationError(f"Requires role: {' or '.join(roles)}")
            return f(*args, **kwargs)

        return decorated_function

    return decorator


# Helper Functions
def respond(data=None, message=None, status=200):
    payload = {'data': data}
    if message:
        payload['message'] = message
    return jsonify(payload), status


def json_body():
    return request.get_json(silent=True)


def pagination_args(default_limit):
    try:
        page = int(request.args.get('page', 1))
        limit = int(request.args.get('limit', default_limit))
    except ValueError:
        raise ValidationError('Validation failed', details=[
            {'field': 'page', 'message': 'page and limit must be integers'}
        ])

    if page < 1:
        raise ValidationError.for_field('page', 'page must be at least 1')
    if not 1 <= limit <= current_app.config['MAX_PAGE_SIZE']:
        raise ValidationError.for_field(
            'limit', f"limit must be between 1 and {current_app.config['MAX_PAGE_SIZE']}")
    return page, limit, (page - 1) * limit


def pagination_meta(page, limit, total):
    return {
        'page': page,
        'limit': limit,
        'total': total,
        'totalPages': math.ceil(total / limit)
    }


def float_arg(name):
    value = request.args.get(name)
    if value in (None, ''):
        return None
    try:
        return float(value)
    except ValueError:
        raise ValidationError.for_field(name, f'{name} must be a number')


def get_issue_or_404(issue_id):
    issue = db.session.get(Issue, issue_id)
    if issue is None:
        raise NotFoundError('Issue not found')
    return issue


def new_worker_code():
    return f'W-{uuid.uuid4().hex[:8].upper()}'


# ============ AUTH ROUTES ============
@api.route('/auth/signup', methods=['POST'])
def signup():
    body = parse_body(SignupRequest, json_body())

    if User.query.filter_by(email=body.email).first():
        raise ValidationError.for_field('email', 'Email already registered')

    if body.department_id and db.session.get(Department, body.department_id) is None:
        raise ValidationError.for_field('department_id', 'Department not found')

    user = User(
        email=body.email,
        password=generate_password_hash(body.password),
        name=body.name,
        phone=body.phone,
        role=body.user_type,
        municipality=body.municipality,
        city=body.city,
        ward_number=body.ward_number,
        latitude=body.location.latitude if body.location else None,
        longitude=body.location.longitude if body.location else None,
        is_verified=False,
        is_active=True
    )
    db.session.add(user)

    if body.user_type == 'worker':
        db.session.add(Worker(user=user, worker_code=new_worker_code(), department_id=body.department_id))

    db.session.flush()
    record_event('user_signup', user.id, 'user', user.id, user_type=body.user_type)
    db.session.commit()

    current_app.logger.info(f'New {user.role} account {user.id}')
    return respond({
        'id': user.id,
        'email': user.email,
        'name': user.name,
        'user_type': user.role
    }, 'User created successfully.', 201)


@api.route('/auth/login', methods=['POST'])
def login():
    body = parse_body(LoginRequest, json_body())

    user = User.query.filter_by(email=body.email).first()
    if not user or not check_password_hash(user.password, body.password):
        raise AuthenticationError('Invalid email or password')

    if not user.is_active:
        raise AuthorizationError('Account is deactivated. Please contact support.')

    login_user(user)
    user.last_login = utcnow()
    record_event('user_login', user.id, 'user', user.id, login_method='email')
    db.session.commit()

    return respond(user.to_dict(), 'Login successful')


@api.route('/auth/logout', methods=['POST'])
@login_required
def logout():
    record_event('user_logout', current_user.id, 'user', current_user.id)
    db.session.commit()
    logout_user()
    return respond(None, 'Logout successful')


@api.route('/auth/profile', methods=['GET'])
@login_required
def get_profile():
    return respond(current_user.to_dict())


@api.route('/auth/profile', methods=['PUT'])
@login_required
def update_profile():
    body = parse_body(ProfileUpdateRequest, json_body())
    changes = body.model_dump(exclude_unset=True)

    user = current_user
    updated_fields = []
    for field, value in changes.items():
        if field == 'location':
            if value is None:
                continue
            user.latitude = value['latitude']
            user.longitude = value['longitude']
        elif field == 'name' and not value:
            continue
        else:
            setattr(user, field, value)
        updated_fields.append(field)

    record_event('profile_updated', user.id, 'user', user.id, updated_fields=updated_fields)
    db.session.commit()

    return respond(user.to_dict(), 'Profile updated successfully')


# ============ ISSUE ROUTES ============
@api.route('/issues', methods=['GET'])
@login_required
def list_issues():
    page, limit, offset = pagination_args(current_app.config['ISSUES_PER_PAGE'])
    status = request.args.get('status')
    category = request.args.get('category')
    priority = request.args.get('priority')
    my_issues = request.args.get('my_issues') == 'true'
    lat = float_arg('lat')
    lng = float_arg('lng')
    radius = float_arg('radius') or 0

    query = Issue.query

    if my_issues:
        query = query.filter_by(user_id=current_user.id)

    if status:
        query = query.filter_by(status=status)

    if category:
        query = query.filter_by(category=category)

    if priority:
        query = query.filter_by(priority=priority)

    query = query.order_by(Issue.created_at.desc())

    if lat is not None and lng is not None and radius > 0:
        if not geo.is_valid_coordinates(lat, lng):
            raise ValidationError.for_field('lat', 'Invalid coordinates')

        box = geo.bounding_box(lat, lng, radius)
        candidates = query.filter(
            Issue.latitude.between(box['min_lat'], box['max_lat']),
            sa.or_(*[Issue.longitude.between(low, high) for low, high in box['lng_ranges']])
        ).all()

        nearby = []
        for issue in candidates:
            distance = geo.haversine_distance(lat, lng, issue.latitude, issue.longitude)
            if distance <= radius:
                nearby.append((issue, distance))

        total = len(nearby)
        issues = []
        for issue, distance in nearby[offset:offset + limit]:
            data = issue.to_dict(include_relations=True)
            data['distance'] = round(distance, 1)
            data['distance_text'] = geo.format_distance(distance)
            issues.append(data)
    else:
        total = query.count()
        issues = [issue.to_dict(include_relations=True)
                  for issue in query.offset(offset).limit(limit).all()]

    return respond({
        'issues': issues,
        'pagination': pagination_meta(page, limit, total)
    })


@api.route('/issues', methods=['POST'])
@login_required
def create_issue():
    body = parse_body(IssueCreateRequest, json_body())

    issue = Issue(
        title=body.title,
        description=body.description,
        category=body.category,
        priority=body.priority,
        latitude=body.location.latitude,
        longitude=body.location.longitude,
        address=body.address,
        user_id=current_user.id,
        ai_category=body.ai_category,
        ai_confidence=body.ai_confidence,
        status='open',
        upvotes=0,
        views=0
    )
    db.session.add(issue)
    db.session.flush()

    for attachment in body.attachments:
        metadata = attachment.metadata or {}
        db.session.add(IssueAttachment(
            issue_id=issue.id,
            file_url=attachment.file_url,
            file_type=attachment.file_type,
            file_size=attachment.file_size,
            original_name=metadata.get('originalName'),
            uploaded_by=current_user.id
        ))

    record_event(
        'issue_created', current_user.id, 'issue', issue.id,
        category=body.category,
        priority=body.priority,
        location=geo.to_geojson_point(body.location.latitude, body.location.longitude),
        ward=geo.ward_for(body.location.latitude, body.location.longitude)
    )
    db.session.commit()

    return respond(issue.to_dict(), 'Issue created successfully', 201)


@api.route('/issues/<issue_id>', methods=['GET'])
@login_required
def get_issue(issue_id):
    issue = get_issue_or_404(issue_id)

    db.session.execute(
        sa.update(Issue)
        .where(Issue.id == issue_id)
        .values(views=Issue.views + 1)
        .execution_options(synchronize_session=False)
    )
    record_event('issue_viewed', current_user.id, 'issue', issue_id)
    db.session.commit()

    comments = issue.comments
    if not can_see_private_comments(current_user, issue):
        comments = [comment for comment in comments if not comment.is_private]

    data = issue.to_dict(include_relations=True)
    data['issue_comments'] = [comment.to_dict() for comment in comments]
    return respond(data)


@api.route('/issues/<issue_id>', methods=['PUT'])
@login_required
def update_issue(issue_id):
    body = parse_body(IssueUpdateRequest, json_body())
    changes = body.changes()
    if not changes:
        raise ValidationError('No fields to update')

    issue = get_issue_or_404(issue_id)
    authorize_update(current_user, issue, changes.keys())

    changed = apply_update(issue, changes, current_user)
    if changed:
        record_event('issue_updated', current_user.id, 'issue', issue_id, updated_fields=changed)
    db.session.commit()

    return respond(issue.to_dict(), 'Issue updated successfully')


@api.route('/issues/<issue_id>', methods=['DELETE'])
@login_required
def delete_issue(issue_id):
    issue = get_issue_or_404(issue_id)

    if not can_delete(current_user, issue):
        raise AuthorizationError('Not authorized to delete this issue')

    db.session.delete(issue)
    record_event('issue_deleted', current_user.id, 'issue', issue_id)
    db.session.commit()

    return respond(None, 'Issue deleted successfully')


@api.route('/issues/<issue_id>/history', methods=['GET'])
@login_required
def get_issue_history(issue_id):
    issue = get_issue_or_404(issue_id)

    if not can_view_history(current_user, issue):
        raise AuthorizationError('Not authorized to view this history')

    return respond({'updates': [update.to_dict() for update in issue_history(issue_id)]})


# ============ COMMENT ROUTES ============
@api.route('/issues/<issue_id>/comments', methods=['GET'])
@login_required
def list_comments(issue_id):
    page, limit, offset = pagination_args(current_app.config['COMMENTS_PER_PAGE'])
    issue = get_issue_or_404(issue_id)

    query = IssueComment.query.filter_by(issue_id=issue_id)
    if not can_see_private_comments(current_user, issue):
        query = query.filter_by(is_private=False)

    total = query.count()
    comments = query.order_by(IssueComment.created_at.asc()).offset(offset).limit(limit).all()

    return respond({
        'comments': [comment.to_dict() for comment in comments],
        'pagination': pagination_meta(page, limit, total)
    })


@api.route('/issues/<issue_id>/comments', methods=['POST'])
@login_required
def create_comment(issue_id):
    body = parse_body(CommentCreateRequest, json_body())
    issue = get_issue_or_404(issue_id)

    if body.is_private and not can_see_private_comments(current_user, issue):
        raise AuthorizationError('Not authorized to create private comments')

    comment = IssueComment(
        issue_id=issue_id,
        user_id=current_user.id,
        content=body.content,
        is_private=body.is_private
    )
    db.session.add(comment)
    db.session.flush()

    if not body.is_private and issue.user_id != current_user.id:
        commenter = current_app.config['USER_ROLES'].get(current_user.role, 'A user')
        notify(
            issue.user_id,
            'New Comment on Your Issue',
            f'{commenter} commented on your issue.',
            type='issue_update',
            reference_id=issue_id
        )

    record_event('comment_created', current_user.id, 'issue', issue_id,
                 comment_id=comment.id, is_private=body.is_private)
    db.session.commit()

    return respond(comment.to_dict(), 'Comment added successfully', 201)


# ============ VOTE ROUTES ============
@api.route('/issues/<issue_id>/vote', methods=['POST'])
@login_required
def vote_issue(issue_id):
    body = parse_body(VoteRequest, json_body())
    result = apply_vote(issue_id, current_user.id, body.vote_type)
    return respond(result.to_dict(), 'Vote recorded successfully')


@api.route('/issues/<issue_id>/vote', methods=['GET'])
@login_required
def vote_status(issue_id):
    return respond(get_vote_status(issue_id, current_user.id))


# ============ NOTIFICATION ROUTES ============
@api.route('/notifications', methods=['GET'])
@login_required
def list_notifications():
    page, limit, offset = pagination_args(current_app.config['NOTIFICATIONS_PER_PAGE'])
    unread_only = request.args.get('unread_only') == 'true'

    query = Notification.query.filter_by(user_id=current_user.id)
    if unread_only:
        query = query.filter_by(is_read=False)

    total = query.count()
    notifications = query.order_by(Notification.created_at.desc()).offset(offset).limit(limit).all()
    unread_count = Notification.query.filter_by(user_id=current_user.id, is_read=False).count()

    return respond({
        'notifications': [notification.to_dict() for notification in notifications],
        'pagination': pagination_meta(page, limit, total),
        'unreadCount': unread_count
    })


@api.route('/notifications', methods=['PUT'])
@login_required
def mark_notifications_read():
    body = parse_body(MarkNotificationsRequest, json_body())

    query = Notification.query.filter_by(user_id=current_user.id)
    if body.mark_all:
        query = query.filter_by(is_read=False)
    else:
        query = query.filter(Notification.id.in_(body.notification_ids))

    updated = query.update({'is_read': True}, synchronize_session=False)
    db.session.commit()

    return respond({'updated': updated}, 'Notifications marked as read successfully')


# ============ UPLOAD ROUTES ============
@api.route('/upload', methods=['POST'])
@login_required
def upload_file():
    file = request.files.get('file')
    if file is None or not file.filename:
        raise ValidationError.for_field('file', 'No file provided')

    data = file.read()
    validate_upload(len(data), file.mimetype,
                    current_app.config['MAX_UPLOAD_SIZE'],
                    current_app.config['ALLOWED_MIME_TYPES'])

    issue_id = request.form.get('issueId') or None
    if issue_id:
        get_issue_or_404(issue_id)

    storage = get_storage()
    path = object_path(file.filename, issue_id)
    storage.upload(path, data, file.mimetype)
    public_url = storage.public_url(path)
    file_type = file_type_category(file.mimetype)

    if issue_id:
        # The stored object is only kept if its attachment row is written
        try:
            db.session.add(IssueAttachment(
                issue_id=issue_id,
                file_url=public_url,
                storage_path=path,
                file_type=file_type,
                file_size=len(data),
                original_name=file.filename,
                uploaded_by=current_user.id
            ))
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            storage.delete(path)
            raise DependencyError(f'Failed to save attachment record for {path}: {e}') from e

    return respond({
        'url': public_url,
        'type': file_type,
        'size': len(data),
        'originalName': file.filename,
        'path': path
    }, 'File uploaded successfully')


@api.route('/upload', methods=['GET'])
@login_required
def signed_upload_url():
    path = request.args.get('path')
    if not path:
        raise ValidationError.for_field('path', 'File path is required')

    expires_in = current_app.config['SIGNED_URL_EXPIRY']
    signed_url = get_storage().create_signed_url(path, expires_in)
    return respond({'signedUrl': signed_url, 'expiresIn': expires_in})


@api.route('/classify', methods=['POST'])
@login_required
def classify_upload():
    file = request.files.get('image')
    if file is None or not file.filename:
        raise ValidationError.for_field('image', 'No image provided')
    if not file.mimetype.startswith('image/'):
        raise ValidationError.for_field('image', 'File must be an image')

    config = current_app.config
    result = classify_image(
        file.read(),
        config['CLASSIFIER_URL'],
        config['CLASSIFIER_TOKEN'],
        timeout=config['CLASSIFIER_TIMEOUT'],
        enabled=config['CLASSIFIER_ENABLED']
    )
    if result is None:
        return respond(None, 'No suggestion available')
    return respond(result)


# ============ ANALYTICS ROUTES ============
@api.route('/analytics/simple', methods=['GET'])
@role_required('admin')
def simple_analytics():
    total_issues = Issue.query.count()
    resolved_issues = Issue.query.filter_by(status='resolved').count()

    by_category = dict(db.session.query(Issue.category, sa.func.count(Issue.id))
                       .group_by(Issue.category).all())
    by_priority = dict(db.session.query(Issue.priority, sa.func.count(Issue.id))
                       .group_by(Issue.priority).all())

    return respond({
        'overview': {
            'totalIssues': total_issues,
            'totalUsers': User.query.filter_by(role='citizen').count(),
            'totalWorkers': User.query.filter_by(role='worker').count(),
            'resolvedIssues': resolved_issues,
            'openIssues': Issue.query.filter_by(status='open').count(),
            'resolutionRate': resolution_rate(total_issues, resolved_issues)
        },
        'byCategory': by_category,
        'byPriority': by_priority,
        'generated_at': utcnow().isoformat()
    })


@api.route('/analytics/charts', methods=['GET'])
@role_required('admin')
def chart_analytics():
    try:
        days = int(request.args.get('days', 14))
    except ValueError:
        raise ValidationError.for_field('days', 'days must be an integer')
    if not 1 <= days <= 90:
        raise ValidationError.for_field('days', 'days must be between 1 and 90')

    config = current_app.config
    issues = [issue.to_dict() for issue in Issue.query.all()]
    departments = {department.id: department.name for department in Department.query.all()}

    return respond(dashboard_charts(
        issues,
        statuses=list(config['ISSUE_STATUSES']),
        priorities=list(config['PRIORITY_LEVELS']),
        categories=list(config['ISSUE_CATEGORIES']),
        departments=departments,
        days=days,
        today=utcnow().date()
    ))


# ============ DEPARTMENT AND WORKER ROUTES ============
@api.route('/departments', methods=['GET'])
@login_required
def list_departments():
    departments = Department.query.filter_by(is_active=True).order_by(Department.name).all()
    return respond([department.to_dict() for department in departments])


@api.route('/departments', methods=['POST'])
@role_required('admin')
def create_department():
    body = parse_body(DepartmentCreateRequest, json_body())

    if Department.query.filter_by(name=body.name).first():
        raise ValidationError.for_field('name', 'Department already exists')

    department = Department(**body.model_dump())
    db.session.add(department)
    db.session.commit()

    return respond(department.to_dict(), 'Department created successfully', 201)


@api.route('/workers', methods=['GET'])
@role_required('admin', 'worker')
def list_workers():
    query = Worker.query
    department_id = request.args.get('department_id')
    if department_id:
        query = query.filter_by(department_id=department_id)
    availability = request.args.get('availability_status')
    if availability:
        query = query.filter_by(availability_status=availability)

    return respond([worker.to_dict() for worker in query.order_by(Worker.worker_code).all()])


@api.route('/worker/tasks', methods=['GET'])
@role_required('worker')
def worker_tasks():
    page, limit, offset = pagination_args(current_app.config['ISSUES_PER_PAGE'])
    worker = current_user.worker_profile
    if worker is None:
        raise NotFoundError('Worker profile not found')

    query = Issue.query.filter_by(assigned_worker_id=worker.id)
    status = request.args.get('status')
    if status:
        query = query.filter_by(status=status)

    total = query.count()
    issues = query.order_by(Issue.created_at.desc()).offset(offset).limit(limit).all()

    return respond({
        'issues': [issue.to_dict(include_relations=True) for issue in issues],
        'pagination': pagination_meta(page, limit, total)
    })


@api.route('/admin/users/<user_id>/toggle-active', methods=['POST'])
@role_required('admin')
def toggle_user_active(user_id):
    """Toggle user active status"""
    if user_id == current_user.id:
        raise ValidationError('Cannot deactivate yourself')

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError('User not found')

    user.is_active = not user.is_active
    record_event('user_toggled', current_user.id, 'user', user_id, is_active=user.is_active)
    db.session.commit()

    return respond({'id': user.id, 'is_active': user.is_active},
                   f'User {"activated" if user.is_active else "deactivated"} successfully')


@api.route('/meta', methods=['GET'])
def catalogues():
    config = current_app.config
    return respond({
        'app_name': config['APP_NAME'],
        'categories': config['ISSUE_CATEGORIES'],
        'priorities': config['PRIORITY_LEVELS'],
        'statuses': config['ISSUE_STATUSES'],
        'roles': config['USER_ROLES'],
        'notification_types': sorted(config['NOTIFICATION_TYPES'])
    })


# ============ FILES AND HEALTH ============
@site.route('/files/<path:path>')
@login_required
def serve_file(path):
    return send_file(get_storage().open_path(path))


@site.route('/files/signed/<token>')
def serve_signed_file(token):
    storage = get_storage()
    return send_file(storage.open_path(storage.resolve_signed_token(token)))


@site.route('/health')
def health_check():
    try:
        db.session.execute(sa.text('SELECT 1'))
        return jsonify({
            'status': 'healthy',
            'database': 'connected',
            'timestamp': utcnow().isoformat()
        })
    except SQLAlchemyError as e:
        current_app.logger.error(f'Health check failed: {e}')
        return jsonify({
            'status': 'unhealthy',
            'database': 'disconnected'
        }), 500


# Error handlers
def register_error_handlers(app):
    @app.errorhandler(CitiZenError)
    def citizen_error(error):
        db.session.rollback()
        if error.status_code >= 500:
            app.logger.error(f'{type(error).__name__}: {error.message}')
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def http_error(error):
        return jsonify({'error': error.description or error.name}), error.code

    @app.errorhandler(SQLAlchemyError)
    def database_error(error):
        db.session.rollback()
        error_id = str(uuid.uuid4())[:8]
        app.logger.error(f'Database error {error_id}: {error}')
        return jsonify({'error': 'Internal server error', 'error_id': error_id}), 500

    @app.errorhandler(Exception)
    def internal_error(error):
        db.session.rollback()
        error_id = str(uuid.uuid4())[:8]
        app.logger.exception(f'Error {error_id}: {error}')
        return jsonify({'error': 'Internal server error', 'error_id': error_id}), 500


def init_database(seed=False):
    """Create tables and, with ``seed``, demo accounts and sample issues."""
    db.create_all()

    if not seed or User.query.filter_by(email='admin@citizen.app').first():
        return False

    roads = Department(name='Roads & Transport', municipality='Kolkata',
                       description='Road surface, potholes and crossings')
    utilities = Department(name='Electricity', municipality='Kolkata',
                           description='Streetlights and electrical hazards')
    sanitation = Department(name='Sanitation', municipality='Kolkata',
                            description='Garbage collection and drains')
    db.session.add_all([roads, utilities, sanitation])

    admin = User(email='admin@citizen.app', password=generate_password_hash('admin123'),
                 name='System Administrator', role='admin', is_verified=True)
    citizen = User(email='citizen@citizen.app', password=generate_password_hash('citizen123'),
                   name='Test Citizen', role='citizen', city='Kolkata')
    worker_user = User(email='worker@citizen.app', password=generate_password_hash('worker123'),
                       name='Field Worker', role='worker')
    db.session.add_all([admin, citizen, worker_user])
    db.session.add(Worker(user=worker_user, worker_code=new_worker_code(), department=roads))
    db.session.flush()

    sample_issues = [
        {
            'title': 'Large pothole on Main Street',
            'description': 'A dangerous pothole near the intersection, about 2 feet wide and quite deep.',
            'category': 'pothole',
            'priority': 'high',
            'address': 'Esplanade, Kolkata, West Bengal, India',
            'latitude': 22.5726,
            'longitude': 88.3639,
            'department': roads
        },
        {
            'title': 'Broken street light on Elm Street',
            'description': 'The street light has been out for over a week, making the area unsafe at night.',
            'category': 'streetlight',
            'priority': 'medium',
            'address': 'Howrah Maidan, Howrah, West Bengal, India',
            'latitude': 22.5892,
            'longitude': 88.3419,
            'department': utilities
        },
        {
            'title': 'Overflowing garbage bins at Central Park',
            'description': 'Bins near the main entrance are overflowing and attracting pests.',
            'category': 'garbage',
            'priority': 'medium',
            'address': 'Eco Park Main Gate, New Town, Kolkata, West Bengal, India',
            'latitude': 22.6207,
            'longitude': 88.465,
            'department': sanitation
        }
    ]

    for issue_data in sample_issues:
        db.session.add(Issue(user_id=citizen.id, status='open', **issue_data))

    db.session.commit()
    return True


def create_admin(email, name, password):
    if User.query.filter_by(email=email).first():
        raise ValidationError.for_field('email', 'Email already registered')
    if len(password) < 6:
        raise ValidationError.for_field('password', 'Password must be at least 6 characters')

    admin = User(email=email, password=generate_password_hash(password), name=name,
                 role='admin', is_verified=True, is_active=True)
    db.session.add(admin)
    db.session.flush()
    record_event('user_signup', admin.id, 'user', admin.id, user_type='admin', source='cli')
    db.session.commit()
    return admin


def register_commands(app):
    @app.cli.command('init-db')
    @click.option('--seed', is_flag=True, help='Add demo accounts and sample issues.')
    def init_db_command(seed):
        """Create database tables."""
        created = init_database(seed=seed)
        click.echo('Database initialization complete')
        if created:
            click.echo('Default admin login: admin@citizen.app / admin123')
            click.echo('Test citizen login: citizen@citizen.app / citizen123')
            click.echo('Test worker login: worker@citizen.app / worker123')

    @app.cli.command('create-admin')
    @click.argument('email')
    @click.option('--name', default='Administrator', help='Display name.')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin_command(email, name, password):
        """Create an administrator account."""
        try:
            admin = create_admin(email.strip(), name, password)
        except ValidationError as e:
            raise click.ClickException(e.details[0]['message'])
        click.echo(f'Created admin {admin.email} ({admin.id})')

    @app.cli.command('check-config')
    def check_config_command():
        """Report missing or weak configuration."""
        problems = validate_config(app.config)
        for problem in problems:
            click.echo(f'- {problem}')
        if problems:
            raise SystemExit(1)
        click.echo('Configuration looks good')


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)

    log_level = str(app.config['LOG_LEVEL']).upper()
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    app.logger.setLevel(log_level)

    create_directories(app.config)

    db.init_app(app)
    login_manager.init_app(app)
    app.extensions['storage'] = ObjectStorage(
        app.config['UPLOAD_FOLDER'],
        app.config['STORAGE_BUCKET'],
        app.config['SECRET_KEY'],
        expires_in=app.config['SIGNED_URL_EXPIRY']
    )

    app.register_blueprint(api)
    app.register_blueprint(site)
    register_error_handlers(app)
    register_commands(app)

    return app


if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        init_database(seed=os.environ.get('SEED_DATA', 'False').lower() == 'true')

    app.logger.info(f"{app.config['APP_NAME']} API started on http://localhost:5000")
    debug_mode = os.getenv('FLASK_DEBUG', 'False').lower() == 'true'
    app.run(host='0.0.0.0', port=5000, debug=debug_mode)
