import uuid
from datetime import datetime, timezone

from flask_login import UserMixin
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()


def utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    return str(uuid.uuid4())


def isoformat(value):
    return value.isoformat() if value else None


# Database Models
class User(UserMixin, db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password = db.Column(db.String(200), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    phone = db.Column(db.String(20))
    role = db.Column(db.String(20), default='citizen', nullable=False, index=True)
    municipality = db.Column(db.String(100))
    city = db.Column(db.String(100))
    ward_number = db.Column(db.String(20))
    latitude = db.Column(db.Float)
    longitude = db.Column(db.Float)
    is_verified = db.Column(db.Boolean, default=False)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)
    last_login = db.Column(db.DateTime)

    # Relationships
    issues = db.relationship('Issue', backref='reporter', lazy=True, cascade='all, delete-orphan')
    notifications = db.relationship('Notification', backref='user', lazy=True, cascade='all, delete-orphan')
    worker_profile = db.relationship('Worker', backref='user', uselist=False, cascade='all, delete-orphan')

    def to_dict(self):
        location = None
        if self.latitude is not None and self.longitude is not None:
            location = {'latitude': self.latitude, 'longitude': self.longitude}
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'phone': self.phone,
            'user_type': self.role,
            'municipality': self.municipality,
            'city': self.city,
            'ward_number': self.ward_number,
            'location': location,
            'is_verified': self.is_verified,
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class Department(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text)
    municipality = db.Column(db.String(100))
    contact_email = db.Column(db.String(120))
    contact_phone = db.Column(db.String(20))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    workers = db.relationship('Worker', backref='department', lazy=True)
    issues = db.relationship('Issue', backref='department', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'description': self.description,
            'municipality': self.municipality,
            'contact_info': {'email': self.contact_email, 'phone': self.contact_phone},
            'is_active': self.is_active,
            'created_at': isoformat(self.created_at),
        }


class Worker(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), unique=True, nullable=False)
    worker_code = db.Column(db.String(20), unique=True, nullable=False)
    department_id = db.Column(db.String(36), db.ForeignKey('department.id'), index=True)
    availability_status = db.Column(db.String(20), default='available')
    created_at = db.Column(db.DateTime, default=utcnow)

    assigned_issues = db.relationship('Issue', backref='assigned_worker', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'worker_id': self.worker_code,
            'user_id': self.user_id,
            'name': self.user.name if self.user else None,
            'department_id': self.department_id,
            'department': self.department.name if self.department else None,
            'availability_status': self.availability_status,
        }


class Issue(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(50), nullable=False, index=True)
    priority = db.Column(db.String(20), default='medium', index=True)
    status = db.Column(db.String(20), default='open', index=True)
    latitude = db.Column(db.Float, index=True)
    longitude = db.Column(db.Float, index=True)
    address = db.Column(db.String(300), nullable=False)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False, index=True)
    assigned_worker_id = db.Column(db.String(36), db.ForeignKey('worker.id'), index=True)
    department_id = db.Column(db.String(36), db.ForeignKey('department.id'), index=True)
    ai_category = db.Column(db.String(50))
    ai_confidence = db.Column(db.Float)
    upvotes = db.Column(db.Integer, default=0, nullable=False)
    views = db.Column(db.Integer, default=0, nullable=False)
    estimated_resolution_time = db.Column(db.String(50))
    resolved_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    __table_args__ = (db.CheckConstraint('upvotes >= 0', name='ck_issue_upvotes_non_negative'),)

    # Relationships
    attachments = db.relationship('IssueAttachment', backref='issue', lazy=True, cascade='all, delete-orphan')
    votes = db.relationship('IssueVote', backref='issue', lazy=True, cascade='all, delete-orphan')
    comments = db.relationship('IssueComment', backref='issue', lazy=True, cascade='all, delete-orphan',
                               order_by='IssueComment.created_at')
    updates = db.relationship('IssueUpdate', backref='issue', lazy=True, cascade='all, delete-orphan',
                              order_by='IssueUpdate.created_at')

    @property
    def location(self):
        if self.latitude is None or self.longitude is None:
            return None
        return {'latitude': self.latitude, 'longitude': self.longitude}

    def to_dict(self, include_relations=False):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'priority': self.priority,
            'status': self.status,
            'location': self.location,
            'address': self.address,
            'user_id': self.user_id,
            'assigned_worker_id': self.assigned_worker_id,
            'department_id': self.department_id,
            'ai_category': self.ai_category,
            'ai_confidence': self.ai_confidence,
            'upvotes': self.upvotes,
            'views': self.views,
            'estimated_resolution_time': self.estimated_resolution_time,
            'resolved_at': isoformat(self.resolved_at),
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_relations:
            data['user'] = {'id': self.reporter.id, 'name': self.reporter.name,
                            'email': self.reporter.email} if self.reporter else None
            data['assigned_worker'] = self.assigned_worker.to_dict() if self.assigned_worker else None
            data['department'] = {'id': self.department.id, 'name': self.department.name} \
                if self.department else None
            data['issue_attachments'] = [attachment.to_dict() for attachment in self.attachments]
        return data


class IssueAttachment(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    issue_id = db.Column(db.String(36), db.ForeignKey('issue.id'), nullable=False, index=True)
    file_url = db.Column(db.String(500), nullable=False)
    storage_path = db.Column(db.String(300))
    file_type = db.Column(db.String(20), nullable=False)  # image, video, document
    file_size = db.Column(db.Integer)
    original_name = db.Column(db.String(255))
    uploaded_by = db.Column(db.String(36), db.ForeignKey('user.id'))
    uploaded_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'issue_id': self.issue_id,
            'file_url': self.file_url,
            'file_type': self.file_type,
            'file_size': self.file_size,
            'metadata': {'originalName': self.original_name, 'uploadedBy': self.uploaded_by},
            'uploaded_at': isoformat(self.uploaded_at),
        }


class IssueVote(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    issue_id = db.Column(db.String(36), db.ForeignKey('issue.id'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False, index=True)
    vote_type = db.Column(db.String(10), nullable=False)  # 'upvote' or 'downvote'
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    # Unique constraint to prevent multiple votes
    __table_args__ = (db.UniqueConstraint('issue_id', 'user_id', name='unique_issue_vote'),)


class IssueComment(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    issue_id = db.Column(db.String(36), db.ForeignKey('issue.id'), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    is_private = db.Column(db.Boolean, default=False, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    author = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'issue_id': self.issue_id,
            'content': self.content,
            'is_private': self.is_private,
            'created_at': isoformat(self.created_at),
            'user': {'id': self.author.id, 'name': self.author.name,
                     'user_type': self.author.role} if self.author else None,
        }


class IssueUpdate(db.Model):
    """One row per changed field; never updated or deleted on its own."""
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    issue_id = db.Column(db.String(36), db.ForeignKey('issue.id'), nullable=False, index=True)
    updated_by = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False)
    field_name = db.Column(db.String(50), nullable=False)
    old_value = db.Column(db.Text)
    new_value = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'issue_id': self.issue_id,
            'updated_by': self.updated_by,
            'field_name': self.field_name,
            'old_value': self.old_value,
            'new_value': self.new_value,
            'created_at': isoformat(self.created_at),
        }


class Notification(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    user_id = db.Column(db.String(36), db.ForeignKey('user.id'), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    message = db.Column(db.Text, nullable=False)
    type = db.Column(db.String(20), default='info')
    reference_id = db.Column(db.String(36))
    is_read = db.Column(db.Boolean, default=False, index=True)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'message': self.message,
            'type': self.type,
            'reference_id': self.reference_id,
            'is_read': self.is_read,
            'created_at': isoformat(self.created_at),
        }


class AnalyticsEvent(db.Model):
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    event_type = db.Column(db.String(50), nullable=False, index=True)
    user_id = db.Column(db.String(36), index=True)
    entity_type = db.Column(db.String(20))
    entity_id = db.Column(db.String(36), index=True)
    event_metadata = db.Column('metadata', db.JSON, default=dict)
    created_at = db.Column(db.DateTime, default=utcnow, index=True)
