"""Request bodies accepted by the API."""
from typing import List, Literal, Optional

import pydantic
from pydantic import BaseModel, EmailStr, Field, model_validator

import geo
from errors import ValidationError

Category = Literal['pothole', 'streetlight', 'garbage', 'water', 'graffiti', 'road', 'other']
Priority = Literal['low', 'medium', 'high', 'critical']
Status = Literal['open', 'assigned', 'in_progress', 'resolved', 'closed']
# Admins are created from the command line, never through signup
SignupRole = Literal['citizen', 'worker']


class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    @model_validator(mode='before')
    @classmethod
    def accept_geojson(cls, data):
        if isinstance(data, dict) and data.get('type') == 'Point':
            coordinates = data.get('coordinates')
            if not isinstance(coordinates, list) or len(coordinates) < 2:
                raise ValueError('GeoJSON point needs [longitude, latitude] coordinates')
            return geo.from_geojson_point(data)
        return data


class SignupRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)
    phone: Optional[str] = None
    municipality: Optional[str] = None
    city: Optional[str] = None
    ward_number: Optional[str] = None
    location: Optional[Location] = None
    user_type: SignupRole = 'citizen'
    department_id: Optional[str] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    municipality: Optional[str] = None
    city: Optional[str] = None
    ward_number: Optional[str] = None
    location: Optional[Location] = None


class AttachmentIn(BaseModel):
    file_url: str
    file_type: Literal['image', 'video', 'document']
    file_size: Optional[int] = None
    metadata: Optional[dict] = None


class IssueCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(min_length=1)
    category: Category
    priority: Priority = 'medium'
    location: Location
    address: str = Field(min_length=1)
    attachments: List[AttachmentIn] = Field(default_factory=list)
    ai_category: Optional[str] = None
    ai_confidence: Optional[float] = Field(None, ge=0, le=1)


NON_NULLABLE_UPDATE_FIELDS = ('title', 'description', 'category', 'priority', 'status', 'location', 'address')


class IssueUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    category: Optional[Category] = None
    priority: Optional[Priority] = None
    status: Optional[Status] = None
    location: Optional[Location] = None
    address: Optional[str] = Field(None, min_length=1)
    assigned_worker_id: Optional[str] = None
    department_id: Optional[str] = None
    estimated_resolution_time: Optional[str] = None

    @model_validator(mode='after')
    def reject_nulls(self):
        for field in NON_NULLABLE_UPDATE_FIELDS:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f'{field} cannot be null')
        return self

    def changes(self):
        return self.model_dump(exclude_unset=True)


class CommentCreateRequest(BaseModel):
    content: str = Field(min_length=1)
    is_private: bool = False


class VoteRequest(BaseModel):
    vote_type: Literal['upvote', 'downvote']


class MarkNotificationsRequest(BaseModel):
    notification_ids: Optional[List[str]] = None
    mark_all: bool = False

    @model_validator(mode='after')
    def require_target(self):
        if not self.mark_all and self.notification_ids is None:
            raise ValueError('Either notification_ids array or mark_all=true is required')
        return self


class DepartmentCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    municipality: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None


def parse_body(schema, payload):
    """Validate ``payload`` against ``schema`` or raise ``ValidationError``."""
    if payload is None:
        raise ValidationError('Request body must be a JSON object')
    try:
        return schema.model_validate(payload)
    except pydantic.ValidationError as e:
        details = [
            {
                'field': '.'.join(str(part) for part in error['loc']) or 'body',
                'message': error['msg'],
            }
            for error in e.errors()
        ]
        raise ValidationError('Validation failed', details=details) from e
