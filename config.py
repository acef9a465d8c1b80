import os
import tempfile
from datetime import timedelta

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))

load_dotenv(os.path.join(basedir, '.env'))


class Config:
    # ============ FLASK CONFIGURATION ============
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production-for-citizen'

    # ============ DATABASE CONFIGURATION ============
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
                              'sqlite:///' + os.path.join(basedir, 'data', 'citizen.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # ============ SESSION CONFIGURATION ============
    SESSION_COOKIE_SECURE = os.environ.get('SESSION_COOKIE_SECURE', 'False').lower() == 'true'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = timedelta(hours=2)

    # ============ LOGGING CONFIGURATION ============
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

    # ============ FILE UPLOAD CONFIGURATION ============
    UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER') or os.path.join(basedir, 'uploads')
    STORAGE_BUCKET = 'issue-attachments'
    MAX_UPLOAD_SIZE = int(os.environ.get('UPLOAD_MAX_SIZE', 10 * 1024 * 1024))  # 10MB per file
    MAX_CONTENT_LENGTH = MAX_UPLOAD_SIZE + 1024 * 1024  # room for multipart overhead
    SIGNED_URL_EXPIRY = 3600  # seconds
    ALLOWED_MIME_TYPES = {
        'image/jpeg',
        'image/png',
        'image/gif',
        'image/webp',
        'video/mp4',
        'video/quicktime',
        'application/pdf',
        'application/msword',
        'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    }

    # ============ IMAGE CLASSIFICATION ============
    CLASSIFIER_ENABLED = os.environ.get('CLASSIFIER_ENABLED', 'True').lower() == 'true'
    CLASSIFIER_URL = os.environ.get('CLASSIFIER_URL') or \
                     'https://api-inference.huggingface.co/models/facebook/detr-resnet-50'
    CLASSIFIER_TOKEN = os.environ.get('HUGGING_FACE_TOKEN', '')
    CLASSIFIER_TIMEOUT = 15

    # ============ ISSUE CATEGORIES CONFIGURATION ============
    ISSUE_CATEGORIES = {
        'pothole': {
            'name': 'Pothole',
            'color': 'orange',
            'icon_class': 'fas fa-road'
        },
        'streetlight': {
            'name': 'Streetlight',
            'color': 'yellow',
            'icon_class': 'fas fa-lightbulb'
        },
        'garbage': {
            'name': 'Garbage',
            'color': 'purple',
            'icon_class': 'fas fa-trash'
        },
        'water': {
            'name': 'Water',
            'color': 'blue',
            'icon_class': 'fas fa-faucet'
        },
        'graffiti': {
            'name': 'Graffiti',
            'color': 'pink',
            'icon_class': 'fas fa-spray-can'
        },
        'road': {
            'name': 'Road',
            'color': 'gray',
            'icon_class': 'fas fa-road'
        },
        'other': {
            'name': 'Other Issues',
            'color': 'gray',
            'icon_class': 'fas fa-question-circle'
        }
    }

    # ============ PRIORITY LEVELS CONFIGURATION ============
    PRIORITY_LEVELS = {
        'low': {
            'name': 'Low',
            'color': 'green'
        },
        'medium': {
            'name': 'Medium',
            'color': 'yellow'
        },
        'high': {
            'name': 'High',
            'color': 'orange'
        },
        'critical': {
            'name': 'Critical',
            'color': 'red'
        }
    }

    # ============ ISSUE STATUSES CONFIGURATION ============
    ISSUE_STATUSES = {
        'open': {
            'name': 'Open',
            'color': 'gray'
        },
        'assigned': {
            'name': 'Assigned',
            'color': 'purple'
        },
        'in_progress': {
            'name': 'In Progress',
            'color': 'blue'
        },
        'resolved': {
            'name': 'Resolved',
            'color': 'green'
        },
        'closed': {
            'name': 'Closed',
            'color': 'red'
        }
    }

    # ============ USER ROLES CONFIGURATION ============
    USER_ROLES = {
        'citizen': 'Citizen',
        'admin': 'Administrator',
        'worker': 'Field Worker'
    }

    NOTIFICATION_TYPES = {'info', 'success', 'warning', 'error', 'issue_update', 'assignment'}

    # ============ APPLICATION SETTINGS ============
    APP_NAME = 'CitiZen'

    # ============ PAGINATION SETTINGS ============
    ISSUES_PER_PAGE = 10
    COMMENTS_PER_PAGE = 20
    NOTIFICATIONS_PER_PAGE = 20
    MAX_PAGE_SIZE = 100


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing-secret-key-that-is-long-enough-to-pass'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    UPLOAD_FOLDER = os.path.join(tempfile.gettempdir(), 'citizen-test-uploads')
    CLASSIFIER_ENABLED = False
    LOG_LEVEL = 'WARNING'


def validate_config(config):
    """Return a list of human readable problems with the given config mapping."""
    problems = []

    secret = config.get('SECRET_KEY') or ''
    if len(secret) < 32:
        problems.append('SECRET_KEY should be at least 32 characters long')
    if secret.startswith('dev-secret-key'):
        problems.append('SECRET_KEY is still the development default')

    if not config.get('SQLALCHEMY_DATABASE_URI'):
        problems.append('DATABASE_URL is not set')

    upload_folder = config.get('UPLOAD_FOLDER')
    if not upload_folder:
        problems.append('UPLOAD_FOLDER is not set')
    elif os.path.exists(upload_folder) and not os.access(upload_folder, os.W_OK):
        problems.append(f'UPLOAD_FOLDER {upload_folder} is not writable')

    if config.get('CLASSIFIER_ENABLED') and not config.get('CLASSIFIER_TOKEN'):
        problems.append('HUGGING_FACE_TOKEN is empty; image classification requests will be rejected')

    if config.get('LOG_LEVEL', 'INFO').upper() not in {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}:
        problems.append(f"LOG_LEVEL {config.get('LOG_LEVEL')} is not a logging level")

    return problems


def create_directories(config):
    """Create necessary directories for the application"""
    directories = [config['UPLOAD_FOLDER']]

    database_uri = config.get('SQLALCHEMY_DATABASE_URI', '')
    if database_uri.startswith('sqlite:///'):
        directories.append(os.path.dirname(database_uri[len('sqlite:///'):]))

    for directory in directories:
        if not os.path.exists(directory):
            os.makedirs(directory, exist_ok=True)
