"""
Configuration for the student society website
Values come from environment variables; content lives in JSON files in the data/ folder
Edit the JSON files (or use the admin panel) to update members, programs, news and hero images
"""

import os

# Get the directory of this file
BASE_DIR = os.path.dirname(os.path.abspath(__file__))

APP_ENV = os.environ.get('APP_ENV') or os.environ.get('NODE_ENV', 'development')

DATA_DIR = os.environ.get('DATA_DIR', os.path.join(BASE_DIR, 'data'))
UPLOAD_FOLDER = os.environ.get('UPLOAD_FOLDER', os.path.join(BASE_DIR, 'uploads'))

# SECURITY: Set SESSION_SECRET, ADMIN_USERNAME and ADMIN_PASSWORD in production
SESSION_SECRET = os.environ.get('SESSION_SECRET', 'society-secret-key-change-in-production')
ADMIN_USERNAME = os.environ.get('ADMIN_USERNAME', 'admin')
ADMIN_PASSWORD = os.environ.get('ADMIN_PASSWORD', 'password')

# Token for the dev-only save/upload endpoints. Unset means every dev request is rejected.
LOCAL_ADMIN_TOKEN = os.environ.get('LOCAL_ADMIN_TOKEN', '')

# Database mode is not implemented here, the URL is only carried along
DATABASE_URL = os.environ.get('DATABASE_URL') or os.environ.get('POSTGRES_URL', '')

MAX_UPLOAD_MB = int(os.environ.get('MAX_UPLOAD_MB', '5'))
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
PORT = int(os.environ.get('PORT', '5000'))

SESSION_LIFETIME_DAYS = 7

# Upload settings
UPLOAD_CATEGORIES = ['members', 'news', 'hero', 'programs', 'misc']
DEFAULT_UPLOAD_CATEGORY = 'misc'
ALLOWED_EXTENSIONS = {'jpeg', 'jpg', 'png', 'webp', 'gif'}
ALLOWED_MIMETYPES = {'image/jpeg', 'image/jpg', 'image/png', 'image/webp', 'image/gif'}
PUBLIC_UPLOAD_PREFIX = '/uploads/'

# Member class whose members do not carry a role
ACTIVE_MEMBER_CLASS = 'Active Member'

# Collection registry: file name -> how the collection is sorted and capped
COLLECTIONS = {
    'members.json': {
        'resource': 'members',
        'sort_key': 'name',
        'ordered': True,
        'max_items': None,
        'image_field': 'image',
    },
    'memberClasses.json': {
        'resource': 'member-classes',
        'sort_key': 'name',
        'ordered': True,
        'max_items': None,
        'image_field': None,
    },
    'programs.json': {
        'resource': 'programs',
        'sort_key': 'title',
        'ordered': True,
        'max_items': 4,
        'image_field': 'image',
    },
    'news.json': {
        'resource': 'news',
        'sort_key': 'title',
        'ordered': False,
        'max_items': None,
        'image_field': 'image',
    },
    'heroImages.json': {
        'resource': 'hero-images',
        'sort_key': 'title',
        'ordered': True,
        'max_items': None,
        'image_field': 'imageUrl',
    },
}

# Admin resource slug -> collection file name
RESOURCES = {collection['resource']: filename for filename, collection in COLLECTIONS.items()}
