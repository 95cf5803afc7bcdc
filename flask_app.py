from flask import Flask, Blueprint, current_app, jsonify, request, send_from_directory, session
from flask_cors import CORS
from datetime import timedelta
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

import logging
import os

import config
from auth import (
    StaticCredentialVerifier,
    admin_required,
    dev_token_required,
    get_verifier,
    is_admin,
    login_required,
    login_user,
    logout_user,
)
from collections_repo import CollectionRepository
from content_store import JsonFileStore, check_collection_name
from errors import ContentError, FileTooLargeError, NotFoundError, ValidationError
from ordering import sort_records
from uploads import UploadHandler

logger = logging.getLogger(__name__)

site = Blueprint('site', __name__)
admin_api = Blueprint('admin_api', __name__, url_prefix='/api/admin')
dev_api = Blueprint('dev_api', __name__, url_prefix='/dev')


def create_app(test_config=None):
    """Build the Flask app; test_config overrides values read from config.py"""
    app = Flask(__name__)
    app.config.update(
        APP_ENV=config.APP_ENV,
        SECRET_KEY=config.SESSION_SECRET,
        LOCAL_ADMIN_TOKEN=config.LOCAL_ADMIN_TOKEN,
        ADMIN_USERNAME=config.ADMIN_USERNAME,
        ADMIN_PASSWORD=config.ADMIN_PASSWORD,
        DATA_DIR=config.DATA_DIR,
        UPLOAD_FOLDER=config.UPLOAD_FOLDER,
        MAX_UPLOAD_BYTES=config.MAX_UPLOAD_MB * 1024 * 1024,
        DATABASE_URL=config.DATABASE_URL,
        LOG_LEVEL=config.LOG_LEVEL,
    )
    if test_config:
        app.config.update(test_config)

    logging.basicConfig(level=app.config['LOG_LEVEL'])

    production = app.config['APP_ENV'] == 'production'
    # Room for the multipart envelope around the largest allowed image
    app.config['MAX_CONTENT_LENGTH'] = app.config['MAX_UPLOAD_BYTES'] + 1024 * 1024
    app.config['SESSION_COOKIE_HTTPONLY'] = True
    app.config['SESSION_COOKIE_SECURE'] = production
    app.config['PERMANENT_SESSION_LIFETIME'] = timedelta(days=config.SESSION_LIFETIME_DAYS)

    CORS(app)

    store = JsonFileStore(app.config['DATA_DIR'])
    store.initialize()
    os.makedirs(app.config['UPLOAD_FOLDER'], exist_ok=True)
    uploads = UploadHandler(app.config['UPLOAD_FOLDER'], app.config['MAX_UPLOAD_BYTES'])

    app.extensions['content_store'] = store
    app.extensions['uploads'] = uploads
    app.extensions['collections'] = CollectionRepository(store, uploads)
    app.extensions['credential_verifier'] = app.config.get('CREDENTIAL_VERIFIER') or \
        StaticCredentialVerifier(app.config['ADMIN_USERNAME'], app.config['ADMIN_PASSWORD'])

    app.register_blueprint(site)
    app.register_blueprint(admin_api)
    if not production:
        app.register_blueprint(dev_api)
        logger.info("Dev-only endpoints enabled (/dev/save-json, /dev/upload, /dev/upload [DELETE])")
        if not app.config['LOCAL_ADMIN_TOKEN']:
            logger.warning("Dev auth token NOT SET - set LOCAL_ADMIN_TOKEN")

    register_error_handlers(app)
    return app


def get_store():
    return current_app.extensions['content_store']


def get_uploads():
    return current_app.extensions['uploads']


def get_collections():
    return current_app.extensions['collections']


def _json_body():
    """Request JSON as a dict; a missing body is empty, any other JSON value is rejected"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('invalid request')
    return data


# ========================================
# Error Handlers
# ========================================

def register_error_handlers(app):
    @app.errorhandler(ContentError)
    def handle_content_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(e):
        error = FileTooLargeError()
        return jsonify(error.to_dict()), error.status_code


# ========================================
# Auth Routes (Session-based)
# ========================================

@site.route('/api/login', methods=['POST'])
def api_login():
    """Admin login - marks the session as authenticated"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'message': 'Invalid request data'}), 400
    username = data.get('username')
    password = data.get('password')
    if not isinstance(username, str) or not isinstance(password, str):
        return jsonify({'message': 'Invalid request data'}), 400

    user = get_verifier().verify(username, password)
    if user is None:
        logger.warning(f"Failed login attempt for {username!r}")
        return jsonify({'message': 'Invalid username or password'}), 401

    login_user(user)
    logger.info(f"User {user['username']} logged in")
    return jsonify({'message': 'Login successful'})


@site.route('/api/logout', methods=['POST'])
def api_logout():
    logout_user()
    return jsonify({'message': 'Logged out successfully'})


@site.route('/api/auth/user', methods=['GET'])
@login_required
def api_auth_user():
    return jsonify(session.get('user'))


@site.route('/api/auth/admin', methods=['GET'])
@login_required
def api_auth_admin():
    admin = is_admin()
    return jsonify({
        'isAdmin': admin,
        'adminUser': {'id': 'admin', 'role': 'admin'} if admin else None,
    })


# ========================================
# Public Routes
# ========================================

def _sorted(filename):
    collection = config.COLLECTIONS[filename]
    return sort_records(get_store().load_or_empty(filename), collection['sort_key'])


@site.route('/api/members')
def api_members():
    """Active members in display order, optionally filtered by member class"""
    members = [m for m in _sorted('members.json') if m.get('isActive', True)]
    class_id = request.args.get('classId')
    if class_id:
        members = [m for m in members if m.get('memberClassId') == class_id]
    return jsonify(members)


@site.route('/api/member-classes')
def api_member_classes():
    return jsonify(_sorted('memberClasses.json'))


@site.route('/api/programs')
def api_programs():
    return jsonify(_sorted('programs.json'))


@site.route('/api/hero-images')
def api_hero_images():
    return jsonify([h for h in _sorted('heroImages.json') if h.get('isActive', True)])


def _published_news():
    return [n for n in get_store().load_or_empty('news.json') if n.get('isPublished')]


def related_articles(articles, current, limit=3):
    """Articles sharing current's category; other articles when none do"""
    others = [a for a in articles if a.get('id') != current.get('id')]
    same_category = [a for a in others if a.get('category') == current.get('category')]
    return (same_category or others)[:limit]


@site.route('/api/news')
@site.route('/api/news/published')
def api_news():
    """Published news articles"""
    return jsonify(_published_news())


@site.route('/api/news/<news_id>')
def api_news_detail(news_id):
    article = next((n for n in _published_news() if n.get('id') == news_id), None)
    if not article:
        return jsonify({'error': 'News article not found'}), 404
    return jsonify(article)


@site.route('/api/news/<news_id>/related')
def api_news_related(news_id):
    news = _published_news()
    article = next((n for n in news if n.get('id') == news_id), None)
    if not article:
        return jsonify({'error': 'News article not found'}), 404
    return jsonify(related_articles(news, article))


@site.route('/data/<name>')
def data_file(name):
    """Collections are served as plain static JSON files"""
    check_collection_name(name)
    if not get_store().exists(name):
        raise NotFoundError(f"collection {name} not found")
    return send_from_directory(current_app.config['DATA_DIR'], name,
                               mimetype='application/json', max_age=0)


@site.route('/uploads/<path:filename>')
def uploaded_file(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)


# ========================================
# Admin API Routes (Session + admin flag)
# ========================================

def _handle_upload():
    if 'file' not in request.files or request.files['file'].filename == '':
        return jsonify({'error': 'no file'}), 400
    public_path = get_uploads().save(request.files['file'], request.args.get('category'))
    return jsonify({'ok': True, 'publicPath': public_path})


def _handle_delete_upload():
    data = _json_body()
    get_uploads().delete(data.get('path'))
    return jsonify({'ok': True})


@admin_api.route('/upload', methods=['POST'])
@admin_required
def admin_upload():
    """Upload an image into a category folder"""
    return _handle_upload()


@admin_api.route('/upload', methods=['DELETE'])
@admin_required
def admin_delete_upload():
    return _handle_delete_upload()


@admin_api.route('/dashboard', methods=['GET'])
@admin_required
def admin_dashboard():
    """Record counts per collection"""
    store = get_store()
    return jsonify({
        collection['resource']: len(store.load_or_empty(filename))
        for filename, collection in config.COLLECTIONS.items()
    })


@admin_api.route('/<resource>', methods=['GET'])
@admin_required
def admin_list(resource):
    return jsonify(get_collections().list(resource))


@admin_api.route('/<resource>', methods=['POST'])
@admin_required
def admin_create(resource):
    data = _json_body()
    record = get_collections().create(resource, data)
    return jsonify(record), 201


@admin_api.route('/<resource>/reorder', methods=['POST'])
@admin_required
def admin_reorder(resource):
    """Persist a drag-and-drop order given as a list of ids"""
    data = _json_body()
    ids = data.get('ids')
    if not isinstance(ids, list):
        return jsonify({'error': 'ids must be a list'}), 400
    return jsonify(get_collections().reorder(resource, ids))


@admin_api.route('/<resource>/<record_id>', methods=['GET'])
@admin_required
def admin_get(resource, record_id):
    return jsonify(get_collections().get(resource, record_id))


@admin_api.route('/<resource>/<record_id>', methods=['PUT', 'PATCH'])
@admin_required
def admin_update(resource, record_id):
    data = _json_body()
    return jsonify(get_collections().update(resource, record_id, data))


@admin_api.route('/<resource>/<record_id>', methods=['DELETE'])
@admin_required
def admin_delete(resource, record_id):
    get_collections().delete(resource, record_id)
    return jsonify({'success': True})


# ========================================
# Dev-only Routes (Token-based, file-backed)
# ========================================

@dev_api.route('/health', methods=['GET'])
def dev_health():
    return jsonify({'status': 'ok', 'message': 'Dev API is running'})


@dev_api.route('/save-json', methods=['POST'])
@dev_token_required
def dev_save_json():
    """Overwrite one collection file with the posted content"""
    data = _json_body()
    filename = data.get('file')
    check_collection_name(filename)

    store = get_store()
    try:
        count = store.save(filename, data.get('content'), expected_version=data.get('version'))
    except (ContentError, HTTPException):
        raise
    except Exception as e:
        logger.exception(f"Error saving JSON: {e}")
        return jsonify({'error': str(e)}), 500
    return jsonify({'ok': True, 'count': count, 'version': store.version(filename)})


@dev_api.route('/upload', methods=['POST'])
@dev_token_required
def dev_upload():
    try:
        return _handle_upload()
    except (ContentError, HTTPException):
        raise
    except Exception as e:
        logger.exception(f"Error uploading file: {e}")
        return jsonify({'error': str(e)}), 500


@dev_api.route('/upload', methods=['DELETE'])
@dev_token_required
def dev_delete_upload():
    try:
        return _handle_delete_upload()
    except (ContentError, HTTPException):
        raise
    except Exception as e:
        logger.exception(f"Error deleting file: {e}")
        return jsonify({'error': str(e)}), 500


if __name__ == '__main__':
    create_app().run(debug=config.APP_ENV != 'production', host='0.0.0.0', port=config.PORT)
