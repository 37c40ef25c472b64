"""
Presigned URL generation, stats and health endpoints.
"""

from datetime import datetime, timezone

from flask import Blueprint, current_app, jsonify, request

from multibucket.config.version import get_version
from multibucket.services.storage import (
    InvalidRequest,
    MultiBucketError,
    NoProvidersConfigured,
    ProviderNotFound,
    UrlGenerationFailed,
)

# Create blueprint
urls_bp = Blueprint('urls', __name__)

# Global helpers (will be injected from app)
url_service = None


def init_urls_helpers(**kwargs):
    """Initialize the URL service used by the routes."""
    global url_service
    url_service = kwargs.get('url_service')


def _error_response(error):
    if isinstance(error, InvalidRequest):
        status = 400
    elif isinstance(error, ProviderNotFound):
        status = 404
    elif isinstance(error, NoProvidersConfigured):
        status = 503
    else:
        status = 500
    if isinstance(error, UrlGenerationFailed) and error.provider_id:
        url_service.session.record_error(error.provider_id)
    current_app.logger.error(f"API Error: {error}")
    return jsonify({'error': str(error)}), status


def _json_body():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


# --- Routes ---

@urls_bp.route('/generate-upload-url', methods=['POST'])
def generate_upload_url():
    """Generate a presigned upload URL on a load balanced provider."""
    data = _json_body()
    if data is None:
        return jsonify({'error': 'Request body must be a JSON object'}), 400
    filename = data.get('filename')
    content_type = data.get('contentType')

    if not filename or not content_type:
        return jsonify({'error': 'filename and contentType are required'}), 400

    try:
        result = url_service.generate_upload_url(
            filename,
            content_type,
            expiry_seconds=data.get('expiry') or None,
            path_prefix=data.get('path'),
            provider_id=data.get('providerId'),
        )
    except MultiBucketError as e:
        return _error_response(e)

    return jsonify(result.to_dict())


@urls_bp.route('/generate-read-url', methods=['POST'])
def generate_read_url():
    """Generate a presigned download URL for an existing object."""
    data = _json_body()
    if data is None:
        return jsonify({'error': 'Request body must be a JSON object'}), 400
    key = data.get('key')

    if not key:
        return jsonify({'error': 'key is required'}), 400

    try:
        result = url_service.generate_read_url(
            key,
            bucket=data.get('bucket'),
            provider_id=data.get('providerId'),
            expiry_seconds=data.get('expiry') or None,
        )
    except MultiBucketError as e:
        return _error_response(e)

    return jsonify(result.to_dict())


@urls_bp.route('/stats', methods=['GET'])
def stats():
    return jsonify(url_service.get_stats())


@urls_bp.route('/health', methods=['GET'])
def health():
    return jsonify({
        'status': 'ok',
        'providers': url_service.session.provider_count,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'version': get_version(),
    })
