# MultiBucket - Presigned URL service for multiple storage providers
import argparse
import logging
import sys

from flask import Flask

from multibucket.api.urls import init_urls_helpers, urls_bp
from multibucket.config import app_config
from multibucket.config.startup import initialize_config_watcher
from multibucket.config.version import get_version
from multibucket.services.storage import UrlService, get_url_service


def configure_logging(log_level=None):
    log_level = (log_level or app_config.LOG_LEVEL).upper()
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
    handler.setFormatter(formatter)

    # Get the root logger and clear any existing handlers to avoid duplicates
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    # Quiet third-party loggers
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)


def create_app(url_service: UrlService = None, start_watcher: bool = True) -> Flask:
    """
    Build the Flask application.

    Args:
        url_service: Service to expose; the process-wide one when omitted
        start_watcher: Load MULTIBUCKET_CONFIG_SOURCE and keep watching it
    """
    app = Flask(__name__)
    url_service = url_service or get_url_service()

    init_urls_helpers(url_service=url_service)
    app.register_blueprint(urls_bp)
    app.extensions['multibucket'] = url_service

    if start_watcher:
        initialize_config_watcher(app, url_service.session)

    app.logger.info(f"=== MultiBucket {get_version()} ready with {url_service.session.provider_count} providers, "
                    f"strategy={url_service.session.strategy} ===")
    return app


def main():
    parser = argparse.ArgumentParser(description='Run the MultiBucket presigned URL server')
    parser.add_argument('--host', default=app_config.HOST)
    parser.add_argument('--port', type=int, default=app_config.PORT)
    parser.add_argument('--debug', action='store_true', help='Run in debug mode')
    args = parser.parse_args()

    configure_logging()
    app = create_app()

    # Consider using waitress or gunicorn for production
    # waitress-serve --host 0.0.0.0 --port 3000 --call multibucket.app:create_app
    app.run(host=args.host, port=args.port, debug=args.debug, use_reloader=False)


if __name__ == '__main__':
    main()
