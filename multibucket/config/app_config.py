"""
Application configuration from environment variables.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# Path or http(s) URL of the JSON provider configuration
CONFIG_SOURCE = os.environ.get('MULTIBUCKET_CONFIG_SOURCE', '').split('#')[0].strip() or None

LOAD_BALANCE_STRATEGY = os.environ.get('LOAD_BALANCE_STRATEGY', 'round-robin').strip().lower()
DEFAULT_EXPIRY_SECONDS = int(os.environ.get('DEFAULT_EXPIRY_SECONDS', '3600'))

# Remote sources are polled, local files are checked for modification
CONFIG_POLL_INTERVAL = int(os.environ.get('CONFIG_POLL_INTERVAL', '60'))
CONFIG_WATCH_INTERVAL = float(os.environ.get('CONFIG_WATCH_INTERVAL', '2'))
CONFIG_HTTP_TIMEOUT = float(os.environ.get('CONFIG_HTTP_TIMEOUT', '10'))

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
HOST = os.environ.get('HOST', '0.0.0.0')
PORT = int(os.environ.get('PORT', '3000'))
