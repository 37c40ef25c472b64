"""
Config Watcher for hot-reloading provider configuration.

Loads a JSON configuration payload from a local file or an http(s) URL and
applies it to a MultiBucketSession. A background thread then keeps the
session up to date:
1. Local files: re-applied whenever the file's modification time changes
2. Remote URLs: re-fetched every poll interval

Load and parse failures are logged and the previous configuration is kept.
"""

import json
import logging
import os
import threading
from datetime import datetime, timezone
from pathlib import Path

import httpx

from multibucket.services.storage.exceptions import MultiBucketError


def is_remote_source(source):
    return source.startswith('http://') or source.startswith('https://')


class ConfigWatcher:
    def __init__(self, source, session, poll_interval=60, watch_interval=2, http_timeout=10):
        """
        Initialize the config watcher.

        Args:
            source (str): Path to a JSON file or an http(s) URL
            session (MultiBucketSession): Session the configuration is applied to
            poll_interval (float): Seconds between remote fetches
            watch_interval (float): Seconds between local file modification checks
            http_timeout (float): Timeout for a remote fetch
        """
        self.source = source
        self.session = session
        self.poll_interval = poll_interval
        self.watch_interval = watch_interval
        self.http_timeout = http_timeout
        self.running = False
        self.thread = None
        self._stop_event = threading.Event()
        self._last_mtime = None
        self.last_error = None
        self.last_loaded_at = None

        self.logger = logging.getLogger(__name__)

    @property
    def is_remote(self):
        return is_remote_source(self.source)

    def read_payload(self):
        """Fetch and decode the configuration payload from the source."""
        if self.is_remote:
            response = httpx.get(self.source, timeout=self.http_timeout)
            response.raise_for_status()
            return response.json()

        path = Path(self.source)
        self._last_mtime = path.stat().st_mtime
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def load(self):
        """
        Load the source once and apply it to the session.

        Returns:
            bool: True if the configuration was applied
        """
        try:
            payload = self.read_payload()
            self.session.update_config(payload)
        except (OSError, ValueError, httpx.HTTPError, MultiBucketError) as e:
            self.last_error = str(e)
            self.logger.error(f"Error loading configuration from {self.source}: {e}")
            return False

        self.last_error = None
        self.last_loaded_at = datetime.now(timezone.utc).isoformat()
        self.logger.info(f"Config loaded from {'URL' if self.is_remote else 'file'}: {self.source}")
        return True

    def start(self):
        """Load the configuration and start watching it in a background thread."""
        if self.running:
            self.logger.warning("Config watcher is already running")
            return

        self.load()
        self.running = True
        self._stop_event.clear()
        self.thread = threading.Thread(target=self._watch_loop, name='config-watcher', daemon=True)
        self.thread.start()
        mode = f"polling every {self.poll_interval}s" if self.is_remote else "watching for changes"
        self.logger.info(f"Config watcher started, {mode}: {self.source}")

    def stop(self):
        """Stop watching."""
        self.running = False
        self._stop_event.set()
        if self.thread:
            self.thread.join(timeout=5)
        self.logger.info("Config watcher stopped")

    def _watch_loop(self):
        interval = self.poll_interval if self.is_remote else self.watch_interval
        while not self._stop_event.wait(interval):
            try:
                if self.is_remote:
                    self.load()
                elif self._file_changed():
                    if self.load():
                        self.logger.info(f"Config file updated: {self.source}")
            except Exception as e:
                self.logger.error(f"Error during config watch: {e}", exc_info=True)

    def _file_changed(self):
        try:
            mtime = os.stat(self.source).st_mtime
        except OSError as e:
            self.logger.warning(f"Cannot stat config file {self.source}: {e}")
            return False
        return mtime != self._last_mtime

    def status(self):
        return {
            'running': self.running,
            'source': self.source,
            'remote': self.is_remote,
            'interval': self.poll_interval if self.is_remote else self.watch_interval,
            'last_loaded_at': self.last_loaded_at,
            'last_error': self.last_error,
        }


# Global config watcher instance
config_watcher = None


def start_config_watcher(session, source=None):
    """Start the process-wide config watcher from environment configuration."""
    global config_watcher

    if config_watcher and config_watcher.running:
        return config_watcher

    from multibucket.config import app_config

    source = source or app_config.CONFIG_SOURCE
    if not source:
        return None

    config_watcher = ConfigWatcher(
        source,
        session,
        poll_interval=app_config.CONFIG_POLL_INTERVAL,
        watch_interval=app_config.CONFIG_WATCH_INTERVAL,
        http_timeout=app_config.CONFIG_HTTP_TIMEOUT,
    )
    config_watcher.start()
    return config_watcher


def stop_config_watcher():
    """Stop the process-wide config watcher."""
    global config_watcher
    if config_watcher:
        config_watcher.stop()
        config_watcher = None


def get_config_watcher_status():
    """Get the current status of the config watcher."""
    if config_watcher and config_watcher.running:
        return config_watcher.status()
    return {'running': False}
