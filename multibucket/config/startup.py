"""
Application startup functions.
"""


def initialize_config_watcher(app, session):
    """Load the external provider configuration and start watching it, if one is configured."""
    try:
        from multibucket.services import config_watcher
        watcher = config_watcher.start_config_watcher(session)
        if watcher:
            app.logger.info(f"Config watcher started for {watcher.source}")
        else:
            app.logger.info("No MULTIBUCKET_CONFIG_SOURCE set, using in-process configuration only")
    except Exception as e:
        app.logger.warning(f"Config watcher initialization failed: {e}")
