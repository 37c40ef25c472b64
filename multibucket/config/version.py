"""
Version information helper.
"""

import os
from importlib import metadata


def get_version():
    # Explicit override (set in container images)
    version = os.environ.get('MULTIBUCKET_VERSION', '').strip()
    if version:
        return version

    try:
        return metadata.version('multibucket')
    except metadata.PackageNotFoundError:
        pass

    return "unknown"
