"""Load and validate the build configuration for illumina runs.

Configuration is an explicit :class:`BuildConfig` handed to each stage. It is
assembled by :func:`load_build_config` from an optional YAML file, the
process environment (``LOCAL_REPO_ROOT``, ``DOCS_PATH``,
``GITHUB_REPOSITORY``, ...) and explicit overrides, in that order.

Examples
--------
>>> from illumina.config import load_build_config
>>> config = load_build_config(environ={"LOCAL_REPO_ROOT": "."})
>>> config.is_local
True
>>> config.pages_file.name
'pages.json'
"""

from .loader import config_from_env, load_build_config
from .models import BuildConfig, BuildConfigError

__all__ = [
    "BuildConfig",
    "BuildConfigError",
    "config_from_env",
    "load_build_config",
]
