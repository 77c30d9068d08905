"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    ERROR = 1


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_DEFAULT = "https://package.openupm.com"
    REGISTRY_URL_UPSTREAM = "https://packages.unity.com"
    # Registries which never receive credentials
    PUBLIC_REGISTRY_URLS = (REGISTRY_URL_DEFAULT, REGISTRY_URL_UPSTREAM)

    BUILTIN_SOURCE = "built-in"
    LATEST_TAG = "latest"
    STABLE_TAG = "stable"

    MANIFEST_PATH = ("Packages", "manifest.json")
    PROJECT_VERSION_PATH = ("ProjectSettings", "ProjectVersion.txt")
    BUILTIN_PACKAGES_SUBDIR = ("Editor", "Data", "Resources", "PackageManager", "BuiltInPackages")

    CONFIG_FILE_NAME = ".openupm.yaml"
    ENV_CONFIG = "OPENUPM_CONFIG"
    ENV_REGISTRY = "OPENUPM_REGISTRY"
    ENV_UPSTREAM = "OPENUPM_UPSTREAM"
    ENV_LOG_LEVEL = "OPENUPM_LOG_LEVEL"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_CACHE_TTL_SEC = 300
    USER_AGENT = "openupm-py/0.1"
