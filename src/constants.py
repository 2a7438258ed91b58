"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FAILURE = 1


class Distribution(Enum):
    """How a package was installed into the environment.

    Args:
        Enum (string): Distribution kinds understood by the program.
    """

    GIT = "git"
    PATH = "path"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "GITROLL_LOG_LEVEL"
    ENV_DEBUG = "GITROLL_DEBUG"

    # Project layout
    MANIFEST_EXTENSION = ".nimble"
    COMPILER_CONFIG = "nim.cfg"
    CONFIG_DOCUMENT = "gitroll.json"
    LOCAL_DEPS_DIR = "deps"
    LOCK_SECTION = "lockfiles"
    MANIFEST_TOOL = "nimble"

    # Names of the compiler's own meta-packages; never resolved or rolled
    COMPILER_PACKAGES = ["nim", "compiler"]

    # Extra tag shapes tried when parsing tags as versions; <v> is the version
    TAG_PATTERNS = ["release-<v>", "<name>-<v>"]

    # Fixup loop cap, in addition to once-per-requirement remediation
    FIXUP_MAX_ATTEMPTS = 10

    # Settings file
    SETTINGS_PATHS = ["~/.config/gitroll/settings.yml", "~/.gitroll.yml"]
    SEARCH_ROOTS = []

    # Remote APIs
    GITHUB_API_BASE = "https://api.github.com"
    ENV_GITHUB_TOKEN = "GITHUB_TOKEN"
    GITHUB_TOKEN = None
    HUB_SEARCH_LANGUAGE = "nim"
    HUB_SEARCH_PER_PAGE = 30
    PACKAGE_LIST_URL = "https://raw.githubusercontent.com/nim-lang/packages/master/packages.json"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_CACHE_TTL_SEC = 300
