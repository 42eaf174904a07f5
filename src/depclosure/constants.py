"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the command line entry point.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    NOT_FOUND = 3
    CONFIG_ERROR = 4
    CANCELLED = 130


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration defaults; not intended to provide behavior.
    """

    MAVEN_CENTRAL_URL = "https://repo1.maven.org/maven2"
    DEFAULT_EXTENSION = "jar"
    DESCRIPTOR_EXTENSION = "pom"
    METADATA_FILE = "maven-metadata.xml"
    CHECKSUM_SUFFIX = ".sha1"
    USER_AGENT = "depclosure/0.1"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_PREFIX = "DEPCLOSURE_"
    ENV_LOG_LEVEL = "DEPCLOSURE_LOG_LEVEL"
    CONFIG_SECTION = "resolver"

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
    HTTP_RETRY_MAX_DELAY_SEC = 5.0
    MAX_WORKERS = 8
    MAX_DEPTH = 64
    POLL_INTERVAL_SEC = 0.05
