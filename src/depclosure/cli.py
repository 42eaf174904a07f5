"""Command line entry point: resolve one artifact and print its closure."""

import logging
import sys

from .args import parse_args
from .common.logging_utils import configure_logging
from .config import load_config
from .constants import Constants, ExitCodes
from .exceptions import (
    ArtifactNotFoundError,
    ConfigurationError,
    ResolutionCancelledError,
    TransientFetchError,
)
from .export import export_csv, export_json
from .models import CancellationToken, ResolutionRequest
from .parser import parse_coordinate
from .resolver.service import ResolutionService

logger = logging.getLogger(__name__)


def _output_format(args) -> str:
    if args.OUTPUT_FORMAT:
        return args.OUTPUT_FORMAT
    if args.OUTPUT and args.OUTPUT.lower().endswith(".csv"):
        return "csv"
    return "json"


def main(argv=None) -> int:
    """Run the CLI and return its exit code."""
    args = parse_args(argv)
    configure_logging(args.LOG_LEVEL)

    try:
        config = load_config(args.CONFIG).merged({
            "max_workers": args.MAX_WORKERS,
            "retry_attempts": args.RETRY_ATTEMPTS,
            "request_timeout": args.REQUEST_TIMEOUT,
            "strict": False if args.LENIENT else None,
        })
        root = parse_coordinate(args.coordinate, args.CLASSIFIER)
    except ConfigurationError as e:
        logger.error("%s", e)
        return ExitCodes.CONFIG_ERROR.value

    repositories = args.REPOSITORIES or [Constants.MAVEN_CENTRAL_URL]
    request = ResolutionRequest.create(root, repositories, args.CACHE_DIR)
    cancel = CancellationToken()

    try:
        artifacts = ResolutionService(config).resolve(request, cancel)
    except KeyboardInterrupt:
        cancel.cancel()
        logger.error("Interrupted, resolution of %s abandoned", root)
        return ExitCodes.CANCELLED.value
    except ResolutionCancelledError as e:
        logger.error("%s", e)
        return ExitCodes.CANCELLED.value
    except ArtifactNotFoundError as e:
        logger.error("%s", e)
        return ExitCodes.NOT_FOUND.value
    except TransientFetchError as e:
        logger.error("%s", e)
        return ExitCodes.CONNECTION_ERROR.value
    except OSError as e:
        logger.error("Cache directory error: %s", e)
        return ExitCodes.FILE_ERROR.value

    if _output_format(args) == "csv":
        export_csv(artifacts, args.OUTPUT)
    else:
        export_json(artifacts, args.OUTPUT)
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
