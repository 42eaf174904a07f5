"""Token parsing utilities for artifact coordinates."""

from typing import Optional, Tuple

from .constants import Constants
from .exceptions import ConfigurationError
from .models import ArtifactCoordinate


def split_extension(token: str) -> Tuple[str, Optional[str]]:
    """Return (token, extension or None) using the rightmost '@' rule."""
    token = token.strip()
    if "@" not in token:
        return token, None
    body, ext = token.rsplit("@", 1)
    return body.strip(), ext.strip() or None


def parse_coordinate(token: str, classifier: Optional[str] = None) -> ArtifactCoordinate:
    """Parse ``group:artifact:version[:classifier][@extension]``.

    An explicit ``classifier`` argument wins over one embedded in the token.
    """
    body, ext = split_extension(token)
    parts = [p.strip() for p in body.split(":")]
    if len(parts) not in (3, 4) or not all(parts):
        raise ConfigurationError(
            f"Invalid coordinate '{token}', expected group:artifact:version[:classifier]"
        )
    group_id, artifact_id, version = parts[0], parts[1], parts[2]
    embedded = parts[3] if len(parts) == 4 else ""
    return ArtifactCoordinate(
        group_id=group_id,
        artifact_id=artifact_id,
        version=version,
        classifier=classifier if classifier is not None else embedded,
        extension=ext or Constants.DEFAULT_EXTENSION,
    )
