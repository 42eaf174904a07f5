"""Serialization of resolution results to JSON and CSV."""

import csv
import json
import logging
import sys
from typing import IO, List, Optional

from .constants import ExitCodes
from .models import ResolvedArtifact

CSV_HEADERS = [
    "group_id",
    "artifact_id",
    "version",
    "classifier",
    "extension",
    "scope",
    "local_path",
    "origin_url",
]


def _open(path: Optional[str]) -> IO[str]:
    if not path:
        return sys.stdout
    try:
        return open(path, "w", encoding="utf-8", newline="")
    except OSError as e:
        logging.error("Unable to write %s: %s", path, e)
        sys.exit(ExitCodes.FILE_ERROR.value)


def export_json(artifacts: List[ResolvedArtifact], path: Optional[str] = None) -> None:
    """Write the resolved artifacts as a JSON array (stdout when no path is given)."""
    out = _open(path)
    try:
        json.dump([a.to_dict() for a in artifacts], out, indent=2)
        out.write("\n")
    finally:
        if out is not sys.stdout:
            out.close()


def export_csv(artifacts: List[ResolvedArtifact], path: Optional[str] = None) -> None:
    """Write the resolved artifacts as CSV; a missing origin is an empty cell."""
    out = _open(path)
    try:
        writer = csv.writer(out)
        writer.writerow(CSV_HEADERS)
        for artifact in artifacts:
            row = artifact.to_dict()
            writer.writerow(["" if row[h] is None else row[h] for h in CSV_HEADERS])
    finally:
        if out is not sys.stdout:
            out.close()
