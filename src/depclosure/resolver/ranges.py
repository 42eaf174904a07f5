"""Maven version range selection.

Supports bracket notation: ``[1.0,2.0)``, ``(,1.5]``, ``[1.2,)``, the
exact pin ``[1.2]`` and unions such as ``[1.0,2.0),[3.0,4.0)``. The
highest listed version inside the range wins; SNAPSHOTs are only picked
when nothing else matches.
"""

import re
from typing import List, Optional, Tuple

from packaging import version

_NUMERIC_PREFIX = re.compile(r"\d+(\.\d+)*")

# (lower, lower_inclusive, upper, upper_inclusive); None means unbounded.
Bound = Tuple[Optional[version.Version], bool, Optional[version.Version], bool]


def is_range(spec: str) -> bool:
    spec = spec.strip()
    return spec[:1] in ("[", "(")


def parse_version(text: str) -> Optional[version.Version]:
    """Parse a Maven version, falling back to its numeric prefix (``31.1-jre`` -> 31.1)."""
    try:
        return version.Version(text)
    except version.InvalidVersion:
        match = _NUMERIC_PREFIX.match(text.strip())
        if match is None:
            return None
        return version.Version(match.group(0))


def _split_ranges(spec: str) -> List[str]:
    """Split a union like ``[1.0,2.0),[3.0,4.0]`` into its bracketed parts."""
    ranges: List[str] = []
    current = ""
    depth = 0
    for char in spec.strip():
        if char in "[(":
            depth += 1
            current = char if depth == 1 else current + char
        elif char in "])":
            depth -= 1
            current += char
            if depth == 0:
                ranges.append(current)
                current = ""
        elif depth > 0:
            current += char
    if depth != 0:
        raise ValueError(f"Unbalanced version range '{spec}'")
    return ranges


def _parse_bound(text: str) -> Optional[version.Version]:
    text = text.strip()
    if not text:
        return None
    parsed = parse_version(text)
    if parsed is None:
        raise ValueError(f"Invalid version '{text}' in range")
    return parsed


def parse_range(spec: str) -> List[Bound]:
    """Parse a range spec into bounds; raises ValueError on malformed input."""
    bounds: List[Bound] = []
    for part in _split_ranges(spec):
        inner = part[1:-1]
        lower_inclusive = part.startswith("[")
        upper_inclusive = part.endswith("]")
        if "," not in inner:
            pinned = _parse_bound(inner)
            if pinned is None or not (lower_inclusive and upper_inclusive):
                raise ValueError(f"Invalid exact version range '{part}'")
            bounds.append((pinned, True, pinned, True))
            continue
        lower_str, upper_str = inner.split(",", 1)
        bounds.append((_parse_bound(lower_str), lower_inclusive, _parse_bound(upper_str), upper_inclusive))
    if not bounds:
        raise ValueError(f"Empty version range '{spec}'")
    return bounds


def _within(ver: version.Version, bound: Bound) -> bool:
    lower, lower_inclusive, upper, upper_inclusive = bound
    if lower is not None:
        if lower_inclusive and ver < lower:
            return False
        if not lower_inclusive and ver <= lower:
            return False
    if upper is not None:
        if upper_inclusive and ver > upper:
            return False
        if not upper_inclusive and ver >= upper:
            return False
    return True


def select_version(spec: str, candidates: List[str]) -> Optional[str]:
    """Pick the highest candidate satisfying ``spec``, or None."""
    bounds = parse_range(spec)
    matching = []
    for candidate in candidates:
        parsed = parse_version(candidate)
        if parsed is None:
            continue
        if any(_within(parsed, b) for b in bounds):
            matching.append((parsed, candidate))
    if not matching:
        return None
    stable = [m for m in matching if not m[1].endswith("-SNAPSHOT")]
    pool = stable or matching
    # Stable sort keeps metadata order among equal parses, so the last listed wins.
    pool.sort(key=lambda m: m[0])
    return pool[-1][1]
