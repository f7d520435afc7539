"""Release parsing and minimum-version gates for Rubrik CDM features."""

from __future__ import annotations

from collections.abc import Mapping

from .exceptions import VersionError

VersionTuple = tuple[int, int, int]

FEATURE_MINIMUMS: Mapping[str, VersionTuple] = {
    "aws_native_account": (4, 2, 0),
}


def parse_release(release: str | None) -> VersionTuple | None:
    """Turn ``"5.0.1-p2-1234"`` into ``(5, 0, 1)``; ``None`` for an empty string."""

    if not release:
        return None
    parts = release.split(".")
    version: list[int] = []
    for part in parts[:3]:
        digits = ""
        for ch in part:
            if not ch.isdigit():
                break
            digits += ch
        version.append(int(digits) if digits else 0)
    while len(version) < 3:
        version.append(0)
    return tuple(version)  # type: ignore[return-value]


def format_release(version: VersionTuple) -> str:
    major, minor, patch = version
    return f"{major}.{minor}" if patch == 0 else f"{major}.{minor}.{patch}"


def meets_minimum(release: str | None, minimum: VersionTuple) -> bool:
    parsed = parse_release(release)
    return parsed is not None and parsed >= minimum


def require_release(release: str | None, minimum: VersionTuple) -> None:
    if not meets_minimum(release, minimum):
        raise VersionError(
            f"The Rubrik cluster must be running CDM version {format_release(minimum)} or later",
            details=release,
        )


__all__ = ["FEATURE_MINIMUMS", "VersionTuple", "format_release", "meets_minimum", "parse_release", "require_release"]
