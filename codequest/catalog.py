"""Challenge catalog loader — reads challenge metadata from disk.

Reads ``content/challenges.json`` (a JSON list of challenge objects) and
produces validated ChallengeSpec instances. Content-managed catalogs live
in the real database; this file seeds the development store so the API is
usable out of the box.

Each entry needs an ``id`` and either a ``rank`` (1-8 kyu) or a
``difficulty`` label (easy/medium/hard). ``points`` defaults to the rank's
standard base points.

Tier 2 module: imports from ``codequest.rewards.levels``, ``codequest.rewards.errors``
and ``codequest.schemas`` (Tier 1) + stdlib.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pydantic

from codequest.rewards.errors import ValidationError
from codequest.rewards.levels import points_for_rank, rank_for_difficulty
from codequest.schemas import ChallengeSpec

logger = logging.getLogger("codequest.catalog")


class CatalogError(Exception):
    """Fatal failure reading a catalog file or one of its entries.

    Attributes:
        source: The file (and entry index, if any) being loaded.
        error_type: One of ``"missing_file"``, ``"invalid_json"``,
            ``"not_a_list"``, ``"validation_error"``.
        message: Human-readable error description.
    """

    def __init__(self, source: str, error_type: str, message: str) -> None:
        self.source = source
        self.error_type = error_type
        self.message = message
        super().__init__(message)


def parse_challenge(data: object, source: str) -> ChallengeSpec:
    """Validates one catalog entry.

    Raises:
        CatalogError: If the entry is malformed.
    """
    if not isinstance(data, dict):
        raise CatalogError(source, "validation_error", f"{source}: entry is not an object")

    entry = dict(data)
    difficulty = entry.pop("difficulty", None)
    if "rank" not in entry and difficulty is not None:
        try:
            entry["rank"], _ = rank_for_difficulty(difficulty)
        except ValidationError as exc:
            raise CatalogError(source, "validation_error", f"{source}: {exc.message}")

    if "base_points" not in entry:
        points = entry.pop("points", None)
        if points is None and isinstance(entry.get("rank"), int):
            points = points_for_rank(entry["rank"])
        entry["base_points"] = points

    try:
        return ChallengeSpec.model_validate(entry)
    except pydantic.ValidationError as exc:
        raise CatalogError(
            source, "validation_error", f"Schema validation failed for {source}: {exc}"
        )


def load_challenges(path: Path) -> tuple[list[ChallengeSpec], list[CatalogError]]:
    """Loads every challenge in a catalog file.

    A missing file or a file that isn't a JSON list is fatal. Individual
    bad entries are collected and returned so one typo doesn't hide the
    rest of the catalog.

    Args:
        path: Path to the catalog JSON file.

    Returns:
        Tuple of (challenges, entry errors).

    Raises:
        CatalogError: On a missing file, invalid JSON or a non-list root.
    """
    source = str(path)
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise CatalogError(source, "missing_file", f"No catalog found at {source}")
    except json.JSONDecodeError as exc:
        raise CatalogError(source, "invalid_json", f"Invalid JSON in {source}: {exc}")

    if not isinstance(data, list):
        raise CatalogError(source, "not_a_list", f"{source} must contain a JSON list")

    challenges: list[ChallengeSpec] = []
    errors: list[CatalogError] = []
    seen: set[str] = set()

    for index, item in enumerate(data):
        try:
            challenge = parse_challenge(item, f"{source}[{index}]")
        except CatalogError as exc:
            errors.append(exc)
            continue
        if challenge.id in seen:
            logger.warning("Duplicate challenge id %r in %s, keeping the first", challenge.id, source)
            continue
        seen.add(challenge.id)
        challenges.append(challenge)

    return challenges, errors
