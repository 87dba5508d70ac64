"""Index document checks and JSON persistence for the two run artifacts."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Sequence

from gitlore.config.settings import settings
from gitlore.models.repo_record import RepoRecord
from gitlore.models.summary import Summary

logger = logging.getLogger(__name__)

# Fields the visualization layer requires on every index entry
REQUIRED_INDEX_FIELDS: tuple[tuple[str, type | tuple[type, ...]], ...] = (
    ("name", str),
    ("full_name", str),
    ("size_kb", (int, float)),
    ("size_readable", str),
    ("updated_at", str),
    ("html_url", str),
)
TYPE_NAMES = {str: "string", (int, float): "number"}


@dataclass(slots=True)
class WrittenDocuments:
    index_path: Path
    summary_path: Path


def validate_index_document(document: Any) -> list[str]:
    """Return the problems the visualization layer would reject the index for."""
    if not isinstance(document, list):
        return ["Root must be an array of repos."]

    errors: list[str] = []
    for position, entry in enumerate(document):
        if not isinstance(entry, dict):
            errors.append(f"Repo[{position}] must be an object.")
            continue

        for key, _ in REQUIRED_INDEX_FIELDS:
            if key not in entry:
                errors.append(f"Repo[{position}] missing required field: {key}")

        for key, expected in REQUIRED_INDEX_FIELDS:
            value = entry.get(key)
            # bool is an int subclass but not a JSON number
            if isinstance(value, bool) or not isinstance(value, expected):
                errors.append(f"Repo[{position}].{key} must be {TYPE_NAMES[expected]}")

        if "weekly_commits_52w" in entry and not isinstance(entry["weekly_commits_52w"], list):
            errors.append(f"Repo[{position}].weekly_commits_52w must be array if present")

    return errors


def write_documents(
    records: Sequence[RepoRecord],
    summary: Summary,
    output_dir: str | Path | None = None,
) -> WrittenDocuments:
    """
    Write repos_index_enriched.json and repos_summary.json

    Index problems are logged but do not block writing; a run always
    produces both artifacts.
    """
    target = Path(output_dir if output_dir is not None else settings.OUTPUT_DIR)
    target.mkdir(parents=True, exist_ok=True)

    index_document = [record.to_dict() for record in records]
    problems = validate_index_document(index_document)
    for problem in problems:
        logger.warning("Index document check failed: %s", problem)

    index_path = target / settings.INDEX_FILENAME
    summary_path = target / settings.SUMMARY_FILENAME
    index_path.write_text(json.dumps(index_document, indent=2, ensure_ascii=False), encoding="utf-8")
    summary_path.write_text(json.dumps(summary.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")

    logger.info(f"Wrote {len(index_document)} records to {index_path}")
    logger.info(f"Wrote summary to {summary_path}")
    return WrittenDocuments(index_path=index_path, summary_path=summary_path)
