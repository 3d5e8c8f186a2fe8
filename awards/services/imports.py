"""Bulk JSON import of categories and participants."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from awards.models import Category, CategoryKind, Edition, Participant

logger = logging.getLogger(__name__)

_CATEGORY_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "CategoryImport",
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1, "maxLength": 255},
        "edition_id": {"type": "string", "minLength": 1},
        "description": {"type": ["string", "null"]},
        "order": {"type": "integer"},
        "category_type": {"enum": [kind.value for kind in CategoryKind]},
        "is_votable": {"type": "boolean"},
    },
    "required": ["name", "edition_id"],
    "additionalProperties": True,
}

_PARTICIPANT_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "ParticipantImport",
    "type": "object",
    "properties": {
        "name": {"type": "string", "minLength": 1, "maxLength": 255},
        "description": {"type": ["string", "null"]},
        "image_url": {"type": ["string", "null"], "maxLength": 1024},
    },
    "required": ["name"],
    "additionalProperties": True,
}


class ImportPayloadError(ValueError):
    """Raised when the upload is not a JSON array of objects."""


@dataclass(slots=True)
class ImportReport:
    created: list[str] = field(default_factory=list)
    errors: list[dict[str, Any]] = field(default_factory=list)


def parse_rows(body: bytes | str) -> list[Any]:
    text = body.decode("utf-8") if isinstance(body, bytes) else body
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ImportPayloadError(f"Invalid JSON: {exc.msg}") from exc
    if not isinstance(payload, list):
        raise ImportPayloadError("The JSON document must be an array")
    return payload


def _format_error(error: ValidationError) -> str:
    path = "->".join(str(part) for part in error.path)
    return f"{path or '<root>'}: {error.message}"


def _validate(validator: Draft202012Validator, rows: list[Any], report: ImportReport) -> list[tuple[int, dict]]:
    valid: list[tuple[int, dict]] = []
    for index, row in enumerate(rows):
        errors = sorted(validator.iter_errors(row), key=lambda e: list(e.path))
        if errors:
            report.errors.append({"index": index, "errors": [_format_error(error) for error in errors]})
        else:
            valid.append((index, row))
    return valid


def _persist(session: Session, index: int, instance: Any, report: ImportReport) -> None:
    session.add(instance)
    try:
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        report.errors.append({"index": index, "errors": [f"database error: {type(exc).__name__}"]})
        return
    report.created.append(instance.id)


def import_categories(session: Session, rows: list[Any]) -> ImportReport:
    """Insert every valid category row; bad rows are reported, never fatal."""

    report = ImportReport()
    for index, row in _validate(Draft202012Validator(_CATEGORY_SCHEMA), rows, report):
        if session.get(Edition, row["edition_id"]) is None:
            report.errors.append({"index": index, "errors": ["edition_id: edition not found"]})
            continue
        category = Category(
            edition_id=row["edition_id"],
            name=row["name"],
            description=row.get("description") or None,
            display_order=row.get("order") or 0,
            kind=CategoryKind(row.get("category_type") or CategoryKind.PARTICIPANT_BASED.value),
            is_votable=row.get("is_votable", True),
        )
        _persist(session, index, category, report)

    logger.info(
        "categories imported",
        extra={"created_count": len(report.created), "failed_count": len(report.errors)},
    )
    return report


def import_participants(session: Session, rows: list[Any]) -> ImportReport:
    report = ImportReport()
    for index, row in _validate(Draft202012Validator(_PARTICIPANT_SCHEMA), rows, report):
        participant = Participant(
            name=row["name"],
            description=row.get("description") or None,
            image_url=row.get("image_url") or None,
        )
        _persist(session, index, participant, report)

    logger.info(
        "participants imported",
        extra={"created_count": len(report.created), "failed_count": len(report.errors)},
    )
    return report


__all__ = [
    "ImportPayloadError",
    "ImportReport",
    "import_categories",
    "import_participants",
    "parse_rows",
]
