"""Schema validation gate for caller input and normalized OPS records."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Dict, List, Union

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from patent_ops.core.errors import ValidationError

logger = logging.getLogger("SchemaValidator")

Schema = Union[type, TypeAdapter]


def _as_plain(value: Any) -> Any:
    if value is None:
        return {}
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    return value


def _violations(exc: PydanticValidationError) -> List[Dict[str, str]]:
    violations: List[Dict[str, str]] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        violations.append(
            {
                "field": location or "(root)",
                "message": error.get("msg", ""),
                "type": error.get("type", ""),
            }
        )
    return violations


def _validate(schema: Schema, data: Any) -> Any:
    if isinstance(schema, TypeAdapter):
        return schema.validate_python(data)
    return schema.model_validate(data)


def _schema_name(schema: Schema) -> str:
    if isinstance(schema, TypeAdapter):
        return "record list"
    return schema.__name__


def validate_input(schema: Schema, value: Any) -> Any:
    """
    Validate caller input (dataclass, dict or model) against `schema`.

    Raises:
        ValidationError: Listing every violation; `details` holds the input.
    """
    data = _as_plain(value)
    try:
        return _validate(schema, data)
    except PydanticValidationError as exc:
        violations = _violations(exc)
        fields = ", ".join(v["field"] for v in violations)
        raise ValidationError(
            f"Invalid {_schema_name(schema)}: {fields}",
            violations=violations,
            details=data,
        ) from exc


def validate_output(schema: Schema, candidate: Any) -> Any:
    """
    Validate a normalized record before it is returned to the caller.

    Raises:
        ValidationError: Listing every violation; `details` holds the
            unvalidated normalized record.
    """
    try:
        return _validate(schema, candidate)
    except PydanticValidationError as exc:
        violations = _violations(exc)
        logger.error(
            "Normalized %s failed validation: %s",
            _schema_name(schema),
            [v["field"] for v in violations],
        )
        raise ValidationError(
            f"Upstream response does not match {_schema_name(schema)}",
            violations=violations,
            details=candidate,
        ) from exc
