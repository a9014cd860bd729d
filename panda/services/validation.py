"""Service payload validation: turns raw JSON into a ServiceInput or field errors."""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from panda.core.errors import ValidationFailed
from panda.models.service import ServiceInput

FORM_FIELD = "_form"


def _wire_name(model: type[BaseModel], name: str) -> str:
    # Validated defaults are reported under the Python name, not the alias
    field = model.model_fields.get(name)
    if field is not None and field.alias:
        return field.alias
    return name


def field_errors(exc: ValidationError, model: type[BaseModel] = ServiceInput) -> dict[str, list[str]]:
    """Group pydantic errors by top-level wire field name."""
    details: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc") or ()
        field = _wire_name(model, str(loc[0])) if loc else FORM_FIELD
        details.setdefault(field, []).append(err["msg"])
    return details


def validate_service_input(raw: Any) -> ServiceInput:
    """Validate a create/update payload. Raises ValidationFailed, never returns partial data."""
    if isinstance(raw, ServiceInput):
        raw = raw.model_dump(by_alias=True)
    if not isinstance(raw, Mapping):
        raise ValidationFailed({FORM_FIELD: ["Expected a JSON object"]})

    try:
        return ServiceInput.model_validate(dict(raw))
    except ValidationError as exc:
        raise ValidationFailed(field_errors(exc)) from exc
