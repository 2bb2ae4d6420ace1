"""Domain-level cost validation.

The store accepts either a `NewCostIn` or a plain mapping. Both paths are
re-validated here so that an instance built with `model_construct` (which
skips pydantic validation) cannot slip an invalid row into the store.
Pydantic errors are translated into the store's own `ValidationError`.
"""

from __future__ import annotations
from typing import Any, Mapping, Union

from pydantic import ValidationError as PydanticValidationError

from cost_manager.core.errors import ValidationError
from cost_manager.models.cost import NewCostIn

CostInput = Union[NewCostIn, Mapping[str, Any]]


def _summarize(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ())) or "input"
        parts.append(f"{loc}: {err.get('msg', 'invalid value')}")
    return "; ".join(parts)


def validate_cost_input(entry: CostInput) -> NewCostIn:
    """Return a validated `NewCostIn` or raise `ValidationError`."""
    if isinstance(entry, NewCostIn):
        data = {
            field: getattr(entry, field, None)
            for field in ("amount", "currency", "category", "description")
        }
    elif isinstance(entry, Mapping):
        data = dict(entry)
    else:
        raise ValidationError(
            f"cost input must be a mapping or NewCostIn, got {type(entry).__name__}"
        )
    # bool is an int subclass; pydantic would coerce True to 1.0
    if isinstance(data.get("amount"), bool):
        raise ValidationError("amount: must be a positive number")
    try:
        return NewCostIn.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError(_summarize(exc)) from exc
