"""
Batch validation against the declarative shapes in oews_collector.bls.schemas.

All-or-nothing: one bad record rejects the whole batch, and the raised
ValidationError lists every violation (index, field, message, value) so the
batch can be fixed and retried in one go.
"""
from functools import lru_cache
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from oews_collector.exceptions import ValidationError

M = TypeVar('M', bound=BaseModel)


@lru_cache(maxsize=None)
def _list_adapter(row_model: Type[BaseModel]) -> TypeAdapter:
    return TypeAdapter(List[row_model])


def _format_location(loc: Sequence[Any]) -> str:
    path = ''
    for part in loc:
        if isinstance(part, int):
            path += f'[{part}]'
        else:
            path += f'.{part}' if path else str(part)
    return path or '<root>'


def format_errors(error: PydanticValidationError) -> List[str]:
    """Render pydantic errors as 'location: message (value)' lines"""
    return [
        f"{_format_location(err.get('loc', ()))}: {err.get('msg')} ({err.get('input')!r})"
        for err in error.errors()
    ]


def _message(context: Optional[str]) -> str:
    return f"Validation failed for {context}" if context else "Validation failed"


def validate_batch(
    records: List[Dict],
    row_model: Type[BaseModel],
    context: Optional[str] = None,
) -> List[Dict]:
    """
    Validate a batch of parsed records.

    Returns the batch unchanged on success; raises ValidationError carrying
    every violation otherwise.
    """
    try:
        _list_adapter(row_model).validate_python(records)
    except PydanticValidationError as e:
        raise ValidationError(_message(context), format_errors(e), data=records, context=context) from e
    return records


def validate_model(
    data: Any,
    model: Type[M],
    context: Optional[str] = None,
    error_cls: Type[ValidationError] = ValidationError,
) -> M:
    """Validate a single document (e.g. an API body) into a model instance"""
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise error_cls(_message(context), format_errors(e), data=data, context=context) from e
