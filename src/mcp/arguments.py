"""
Decoding of untyped tool-call arguments into typed input models.

decode_arguments never raises: it returns either the validated model or the
list of field-level problems, so callers can turn failures into a result.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

InputT = TypeVar("InputT", bound=BaseModel)


@dataclass(frozen=True)
class FieldError:
    """One validation problem, located by the offending argument name."""
    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class DecodeResult(Generic[InputT]):
    """Outcome of decoding: a value when ok, otherwise the field errors."""
    value: Optional[InputT] = None
    errors: List[FieldError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    def describe(self) -> str:
        return "; ".join(str(error) for error in self.errors)


def _field_name(location) -> str:
    return ".".join(str(part) for part in location) or "arguments"


def decode_arguments(model: Type[InputT], arguments: Optional[Mapping[str, Any]]) -> DecodeResult[InputT]:
    """
    Validate a call's argument map against an input model.

    Missing arguments are treated as an empty map. Unknown keys are ignored.

    Args:
        model: Pydantic input model to validate against
        arguments: Raw argument map from the protocol request

    Returns:
        DecodeResult holding either the typed input or the field errors
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        return DecodeResult(errors=[FieldError("arguments", "expected an object")])

    try:
        return DecodeResult(value=model.model_validate(dict(arguments)))
    except ValidationError as e:
        return DecodeResult(errors=[
            FieldError(_field_name(error.get("loc", ())), error.get("msg", "invalid value"))
            for error in e.errors()
        ])
