# core/validation.py
"""
Declarative form validation on top of pydantic models.

A form is an ordinary pydantic model; ``Schema`` wraps it so that callers get
a field -> message map instead of an exception:

    CLASS_SCHEMA = Schema(ClassForm, labels={"name": "Class name"})
    result = CLASS_SCHEMA.validate({"name": "", "grade": 13})
    result.errors  # {"name": "Class name is required", "grade": "..."}

Blank strings and ``None`` are the same thing: both mean "not provided".
Optional fields fall back to their default, required ones report
"<Label> is required".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel, ValidationError


@dataclass
class ValidationResult:
    valid: bool
    errors: Dict[str, str] = field(default_factory=dict)
    cleaned: Dict[str, Any] = field(default_factory=dict)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


class Schema:
    def __init__(
        self,
        model: Type[BaseModel],
        labels: Optional[Mapping[str, str]] = None,
        messages: Optional[Mapping[str, str]] = None,
    ):
        self.model = model
        self.labels = dict(labels or {})
        self.messages = dict(messages or {})

    @property
    def field_names(self) -> List[str]:
        return list(self.model.model_fields)

    def label(self, name: str) -> str:
        if name in self.labels:
            return self.labels[name]
        info = self.model.model_fields.get(name)
        if info is not None and info.title:
            return info.title
        return name.replace("_", " ").capitalize()

    def is_required(self, name: str) -> bool:
        info = self.model.model_fields.get(name)
        return bool(info and info.is_required())

    def defaults(self) -> Dict[str, Any]:
        """Static initial values for a blank form."""
        out: Dict[str, Any] = {}
        for name, info in self.model.model_fields.items():
            if info.is_required():
                out[name] = None
            else:
                out[name] = info.get_default(call_default_factory=True)
        return out

    def normalise(self, candidate: Mapping[str, Any]) -> Dict[str, Any]:
        """Keep known fields, strip strings, drop blanks so defaults apply."""
        out: Dict[str, Any] = {}
        for name in self.field_names:
            value = candidate.get(name)
            if isinstance(value, str):
                value = value.strip()
            if _is_blank(value):
                continue
            out[name] = value
        return out

    def validate(self, candidate: Mapping[str, Any]) -> ValidationResult:
        data = self.normalise(candidate or {})
        try:
            model = self.model.model_validate(data)
        except ValidationError as e:
            return ValidationResult(valid=False, errors=self._errors(e))
        return ValidationResult(valid=True, cleaned=model.model_dump())

    def _errors(self, error: ValidationError) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for err in error.errors():
            loc = err.get("loc") or ("__all__",)
            name = str(loc[0])
            if name in errors:
                continue
            kind = err.get("type")
            if kind == "missing":
                errors[name] = f"{self.label(name)} is required"
            elif kind == "value_error":
                cause = (err.get("ctx") or {}).get("error")
                errors[name] = str(cause) if cause is not None else err["msg"]
            elif name in self.messages:
                errors[name] = self.messages[name]
            else:
                errors[name] = f"{self.label(name)}: {err['msg']}"
        return errors
