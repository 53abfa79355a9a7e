"""Rule-based validation shared by every persisted entity.

Entities describe their rules in ``validate``; a single stateless
:class:`ValidationEngine` applies them and hands back groups of
:class:`Violation` objects. The :class:`ValidatedModel` mixin turns those
groups into user-facing messages and provides allow-listed binding and
explicit serialization so no entity ever exposes or accepts fields it does not
declare.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Annotated, Any, Callable, ClassVar, Iterable, Literal, Mapping, Optional, Sequence

from pydantic import Field, TypeAdapter, ValidationError


@dataclass(frozen=True)
class Violation:
    """A single failed rule, with the message shown to the operator."""

    field: str
    rule: str
    message: str


class Constraint:
    """Base class for a rule applied to one field value."""

    rule = "constraint"

    def __init__(self, message: str) -> None:
        self.message = message

    def is_satisfied(self, value: Any) -> bool:  # pragma: no cover - abstract
        raise NotImplementedError


class NotNull(Constraint):
    rule = "not_null"

    def is_satisfied(self, value: Any) -> bool:
        return value is not None


class Positive(Constraint):
    """Value must be a number strictly greater than zero; ``None`` is accepted.

    Booleans are not numbers here even though pydantic would coerce them.
    """

    rule = "positive"
    _adapter: ClassVar[TypeAdapter] = TypeAdapter(Annotated[float, Field(gt=0)])

    def is_satisfied(self, value: Any) -> bool:
        if value is None:
            return True
        if isinstance(value, bool):
            return False
        try:
            self._adapter.validate_python(value)
        except ValidationError:
            return False
        return True


class Choice(Constraint):
    """Value must be one of ``choices``, optionally after coercion."""

    rule = "choice"

    def __init__(
        self,
        choices: Iterable[Any],
        message: str,
        *,
        coerce: Optional[Callable[[Any], Any]] = None,
    ) -> None:
        super().__init__(message)
        self.choices = tuple(choices)
        self.coerce = coerce
        self._adapter = TypeAdapter(Literal[self.choices]) if self.choices else None

    def is_satisfied(self, value: Any) -> bool:
        if self._adapter is None:
            return False
        if self.coerce is not None:
            try:
                value = self.coerce(value)
            except (TypeError, ValueError):
                return False
        try:
            self._adapter.validate_python(value)
        except ValidationError:
            return False
        return True


class ValidationEngine:
    """Apply constraints to values. Holds no state between calls."""

    def validate(self, field: str, value: Any, constraints: Sequence[Constraint]) -> list[Violation]:
        return [
            Violation(field=field, rule=constraint.rule, message=constraint.message)
            for constraint in constraints
            if not constraint.is_satisfied(value)
        ]


default_engine = ValidationEngine()


class ValidatedModel:
    """Mixin giving entities validation, binding and serialization.

    Subclasses declare ``bindable_fields`` (what external input may set) and
    ``serializable_fields`` (what ``to_dict`` exposes) and implement
    ``validate``.
    """

    bindable_fields: ClassVar[tuple[str, ...]] = ()
    serializable_fields: ClassVar[tuple[str, ...]] = ()

    def validate(self, engine: ValidationEngine) -> list[list[Violation]]:
        raise NotImplementedError

    def is_valid(self, engine: Optional[ValidationEngine] = None) -> bool:
        """Run every rule group and refresh :attr:`messages`.

        Messages are recomputed on each call, so repeated calls never
        accumulate duplicates. Messages added through :meth:`add_message`
        are discarded as well.
        """

        groups = self.validate(engine or default_engine)
        messages = [violation.message for group in groups for violation in group]
        self._validation_messages = messages
        return not any(groups)

    @property
    def messages(self) -> list[str]:
        return list(getattr(self, "_validation_messages", []))

    def add_message(self, message: str) -> None:
        self._validation_messages = [*self.messages, message]

    def add_messages(self, messages: Iterable[str]) -> None:
        for message in messages:
            self.add_message(message)

    def field_setters(self) -> dict[str, Callable[[Any], None]]:
        """Return the setter used for each bindable field.

        Override to coerce individual values; the default assigns as-is.
        """

        return {name: partial(setattr, self, name) for name in self.bindable_fields}

    def bind(self, values: Mapping[str, Any]) -> None:
        setters = self.field_setters()
        for key, value in values.items():
            setter = setters.get(key)
            if setter is not None:
                setter(value)

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.serializable_fields}
