"""Exceptions raised by the ranking core."""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class ValidationError(ValueError):
    """Field-scoped validation failure raised at the point of mutation."""

    def __init__(self, errors: Mapping[str, Sequence[str]]) -> None:
        self.errors: dict[str, list[str]] = {
            field: list(messages) for field, messages in errors.items() if messages
        }
        super().__init__(self.full_message())

    def full_message(self) -> str:
        return "; ".join(
            f"{field} {message}" for field, messages in self.errors.items() for message in messages
        )

    def messages_for(self, field: str) -> list[str]:
        return list(self.errors.get(field, []))


class FieldErrors:
    """Accumulates field errors and raises them together."""

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = {}

    def add(self, field: str, message: str) -> None:
        self._errors.setdefault(field, []).append(message)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def raise_if_any(self) -> None:
        if self._errors:
            raise ValidationError(self._errors)


class ListSignalError(ValueError):
    """A list carries quality-signal data the weight calculator cannot use."""

    def __init__(self, list_id: int, message: str) -> None:
        self.list_id = list_id
        super().__init__(f"list_id={list_id}: {message}")


class ConfigurationNotFoundError(LookupError):
    """A recalculation targeted a configuration id that does not exist."""

    def __init__(self, configuration_id: int) -> None:
        self.configuration_id = configuration_id
        super().__init__(f"RankingConfiguration id={configuration_id} not found")


__all__ = [
    "ConfigurationNotFoundError",
    "FieldErrors",
    "ListSignalError",
    "ValidationError",
]
