from __future__ import annotations

from typing import Literal

CadenceErrorKind = Literal["config", "invariant", "serialization"]


class CadenceError(Exception):
    kind: CadenceErrorKind

    def __init__(self, kind: CadenceErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind

    @classmethod
    def config(cls, message: str) -> ConfigurationError:
        return ConfigurationError(message)

    @classmethod
    def invariant(cls, message: str) -> InvariantError:
        return InvariantError(message)

    @classmethod
    def serialization(cls, message: str) -> SerializationError:
        return SerializationError(message)

    def display_rich(self) -> str:
        return f"error[{self.kind}]: {self}"


class ConfigurationError(CadenceError):
    """A recurrence was described with a missing, unknown or out-of-range option."""

    def __init__(self, message: str) -> None:
        super().__init__("config", message)


class InvariantError(CadenceError):
    """An internal invariant did not hold; a validated spec should never cause this."""

    def __init__(self, message: str) -> None:
        super().__init__("invariant", message)


class SerializationError(CadenceError):
    def __init__(self, message: str) -> None:
        super().__init__("serialization", message)
