"""Record and schema types exchanged between codecs, the engine and the store."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Final

type Scalar = str | int | float | bool | None
type Record = dict[str, object]


class _NoDefault(Enum):
    NO_DEFAULT = "no_default"

    def __repr__(self) -> str:
        return "NO_DEFAULT"


NO_DEFAULT: Final = _NoDefault.NO_DEFAULT

type DefaultValue = object | Callable[[], object]

TEXT_TYPES: Final[frozenset[str]] = frozenset({"text", "string"})


@dataclass(frozen=True, slots=True, kw_only=True)
class FieldDefinition:
    """Storage-side description of one field."""

    type: str
    unique: bool = False
    defaults_to: DefaultValue | _NoDefault = NO_DEFAULT

    @property
    def has_default(self) -> bool:
        return self.defaults_to is not NO_DEFAULT

    @property
    def is_text(self) -> bool:
        return self.type in TEXT_TYPES

    def default_value(self) -> object:
        """Return the default, invoking it when it is a producer."""

        if self.defaults_to is NO_DEFAULT:
            raise ValueError("Field has no default")
        if callable(self.defaults_to):
            return self.defaults_to()
        return self.defaults_to


type Schema = Mapping[str, FieldDefinition]
