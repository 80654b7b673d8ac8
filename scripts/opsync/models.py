"""Record shapes shared by the Airtable tables and the local store.

Each entity has a "new" shape, decoded from Airtable fields, and a row shape
that adds the local id and the Airtable record linkage.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Optional


class DecodeError(ValueError):
    """A remote field value could not be converted to the entity's type."""


def _decode_str(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise TypeError(f"expected text, got {type(value).__name__}")


def _decode_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    raise TypeError(f"expected checkbox, got {type(value).__name__}")


def _decode_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError("expected number, got bool")
    if isinstance(value, float) and not value.is_integer():
        raise TypeError(f"expected whole number, got {value}")
    return int(value)


def _decode_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError("expected number, got bool")
    return float(value)


def _decode_str_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise TypeError(f"expected list, got {type(value).__name__}")
    return [_decode_str(v) for v in value]


_DECODERS = {
    "str": _decode_str,
    "bool": _decode_bool,
    "int": _decode_int,
    "float": _decode_float,
    "list[str]": _decode_str_list,
}


def decode_fields(cls, fields: dict[str, Any]):
    """Build ``cls`` from an Airtable field map.

    Fields that are absent (or null) keep their dataclass default; unknown
    fields are ignored. A value of the wrong type raises DecodeError.
    """
    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        value = fields.get(f.name)
        if value is None:
            continue
        decoder = _DECODERS[f.type]
        try:
            kwargs[f.name] = decoder(value)
        except (TypeError, ValueError) as exc:
            raise DecodeError(
                f"{cls.__name__}.{f.name}: cannot decode {value!r}: {exc}"
            ) from exc
    return cls(**kwargs)


@dataclass
class NewSoftwareVendor:
    name: str = ""
    status: str = ""
    description: str = ""
    website: str = ""
    has_okta_integration: bool = False
    used_purely_for_api: bool = False
    pay_as_you_go: bool = False
    pay_as_you_go_pricing_description: str = ""
    software_licenses: bool = False
    cost_per_user_per_month: float = 0.0
    users: int = 0
    flat_cost_per_month: float = 0.0
    total_cost_per_month: float = 0.0
    groups: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.name

    @classmethod
    def from_airtable_fields(cls, fields: dict[str, Any]) -> "NewSoftwareVendor":
        return decode_fields(cls, fields)


@dataclass
class SoftwareVendor(NewSoftwareVendor):
    id: int = 0
    airtable_record_id: str = ""


@dataclass
class NewGroup:
    name: str = ""
    description: str = ""
    aliases: list[str] = field(default_factory=list)
    members: list[str] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.name

    @classmethod
    def from_airtable_fields(cls, fields: dict[str, Any]) -> "NewGroup":
        return decode_fields(cls, fields)


@dataclass
class Group(NewGroup):
    id: int = 0
    airtable_record_id: str = ""


def row_from_mapping(cls, row: Optional[dict[str, Any]]):
    """Build a row dataclass from a database row, ignoring extra columns."""
    if row is None:
        return None
    names = {f.name for f in dataclasses.fields(cls)}
    values = {k: v for k, v in row.items() if k in names and v is not None}
    return cls(**values)


def column_values(entity, cls) -> dict[str, Any]:
    """Column name -> value for the fields ``cls`` declares."""
    return {f.name: getattr(entity, f.name) for f in dataclasses.fields(cls)}
