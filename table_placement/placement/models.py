# ==============================================
# Placement Rule Models (Data Classes)
# ==============================================
#
# PURPOSE:
#   Data classes mirroring PD's placement-rule JSON documents.
#   These are what the client sends and what list_groups() returns.
#
# CLASSES:
# --------
# - PeerRole(str, Enum): VOTER, LEADER, FOLLOWER, LEARNER
#
# - RuleGroup (dataclass)
#     id, index, override
#     JSON: {"id", "index", "override"}
#
# - LabelConstraint (dataclass)
#     key, op, values
#     JSON: {"key", "op", "values"}
#
# - PlacementRule (dataclass)
#     group_id, id, index, override, start_key_hex, end_key_hex,
#     role, count, label_constraints, location_labels, isolation_level
#     JSON: {"group_id", "id", "index", "override", "start_key",
#            "end_key", "role", "count", "label_constraints",
#            "location_labels", "isolation_level"}
#
# - GroupBundle (dataclass)
#     id, index, override, rules
#     JSON: {"group_id", "group_index", "group_override", "rules"}
#
#   Every class has:
#     - to_dict() -> dict                 → request body
#     - from_dict(data) -> Self (classmethod) → parse a response
#   from_dict raises DecodeError when the document has the wrong shape.
#
# NOTE:
#   Optional fields are left out of to_dict() when they are falsy,
#   the way PD itself omits empty values.
#
# ==============================================

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, List

from table_placement.errors import DecodeError, EncodingViolation


class PeerRole(str, Enum):
    """Expected role of the peers a rule places."""
    VOTER = "voter"
    LEADER = "leader"
    FOLLOWER = "follower"
    LEARNER = "learner"


def _require(data: Any, key: str, kind, owner: str):
    if not isinstance(data, dict):
        raise DecodeError(f"{owner} must be a JSON object, got {type(data).__name__}")
    if key not in data:
        raise DecodeError(f"{owner} is missing '{key}'")
    value = data[key]
    if not _is_kind(value, kind):
        raise DecodeError(f"{owner}.{key} has type {type(value).__name__}")
    return value


def _optional(data: dict, key: str, kind, default, owner: str):
    value = data.get(key)
    if value is None:
        return default
    if not _is_kind(value, kind):
        raise DecodeError(f"{owner}.{key} has type {type(value).__name__}")
    return value


def _optional_strings(data: dict, key: str, owner: str) -> List[str]:
    values = _optional(data, key, list, [], owner)
    for value in values:
        if not isinstance(value, str):
            raise DecodeError(f"{owner}.{key} holds {type(value).__name__}, expected str")
    return list(values)


def _is_kind(value, kind) -> bool:
    # JSON booleans must not pass as ints
    if kind is int and isinstance(value, bool):
        return False
    return isinstance(value, kind)


@dataclass
class RuleGroup:
    """A namespace that orders a set of rules against other groups."""
    id: str
    index: int = 0
    override: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"id": self.id}
        if self.index:
            data["index"] = self.index
        if self.override:
            data["override"] = self.override
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "RuleGroup":
        group_id = _require(data, "id", str, "rule group")
        return cls(
            id=group_id,
            index=_optional(data, "index", int, 0, "rule group"),
            override=_optional(data, "override", bool, False, "rule group")
        )


@dataclass
class LabelConstraint:
    """Selects stores by label, e.g. engine in [test_engine]."""
    key: str
    op: str
    values: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {}
        if self.key:
            data["key"] = self.key
        if self.op:
            data["op"] = self.op
        if self.values:
            data["values"] = list(self.values)
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "LabelConstraint":
        if not isinstance(data, dict):
            raise DecodeError(f"label constraint must be a JSON object, got {type(data).__name__}")
        return cls(
            key=_optional(data, "key", str, "", "label constraint"),
            op=_optional(data, "op", str, "", "label constraint"),
            values=_optional_strings(data, "values", "label constraint")
        )


@dataclass
class PlacementRule:
    """Binds a hex key range to a replica policy inside a group."""
    group_id: str
    id: str
    start_key_hex: str
    end_key_hex: str
    role: str = PeerRole.VOTER.value
    count: int = 1
    index: int = 0
    override: bool = False
    label_constraints: List[LabelConstraint] = field(default_factory=list)
    location_labels: List[str] = field(default_factory=list)
    isolation_level: str = ""

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "group_id": self.group_id,
            "id": self.id,
        }
        if self.index:
            data["index"] = self.index
        if self.override:
            data["override"] = self.override
        data["start_key"] = self.start_key_hex
        data["end_key"] = self.end_key_hex
        try:
            data["role"] = PeerRole(self.role).value
        except ValueError:
            raise EncodingViolation(f"unknown peer role {self.role!r}") from None
        data["count"] = self.count
        if self.label_constraints:
            data["label_constraints"] = [c.to_dict() for c in self.label_constraints]
        if self.location_labels:
            data["location_labels"] = list(self.location_labels)
        if self.isolation_level:
            data["isolation_level"] = self.isolation_level
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "PlacementRule":
        owner = "rule"
        constraints = _optional(data if isinstance(data, dict) else {}, "label_constraints", list, [], owner)
        return cls(
            group_id=_require(data, "group_id", str, owner),
            id=_require(data, "id", str, owner),
            start_key_hex=_optional(data, "start_key", str, "", owner),
            end_key_hex=_optional(data, "end_key", str, "", owner),
            role=_optional(data, "role", str, PeerRole.VOTER.value, owner),
            count=_optional(data, "count", int, 0, owner),
            index=_optional(data, "index", int, 0, owner),
            override=_optional(data, "override", bool, False, owner),
            label_constraints=[LabelConstraint.from_dict(c) for c in constraints],
            location_labels=_optional_strings(data, "location_labels", owner),
            isolation_level=_optional(data, "isolation_level", str, "", owner)
        )


@dataclass
class GroupBundle:
    """A rule group together with the rules it currently holds."""
    id: str
    index: int = 0
    override: bool = False
    rules: List[PlacementRule] = field(default_factory=list)

    @property
    def group(self) -> RuleGroup:
        return RuleGroup(id=self.id, index=self.index, override=self.override)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group_id": self.id,
            "group_index": self.index,
            "group_override": self.override,
            "rules": [r.to_dict() for r in self.rules],
        }

    @classmethod
    def from_dict(cls, data: Any) -> "GroupBundle":
        owner = "group bundle"
        group_id = _require(data, "group_id", str, owner)
        rules = _optional(data, "rules", list, [], owner)
        return cls(
            id=group_id,
            index=_optional(data, "group_index", int, 0, owner),
            override=_optional(data, "group_override", bool, False, owner),
            rules=[PlacementRule.from_dict(r) for r in rules]
        )
