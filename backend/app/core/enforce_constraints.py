"""Cart Constraint Enforcement — evaluates a cart's item set against item constraints.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - MUTUALLY_EXCLUSIVE: violation iff BOTH endpoints are present (symmetric)
    - REQUIRES: violation iff target present AND related absent (directional)
    - Presence is decided on live (item id, item type) keys; cached display names
      only decorate default messages

Design Decisions:
    - Constraints deduplicated by id: the bidirectional fetch can surface a row twice
    - Violations carry the constraint id so admins can trace a blocked cart
"""

from dataclasses import dataclass, field
from typing import Iterable

from app.core.domain_types import ConstraintType, ItemKey, ItemType


@dataclass(frozen=True)
class ConstraintSnapshot:
    """Read-only copy of an ItemConstraint row."""
    id: str
    target_item_id: str
    target_item_type: ItemType
    constraint_type: ConstraintType
    related_item_id: str
    related_item_type: ItemType
    message: str | None = None
    target_item_name: str | None = None
    related_item_name: str | None = None

    @property
    def target_key(self) -> ItemKey:
        return (self.target_item_id, self.target_item_type)

    @property
    def related_key(self) -> ItemKey:
        return (self.related_item_id, self.related_item_type)


@dataclass(frozen=True)
class ConstraintViolation:
    message: str
    constraint_id: str

    def to_dict(self) -> dict:
        return {"message": self.message, "constraintId": self.constraint_id}


@dataclass
class CartCheckResult:
    violations: list[ConstraintViolation] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "violations": [v.to_dict() for v in self.violations],
        }


def build_present_set(items: Iterable[tuple[str, ItemType]]) -> set[ItemKey]:
    """Collapse cart rows into the set of (item id, item type) present."""
    return {(str(item_id), ItemType(item_type)) for item_id, item_type in items}


def default_message(constraint: ConstraintSnapshot) -> str:
    target = constraint.target_item_name or constraint.target_item_id
    related = constraint.related_item_name or constraint.related_item_id
    if constraint.constraint_type == ConstraintType.MUTUALLY_EXCLUSIVE:
        return f'"{target}" and "{related}" cannot be purchased together'
    return f'"{target}" requires "{related}"'


def is_violated(constraint: ConstraintSnapshot, present: set[ItemKey]) -> bool:
    target_present = constraint.target_key in present
    related_present = constraint.related_key in present
    if constraint.constraint_type == ConstraintType.MUTUALLY_EXCLUSIVE:
        return target_present and related_present
    if constraint.constraint_type == ConstraintType.REQUIRES:
        return target_present and not related_present
    return False


def evaluate_cart_constraints(
    present: set[ItemKey], constraints: Iterable[ConstraintSnapshot],
) -> CartCheckResult:
    """Collect one violation per violated constraint, in input order."""
    result = CartCheckResult()
    seen: set[str] = set()
    for constraint in constraints:
        if constraint.id in seen:
            continue
        seen.add(constraint.id)
        if is_violated(constraint, present):
            result.violations.append(ConstraintViolation(
                message=constraint.message or default_message(constraint),
                constraint_id=constraint.id,
            ))
    return result
