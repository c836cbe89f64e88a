"""Cart Constraint Validator — checks a cart's item set against item constraints.

Invariants:
    - Presence is (item id, item type); quantity and duplicate rows do not matter
    - Constraints are read fresh per call from both endpoint directions
    - Violations are returned as data ({"valid", "violations"}), never raised
"""

import logging
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enforce_constraints import (
    CartCheckResult, build_present_set, evaluate_cart_constraints,
)
from app.schemas.constraint import CartItemIn
from app.services.constraint_registry import ConstraintRegistry

logger = logging.getLogger(__name__)


async def validate_item_constraints(
    db: AsyncSession, items: Sequence[CartItemIn],
) -> CartCheckResult:
    present = build_present_set((item.item_id, item.item_type) for item in items)
    constraints = await ConstraintRegistry(db).constraints_touching(present)
    result = evaluate_cart_constraints(present, constraints)
    if not result.valid:
        logger.info(
            f"Cart blocked by {len(result.violations)} constraint(s)",
            extra={"constraint_id": result.violations[0].constraint_id},
        )
    return result
