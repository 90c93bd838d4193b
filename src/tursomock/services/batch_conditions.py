"""Decide whether a batch step runs, given the outcomes of earlier steps."""

from __future__ import annotations

from tursomock.domain.models import (
    AndCondition,
    Condition,
    IsAutocommitCondition,
    NotCondition,
    OkCondition,
    OrCondition,
    UnknownCondition,
)

# One entry per processed step: True succeeded, False failed, None skipped.
StepOutcomes = list[bool | None]


def evaluate_condition(condition: Condition | None, outcomes: StepOutcomes) -> bool:
    """Evaluate *condition* against the batch-local step outcomes.

    Every branch of ``and``/``or`` is evaluated. There are no nested
    transactions, so ``is_autocommit`` always holds. Unknown condition kinds
    are treated as satisfied.
    """
    if condition is None:
        return True
    if isinstance(condition, OkCondition):
        return 0 <= condition.step < len(outcomes) and outcomes[condition.step] is True
    if isinstance(condition, NotCondition):
        return not evaluate_condition(condition.cond, outcomes)
    if isinstance(condition, AndCondition):
        return all([evaluate_condition(c, outcomes) for c in condition.conds])
    if isinstance(condition, OrCondition):
        return any([evaluate_condition(c, outcomes) for c in condition.conds])
    if isinstance(condition, IsAutocommitCondition):
        return True
    if isinstance(condition, UnknownCondition):
        return True
    raise TypeError(f"Unhandled condition type: {type(condition).__name__}")
