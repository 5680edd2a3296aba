"""Optimization variable sets and bounds.

The global variable vector seen by the solver is the concatenation of
named variable sets, one per provider. Each set's column range is
resolved once when it is added, so constraints and the NLP address
blocks by identifier without string comparisons.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class VariableSetID(str, Enum):
    """Identifiers of the variable blocks owned by the providers."""

    COM_MOTION = "motion_coeff"
    EE_MOTION = "footholds"
    EE_LOAD = "convexity"
    COP = "cop"


@dataclass(frozen=True)
class Bound:
    """Closed interval [lower, upper]; equalities use lower == upper."""

    lower: float = -np.inf
    upper: float = np.inf

    def __add__(self, offset: float) -> "Bound":
        return Bound(self.lower + offset, self.upper + offset)

    def __sub__(self, offset: float) -> "Bound":
        return Bound(self.lower - offset, self.upper - offset)

    @property
    def is_equality(self) -> bool:
        return self.lower == self.upper


EQUALITY_BOUND = Bound(0.0, 0.0)
NO_BOUND = Bound(-np.inf, np.inf)


class VariableSet:
    """Values and bounds of one named block of optimization variables."""

    def __init__(
        self,
        values: np.ndarray,
        var_id: VariableSetID,
        bounds: Bound | list[Bound] | None = None,
    ):
        """Initialize variable set.

        Args:
            values: Starting values of the variables.
            var_id: Identifier of the block.
            bounds: A single bound applied to every variable, one bound per
                variable, or None for unbounded.
        """
        self.values = np.array(values, dtype=float).ravel()
        self.id = VariableSetID(var_id)

        if bounds is None:
            bounds = NO_BOUND
        if isinstance(bounds, Bound):
            bounds = [bounds] * len(self.values)
        if len(bounds) != len(self.values):
            raise ValueError(
                f"{self.id.value}: {len(bounds)} bounds for "
                f"{len(self.values)} variables"
            )
        self.bounds = list(bounds)

    def __len__(self) -> int:
        return len(self.values)


class OptimizationVariables:
    """Ordered collection of variable sets forming the global vector."""

    def __init__(self) -> None:
        self._sets: dict[VariableSetID, VariableSet] = {}
        self._ranges: dict[VariableSetID, slice] = {}

    def add_variable_set(self, var_set: VariableSet) -> None:
        if var_set.id in self._sets:
            raise ValueError(f"Variable set {var_set.id.value} already added")
        start = self.get_opt_var_count()
        self._ranges[var_set.id] = slice(start, start + len(var_set))
        self._sets[var_set.id] = var_set

    def get_var_sets(self) -> list[VariableSet]:
        return list(self._sets.values())

    def column_range(self, var_id: VariableSetID) -> slice:
        return self._ranges[self._lookup(var_id).id]

    def get_variables(self, var_id: VariableSetID) -> np.ndarray:
        """Copy of the current values of one block."""
        return self._lookup(var_id).values.copy()

    def set_variables(self, var_id: VariableSetID, values: np.ndarray) -> None:
        var_set = self._lookup(var_id)
        values = np.asarray(values, dtype=float).ravel()
        if len(values) != len(var_set):
            raise ValueError(
                f"{var_set.id.value}: expected {len(var_set)} values, "
                f"got {len(values)}"
            )
        var_set.values = values.copy()

    def set_all_coefficients(self, x: np.ndarray) -> None:
        """Distribute a full solver vector over the variable sets."""
        x = np.asarray(x, dtype=float).ravel()
        if len(x) != self.get_opt_var_count():
            raise ValueError(
                f"Expected {self.get_opt_var_count()} variables, got {len(x)}"
            )
        for var_id, cols in self._ranges.items():
            self._sets[var_id].values = x[cols].copy()

    def get_optimization_variables(self) -> np.ndarray:
        if not self._sets:
            return np.zeros(0)
        return np.concatenate([s.values for s in self._sets.values()])

    def get_opt_var_count(self) -> int:
        return sum(len(s) for s in self._sets.values())

    def get_bounds(self) -> list[Bound]:
        bounds: list[Bound] = []
        for var_set in self._sets.values():
            bounds.extend(var_set.bounds)
        return bounds

    def _lookup(self, var_id: VariableSetID) -> VariableSet:
        try:
            return self._sets[VariableSetID(var_id)]
        except (KeyError, ValueError) as err:
            raise KeyError(f"Unknown variable set: {var_id!r}") from err
