"""Common interface of the objects that own optimization variables."""

from abc import ABC, abstractmethod

import numpy as np

from ..variables import VariableSetID, VariableSet


class OptimizationVariableProvider(ABC):
    """Owns one named block of the global optimization-variable vector.

    Providers translate between the flat coefficient block the solver
    works with and the domain quantities (CoM motion, footholds, loads,
    center of pressure) the constraints query.
    """

    def __init__(self, var_id: VariableSetID):
        self._id = VariableSetID(var_id)

    def get_id(self) -> VariableSetID:
        """Identifier of the variable block this provider owns."""
        return self._id

    @abstractmethod
    def get_optimization_parameters(self) -> np.ndarray:
        """Copy of the current coefficient block."""

    @abstractmethod
    def set_optimization_parameters(self, x: np.ndarray) -> None:
        """Replace the coefficient block with the given values."""

    def get_opt_var_count(self) -> int:
        """Number of variables in the block."""
        return len(self.get_optimization_parameters())

    def to_variable_set(self, bounds=None) -> VariableSet:
        """Current block as a variable set for the NLP."""
        return VariableSet(self.get_optimization_parameters(), self._id, bounds)

    def _checked(self, x: np.ndarray, expected: int) -> np.ndarray:
        """Flatten x and check its length."""
        x = np.array(x, dtype=float).ravel()
        if len(x) != expected:
            raise ValueError(
                f"{self._id.value}: expected {expected} parameters, got {len(x)}"
            )
        return x
