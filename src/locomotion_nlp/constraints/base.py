"""Interface between constraints and the NLP solver.

A constraint is bound to its providers once in ``init``. Every solver
iteration then calls ``update_variables`` with the current global
variables before any of ``evaluate_constraint``, ``get_bounds`` or
``get_jacobian_with_respect_to``.
"""

from abc import ABC, abstractmethod
from typing import Callable

import numpy as np
from scipy import sparse

from ..providers.base import OptimizationVariableProvider
from ..variables import Bound, OptimizationVariables, VariableSetID

JacobianBuilder = Callable[[], sparse.csr_matrix]


def empty_jacobian() -> sparse.csr_matrix:
    """0x0 matrix returned for variable sets a constraint does not depend on."""
    return sparse.csr_matrix((0, 0))


def is_empty_jacobian(jac: sparse.spmatrix) -> bool:
    """True for the 0x0 no-dependency Jacobian."""
    return jac.shape == (0, 0)


class Constraint(ABC):
    """Residual g(x) with bounds and per-variable-set Jacobians."""

    name = "Constraint"

    def __init__(self) -> None:
        self._providers: list[OptimizationVariableProvider] = []
        self._jacobian_builders: dict[VariableSetID, JacobianBuilder] = {}

    def update_variables(self, opt_vars: OptimizationVariables) -> None:
        """Push the current values of every bound provider's block."""
        for provider in self._providers:
            provider.set_optimization_parameters(
                opt_vars.get_variables(provider.get_id())
            )

    @abstractmethod
    def evaluate_constraint(self) -> np.ndarray:
        """Residual vector g."""

    @abstractmethod
    def get_bounds(self) -> list[Bound]:
        """One bound per entry of g."""

    def get_jacobian_with_respect_to(self, var_set: VariableSetID) -> sparse.csr_matrix:
        """Jacobian of g w.r.t. one variable set.

        Returns:
            Sparse matrix of shape (len(g), variable count), or a 0x0 matrix
            if g does not depend on that set.
        """
        builder = self._jacobian_builders.get(VariableSetID(var_set))
        if builder is None:
            return empty_jacobian()
        return builder()

    def get_number_of_constraints(self) -> int:
        """Length of g."""
        return len(self.get_bounds())

    def _bind(self, *providers: OptimizationVariableProvider) -> None:
        """Set the providers refreshed by update_variables."""
        self._providers = list(providers)

    def _register_jacobian(
        self,
        provider: OptimizationVariableProvider,
        builder: JacobianBuilder,
    ) -> None:
        """Use builder for the Jacobian w.r.t. the provider's block."""
        self._jacobian_builders[provider.get_id()] = builder

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def insert_row(jac: sparse.lil_matrix, row: int, values: np.ndarray) -> None:
    """Write the non-zeros of a dense row into a sparse matrix."""
    cols = np.flatnonzero(values)
    if cols.size:
        jac[row, cols] = values[cols]
