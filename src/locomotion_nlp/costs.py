"""Cost terms of the motion NLP.

Costs share the constraint life cycle (``update_variables`` before every
evaluation) but return a scalar and its gradient per variable set.
"""

from abc import ABC, abstractmethod

import numpy as np

from .constraints.base import Constraint, is_empty_jacobian
from .geometry import MatVec
from .providers.com_spline import ComSpline
from .variables import OptimizationVariables, VariableSetID


class Cost(ABC):
    """Scalar objective term with gradients per variable set."""

    name = "Cost"

    @abstractmethod
    def update_variables(self, opt_vars: OptimizationVariables) -> None:
        """Push the current variable values into the bound providers."""

    @abstractmethod
    def evaluate_cost(self) -> float:
        """Current cost value."""

    @abstractmethod
    def evaluate_gradient_wrt(self, var_set: VariableSetID) -> np.ndarray:
        """Gradient w.r.t. one variable set, empty if independent of it."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class QuadraticSplineCost(Cost):
    """``x^T M x + v^T x`` in the CoM spline coefficients x."""

    name = "Quadratic Spline Cost"

    def init(self, mat_vec: MatVec, com_motion: ComSpline) -> None:
        n = com_motion.get_total_free_coeff()
        if mat_vec.M.shape != (n, n) or len(mat_vec.v) != n:
            raise ValueError(
                f"Quadratic form of shape {mat_vec.M.shape} does not match "
                f"{n} spline coefficients"
            )
        self._M = mat_vec.M.copy()
        self._v = mat_vec.v.copy()
        self._com_motion = com_motion

    def update_variables(self, opt_vars: OptimizationVariables) -> None:
        self._com_motion.set_optimization_parameters(
            opt_vars.get_variables(self._com_motion.get_id())
        )

    def evaluate_cost(self) -> float:
        x = self._com_motion.get_optimization_parameters()
        return float(x @ self._M @ x + self._v @ x)

    def evaluate_gradient_wrt(self, var_set: VariableSetID) -> np.ndarray:
        if VariableSetID(var_set) is not self._com_motion.get_id():
            return np.zeros(0)
        x = self._com_motion.get_optimization_parameters()
        return (self._M + self._M.T) @ x + self._v


class SoftConstraint(Cost):
    """Penalizes the distance of a constraint's residual outside its bounds.

    ``cost = 0.5 * sum_i w_i * viol_i^2`` where ``viol_i`` is zero inside
    the bound and the distance to the violated bound outside of it.
    """

    def __init__(self, constraint: Constraint, weights: np.ndarray | None = None):
        self._constraint = constraint
        self._weights = None if weights is None else np.asarray(weights, dtype=float)
        self.name = f"Soft {constraint.name}"

    def update_variables(self, opt_vars: OptimizationVariables) -> None:
        self._constraint.update_variables(opt_vars)

    def evaluate_cost(self) -> float:
        viol = self._violation()
        return float(0.5 * viol @ (self._get_weights(len(viol)) * viol))

    def evaluate_gradient_wrt(self, var_set: VariableSetID) -> np.ndarray:
        jac = self._constraint.get_jacobian_with_respect_to(var_set)
        if is_empty_jacobian(jac):
            return np.zeros(0)
        viol = self._violation()
        return jac.T @ (self._get_weights(len(viol)) * viol)

    def _violation(self) -> np.ndarray:
        g = self._constraint.evaluate_constraint()
        bounds = self._constraint.get_bounds()
        lower = np.array([b.lower for b in bounds])
        upper = np.array([b.upper for b in bounds])
        return np.where(g < lower, g - lower, np.where(g > upper, g - upper, 0.0))

    def _get_weights(self, n: int) -> np.ndarray:
        if self._weights is None:
            return np.ones(n)
        if len(self._weights) != n:
            raise ValueError(
                f"{self.name}: {len(self._weights)} weights for {n} constraints"
            )
        return self._weights
