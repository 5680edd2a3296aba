"""Linear equality constraints on the CoM spline coefficients."""

import numpy as np
from scipy import sparse

from ..geometry import MatVec
from ..providers.com_spline import ComSpline
from ..variables import EQUALITY_BOUND, Bound
from .base import Constraint


class LinearSplineEqualityConstraint(Constraint):
    """``M @ x + v = 0`` for boundary and junction conditions."""

    def init(self, com_motion: ComSpline, linear_equation: MatVec, name: str) -> None:
        """Bind the spline and the equation rows."""
        if linear_equation.cols != com_motion.get_total_free_coeff():
            raise ValueError(
                f"{name}: equation has {linear_equation.cols} columns, spline has "
                f"{com_motion.get_total_free_coeff()} coefficients"
            )
        self.name = name
        self._com_motion = com_motion
        self._M = sparse.csr_matrix(linear_equation.M)
        self._v = linear_equation.v.copy()

        self._bind(com_motion)
        self._register_jacobian(com_motion, lambda: self._M)

    def evaluate_constraint(self) -> np.ndarray:
        """M @ x + v for the current coefficients."""
        x = self._com_motion.get_optimization_parameters()
        return self._M @ x + self._v

    def get_bounds(self) -> list[Bound]:
        """Equality for every row."""
        return [EQUALITY_BOUND] * len(self._v)
