"""Load fractions of every segment sum to one."""

import numpy as np
from scipy import sparse

from ..providers.ee_load import EndeffectorLoad
from ..variables import Bound
from .base import Constraint


class ConvexityConstraint(Constraint):
    """``sum_ee lambda(ee, k) = 1`` for every load segment k.

    The Jacobian is a selection matrix of ones that does not depend on
    the variable values, so it is built once in ``init`` and returned
    unchanged afterward.
    """

    name = "Convexity"

    def init(self, ee_load: EndeffectorLoad) -> None:
        """Bind the loads and build the constant Jacobian."""
        self._ee_load = ee_load
        self._bind(ee_load)

        m = ee_load.get_number_of_segments()
        n = ee_load.get_opt_var_count()
        jac = sparse.lil_matrix((m, n))
        for k in range(m):
            for ee in ee_load.get_load_values_idx(k):
                jac[k, ee_load.index_discrete(k, ee)] = 1.0
        self._jac = jac.tocsr()

        self._register_jacobian(ee_load, lambda: self._jac)

    def evaluate_constraint(self) -> np.ndarray:
        """Sum of the loads of every segment."""
        g = np.zeros(self._ee_load.get_number_of_segments())
        for k in range(len(g)):
            sum_k = 0.0
            for lambda_ee in self._ee_load.get_load_values_idx(k).values():
                sum_k += lambda_ee
            g[k] = sum_k
        return g

    def get_bounds(self) -> list[Bound]:
        """Sum equal to one for every segment."""
        return [Bound(1.0, 1.0)] * self._ee_load.get_number_of_segments()
