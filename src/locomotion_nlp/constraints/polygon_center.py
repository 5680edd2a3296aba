"""Pull the CoP toward the center of the support polygon."""

import numpy as np
from scipy import sparse

from ..providers.ee_load import EndeffectorLoad
from ..providers.ee_motion import EndeffectorsMotion
from ..variables import Bound
from .base import Constraint


class PolygonCenterConstraint(Constraint):
    """Equal load on all m standing end-effectors of a segment.

    ``sum_ee (lambda_ee - 1/m)^2 = 0`` is written as
    ``g = sum_ee (lambda_ee^2 - 2 lambda_ee / m)`` with the constant moved
    into the bound ``[-1/m, -1/m]``. Mostly used as a soft constraint.
    """

    name = "Polygon Center"

    def init(self, ee_load: EndeffectorLoad, ee_motion: EndeffectorsMotion) -> None:
        """Bind the loads and store the standing legs of every segment."""
        self._ee_load = ee_load
        self._bind(ee_load)

        # standing end-effectors per segment, evaluated at the segment start
        self._stance = [
            [c.ee for c in ee_motion.get_contacts(ee_load.get_t_start(k))]
            for k in range(ee_load.get_number_of_segments())
        ]
        self._register_jacobian(ee_load, self._jacobian_wrt_lambdas)

    def evaluate_constraint(self) -> np.ndarray:
        """Squared-load expression of every segment."""
        g = np.zeros(len(self._stance))
        for k, stance in enumerate(self._stance):
            lambda_k = self._ee_load.get_load_values_idx(k)
            m = len(stance)
            for ee in stance:
                g[k] += lambda_k[ee] ** 2 - 2.0 / m * lambda_k[ee]
        return g

    def get_bounds(self) -> list[Bound]:
        """-1/m per segment, zero in flight."""
        bounds = []
        for stance in self._stance:
            center = -1.0 / len(stance) if stance else 0.0
            bounds.append(Bound(center, center))
        return bounds

    def _jacobian_wrt_lambdas(self) -> sparse.csr_matrix:
        """Derivative of the squared-load expression."""
        jac = sparse.lil_matrix((len(self._stance), self._ee_load.get_opt_var_count()))
        for k, stance in enumerate(self._stance):
            lambda_k = self._ee_load.get_load_values_idx(k)
            m = len(stance)
            for ee in stance:
                jac[k, self._ee_load.index_discrete(k, ee)] = 2.0 * lambda_k[ee] - 2.0 / m
        return jac.tocsr()
