"""Only end-effectors in contact may carry load."""

import numpy as np
from scipy import sparse

from ..providers.ee_load import EndeffectorLoad
from ..providers.ee_motion import EndeffectorsMotion
from ..variables import Bound
from .base import Constraint


class ContactLoadConstraint(Constraint):
    """``0 <= lambda(ee, k) <= 1`` if ee stands at the start of segment k,
    ``lambda(ee, k) = 0`` otherwise.

    The contact schedule is fixed, so bounds and the identity Jacobian are
    built once in ``init``.
    """

    name = "Contact Load"

    def init(self, ee_motion: EndeffectorsMotion, ee_load: EndeffectorLoad) -> None:
        """Build bounds and Jacobian from the contact schedule."""
        self._ee_load = ee_load
        self._bind(ee_load)

        rows, cols = [], []
        self._bounds = []
        for k in range(ee_load.get_number_of_segments()):
            t = ee_load.get_t_start(k)
            in_contact = {c.ee for c in ee_motion.get_contacts(t)}
            for ee in ee_load.get_load_values_idx(k):
                upper = 1.0 if ee in in_contact else 0.0
                self._bounds.append(Bound(0.0, upper))
                rows.append(len(rows))
                cols.append(ee_load.index_discrete(k, ee))

        shape = (len(rows), ee_load.get_opt_var_count())
        self._jac = sparse.csr_matrix((np.ones(len(rows)), (rows, cols)), shape=shape)
        self._register_jacobian(ee_load, lambda: self._jac)

    def evaluate_constraint(self) -> np.ndarray:
        """Every lambda, segment-major."""
        g = []
        for k in range(self._ee_load.get_number_of_segments()):
            g.extend(self._ee_load.get_load_values_idx(k).values())
        return np.array(g)

    def get_bounds(self) -> list[Bound]:
        """[0, 1] while standing, [0, 0] while swinging."""
        return list(self._bounds)
