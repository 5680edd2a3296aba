"""Center of pressure equals the load-weighted combination of contacts."""

import numpy as np
from scipy import sparse

from ..geometry import DIM2D, DIMS_2D
from ..providers.cop import CenterOfPressure
from ..providers.ee_load import EndeffectorLoad
from ..providers.ee_motion import EndeffectorsMotion
from ..timing import build_time_grid
from ..variables import EQUALITY_BOUND, Bound
from .base import Constraint, insert_row


class SupportAreaConstraint(Constraint):
    """``sum_ee lambda(ee,t) * p_ee_xy(t) - cop(t) = 0`` at every sample.

    Together with the convexity constraint (loads sum to one) and the
    contact load constraint (no load on swinging legs) this keeps the
    CoP inside the convex hull of the current contacts.
    """

    name = "Support Area"

    def init(
        self,
        ee_motion: EndeffectorsMotion,
        ee_load: EndeffectorLoad,
        cop: CenterOfPressure,
        total_time: float,
        dt: float,
    ) -> None:
        self._ee_motion = ee_motion
        self._ee_load = ee_load
        self._cop = cop
        self._dts = build_time_grid(total_time, dt)

        self._bind(ee_motion, ee_load, cop)
        self._register_jacobian(cop, self._jacobian_wrt_cop)
        self._register_jacobian(ee_motion, self._jacobian_wrt_contacts)
        self._register_jacobian(ee_load, self._jacobian_wrt_lambdas)

    def evaluate_constraint(self) -> np.ndarray:
        """Weighted contacts minus CoP, two rows per sample."""
        g = np.zeros(len(self._dts) * DIM2D)
        for k, t in enumerate(self._dts):
            convex_contacts = np.zeros(DIM2D)
            lambda_k = self._ee_load.get_load_values(t)
            for contact in self._ee_motion.get_contacts(t):
                convex_contacts += lambda_k[contact.ee] * contact.p[:DIM2D]
            g[DIM2D * k:DIM2D * (k + 1)] = convex_contacts - self._cop.get_cop(t)
        return g

    def get_bounds(self) -> list[Bound]:
        """Equality for every row."""
        return [EQUALITY_BOUND] * (len(self._dts) * DIM2D)

    def _jacobian_wrt_lambdas(self) -> sparse.csr_matrix:
        """Contact positions in the columns of their loads."""
        jac = sparse.lil_matrix(
            (self.get_number_of_constraints(), self._ee_load.get_opt_var_count())
        )
        row = 0
        for t in self._dts:
            for contact in self._ee_motion.get_contacts(t):
                idx = self._ee_load.index(t, contact.ee)
                for dim in DIMS_2D:
                    jac[row + dim, idx] = contact.p[dim]
            row += DIM2D
        return jac.tocsr()

    def _jacobian_wrt_contacts(self) -> sparse.csr_matrix:
        """Loads in the columns of the free contacts."""
        jac = sparse.lil_matrix(
            (self.get_number_of_constraints(), self._ee_motion.get_opt_var_count())
        )
        row = 0
        for t in self._dts:
            lambda_k = self._ee_load.get_load_values(t)
            for contact in self._ee_motion.get_contacts(t):
                if contact.is_fixed:
                    continue
                for dim in DIMS_2D:
                    idx = self._ee_motion.index(contact.ee, contact.id, dim)
                    jac[row + dim, idx] = lambda_k[contact.ee]
            row += DIM2D
        return jac.tocsr()

    def _jacobian_wrt_cop(self) -> sparse.csr_matrix:
        """Negated CoP selection rows."""
        jac = sparse.lil_matrix(
            (self.get_number_of_constraints(), self._cop.get_opt_var_count())
        )
        row = 0
        for t in self._dts:
            for dim in DIMS_2D:
                insert_row(jac, row, -self._cop.get_jacobian_wrt_cop(t, dim))
                row += 1
        return jac.tocsr()
