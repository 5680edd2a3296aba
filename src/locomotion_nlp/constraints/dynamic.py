"""Linear inverted pendulum dynamics of the CoM.

With the CoM at constant height h, horizontal acceleration is driven by
the offset between CoM and center of pressure,

    a_com = g / h * (p_com - p_cop),

where the CoP is the load-weighted combination of the current contacts,
``p_cop = sum_ee lambda(ee, t) * p_ee``. The residual is sampled every dt
and constrained to zero.
"""

import numpy as np
from scipy import sparse
from scipy.constants import g as STANDARD_GRAVITY

from ..geometry import DIM2D, DIMS_2D
from ..providers.com_spline import ComSpline, MotionDerivative
from ..providers.ee_load import EndeffectorLoad
from ..providers.ee_motion import EndeffectorsMotion
from ..timing import build_time_grid
from ..variables import EQUALITY_BOUND, Bound
from .base import Constraint, insert_row


class DynamicConstraint(Constraint):
    """Linear inverted pendulum residual sampled every dt."""

    name = "Dynamic"

    def init(
        self,
        com_motion: ComSpline,
        ee_motion: EndeffectorsMotion,
        ee_load: EndeffectorLoad,
        total_time: float,
        dt: float,
        walking_height: float,
    ) -> None:
        """Bind providers and sample times.

        Args:
            com_motion: CoM spline.
            ee_motion: Contact schedule and footholds.
            ee_load: Load distribution.
            total_time: Horizon [s].
            dt: Sampling interval [s].
            walking_height: Constant CoM height h [m].
        """
        if walking_height <= 0.0:
            raise ValueError(f"walking_height must be positive, got {walking_height}")
        self._com_motion = com_motion
        self._ee_motion = ee_motion
        self._ee_load = ee_load
        self._omega_sq = STANDARD_GRAVITY / walking_height
        self._dts = build_time_grid(total_time, dt)

        self._bind(com_motion, ee_motion, ee_load)
        self._register_jacobian(com_motion, self._jacobian_wrt_motion)
        self._register_jacobian(ee_motion, self._jacobian_wrt_contacts)
        self._register_jacobian(ee_load, self._jacobian_wrt_lambdas)

    def evaluate_constraint(self) -> np.ndarray:
        """Pendulum residual, two rows per sample."""
        g = np.zeros(len(self._dts) * DIM2D)
        for k, t in enumerate(self._dts):
            com = self._com_motion.get_com(t)
            lambda_k = self._ee_load.get_load_values(t)
            cop = np.zeros(DIM2D)
            for contact in self._ee_motion.get_contacts(t):
                cop += lambda_k[contact.ee] * contact.p[:DIM2D]
            g[DIM2D * k:DIM2D * (k + 1)] = com.a - self._omega_sq * (com.p - cop)
        return g

    def get_bounds(self) -> list[Bound]:
        """Equality for every row."""
        return [EQUALITY_BOUND] * (len(self._dts) * DIM2D)

    def _jacobian_wrt_motion(self) -> sparse.csr_matrix:
        """Acceleration minus scaled position rows of the spline."""
        jac = sparse.lil_matrix(
            (self.get_number_of_constraints(), self._com_motion.get_total_free_coeff())
        )
        row = 0
        for t in self._dts:
            for dim in DIMS_2D:
                acc = self._com_motion.get_jacobian(t, MotionDerivative.ACC, dim)
                pos = self._com_motion.get_jacobian(t, MotionDerivative.POS, dim)
                insert_row(jac, row, acc - self._omega_sq * pos)
                row += 1
        return jac.tocsr()

    def _jacobian_wrt_contacts(self) -> sparse.csr_matrix:
        """Scaled load of every free contact."""
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
                    jac[row + dim, idx] = self._omega_sq * lambda_k[contact.ee]
            row += DIM2D
        return jac.tocsr()

    def _jacobian_wrt_lambdas(self) -> sparse.csr_matrix:
        """Scaled position of every standing contact."""
        jac = sparse.lil_matrix(
            (self.get_number_of_constraints(), self._ee_load.get_opt_var_count())
        )
        row = 0
        for t in self._dts:
            for contact in self._ee_motion.get_contacts(t):
                idx = self._ee_load.index(t, contact.ee)
                for dim in DIMS_2D:
                    jac[row + dim, idx] = self._omega_sq * contact.p[dim]
            row += DIM2D
        return jac.tocsr()
