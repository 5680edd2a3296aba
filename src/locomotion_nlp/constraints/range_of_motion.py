"""Footholds stay within a box around their nominal position in the base frame."""

import logging
from enum import Enum

import numpy as np
from scipy import sparse

from ..geometry import DIM2D, DIMS_2D
from ..providers.com_spline import ComSpline, MotionDerivative
from ..providers.ee_motion import EndeffectorsMotion
from ..timing import build_time_grid
from ..variables import Bound, OptimizationVariables
from .base import Constraint, insert_row

logger = logging.getLogger(__name__)


class JacobianState(Enum):
    """Lifecycle of a constraint whose Jacobians are assembled once."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    JACOBIAN_CACHED = "jacobian_cached"


class RangeOfMotionBox(Constraint):
    """Contact position relative to the base, bounded by nominal +- deviation.

    For every sample time (including the end of the motion) and every
    contact standing at that time the residual is
    ``p_contact_xy - p_base_xy``. Contacts fixed by the start stance are
    not variables, so their residual is ``-p_base_xy`` and their bound is
    shifted by the constant contact position instead.

    Both Jacobians are assembled on the first ``update_variables`` call and
    frozen afterward (see ``state``). This is exact because the CoM spline
    is linear in its coefficients: the position Jacobian depends on time
    only.
    """

    name = "Range of Motion"

    def __init__(self, max_deviation_xy: np.ndarray, nominal_stance: np.ndarray):
        """Initialize box constraint.

        Args:
            max_deviation_xy: Allowed deviation from nominal in x and y [m].
            nominal_stance: Nominal foothold of every end-effector in the
                base frame (n_ee, 2 or 3) [m].
        """
        super().__init__()
        self._max_dev = np.asarray(max_deviation_xy, dtype=float)[:DIM2D]
        self._nominal_stance = np.atleast_2d(np.asarray(nominal_stance, dtype=float))
        self._state = JacobianState.UNINITIALIZED
        self._jac_wrt_contacts: sparse.csr_matrix | None = None
        self._jac_wrt_motion: sparse.csr_matrix | None = None

    @property
    def state(self) -> JacobianState:
        """Current Jacobian lifecycle state."""
        return self._state

    def init(
        self,
        com_motion: ComSpline,
        ee_motion: EndeffectorsMotion,
        dt: float,
    ) -> None:
        """Bind providers and sample times, including the end of the motion."""
        if ee_motion.get_number_of_endeffectors() > len(self._nominal_stance):
            raise ValueError(
                f"Nominal stance given for {len(self._nominal_stance)} "
                f"end-effectors, motion has {ee_motion.get_number_of_endeffectors()}"
            )
        self._com_motion = com_motion
        self._ee_motion = ee_motion
        self._dts = build_time_grid(ee_motion.get_total_time(), dt,
                                    include_terminal=True)

        self._bind(com_motion, ee_motion)
        self._register_jacobian(ee_motion, lambda: self._cached(self._jac_wrt_contacts))
        self._register_jacobian(com_motion, lambda: self._cached(self._jac_wrt_motion))
        self._state = JacobianState.INITIALIZED

    def update_variables(self, opt_vars: OptimizationVariables) -> None:
        """Refresh providers and assemble the Jacobians on the first call."""
        if self._state is JacobianState.UNINITIALIZED:
            raise RuntimeError(f"{self.name}: init() must be called before update_variables()")
        super().update_variables(opt_vars)

        if self._state is JacobianState.INITIALIZED:
            self._jac_wrt_contacts = self._build_jacobian_wrt_contacts()
            self._jac_wrt_motion = self._build_jacobian_wrt_motion()
            self._state = JacobianState.JACOBIAN_CACHED
            logger.debug(
                "%s: cached Jacobians for %d constraints",
                self.name, self._jac_wrt_motion.shape[0],
            )

    def evaluate_constraint(self) -> np.ndarray:
        """Contact minus base position for every sample and standing contact."""
        g = []
        for t in self._dts:
            base_xy = self._com_motion.get_base(t).pos.p[:DIM2D]
            for contact in self._ee_motion.get_contacts(t):
                if contact.is_fixed:
                    g.extend(-base_xy)
                else:
                    g.extend(contact.p[:DIM2D] - base_xy)
        return np.array(g)

    def get_bounds(self) -> list[Bound]:
        """Nominal box, shifted for contacts of the start stance."""
        bounds = []
        for t in self._dts:
            for contact in self._ee_motion.get_contacts(t):
                nominal = self._nominal_stance[contact.ee]
                for dim in DIMS_2D:
                    b = Bound(nominal[dim] - self._max_dev[dim],
                              nominal[dim] + self._max_dev[dim])
                    if contact.is_fixed:
                        b -= contact.p[dim]
                    bounds.append(b)
        return bounds

    def _cached(self, jac: sparse.csr_matrix | None) -> sparse.csr_matrix:
        """Frozen Jacobian, available after the first update."""
        if self._state is not JacobianState.JACOBIAN_CACHED:
            raise RuntimeError(
                f"{self.name}: Jacobians are assembled on the first "
                f"update_variables() call (state: {self._state.value})"
            )
        return jac

    def _build_jacobian_wrt_contacts(self) -> sparse.csr_matrix:
        """Identity entries for free contacts."""
        jac = sparse.lil_matrix(
            (self.get_number_of_constraints(), self._ee_motion.get_opt_var_count())
        )
        row = 0
        for t in self._dts:
            for contact in self._ee_motion.get_contacts(t):
                if not contact.is_fixed:
                    for dim in DIMS_2D:
                        idx = self._ee_motion.index(contact.ee, contact.id, dim)
                        jac[row + dim, idx] = 1.0
                row += DIM2D
        return jac.tocsr()

    def _build_jacobian_wrt_motion(self) -> sparse.csr_matrix:
        """Negated base position rows of the spline."""
        jac = sparse.lil_matrix(
            (self.get_number_of_constraints(), self._com_motion.get_total_free_coeff())
        )
        row = 0
        for t in self._dts:
            for _ in self._ee_motion.get_contacts(t):
                for dim in DIMS_2D:
                    insert_row(jac, row,
                               -self._com_motion.get_jacobian(t, MotionDerivative.POS, dim))
                    row += 1
        return jac.tocsr()
