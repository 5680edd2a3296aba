"""Piecewise polynomial CoM motion in the horizontal plane."""

from enum import IntEnum
from math import factorial

import numpy as np

from ..geometry import DIM2D, Point2d, Point3d, Pose, cache_exponents
from ..timing import TIME_EPS, find_segment
from ..variables import VariableSetID
from .base import OptimizationVariableProvider

COEFF_PER_POLY = 6  # quintic


class MotionDerivative(IntEnum):
    """Order of the time derivative of a spline query."""

    POS = 0
    VEL = 1
    ACC = 2
    JERK = 3


class ComSpline(OptimizationVariableProvider):
    """CoM motion as independent quintic polynomials per segment and axis.

    Within segment k the motion along one axis is
    ``x(tau) = sum_i c_i * tau^i`` with ``tau`` the segment-local time.
    Coefficients are ordered segment-major, then axis, then power, so
    every query is linear in the coefficient vector and its Jacobian
    depends on time only.
    """

    def __init__(
        self,
        durations: list[float],
        offset_geom_to_com: np.ndarray | None = None,
        height: float = 0.58,
    ):
        """Initialize spline.

        Args:
            durations: Duration of each polynomial segment [s].
            offset_geom_to_com: Offset from geometric base center to CoM
                (2,) or (3,) [m]. Only x and y are used.
            height: Constant height reported by ``get_base`` [m].
        """
        super().__init__(VariableSetID.COM_MOTION)
        self._durations = np.asarray(durations, dtype=float)
        if self._durations.size == 0 or np.any(self._durations <= 0.0):
            raise ValueError(f"Segment durations must be positive: {durations}")
        self._t_start = np.concatenate([[0.0], np.cumsum(self._durations)[:-1]])

        if offset_geom_to_com is None:
            offset_geom_to_com = np.zeros(DIM2D)
        self._offset = np.asarray(offset_geom_to_com, dtype=float)[:DIM2D]
        self._height = float(height)

        self._coeff = np.zeros(len(self._durations) * DIM2D * COEFF_PER_POLY)

    @classmethod
    def from_phases(
        cls,
        phase_durations: list[float],
        polys_per_phase: int = 1,
        **kwargs,
    ) -> "ComSpline":
        """Split every phase into equally long polynomial segments."""
        durations = []
        for duration in phase_durations:
            durations.extend([duration / polys_per_phase] * polys_per_phase)
        return cls(durations, **kwargs)

    def get_optimization_parameters(self) -> np.ndarray:
        """Copy of the polynomial coefficients."""
        return self._coeff.copy()

    def set_optimization_parameters(self, x: np.ndarray) -> None:
        """Replace the polynomial coefficients."""
        self._coeff = self._checked(x, len(self._coeff))

    def get_total_free_coeff(self) -> int:
        """Number of polynomial coefficients."""
        return len(self._coeff)

    def get_total_time(self) -> float:
        """Duration of the whole spline [s]."""
        return float(np.sum(self._durations))

    def get_number_of_segments(self) -> int:
        """Number of polynomial segments."""
        return len(self._durations)

    def get_segment_durations(self) -> np.ndarray:
        """Copy of the segment durations [s]."""
        return self._durations.copy()

    def index(self, segment: int, dim: int, power: int) -> int:
        """Position of one coefficient in the variable block."""
        return (segment * DIM2D + dim) * COEFF_PER_POLY + power

    def get_jacobian_at(
        self,
        segment: int,
        tau: float,
        deriv: MotionDerivative,
        dim: int,
    ) -> np.ndarray:
        """Row mapping the coefficients to a derivative at local time tau."""
        jac = np.zeros(len(self._coeff))
        start = self.index(segment, dim, 0)
        jac[start:start + COEFF_PER_POLY] = _basis(tau, deriv)
        return jac

    def get_jacobian(self, t: float, deriv: MotionDerivative, dim: int) -> np.ndarray:
        """Row mapping the coefficients to a derivative at global time t."""
        segment, tau = self._locate(t)
        return self.get_jacobian_at(segment, tau, deriv, dim)

    def get_com_derivative(self, t: float, deriv: MotionDerivative) -> np.ndarray:
        """Derivative of the CoM position at time t."""
        segment, tau = self._locate(t)
        basis = _basis(tau, deriv)
        value = np.zeros(DIM2D)
        for dim in range(DIM2D):
            start = self.index(segment, dim, 0)
            value[dim] = basis @ self._coeff[start:start + COEFF_PER_POLY]
        return value

    def get_com(self, t: float) -> Point2d:
        """CoM position, velocity and acceleration at time t."""
        return Point2d(
            self.get_com_derivative(t, MotionDerivative.POS),
            self.get_com_derivative(t, MotionDerivative.VEL),
            self.get_com_derivative(t, MotionDerivative.ACC),
        )

    def get_base(self, t: float) -> Pose:
        """Geometric base state, i.e. the CoM shifted back by the offset."""
        com = self.get_com(t)
        pos = Point3d(
            np.append(com.p - self._offset, self._height),
            np.append(com.v, 0.0),
            np.append(com.a, 0.0),
        )
        return Pose(pos=pos)

    def _locate(self, t: float) -> tuple[int, float]:
        """Segment and segment-local time of a global time t."""
        if t < -TIME_EPS or t > self.get_total_time() + TIME_EPS:
            raise ValueError(
                f"t={t} outside of spline horizon [0, {self.get_total_time()}]"
            )
        segment = find_segment(self._t_start, t)
        tau = min(max(t - self._t_start[segment], 0.0), self._durations[segment])
        return segment, tau


def _basis(tau: float, deriv: MotionDerivative) -> np.ndarray:
    """Derivative of ``[1, tau, ..., tau^5]`` of the requested order."""
    exps = cache_exponents(tau, COEFF_PER_POLY)
    basis = np.zeros(COEFF_PER_POLY)
    for i in range(deriv, COEFF_PER_POLY):
        basis[i] = factorial(i) / factorial(i - deriv) * exps[i - deriv]
    return basis
