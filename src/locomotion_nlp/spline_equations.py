"""Linear equations and quadratic forms in the CoM spline coefficients."""

from math import factorial

import numpy as np

from .geometry import DIMS_2D, MatVec, Point2d, VecScalar
from .providers.com_spline import COEFF_PER_POLY, ComSpline, MotionDerivative

_STATE_DERIVATIVES = (MotionDerivative.POS, MotionDerivative.VEL, MotionDerivative.ACC)


def _state_value(state: Point2d, deriv: MotionDerivative) -> np.ndarray:
    return {
        MotionDerivative.POS: state.p,
        MotionDerivative.VEL: state.v,
        MotionDerivative.ACC: state.a,
    }[deriv]


class LinearSplineEquations:
    """Builds boundary, junction and cost terms for a ComSpline.

    Equations are returned as MatVec with rows ``M @ x + v`` that are
    zero when satisfied.
    """

    def __init__(self, com_spline: ComSpline):
        self._spline = com_spline

    def make_initial(self, state: Point2d) -> MatVec:
        """Pin position, velocity and acceleration at t=0."""
        return self._make_state_equations(0, 0.0, state, _STATE_DERIVATIVES)

    def make_final(
        self,
        state: Point2d,
        derivatives: tuple[MotionDerivative, ...] = _STATE_DERIVATIVES,
    ) -> MatVec:
        """Pin the requested derivatives at the end of the last segment."""
        last = self._spline.get_number_of_segments() - 1
        duration = self._spline.get_segment_durations()[last]
        return self._make_state_equations(last, duration, state, derivatives)

    def make_junction(self) -> MatVec:
        """Position, velocity and acceleration continuity between segments."""
        n_junctions = self._spline.get_number_of_segments() - 1
        n_coeff = self._spline.get_total_free_coeff()
        durations = self._spline.get_segment_durations()

        mv = MatVec(n_junctions * len(_STATE_DERIVATIVES) * len(DIMS_2D), n_coeff)
        row = 0
        for seg in range(n_junctions):
            for deriv in _STATE_DERIVATIVES:
                for dim in DIMS_2D:
                    end = self._spline.get_jacobian_at(seg, durations[seg], deriv, dim)
                    start = self._spline.get_jacobian_at(seg + 1, 0.0, deriv, dim)
                    mv.add_vec_scalar(VecScalar(end - start, 0.0), row)
                    row += 1
        return mv

    def make_acceleration(self, weights_xy: np.ndarray) -> np.ndarray:
        """Quadratic form of the weighted integral of squared acceleration."""
        return self._make_derivative_cost(MotionDerivative.ACC, weights_xy)

    def make_jerk(self, weights_xy: np.ndarray) -> np.ndarray:
        """Quadratic form of the weighted integral of squared jerk."""
        return self._make_derivative_cost(MotionDerivative.JERK, weights_xy)

    def _make_state_equations(
        self,
        segment: int,
        tau: float,
        state: Point2d,
        derivatives: tuple[MotionDerivative, ...],
    ) -> MatVec:
        mv = MatVec(len(derivatives) * len(DIMS_2D), self._spline.get_total_free_coeff())
        row = 0
        for deriv in derivatives:
            value = _state_value(state, deriv)
            for dim in DIMS_2D:
                jac = self._spline.get_jacobian_at(segment, tau, deriv, dim)
                mv.add_vec_scalar(VecScalar(jac, -value[dim]), row)
                row += 1
        return mv

    def _make_derivative_cost(
        self,
        deriv: MotionDerivative,
        weights_xy: np.ndarray,
    ) -> np.ndarray:
        # integral over [0, T] of (d^n/dt^n sum_i c_i t^i)^2
        n_coeff = self._spline.get_total_free_coeff()
        Q = np.zeros((n_coeff, n_coeff))
        for seg, T in enumerate(self._spline.get_segment_durations()):
            for dim in DIMS_2D:
                for i in range(deriv, COEFF_PER_POLY):
                    for j in range(deriv, COEFF_PER_POLY):
                        ci = factorial(i) / factorial(i - deriv)
                        cj = factorial(j) / factorial(j - deriv)
                        power = i + j - 2 * deriv + 1
                        row = self._spline.index(seg, dim, i)
                        col = self._spline.index(seg, dim, j)
                        Q[row, col] += weights_xy[dim] * ci * cj * T ** power / power
        return Q
