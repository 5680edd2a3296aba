"""Center of pressure, piecewise constant over dt-long segments."""

import numpy as np

from ..geometry import DIM2D
from ..timing import TIME_EPS, num_segments
from ..variables import VariableSetID
from .base import OptimizationVariableProvider


class CenterOfPressure(OptimizationVariableProvider):
    """Horizontal CoP per segment, stored at ``2 * k + dim``."""

    def __init__(self, total_time: float, dt: float):
        super().__init__(VariableSetID.COP)
        self._total_time = float(total_time)
        self._dt = float(dt)
        self._n_segments = num_segments(total_time, dt)
        self._cop = np.zeros(self._n_segments * DIM2D)

    def get_optimization_parameters(self) -> np.ndarray:
        """Copy of the CoP of every segment."""
        return self._cop.copy()

    def set_optimization_parameters(self, x: np.ndarray) -> None:
        """Replace the CoP of every segment."""
        self._cop = self._checked(x, len(self._cop))

    def get_number_of_segments(self) -> int:
        """Number of CoP segments."""
        return self._n_segments

    def index(self, k: int, dim: int) -> int:
        """Position of the CoP coordinate of segment k in the variable block."""
        if not 0 <= k < self._n_segments or not 0 <= dim < DIM2D:
            raise ValueError(f"No CoP variable for segment {k}, dim {dim}")
        return k * DIM2D + dim

    def get_cop(self, t: float) -> np.ndarray:
        """CoP (x, y) active at time t."""
        k = self._segment(t)
        return self._cop[self.index(k, 0):self.index(k, 0) + DIM2D].copy()

    def get_jacobian_wrt_cop(self, t: float, dim: int) -> np.ndarray:
        """Derivative of one CoP coordinate at time t w.r.t. all CoP variables."""
        jac = np.zeros(len(self._cop))
        jac[self.index(self._segment(t), dim)] = 1.0
        return jac

    def _segment(self, t: float) -> int:
        """CoP segment active at time t."""
        if t < -TIME_EPS or t > self._total_time + TIME_EPS:
            raise ValueError(
                f"t={t} outside of motion horizon [0, {self._total_time}]"
            )
        return min(int(np.floor(t / self._dt + TIME_EPS)), self._n_segments - 1)
