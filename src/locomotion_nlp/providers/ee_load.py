"""Discretized load distribution over the end-effectors."""

import numpy as np

from ..timing import TIME_EPS, num_segments
from ..variables import VariableSetID
from .base import OptimizationVariableProvider


class EndeffectorLoad(OptimizationVariableProvider):
    """Load fraction lambda of every end-effector, piecewise constant in time.

    The horizon is split into segments of length ``dt``; each segment holds
    one lambda per end-effector, stored at ``k * n_ee + ee``.
    """

    def __init__(self, n_ee: int, total_time: float, dt: float):
        super().__init__(VariableSetID.EE_LOAD)
        self._n_ee = int(n_ee)
        self._total_time = float(total_time)
        self._dt = float(dt)
        self._n_segments = num_segments(total_time, dt)
        self._lambdas = np.zeros(self._n_segments * self._n_ee)

    def get_optimization_parameters(self) -> np.ndarray:
        """Copy of all load fractions."""
        return self._lambdas.copy()

    def set_optimization_parameters(self, x: np.ndarray) -> None:
        """Replace all load fractions."""
        self._lambdas = self._checked(x, len(self._lambdas))

    def get_number_of_segments(self) -> int:
        """Number of load segments."""
        return self._n_segments

    def get_number_of_endeffectors(self) -> int:
        """Number of legs sharing the load."""
        return self._n_ee

    def get_t_start(self, k: int) -> float:
        """Start time of load segment k."""
        return k * self._dt

    def get_segment(self, t: float) -> int:
        """Load segment active at time t."""
        if t < -TIME_EPS or t > self._total_time + TIME_EPS:
            raise ValueError(
                f"t={t} outside of motion horizon [0, {self._total_time}]"
            )
        k = int(np.floor(t / self._dt + TIME_EPS))
        return min(k, self._n_segments - 1)

    def index_discrete(self, k: int, ee: int) -> int:
        """Position of the lambda of ee in segment k."""
        if not 0 <= k < self._n_segments or not 0 <= ee < self._n_ee:
            raise ValueError(f"No load variable for segment {k}, ee {ee}")
        return k * self._n_ee + ee

    def index(self, t: float, ee: int) -> int:
        """Position of the lambda of ee active at time t."""
        return self.index_discrete(self.get_segment(t), ee)

    def get_load_values_idx(self, k: int) -> dict[int, float]:
        """Load of every end-effector in segment k, ordered by ee."""
        return {ee: float(self._lambdas[self.index_discrete(k, ee)])
                for ee in range(self._n_ee)}

    def get_load_values(self, t: float) -> dict[int, float]:
        """Load of every end-effector at time t, ordered by ee."""
        return self.get_load_values_idx(self.get_segment(t))
