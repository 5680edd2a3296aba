"""Time discretization shared by the providers and constraints.

Sample times are generated as ``i * dt`` rather than by accumulation, and
the floor/ceil operations use a small tolerance so that a horizon that is
an integer multiple of ``dt`` (e.g. T=0.3, dt=0.1) yields the expected
number of samples despite floating-point division.
"""

import math

import numpy as np

TIME_EPS = 1e-9


def num_samples(total_time: float, dt: float) -> int:
    """Number of uniform samples ``0, dt, 2*dt, ...`` strictly before T."""
    if dt <= 0.0:
        raise ValueError(f"dt must be positive, got {dt}")
    return int(math.floor(total_time / dt + TIME_EPS))


def num_segments(total_time: float, dt: float) -> int:
    """Number of ``dt`` long segments needed to cover [0, T]."""
    if dt <= 0.0:
        raise ValueError(f"dt must be positive, got {dt}")
    return max(1, int(math.ceil(total_time / dt - TIME_EPS)))


def build_time_grid(
    total_time: float,
    dt: float,
    include_terminal: bool = False,
) -> list[float]:
    """Build the sample times at which a constraint is evaluated.

    Args:
        total_time: Horizon T [s].
        dt: Sampling interval [s].
        include_terminal: Append T itself so the final stance is
            constrained as well.

    Returns:
        Non-decreasing list of times starting at 0.
    """
    dts = [i * dt for i in range(num_samples(total_time, dt))]
    if include_terminal:
        dts.append(float(total_time))
    return dts


def find_segment(t_start: np.ndarray, t: float) -> int:
    """Index of the segment whose start time is the last one <= t.

    Args:
        t_start: Ascending segment start times, first entry 0.
        t: Query time.

    Returns:
        Segment index, clamped to the valid range.
    """
    k = int(np.searchsorted(t_start, t + TIME_EPS, side="right")) - 1
    return min(max(k, 0), len(t_start) - 1)
