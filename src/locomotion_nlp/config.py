"""Motion parameters consumed by the cost/constraint factory.

The presets describe a quadruped with legs ordered LF, RF, LH, RH and
follow the gait timing of a medium-sized hydraulic quadruped.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum

import numpy as np

from .timing import TIME_EPS


class QuadrupedLeg(IntEnum):
    """End-effector indices of a quadruped."""

    LF = 0
    RF = 1
    LH = 2
    RH = 3


class MotionTypeID(str, Enum):
    """Available gait presets."""

    WALK = "walk"
    TROT = "trot"
    PACE = "pace"
    BOUND = "bound"


@dataclass
class Phase:
    """A period in which a fixed set of legs is swinging.

    Attributes:
        swing_legs: End-effectors in the air during this phase. Empty for
            a full stance phase.
        duration: Phase duration [s].
    """

    swing_legs: tuple[int, ...] = ()
    duration: float = 0.3


def _hyq_nominal_stance(x_nominal: float = 0.28, y_nominal: float = 0.28,
                        z_nominal: float = -0.58) -> np.ndarray:
    stance = np.zeros((4, 3))
    stance[QuadrupedLeg.LF] = [x_nominal, y_nominal, z_nominal]
    stance[QuadrupedLeg.RF] = [x_nominal, -y_nominal, z_nominal]
    stance[QuadrupedLeg.LH] = [-x_nominal, y_nominal, z_nominal]
    stance[QuadrupedLeg.RH] = [-x_nominal, -y_nominal, z_nominal]
    return stance


@dataclass
class MotionParameters:
    """Timing, weighting and kinematic parameters of a motion.

    Attributes:
        motion_type: Gait the parameters describe.
        dt_nodes: Interval at which constraints are sampled and at which
            loads and CoP are discretized [s].
        walking_height: Nominal CoM height above ground [m].
        offset_geom_to_com: Offset from the geometric base center to the
            CoM (3,) [m].
        weight_com_motion_xy: Weights of the CoM motion cost in x and y.
        nominal_stance: Nominal foot positions in the base frame (n_ee, 3) [m].
        max_dev_xy: Maximum deviation from the nominal stance (2,) [m].
        polys_per_phase: Number of CoM spline segments per phase.
        phases: Contact sequence.
    """

    motion_type: MotionTypeID = MotionTypeID.TROT
    dt_nodes: float = 0.1
    walking_height: float = 0.58
    offset_geom_to_com: np.ndarray = field(
        default_factory=lambda: np.zeros(3)
    )
    weight_com_motion_xy: np.ndarray = field(
        default_factory=lambda: np.array([1.0, 1.0])
    )
    nominal_stance: np.ndarray = field(default_factory=_hyq_nominal_stance)
    max_dev_xy: np.ndarray = field(
        default_factory=lambda: np.array([0.15, 0.10])
    )
    polys_per_phase: int = 1
    phases: list[Phase] = field(default_factory=lambda: [
        Phase((), 0.2),
        Phase((QuadrupedLeg.LF, QuadrupedLeg.RH), 0.3),
        Phase((QuadrupedLeg.RF, QuadrupedLeg.LH), 0.3),
        Phase((), 0.2),
    ])

    def __post_init__(self) -> None:
        self.offset_geom_to_com = np.asarray(self.offset_geom_to_com, dtype=float)
        self.weight_com_motion_xy = np.asarray(self.weight_com_motion_xy, dtype=float)
        self.nominal_stance = np.atleast_2d(np.asarray(self.nominal_stance, dtype=float))
        self.max_dev_xy = np.asarray(self.max_dev_xy, dtype=float)

        if self.dt_nodes <= 0.0:
            raise ValueError(f"dt_nodes must be positive, got {self.dt_nodes}")
        if self.polys_per_phase < 1:
            raise ValueError("polys_per_phase must be at least 1")
        if not self.phases:
            raise ValueError("At least one phase is required")
        for phase in self.phases:
            if phase.duration <= TIME_EPS:
                raise ValueError(f"Phase duration must be positive: {phase}")
            for ee in phase.swing_legs:
                if not 0 <= ee < self.get_number_of_endeffectors():
                    raise ValueError(f"Unknown end-effector {ee} in {phase}")

    def get_number_of_endeffectors(self) -> int:
        return self.nominal_stance.shape[0]

    def get_nominal_stance_in_base(self) -> np.ndarray:
        return self.nominal_stance.copy()

    def get_maximum_deviation_from_nominal(self) -> np.ndarray:
        return self.max_dev_xy.copy()

    def get_phase_durations(self) -> list[float]:
        return [phase.duration for phase in self.phases]

    def get_total_time(self) -> float:
        return float(sum(self.get_phase_durations()))


def make_motion_parameters(motion_type: MotionTypeID | str) -> MotionParameters:
    """Create the preset parameters of a gait.

    Args:
        motion_type: Gait identifier or its string value.

    Returns:
        MotionParameters with the gait's contact sequence.
    """
    motion_type = MotionTypeID(motion_type)
    LF, RF, LH, RH = QuadrupedLeg

    if motion_type is MotionTypeID.WALK:
        swings = [(LH,), (LF,), (RH,), (RF,)]
        return MotionParameters(
            motion_type=motion_type,
            max_dev_xy=np.array([0.15, 0.15]),
            phases=[Phase((), 0.3)]
            + [Phase(s, 0.4) for s in swings]
            + [Phase((), 0.2)],
        )

    if motion_type is MotionTypeID.TROT:
        swings = [(LF, RH), (RF, LH)] * 2
        return MotionParameters(
            motion_type=motion_type,
            phases=[Phase((), 0.2)]
            + [Phase(s, 0.3) for s in swings]
            + [Phase((), 0.2)],
        )

    if motion_type is MotionTypeID.PACE:
        swings = [(LF, LH), (RF, RH)] * 2
        return MotionParameters(
            motion_type=motion_type,
            max_dev_xy=np.array([0.15, 0.15]),
            phases=[Phase((), 0.3)]
            + [Phase(s, 0.3) for s in swings]
            + [Phase((), 0.2)],
        )

    swings = [(LH, RH), (LF, RF)] * 2
    return MotionParameters(
        motion_type=motion_type,
        max_dev_xy=np.array([0.20, 0.10]),
        phases=[Phase((), 0.3)]
        + [Phase(s, 0.3) for s in swings]
        + [Phase((), 0.2)],
    )
