"""Footholds of all end-effectors over the contact sequence."""

from dataclasses import dataclass

import numpy as np

from ..config import Phase
from ..geometry import DIM2D
from ..timing import TIME_EPS, find_segment
from ..variables import VariableSetID
from .base import OptimizationVariableProvider

FIXED_BY_START_STANCE = -1


@dataclass(eq=False)
class Contact:
    """An end-effector touching the ground.

    Attributes:
        ee: End-effector index.
        id: Step index of a free contact, or FIXED_BY_START_STANCE for the
            footholds the motion starts from.
        p: Contact position (3,) [m].
    """

    ee: int
    id: int
    p: np.ndarray

    @property
    def is_fixed(self) -> bool:
        """True for footholds of the start stance."""
        return self.id == FIXED_BY_START_STANCE


class EndeffectorsMotion(OptimizationVariableProvider):
    """Contact schedule and foothold positions.

    Every end-effector starts on a fixed foothold. A leg that swings in
    some phase lands on a new free contact at the start of the next phase
    in which it stands. Free contacts are numbered in touchdown order and
    their x-y positions form this provider's variables; they start out at
    the foothold the leg lifted off from.
    """

    def __init__(self, start_stance: np.ndarray, phases: list[Phase]):
        """Initialize contact schedule.

        Args:
            start_stance: Initial foothold of every end-effector (n_ee, 2)
                or (n_ee, 3) [m].
            phases: Contact sequence.
        """
        super().__init__(VariableSetID.EE_MOTION)
        start_stance = np.atleast_2d(np.asarray(start_stance, dtype=float))
        if start_stance.shape[1] == DIM2D:
            start_stance = np.hstack([start_stance, np.zeros((len(start_stance), 1))])
        self._start_stance = start_stance
        n_ee = len(start_stance)

        if not phases:
            raise ValueError("At least one phase is required")
        self._durations = np.array([phase.duration for phase in phases])
        self._t_start = np.concatenate([[0.0], np.cumsum(self._durations)[:-1]])

        self._free_ee: list[int] = []
        self._free_z: list[float] = []
        initial_xy: list[np.ndarray] = []
        # per phase: (ee, contact id) of every standing end-effector
        self._stance: list[list[tuple[int, int]]] = []

        current = [FIXED_BY_START_STANCE] * n_ee
        last_xy = [p[:DIM2D].copy() for p in start_stance]
        swinging: set[int] = set()
        for phase in phases:
            for ee in phase.swing_legs:
                if not 0 <= ee < n_ee:
                    raise ValueError(f"Unknown end-effector {ee} in {phase}")
                swinging.add(ee)
            stance = []
            for ee in range(n_ee):
                if ee in phase.swing_legs:
                    continue
                if ee in swinging:
                    current[ee] = len(self._free_ee)
                    self._free_ee.append(ee)
                    self._free_z.append(start_stance[ee, 2])
                    initial_xy.append(last_xy[ee])
                    swinging.discard(ee)
                stance.append((ee, current[ee]))
            self._stance.append(stance)

        self._footholds = (np.concatenate(initial_xy) if initial_xy
                           else np.zeros(0))

    def get_optimization_parameters(self) -> np.ndarray:
        """Copy of the free foothold positions."""
        return self._footholds.copy()

    def set_optimization_parameters(self, x: np.ndarray) -> None:
        """Replace the free foothold positions."""
        self._footholds = self._checked(x, len(self._footholds))

    def get_number_of_endeffectors(self) -> int:
        """Number of legs."""
        return len(self._start_stance)

    def get_total_time(self) -> float:
        """Duration of the contact sequence [s]."""
        return float(np.sum(self._durations))

    def get_start_stance(self) -> list[Contact]:
        """Fixed contacts the motion starts from, ordered by ee."""
        return [self._make_contact(ee, FIXED_BY_START_STANCE)
                for ee in range(self.get_number_of_endeffectors())]

    def get_all_free_contacts(self) -> list[Contact]:
        """Free contacts in touchdown order."""
        return [self._make_contact(ee, i) for i, ee in enumerate(self._free_ee)]

    def get_contacts(self, t: float) -> list[Contact]:
        """Contacts of all standing end-effectors at time t, ordered by ee."""
        if t < -TIME_EPS or t > self.get_total_time() + TIME_EPS:
            raise ValueError(
                f"t={t} outside of motion horizon [0, {self.get_total_time()}]"
            )
        phase = find_segment(self._t_start, t)
        return [self._make_contact(ee, cid) for ee, cid in self._stance[phase]]

    def index(self, ee: int, contact_id: int, dim: int) -> int:
        """Position of a free contact coordinate in the variable block."""
        if contact_id == FIXED_BY_START_STANCE:
            raise ValueError(f"Contact of ee {ee} is fixed by the start stance")
        if not 0 <= contact_id < len(self._free_ee):
            raise ValueError(f"No free contact with id {contact_id}")
        if self._free_ee[contact_id] != ee:
            raise ValueError(f"Contact {contact_id} does not belong to ee {ee}")
        return contact_id * DIM2D + dim

    def _make_contact(self, ee: int, contact_id: int) -> Contact:
        """Contact with its current position."""
        if contact_id == FIXED_BY_START_STANCE:
            return Contact(ee, contact_id, self._start_stance[ee].copy())
        xy = self._footholds[contact_id * DIM2D:(contact_id + 1) * DIM2D]
        return Contact(ee, contact_id, np.append(xy, self._free_z[contact_id]))
