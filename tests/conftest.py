"""Shared pytest fixtures."""

import sys
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from locomotion_nlp.config import MotionParameters, Phase
from locomotion_nlp.providers import (
    CenterOfPressure,
    ComSpline,
    EndeffectorLoad,
    EndeffectorsMotion,
)
from locomotion_nlp.variables import OptimizationVariables


@dataclass
class Problem:
    """Providers of one motion sharing a variable container."""

    com_motion: ComSpline
    ee_motion: EndeffectorsMotion
    ee_load: EndeffectorLoad
    cop: CenterOfPressure
    opt_vars: OptimizationVariables
    params: MotionParameters

    @property
    def providers(self):
        return [self.com_motion, self.ee_motion, self.ee_load, self.cop]


def make_problem(params: MotionParameters, start_stance: np.ndarray) -> Problem:
    total_time = params.get_total_time()
    com_motion = ComSpline.from_phases(
        params.get_phase_durations(), params.polys_per_phase,
        offset_geom_to_com=params.offset_geom_to_com,
        height=params.walking_height,
    )
    ee_motion = EndeffectorsMotion(start_stance, params.phases)
    ee_load = EndeffectorLoad(params.get_number_of_endeffectors(), total_time,
                              params.dt_nodes)
    cop = CenterOfPressure(total_time, params.dt_nodes)

    opt_vars = OptimizationVariables()
    for provider in (com_motion, ee_motion, ee_load, cop):
        opt_vars.add_variable_set(provider.to_variable_set())
    return Problem(com_motion, ee_motion, ee_load, cop, opt_vars, params)


@pytest.fixture
def two_foot_params() -> MotionParameters:
    """Two end-effectors standing still for 0.3s."""
    return MotionParameters(
        dt_nodes=0.1,
        nominal_stance=np.array([[0.0, 0.0, -0.58], [1.0, 0.0, -0.58]]),
        phases=[Phase((), 0.3)],
    )


@pytest.fixture
def two_foot(two_foot_params) -> Problem:
    """Contacts fixed at (0, 0) and (1, 0), loads 0.5/0.5, CoP at (0.5, 0)."""
    problem = make_problem(two_foot_params, np.array([[0.0, 0.0], [1.0, 0.0]]))
    problem.opt_vars.set_variables(
        problem.ee_load.get_id(), np.full(problem.ee_load.get_opt_var_count(), 0.5),
    )
    problem.opt_vars.set_variables(
        problem.cop.get_id(), np.tile([0.5, 0.0], problem.cop.get_number_of_segments()),
    )
    return problem


@pytest.fixture
def trot_params() -> MotionParameters:
    """Short quadruped trot with two polynomials per phase."""
    return MotionParameters(
        dt_nodes=0.1,
        offset_geom_to_com=np.array([0.02, -0.01, 0.0]),
        polys_per_phase=2,
        phases=[
            Phase((), 0.2),
            Phase((0, 3), 0.3),
            Phase((1, 2), 0.3),
            Phase((), 0.2),
        ],
    )


@pytest.fixture
def trot(trot_params) -> Problem:
    """Trot with random values in every variable block."""
    start_stance = trot_params.get_nominal_stance_in_base()[:, :2]
    problem = make_problem(trot_params, start_stance)

    rng = np.random.default_rng(42)
    for var_set in problem.opt_vars.get_var_sets():
        problem.opt_vars.set_variables(
            var_set.id, rng.uniform(-0.5, 0.5, len(var_set)),
        )
    return problem


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(0)
