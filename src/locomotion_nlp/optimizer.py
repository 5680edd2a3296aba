"""CoM motion optimizer for legged locomotion.

Builds the motion NLP from a gait description and solves it with
scipy.optimize.minimize.

Algorithm:
1. Create the CoM spline, footholds, load and CoP providers for the gait
2. Build the selected constraints and costs through the factory
3. Run constrained optimization (SLSQP) on the stacked NLP
4. Report the worst bound violation of every constraint
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional

import numpy as np
from scipy.optimize import Bounds, minimize

from .config import MotionParameters, MotionTypeID, make_motion_parameters
from .factory import ConstraintName, CostConstraintFactory, CostName
from .geometry import DIM2D, Point2d
from .nlp import NLP
from .providers import CenterOfPressure, ComSpline, EndeffectorLoad, EndeffectorsMotion
from .providers.com_spline import MotionDerivative
from .timing import build_time_grid
from .variables import Bound

logger = logging.getLogger(__name__)

DEFAULT_CONSTRAINTS = (
    ConstraintName.INIT_COM,
    ConstraintName.FINAL_COM,
    ConstraintName.JUNCTION_COM,
    ConstraintName.CONVEXITY,
    ConstraintName.DYNAMIC,
    ConstraintName.ROM_BOX,
)


@dataclass
class OptimizerConfig:
    """Configuration for CoM motion optimization.

    Attributes:
        motion_type: Gait preset used when no explicit parameters are given.
        params: Motion parameters. Defaults to the preset of motion_type.
        initial_state: State of the geometric base center at t=0.
        goal: Desired state of the geometric base center at the end.
        start_stance: Initial footholds (n_ee, 2) [m]. Defaults to the
            nominal stance around the initial base position.
        constraints: Names of the constraints to enforce.
        costs: Cost names mapped to their weights.
        optimizer_method: scipy.optimize method name.
        max_iter: Maximum solver iterations.
        ftol: Function tolerance for convergence.
        feasibility_tol: Bound violation still accepted by
            validate_solution.
    """

    motion_type: MotionTypeID = MotionTypeID.TROT
    params: Optional[MotionParameters] = None
    initial_state: Point2d = field(default_factory=Point2d)
    goal: Point2d = field(default_factory=lambda: Point2d(np.array([0.25, 0.0])))
    start_stance: Optional[np.ndarray] = None
    constraints: tuple[ConstraintName | str, ...] = DEFAULT_CONSTRAINTS
    costs: dict[CostName | str, float] = field(
        default_factory=lambda: {CostName.COM_COST: 1.0},
    )
    optimizer_method: str = "SLSQP"
    max_iter: int = 200
    ftol: float = 1e-6
    feasibility_tol: float = 1e-3


@dataclass
class OptimizationResult:
    """Result of CoM motion optimization.

    Attributes:
        x_opt: Optimal variable vector.
        cost: Final cost.
        success: Whether the solver reported convergence.
        message: Solver status message.
        com_coefficients: CoM spline coefficients.
        footholds: Free footholds (n_contacts, 2) [m].
        lambdas: Load fractions (n_segments, n_ee).
        cop: Center of pressure per segment (n_segments, 2) [m].
        n_iterations: Solver iterations.
        n_evaluations: Total cost evaluations.
        wall_time: Optimization wall time [s].
    """

    x_opt: np.ndarray
    cost: float
    success: bool
    message: str
    com_coefficients: np.ndarray
    footholds: np.ndarray
    lambdas: np.ndarray
    cop: np.ndarray
    n_iterations: int = 0
    n_evaluations: int = 0
    wall_time: float = 0.0


class MotionOptimizer:
    """CoM motion optimizer.

    Usage:
        config = OptimizerConfig(motion_type=MotionTypeID.WALK)
        optimizer = MotionOptimizer(config)
        result = optimizer.optimize()
        validation = optimizer.validate_solution(result)
    """

    def __init__(self, config: OptimizerConfig):
        """Initialize optimizer and assemble the NLP.

        Args:
            config: Optimization configuration.
        """
        self.config = config
        self.params = config.params or make_motion_parameters(config.motion_type)
        params = self.params

        self.com_motion = ComSpline.from_phases(
            params.get_phase_durations(),
            params.polys_per_phase,
            offset_geom_to_com=params.offset_geom_to_com,
            height=params.walking_height,
        )
        self.ee_motion = EndeffectorsMotion(self._start_stance(), params.phases)
        total_time = params.get_total_time()
        self.ee_load = EndeffectorLoad(
            params.get_number_of_endeffectors(), total_time, params.dt_nodes,
        )
        self.cop = CenterOfPressure(total_time, params.dt_nodes)
        self._init_com_coefficients()

        self.factory = CostConstraintFactory()
        self.factory.init(
            self.com_motion, self.ee_motion, self.ee_load, self.cop,
            params, config.initial_state, config.goal,
        )

        self.nlp = NLP()
        self.nlp.add_variable_set(self.factory.spline_coeff_variables())
        self.nlp.add_variable_set(self.factory.contact_variables())
        self.nlp.add_variable_set(self.factory.convexity_variables())
        self.nlp.add_variable_set(self.factory.cop_variables())

        for name in config.constraints:
            self.nlp.add_constraint(self.factory.get_constraint(name))
        for name, weight in config.costs.items():
            cost = self.factory.get_cost(name)
            if cost is None:
                logger.warning("Cost %s is not available, skipping", name)
                continue
            self.nlp.add_cost(cost, weight)

        self._n_evals = 0

    def _start_stance(self) -> np.ndarray:
        if self.config.start_stance is not None:
            return np.asarray(self.config.start_stance, dtype=float)
        nominal = self.params.get_nominal_stance_in_base()[:, :DIM2D]
        return nominal + self.config.initial_state.p

    def _init_com_coefficients(self) -> None:
        # constant CoM at the initial position in every segment
        com_xy = (self.config.initial_state.p
                  + self.params.offset_geom_to_com[:DIM2D])
        coeff = self.com_motion.get_optimization_parameters()
        for seg in range(self.com_motion.get_number_of_segments()):
            for dim in range(DIM2D):
                coeff[self.com_motion.index(seg, dim, 0)] = com_xy[dim]
        self.com_motion.set_optimization_parameters(coeff)

    def _objective(self, x: np.ndarray) -> float:
        self._n_evals += 1
        self.nlp.set_variables(x)
        return self.nlp.evaluate_cost()

    def _gradient(self, x: np.ndarray) -> np.ndarray:
        self.nlp.set_variables(x)
        return self.nlp.evaluate_cost_gradient()

    def build_scipy_constraints(self) -> list[dict]:
        """Translate the NLP constraint bounds into scipy constraint dicts.

        Equality rows become one ``eq`` constraint, finite lower and upper
        bounds of the remaining rows become ``ineq`` constraints c(x) >= 0.

        Returns:
            List of constraint dicts for scipy.optimize.minimize.
        """
        bounds = self.nlp.get_constraint_bounds()
        lower = np.array([b.lower for b in bounds])
        upper = np.array([b.upper for b in bounds])

        eq = np.flatnonzero(lower == upper)
        has_lower = np.flatnonzero((lower != upper) & np.isfinite(lower))
        has_upper = np.flatnonzero((lower != upper) & np.isfinite(upper))

        def residual(x: np.ndarray) -> np.ndarray:
            self.nlp.set_variables(x)
            return self.nlp.evaluate_constraints()

        def jacobian(x: np.ndarray) -> np.ndarray:
            self.nlp.set_variables(x)
            return self.nlp.get_jacobian_of_constraints().toarray()

        constraints = []
        if eq.size:
            constraints.append({
                "type": "eq",
                "fun": lambda x: residual(x)[eq] - lower[eq],
                "jac": lambda x: jacobian(x)[eq],
            })
        if has_lower.size:
            constraints.append({
                "type": "ineq",
                "fun": lambda x: residual(x)[has_lower] - lower[has_lower],
                "jac": lambda x: jacobian(x)[has_lower],
            })
        if has_upper.size:
            constraints.append({
                "type": "ineq",
                "fun": lambda x: upper[has_upper] - residual(x)[has_upper],
                "jac": lambda x: -jacobian(x)[has_upper],
            })
        return constraints

    def _variable_bounds(self) -> Bounds:
        bounds = self.nlp.get_bounds_on_optimization_variables()
        return Bounds(
            np.array([b.lower for b in bounds]),
            np.array([b.upper for b in bounds]),
        )

    def optimize(self, verbose: bool = True) -> OptimizationResult:
        """Solve the motion NLP.

        Args:
            verbose: Whether to log progress.

        Returns:
            OptimizationResult with the optimal motion.
        """
        x0 = self.nlp.get_starting_values()
        self.nlp.set_variables(x0)
        self._n_evals = 0

        if verbose:
            logger.info(
                "  Variables: %d, constraints: %d, costs: %d",
                self.nlp.get_number_of_optimization_variables(),
                self.nlp.get_number_of_constraints(),
                len(self.nlp.costs),
            )
            logger.info("  Initial cost: %.4f", self.nlp.evaluate_cost())

        t_start = time.time()
        res = minimize(
            self._objective,
            x0,
            jac=self._gradient,
            method=self.config.optimizer_method,
            bounds=self._variable_bounds(),
            constraints=self.build_scipy_constraints(),
            options={
                "maxiter": self.config.max_iter,
                "ftol": self.config.ftol,
                "disp": False,
            },
        )
        wall_time = time.time() - t_start

        self.nlp.set_variables(res.x)
        result = self._make_result(res, wall_time)

        if verbose:
            status = "converged" if result.success else "not converged"
            logger.info("Optimization complete (%s):", status)
            logger.info("  %s", result.message)
            logger.info("  Final cost: %.4f", result.cost)
            logger.info("  Iterations: %d", result.n_iterations)
            logger.info("  Total evaluations: %d", result.n_evaluations)
            logger.info("  Wall time: %.1fs", wall_time)

        return result

    def _make_result(self, res, wall_time: float) -> OptimizationResult:
        n_ee = self.ee_load.get_number_of_endeffectors()
        return OptimizationResult(
            x_opt=np.asarray(res.x, dtype=float).copy(),
            cost=self.nlp.evaluate_cost(),
            success=bool(res.success),
            message=str(res.message),
            com_coefficients=self.com_motion.get_optimization_parameters(),
            footholds=self.ee_motion.get_optimization_parameters().reshape(-1, DIM2D),
            lambdas=self.ee_load.get_optimization_parameters().reshape(-1, n_ee),
            cop=self.cop.get_optimization_parameters().reshape(-1, DIM2D),
            n_iterations=int(getattr(res, "nit", 0)),
            n_evaluations=self._n_evals,
            wall_time=wall_time,
        )

    def sample_com_trajectory(
        self,
        result: OptimizationResult,
        dt: float | None = None,
    ) -> dict[str, np.ndarray]:
        """Sample the optimized CoM motion.

        Args:
            result: Optimization result.
            dt: Sampling interval [s]. Defaults to the node interval.

        Returns:
            Dictionary with times (N,) and CoM position, velocity and
            acceleration (N, 2).
        """
        self.nlp.set_variables(result.x_opt)
        dts = build_time_grid(self.com_motion.get_total_time(),
                              dt or self.params.dt_nodes, include_terminal=True)
        return {
            "t": np.array(dts),
            "pos": np.array([self.com_motion.get_com_derivative(t, MotionDerivative.POS)
                             for t in dts]),
            "vel": np.array([self.com_motion.get_com_derivative(t, MotionDerivative.VEL)
                             for t in dts]),
            "acc": np.array([self.com_motion.get_com_derivative(t, MotionDerivative.ACC)
                             for t in dts]),
        }

    def validate_solution(self, result: OptimizationResult) -> dict:
        """Check every constraint of the solution against its bounds.

        Args:
            result: Optimization result to validate.

        Returns:
            Dictionary with the worst violation per constraint and overall.
        """
        self.nlp.set_variables(result.x_opt)

        violations = {}
        for constraint in self.nlp.constraints:
            violations[constraint.name] = max_bound_violation(
                constraint.evaluate_constraint(), constraint.get_bounds(),
            )
        max_violation = max(violations.values(), default=0.0)

        return {
            "constraint_violation": violations,
            "max_violation": max_violation,
            "cost": self.nlp.evaluate_cost(),
            "all_constraints_satisfied": max_violation <= self.config.feasibility_tol,
        }


def max_bound_violation(g: np.ndarray, bounds: list[Bound]) -> float:
    """Largest distance of g outside its bounds, 0 if all are satisfied."""
    if len(g) == 0:
        return 0.0
    lower = np.array([b.lower for b in bounds])
    upper = np.array([b.upper for b in bounds])
    return float(np.max(np.maximum(np.maximum(lower - g, g - upper), 0.0)))
