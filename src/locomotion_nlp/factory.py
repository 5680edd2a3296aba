"""Builds the named constraints and costs of the motion NLP.

The factory holds the shared providers and the motion parameters and
wires them into concrete constraint and cost objects on request.
"""

import logging
from enum import Enum

import numpy as np

from .config import MotionParameters
from .constraints import (
    Constraint,
    ContactLoadConstraint,
    ConvexityConstraint,
    DynamicConstraint,
    LinearSplineEqualityConstraint,
    PolygonCenterConstraint,
    RangeOfMotionBox,
    SupportAreaConstraint,
)
from .costs import Cost, QuadraticSplineCost, SoftConstraint
from .geometry import DIM2D, MatVec, Point2d
from .providers import CenterOfPressure, ComSpline, EndeffectorLoad, EndeffectorsMotion
from .providers.com_spline import MotionDerivative
from .spline_equations import LinearSplineEquations
from .variables import Bound, VariableSet

logger = logging.getLogger(__name__)


class ConstraintName(str, Enum):
    INIT_COM = "InitCom"
    FINAL_COM = "FinalCom"
    JUNCTION_COM = "JunctionCom"
    CONVEXITY = "Convexity"
    DYNAMIC = "Dynamic"
    ROM_BOX = "RomBox"
    FINAL_STANCE = "FinalStance"
    OBSTACLE = "Obstacle"


class CostName(str, Enum):
    COM_COST = "ComCost"
    RANGE_OF_MOTION_COST = "RangeOfMotionCost"
    POLYGON_CENTER_COST = "PolygonCenterCost"
    FINAL_COM_COST = "FinalComCost"
    FINAL_STANCE_COST = "FinalStanceCost"


class CostConstraintFactory:
    """Creates constraints and costs against a shared set of providers.

    Usage:
        factory = CostConstraintFactory()
        factory.init(com, ee_motion, ee_load, cop, params, start, goal)
        constraints = factory.get_constraint(ConstraintName.CONVEXITY)
    """

    def __init__(self) -> None:
        self._initialized = False
        self._constraint_builders = {
            ConstraintName.INIT_COM: self._make_initial_constraint,
            ConstraintName.FINAL_COM: self._make_final_constraint,
            ConstraintName.JUNCTION_COM: self._make_junction_constraint,
            ConstraintName.CONVEXITY: self._make_convexity_constraint,
            ConstraintName.DYNAMIC: self._make_dynamic_constraint,
            ConstraintName.ROM_BOX: self._make_range_of_motion_box_constraint,
            ConstraintName.FINAL_STANCE: self._make_final_stance_constraint,
            ConstraintName.OBSTACLE: self._make_obstacle_constraint,
        }
        self._cost_builders = {
            CostName.COM_COST: self._make_motion_cost,
            CostName.RANGE_OF_MOTION_COST:
                lambda: self._to_cost(self._make_range_of_motion_box_constraint()),
            CostName.POLYGON_CENTER_COST:
                lambda: self._to_cost(self._make_polygon_center_constraint()),
            CostName.FINAL_COM_COST:
                lambda: self._to_cost(self._make_final_constraint()),
            CostName.FINAL_STANCE_COST:
                lambda: self._to_cost(self._make_final_stance_constraint()),
        }

    def init(
        self,
        com_motion: ComSpline,
        ee_motion: EndeffectorsMotion,
        ee_load: EndeffectorLoad,
        cop: CenterOfPressure,
        params: MotionParameters,
        initial_state: Point2d,
        final_state: Point2d,
    ) -> None:
        """Bind the providers and motion parameters.

        Args:
            com_motion: CoM spline.
            ee_motion: Contact schedule and footholds.
            ee_load: Load distribution.
            cop: Center of pressure.
            params: Motion parameters.
            initial_state: Initial state of the geometric base center.
            final_state: Desired final state of the geometric base center.
        """
        self.com_motion = com_motion
        self.ee_motion = ee_motion
        self.ee_load = ee_load
        self.cop = cop
        self.params = params
        self._initial_geom_state = initial_state
        self._final_geom_state = final_state
        self._initialized = True

    def get_constraint(self, name: ConstraintName | str) -> list[Constraint]:
        """Build the constraints registered under a name.

        Raises:
            ValueError: If the name is not a known constraint.
        """
        try:
            key = ConstraintName(name)
        except ValueError as err:
            raise ValueError(f"Constraint not defined: {name!r}") from err
        self._check_initialized()
        constraints = self._constraint_builders[key]()
        logger.debug("Built %s: %s", key.value, constraints)
        return constraints

    def get_cost(self, name: CostName | str) -> Cost | None:
        """Build the cost registered under a name.

        Returns:
            The cost, or None if it relies on a constraint that is not
            available yet.

        Raises:
            ValueError: If the name is not a known cost.
        """
        try:
            key = CostName(name)
        except ValueError as err:
            raise ValueError(f"Cost not defined: {name!r}") from err
        self._check_initialized()
        cost = self._cost_builders[key]()
        logger.debug("Built %s: %s", key.value, cost)
        return cost

    def spline_coeff_variables(self) -> VariableSet:
        return self.com_motion.to_variable_set()

    def contact_variables(self) -> VariableSet:
        return self.ee_motion.to_variable_set()

    def convexity_variables(self) -> VariableSet:
        # start as if every leg carried half of the total load
        lambdas = np.full(self.ee_load.get_opt_var_count(), 0.5)
        self.ee_load.set_optimization_parameters(lambdas)
        return self.ee_load.to_variable_set(Bound(0.0, 1.0))

    def cop_variables(self) -> VariableSet:
        return self.cop.to_variable_set()

    def _make_initial_constraint(self) -> list[Constraint]:
        eq = LinearSplineEquations(self.com_motion)
        constraint = LinearSplineEqualityConstraint()
        constraint.init(self.com_motion,
                        eq.make_initial(self._to_com_state(self._initial_geom_state)),
                        "Initial XY")
        return [constraint]

    def _make_final_constraint(self) -> list[Constraint]:
        eq = LinearSplineEquations(self.com_motion)
        constraint = LinearSplineEqualityConstraint()
        derivatives = (MotionDerivative.POS, MotionDerivative.VEL, MotionDerivative.ACC)
        constraint.init(self.com_motion,
                        eq.make_final(self._to_com_state(self._final_geom_state),
                                      derivatives),
                        "Final XY")
        return [constraint]

    def _make_junction_constraint(self) -> list[Constraint]:
        eq = LinearSplineEquations(self.com_motion)
        constraint = LinearSplineEqualityConstraint()
        constraint.init(self.com_motion, eq.make_junction(), "Junction")
        return [constraint]

    def _make_dynamic_constraint(self) -> list[Constraint]:
        constraint = DynamicConstraint()
        constraint.init(self.com_motion, self.ee_motion, self.ee_load,
                        self.ee_motion.get_total_time(), self.params.dt_nodes,
                        self.params.walking_height)
        return [constraint]

    def _make_range_of_motion_box_constraint(self) -> list[Constraint]:
        constraint = RangeOfMotionBox(
            self.params.get_maximum_deviation_from_nominal(),
            self.params.get_nominal_stance_in_base(),
        )
        constraint.init(self.com_motion, self.ee_motion, self.params.dt_nodes)
        return [constraint]

    def _make_convexity_constraint(self) -> list[Constraint]:
        support_area = SupportAreaConstraint()
        support_area.init(self.ee_motion, self.ee_load, self.cop,
                          self.ee_motion.get_total_time(), self.params.dt_nodes)

        convexity = ConvexityConstraint()
        convexity.init(self.ee_load)

        contact_load = ContactLoadConstraint()
        contact_load.init(self.ee_motion, self.ee_load)

        return [support_area, convexity, contact_load]

    def _make_polygon_center_constraint(self) -> list[Constraint]:
        constraint = PolygonCenterConstraint()
        constraint.init(self.ee_load, self.ee_motion)
        return [constraint]

    def _make_final_stance_constraint(self) -> list[Constraint]:
        logger.warning("Final stance constraint is not available, skipping")
        return []

    def _make_obstacle_constraint(self) -> list[Constraint]:
        logger.warning("Obstacle constraint is not available, skipping")
        return []

    def _make_motion_cost(self) -> Cost:
        eq = LinearSplineEquations(self.com_motion)
        term = eq.make_acceleration(self.params.weight_com_motion_xy)

        mv = MatVec(*term.shape)
        mv.M = term

        cost = QuadraticSplineCost()
        cost.init(mv, self.com_motion)
        return cost

    def _to_cost(self, constraints: list[Constraint]) -> Cost | None:
        if not constraints:
            return None
        return SoftConstraint(constraints[0])

    def _to_com_state(self, geom_state: Point2d) -> Point2d:
        offset = Point2d(self.params.offset_geom_to_com[:DIM2D])
        return geom_state + offset

    def _check_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError("CostConstraintFactory.init() has not been called")
