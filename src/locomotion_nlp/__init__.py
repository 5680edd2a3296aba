"""Locomotion NLP - constraints and costs for legged CoM motion optimization."""

from .config import MotionParameters, MotionTypeID, Phase, QuadrupedLeg, make_motion_parameters
from .costs import Cost, QuadraticSplineCost, SoftConstraint
from .factory import ConstraintName, CostConstraintFactory, CostName
from .geometry import MatVec, Point2d, Point3d, VecScalar
from .nlp import NLP
from .optimizer import MotionOptimizer, OptimizationResult, OptimizerConfig
from .spline_equations import LinearSplineEquations
from .variables import Bound, OptimizationVariables, VariableSet, VariableSetID

__all__ = [
    "MotionParameters",
    "MotionTypeID",
    "Phase",
    "QuadrupedLeg",
    "make_motion_parameters",
    "Cost",
    "QuadraticSplineCost",
    "SoftConstraint",
    "ConstraintName",
    "CostConstraintFactory",
    "CostName",
    "MatVec",
    "Point2d",
    "Point3d",
    "VecScalar",
    "NLP",
    "MotionOptimizer",
    "OptimizationResult",
    "OptimizerConfig",
    "LinearSplineEquations",
    "Bound",
    "OptimizationVariables",
    "VariableSet",
    "VariableSetID",
]
