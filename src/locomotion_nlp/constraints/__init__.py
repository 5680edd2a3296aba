"""Constraints of the motion NLP.

All constraints follow the same contract: bind providers in ``init``,
receive the current variables through ``update_variables`` and expose
residual, bounds and sparse Jacobians per variable set.
"""

from .base import Constraint, empty_jacobian, is_empty_jacobian
from .contact_load import ContactLoadConstraint
from .convexity import ConvexityConstraint
from .dynamic import DynamicConstraint
from .linear_spline_equality import LinearSplineEqualityConstraint
from .polygon_center import PolygonCenterConstraint
from .range_of_motion import JacobianState, RangeOfMotionBox
from .support_area import SupportAreaConstraint

__all__ = [
    "Constraint",
    "empty_jacobian",
    "is_empty_jacobian",
    "ContactLoadConstraint",
    "ConvexityConstraint",
    "DynamicConstraint",
    "LinearSplineEqualityConstraint",
    "PolygonCenterConstraint",
    "JacobianState",
    "RangeOfMotionBox",
    "SupportAreaConstraint",
]
