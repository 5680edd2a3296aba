"""Owners of the optimization-variable blocks."""

from .base import OptimizationVariableProvider
from .com_spline import ComSpline, MotionDerivative
from .cop import CenterOfPressure
from .ee_load import EndeffectorLoad
from .ee_motion import FIXED_BY_START_STANCE, Contact, EndeffectorsMotion

__all__ = [
    "OptimizationVariableProvider",
    "ComSpline",
    "MotionDerivative",
    "CenterOfPressure",
    "EndeffectorLoad",
    "FIXED_BY_START_STANCE",
    "Contact",
    "EndeffectorsMotion",
]
