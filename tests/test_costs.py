"""Unit tests for cost terms and spline quadratic forms."""

import numpy as np
import pytest

from locomotion_nlp.constraints import ConvexityConstraint, RangeOfMotionBox
from locomotion_nlp.costs import QuadraticSplineCost, SoftConstraint
from locomotion_nlp.geometry import MatVec
from locomotion_nlp.providers import ComSpline
from locomotion_nlp.spline_equations import LinearSplineEquations
from locomotion_nlp.variables import VariableSetID


def _finite_difference_gradient(cost, opt_vars, var_id, eps=1e-6):
    x0 = opt_vars.get_variables(var_id)
    grad = np.zeros(len(x0))
    for i in range(len(x0)):
        x = x0.copy()
        x[i] += eps
        opt_vars.set_variables(var_id, x)
        cost.update_variables(opt_vars)
        f_plus = cost.evaluate_cost()

        x[i] -= 2 * eps
        opt_vars.set_variables(var_id, x)
        cost.update_variables(opt_vars)
        f_minus = cost.evaluate_cost()

        grad[i] = (f_plus - f_minus) / (2 * eps)

    opt_vars.set_variables(var_id, x0)
    cost.update_variables(opt_vars)
    return grad


def _acceleration_cost(problem, weights=(1.0, 1.0)):
    eq = LinearSplineEquations(problem.com_motion)
    term = eq.make_acceleration(np.array(weights))
    mv = MatVec(*term.shape)
    mv.M = term
    cost = QuadraticSplineCost()
    cost.init(mv, problem.com_motion)
    cost.update_variables(problem.opt_vars)
    return cost


# ============================================================
# TestDerivativeQuadraticForms
# ============================================================

class TestDerivativeQuadraticForms:
    """Tests for the integral-of-squared-derivative matrices."""

    def test_constant_acceleration_integral(self):
        spline = ComSpline([2.0])
        coeff = np.zeros(spline.get_total_free_coeff())
        coeff[spline.index(0, 0, 2)] = 0.5  # a_x = 1
        coeff[spline.index(0, 1, 2)] = 1.0  # a_y = 2
        Q = LinearSplineEquations(spline).make_acceleration(np.array([1.0, 3.0]))
        # integral over 2s of 1^2 + 3 * 2^2
        assert coeff @ Q @ coeff == pytest.approx(2.0 * (1.0 + 12.0))

    def test_linear_motion_has_no_acceleration_cost(self):
        spline = ComSpline([0.5, 0.5])
        coeff = np.zeros(spline.get_total_free_coeff())
        coeff[spline.index(0, 0, 0)] = 1.0
        coeff[spline.index(1, 1, 1)] = -2.0
        Q = LinearSplineEquations(spline).make_acceleration(np.ones(2))
        assert coeff @ Q @ coeff == pytest.approx(0.0)

    def test_jerk_of_cubic(self):
        spline = ComSpline([1.0])
        coeff = np.zeros(spline.get_total_free_coeff())
        coeff[spline.index(0, 0, 3)] = 1.0  # jerk = 6
        Q = LinearSplineEquations(spline).make_jerk(np.ones(2))
        assert coeff @ Q @ coeff == pytest.approx(36.0)

    def test_forms_are_symmetric_positive_semidefinite(self):
        spline = ComSpline([0.3, 0.2])
        Q = LinearSplineEquations(spline).make_acceleration(np.ones(2))
        np.testing.assert_allclose(Q, Q.T)
        assert np.min(np.linalg.eigvalsh(Q)) > -1e-10


# ============================================================
# TestQuadraticSplineCost
# ============================================================

class TestQuadraticSplineCost:
    """Tests for the CoM motion cost."""

    def test_gradient_matches_finite_differences(self, trot):
        cost = _acceleration_cost(trot, weights=(1.0, 2.0))
        grad = cost.evaluate_gradient_wrt(VariableSetID.COM_MOTION)
        fd = _finite_difference_gradient(cost, trot.opt_vars, VariableSetID.COM_MOTION)
        np.testing.assert_allclose(grad, fd, rtol=1e-5, atol=1e-5)

    def test_linear_term(self, trot):
        n = trot.com_motion.get_total_free_coeff()
        mv = MatVec(n, n)
        mv.v = np.arange(n, dtype=float)
        cost = QuadraticSplineCost()
        cost.init(mv, trot.com_motion)
        cost.update_variables(trot.opt_vars)
        x = trot.com_motion.get_optimization_parameters()
        assert cost.evaluate_cost() == pytest.approx(mv.v @ x)
        np.testing.assert_allclose(
            cost.evaluate_gradient_wrt(VariableSetID.COM_MOTION), mv.v)

    def test_independent_of_other_sets(self, trot):
        cost = _acceleration_cost(trot)
        assert cost.evaluate_gradient_wrt(VariableSetID.EE_LOAD).size == 0

    def test_shape_mismatch_raises(self, trot):
        with pytest.raises(ValueError):
            QuadraticSplineCost().init(MatVec(3, 3), trot.com_motion)


# ============================================================
# TestSoftConstraint
# ============================================================

class TestSoftConstraint:
    """Tests for constraints turned into penalties."""

    def test_zero_inside_bounds(self, two_foot):
        constraint = ConvexityConstraint()
        constraint.init(two_foot.ee_load)
        cost = SoftConstraint(constraint)
        cost.update_variables(two_foot.opt_vars)
        assert cost.evaluate_cost() == 0.0
        np.testing.assert_allclose(cost.evaluate_gradient_wrt(VariableSetID.EE_LOAD), 0.0)

    def test_penalizes_violation(self, two_foot):
        two_foot.opt_vars.set_variables(VariableSetID.EE_LOAD, np.full(6, 0.6))
        constraint = ConvexityConstraint()
        constraint.init(two_foot.ee_load)
        cost = SoftConstraint(constraint, weights=np.array([1.0, 2.0, 3.0]))
        cost.update_variables(two_foot.opt_vars)
        # violation 0.2 in every segment
        assert cost.evaluate_cost() == pytest.approx(0.5 * 0.04 * 6.0)

    @pytest.mark.parametrize("var_id", [VariableSetID.COM_MOTION, VariableSetID.EE_MOTION])
    def test_range_of_motion_gradient(self, trot, var_id):
        constraint = RangeOfMotionBox(
            trot.params.get_maximum_deviation_from_nominal(),
            trot.params.get_nominal_stance_in_base(),
        )
        constraint.init(trot.com_motion, trot.ee_motion, trot.params.dt_nodes)
        cost = SoftConstraint(constraint)
        cost.update_variables(trot.opt_vars)
        assert cost.evaluate_cost() > 0.0

        grad = cost.evaluate_gradient_wrt(var_id)
        fd = _finite_difference_gradient(cost, trot.opt_vars, var_id)
        np.testing.assert_allclose(grad, fd, rtol=1e-4, atol=1e-5)

    def test_independent_set_has_empty_gradient(self, two_foot):
        constraint = ConvexityConstraint()
        constraint.init(two_foot.ee_load)
        cost = SoftConstraint(constraint)
        cost.update_variables(two_foot.opt_vars)
        assert cost.evaluate_gradient_wrt(VariableSetID.COP).size == 0

    def test_wrong_weight_count_raises(self, two_foot):
        constraint = ConvexityConstraint()
        constraint.init(two_foot.ee_load)
        cost = SoftConstraint(constraint, weights=np.ones(2))
        cost.update_variables(two_foot.opt_vars)
        with pytest.raises(ValueError):
            cost.evaluate_cost()
