"""Unit tests for the cost/constraint factory and NLP assembly."""

import logging

import numpy as np
import pytest
from scipy import sparse

from locomotion_nlp.constraints import (
    ContactLoadConstraint,
    ConvexityConstraint,
    DynamicConstraint,
    LinearSplineEqualityConstraint,
    RangeOfMotionBox,
    SupportAreaConstraint,
)
from locomotion_nlp.costs import QuadraticSplineCost, SoftConstraint
from locomotion_nlp.factory import ConstraintName, CostConstraintFactory, CostName
from locomotion_nlp.geometry import Point2d
from locomotion_nlp.nlp import NLP
from locomotion_nlp.variables import Bound, VariableSetID


@pytest.fixture
def factory(trot):
    factory = CostConstraintFactory()
    factory.init(
        trot.com_motion, trot.ee_motion, trot.ee_load, trot.cop, trot.params,
        Point2d([0.0, 0.0]), Point2d([0.3, 0.1]),
    )
    return factory


@pytest.fixture
def nlp(factory):
    nlp = NLP()
    nlp.add_variable_set(factory.spline_coeff_variables())
    nlp.add_variable_set(factory.contact_variables())
    nlp.add_variable_set(factory.convexity_variables())
    nlp.add_variable_set(factory.cop_variables())
    for name in ConstraintName:
        nlp.add_constraint(factory.get_constraint(name))
    nlp.add_cost(factory.get_cost(CostName.COM_COST), 1.0)
    nlp.add_cost(factory.get_cost(CostName.RANGE_OF_MOTION_COST), 0.5)
    nlp.set_variables(nlp.get_starting_values())
    return nlp


# ============================================================
# TestConstraintDispatch
# ============================================================

class TestConstraintDispatch:
    """Tests for building constraints by name."""

    @pytest.mark.parametrize("name, expected", [
        (ConstraintName.INIT_COM, [LinearSplineEqualityConstraint]),
        (ConstraintName.FINAL_COM, [LinearSplineEqualityConstraint]),
        (ConstraintName.JUNCTION_COM, [LinearSplineEqualityConstraint]),
        (ConstraintName.DYNAMIC, [DynamicConstraint]),
        (ConstraintName.ROM_BOX, [RangeOfMotionBox]),
        (ConstraintName.CONVEXITY,
         [SupportAreaConstraint, ConvexityConstraint, ContactLoadConstraint]),
    ])
    def test_builds_expected_types(self, factory, name, expected):
        constraints = factory.get_constraint(name)
        assert [type(c) for c in constraints] == expected

    def test_accepts_string_names(self, factory):
        constraints = factory.get_constraint("Convexity")
        assert len(constraints) == 3

    @pytest.mark.parametrize("name", [ConstraintName.FINAL_STANCE, ConstraintName.OBSTACLE])
    def test_unavailable_constraints_are_empty(self, factory, name, caplog):
        with caplog.at_level(logging.WARNING):
            assert factory.get_constraint(name) == []
        assert "not available" in caplog.text

    def test_unknown_constraint_raises(self, factory):
        with pytest.raises(ValueError, match="not defined"):
            factory.get_constraint("Teleport")

    def test_use_before_init_raises(self):
        with pytest.raises(RuntimeError):
            CostConstraintFactory().get_constraint(ConstraintName.DYNAMIC)

    def test_constraints_share_providers(self, factory, trot):
        support_area, convexity, _ = factory.get_constraint(ConstraintName.CONVEXITY)
        assert support_area._ee_load is convexity._ee_load is trot.ee_load

    def test_boundary_states_include_com_offset(self, factory, trot):
        (initial,) = factory.get_constraint(ConstraintName.INIT_COM)
        (final,) = factory.get_constraint(ConstraintName.FINAL_COM)
        offset = trot.params.offset_geom_to_com[:2]

        coeff = np.zeros(trot.com_motion.get_total_free_coeff())
        for seg in range(trot.com_motion.get_number_of_segments()):
            for dim in range(2):
                coeff[trot.com_motion.index(seg, dim, 0)] = offset[dim]
        trot.opt_vars.set_variables(VariableSetID.COM_MOTION, coeff)
        initial.update_variables(trot.opt_vars)
        np.testing.assert_allclose(initial.evaluate_constraint(), 0.0, atol=1e-12)

        final.update_variables(trot.opt_vars)
        np.testing.assert_allclose(final.evaluate_constraint()[:2], [-0.3, -0.1])


# ============================================================
# TestCostDispatch
# ============================================================

class TestCostDispatch:
    """Tests for building costs by name."""

    def test_motion_cost(self, factory):
        assert isinstance(factory.get_cost(CostName.COM_COST), QuadraticSplineCost)

    @pytest.mark.parametrize("name", [
        CostName.RANGE_OF_MOTION_COST,
        CostName.POLYGON_CENTER_COST,
        CostName.FINAL_COM_COST,
    ])
    def test_soft_constraint_costs(self, factory, name):
        assert isinstance(factory.get_cost(name), SoftConstraint)

    def test_final_stance_cost_is_none(self, factory):
        assert factory.get_cost(CostName.FINAL_STANCE_COST) is None

    def test_unknown_cost_raises(self, factory):
        with pytest.raises(ValueError, match="not defined"):
            factory.get_cost("EnergyCost")

    def test_convexity_variables_start_at_half_load(self, factory):
        var_set = factory.convexity_variables()
        assert var_set.id is VariableSetID.EE_LOAD
        np.testing.assert_allclose(var_set.values, 0.5)
        assert all(b == Bound(0.0, 1.0) for b in var_set.bounds)


# ============================================================
# TestNLP
# ============================================================

class TestNLP:
    """Tests for the stacked nonlinear program."""

    def test_dimensions(self, nlp, trot):
        n_vars = sum(len(s) for s in trot.opt_vars.get_var_sets())
        assert nlp.get_number_of_optimization_variables() == n_vars
        g = nlp.evaluate_constraints()
        assert len(g) == len(nlp.get_constraint_bounds()) == nlp.get_number_of_constraints()
        assert nlp.get_jacobian_of_constraints().shape == (len(g), n_vars)

    def test_jacobian_matches_finite_differences(self, nlp):
        rng = np.random.default_rng(3)
        x0 = nlp.get_starting_values() + rng.uniform(
            -0.05, 0.05, nlp.get_number_of_optimization_variables())
        nlp.set_variables(x0)
        jac = nlp.get_jacobian_of_constraints()
        assert sparse.issparse(jac)

        eps = 1e-6
        for i in rng.choice(len(x0), size=25, replace=False):
            x = x0.copy()
            x[i] += eps
            nlp.set_variables(x)
            g_plus = nlp.evaluate_constraints()
            x[i] -= 2 * eps
            nlp.set_variables(x)
            g_minus = nlp.evaluate_constraints()
            np.testing.assert_allclose(
                jac[:, i].toarray().ravel(), (g_plus - g_minus) / (2 * eps), atol=1e-5,
            )

    def test_cost_gradient_matches_finite_differences(self, nlp):
        x0 = nlp.get_starting_values()
        nlp.set_variables(x0)
        grad = nlp.evaluate_cost_gradient()

        eps = 1e-6
        for i in range(0, len(x0), 7):
            x = x0.copy()
            x[i] += eps
            nlp.set_variables(x)
            f_plus = nlp.evaluate_cost()
            x[i] -= 2 * eps
            nlp.set_variables(x)
            f_minus = nlp.evaluate_cost()
            assert grad[i] == pytest.approx((f_plus - f_minus) / (2 * eps), abs=1e-4)

    def test_constraint_slices_cover_vector(self, nlp):
        slices = nlp.constraint_slices()
        assert slices[0][1].start == 0
        assert slices[-1][1].stop == nlp.get_number_of_constraints()
        for (_, a), (_, b) in zip(slices, slices[1:]):
            assert a.stop == b.start

    def test_set_variables_reaches_providers(self, nlp, trot):
        x = nlp.get_starting_values()
        x[:3] = [1.0, 2.0, 3.0]
        nlp.set_variables(x)
        np.testing.assert_allclose(trot.com_motion.get_optimization_parameters()[:3],
                                   [1.0, 2.0, 3.0])

    def test_bad_jacobian_shape_raises(self, nlp, trot):
        class Broken(ConvexityConstraint):
            def get_jacobian_with_respect_to(self, var_set):
                return sparse.csr_matrix((1, 1))

        broken = Broken()
        broken.init(trot.ee_load)
        nlp.add_constraint([broken])
        with pytest.raises(ValueError):
            nlp.get_jacobian_of_constraints()
