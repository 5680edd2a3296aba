"""Unit tests for geometric containers, variable sets and time grids."""

import numpy as np
import pytest

from locomotion_nlp.geometry import (
    MatVec,
    Ori,
    Point2d,
    Point3d,
    VecScalar,
    cache_exponents,
)
from locomotion_nlp.timing import (
    build_time_grid,
    find_segment,
    num_samples,
    num_segments,
)
from locomotion_nlp.variables import (
    Bound,
    OptimizationVariables,
    VariableSet,
    VariableSetID,
)


# ============================================================
# TestPoints
# ============================================================

class TestPoints:
    """Tests for point arithmetic used in spline interpolation."""

    def test_point2d_add(self):
        a = Point2d([1.0, 2.0], [0.1, 0.2], [0.0, 1.0])
        b = Point2d([0.5, -1.0], [0.0, 0.0], [1.0, 1.0])
        c = a + b
        np.testing.assert_allclose(c.p, [1.5, 1.0])
        np.testing.assert_allclose(c.v, [0.1, 0.2])
        np.testing.assert_allclose(c.a, [1.0, 2.0])

    def test_point2d_scale_both_sides(self):
        a = Point2d([1.0, 2.0], [3.0, 4.0], [5.0, 6.0])
        np.testing.assert_allclose((2.0 * a).p, (a * 2.0).p)
        np.testing.assert_allclose((0.5 * a).a, [2.5, 3.0])

    def test_point3d_xy(self):
        p = Point3d([1.0, 2.0, 3.0], [4.0, 5.0, 6.0])
        xy = p.xy()
        np.testing.assert_allclose(xy.p, [1.0, 2.0])
        np.testing.assert_allclose(xy.v, [4.0, 5.0])

    def test_identity_orientation(self):
        np.testing.assert_allclose(Ori().rpy(), np.zeros(3), atol=1e-12)

    def test_yaw_orientation(self):
        yaw = 0.3
        ori = Ori(q=np.array([np.cos(yaw / 2), 0.0, 0.0, np.sin(yaw / 2)]))
        np.testing.assert_allclose(ori.rpy(), [0.0, 0.0, yaw], atol=1e-12)


# ============================================================
# TestMatVec
# ============================================================

class TestMatVec:
    """Tests for the linear equation container."""

    def test_rows_match_vector(self):
        mv = MatVec(3, 4)
        assert mv.M.shape == (3, 4)
        assert len(mv.v) == mv.rows == 3
        assert mv.cols == 4

    def test_default_is_empty(self):
        assert MatVec().is_empty()
        assert not MatVec(1, 2).is_empty()

    def test_add_and_extract_row(self):
        mv = MatVec(2, 3)
        mv.add_vec_scalar(VecScalar(np.array([1.0, 2.0, 3.0]), -4.0), 1)
        row = mv.extract_row(1)
        np.testing.assert_allclose(row.v, [1.0, 2.0, 3.0])
        assert row.s == -4.0
        np.testing.assert_allclose(mv.M[0], 0.0)

    def test_add_row_wrong_length_raises(self):
        mv = MatVec(2, 3)
        with pytest.raises(ValueError):
            mv.add_vec_scalar(VecScalar.zeros(4), 0)

    @pytest.mark.parametrize("row", [-1, 2])
    def test_add_row_outside_matrix_raises(self, row):
        mv = MatVec(2, 3)
        with pytest.raises(ValueError):
            mv.add_vec_scalar(VecScalar.zeros(3), row)

    def test_append_stacks_rows(self):
        a = MatVec(2, 3)
        a.v[:] = [1.0, 2.0]
        b = MatVec(1, 3)
        b.v[:] = [3.0]
        a.append(b)
        assert a.M.shape == (3, 3)
        np.testing.assert_allclose(a.v, [1.0, 2.0, 3.0])

    def test_append_to_empty_adopts_columns(self):
        a = MatVec()
        a.append(MatVec(2, 5))
        assert a.M.shape == (2, 5)
        assert len(a.v) == 2

    def test_append_column_mismatch_raises(self):
        a = MatVec(2, 3)
        with pytest.raises(ValueError):
            a.append(MatVec(1, 4))

    def test_cache_exponents(self):
        np.testing.assert_allclose(cache_exponents(2.0, 5), [1, 2, 4, 8, 16])


# ============================================================
# TestTimeGrid
# ============================================================

class TestTimeGrid:
    """Tests for time discretization."""

    def test_integer_multiple_gives_exact_count(self):
        assert num_samples(0.3, 0.1) == 3
        np.testing.assert_allclose(build_time_grid(0.3, 0.1), [0.0, 0.1, 0.2])

    def test_terminal_sample(self):
        dts = build_time_grid(0.3, 0.1, include_terminal=True)
        assert len(dts) == 4
        assert dts[-1] == 0.3

    def test_grid_is_non_decreasing_and_starts_at_zero(self):
        dts = build_time_grid(1.7, 0.1, include_terminal=True)
        assert dts[0] == 0.0
        assert np.all(np.diff(dts) >= 0.0)

    def test_segment_count(self):
        assert num_segments(0.3, 0.1) == 3
        assert num_segments(0.35, 0.1) == 4
        assert num_segments(0.05, 0.1) == 1

    def test_non_positive_dt_raises(self):
        with pytest.raises(ValueError):
            num_samples(1.0, 0.0)

    def test_find_segment(self):
        t_start = np.array([0.0, 0.2, 0.5])
        assert find_segment(t_start, 0.0) == 0
        assert find_segment(t_start, 0.2) == 1
        assert find_segment(t_start, 0.49) == 1
        assert find_segment(t_start, 10.0) == 2


# ============================================================
# TestOptimizationVariables
# ============================================================

class TestOptimizationVariables:
    """Tests for the global variable vector."""

    @pytest.fixture
    def opt_vars(self):
        opt_vars = OptimizationVariables()
        opt_vars.add_variable_set(
            VariableSet(np.array([1.0, 2.0]), VariableSetID.COM_MOTION),
        )
        opt_vars.add_variable_set(
            VariableSet(np.array([3.0, 4.0, 5.0]), VariableSetID.EE_LOAD, Bound(0.0, 1.0)),
        )
        return opt_vars

    def test_column_ranges(self, opt_vars):
        assert opt_vars.column_range(VariableSetID.COM_MOTION) == slice(0, 2)
        assert opt_vars.column_range(VariableSetID.EE_LOAD) == slice(2, 5)
        assert opt_vars.get_opt_var_count() == 5

    def test_lookup_by_string_value(self, opt_vars):
        np.testing.assert_allclose(opt_vars.get_variables("convexity"), [3.0, 4.0, 5.0])

    def test_set_all_coefficients(self, opt_vars):
        opt_vars.set_all_coefficients(np.arange(5.0))
        np.testing.assert_allclose(opt_vars.get_variables(VariableSetID.COM_MOTION), [0, 1])
        np.testing.assert_allclose(opt_vars.get_variables(VariableSetID.EE_LOAD), [2, 3, 4])

    def test_get_variables_returns_copy(self, opt_vars):
        values = opt_vars.get_variables(VariableSetID.COM_MOTION)
        values[0] = 100.0
        assert opt_vars.get_variables(VariableSetID.COM_MOTION)[0] == 1.0

    def test_bounds_concatenate(self, opt_vars):
        bounds = opt_vars.get_bounds()
        assert len(bounds) == 5
        assert bounds[0] == Bound()
        assert bounds[4] == Bound(0.0, 1.0)

    def test_wrong_length_raises(self, opt_vars):
        with pytest.raises(ValueError):
            opt_vars.set_all_coefficients(np.zeros(4))
        with pytest.raises(ValueError):
            opt_vars.set_variables(VariableSetID.EE_LOAD, np.zeros(2))

    def test_duplicate_set_raises(self, opt_vars):
        with pytest.raises(ValueError):
            opt_vars.add_variable_set(VariableSet(np.zeros(1), VariableSetID.COM_MOTION))

    def test_unknown_set_raises(self, opt_vars):
        with pytest.raises(KeyError):
            opt_vars.get_variables(VariableSetID.COP)

    def test_bound_shift(self):
        assert Bound(-1.0, 1.0) - 0.5 == Bound(-1.5, 0.5)
        assert (Bound(0.0, 0.0) + 2.0).is_equality
