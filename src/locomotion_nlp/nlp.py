"""Assembles variables, constraints and costs into one nonlinear program.

The NLP presents the flat view a solver needs: one variable vector, one
stacked constraint vector with bounds, one sparse Jacobian and a scalar
cost with its gradient. ``set_variables`` is the single path through
which new solver iterates reach the providers.
"""

import logging

import numpy as np
from scipy import sparse

from .constraints import Constraint, is_empty_jacobian
from .costs import Cost
from .variables import Bound, OptimizationVariables, VariableSet

logger = logging.getLogger(__name__)


class NLP:
    """Nonlinear program over a set of named variable blocks.

    Usage:
        nlp = NLP()
        nlp.add_variable_set(factory.spline_coeff_variables())
        nlp.add_constraint(factory.get_constraint("InitCom"))
        nlp.add_cost(factory.get_cost("ComCost"), weight=1.0)
        nlp.set_variables(nlp.get_starting_values())
        g = nlp.evaluate_constraints()
    """

    def __init__(self) -> None:
        self.opt_variables = OptimizationVariables()
        self.constraints: list[Constraint] = []
        self.costs: list[tuple[Cost, float]] = []
        self._last_x_hash: int | None = None

    def add_variable_set(self, var_set: VariableSet) -> None:
        self.opt_variables.add_variable_set(var_set)
        self._last_x_hash = None

    def add_constraint(self, constraints: list[Constraint]) -> None:
        """Append constraints; an empty list is accepted and ignored."""
        for constraint in constraints:
            self.constraints.append(constraint)
            logger.debug("Added constraint %s", constraint)
        self._last_x_hash = None

    def add_cost(self, cost: Cost, weight: float = 1.0) -> None:
        self.costs.append((cost, float(weight)))
        logger.debug("Added cost %s (weight %.3g)", cost, weight)
        self._last_x_hash = None

    def get_starting_values(self) -> np.ndarray:
        return self.opt_variables.get_optimization_variables()

    def get_number_of_optimization_variables(self) -> int:
        return self.opt_variables.get_opt_var_count()

    def get_bounds_on_optimization_variables(self) -> list[Bound]:
        return self.opt_variables.get_bounds()

    def get_number_of_constraints(self) -> int:
        return sum(c.get_number_of_constraints() for c in self.constraints)

    def set_variables(self, x: np.ndarray) -> None:
        """Distribute x over the variable sets and refresh every term.

        Repeated calls with an unchanged vector are skipped.
        """
        x = np.asarray(x, dtype=float)
        x_hash = hash(x.tobytes())
        if x_hash == self._last_x_hash:
            return
        self.opt_variables.set_all_coefficients(x)
        for constraint in self.constraints:
            constraint.update_variables(self.opt_variables)
        for cost, _ in self.costs:
            cost.update_variables(self.opt_variables)
        self._last_x_hash = x_hash

    def evaluate_constraints(self) -> np.ndarray:
        if not self.constraints:
            return np.zeros(0)
        return np.concatenate([c.evaluate_constraint() for c in self.constraints])

    def get_constraint_bounds(self) -> list[Bound]:
        bounds: list[Bound] = []
        for constraint in self.constraints:
            bounds.extend(constraint.get_bounds())
        return bounds

    def constraint_slices(self) -> list[tuple[Constraint, slice]]:
        """Rows of the stacked constraint vector owned by each constraint."""
        slices = []
        row = 0
        for constraint in self.constraints:
            n = constraint.get_number_of_constraints()
            slices.append((constraint, slice(row, row + n)))
            row += n
        return slices

    def get_jacobian_of_constraints(self) -> sparse.csr_matrix:
        """Stacked Jacobian of all constraints w.r.t. all variables.

        Raises:
            ValueError: If a constraint returns a block whose shape does not
                match its row count and the variable set's size.
        """
        n_vars = self.get_number_of_optimization_variables()
        var_sets = [s for s in self.opt_variables.get_var_sets() if len(s) > 0]

        rows = []
        for constraint in self.constraints:
            n_rows = constraint.get_number_of_constraints()
            if n_rows == 0:
                continue
            blocks = []
            for var_set in var_sets:
                jac = constraint.get_jacobian_with_respect_to(var_set.id)
                if is_empty_jacobian(jac):
                    jac = sparse.csr_matrix((n_rows, len(var_set)))
                elif jac.shape != (n_rows, len(var_set)):
                    raise ValueError(
                        f"{constraint.name}: Jacobian w.r.t. {var_set.id.value} has "
                        f"shape {jac.shape}, expected {(n_rows, len(var_set))}"
                    )
                blocks.append(jac)
            rows.append(blocks)

        if not rows or not var_sets:
            return sparse.csr_matrix((self.get_number_of_constraints(), n_vars))
        return sparse.bmat(rows, format="csr")

    def evaluate_cost(self) -> float:
        return float(sum(w * cost.evaluate_cost() for cost, w in self.costs))

    def evaluate_cost_gradient(self) -> np.ndarray:
        grad = np.zeros(self.get_number_of_optimization_variables())
        for var_set in self.opt_variables.get_var_sets():
            cols = self.opt_variables.column_range(var_set.id)
            for cost, w in self.costs:
                g = cost.evaluate_gradient_wrt(var_set.id)
                if g.size:
                    grad[cols] += w * g
        return grad
