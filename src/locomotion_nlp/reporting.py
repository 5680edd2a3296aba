"""Result reporting utilities for CoM motion optimization."""

from .optimizer import OptimizationResult


def print_results(
    result: OptimizationResult,
    validation: dict,
    motion_type: str,
    total_time: float,
) -> None:
    """Print formatted summary of an optimized motion."""
    print("\n" + "=" * 70)
    print("  CoM Motion Optimization Results")
    print("=" * 70)
    status = "converged" if result.success else "not converged"
    print(f"  Gait: {motion_type} | Duration: {total_time:.2f}s | "
          f"Cost: {result.cost:.4f} ({status})")
    print(f"  Iterations: {result.n_iterations} | "
          f"Evaluations: {result.n_evaluations} | Wall time: {result.wall_time:.1f}s")

    # Constraint summary
    print(f"\n  {'Constraint':<20} | {'Max violation':>14}")
    print(f"  {'-'*20}-+-{'-'*14}")
    for name, violation in validation["constraint_violation"].items():
        print(f"  {name:<20} | {violation:14.2e}")

    # Footholds
    if len(result.footholds):
        print(f"\n  {'Contact':<8} | {'x [m]':>10} | {'y [m]':>10}")
        print(f"  {'-'*8}-+-{'-'*10}-+-{'-'*10}")
        for i, (x, y) in enumerate(result.footholds):
            print(f"  {i:<8} | {x:10.4f} | {y:10.4f}")

    print(f"\n  All satisfied: {validation['all_constraints_satisfied']}")
    print("=" * 70)
