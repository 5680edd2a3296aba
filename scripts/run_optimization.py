#!/usr/bin/env python3
"""Run CoM motion optimization offline.

Builds the motion NLP for a gait preset, solves it and writes the
optimized spline coefficients, footholds and loads to JSON.

Usage:
    python3 run_optimization.py [--gait trot] [--goal 0.25 0.0] [--max-iter 200]
"""

import argparse
import json
import logging
from pathlib import Path

import numpy as np

from locomotion_nlp import (
    ConstraintName,
    CostName,
    MotionOptimizer,
    MotionTypeID,
    OptimizerConfig,
    Point2d,
    make_motion_parameters,
)
from locomotion_nlp.optimizer import DEFAULT_CONSTRAINTS
from locomotion_nlp.reporting import print_results


def main() -> None:
    """Run motion optimization."""
    parser = argparse.ArgumentParser(
        description="Optimize the CoM motion of a legged robot",
    )
    parser.add_argument(
        "--gait", type=str, default="trot",
        choices=[m.value for m in MotionTypeID],
        help="Gait preset (default: trot)",
    )
    parser.add_argument(
        "--goal", type=float, nargs=2, default=[0.25, 0.0],
        metavar=("X", "Y"),
        help="Final position of the base center [m] (default: 0.25 0.0)",
    )
    parser.add_argument(
        "--dt", type=float, default=None,
        help="Node interval in seconds (default: gait preset)",
    )
    parser.add_argument(
        "--polys-per-phase", type=int, default=None,
        help="CoM polynomials per phase (default: gait preset)",
    )
    parser.add_argument(
        "--constraints", type=str, nargs="+", default=None,
        choices=[c.value for c in ConstraintName],
        help="Constraints to enforce (default: all implemented)",
    )
    parser.add_argument(
        "--rom-cost", type=float, default=0.0,
        help="Weight of the soft range-of-motion cost (default: 0, off)",
    )
    parser.add_argument(
        "--polygon-center-cost", type=float, default=0.0,
        help="Weight of the polygon center cost (default: 0, off)",
    )
    parser.add_argument(
        "--max-iter", type=int, default=200,
        help="Max solver iterations (default: 200)",
    )
    parser.add_argument(
        "--output", type=str, default=None,
        help="Output JSON path (default: data/optimized_motion_<gait>.json)",
    )
    args = parser.parse_args()

    if args.output is None:
        base_dir = Path(__file__).parent.parent / "data"
        args.output = str(base_dir / f"optimized_motion_{args.gait}.json")

    logging.basicConfig(
        level=logging.INFO,
        format="%(message)s",
    )
    logger = logging.getLogger(__name__)

    logger.info("=" * 60)
    logger.info("CoM Motion Optimization")
    logger.info("=" * 60)

    params = make_motion_parameters(args.gait)
    if args.dt is not None:
        params.dt_nodes = args.dt
    if args.polys_per_phase is not None:
        params.polys_per_phase = args.polys_per_phase

    costs = {CostName.COM_COST: 1.0}
    if args.rom_cost > 0.0:
        costs[CostName.RANGE_OF_MOTION_COST] = args.rom_cost
    if args.polygon_center_cost > 0.0:
        costs[CostName.POLYGON_CENTER_COST] = args.polygon_center_cost

    config = OptimizerConfig(
        motion_type=params.motion_type,
        params=params,
        goal=Point2d(np.array(args.goal)),
        constraints=tuple(args.constraints or DEFAULT_CONSTRAINTS),
        costs=costs,
        max_iter=args.max_iter,
    )

    logger.info(f"  Gait: {params.motion_type.value}")
    logger.info(f"  Phases: {len(params.phases)}")
    logger.info(f"  Duration: {params.get_total_time():.2f} s")
    logger.info(f"  Node interval: {params.dt_nodes} s")
    logger.info(f"  Goal: {config.goal.p.tolist()} m")
    logger.info(f"  Constraints: {[ConstraintName(c).value for c in config.constraints]}")
    logger.info(f"  Costs: {[CostName(c).value for c in config.costs]}")
    logger.info(f"  Max iter: {config.max_iter}")
    logger.info("")

    logger.info("Building NLP...")
    optimizer = MotionOptimizer(config)

    logger.info("Starting optimization...")
    logger.info("")
    result = optimizer.optimize(verbose=True)

    logger.info("")
    logger.info("Validating result...")
    validation = optimizer.validate_solution(result)
    print_results(result, validation, params.motion_type.value, params.get_total_time())

    # Save results
    output_path = Path(args.output)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    trajectory = optimizer.sample_com_trajectory(result)
    output_data = {
        "config": {
            "gait": params.motion_type.value,
            "dt_nodes": params.dt_nodes,
            "polys_per_phase": params.polys_per_phase,
            "phase_durations": params.get_phase_durations(),
            "goal": config.goal.p.tolist(),
        },
        "com_coefficients": result.com_coefficients.tolist(),
        "footholds": result.footholds.tolist(),
        "lambdas": result.lambdas.tolist(),
        "cop": result.cop.tolist(),
        "com_trajectory": {k: v.tolist() for k, v in trajectory.items()},
        "cost": result.cost,
        "success": result.success,
        "validation": validation,
    }

    with open(output_path, "w") as f:
        json.dump(output_data, f, indent=2)

    logger.info("")
    logger.info(f"Saved to {output_path}")


if __name__ == "__main__":
    main()
