"""Drive a planar arm toward a target, one solver tick at a time.

Example:
    python scripts/reach_demo.py --mode sdls --target -30 84.853 0
"""

import argparse
import logging

import numpy as np

from chainik import KinematicChain, Solver, SolverConfig, SolverMode, Target

# --- Constants ---
SEGMENT_LENGTH = 50.0
DEFAULT_TARGET = [-30.0, 84.853, 0.0]


def build_arm(segments: int, length: float) -> KinematicChain:
    """Serial arm with a 45 degree bend between consecutive segments."""
    points = [np.zeros(3)]
    heading = np.pi / 2
    for _ in range(segments):
        points.append(points[-1] + length * np.array([np.cos(heading), np.sin(heading), 0.0]))
        heading -= np.pi / 4
    return KinematicChain.from_positions(points, is_3d=False)


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--mode",
        type=str,
        default=SolverMode.SDLS.value,
        choices=[mode.value for mode in SolverMode],
        help="Solver strategy",
    )
    parser.add_argument("--target", type=float, nargs=3, default=DEFAULT_TARGET, help="x y z")
    parser.add_argument("--segments", type=int, default=2, help="Number of arm segments")
    parser.add_argument("--ticks", type=int, default=40, help="Number of solver ticks")
    parser.add_argument("--times-per-frame", type=float, default=5.0)
    parser.add_argument("--max-error", type=float, default=0.01)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--verbose", action="store_true", help="Show solver debug logs")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    arm = build_arm(args.segments, SEGMENT_LENGTH)
    target = Target(np.array(args.target))
    config = SolverConfig(
        max_error=args.max_error,
        max_iterations=max(args.ticks * int(np.ceil(args.times_per_frame)), 1),
        times_per_frame=args.times_per_frame,
        seed=args.seed,
    )
    solver = Solver.create(arm, args.mode, target, config)

    print("=" * 50)
    print(f"  {args.mode} | {args.segments} segments | target {np.round(target.position, 3)}")
    print("=" * 50)
    for tick in range(args.ticks):
        converged = solver.solve()
        effector = arm.position(arm.end_effector)
        print(
            f"tick {tick:3d} | error {solver.error():10.4f} | "
            f"effector [{effector[0]:8.3f}, {effector[1]:8.3f}, {effector[2]:8.3f}]"
        )
        if converged:
            print(f"Reached target after {solver.last_iteration + 1} iterations")
            break
    else:
        print(f"Stopped after {args.ticks} ticks (error {solver.error():.4f})")


if __name__ == "__main__":
    main()
