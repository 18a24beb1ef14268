import argparse

import numpy as np
import pandas as pd

from methods.checks import sampling_check, stirling_comparison
from methods.occupancy import OccupancyModel

# Defaults, overridable from the command line
WEIGHTS = [1, 1, 2, 4, 8, 16, 32, 64]
COUNT = 10
TRIALS = 20
RESAMPLE = 100_000
STIRLING_PAIRS = [(100, 10), (1000, 100), (1000, 300), (10000, 3000)]

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Compare occupancy probabilities against approximations and samples.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    stirling = subparsers.add_parser("stirling", help="Exact vs. entropy-approximated log binomials")
    stirling.add_argument("--pairs", type=int, nargs="+", default=None,
                          help="Flat list of n k values, e.g. --pairs 100 10 1000 300")

    sample = subparsers.add_parser("sample", help="Computed vs. sampled occupancy pattern frequencies")
    sample.add_argument("--weights", type=float, nargs="+", default=WEIGHTS, help="Unnormalized bin weights")
    sample.add_argument("--count", type=int, default=COUNT, help="Number of draws per pattern")
    sample.add_argument("--trials", type=int, default=TRIALS, help="Number of target patterns to check")
    sample.add_argument("--resample", type=int, default=RESAMPLE, help="Resamples per target pattern")
    sample.add_argument("--method", choices=["dp", "recursive"], default="dp", help="Log-probability strategy")
    sample.add_argument("--seed", type=int, default=None, help="Specify a random seed")
    sample.add_argument("--test", action="store_true", help="Run a quick, small check")

    args = parser.parse_args()
    pd.set_option("display.width", 120)

    if args.command == "stirling":
        pairs = STIRLING_PAIRS
        if args.pairs is not None:
            if len(args.pairs) % 2:
                parser.error("--pairs needs an even number of values")
            pairs = list(zip(args.pairs[::2], args.pairs[1::2]))
        print(stirling_comparison(pairs).to_string(index=False))

    else:
        trials, resample = args.trials, args.resample
        if args.test:
            trials, resample = 5, 10_000

        rng = np.random.default_rng(seed=args.seed)
        model = OccupancyModel(args.weights)

        print(f"Distribution: {model}")
        print(f"Draws: {args.count}, trials: {trials}, resample: {resample:_}")
        print(f"Random seed: {args.seed}")

        results = sampling_check(model, args.count, trials=trials, resample=resample, rng=rng, method=args.method)
        print(results.to_string(index=False, formatters={'calc': '{:.5f}'.format,
                                                         'sample': '{:.5f}'.format,
                                                         'z': '{:+.3f}'.format}))
        exceed = int((~results['within']).sum())
        print(f"{exceed} of {trials} were 5% unlikely")
