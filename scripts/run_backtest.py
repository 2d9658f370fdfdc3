#!/usr/bin/env python3
"""
Walk-forward backtest of every strategy (or a chosen subset).
"""
import argparse
import os
import sys
from functools import partial

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from eurojackpot.backtester import print_summary, run_backtest
from eurojackpot.config import RepeatPenalty
from eurojackpot.draws import CSV_PATH, generate_synthetic_data, load_data
from eurojackpot.models.strategies import STRATEGIES


def parse_args():
    parser = argparse.ArgumentParser(description="Backtest Eurojackpot strategies")
    parser.add_argument("--data", default=CSV_PATH, help="CSV of past draws (date,n1..n5,e1,e2)")
    parser.add_argument("--synthetic", type=int, default=0,
                        help="Use N synthetic draws instead of the CSV")
    parser.add_argument("--min-history", type=int, required=True,
                        help="Index of the first target window")
    parser.add_argument("--max-targets", type=int, default=None)
    parser.add_argument("--strategy", action="append", choices=sorted(STRATEGIES),
                        help="Strategy to test (repeatable, default: all)")
    parser.add_argument("--proximity", action="store_true", help="Add the near-miss bonus")
    parser.add_argument("--jobs", type=int, default=1, help="joblib workers")
    return parser.parse_args()


def main():
    args = parse_args()

    if args.synthetic:
        df = generate_synthetic_data(args.synthetic)
    else:
        df = load_data(args.data)
    print(f"Loaded {len(df)} draws")

    names = args.strategy or list(STRATEGIES)
    runs = []
    for name in names:
        run = run_backtest(
            df,
            partial(STRATEGIES[name], penalty=RepeatPenalty()),
            args.min_history,
            name=name,
            use_proximity=args.proximity,
            max_targets=args.max_targets,
            n_jobs=args.jobs,
        )
        print_summary(run)
        runs.append(run)

    tested = [r for r in runs if r.summary["total_tests"]]
    print(f"\n{'='*60}")
    print("RANKING BY AVERAGE SCORE")
    print(f"{'='*60}")
    for i, run in enumerate(sorted(tested, key=lambda r: -r.summary["avg_score"])):
        s = run.summary
        print(f"  {i+1}. {run.name:<20} score {s['avg_score']:6.2f} | "
              f"main {s['avg_main_matches']:.3f} | euro {s['avg_euro_matches']:.3f} | "
              f">=3 main {s['main_at_least_3']}")


if __name__ == "__main__":
    main()
