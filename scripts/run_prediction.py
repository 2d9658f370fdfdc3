#!/usr/bin/env python3
"""
Standalone prediction script.
Runs every strategy, the ensemble vote and the weighted engine breakdown.
"""
import argparse
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from eurojackpot.config import DEFAULT_PROFILE, RepeatPenalty, load_weight_profile
from eurojackpot.draws import CSV_PATH, generate_synthetic_data, load_data
from eurojackpot.models.ensemble import learn_strategy_weights
from eurojackpot.models.weighted_scoring import predict as ws_predict
from eurojackpot.predictor import format_prediction, generate_prediction


def parse_args():
    parser = argparse.ArgumentParser(description="Predict the next Eurojackpot draw")
    parser.add_argument("--data", default=CSV_PATH, help="CSV of past draws (date,n1..n5,e1,e2)")
    parser.add_argument("--synthetic", type=int, default=0,
                        help="Use N synthetic draws instead of the CSV")
    parser.add_argument("--profile", help="JSON weight profile for the weighted engine")
    parser.add_argument("--learn-weights", action="store_true",
                        help="Weight the ensemble vote by a validation backtest")
    parser.add_argument("--main-penalty", type=float, default=RepeatPenalty().main)
    parser.add_argument("--euro-penalty", type=float, default=RepeatPenalty().euro)
    return parser.parse_args()


def main():
    args = parse_args()

    print("Loading data...")
    if args.synthetic:
        df = generate_synthetic_data(args.synthetic)
    else:
        df = load_data(args.data)
    print(f"Loaded {len(df)} draws")
    print(f"Date range: {df['date'].min().date()} to {df['date'].max().date()}")

    profile = load_weight_profile(args.profile) if args.profile else DEFAULT_PROFILE
    penalty = RepeatPenalty(args.main_penalty, args.euro_penalty)

    # ================================================================
    # WEIGHTED ENGINE
    # ================================================================
    print(f"\n{'='*70}")
    print(f"WEIGHTED SCORING ENGINE ({profile.name} v{profile.version})")
    print(f"{'='*70}")

    ws = ws_predict(df, profile)
    for i, c in enumerate(ws["main_rankings"][:10]):
        top = sorted(c.components.items(), key=lambda kv: -kv[1])[:3]
        detail = ", ".join(f"{k}={v:.0f}" for k, v in top)
        print(f"  #{i+1:2d}. Number {c.number:2d} - Score: {c.final_score:.2f} ({detail})")
    print("  Euro:")
    for i, c in enumerate(ws["euro_rankings"][:4]):
        print(f"  #{i+1:2d}. Number {c.number:2d} - Score: {c.final_score:.2f}")

    # ================================================================
    # ENSEMBLE
    # ================================================================
    weights = None
    if args.learn_weights:
        print("\nLearning strategy weights...")
        weights = learn_strategy_weights(df, penalty=penalty)

    result = generate_prediction(df, weights=weights, penalty=penalty)

    print(f"\n{'='*70}")
    print("ENSEMBLE PREDICTION")
    print(f"{'='*70}")
    for line in format_prediction(result):
        print(f"  {line}")

    print(f"\n{'='*70}")
    print("DISCLAIMER: Eurojackpot is a random lottery. No model guarantees wins.")
    print("Odds of the jackpot: 1 in 139,838,160. Play responsibly.")
    print(f"{'='*70}")


if __name__ == "__main__":
    main()
