"""
Eurojackpot multi-factor scoring and backtesting engine.

- draws: history loading, validation and array views
- analysis / order_patterns: feature analyzers
- normalize: 0-100 score mapping
- models: weighted engine, strategies, ensemble
- backtester: walk-forward evaluation
- novelty / predictor: final ticket checks and pipeline
"""
