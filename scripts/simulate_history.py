"""
Simulate a year of performance history for dashboard development.

Why simulate?
  - A fresh install has no samples, so every graph is flat zero.
  - This fills the performance_history table with plausible fetch/search
    timings spread over the last 12 months, without running any
    authority lookups.
  - Timings are log-normal (long right tail), which is what real remote
    authority calls look like.

Usage:
    python -m scripts.simulate_history --num-samples 50000 --authorities OCLC_FAST,LOCNAMES_LD4L_CACHE
"""

from __future__ import annotations

import argparse
import sys
from datetime import timedelta
from pathlib import Path

import numpy as np
from tqdm import tqdm

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from configs.settings import get_settings
from services.history_service.models import Action
from services.history_service.store import SampleStore
from utils.logger import setup_logging, get_logger
from utils.timing import current_time

_log = get_logger(__name__)

_YEAR_SECONDS = 365 * 24 * 3600


def simulate(num_samples: int, authorities: list, seed: int = 42) -> None:
    """Insert `num_samples` finished samples, spread uniformly over the last year."""
    cfg = get_settings()
    store = SampleStore(settings=cfg)
    store.create_schema()

    rng = np.random.default_rng(seed)
    now = current_time(cfg.time_zone)
    offsets = rng.integers(0, _YEAR_SECONDS, size=num_samples)
    auth_idx = rng.integers(0, len(authorities), size=num_samples)
    is_search = rng.random(num_samples) < 0.6
    retrieve_ms = rng.lognormal(mean=5.0, sigma=0.6, size=num_samples)
    normalize_ms = rng.lognormal(mean=2.5, sigma=0.5, size=num_samples)
    sizes = rng.integers(2_000, 400_000, size=num_samples)

    for i in tqdm(range(num_samples), desc="Simulating samples", unit="sample"):
        action = Action.SEARCH if is_search[i] else Action.FETCH
        sample = store.create_sample(
            authorities[auth_idx[i]],
            action,
            timestamp=now - timedelta(seconds=int(offsets[i])),
        )
        total = retrieve_ms[i] + normalize_ms[i] + float(rng.uniform(0.5, 3.0))
        store.update_sample(
            sample.id,
            total_time_ms=float(total),
            retrieve_plus_parse_time_ms=float(retrieve_ms[i]),
            normalization_time_ms=float(normalize_ms[i]),
            size_bytes=None if action is Action.SEARCH else int(sizes[i]),
        )

    _log.info("simulation_complete", samples=num_samples, authorities=len(authorities))


def main() -> None:
    parser = argparse.ArgumentParser(description="Simulate performance history samples")
    parser.add_argument("--num-samples", type=int, default=10_000, help="Samples to insert")
    parser.add_argument("--authorities", type=str, default="OCLC_FAST,LOCNAMES_LD4L_CACHE,AGROVOC_LD4L_CACHE",
                        help="Comma-separated authority names")
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    setup_logging(level="INFO")
    names = [a.strip() for a in args.authorities.split(",") if a.strip()]
    if not names:
        parser.error("--authorities must name at least one authority")
    simulate(args.num_samples, names, seed=args.seed)


if __name__ == "__main__":
    main()
