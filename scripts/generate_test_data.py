#!/usr/bin/env python3
"""
PSP Test Data Generator

Generates synthetic PSP transactions with known problem profiles for local
testing and demonstration:

- FlutterWave: high timeout rate in the recent window (unhealthy)
- DPO: slow responses in the recent window (degraded or unhealthy)
- Paystack, PesaPal, Interswitch, Cellulant, Ozow: healthy

Recent traffic is spread over the last 3 hours. A healthy baseline is spread
over 3 to 27 hours ago, so trend endpoints show the problem PSPs worsening.

Usage:
    python scripts/generate_test_data.py
    python scripts/generate_test_data.py --seed 7 --output ./data/sample.json
    python scripts/generate_test_data.py --load    # also insert into DuckDB
"""

import argparse
import json
import logging
import random
import sys
import uuid
from collections import Counter, defaultdict
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import structlog

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from pspmonitor.config import get_settings
from pspmonitor.models.enums import TransactionStatus
from pspmonitor.models.transactions import TransactionIn
from pspmonitor.storage.duckdb_storage import DuckDBStorage

logger = structlog.get_logger()

DEFAULT_OUTPUT = "./data/test-transactions.json"


class TestDataGenerator:
    """
    Generates PSP transactions with per-PSP outcome profiles.

    Each profile is a list of ``(cumulative probability, status, response
    time range)`` bands. A uniform roll picks the first band whose bound it
    falls under; the last band catches everything else.
    """

    __test__ = False

    PSPS = ["FlutterWave", "Paystack", "DPO", "PesaPal", "Interswitch", "Cellulant", "Ozow"]

    PAYMENT_METHODS = ["mpesa", "mtn_mobile_money", "airtel_money", "card", "bank_transfer"]

    CURRENCIES = {
        "FlutterWave": ["NGN", "KES"],
        "Paystack": ["NGN"],
        "DPO": ["KES", "ZAR"],
        "PesaPal": ["KES"],
        "Interswitch": ["NGN"],
        "Cellulant": ["KES", "NGN"],
        "Ozow": ["ZAR"],
    }

    # Outcome profiles
    PROFILES = {
        "healthy": [
            (0.015, TransactionStatus.TIMEOUT, (20000, 30000)),
            (0.025, TransactionStatus.ERROR, (200, 2000)),
            (0.12, TransactionStatus.DECLINED, (800, 3000)),
            (0.16, TransactionStatus.PENDING, (1000, 3000)),
            (1.0, TransactionStatus.APPROVED, (1000, 5000)),
        ],
        "timeout": [
            (0.22, TransactionStatus.TIMEOUT, (25000, 35000)),
            (0.27, TransactionStatus.ERROR, (500, 3000)),
            (0.35, TransactionStatus.DECLINED, (1000, 4000)),
            (0.38, TransactionStatus.PENDING, (2000, 5000)),
            (1.0, TransactionStatus.APPROVED, (1000, 5000)),
        ],
        "slow": [
            (0.05, TransactionStatus.TIMEOUT, (28000, 35000)),
            (0.08, TransactionStatus.ERROR, (8000, 15000)),
            (0.18, TransactionStatus.DECLINED, (12000, 22000)),
            (0.22, TransactionStatus.PENDING, (10000, 20000)),
            (1.0, TransactionStatus.APPROVED, (15000, 25000)),
        ],
    }

    PROBLEM_PSPS = {"FlutterWave": "timeout", "DPO": "slow"}

    RECENT_WINDOW = timedelta(hours=3)
    BASELINE_SPAN = timedelta(hours=24)

    def __init__(self, seed: int = 42, now: Optional[datetime] = None):
        """
        Initialize the generator with a reproducible seed.

        Args:
            seed: Random seed for reproducibility
            now: Reference time for the recent window (default: current UTC time)
        """
        self.seed = seed
        self.now = now or datetime.now(timezone.utc)
        self.rng = random.Random(seed)

        logger.info("test_data_generator_initialized", seed=seed, now=self.now.isoformat())

    def generate_transaction(self, psp: str, created_at: datetime, profile: str) -> TransactionIn:
        """
        Generate one transaction for a PSP using an outcome profile.

        Args:
            psp: PSP name
            created_at: Transaction timestamp
            profile: Key into PROFILES

        Returns:
            Validated TransactionIn
        """
        roll = self.rng.random()
        bands = self.PROFILES[profile]
        _, status, (low, high) = next(
            (band for band in bands if roll < band[0]),
            bands[-1],
        )

        return TransactionIn(
            id=str(uuid.UUID(int=self.rng.getrandbits(128), version=4)),
            psp=psp,
            payment_method=self.rng.choice(self.PAYMENT_METHODS),
            amount=round(self.rng.uniform(1, 200), 2),
            currency=self.rng.choice(self.CURRENCIES[psp]),
            status=status,
            response_time_ms=self.rng.randint(low, high),
            created_at=created_at,
        )

    def generate(self) -> list[TransactionIn]:
        """
        Generate recent and baseline traffic for every PSP.

        Problem PSPs get more recent traffic using their problem profile;
        baseline traffic is always healthy.

        Returns:
            Transactions sorted by created_at
        """
        transactions: list[TransactionIn] = []

        for psp in self.PSPS:
            problem = self.PROBLEM_PSPS.get(psp)
            recent_count = self.rng.randint(70, 90) if problem else self.rng.randint(50, 70)

            for _ in range(recent_count):
                offset = self.RECENT_WINDOW * self.rng.random()
                transactions.append(
                    self.generate_transaction(psp, self.now - offset, problem or "healthy")
                )

            baseline_count = self.rng.randint(30, 50)
            for _ in range(baseline_count):
                offset = self.RECENT_WINDOW + self.BASELINE_SPAN * self.rng.random()
                transactions.append(self.generate_transaction(psp, self.now - offset, "healthy"))

            logger.debug(
                "psp_transactions_generated",
                psp=psp,
                profile=problem or "healthy",
                recent=recent_count,
                baseline=baseline_count,
            )

        transactions.sort(key=lambda tx: tx.created_at)
        return transactions


def summarize(transactions: list[TransactionIn]) -> dict[str, dict]:
    """
    Per-PSP totals and status counts.

    Returns:
        dict keyed by PSP with "total", "timeout_rate" and "statuses"
    """
    statuses: dict[str, Counter] = defaultdict(Counter)
    for tx in transactions:
        statuses[tx.psp][tx.status.value] += 1

    summary = {}
    for psp, counts in statuses.items():
        total = sum(counts.values())
        summary[psp] = {
            "total": total,
            "timeout_rate": counts["timeout"] / total,
            "statuses": dict(counts),
        }
    return summary


def write_transactions(transactions: list[TransactionIn], output: Path) -> None:
    """Write ``{"transactions": [...]}`` JSON to the output path."""
    output.parent.mkdir(parents=True, exist_ok=True)
    payload = {"transactions": [tx.model_dump(mode="json") for tx in transactions]}
    output.write_text(json.dumps(payload, indent=2))


def load_transactions(transactions: list[TransactionIn], db_path: str) -> tuple[int, list[str]]:
    """Insert the batch into DuckDB, skipping ids already present."""
    storage = DuckDBStorage(db_path=db_path)
    storage.open()
    try:
        return storage.insert_transactions(transactions)
    finally:
        storage.close()


def main():
    """Main entry point for the test data generator."""
    parser = argparse.ArgumentParser(
        description="Generate synthetic PSP transactions for the health monitor"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=DEFAULT_OUTPUT,
        help=f"Output JSON file (default: {DEFAULT_OUTPUT})",
    )
    parser.add_argument(
        "--load",
        action="store_true",
        default=False,
        help="Also insert the transactions into the configured DuckDB database",
    )

    args = parser.parse_args()

    # Configure structlog
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    generator = TestDataGenerator(seed=args.seed)
    transactions = generator.generate()

    output = Path(args.output)
    write_transactions(transactions, output)
    logger.info("test_data_written", count=len(transactions), output=str(output))

    print(f"\nGenerated {len(transactions)} test transactions")
    print(f"Output: {output}")

    print("\nSummary by PSP:")
    for psp, data in summarize(transactions).items():
        print(
            f"  {psp}: {data['total']} transactions "
            f"(timeout: {data['timeout_rate'] * 100:.1f}%) {json.dumps(data['statuses'])}"
        )

    if args.load:
        settings = get_settings()
        try:
            inserted, errors = load_transactions(transactions, settings.db_path)
        except Exception as e:
            logger.error("test_data_load_failed", db_path=settings.db_path, error=str(e), exc_info=True)
            print(f"\nLoad failed: {e}\n")
            sys.exit(1)

        logger.info("test_data_loaded", db_path=settings.db_path, inserted=inserted, skipped=len(errors))
        print(f"\nLoaded {inserted} transactions into {settings.db_path} ({len(errors)} skipped)")


if __name__ == "__main__":
    main()
