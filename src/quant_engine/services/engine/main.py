"""
Command-line runner for the quant engine.

Loads a JSON array of candles, runs an asset snapshot, a volume profile
and a Monte Carlo batch through the dispatch client, and prints a single
JSON document to stdout.  Logs go to stderr.

Usage:
    python -m quant_engine candles.json --price 2651.5 --bins 24
    quant-engine candles.json --simulations 200 --log-format json

Candle records use lowercase keys: time, open, high, low, close, volume.
"""

import argparse
import asyncio
import json
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from quant_engine.core.config import QUANT_TIMEOUT_SECONDS
from quant_engine.core.logging_config import get_logger, setup_logging
from quant_engine.core.models import Candle
from quant_engine.services.engine.client import QuantClient

logger = get_logger("quant.cli")


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def load_candles(path: Path) -> list[dict[str, Any]]:
    """Read and validate a JSON array of candle records.

    Raises:
        ValueError: the file is not a JSON array of candles with a close.
    """
    data = json.loads(path.read_text())
    if not isinstance(data, list):
        raise ValueError("candle file must contain a JSON array")
    try:
        return [Candle.model_validate(c).model_dump() for c in data]
    except ValidationError as exc:
        raise ValueError(f"invalid candle record: {exc}") from exc


async def run_report(
    client: QuantClient,
    candles: list[dict[str, Any]],
    price: Optional[float],
    bins: int,
    steps: int,
    simulations: int,
    volatility: float,
    seed: Optional[int],
) -> dict[str, Any]:
    if price is None:
        price = float(candles[-1]["close"]) if candles else 0.0

    snapshot = await client.snapshot(candles, price)
    profile = await client.call_or_default(
        "VOLUME_PROFILE", {"candles": candles, "bins_count": bins}, []
    )
    paths = await client.call_or_default(
        "MONTE_CARLO",
        {
            "start_price": price,
            "volatility": volatility,
            "steps": steps,
            "simulations": simulations,
            "seed": seed,
        },
        [],
    )

    poc = next((b.price for b in profile if b.is_poc), None)
    finals = [p.final_price for p in paths]
    return {
        "price": price,
        "candles": len(candles),
        "snapshot": _to_jsonable(snapshot),
        "volume_profile": {"poc": poc, "bins": _to_jsonable(profile)},
        "monte_carlo": {
            "paths": len(paths),
            "mean_final_price": sum(finals) / len(finals) if finals else None,
            "min_final_price": min(finals) if finals else None,
            "max_final_price": max(finals) if finals else None,
        },
    }


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="quant-engine",
        description="Run the quant engine over a JSON candle file.",
    )
    p.add_argument("candles", type=Path, help="Path to a JSON array of candles")
    p.add_argument("--price", type=float, default=None, help="Current price (default: last close)")
    p.add_argument("--bins", type=int, default=24, help="Volume profile bins")
    p.add_argument("--steps", type=int, default=20, help="Monte Carlo steps per path")
    p.add_argument("--simulations", type=int, default=50, help="Monte Carlo paths requested")
    p.add_argument("--volatility", type=float, default=0.01, help="Per-step volatility fraction")
    p.add_argument("--seed", type=int, default=None, help="Seed for the randomised routines")
    p.add_argument("--timeout", type=float, default=QUANT_TIMEOUT_SECONDS, help="Per-job deadline (s)")
    p.add_argument("--log-format", choices=["console", "json"], default=None)
    p.add_argument("--log-level", default=None)
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(service="quant-cli", level=args.log_level, log_format=args.log_format)

    try:
        candles = load_candles(args.candles)
    except (OSError, ValueError) as exc:
        logger.error("candle_load_failed", path=str(args.candles), error=str(exc))
        return 1

    client = QuantClient(timeout=args.timeout)
    if not client.start():
        logger.warning("engine_unavailable_using_defaults")

    try:
        report = asyncio.run(
            run_report(
                client,
                candles,
                price=args.price,
                bins=args.bins,
                steps=args.steps,
                simulations=args.simulations,
                volatility=args.volatility,
                seed=args.seed,
            )
        )
    finally:
        client.close()

    json.dump(report, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")
    logger.info("report_written", candles=len(candles), paths=report["monte_carlo"]["paths"])
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
