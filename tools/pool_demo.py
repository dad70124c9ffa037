#!/usr/bin/env python3
"""
Offline pool demo: seed a pool, run one swap, withdraw, print reserves.

Example:
    python tools/pool_demo.py --amount-a 1000000 --amount-b 4000000 --swap-in 10000 --fee-bps-b 100
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pairswap.core import PoolConfig, PoolEngine, load_pool_config  # noqa: E402
from pairswap.integration import InMemoryAssetLedger, SystemClock  # noqa: E402
from pairswap.state import ShareTable  # noqa: E402


def _configure_logging(verbose: bool) -> None:
    root = logging.getLogger("pairswap")
    root.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter("%(asctime)s : %(name)s - %(levelname)s - %(message)s"))
        root.addHandler(handler)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Simulate a constant-product pool offline.")
    ap.add_argument("--config", type=Path, default=None, help="YAML pool config (optional)")
    ap.add_argument("--amount-a", type=int, default=1_000_000)
    ap.add_argument("--amount-b", type=int, default=4_000_000)
    ap.add_argument("--swap-in", type=int, default=10_000, help="amount of asset A to swap for B")
    ap.add_argument("--fee-bps-a", type=int, default=0, help="transfer fee on asset A (fee-on-transfer)")
    ap.add_argument("--fee-bps-b", type=int, default=0, help="transfer fee on asset B (fee-on-transfer)")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args(argv)

    _configure_logging(args.verbose)
    config = load_pool_config(args.config) if args.config is not None else PoolConfig()

    asset_a, asset_b = "A", "B"
    lp, trader = "alice", "bob"
    ledger = InMemoryAssetLedger(transfer_fee_bps={asset_a: args.fee_bps_a, asset_b: args.fee_bps_b})
    ledger.credit(lp, asset_a, args.amount_a)
    ledger.credit(lp, asset_b, args.amount_b)
    ledger.credit(trader, asset_a, args.swap_in)

    shares = ShareTable()
    clock = SystemClock()
    engine = PoolEngine(asset_a, asset_b, transfers=ledger, shares=shares, clock=clock, config=config)
    deadline = clock.now() + 3600

    _, _, minted = engine.provide_liquidity(lp, lp, args.amount_a, args.amount_b, 0, 0, deadline)
    print(f"[pool-demo] minted {minted} shares; reserves={engine.get_reserves()}")
    print(f"[pool-demo] price(A->B) = {engine.get_price(asset_a, asset_b) / config.price_scale:.6f}")

    out = engine.swap(trader, args.swap_in, 1, asset_a, asset_b, trader, deadline)
    print(f"[pool-demo] swapped {args.swap_in} A -> {out} B; reserves={engine.get_reserves()}")
    print(f"[pool-demo] trader holds {ledger.balance_of(asset_b, trader)} B after transfer fees")

    got_a, got_b = engine.remove_liquidity(lp, lp, minted, 0, 0, deadline)
    print(f"[pool-demo] withdrew ({got_a}, {got_b}); reserves={engine.get_reserves()} shares={engine.total_shares()}")
    print(f"[pool-demo] digest={engine.digest()}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
