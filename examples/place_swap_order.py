#!/usr/bin/env python3
"""
Example: place a Fusion+ cross-chain swap and see it through.

1. Load keys and API settings from the environment
2. Quote the chosen route (OP: WETH on Optimism -> USDC on Arbitrum,
   ARB: USDC on Arbitrum -> WETH on Optimism)
3. Commit secrets, submit the order
4. Share each secret as its escrows are deployed until the order settles

Usage:
    ONEINCH_API_KEY=... PRIVATE_KEY=... python place_swap_order.py --route ARB --amount 0.5
"""

import sys
import signal
import logging
import argparse
from pathlib import Path

# Add package to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from fusionswap import (
    CancelToken, Cancelled, FusionPlusClient, PollingExhausted, PresetName,
    SwapError, SwapOrderCoordinator, get_route, load_config,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s'
)
log = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Place a Fusion+ swap order")
    parser.add_argument("--route", default="ARB", help="OP or ARB (default: ARB)")
    parser.add_argument("--amount", default=None, help="Source token amount (route default if omitted)")
    parser.add_argument("--preset", choices=[p.value for p in PresetName], default=None,
                        help="Execution preset (quote's recommendation if omitted)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Stop sharing secrets after this many seconds")
    args = parser.parse_args(argv)

    preset = PresetName(args.preset) if args.preset else None
    cancel = CancelToken(timeout=args.timeout)
    signal.signal(signal.SIGINT, lambda *_: cancel.cancel())

    try:
        config = load_config()
        route = get_route(args.route)
        log.info(f"Maker: {config.wallet_address}")

        with FusionPlusClient.from_config(config) as client:
            coordinator = SwapOrderCoordinator.from_config(config, client)
            outcome = coordinator.execute(route, args.amount, preset=preset, cancel=cancel)
    except Cancelled as e:
        log.warning(f"Cancelled; order {e.order_hash} stays live on the exchange")
        return 130
    except PollingExhausted as e:
        e.session.abandon()
        log.error(f"{e}")
        return 2
    except (SwapError, ValueError) as e:
        log.error(f"Swap failed: {e}")
        return 1

    log.info(f"Order {outcome.order_hash} finished: {outcome.status.value} "
             f"({len(outcome.disclosed)}/{outcome.secrets_count} secrets shared)")
    return 0 if outcome.executed else 3


if __name__ == "__main__":
    sys.exit(main())
