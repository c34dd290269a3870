#!/usr/bin/env python3
"""Run one Fusion+ cross-chain swap from the command line.

Signs with WALLET_PRIVATE_KEY through the local wallet and talks to the proxy
at FUSION_API_URL.

Usage:
    python scripts/cross_chain_swap.py --src-chain 1 --dst-chain 42161 \
        --src-token 0xA0b8...eB48 --dst-token 0xaf88...5831 --amount 100000000

Options:
    --quote-only    Print the quote and exit
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv

load_dotenv()

from crossswap.fusion.client import FusionPlusClient
from crossswap.ledger.database import close_db, init_db
from crossswap.ledger.store import OrderStore
from crossswap.notifications import Notifier
from crossswap.swap.orchestrator import SwapOrchestrator, SwapPhase, SwapSelection
from crossswap.wallet.local import LocalWallet


def print_notification(notification):
    if notification is not None:
        print(f"[{notification.level.value}] {notification.message}")


async def run(args: argparse.Namespace) -> int:
    await init_db()

    client = FusionPlusClient()
    notifier = Notifier()
    notifier.subscribe(print_notification)

    orchestrator = SwapOrchestrator(
        client=client,
        wallet=LocalWallet.from_settings(),
        selection=SwapSelection(
            src_chain=args.src_chain,
            dst_chain=args.dst_chain,
            src_token=args.src_token,
            dst_token=args.dst_token,
            amount=args.amount,
        ),
        store=OrderStore(),
        notifier=notifier,
    )
    orchestrator.on_order_updated(
        lambda record: print(f"Order {record.order_hash}: {record.status.value} ({record.progress}%)")
    )

    try:
        quote = await orchestrator.refresh_quote()
        if quote is None:
            return 1
        print(f"Quote {quote.quote_id}: {quote.src_amount} -> {quote.dst_amount}")
        if args.quote_only:
            return 0

        record = await orchestrator.submit()
        # First attempt may only have approved the token
        if record is None and orchestrator.phase == SwapPhase.IDLE and orchestrator.quote:
            record = await orchestrator.submit()
        if record is None:
            return 1

        final = await orchestrator.wait_for_order()
        print(f"Final status: {final.status.value}")
        return 0 if orchestrator.phase == SwapPhase.SUCCEEDED else 1
    finally:
        orchestrator.close()
        await client.close()
        await close_db()


def main():
    parser = argparse.ArgumentParser(description="Fusion+ cross-chain swap")
    parser.add_argument("--src-chain", type=int, required=True, help="Source chain id")
    parser.add_argument("--dst-chain", type=int, required=True, help="Destination chain id")
    parser.add_argument("--src-token", required=True, help="Source token address")
    parser.add_argument("--dst-token", required=True, help="Destination token address")
    parser.add_argument("--amount", required=True, help="Amount in raw source token units")
    parser.add_argument("--quote-only", action="store_true", help="Only fetch a quote")
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    sys.exit(asyncio.run(run(args)))


if __name__ == "__main__":
    main()
