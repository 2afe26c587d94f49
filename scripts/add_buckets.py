#!/usr/bin/env python3
"""Register the RefineEngine payout buckets.

Connects to the deployed RefineEngine contract and calls addBucket once per
entry in BUCKETS, in declaration order, waiting for each transaction to be
mined before sending the next. The list order is the on-chain bucket index.

The script is not idempotent: re-running it adds the whole list again. If a
call fails the run stops there; buckets added before the failure stay on-chain
and must be reconciled by hand before re-running.

Configuration is read from the environment or .env (see config.py):
  CHAIN__RPC_URL, CHAIN__PRIVATE_KEY, CHAIN__CHAIN_ID,
  REFINE_ENGINE__ADDRESS, REFINE_ENGINE__RECEIPT_TIMEOUT, LOG_LEVEL

Usage:
  python -m scripts.add_buckets
  python -m scripts.add_buckets --dry-run --contract 0x...
"""
from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Optional, Sequence

from config import Settings, settings
from models.buckets import BucketSpec
from services.bucket_provisioner import BucketProvisioner
from services.refine_engine_client import RefineEngineClient

logger = logging.getLogger(__name__)

REFINE_ENGINE = "0x72c165b314fe6142e5d7c16b2d8442bd04487045"

BUCKETS: List[BucketSpec] = [
    BucketSpec(
        to="0xD0bd65A463A67C7B04A0521ac62f666808A8253C",
        bps=4000,
        active=True,
        label="PUBLIC FLOAT",
    ),
    BucketSpec(
        to="0xcb56f935ccc77ebe6822142d17b645935fd808be",
        bps=3000,
        active=True,
        label="PHOENIX VAULT",
    ),
    BucketSpec(
        to="0x6aa61d447430e1984a4710a6b7e95f4499af1194",
        bps=2000,
        active=True,
        label="CROWN TREASURY",
    ),
    BucketSpec(
        to="0xccd3884d1458224085770a6946581f13ca181aa5",
        bps=1000,
        active=True,
        label="PHOENIX CORE",
    ),
]


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Add the fixed payout buckets to the RefineEngine contract")
    p.add_argument("--contract", default=None, help="RefineEngine address (default: REFINE_ENGINE__ADDRESS or built-in)")
    p.add_argument("--rpc", default=None, help="RPC URL (default: CHAIN__RPC_URL)")
    p.add_argument("--dry-run", action="store_true", help="Log the planned addBucket calls without sending anything")
    return p.parse_args(argv)


def log_plan(contract: str, buckets: Sequence[BucketSpec]):
    logger.info("Target RefineEngine: %s", contract)
    for i, b in enumerate(buckets):
        logger.info("  [%d] %-16s to=%s bps=%d active=%s", i, b.label, b.to, b.bps, b.active)
    # Informational only; the contract owns validation of the total
    total = sum(b.bps for b in buckets if b.active)
    logger.info("Total active bps: %d", total)


async def provision(client: RefineEngineClient, buckets: Sequence[BucketSpec]):
    return await BucketProvisioner(client, buckets).run()


def main(argv: Optional[Sequence[str]] = None, cfg: Optional[Settings] = None) -> int:
    args = parse_args(argv)
    cfg = cfg or settings
    if args.rpc:
        cfg = cfg.model_copy(update={"chain": cfg.chain.model_copy(update={"rpc_url": args.rpc})})

    logging.basicConfig(level=cfg.log_level.upper(), format="%(levelname)s: %(message)s")

    contract = args.contract or cfg.refine_engine.address or REFINE_ENGINE

    if args.dry_run:
        log_plan(contract, BUCKETS)
        logger.info("Dry run enabled - not sending transactions")
        return 0

    if cfg.chain.private_key is None:
        logger.error("CHAIN__PRIVATE_KEY not found in environment or .env. Aborting.")
        return 2

    try:
        client = RefineEngineClient.from_settings(cfg, contract_address=contract)
        asyncio.run(provision(client, BUCKETS))
    except Exception:
        logger.exception("Bucket provisioning failed")
        return 1

    return 0


def run():
    raise SystemExit(main())


if __name__ == "__main__":
    run()
