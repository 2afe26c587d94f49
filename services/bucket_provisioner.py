"""
Bucket Provisioner

Registers a fixed, ordered list of payout buckets on a RefineEngine contract.
Each addBucket transaction is submitted and awaited until mined before the
next one is built, so the signer's nonces are consumed strictly in order and
the on-chain bucket index matches the list position.

There is no retry, rollback or deduplication: a failure aborts the run and
buckets finalized before it stay registered.
"""
import logging
from enum import Enum
from typing import List, Optional, Sequence

from models.buckets import AddBucketResult, BucketSpec
from services.refine_engine_client import ExternalCallFailure, RefineEngineClient

logger = logging.getLogger(__name__)


class ProvisionerState(str, Enum):
    NOT_STARTED = "not_started"
    CONNECTING = "connecting"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    DONE = "done"
    ABORTED = "aborted"


class BucketProvisioner:
    """
    Runs addBucket for every bucket in declaration order, waiting for each
    receipt before the next submission.
    """

    def __init__(self, client: RefineEngineClient, buckets: Sequence[BucketSpec]):
        self.client = client
        self.buckets = list(buckets)
        self.state = ProvisionerState.NOT_STARTED
        self.current_index: Optional[int] = None
        self.results: List[AddBucketResult] = []

    async def run(self) -> List[AddBucketResult]:
        if self.state != ProvisionerState.NOT_STARTED:
            raise RuntimeError(f"BucketProvisioner already ran (state={self.state.value})")

        try:
            self.state = ProvisionerState.CONNECTING
            await self.client.connect()

            for i, bucket in enumerate(self.buckets):
                self.current_index = i
                logger.info(f"Adding bucket {i}: {bucket.label}")

                self.state = ProvisionerState.SUBMITTING
                tx_hash = await self.client.submit_add_bucket(bucket, index=i)
                receipt = await self.client.wait_for_finalization(tx_hash, index=i, label=bucket.label)
                self.state = ProvisionerState.CONFIRMED

                self.results.append(AddBucketResult(
                    index=i,
                    label=bucket.label,
                    to=bucket.to,
                    bps=bucket.bps,
                    active=bucket.active,
                    transaction_hash=tx_hash,
                    block_number=receipt["blockNumber"],
                ))
                logger.info(f"Bucket {i} added (tx {tx_hash}, block {receipt['blockNumber']})")
        except ExternalCallFailure:
            self.state = ProvisionerState.ABORTED
            if self.current_index is not None:
                logger.error(
                    f"Aborted at bucket {self.current_index}; "
                    f"{len(self.results)} of {len(self.buckets)} bucket(s) already committed on-chain"
                )
            raise
        except Exception:
            self.state = ProvisionerState.ABORTED
            raise

        self.state = ProvisionerState.DONE
        logger.info("All buckets added successfully")
        return self.results
