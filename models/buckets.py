"""
Models for RefineEngine payout bucket provisioning.

A bucket is a named, weighted payout destination registered on the
RefineEngine contract via addBucket(to, bps, active, label).
"""
from typing import Tuple

from pydantic import BaseModel, ConfigDict, Field


class BucketSpec(BaseModel):
    """Arguments of a single addBucket call, in contract order."""
    model_config = ConfigDict(frozen=True)

    to: str = Field(description="Recipient address of the revenue share (hex)")
    bps: int = Field(description="Share in basis points (1 bps = 0.01%)")
    active: bool = Field(default=True, description="Whether the bucket participates in distribution")
    label: str = Field(description="Human readable bucket name")

    def call_args(self) -> Tuple[str, int, bool, str]:
        return self.to, self.bps, self.active, self.label


class AddBucketResult(BaseModel):
    """A finalized addBucket call"""
    index: int = Field(description="Position of the bucket in the submitted list")
    label: str
    to: str
    bps: int
    active: bool
    transaction_hash: str = Field(description="0x-prefixed transaction hash")
    block_number: int = Field(description="Block the transaction was included in")
