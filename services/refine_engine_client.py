"""
RefineEngine Client

Thin async wrapper around the deployed RefineEngine contract. Transactions are
built against the node, signed locally with the configured key and broadcast
as raw transactions, one at a time.
"""
import logging
from typing import Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3

from config import Settings
from models.buckets import BucketSpec

logger = logging.getLogger(__name__)


# Minimal ABI: only the admin call this client issues
REFINE_ENGINE_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "to", "type": "address"},
            {"internalType": "uint256", "name": "bps", "type": "uint256"},
            {"internalType": "bool", "name": "active", "type": "bool"},
            {"internalType": "string", "name": "label", "type": "string"},
        ],
        "name": "addBucket",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


class ExternalCallFailure(Exception):
    """
    Raised when connecting to the node, submitting a call or waiting for its
    finalization fails. The underlying web3/transport error is chained as
    __cause__.
    """

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        label: Optional[str] = None,
        transaction_hash: Optional[str] = None,
    ):
        super().__init__(message)
        self.index = index
        self.label = label
        self.transaction_hash = transaction_hash


class RefineEngineClient:
    """
    Issues addBucket transactions on a RefineEngine contract.

    connect() must be awaited before submitting anything.
    """

    def __init__(
        self,
        w3: AsyncWeb3,
        contract_address: str,
        account: LocalAccount,
        chain_id: Optional[int] = None,
        receipt_timeout: Optional[float] = None,
    ):
        self.w3 = w3
        self.contract_address = contract_address
        self.account = account
        self.chain_id = chain_id
        self.receipt_timeout = receipt_timeout
        self.contract = None

    @classmethod
    def from_settings(cls, settings: Settings, contract_address: Optional[str] = None) -> "RefineEngineClient":
        if settings.chain.private_key is None:
            raise ValueError("No signing key configured (CHAIN__PRIVATE_KEY)")
        contract_address = contract_address or settings.refine_engine.address
        if not contract_address:
            raise ValueError("No RefineEngine address configured (REFINE_ENGINE__ADDRESS)")
        w3 = AsyncWeb3(AsyncHTTPProvider(settings.chain.rpc_url))
        account = Account.from_key(settings.chain.private_key.get_secret_value())
        return cls(
            w3=w3,
            contract_address=contract_address,
            account=account,
            chain_id=settings.chain.chain_id,
            receipt_timeout=settings.refine_engine.receipt_timeout,
        )

    async def connect(self):
        """Check the node is reachable and bind the contract."""
        try:
            if not await self.w3.is_connected():
                raise ConnectionError("node did not respond")
            if self.chain_id is None:
                self.chain_id = await self.w3.eth.chain_id
            address = AsyncWeb3.to_checksum_address(self.contract_address)
            self.contract = self.w3.eth.contract(address=address, abi=REFINE_ENGINE_ABI)
        except Exception as e:
            raise ExternalCallFailure(f"Failed to connect to RefineEngine at {self.contract_address}: {e}") from e

        logger.info(f"Connected to RefineEngine: {self.contract_address}")
        logger.debug(f"Signer {self.account.address} on chain {self.chain_id}")

    def _require_connected(self):
        if self.contract is None:
            raise RuntimeError("RefineEngineClient.connect() must be awaited first")

    async def submit_add_bucket(self, spec: BucketSpec, index: Optional[int] = None) -> str:
        """Build, sign and broadcast addBucket for one bucket. Returns the tx hash."""
        self._require_connected()
        try:
            to, bps, active, label = spec.call_args()
            to = AsyncWeb3.to_checksum_address(to)
            nonce = await self.w3.eth.get_transaction_count(self.account.address, "pending")
            tx = await self.contract.functions.addBucket(to, bps, active, label).build_transaction({
                "from": self.account.address,
                "nonce": nonce,
                "chainId": self.chain_id,
            })
            signed = self.account.sign_transaction(tx)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
        except Exception as e:
            raise ExternalCallFailure(
                f"addBucket submission failed for bucket {index} ({spec.label}): {e}",
                index=index,
                label=spec.label,
            ) from e

        tx_hash_hex = AsyncWeb3.to_hex(tx_hash)
        logger.debug(f"addBucket({spec.label}) sent with nonce {nonce}: {tx_hash_hex}")
        return tx_hash_hex

    async def wait_for_finalization(self, tx_hash: str, index: Optional[int] = None, label: Optional[str] = None):
        """Block until the transaction is mined. Reverted transactions raise."""
        self._require_connected()
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=self.receipt_timeout)
        except Exception as e:
            raise ExternalCallFailure(
                f"Waiting for {tx_hash} failed: {e}",
                index=index,
                label=label,
                transaction_hash=tx_hash,
            ) from e

        if receipt["status"] != 1:
            raise ExternalCallFailure(
                f"Transaction {tx_hash} reverted in block {receipt['blockNumber']}",
                index=index,
                label=label,
                transaction_hash=tx_hash,
            )
        return receipt
