from typing import Callable

import pytest

from services.refine_engine_client import RefineEngineClient
from test.mocks.shared_mocks import TEST_CONTRACT, FakeSigner, FakeWeb3


@pytest.fixture
def make_client() -> Callable:
    """Return a helper building a RefineEngineClient on top of a FakeWeb3.

    Usage in tests:
      client, w3 = make_client(revert_labels={"CROWN TREASURY"})
    """

    def _make(chain_id=None, receipt_timeout=None, **web3_kwargs):
        w3 = FakeWeb3(**web3_kwargs)
        client = RefineEngineClient(
            w3=w3,
            contract_address=TEST_CONTRACT,
            account=FakeSigner(),
            chain_id=chain_id,
            receipt_timeout=receipt_timeout,
        )
        return client, w3

    return _make
