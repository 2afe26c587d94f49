import pytest
from web3 import AsyncWeb3

from models.buckets import BucketSpec
from scripts.add_buckets import BUCKETS
from services.bucket_provisioner import BucketProvisioner, ProvisionerState
from services.refine_engine_client import ExternalCallFailure


def expected_args(buckets):
    return [(AsyncWeb3.to_checksum_address(b.to), b.bps, b.active, b.label) for b in buckets]


@pytest.mark.asyncio
async def test_all_buckets_added_in_order(make_client):
    client, w3 = make_client()
    provisioner = BucketProvisioner(client, BUCKETS)

    results = await provisioner.run()

    assert w3.sent_args() == expected_args(BUCKETS)
    assert [r.label for r in results] == ["PUBLIC FLOAT", "PHOENIX VAULT", "CROWN TREASURY", "PHOENIX CORE"]
    assert [r.bps for r in results] == [4000, 3000, 2000, 1000]
    assert [r.index for r in results] == [0, 1, 2, 3]
    assert [r.block_number for r in results] == [101, 102, 103, 104]
    assert provisioner.state == ProvisionerState.DONE


@pytest.mark.asyncio
async def test_each_call_waits_for_previous_receipt(make_client):
    client, w3 = make_client()
    await BucketProvisioner(client, BUCKETS).run()

    expected = []
    for b in BUCKETS:
        expected += [("send", b.label), ("receipt", b.label)]
    assert w3.events == expected
    assert [tx["nonce"] for tx in w3.sent] == [0, 1, 2, 3]


@pytest.mark.asyncio
async def test_empty_list_issues_no_calls(make_client):
    client, w3 = make_client()
    provisioner = BucketProvisioner(client, [])

    assert await provisioner.run() == []
    assert w3.sent == []
    assert provisioner.state == ProvisionerState.DONE


@pytest.mark.asyncio
async def test_revert_stops_the_run(make_client):
    client, w3 = make_client(revert_labels={"CROWN TREASURY"})
    provisioner = BucketProvisioner(client, BUCKETS)

    with pytest.raises(ExternalCallFailure) as exc_info:
        await provisioner.run()

    assert exc_info.value.index == 2
    # the reverted call was broadcast, the one after it never was
    assert [args[3] for args in w3.sent_args()] == ["PUBLIC FLOAT", "PHOENIX VAULT", "CROWN TREASURY"]
    assert [r.label for r in provisioner.results] == ["PUBLIC FLOAT", "PHOENIX VAULT"]
    assert provisioner.current_index == 2
    assert provisioner.state == ProvisionerState.ABORTED


@pytest.mark.asyncio
async def test_submission_failure_stops_the_run(make_client):
    client, w3 = make_client(fail_submit_labels={"PHOENIX VAULT"})
    provisioner = BucketProvisioner(client, BUCKETS)

    with pytest.raises(ExternalCallFailure):
        await provisioner.run()

    assert [args[3] for args in w3.sent_args()] == ["PUBLIC FLOAT"]
    assert len(provisioner.results) == 1
    assert provisioner.state == ProvisionerState.ABORTED


@pytest.mark.asyncio
async def test_connection_failure_issues_no_calls(make_client):
    client, w3 = make_client(connected=False)
    provisioner = BucketProvisioner(client, BUCKETS)

    with pytest.raises(ExternalCallFailure):
        await provisioner.run()

    assert w3.sent == []
    assert provisioner.current_index is None
    assert provisioner.state == ProvisionerState.ABORTED


@pytest.mark.asyncio
async def test_rerun_adds_everything_again(make_client):
    client, w3 = make_client()
    await BucketProvisioner(client, BUCKETS).run()
    await BucketProvisioner(client, BUCKETS).run()

    assert w3.sent_args() == expected_args(BUCKETS) * 2


@pytest.mark.asyncio
async def test_provisioner_runs_once(make_client):
    client, _ = make_client()
    provisioner = BucketProvisioner(client, BUCKETS[:1])
    await provisioner.run()

    with pytest.raises(RuntimeError):
        await provisioner.run()


@pytest.mark.asyncio
async def test_bps_total_not_validated_locally(make_client):
    client, w3 = make_client()
    buckets = [
        BucketSpec(to="0xD0bd65A463A67C7B04A0521ac62f666808A8253C", bps=9000, active=True, label="A"),
        BucketSpec(to="0xD0bd65A463A67C7B04A0521ac62f666808A8253C", bps=9000, active=False, label="B"),
    ]

    await BucketProvisioner(client, buckets).run()

    assert w3.sent_args() == expected_args(buckets)


@pytest.mark.asyncio
async def test_receipt_timeout_stops_the_run(make_client):
    client, w3 = make_client(receipt_timeout=5.0, timeout_labels={"PHOENIX VAULT"})
    provisioner = BucketProvisioner(client, BUCKETS)

    with pytest.raises(ExternalCallFailure) as exc_info:
        await provisioner.run()

    assert exc_info.value.index == 1
    assert exc_info.value.transaction_hash is not None
    assert [args[3] for args in w3.sent_args()] == ["PUBLIC FLOAT", "PHOENIX VAULT"]
    assert [r.label for r in provisioner.results] == ["PUBLIC FLOAT"]
    assert provisioner.state == ProvisionerState.ABORTED
