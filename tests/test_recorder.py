"""
Tests for deployment record persistence.
"""
import json
from datetime import datetime, timezone

import pytest

from arc_deployer.exceptions import PersistenceError
from arc_deployer.models import DeploymentRecord, Role
from arc_deployer.recorder import DeploymentRecorder, sanitize_timestamp, utc_timestamp
from conftest import TEST_DEPLOYER, TEST_USDC, make_handles

DEPLOYED_AT = "2025-01-31T12:34:56.789Z"


def _contracts(handles):
    return {role.value: h.address for role, h in handles.items()}


def _record(recorder, handles=None, chain_id=421613, deployed_at=DEPLOYED_AT):
    return recorder.record(
        handles or make_handles(),
        network_name="arc",
        chain_id=chain_id,
        deployer=TEST_DEPLOYER,
        usdc_address=TEST_USDC,
        deployed_at=deployed_at,
    )


def test_sanitize_timestamp():
    assert sanitize_timestamp(DEPLOYED_AT) == "2025-01-31T12-34-56-789Z"


def test_utc_timestamp_format():
    now = datetime(2025, 1, 31, 12, 34, 56, 789000, tzinfo=timezone.utc)
    assert utc_timestamp(now) == DEPLOYED_AT


def test_record_writes_timestamped_and_latest(tmp_path):
    recorder = DeploymentRecorder(tmp_path / "deployments")

    paths = _record(recorder)

    assert paths.timestamped_path.name == "arc-421613-2025-01-31T12-34-56-789Z.json"
    assert paths.latest_path.name == "arc-421613.json"
    assert paths.timestamped_path.read_bytes() == paths.latest_path.read_bytes()


def test_record_json_layout(tmp_path):
    handles = make_handles()
    paths = _record(DeploymentRecorder(tmp_path), handles)

    data = json.loads(paths.latest_path.read_text())

    assert list(data) == ["network", "chainId", "deployedAt", "deployer", "usdc", "contracts"]
    assert data["network"] == "arc"
    assert data["chainId"] == 421613
    assert data["deployedAt"] == DEPLOYED_AT
    assert data["deployer"] == TEST_DEPLOYER
    assert data["usdc"] == TEST_USDC
    assert list(data["contracts"]) == [role.value for role in Role]
    assert data["contracts"]["OrderBook"] == handles[Role.ORDER_BOOK].address


def test_latest_is_overwritten_and_history_kept(tmp_path):
    recorder = DeploymentRecorder(tmp_path)
    first = make_handles()
    second = {
        role: handle.model_copy(update={"address": handle.address.replace("0x0000", "0xdead")})
        for role, handle in first.items()
    }

    first_paths = _record(recorder, first, deployed_at="2025-01-31T12:00:00.000Z")
    second_paths = _record(recorder, second, deployed_at="2025-01-31T13:00:00.000Z")

    assert first_paths.latest_path == second_paths.latest_path
    latest = recorder.load_latest(421613)
    assert latest.contracts == _contracts(second)

    history = sorted(p.name for p in tmp_path.glob("arc-421613-*.json"))
    assert history == [
        "arc-421613-2025-01-31T12-00-00-000Z.json",
        "arc-421613-2025-01-31T13-00-00-000Z.json",
    ]
    assert json.loads(first_paths.timestamped_path.read_text())["contracts"] == _contracts(first)


def test_chains_do_not_share_latest(tmp_path):
    recorder = DeploymentRecorder(tmp_path)
    _record(recorder, chain_id=1)
    _record(recorder, chain_id=31337)

    assert (tmp_path / "arc-1.json").exists()
    assert (tmp_path / "arc-31337.json").exists()


def test_storage_directory_is_created(tmp_path):
    root = tmp_path / "nested" / "deployments"
    _record(DeploymentRecorder(root))
    _record(DeploymentRecorder(root))
    assert (root / "arc-421613.json").exists()


def test_custom_prefix(tmp_path):
    paths = _record(DeploymentRecorder(tmp_path, prefix="hardhat"))
    assert paths.latest_path.name == "hardhat-421613.json"


def test_unwritable_storage_raises_persistence_error(tmp_path):
    blocker = tmp_path / "deployments"
    blocker.write_text("not a directory")

    with pytest.raises(PersistenceError) as exc_info:
        _record(DeploymentRecorder(blocker))

    record = exc_info.value.record
    assert isinstance(record, DeploymentRecord)
    assert record.contracts == _contracts(make_handles())


def test_load_latest_missing(tmp_path):
    assert DeploymentRecorder(tmp_path).load_latest(421613) is None


def test_record_requires_all_five_roles(tmp_path):
    handles = make_handles()
    del handles[Role.AGENT_REGISTRY]

    with pytest.raises(ValueError, match="AgentRegistry"):
        _record(DeploymentRecorder(tmp_path), handles)

    assert list(tmp_path.iterdir()) == []
