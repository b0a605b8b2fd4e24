"""Rollout eligibility gate."""

from __future__ import annotations

import pytest

from bundlerelay.services.resolution import UpdateInfo, apply_rollout_gate, check_eligibility
from bundlerelay.services.resolution.constants import NIL_UUID
from bundlerelay.services.resolution.rollout import parse_target_device_ids, rollout_bucket
from tests.test_constants import bid

DEVICES = [f"device-{i}" for i in range(1000)]


def _info(status: str = "UPDATE", rollout: int | None = 100, targets=None) -> UpdateInfo:
    return UpdateInfo(
        id=bid(7),
        status=status,
        should_force_update=False,
        message=None,
        storage_uri=f"storage://{bid(7)}/bundle.zip",
        file_hash=None,
        rollout_percentage=rollout,
        target_device_ids=targets,
    )


class TestRolloutBucket:
    def test_bucket_is_deterministic_and_in_range(self) -> None:
        for device in DEVICES[:50]:
            bucket = rollout_bucket(bid(1), device)
            assert 0 <= bucket < 100
            assert bucket == rollout_bucket(bid(1), device)

    def test_bucket_depends_on_bundle(self) -> None:
        buckets_a = [rollout_bucket(bid(1), d) for d in DEVICES[:100]]
        buckets_b = [rollout_bucket(bid(2), d) for d in DEVICES[:100]]
        assert buckets_a != buckets_b


class TestCheckEligibility:
    def test_full_and_unset_rollout_admit_everyone(self) -> None:
        assert all(check_eligibility(bid(1), d, 100, None) for d in DEVICES[:100])
        assert all(check_eligibility(bid(1), d, None, None) for d in DEVICES[:100])

    def test_zero_rollout_admits_nobody(self) -> None:
        assert not any(check_eligibility(bid(1), d, 0, None) for d in DEVICES)

    def test_partial_rollout_is_roughly_proportional(self) -> None:
        admitted = sum(check_eligibility(bid(1), d, 50, None) for d in DEVICES)
        assert 400 <= admitted <= 600

    def test_raising_percentage_only_adds_devices(self) -> None:
        at_10 = {d for d in DEVICES if check_eligibility(bid(1), d, 10, None)}
        at_50 = {d for d in DEVICES if check_eligibility(bid(1), d, 50, None)}
        assert at_10 <= at_50

    def test_target_device_list_wins_over_percentage(self) -> None:
        assert check_eligibility(bid(1), "device-a", 0, ["device-a"]) is True
        assert check_eligibility(bid(1), "device-b", 100, ["device-a"]) is False

    def test_empty_target_list_falls_back_to_percentage(self) -> None:
        assert check_eligibility(bid(1), "device-a", 100, []) is True


class TestParseTargetDeviceIds:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, None),
            ("", None),
            ('["a", "b"]', ["a", "b"]),
            (b'["a"]', ["a"]),
            (["a", 1], ["a", "1"]),
        ],
    )
    def test_normalizes_driver_values(self, value, expected) -> None:
        assert parse_target_device_ids(value) == expected

    def test_non_list_raises(self) -> None:
        with pytest.raises(ValueError):
            parse_target_device_ids('{"a": 1}')


class TestApplyRolloutGate:
    def test_none_passes_through(self) -> None:
        assert apply_rollout_gate(None, "device-a") is None

    def test_no_device_id_is_never_gated(self) -> None:
        info = _info(rollout=0)
        assert apply_rollout_gate(info, None) is info

    def test_rollback_is_never_gated(self) -> None:
        info = _info(status="ROLLBACK", rollout=0)
        assert apply_rollout_gate(info, "device-a") is info

    def test_nil_rollback_is_never_gated(self) -> None:
        info = UpdateInfo(
            id=NIL_UUID,
            status="ROLLBACK",
            should_force_update=True,
            message=None,
            storage_uri=None,
            file_hash=None,
        )
        assert apply_rollout_gate(info, "device-a") is info

    def test_ineligible_update_is_vetoed(self) -> None:
        assert apply_rollout_gate(_info(rollout=0), "device-a") is None

    def test_targeted_device_keeps_update(self) -> None:
        info = _info(rollout=0, targets=["device-a"])
        assert apply_rollout_gate(info, "device-a") is info

    def test_json_text_targets_are_parsed(self) -> None:
        assert apply_rollout_gate(_info(targets='["device-a"]'), "device-b") is None
