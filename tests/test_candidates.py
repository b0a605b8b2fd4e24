"""UpdateRequest validation and candidate filtering."""

from __future__ import annotations

import pytest

from bundlerelay.errors import InputError
from bundlerelay.services.resolution import UpdateRequest, filter_candidates
from bundlerelay.services.resolution.constants import DEFAULT_CHANNEL, NIL_UUID
from tests.test_constants import bid


class TestUpdateRequest:
    def test_defaults(self) -> None:
        req = UpdateRequest(platform="ios", bundle_id=NIL_UUID, app_version="1.0.0")
        assert req.min_bundle_id == NIL_UUID
        assert req.channel == DEFAULT_CHANNEL
        assert req.device_id is None
        assert req.strategy == "appVersion"

    def test_fingerprint_strategy(self) -> None:
        req = UpdateRequest(platform="android", bundle_id=NIL_UUID, fingerprint_hash="fp-1")
        assert req.strategy == "fingerprint"

    def test_empty_optional_segments_fall_back_to_defaults(self) -> None:
        req = UpdateRequest(
            platform="ios",
            bundle_id=bid(1),
            app_version="1.0.0",
            min_bundle_id="",
            channel="",
            device_id="",
        )
        assert req.min_bundle_id == NIL_UUID
        assert req.channel == DEFAULT_CHANNEL
        assert req.device_id is None

    def test_unknown_platform_rejected(self) -> None:
        with pytest.raises(InputError, match="platform"):
            UpdateRequest(platform="windows", bundle_id=NIL_UUID, app_version="1.0.0")

    def test_missing_bundle_id_rejected(self) -> None:
        with pytest.raises(InputError):
            UpdateRequest(platform="ios", bundle_id="", app_version="1.0.0")

    def test_no_strategy_value_rejected(self) -> None:
        with pytest.raises(InputError, match="Exactly one"):
            UpdateRequest(platform="ios", bundle_id=NIL_UUID)

    def test_both_strategy_values_rejected(self) -> None:
        with pytest.raises(InputError, match="Exactly one"):
            UpdateRequest(
                platform="ios", bundle_id=NIL_UUID, app_version="1.0.0", fingerprint_hash="fp"
            )

    def test_input_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            UpdateRequest(platform="", bundle_id=NIL_UUID, app_version="1.0.0")


class TestFilterCandidates:
    def _ids(self, bundles) -> list[str]:
        return sorted(b.id for b in bundles)

    def test_filters_platform_channel_and_enabled(self, make_bundle) -> None:
        bundles = [
            make_bundle(bid(1)),
            make_bundle(bid(2), platform="android"),
            make_bundle(bid(3), channel="beta"),
            make_bundle(bid(4), enabled=False),
        ]
        req = UpdateRequest(platform="ios", bundle_id=NIL_UUID, app_version="1.0.0")
        assert self._ids(filter_candidates(bundles, req)) == [bid(1)]

    def test_app_version_uses_range_matching(self, make_bundle) -> None:
        bundles = [
            make_bundle(bid(1), target_app_version="1.x.x"),
            make_bundle(bid(2), target_app_version="2.0.0"),
            make_bundle(bid(3), target_app_version=None, fingerprint_hash="fp"),
        ]
        req = UpdateRequest(platform="ios", bundle_id=NIL_UUID, app_version="1.4.0")
        assert self._ids(filter_candidates(bundles, req)) == [bid(1)]

    def test_fingerprint_requires_exact_match(self, make_bundle) -> None:
        bundles = [
            make_bundle(bid(1), target_app_version=None, fingerprint_hash="fp-a"),
            make_bundle(bid(2), target_app_version=None, fingerprint_hash="fp-b"),
            make_bundle(bid(3)),
        ]
        req = UpdateRequest(platform="ios", bundle_id=NIL_UUID, fingerprint_hash="fp-b")
        assert self._ids(filter_candidates(bundles, req)) == [bid(2)]

    def test_min_bundle_id_floor_is_inclusive(self, make_bundle) -> None:
        bundles = [make_bundle(bid(n)) for n in (1, 2, 3)]
        req = UpdateRequest(
            platform="ios", bundle_id=NIL_UUID, app_version="1.0.0", min_bundle_id=bid(2)
        )
        assert self._ids(filter_candidates(bundles, req)) == [bid(2), bid(3)]

    def test_requested_channel_is_used(self, make_bundle) -> None:
        bundles = [make_bundle(bid(1)), make_bundle(bid(2), channel="beta")]
        req = UpdateRequest(
            platform="ios", bundle_id=NIL_UUID, app_version="1.0.0", channel="beta"
        )
        assert self._ids(filter_candidates(bundles, req)) == [bid(2)]
