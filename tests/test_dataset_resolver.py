"""Tests for api.services.dataset_resolver.DatasetResolver."""

from datetime import datetime

import pytest

from api.services.dataset_resolver import DatasetNotFoundError, DatasetResolver, NoActiveVersionError


@pytest.fixture
def resolver(db) -> DatasetResolver:
    return DatasetResolver(db=db, default_dataset_code="INPE_2017_SUNDATA", default_lookup_method="nearest")


def test_default_dataset_when_no_tenant(resolver, seed_version):
    version_id = seed_version(tag="2017.1")
    resolved = resolver.resolve()
    assert resolved.dataset_code == "INPE_2017_SUNDATA"
    assert resolved.version_id == version_id
    assert resolved.version_tag == "2017.1"
    assert resolved.lookup_method == "nearest"


def test_unknown_tenant_falls_back_to_default(resolver, seed_version):
    version_id = seed_version()
    assert resolver.resolve(tenant_id="acme").version_id == version_id


def test_tenant_config_selects_dataset(db, resolver, seed_version):
    seed_version()
    nasa_id = seed_version(code="NASA_POWER", tag="2024")
    db.upsert_tenant_config("acme", dataset_code="NASA_POWER")
    resolved = resolver.resolve(tenant_id="acme")
    assert resolved.dataset_code == "NASA_POWER"
    assert resolved.version_id == nasa_id


def test_tenant_pinned_version_is_trusted(db, resolver, seed_version):
    retired_id = seed_version(tag="old", status="retired")
    seed_version(tag="new")
    db.upsert_tenant_config("acme", dataset_code="INPE_2017_SUNDATA", version_id=retired_id, lookup_method="nearest")
    resolved = resolver.resolve(tenant_id="acme")
    assert resolved.version_id == retired_id
    assert resolved.version_tag == "old"


def test_pinned_version_unknown_tag(db, resolver):
    db.upsert_tenant_config("acme", dataset_code="INPE_2017_SUNDATA", version_id=999)
    resolved = resolver.resolve(tenant_id="acme")
    assert resolved.version_id == 999
    assert resolved.version_tag == "unknown"


def test_version_override_beats_active_version(resolver, seed_version):
    audited = seed_version(tag="2017.1", status="retired")
    seed_version(tag="2017.2")
    resolved = resolver.resolve(version_id_override=audited)
    assert resolved.version_id == audited
    assert resolved.version_tag == "2017.1"
    assert resolved.dataset_code == "INPE_2017_SUNDATA"


def test_version_override_beats_tenant_pin(db, resolver, seed_version):
    pinned = seed_version(tag="pinned")
    audited = seed_version(tag="audited")
    db.upsert_tenant_config("acme", dataset_code="INPE_2017_SUNDATA", version_id=pinned)
    resolved = resolver.resolve(tenant_id="acme", version_id_override=audited)
    assert resolved.version_id == audited
    assert resolved.version_tag == "audited"


def test_version_override_unknown_tag(resolver):
    # trusted without a dataset row, as a tenant pin is
    resolved = resolver.resolve(version_id_override=4242)
    assert resolved.version_id == 4242
    assert resolved.version_tag == "unknown"


def test_override_skips_tenant_lookup(db, resolver, seed_version, monkeypatch):
    seed_version()
    nasa_id = seed_version(code="NASA_POWER", tag="2024")
    db.upsert_tenant_config("acme", dataset_code="INPE_2017_SUNDATA")

    calls = []
    monkeypatch.setattr(db, "get_tenant_config", lambda tenant_id: calls.append(tenant_id))

    resolved = resolver.resolve(tenant_id="acme", dataset_code_override="NASA_POWER")
    assert resolved.version_id == nasa_id
    assert calls == []


def test_most_recent_active_version_wins(resolver, seed_version):
    seed_version(tag="a", ingested_at=datetime(2024, 1, 1))
    newest = seed_version(tag="b", ingested_at=datetime(2025, 1, 1))
    seed_version(tag="c", ingested_at=datetime(2024, 6, 1))
    assert resolver.resolve().version_id == newest


def test_retired_versions_are_ignored(resolver, seed_version):
    active = seed_version(tag="a", ingested_at=datetime(2024, 1, 1))
    seed_version(tag="b", status="retired", ingested_at=datetime(2025, 1, 1))
    assert resolver.resolve().version_id == active


def test_missing_dataset_raises(resolver):
    with pytest.raises(DatasetNotFoundError, match="INPE_2017_SUNDATA") as exc_info:
        resolver.resolve()
    assert exc_info.value.dataset_code == "INPE_2017_SUNDATA"


def test_no_active_version_raises(resolver, seed_version):
    seed_version(status="retired")
    with pytest.raises(NoActiveVersionError):
        resolver.resolve()
