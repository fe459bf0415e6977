from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import NOW, ORG_ID, OTHER_ORG_ID
from timeclock.core.enums import DeviceType, Role
from timeclock.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from timeclock.devices.service import TimeClockService


@pytest.fixture
def service(repos) -> TimeClockService:
    return TimeClockService(repos.devices, default_ttl_seconds=60)


def create(service, **kw):
    params = dict(current_role=Role.ADMIN, organization_id=ORG_ID, name="Bodega", now=NOW)
    params.update(kw)
    return service.create(**params)


def test_create_dynamic_qr_device_gets_first_token(service, repos):
    device = create(service, code=" bod-01 ")

    assert device.device_id == 2
    assert device.code == "BOD-01"
    assert device.current_qr_token
    assert device.qr_token_expires_at == NOW + timedelta(seconds=60)
    assert device.previous_qr_token is None
    assert repos.devices.get_by_id(2) == device


def test_create_static_qr_device_token_has_no_expiry(service):
    device = create(service, device_type="qr_static")
    assert device.current_qr_token
    assert device.qr_token_expires_at is None


def test_non_qr_devices_get_no_token(service):
    device = create(service, device_type="nfc")
    assert device.current_qr_token is None


def test_create_validates_input(service):
    with pytest.raises(ValidationError):
        create(service, name="  ")
    with pytest.raises(ValidationError):
        create(service, device_type="fax")
    with pytest.raises(ValidationError):
        create(service, code="ent-001")  # taken by the seeded device
    with pytest.raises(ValidationError):
        create(service, require_geo_validation=True)
    with pytest.raises(ValidationError):
        create(service, geo_fence={"lat": 0, "lng": 0, "radius": -5})
    with pytest.raises(AuthorizationError):
        create(service, current_role=Role.EMPLOYEE)


def test_code_availability_is_per_organization(service):
    assert not service.is_code_available(organization_id=ORG_ID, code="ent-001")
    assert service.is_code_available(organization_id=ORG_ID, code="ent-001", exclude_id=1)
    assert service.is_code_available(organization_id=OTHER_ORG_ID, code="ENT-001")


def test_regenerate_moves_current_token_to_previous(service):
    before = service.get(organization_id=ORG_ID, device_id=1)
    later = NOW + timedelta(seconds=20)

    after = service.regenerate_qr_token(organization_id=ORG_ID, device_id=1, now=later)

    assert after.current_qr_token != before.current_qr_token
    assert after.previous_qr_token == before.current_qr_token
    # replaced before its natural expiry, so it stops at the rotation instant
    assert after.previous_qr_token_expires_at == later
    assert after.qr_token_expires_at == later + timedelta(seconds=60)


def test_regenerate_after_expiry_keeps_original_expiry(service):
    later = NOW + timedelta(minutes=5)
    after = service.regenerate_qr_token(organization_id=ORG_ID, device_id=1, now=later)
    assert after.previous_qr_token_expires_at == NOW + timedelta(seconds=60)


def test_regenerate_refuses_non_qr_devices(service, device_factory):
    device_factory(9, device_type=DeviceType.RFID)
    with pytest.raises(ValidationError):
        service.regenerate_qr_token(organization_id=ORG_ID, device_id=9, now=NOW)


def test_ensure_fresh_token_rotates_only_when_expired(service):
    fresh = service.ensure_fresh_token(organization_id=ORG_ID, device_id=1, now=NOW + timedelta(seconds=30))
    assert fresh.current_qr_token == "tok-current"

    rotated = service.ensure_fresh_token(organization_id=ORG_ID, device_id=1, now=NOW + timedelta(seconds=61))
    assert rotated.current_qr_token != "tok-current"
    assert rotated.previous_qr_token == "tok-current"


def test_duplicate_copies_settings_with_new_token(service):
    copy = service.duplicate(current_role=Role.MANAGER, organization_id=ORG_ID, device_id=1, now=NOW)

    assert copy.device_id != 1
    assert copy.name == "Entrada principal (copia)"
    assert copy.code is None
    assert copy.branch_id == 10
    assert copy.current_qr_token not in (None, "tok-current")
    assert copy.previous_qr_token is None


def test_toggle_update_and_delete(service, repos):
    toggled = service.toggle_active(current_role=Role.ADMIN, organization_id=ORG_ID, device_id=1)
    assert toggled.is_active is False

    updated = service.update(
        current_role=Role.ADMIN,
        organization_id=ORG_ID,
        device_id=1,
        changes={"name": "Puerta Norte", "geo_fence": {"lat": 1, "lng": 2, "radius": 30}},
    )
    assert updated.name == "Puerta Norte"
    assert updated.geo_fence.radius_m == 30

    service.delete(current_role=Role.ADMIN, organization_id=ORG_ID, device_id=1)
    assert repos.devices.get_by_id(1) is None


def test_devices_of_other_organizations_are_hidden(service):
    with pytest.raises(NotFoundError):
        service.get(organization_id=OTHER_ORG_ID, device_id=1)


def test_stats_by_state_and_type(service, device_factory):
    device_factory(2, device_type=DeviceType.NFC, code="NFC-1", is_active=False)
    device_factory(3, device_type=DeviceType.QR_DYNAMIC, code="ENT-002")

    assert service.stats(organization_id=ORG_ID) == {
        "total": 3,
        "active": 2,
        "inactive": 1,
        "by_type": {"qr_dynamic": 2, "nfc": 1},
    }


def test_ensure_fresh_token_rotates_dynamic_token_without_expiry(service, device_factory):
    device_factory(7, qr_token_expires_at=None)
    rotated = service.ensure_fresh_token(organization_id=ORG_ID, device_id=7, now=NOW)

    assert rotated.current_qr_token != "tok-current"
    assert rotated.qr_token_expires_at == NOW + timedelta(seconds=60)


@pytest.mark.parametrize("ttl", [0, 5, 86401, "abc"])
def test_create_rejects_out_of_range_token_ttl(service, ttl):
    with pytest.raises(ValidationError):
        create(service, token_ttl_seconds=ttl)


def test_create_uses_default_ttl_only_when_missing(service):
    assert create(service, token_ttl_seconds=None).token_ttl_seconds == 60
    assert create(service, code="B-2", token_ttl_seconds=120).token_ttl_seconds == 120


@pytest.mark.parametrize("field", ["is_active", "require_geo_validation"])
@pytest.mark.parametrize("value", ["false", "true", "", None, 2, 1.0])
def test_update_rejects_non_boolean_flags(service, repos, field, value):
    with pytest.raises(ValidationError):
        service.update(current_role=Role.ADMIN, organization_id=ORG_ID, device_id=1, changes={field: value})
    assert repos.devices.get_by_id(1).is_active is True


def test_update_accepts_boolean_flags_and_zero_one(service):
    off = service.update(current_role=Role.ADMIN, organization_id=ORG_ID, device_id=1, changes={"is_active": False})
    assert off.is_active is False
    on = service.update(current_role=Role.ADMIN, organization_id=ORG_ID, device_id=1, changes={"is_active": 1})
    assert on.is_active is True


def test_update_rejects_out_of_range_token_ttl(service):
    with pytest.raises(ValidationError):
        service.update(current_role=Role.ADMIN, organization_id=ORG_ID, device_id=1, changes={"token_ttl_seconds": 0})


def test_create_rejects_invalid_branch(service):
    with pytest.raises(ValidationError):
        create(service, branch_id="abc")
    with pytest.raises(ValidationError):
        create(service, is_active="false")
