"""Tests for the publication gate decision logic."""

import pytest
from datetime import datetime, timezone
from unittest.mock import AsyncMock
from brokerage.models.authorization import (
    AuthorizationSource,
    SignatureState,
    REASON_DATA_CHANGED,
    REASON_DIGITAL_REQUIRED,
    REASON_MEDIA_REQUIRED,
    REASON_NOT_FOUND,
    REASON_NOT_SIGNED,
)
from brokerage.models.document import DocumentInstance
from brokerage.models.snapshot import Address, Snapshot
from brokerage.services.publication_gate import PublicationGate
from brokerage.utils.errors import PermissionDeniedError, NotFoundError, SupabaseError
from tests.utils.assertions import assert_authorized, assert_denied

SIGNED_AT = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def _snapshot(**overrides):
    fields = {
        "registry_number": "12345",
        "address": Address(street="Rua das Flores", number="100", city="Curitiba"),
        "sale_price": 500000,
        "commission_percent": 5,
        "authorization_expires_at": "2024-07-10",
    }
    fields.update(overrides)
    return Snapshot(**fields)


def _instance(status="signed", snapshot=None, instance_id="inst-1"):
    return DocumentInstance(
        id=instance_id,
        template_code="AUT_VENDA_V1",
        status=status,
        signed_at=SIGNED_AT if status == "signed" else None,
        updated_at=SIGNED_AT,
        authorization_snapshot=snapshot,
    )


def _gate(signature, current=None, legacy=False, media=1, require_digital=False):
    return PublicationGate(
        require_digital_authorization=require_digital,
        snapshot_source=AsyncMock(return_value=current or _snapshot()),
        signature_source=AsyncMock(return_value=signature),
        legacy_resolver=AsyncMock(return_value=legacy),
        media_counter=AsyncMock(return_value=media),
        status_writer=AsyncMock(return_value={"id": "prop-1"}),
    )


@pytest.mark.unit
@pytest.mark.asyncio
async def test_matching_signed_snapshot_authorizes():
    """Test a signed instance whose snapshot equals today's facts authorizes."""
    gate = _gate(SignatureState(authoritative_signed=_instance(snapshot=_snapshot())))

    state = await gate.evaluate("prop-1")

    assert_authorized(state, "digital")
    assert state.document_instance_id == "inst-1"
    assert state.signed_at == SIGNED_AT
    assert state.status == "signed"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_price_change_after_signature_denies():
    """Test changing one tracked field invalidates the signature."""
    gate = _gate(
        SignatureState(authoritative_signed=_instance(snapshot=_snapshot())),
        current=_snapshot(sale_price=550000),
    )

    state = await gate.evaluate("prop-1")

    assert_denied(state, REASON_DATA_CHANGED)
    assert state.data_changed_after_signature is True
    assert state.source is AuthorizationSource.DIGITAL
    assert state.document_instance_id == "inst-1"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_signed_without_snapshot_fails_closed():
    """Test legacy signed rows without a snapshot count as changed."""
    gate = _gate(SignatureState(authoritative_signed=_instance(snapshot=None)))

    state = await gate.evaluate("prop-1")

    assert_denied(state, REASON_DATA_CHANGED)
    assert state.data_changed_after_signature is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_evaluate_is_idempotent():
    """Test repeated evaluation without state change gives the same result."""
    gate = _gate(SignatureState(authoritative_signed=_instance(snapshot=_snapshot())))

    assert await gate.evaluate("prop-1") == await gate.evaluate("prop-1")


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize(
    "signature",
    [
        SignatureState(),
        SignatureState(schema_absent=True),
        SignatureState(latest_pending=_instance(status="sent")),
    ],
)
async def test_digital_required_never_consults_legacy(signature):
    """Test mandated digital proof skips legacy documents entirely."""
    gate = _gate(signature, legacy=True, require_digital=True)

    state = await gate.evaluate("prop-1")

    assert_denied(state, REASON_DIGITAL_REQUIRED)
    gate.legacy_resolver.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_digital_required_reports_unknown_when_schema_absent():
    gate = _gate(SignatureState(schema_absent=True), require_digital=True)

    state = await gate.evaluate("prop-1")

    assert state.status == "unknown"
    assert state.reason == REASON_DIGITAL_REQUIRED


@pytest.mark.unit
@pytest.mark.asyncio
async def test_pending_instance_is_not_yet_signed():
    """Test an unsigned instance blocks the legacy fallback."""
    gate = _gate(SignatureState(latest_pending=_instance(status="viewed", instance_id="inst-2")), legacy=True)

    state = await gate.evaluate("prop-1")

    assert_denied(state, REASON_NOT_SIGNED)
    assert state.status == "viewed"
    assert state.document_instance_id == "inst-2"
    gate.legacy_resolver.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_legacy_fallback_authorizes():
    """Test valid legacy evidence authorizes when digital proof is optional."""
    gate = _gate(SignatureState(), legacy=True)

    state = await gate.evaluate("prop-1")

    assert_authorized(state, "legacy")
    gate.legacy_resolver.assert_awaited_once_with("prop-1")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_legacy_fallback_after_schema_absent():
    """Test a missing digital store still allows the legacy fallback."""
    gate = _gate(SignatureState(schema_absent=True), legacy=False)

    state = await gate.evaluate("prop-1")

    assert_denied(state, REASON_NOT_FOUND)
    assert state.source is AuthorizationSource.NONE
    assert state.status == "unknown"
    gate.legacy_resolver.assert_awaited_once()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_digital_requirement_read_from_environment(monkeypatch):
    """Test the setting is read on every evaluation when not injected."""
    gate = _gate(SignatureState(), legacy=True, require_digital=None)

    monkeypatch.setenv("PROPERTY_PUBLISH_REQUIRE_DIGITAL_AUTHORIZATION", "false")
    assert (await gate.evaluate("prop-1")).has_authorization is True

    monkeypatch.setenv("PROPERTY_PUBLISH_REQUIRE_DIGITAL_AUTHORIZATION", "true")
    assert_denied(await gate.evaluate("prop-1"), REASON_DIGITAL_REQUIRED)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_can_publish_requires_media():
    """Test zero media blocks publishing even with valid authorization."""
    gate = _gate(SignatureState(authoritative_signed=_instance(snapshot=_snapshot())), media=0)

    decision = await gate.can_publish("prop-1")

    assert decision.allowed is False
    assert decision.reasons == [REASON_MEDIA_REQUIRED]
    assert decision.authorization.has_authorization is True


@pytest.mark.unit
@pytest.mark.asyncio
async def test_can_publish_collects_independent_reasons():
    gate = _gate(SignatureState(), media=0, require_digital=True)

    decision = await gate.can_publish("prop-1")

    assert decision.allowed is False
    assert decision.reasons == [REASON_MEDIA_REQUIRED, REASON_DIGITAL_REQUIRED]


@pytest.mark.unit
@pytest.mark.asyncio
async def test_can_publish_allows():
    gate = _gate(SignatureState(authoritative_signed=_instance(snapshot=_snapshot())), media=3)

    decision = await gate.can_publish("prop-1")

    assert decision.allowed is True
    assert decision.reasons == []
    assert decision.media_count == 3


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_writes_active_status():
    gate = _gate(SignatureState(authoritative_signed=_instance(snapshot=_snapshot())))

    result = await gate.publish("prop-1", "admin")

    assert result.success is True
    assert result.status == "active"
    gate.status_writer.assert_awaited_once_with("prop-1", "active")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_publish_refused_does_not_write():
    """Test publish re-checks eligibility before writing."""
    gate = _gate(SignatureState(latest_pending=_instance(status="sent")), media=0)

    result = await gate.publish("prop-1", "gestor")

    assert result.success is False
    assert result.reasons == [REASON_MEDIA_REQUIRED, REASON_NOT_SIGNED]
    gate.status_writer.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
@pytest.mark.parametrize("role", [None, "", "corretor", "viewer"])
async def test_publish_requires_elevated_role(role):
    """Test only admin/gestor may publish; nothing is evaluated otherwise."""
    gate = _gate(SignatureState(authoritative_signed=_instance(snapshot=_snapshot())))

    with pytest.raises(PermissionDeniedError):
        await gate.publish("prop-1", role)

    gate.snapshot_source.assert_not_called()
    gate.status_writer.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unpublish_has_no_authorization_precondition():
    gate = _gate(SignatureState(), media=0, require_digital=True)

    result = await gate.unpublish("prop-1", "Admin")

    assert result.success is True
    assert result.status == "draft"
    gate.status_writer.assert_awaited_once_with("prop-1", "draft")
    gate.signature_source.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_unpublish_requires_elevated_role():
    gate = _gate(SignatureState())

    with pytest.raises(PermissionDeniedError):
        await gate.unpublish("prop-1", "corretor")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_errors_propagate_with_their_type():
    """Test NotFound and store failures are not turned into denials."""
    gate = _gate(SignatureState())
    gate.snapshot_source.side_effect = NotFoundError("Property not found: prop-1")

    with pytest.raises(NotFoundError):
        await gate.evaluate("prop-1")

    gate = _gate(SignatureState())
    gate.signature_source.side_effect = SupabaseError("Failed to load document instances")

    with pytest.raises(SupabaseError):
        await gate.can_publish("prop-1")
