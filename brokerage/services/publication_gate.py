"""Publication gate - decide whether a listing may go public.

The gate reconciles the listing's signed digital authorization with its
current facts, falls back to legacy authorization documents when digital
proof is optional, and combines the result with the media precondition.

Decision order for ``evaluate`` (first match wins):

1. digital proof required and no signed instance -> denied
2. signed instance whose snapshot matches -> authorized (digital)
3. signed instance whose snapshot drifted -> denied, resend required
4. only unsigned instances -> denied, not yet signed
5. legacy documents decide (legacy / none)
"""

from typing import Optional, Callable, Awaitable

from brokerage.models.authorization import (
    AuthorizationSource,
    AuthorizationState,
    PublicationDecision,
    PublishResult,
    SignatureState,
    REASON_DATA_CHANGED,
    REASON_DIGITAL_REQUIRED,
    REASON_MEDIA_REQUIRED,
    REASON_NOT_FOUND,
    REASON_NOT_SIGNED,
    STATUS_UNKNOWN,
)
from brokerage.models.listing import ListingStatus
from brokerage.models.snapshot import Snapshot
from brokerage.services.actor_roles import is_elevated_role
from brokerage.services.fact_extractor import extract_snapshot
from brokerage.services.legacy_resolver import legacy_authorization_exists
from brokerage.services.signature_tracker import find_signature_state
from brokerage.services.snapshot_matcher import snapshot_differences, snapshots_match
from brokerage.services.supabase_client import count_property_media, update_property_status
from brokerage.utils.config import is_digital_authorization_required
from brokerage.utils.errors import PermissionDeniedError
from brokerage.utils.logging import get_structured_logger, log_timing

logger = get_structured_logger(__name__)


class PublicationGate:
    """Publish eligibility for listings.

    Collaborators default to the Supabase-backed services and can be
    replaced per instance. ``require_digital_authorization`` left as None
    is read from the environment on every evaluation.
    """

    def __init__(
        self,
        require_digital_authorization: Optional[bool] = None,
        snapshot_source: Optional[Callable[[str], Awaitable[Snapshot]]] = None,
        signature_source: Optional[Callable[[str], Awaitable[SignatureState]]] = None,
        legacy_resolver: Optional[Callable[[str], Awaitable[bool]]] = None,
        media_counter: Optional[Callable[[str], Awaitable[int]]] = None,
        status_writer: Optional[Callable[[str, str], Awaitable[dict]]] = None,
    ):
        self.require_digital_authorization = require_digital_authorization
        self.snapshot_source = snapshot_source or extract_snapshot
        self.signature_source = signature_source or find_signature_state
        self.legacy_resolver = legacy_resolver or legacy_authorization_exists
        self.media_counter = media_counter or count_property_media
        self.status_writer = status_writer or update_property_status

    def digital_authorization_required(self) -> bool:
        if self.require_digital_authorization is not None:
            return self.require_digital_authorization
        return is_digital_authorization_required()

    async def evaluate(self, property_id: str) -> AuthorizationState:
        """Authorization state of a listing."""
        with log_timing("evaluate_authorization", logger=logger, property_id=property_id):
            require_digital = self.digital_authorization_required()
            current = await self.snapshot_source(property_id)
            signature = await self.signature_source(property_id)
            state = await self._decide(property_id, require_digital, current, signature)

        logger.info(
            "Authorization evaluated",
            property_id=property_id,
            has_authorization=state.has_authorization,
            source=state.source.value,
            status=state.status,
            reason=state.reason,
            require_digital=require_digital,
        )
        return state

    async def _decide(
        self,
        property_id: str,
        require_digital: bool,
        current: Snapshot,
        signature: SignatureState,
    ) -> AuthorizationState:
        signed = signature.authoritative_signed
        pending = signature.latest_pending
        if signature.schema_absent:
            status = STATUS_UNKNOWN
        else:
            status = pending.status if pending else None

        if signed is None and require_digital:
            return AuthorizationState(
                status=status,
                document_instance_id=pending.id if pending else None,
                reason=REASON_DIGITAL_REQUIRED,
            )

        if signed is not None:
            if snapshots_match(signed.authorization_snapshot, current):
                return AuthorizationState(
                    has_authorization=True,
                    source=AuthorizationSource.DIGITAL,
                    status=signed.status,
                    document_instance_id=signed.id,
                    signed_at=signed.signed_at,
                )
            logger.warning(
                "Listing data changed after signature",
                property_id=property_id,
                document_instance_id=signed.id,
                has_snapshot=signed.authorization_snapshot is not None,
                changed_fields=snapshot_differences(signed.authorization_snapshot, current),
            )
            return AuthorizationState(
                source=AuthorizationSource.DIGITAL,
                status=signed.status,
                document_instance_id=signed.id,
                signed_at=signed.signed_at,
                data_changed_after_signature=True,
                reason=REASON_DATA_CHANGED,
            )

        if pending is not None:
            return AuthorizationState(
                status=pending.status,
                document_instance_id=pending.id,
                reason=REASON_NOT_SIGNED,
            )

        if await self.legacy_resolver(property_id):
            return AuthorizationState(
                has_authorization=True,
                source=AuthorizationSource.LEGACY,
                status=status,
            )
        return AuthorizationState(status=status, reason=REASON_NOT_FOUND)

    async def can_publish(self, property_id: str) -> PublicationDecision:
        """Media and authorization preconditions, each with its own reason."""
        authorization = await self.evaluate(property_id)
        media_count = await self.media_counter(property_id)

        reasons: list[str] = []
        if media_count < 1:
            reasons.append(REASON_MEDIA_REQUIRED)
        if not authorization.has_authorization:
            reasons.append(authorization.reason or REASON_NOT_FOUND)

        return PublicationDecision(
            allowed=not reasons,
            reasons=reasons,
            media_count=media_count,
            authorization=authorization,
        )

    def _require_elevated(self, actor_role: Optional[str], action: str) -> None:
        if not is_elevated_role(actor_role):
            logger.warning("Publication change refused", action=action, actor_role=actor_role)
            raise PermissionDeniedError(f"Only admin/gestor may {action} listings")

    async def publish(self, property_id: str, actor_role: Optional[str]) -> PublishResult:
        """Make a listing public after re-checking eligibility."""
        self._require_elevated(actor_role, "publish")

        decision = await self.can_publish(property_id)
        if not decision.allowed:
            logger.info("Publish refused", property_id=property_id, reasons=decision.reasons)
            return PublishResult(success=False, property_id=property_id, reasons=decision.reasons)

        await self.status_writer(property_id, ListingStatus.ACTIVE.value)
        logger.info("Listing published", property_id=property_id, actor_role=actor_role)
        return PublishResult(success=True, property_id=property_id, status=ListingStatus.ACTIVE.value)

    async def unpublish(self, property_id: str, actor_role: Optional[str]) -> PublishResult:
        """Return a listing to draft; no authorization precondition."""
        self._require_elevated(actor_role, "unpublish")

        await self.status_writer(property_id, ListingStatus.DRAFT.value)
        logger.info("Listing unpublished", property_id=property_id, actor_role=actor_role)
        return PublishResult(success=True, property_id=property_id, status=ListingStatus.DRAFT.value)


async def evaluate_authorization(
    property_id: str,
    require_digital_authorization: Optional[bool] = None,
) -> AuthorizationState:
    return await PublicationGate(require_digital_authorization).evaluate(property_id)


async def can_publish(
    property_id: str,
    require_digital_authorization: Optional[bool] = None,
) -> PublicationDecision:
    return await PublicationGate(require_digital_authorization).can_publish(property_id)


async def publish_property(property_id: str, actor_role: Optional[str]) -> PublishResult:
    return await PublicationGate().publish(property_id, actor_role)


async def unpublish_property(property_id: str, actor_role: Optional[str]) -> PublishResult:
    return await PublicationGate().unpublish(property_id, actor_role)
