"""
Tests unitarios para DesignService.
"""
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import select

from backend.database.models import (
    Conversation,
    DesignStatus,
    DesignSubmission,
    Message,
    MessageKind,
    Notification,
    NotificationKind,
    OutboxEvent,
    OutboxStatus,
    User,
)
from backend.domain.design_schemas import (
    DesignConfig,
    DesignEditRequest,
    DesignSubmitRequest,
    Layer,
    SellerStatusUpdate,
)
from backend.services.design_service import DesignService
from backend.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
)


async def _all(session_factory, model, *criteria):
    async with session_factory() as session:
        result = await session.execute(select(model).where(*criteria))
        return list(result.scalars().all())


@pytest.mark.unit
@pytest.mark.asyncio
class TestSubmitDesign:
    """Tests para creación de solicitudes."""

    async def test_broadcast_stores_server_estimate(
        self,
        session_factory,
        design_service: DesignService,
        buyer: User,
        seller: User,
        second_seller: User,
        catalog,
        sample_config: DesignConfig,
    ):
        """El precio estimado lo calcula el servidor, no el cliente."""
        design = await design_service.submit_design(
            buyer.id,
            DesignSubmitRequest(request_type="broadcast", config=sample_config, estimated_price=1),
        )

        assert design.status == DesignStatus.PENDING
        assert design.assigned_seller_id is None
        assert design.estimated_price == 810
        assert design.final_price is None

        # Todos los vendedores activos reciben la notificación
        notifications = await _all(session_factory, Notification, Notification.related_id == design.id)
        assert {n.user_id for n in notifications} == {seller.id, second_seller.id}
        assert all(n.kind == NotificationKind.DESIGN_REQUEST for n in notifications)

    async def test_direct_is_assigned_from_start(
        self, session_factory, direct_design: DesignSubmission, seller: User
    ):
        assert direct_design.assigned_seller_id == seller.id
        assert direct_design.status == DesignStatus.PENDING

        notifications = await _all(session_factory, Notification, Notification.user_id == seller.id)
        assert len(notifications) == 1
        assert "directa" in notifications[0].title

    async def test_direct_to_inactive_seller_fails(
        self,
        session_factory,
        design_service: DesignService,
        buyer: User,
        inactive_seller: User,
        catalog,
        sample_config: DesignConfig,
    ):
        with pytest.raises(InvalidInputError):
            await design_service.submit_design(
                buyer.id,
                DesignSubmitRequest(request_type="direct", seller_id=inactive_seller.id, config=sample_config),
            )

        assert await _all(session_factory, DesignSubmission) == []

    async def test_direct_to_unknown_seller_fails(
        self, design_service: DesignService, buyer: User, catalog, sample_config: DesignConfig
    ):
        with pytest.raises(InvalidInputError):
            await design_service.submit_design(
                buyer.id,
                DesignSubmitRequest(request_type="direct", seller_id=uuid.uuid4(), config=sample_config),
            )

    async def test_snapshot_data_url_is_uploaded(
        self, design_service: DesignService, upload_service, buyer: User, catalog, sample_config: DesignConfig
    ):
        design = await design_service.submit_design(
            buyer.id,
            DesignSubmitRequest(
                request_type="broadcast",
                config=sample_config,
                snapshot_image="data:image/png;base64,AAAA",
            ),
        )

        assert upload_service.uploads == ["data:image/png;base64,AAAA"]
        assert design.snapshot_image_url.startswith("https://img.test/")

    async def test_hosted_snapshot_is_kept(
        self, design_service: DesignService, upload_service, buyer: User, catalog, sample_config: DesignConfig
    ):
        design = await design_service.submit_design(
            buyer.id,
            DesignSubmitRequest(
                request_type="broadcast",
                config=sample_config,
                snapshot_image="https://cdn.example.com/preview.png",
            ),
        )

        assert upload_service.uploads == []
        assert design.snapshot_image_url == "https://cdn.example.com/preview.png"

    async def test_failed_upload_is_invalid_input(
        self, design_service: DesignService, upload_service, buyer: User, catalog, sample_config: DesignConfig
    ):
        upload_service.fail = True
        with pytest.raises(InvalidInputError):
            await design_service.submit_design(
                buyer.id,
                DesignSubmitRequest(
                    request_type="broadcast",
                    config=sample_config,
                    snapshot_image="data:image/png;base64,AAAA",
                ),
            )

    async def test_outbox_events_are_delivered(
        self, session_factory, broadcast_design: DesignSubmission
    ):
        events = await _all(session_factory, OutboxEvent, OutboxEvent.design_submission_id == broadcast_design.id)
        assert len(events) == 1
        assert events[0].status == OutboxStatus.DELIVERED


@pytest.mark.unit
@pytest.mark.asyncio
class TestSellerUpdateStatus:
    """Tests para transiciones del vendedor."""

    async def test_claim_with_discussion(
        self,
        session_factory,
        design_service: DesignService,
        seller: User,
        buyer: User,
        broadcast_design: DesignSubmission,
    ):
        """Reclamar una broadcast asigna al vendedor y abre la conversación."""
        design = await design_service.seller_update_status(
            seller.id, broadcast_design.id, SellerStatusUpdate(status="discussion")
        )

        assert design.status == DesignStatus.DISCUSSION
        assert design.assigned_seller_id == seller.id

        conversations = await _all(session_factory, Conversation, Conversation.design_submission_id == design.id)
        assert len(conversations) == 1
        assert conversations[0].buyer_id == buyer.id
        assert conversations[0].seller_id == seller.id
        assert conversations[0].last_message == "Nueva solicitud asignada. Conversación iniciada."

        messages = await _all(session_factory, Message, Message.conversation_id == conversations[0].id)
        assert len(messages) == 1
        assert f"#{design.short_ref}" in messages[0].text

        notifications = await _all(session_factory, Notification, Notification.user_id == buyer.id)
        assert any(n.message.startswith("Estado: DISCUSSION.") for n in notifications)

    async def test_quote_sets_terms_and_posts_quotation(
        self, session_factory, quote_design, seller: User, broadcast_design: DesignSubmission
    ):
        design = await quote_design(
            seller, broadcast_design, downpayment_amount=Decimal("500"), baker_note="Incluye caja."
        )

        assert design.status == DesignStatus.QUOTED
        assert design.final_price == Decimal("1500")
        assert design.shipping_fee == Decimal("100")
        assert design.downpayment_amount == Decimal("500")
        assert design.assigned_seller_id == seller.id

        messages = await _all(session_factory, Message, Message.design_submission_id == design.id)
        quotations = [m for m in messages if m.kind == MessageKind.QUOTATION]
        assert len(quotations) == 1
        assert "₱1500.00" in quotations[0].text
        assert "Incluye caja." in quotations[0].text

    async def test_quote_requires_final_price(
        self, design_service: DesignService, buyer: User, seller: User, broadcast_design: DesignSubmission
    ):
        with pytest.raises(InvalidInputError):
            await design_service.seller_update_status(
                seller.id, broadcast_design.id, SellerStatusUpdate(status="quoted")
            )

        design = await design_service.get_design(buyer.id, broadcast_design.id)
        assert design.status == DesignStatus.PENDING
        assert design.assigned_seller_id is None

    async def test_final_price_only_with_quote(
        self,
        design_service: DesignService,
        buyer: User,
        seller: User,
        broadcast_design: DesignSubmission,
    ):
        """Fuera de una cotización no se acepta precio final y la solicitud no cambia."""
        with pytest.raises(InvalidInputError):
            await design_service.seller_update_status(
                seller.id,
                broadcast_design.id,
                SellerStatusUpdate(status="discussion", final_price=Decimal("500")),
            )

        design = await design_service.get_design(buyer.id, broadcast_design.id)
        assert design.status == DesignStatus.PENDING
        assert design.assigned_seller_id is None
        assert design.final_price is None

        await design_service.seller_update_status(
            seller.id, broadcast_design.id, SellerStatusUpdate(status="discussion")
        )
        with pytest.raises(InvalidInputError):
            await design_service.seller_update_status(
                seller.id,
                broadcast_design.id,
                SellerStatusUpdate(status="declined", final_price=Decimal("500")),
            )

        design = await design_service.get_design(buyer.id, broadcast_design.id)
        assert design.status == DesignStatus.DISCUSSION
        assert design.final_price is None

    async def test_negative_amount_rejected(
        self, quote_design, seller: User, broadcast_design: DesignSubmission
    ):
        with pytest.raises(InvalidInputError):
            await quote_design(seller, broadcast_design, shipping_fee=Decimal("-1"))

    async def test_downpayment_above_total_rejected(
        self, quote_design, seller: User, broadcast_design: DesignSubmission
    ):
        with pytest.raises(InvalidInputError):
            await quote_design(seller, broadcast_design, downpayment_amount=Decimal("5000"))

    async def test_unknown_status_rejected(
        self, design_service: DesignService, seller: User, broadcast_design: DesignSubmission
    ):
        with pytest.raises(InvalidInputError):
            await design_service.seller_update_status(
                seller.id, broadcast_design.id, SellerStatusUpdate(status="approved")
            )

    async def test_claimed_broadcast_conflicts_for_other_seller(
        self,
        design_service: DesignService,
        seller: User,
        second_seller: User,
        broadcast_design: DesignSubmission,
    ):
        """Quien llega después de un reclamo ya confirmado pierde la carrera."""
        await design_service.seller_update_status(
            seller.id, broadcast_design.id, SellerStatusUpdate(status="discussion")
        )

        with pytest.raises(ConflictError):
            await design_service.seller_update_status(
                second_seller.id, broadcast_design.id, SellerStatusUpdate(status="discussion")
            )

    async def test_other_seller_cannot_touch_direct_design(
        self, design_service: DesignService, second_seller: User, direct_design: DesignSubmission
    ):
        with pytest.raises(ForbiddenError):
            await design_service.seller_update_status(
                second_seller.id, direct_design.id, SellerStatusUpdate(status="discussion")
            )

    async def test_cannot_decline_unclaimed_broadcast(
        self, design_service: DesignService, seller: User, broadcast_design: DesignSubmission
    ):
        with pytest.raises(InvalidStateError):
            await design_service.seller_update_status(
                seller.id, broadcast_design.id, SellerStatusUpdate(status="declined")
            )

    async def test_quoted_cannot_go_back_to_discussion(
        self,
        design_service: DesignService,
        quote_design,
        seller: User,
        broadcast_design: DesignSubmission,
    ):
        await quote_design(seller, broadcast_design)

        with pytest.raises(InvalidStateError):
            await design_service.seller_update_status(
                seller.id, broadcast_design.id, SellerStatusUpdate(status="discussion")
            )

    async def test_release_broadcast_returns_to_pool(
        self,
        design_service: DesignService,
        quote_design,
        seller: User,
        second_seller: User,
        broadcast_design: DesignSubmission,
    ):
        """Liberar una broadcast limpia los términos y la deja disponible."""
        await quote_design(seller, broadcast_design, downpayment_amount=Decimal("200"))

        design = await design_service.seller_update_status(
            seller.id, broadcast_design.id, SellerStatusUpdate(status="released")
        )

        assert design.status == DesignStatus.PENDING
        assert design.assigned_seller_id is None
        assert design.final_price is None
        assert design.shipping_fee == Decimal("0")
        assert design.downpayment_amount == Decimal("0")

        inbox = await design_service.list_seller_inbox(second_seller.id)
        assert broadcast_design.id in {d.id for d in inbox}

    async def test_release_direct_declines(
        self, design_service: DesignService, seller: User, direct_design: DesignSubmission
    ):
        design = await design_service.seller_update_status(
            seller.id, direct_design.id, SellerStatusUpdate(status="released")
        )

        assert design.status == DesignStatus.DECLINED
        assert design.assigned_seller_id == seller.id

    async def test_declined_is_terminal(
        self, design_service: DesignService, seller: User, direct_design: DesignSubmission
    ):
        await design_service.seller_update_status(
            seller.id, direct_design.id, SellerStatusUpdate(status="declined")
        )

        with pytest.raises(InvalidStateError):
            await design_service.seller_update_status(
                seller.id, direct_design.id, SellerStatusUpdate(status="discussion")
            )

    async def test_unknown_design(self, design_service: DesignService, seller: User):
        with pytest.raises(NotFoundError):
            await design_service.seller_update_status(
                seller.id, uuid.uuid4(), SellerStatusUpdate(status="discussion")
            )


@pytest.mark.unit
@pytest.mark.asyncio
class TestBuyerTransitions:
    """Tests para aprobación, rechazo y edición del comprador."""

    async def test_approve_quoted(
        self,
        session_factory,
        design_service: DesignService,
        quote_design,
        buyer: User,
        seller: User,
        broadcast_design: DesignSubmission,
    ):
        await quote_design(seller, broadcast_design)

        design = await design_service.buyer_approve(buyer.id, broadcast_design.id)

        assert design.status == DesignStatus.APPROVED
        assert design.final_price == Decimal("1500")

        messages = await _all(session_factory, Message, Message.kind == MessageKind.APPROVAL)
        assert len(messages) == 1
        notifications = await _all(
            session_factory, Notification, Notification.user_id == seller.id,
            Notification.kind == NotificationKind.DESIGN_RESPONSE,
        )
        assert len(notifications) == 1

    async def test_approve_requires_quote(
        self, design_service: DesignService, buyer: User, broadcast_design: DesignSubmission
    ):
        with pytest.raises(InvalidStateError):
            await design_service.buyer_approve(buyer.id, broadcast_design.id)

    async def test_approve_by_other_buyer_forbidden(
        self,
        design_service: DesignService,
        quote_design,
        other_buyer: User,
        seller: User,
        broadcast_design: DesignSubmission,
    ):
        await quote_design(seller, broadcast_design)

        with pytest.raises(ForbiddenError):
            await design_service.buyer_approve(other_buyer.id, broadcast_design.id)

    async def test_decline_broadcast_repools_for_other_seller(
        self,
        design_service: DesignService,
        quote_design,
        buyer: User,
        seller: User,
        second_seller: User,
        broadcast_design: DesignSubmission,
    ):
        """Tras el rechazo, otro vendedor puede reclamar la broadcast."""
        await quote_design(seller, broadcast_design)

        design = await design_service.buyer_decline(buyer.id, broadcast_design.id)
        assert design.status == DesignStatus.PENDING
        assert design.assigned_seller_id is None
        assert design.final_price is None

        claimed = await design_service.seller_update_status(
            second_seller.id, broadcast_design.id, SellerStatusUpdate(status="discussion")
        )
        assert claimed.assigned_seller_id == second_seller.id

    async def test_decline_notifies_previous_seller(
        self,
        session_factory,
        design_service: DesignService,
        quote_design,
        buyer: User,
        seller: User,
        direct_design: DesignSubmission,
    ):
        await quote_design(seller, direct_design)

        design = await design_service.buyer_decline(buyer.id, direct_design.id)
        assert design.status == DesignStatus.DECLINED

        messages = await _all(session_factory, Message, Message.kind == MessageKind.DECLINED)
        assert len(messages) == 1
        notifications = await _all(
            session_factory, Notification, Notification.user_id == seller.id,
            Notification.title == "Cotización rechazada",
        )
        assert len(notifications) == 1

    async def test_decline_pending_not_allowed(
        self, design_service: DesignService, buyer: User, direct_design: DesignSubmission
    ):
        with pytest.raises(InvalidStateError):
            await design_service.buyer_decline(buyer.id, direct_design.id)

    async def test_edit_pending_recomputes_estimate(
        self, design_service: DesignService, buyer: User, broadcast_design: DesignSubmission
    ):
        edited = await design_service.edit_request(
            buyer.id,
            broadcast_design.id,
            DesignEditRequest(
                config=DesignConfig(shape="Heart", layers=[Layer(width=6, flavor="Vanilla", height=4)]),
                user_note="Sin nueces",
            ),
        )

        assert edited.estimated_price == 854
        assert edited.user_note == "Sin nueces"
        assert edited.config["shape"] == "Heart"

    async def test_edit_after_claim_not_allowed(
        self,
        design_service: DesignService,
        buyer: User,
        seller: User,
        broadcast_design: DesignSubmission,
    ):
        await design_service.seller_update_status(
            seller.id, broadcast_design.id, SellerStatusUpdate(status="discussion")
        )

        with pytest.raises(InvalidStateError):
            await design_service.edit_request(
                buyer.id, broadcast_design.id, DesignEditRequest(user_note="Cambio")
            )


@pytest.mark.unit
@pytest.mark.asyncio
class TestDesignQueries:
    """Tests de consultas y visibilidad."""

    async def test_unclaimed_broadcast_visible_to_any_seller(
        self, design_service: DesignService, second_seller: User, broadcast_design: DesignSubmission
    ):
        design = await design_service.get_design(second_seller.id, broadcast_design.id)
        assert design.id == broadcast_design.id

    async def test_other_buyer_forbidden(
        self, design_service: DesignService, other_buyer: User, broadcast_design: DesignSubmission
    ):
        with pytest.raises(ForbiddenError):
            await design_service.get_design(other_buyer.id, broadcast_design.id)

    async def test_direct_hidden_from_other_sellers(
        self, design_service: DesignService, second_seller: User, direct_design: DesignSubmission
    ):
        with pytest.raises(ForbiddenError):
            await design_service.get_design(second_seller.id, direct_design.id)

    async def test_inbox_contents(
        self,
        design_service: DesignService,
        seller: User,
        second_seller: User,
        broadcast_design: DesignSubmission,
        direct_design: DesignSubmission,
    ):
        mine = {d.id for d in await design_service.list_seller_inbox(seller.id)}
        others = {d.id for d in await design_service.list_seller_inbox(second_seller.id)}

        assert mine == {broadcast_design.id, direct_design.id}
        assert others == {broadcast_design.id}

    async def test_buyer_listing(
        self,
        design_service: DesignService,
        buyer: User,
        other_buyer: User,
        broadcast_design: DesignSubmission,
        direct_design: DesignSubmission,
    ):
        designs = await design_service.list_buyer_designs(buyer.id)
        assert {d.id for d in designs} == {broadcast_design.id, direct_design.id}
        assert await design_service.list_buyer_designs(other_buyer.id) == []
