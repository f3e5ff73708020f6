"""
Servicio de Solicitudes de Diseño.

Máquina de estados de una solicitud de pastel personalizado:

    pending -> discussion -> quoted -> approved -> ordered
       |           |           |
       +-----------+-----------+--> declined (o de vuelta a la bolsa si es broadcast)

Cada cambio de estado es un UPDATE condicional sobre el estado (y el
vendedor) leídos: si otro proceso llegó primero, el UPDATE no afecta filas
y se responde con ConflictError. Los efectos secundarios se escriben en el
outbox dentro de la misma transacción y se despachan tras el commit.
"""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config.logging_config import get_logger
from backend.database.controllers.design_controller import DesignController
from backend.database.models import (
    DesignStatus,
    DesignSubmission,
    MessageKind,
    NotificationKind,
    OutboxEvent,
    RequestType,
    UserRole,
)
from backend.database.models.design_submission import BUYER_DECLINABLE
from backend.domain.design_schemas import (
    DesignConfig,
    DesignEditRequest,
    DesignSubmitRequest,
    SellerStatusUpdate,
)
from backend.services.asset_catalog_service import AssetCatalogService
from backend.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    run_storage_operation,
)
from backend.services.pricing_engine import PricingEngine
from backend.services.side_effect_dispatcher import (
    SideEffectDispatcher,
    ensure_conversation_event,
    notify_sellers_event,
    notify_user_event,
    system_message_event,
)
from backend.services.upload_service import UploadService, UploadServiceError

# Estados que el vendedor puede pedir
SELLER_REQUESTABLE = (
    DesignStatus.DISCUSSION,
    DesignStatus.QUOTED,
    DesignStatus.DECLINED,
    DesignStatus.RELEASED,
)

ZERO = Decimal("0")

# Campos que se limpian cuando una broadcast vuelve a la bolsa
REPOOL_VALUES = {
    "status": DesignStatus.PENDING,
    "assigned_seller_id": None,
    "final_price": None,
    "baker_note": None,
    "shipping_fee": ZERO,
    "downpayment_amount": ZERO,
    "payment_preference": None,
}


# ============================================================================
# TEXTOS DE MENSAJES Y NOTIFICACIONES
# ============================================================================

def _money(amount: Decimal) -> str:
    return f"₱{Decimal(amount):.2f}"


def quotation_text(design: DesignSubmission, baker_note: Optional[str]) -> str:
    return (
        f"Nos complace cotizar tu pastel personalizado en **{_money(design.final_price)}**. "
        f"{baker_note or ''} Por favor revisa y confirma."
    )


def discussion_text(design: DesignSubmission, baker_note: Optional[str]) -> str:
    return (
        f"Empecé a revisar tu solicitud de diseño (#{design.short_ref}). "
        f"Conversemos los detalles en este chat. "
        f"{baker_note or '¿Qué aspecto del diseño puedo ayudarte a aclarar?'}"
    )


class DesignService:
    """
    Servicio para el ciclo de vida de las solicitudes de diseño.

    Responsabilidades:
    - Crear solicitudes (directas o broadcast) con precio estimado del servidor
    - Transiciones del vendedor (reclamar, conversar, cotizar, rechazar, liberar)
    - Transiciones del comprador (aprobar, rechazar, editar)
    - Consultas por comprador y bandeja del vendedor
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        catalog: AssetCatalogService,
        pricing: PricingEngine,
        upload_service: UploadService,
        dispatcher: Optional[SideEffectDispatcher] = None,
        timeout: float = 10.0,
    ) -> None:
        self.session_factory = session_factory
        self.catalog = catalog
        self.pricing = pricing
        self.upload_service = upload_service
        self.dispatcher = dispatcher
        self.timeout = timeout
        self.logger = get_logger("design_service")

    # ========================================================================
    # AUXILIARES
    # ========================================================================

    async def _estimate(self, config: DesignConfig, client_estimate: Optional[int]) -> int:
        """Precio estimado calculado en el servidor; el del cliente solo se compara."""
        assets = await self.catalog.list_available_assets()
        price = self.pricing.compute(config, assets)
        if client_estimate is not None and client_estimate != price:
            self.logger.warning(
                "client_estimate_mismatch", client_estimate=client_estimate, server_estimate=price
            )
        return price

    async def _resolve_snapshot(self, snapshot: Optional[str]) -> Optional[str]:
        try:
            return await self.upload_service.resolve_image(snapshot)
        except UploadServiceError as e:
            raise InvalidInputError(str(e)) from e

    async def _dispatch(self, design_id: UUID) -> None:
        """Despacho inmediato tras el commit; los fallos quedan en el outbox."""
        if self.dispatcher is None:
            return
        try:
            await self.dispatcher.dispatch_pending(design_id=design_id)
        except Exception as e:
            self.logger.warning("inline_dispatch_failed", design_id=str(design_id), error=str(e))

    async def _load_for_update(self, controller: DesignController, design_id: UUID) -> DesignSubmission:
        design = await controller.get_by_id(design_id)
        if design is None:
            raise NotFoundError("Solicitud de diseño no encontrada")
        if design.is_locked:
            raise InvalidStateError("La solicitud ya se convirtió en pedido y no admite cambios")
        return design

    # ========================================================================
    # CREACIÓN
    # ========================================================================

    async def submit_design(self, buyer_id: UUID, request: DesignSubmitRequest) -> DesignSubmission:
        """
        Crea una solicitud en estado `pending`.

        Una solicitud directa queda asignada al vendedor elegido desde el
        inicio; una broadcast queda sin vendedor y se notifica a todos.

        Raises:
            InvalidInputError: Vendedor inexistente o imagen que no se pudo subir
            StorageUnavailableError: La base de datos no respondió
        """
        estimated_price = await self._estimate(request.config, request.estimated_price)
        snapshot_url = await self._resolve_snapshot(request.snapshot_image)

        async def work() -> DesignSubmission:
            async with self.session_factory() as session:
                async with session.begin():
                    controller = DesignController(session)

                    if request.request_type == RequestType.DIRECT:
                        seller = await controller.get_active_seller(request.seller_id)
                        if seller is None:
                            raise InvalidInputError("El vendedor seleccionado no existe")

                    design = DesignSubmission(
                        buyer_id=buyer_id,
                        assigned_seller_id=request.seller_id,
                        request_type=request.request_type,
                        status=DesignStatus.PENDING,
                        config=request.config.model_dump(mode="json"),
                        estimated_price=estimated_price,
                        user_note=request.user_note,
                        snapshot_image_url=snapshot_url,
                        target_date=request.target_date,
                        shipping_fee=ZERO,
                        downpayment_amount=ZERO,
                    )
                    session.add(design)
                    await session.flush()

                    if design.is_broadcast:
                        event = notify_sellers_event(
                            design.id,
                            NotificationKind.DESIGN_REQUEST,
                            "¡Nueva solicitud de diseño abierta!",
                            "Hay una nueva solicitud de pastel personalizado disponible para cotizar.",
                        )
                    else:
                        event = notify_user_event(
                            design.id,
                            request.seller_id,
                            NotificationKind.DESIGN_REQUEST,
                            "¡Nueva solicitud de diseño directa!",
                            "Un comprador te envió una solicitud directa de pastel personalizado.",
                        )
                    controller.add_events([event])
                    return design

        design = await run_storage_operation(
            work, operation="submit_design", timeout=self.timeout, logger=self.logger
        )

        self.logger.info(
            "design_submitted",
            design_id=str(design.id),
            buyer_id=str(buyer_id),
            request_type=design.request_type,
            estimated_price=estimated_price,
        )
        await self._dispatch(design.id)
        return design

    # ========================================================================
    # TRANSICIONES DEL VENDEDOR
    # ========================================================================

    def _validate_seller_update(self, update: SellerStatusUpdate) -> None:
        if update.status not in SELLER_REQUESTABLE:
            raise InvalidInputError(
                f"Estado inválido: {update.status}. Permitidos: {', '.join(SELLER_REQUESTABLE)}"
            )
        if update.status == DesignStatus.QUOTED and (update.final_price is None or update.final_price <= 0):
            raise InvalidInputError("Una cotización requiere un precio final mayor a cero")
        if update.status != DesignStatus.QUOTED and update.final_price is not None:
            raise InvalidInputError("El precio final solo se fija al cotizar")
        for field_name in ("final_price", "shipping_fee", "downpayment_amount"):
            value = getattr(update, field_name)
            if value is not None and value < 0:
                raise InvalidInputError(f"{field_name} no puede ser negativo")

    async def seller_update_status(
        self,
        seller_id: UUID,
        design_id: UUID,
        update: SellerStatusUpdate,
    ) -> DesignSubmission:
        """
        Aplica una transición pedida por el vendedor.

        Si la solicitud es una broadcast sin reclamar, la reclama en el mismo
        UPDATE condicional: de varios vendedores concurrentes solo uno gana y
        el resto recibe ConflictError.

        Raises:
            NotFoundError, ForbiddenError, InvalidStateError, InvalidInputError,
            ConflictError, StorageUnavailableError
        """
        requested = update.status

        async def work() -> DesignSubmission:
            async with self.session_factory() as session:
                async with session.begin():
                    controller = DesignController(session)
                    design = await self._load_for_update(controller, design_id)
                    self._validate_seller_update(update)

                    claiming = not design.is_claimed
                    if not claiming and design.assigned_seller_id != seller_id:
                        if design.is_broadcast:
                            # Perdió la carrera del reclamo
                            raise ConflictError("Otro vendedor ya tomó esta solicitud")
                        raise ForbiddenError("No estás autorizado para actualizar esta solicitud")
                    if claiming and requested in (DesignStatus.DECLINED, DesignStatus.RELEASED):
                        raise InvalidStateError("No puedes rechazar ni liberar una solicitud que no has tomado")
                    if not design.can_seller_transition_to(requested):
                        raise InvalidStateError(
                            f"Transición no permitida: {design.status} -> {requested}"
                        )

                    previous_status = design.status
                    repooled = requested == DesignStatus.RELEASED and design.is_broadcast

                    if repooled:
                        values = dict(REPOOL_VALUES)
                    elif requested == DesignStatus.RELEASED:
                        values = {"status": DesignStatus.DECLINED}
                    else:
                        values = {"status": requested}
                        if update.final_price is not None:
                            values["final_price"] = update.final_price
                        if update.baker_note is not None:
                            values["baker_note"] = update.baker_note
                        if update.payment_preference is not None:
                            values["payment_preference"] = update.payment_preference
                        if update.shipping_fee is not None or requested == DesignStatus.QUOTED:
                            values["shipping_fee"] = update.shipping_fee or ZERO
                        if update.downpayment_amount is not None or requested == DesignStatus.QUOTED:
                            values["downpayment_amount"] = update.downpayment_amount or ZERO
                        if claiming:
                            values["assigned_seller_id"] = seller_id

                        final_price = values.get("final_price", design.final_price)
                        shipping_fee = values.get("shipping_fee", design.shipping_fee) or ZERO
                        downpayment = values.get("downpayment_amount", design.downpayment_amount) or ZERO
                        if final_price is not None and downpayment > final_price + shipping_fee:
                            raise InvalidInputError("El anticipo no puede superar el total del pedido")

                    updated = await controller.compare_and_set(
                        design_id,
                        expected_status=previous_status,
                        values=values,
                        seller_id=design.assigned_seller_id,
                        require_unclaimed=claiming,
                    )
                    if updated == 0:
                        raise ConflictError("Otro vendedor ya tomó o modificó esta solicitud")

                    design = await controller.get_by_id(design_id)
                    if not repooled:
                        controller.add_events(
                            self._seller_update_events(design, seller_id, update, claiming)
                        )
                    return design

        design = await run_storage_operation(
            work, operation="seller_update_status", timeout=self.timeout, logger=self.logger
        )

        self.logger.info(
            "design_status_updated",
            design_id=str(design_id),
            seller_id=str(seller_id),
            requested=requested,
            status=design.status,
        )
        await self._dispatch(design_id)
        return design

    def _seller_update_events(
        self,
        design: DesignSubmission,
        seller_id: UUID,
        update: SellerStatusUpdate,
        claimed_now: bool,
    ) -> List[OutboxEvent]:
        events = [ensure_conversation_event(design.id, design.buyer_id, seller_id)]

        if update.status == DesignStatus.QUOTED:
            events.append(system_message_event(
                design.id, design.buyer_id, seller_id, seller_id,
                quotation_text(design, update.baker_note),
                kind=MessageKind.QUOTATION,
                last_message=f"Cotización enviada: {_money(design.final_price)}",
            ))
        elif update.status == DesignStatus.DISCUSSION or (claimed_now and design.status != DesignStatus.DECLINED):
            events.append(system_message_event(
                design.id, design.buyer_id, seller_id, seller_id,
                discussion_text(design, update.baker_note),
                kind=MessageKind.STANDARD,
                last_message=(
                    "Nueva solicitud asignada. Conversación iniciada."
                    if claimed_now else "El pastelero reanudó la conversación."
                ),
            ))

        note = f" Nota: {update.baker_note}" if update.baker_note else ""
        events.append(notify_user_event(
            design.id,
            design.buyer_id,
            NotificationKind.ORDER_UPDATE,
            "Actualización de tu solicitud de diseño",
            f"Estado: {design.status.upper()}.{note}",
        ))
        return events

    # ========================================================================
    # TRANSICIONES DEL COMPRADOR
    # ========================================================================

    async def buyer_approve(self, buyer_id: UUID, design_id: UUID) -> DesignSubmission:
        """
        Aprueba la cotización: quoted -> approved.

        Raises:
            NotFoundError, ForbiddenError, InvalidStateError, ConflictError,
            StorageUnavailableError
        """

        async def work() -> DesignSubmission:
            async with self.session_factory() as session:
                async with session.begin():
                    controller = DesignController(session)
                    design = await self._load_for_update(controller, design_id)

                    if design.buyer_id != buyer_id:
                        raise ForbiddenError("No estás autorizado para aprobar esta solicitud")
                    if design.status != DesignStatus.QUOTED or design.final_price is None:
                        raise InvalidStateError(
                            f"Solo se puede aprobar una solicitud cotizada con precio final. "
                            f"Estado actual: {design.status}"
                        )

                    updated = await controller.compare_and_set(
                        design_id,
                        expected_status=DesignStatus.QUOTED,
                        values={"status": DesignStatus.APPROVED},
                        seller_id=design.assigned_seller_id,
                    )
                    if updated == 0:
                        raise ConflictError("La solicitud cambió mientras se aprobaba")

                    design = await controller.get_by_id(design_id)
                    seller_id = design.assigned_seller_id
                    controller.add_events([
                        system_message_event(
                            design.id, design.buyer_id, seller_id, buyer_id,
                            f"Aprobé la cotización de {_money(design.final_price)}. ¡Listo para ordenar!",
                            kind=MessageKind.APPROVAL,
                            last_message="¡Diseño aprobado! Listo para el pedido.",
                        ),
                        notify_user_event(
                            design.id,
                            seller_id,
                            NotificationKind.DESIGN_RESPONSE,
                            "Cotización aprobada",
                            f"El comprador aprobó la cotización ({_money(design.final_price)}) "
                            f"del diseño #{design.short_ref}.",
                        ),
                    ])
                    return design

        design = await run_storage_operation(
            work, operation="buyer_approve", timeout=self.timeout, logger=self.logger
        )
        self.logger.info("design_approved", design_id=str(design_id), final_price=str(design.final_price))
        await self._dispatch(design_id)
        return design

    async def buyer_decline(self, buyer_id: UUID, design_id: UUID) -> DesignSubmission:
        """
        Rechaza la cotización o la conversación en curso.

        Una broadcast vuelve a la bolsa para que otro vendedor la tome; una
        directa queda `declined`.
        """

        async def work() -> DesignSubmission:
            async with self.session_factory() as session:
                async with session.begin():
                    controller = DesignController(session)
                    design = await self._load_for_update(controller, design_id)

                    if design.buyer_id != buyer_id:
                        raise ForbiddenError("No estás autorizado para rechazar esta solicitud")
                    if design.status not in BUYER_DECLINABLE:
                        raise InvalidStateError(f"No se puede rechazar una solicitud en estado: {design.status}")

                    previous_seller = design.assigned_seller_id
                    values = dict(REPOOL_VALUES) if design.is_broadcast else {"status": DesignStatus.DECLINED}

                    updated = await controller.compare_and_set(
                        design_id,
                        expected_status=design.status,
                        values=values,
                        seller_id=previous_seller,
                    )
                    if updated == 0:
                        raise ConflictError("La solicitud cambió mientras se rechazaba")

                    design = await controller.get_by_id(design_id)
                    if previous_seller is not None:
                        controller.add_events([
                            system_message_event(
                                design.id, design.buyer_id, previous_seller, buyer_id,
                                "Rechacé la cotización de este diseño.",
                                kind=MessageKind.DECLINED,
                                last_message="Diseño rechazado.",
                            ),
                            notify_user_event(
                                design.id,
                                previous_seller,
                                NotificationKind.DESIGN_RESPONSE,
                                "Cotización rechazada",
                                f"El comprador rechazó la cotización del diseño #{design.short_ref}.",
                            ),
                        ])
                    return design

        design = await run_storage_operation(
            work, operation="buyer_decline", timeout=self.timeout, logger=self.logger
        )
        self.logger.info("design_declined_by_buyer", design_id=str(design_id), status=design.status)
        await self._dispatch(design_id)
        return design

    async def edit_request(
        self,
        buyer_id: UUID,
        design_id: UUID,
        edit: DesignEditRequest,
    ) -> DesignSubmission:
        """
        Edita una solicitud que sigue en `pending`.

        Si cambia la configuración se recalcula el precio estimado.
        """
        estimated_price = None
        if edit.config is not None:
            estimated_price = await self._estimate(edit.config, edit.estimated_price)
        snapshot_url = await self._resolve_snapshot(edit.snapshot_image)

        async def work() -> DesignSubmission:
            async with self.session_factory() as session:
                async with session.begin():
                    controller = DesignController(session)
                    design = await self._load_for_update(controller, design_id)

                    if design.buyer_id != buyer_id:
                        raise ForbiddenError("No estás autorizado para editar esta solicitud")
                    if design.status != DesignStatus.PENDING:
                        raise InvalidStateError("Solo se puede editar una solicitud pendiente")

                    values = {}
                    if edit.config is not None:
                        values["config"] = edit.config.model_dump(mode="json")
                        values["estimated_price"] = estimated_price
                    if edit.user_note is not None:
                        values["user_note"] = edit.user_note
                    if edit.target_date is not None:
                        values["target_date"] = edit.target_date
                    if snapshot_url is not None:
                        values["snapshot_image_url"] = snapshot_url

                    if not values:
                        return design

                    updated = await controller.compare_and_set(
                        design_id,
                        expected_status=DesignStatus.PENDING,
                        values=values,
                        seller_id=design.assigned_seller_id,
                        require_unclaimed=not design.is_claimed,
                    )
                    if updated == 0:
                        raise ConflictError("Un vendedor tomó la solicitud mientras se editaba")

                    return await controller.get_by_id(design_id)

        design = await run_storage_operation(
            work, operation="edit_request", timeout=self.timeout, logger=self.logger
        )
        self.logger.info("design_edited", design_id=str(design_id), estimated_price=design.estimated_price)
        return design

    # ========================================================================
    # CONSULTAS
    # ========================================================================

    async def get_design(self, actor_id: UUID, design_id: UUID) -> DesignSubmission:
        """
        Obtiene una solicitud visible para el actor.

        Pueden verla el comprador, el vendedor asignado y, mientras una
        broadcast siga sin reclamar, cualquier vendedor.
        """

        async def work() -> DesignSubmission:
            async with self.session_factory() as session:
                controller = DesignController(session)
                design = await controller.get_by_id(design_id)
                if design is None:
                    raise NotFoundError("Solicitud de diseño no encontrada")

                if actor_id in (design.buyer_id, design.assigned_seller_id):
                    return design

                if design.is_broadcast and not design.is_claimed:
                    actor = await controller.get_user(actor_id)
                    if actor is not None and actor.role == UserRole.SELLER:
                        return design

                raise ForbiddenError("No tienes acceso a esta solicitud")

        return await run_storage_operation(
            work, operation="get_design", timeout=self.timeout, logger=self.logger
        )

    async def list_buyer_designs(self, buyer_id: UUID, limit: int = 50, offset: int = 0) -> List[DesignSubmission]:
        """Solicitudes del comprador, más recientes primero."""

        async def work() -> List[DesignSubmission]:
            async with self.session_factory() as session:
                return await DesignController(session).list_by_buyer(buyer_id, limit, offset)

        return await run_storage_operation(
            work, operation="list_buyer_designs", timeout=self.timeout, logger=self.logger
        )

    async def list_seller_inbox(self, seller_id: UUID, limit: int = 50, offset: int = 0) -> List[DesignSubmission]:
        """Solicitudes asignadas al vendedor más la bolsa de broadcast sin reclamar."""

        async def work() -> List[DesignSubmission]:
            async with self.session_factory() as session:
                return await DesignController(session).list_inbox(seller_id, limit, offset)

        return await run_storage_operation(
            work, operation="list_seller_inbox", timeout=self.timeout, logger=self.logger
        )
