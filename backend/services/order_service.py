"""
Servicio de Gestión de Pedidos (Orders).
Convierte un diseño aprobado en pedido y consulta pedidos de compradores y vendedores.
"""
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config.logging_config import get_logger
from backend.database.controllers.design_controller import DesignController
from backend.database.models import (
    DesignStatus,
    DesignSubmission,
    NotificationKind,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
)
from backend.domain.design_schemas import DesignConfig
from backend.domain.order_schemas import DesignOrderCreate
from backend.services.errors import (
    ConflictError,
    ForbiddenError,
    InvalidInputError,
    InvalidStateError,
    NotFoundError,
    run_storage_operation,
)
from backend.services.side_effect_dispatcher import SideEffectDispatcher, notify_user_event
from backend.services.upload_service import UploadService, UploadServiceError

ZERO = Decimal("0")


def payable_minimum(design: DesignSubmission) -> Decimal:
    """
    Monto mínimo que el comprador debe declarar.

    El total es precio final + envío; si la cotización fijó un anticipo,
    basta con cubrir el anticipo.
    """
    required = Decimal(design.final_price) + Decimal(design.shipping_fee or ZERO)
    downpayment = Decimal(design.downpayment_amount or ZERO)
    return downpayment if downpayment > 0 else required


class OrderService:
    """
    Servicio para gestión de pedidos.

    Responsabilidades:
    - Convertir un diseño aprobado en exactamente un pedido
    - Verificar en servidor el monto declarado por el comprador
    - Consultar pedidos por comprador y por pastelero
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        upload_service: UploadService,
        dispatcher: Optional[SideEffectDispatcher] = None,
        timeout: float = 10.0,
    ) -> None:
        self.session_factory = session_factory
        self.upload_service = upload_service
        self.dispatcher = dispatcher
        self.timeout = timeout
        self.logger = get_logger("order_service")

    # ========================================================================
    # VALIDACIONES
    # ========================================================================

    def _check_convertible(self, design: Optional[DesignSubmission], buyer_id: UUID, request: DesignOrderCreate) -> None:
        if design is None:
            raise NotFoundError("Solicitud de diseño no encontrada")
        if design.is_locked:
            raise InvalidStateError("Este diseño ya se convirtió en pedido")
        if design.buyer_id != buyer_id:
            raise ForbiddenError("No estás autorizado para ordenar este diseño")
        if design.status != DesignStatus.APPROVED or design.final_price is None or design.assigned_seller_id is None:
            raise InvalidStateError(
                f"Solo se puede ordenar un diseño aprobado con precio final. Estado actual: {design.status}"
            )

        minimum = payable_minimum(design)
        if request.declared_total_amount < minimum:
            raise InvalidInputError(
                f"El monto declarado (₱{request.declared_total_amount:.2f}) es menor "
                f"al mínimo a pagar (₱{minimum:.2f})"
            )

    # ========================================================================
    # CONVERSIÓN DISEÑO → PEDIDO
    # ========================================================================

    async def convert_to_order(self, buyer_id: UUID, request: DesignOrderCreate) -> Order:
        """
        Crea el pedido de un diseño aprobado y bloquea el diseño.

        Este método:
        1. Valida método de pago, estado del diseño y monto declarado
        2. Sube el comprobante de pago si llega como imagen embebida
        3. En una sola transacción: approved -> ordered (UPDATE condicional)
           e inserta el pedido con su única línea
        4. Tras el commit, notifica al pastelero

        Raises:
            NotFoundError, ForbiddenError, InvalidStateError, InvalidInputError,
            ConflictError, StorageUnavailableError
        """
        if request.payment_method not in PaymentMethod.ALL:
            raise InvalidInputError(
                f"Método de pago inválido: {request.payment_method}. Permitidos: {', '.join(PaymentMethod.ALL)}"
            )
        electronic = request.payment_method == PaymentMethod.ELECTRONIC
        if electronic and not request.proof_of_payment:
            raise InvalidInputError("El pago electrónico requiere comprobante de pago")

        # Validación previa para no subir comprobantes de diseños que no se pueden ordenar
        async def precheck() -> None:
            async with self.session_factory() as session:
                design = await DesignController(session).get_by_id(request.design_id)
                self._check_convertible(design, buyer_id, request)

        await run_storage_operation(
            precheck, operation="convert_to_order.precheck", timeout=self.timeout, logger=self.logger
        )

        proof_url = None
        if electronic:
            try:
                proof_url = await self.upload_service.resolve_image(request.proof_of_payment)
            except UploadServiceError as e:
                raise InvalidInputError(str(e)) from e

        async def work() -> Order:
            async with self.session_factory() as session:
                async with session.begin():
                    controller = DesignController(session)
                    design = await controller.get_by_id(request.design_id)
                    self._check_convertible(design, buyer_id, request)

                    updated = await controller.compare_and_set(
                        design.id,
                        expected_status=DesignStatus.APPROVED,
                        values={"status": DesignStatus.ORDERED},
                        seller_id=design.assigned_seller_id,
                    )
                    if updated == 0:
                        raise ConflictError("El pedido de este diseño ya se está procesando")

                    final_price = Decimal(design.final_price)
                    shipping_fee = Decimal(design.shipping_fee or ZERO)
                    title = DesignConfig.model_validate(design.config or {}).summary_title

                    order = Order(
                        buyer_id=buyer_id,
                        design_submission_id=design.id,
                        status=OrderStatus.PENDING_REVIEW,
                        total_amount=final_price + shipping_fee,
                        shipping_cost=shipping_fee,
                        amount_due=payable_minimum(design),
                        declared_amount=request.declared_total_amount,
                        shipping_address=request.shipping_address,
                        date_needed=request.date_needed or design.target_date,
                        special_requests=request.special_requests or design.user_note,
                        payment_method=request.payment_method,
                        payment_status=(
                            PaymentStatus.PENDING_VERIFICATION if electronic else PaymentStatus.UNPAID
                        ),
                        payment_reference=request.payment_reference,
                        proof_of_payment_url=proof_url,
                    )
                    order.items = [
                        OrderItem(
                            design_submission_id=design.id,
                            baker_id=design.assigned_seller_id,
                            title=title,
                            image_url=design.snapshot_image_url,
                            quantity=1,
                            unit_price=final_price,
                        )
                    ]
                    session.add(order)
                    try:
                        await session.flush()
                    except IntegrityError:
                        # Segunda barrera: restricción única sobre design_submission_id
                        raise ConflictError("Ya existe un pedido para este diseño")

                    controller.add_events([
                        notify_user_event(
                            design.id,
                            design.assigned_seller_id,
                            NotificationKind.ORDER_UPDATE,
                            "¡Nuevo pedido recibido!",
                            f"El diseño #{design.short_ref} se convirtió en el pedido "
                            f"#{str(order.id)[:8]}. Total: ₱{order.total_amount:.2f}",
                            related_id=order.id,
                        )
                    ])
                    return order

        order = await run_storage_operation(
            work, operation="convert_to_order", timeout=self.timeout, logger=self.logger
        )

        self.logger.info(
            "order_created_from_design",
            order_id=str(order.id),
            design_id=str(request.design_id),
            buyer_id=str(buyer_id),
            total_amount=str(order.total_amount),
            amount_due=str(order.amount_due),
            payment_method=order.payment_method,
            payment_status=order.payment_status,
        )

        if self.dispatcher is not None:
            try:
                await self.dispatcher.dispatch_pending(design_id=request.design_id)
            except Exception as e:
                self.logger.warning("inline_dispatch_failed", order_id=str(order.id), error=str(e))

        return order

    # ========================================================================
    # MÉTODOS DE CONSULTA
    # ========================================================================

    async def get_order(self, actor_id: UUID, order_id: UUID) -> Order:
        """
        Obtiene un pedido visible para el actor (comprador o pastelero de la línea).

        Raises:
            NotFoundError: Si el pedido no existe
            ForbiddenError: Si el actor no participa en el pedido
        """

        async def work() -> Order:
            async with self.session_factory() as session:
                order = await session.get(Order, order_id)
                if order is None:
                    raise NotFoundError("Pedido no encontrado")
                if order.buyer_id != actor_id and all(item.baker_id != actor_id for item in order.items):
                    raise ForbiddenError("No tienes acceso a este pedido")
                return order

        return await run_storage_operation(
            work, operation="get_order", timeout=self.timeout, logger=self.logger
        )

    async def list_buyer_orders(self, buyer_id: UUID, limit: int = 50, offset: int = 0) -> List[Order]:
        """Pedidos del comprador, más recientes primero."""

        async def work() -> List[Order]:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Order)
                    .where(Order.buyer_id == buyer_id)
                    .order_by(Order.created_at.desc())
                    .limit(limit)
                    .offset(offset)
                )
                return list(result.scalars().all())

        return await run_storage_operation(
            work, operation="list_buyer_orders", timeout=self.timeout, logger=self.logger
        )

    async def list_seller_orders(self, seller_id: UUID, limit: int = 50, offset: int = 0) -> List[Order]:
        """Pedidos con alguna línea del pastelero, más recientes primero."""

        async def work() -> List[Order]:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Order)
                    .where(Order.items.any(OrderItem.baker_id == seller_id))
                    .order_by(Order.created_at.desc())
                    .limit(limit)
                    .offset(offset)
                )
                return list(result.scalars().all())

        return await run_storage_operation(
            work, operation="list_seller_orders", timeout=self.timeout, logger=self.logger
        )
