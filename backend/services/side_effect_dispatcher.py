"""
Despachador de Efectos Secundarios (outbox).

Los servicios escriben filas `OutboxEvent` en la misma transacción que el
cambio de estado. Este despachador las entrega después del commit: hilos de
chat, mensajes de sistema y notificaciones.

Cada evento se reclama con un UPDATE condicional pending -> processing, así
que el despacho inmediato tras una operación y el worker en segundo plano
nunca entregan el mismo evento dos veces. Un fallo nunca revierte el cambio
de estado que lo originó: se registra en el log y en la fila.
"""
import asyncio
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config.logging_config import get_logger
from backend.database.models import MessageKind, OutboxEvent, OutboxEventType, OutboxStatus
from backend.database.models.base import utcnow
from backend.services.conversation_service import ConversationService
from backend.services.notification_service import NotificationService

LAST_ERROR_MAX_LENGTH = 500


class DispatchError(Exception):
    """Un efecto secundario no pudo entregarse."""
    pass


# ============================================================================
# CONSTRUCTORES DE EVENTOS
# ============================================================================

def _jsonable(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


def outbox_event(event_type: str, design_id: Optional[UUID] = None, **payload: Any) -> OutboxEvent:
    """Crea un evento pendiente; los UUID del payload se guardan como texto."""
    return OutboxEvent(
        event_type=event_type,
        design_submission_id=design_id,
        payload={key: _jsonable(value) for key, value in payload.items()},
        status=OutboxStatus.PENDING,
        attempts=0,
    )


def notify_user_event(
    design_id: UUID, user_id: UUID, kind: str, title: str, message: str, related_id: Optional[UUID] = None
) -> OutboxEvent:
    return outbox_event(
        OutboxEventType.NOTIFY_USER,
        design_id,
        user_id=user_id,
        kind=kind,
        title=title,
        message=message,
        related_id=related_id or design_id,
    )


def notify_sellers_event(design_id: UUID, kind: str, title: str, message: str) -> OutboxEvent:
    return outbox_event(
        OutboxEventType.NOTIFY_SELLERS, design_id, kind=kind, title=title, message=message, related_id=design_id
    )


def ensure_conversation_event(design_id: UUID, buyer_id: UUID, seller_id: UUID) -> OutboxEvent:
    return outbox_event(OutboxEventType.ENSURE_CONVERSATION, design_id, buyer_id=buyer_id, seller_id=seller_id)


def system_message_event(
    design_id: UUID,
    buyer_id: UUID,
    seller_id: UUID,
    sender_id: UUID,
    text: str,
    kind: str = MessageKind.STANDARD,
    last_message: Optional[str] = None,
) -> OutboxEvent:
    return outbox_event(
        OutboxEventType.SYSTEM_MESSAGE,
        design_id,
        buyer_id=buyer_id,
        seller_id=seller_id,
        sender_id=sender_id,
        text=text,
        kind=kind,
        last_message=last_message,
    )


# ============================================================================
# DESPACHADOR
# ============================================================================

class SideEffectDispatcher:
    """
    Entrega los eventos pendientes del outbox.

    Responsabilidades:
    - Reclamar eventos (pending -> processing) sin duplicar entregas
    - Ejecutar el efecto con los servicios de conversación y notificación
    - Registrar intentos y errores; marcar `failed` al agotar los reintentos
    - Worker en segundo plano con intervalo configurable
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        conversation_service: ConversationService,
        notification_service: NotificationService,
        max_attempts: int = 5,
    ) -> None:
        self.session_factory = session_factory
        self.conversations = conversation_service
        self.notifications = notification_service
        self.max_attempts = max_attempts
        self.logger = get_logger("side_effect_dispatcher")
        self._stop_event = asyncio.Event()

    # ========================================================================
    # DESPACHO
    # ========================================================================

    async def dispatch_pending(self, design_id: Optional[UUID] = None, limit: int = 100) -> int:
        """
        Entrega los eventos pendientes en orden de creación.

        Args:
            design_id: Limita el despacho a los eventos de un diseño
            limit: Máximo de eventos por pasada

        Returns:
            Cantidad de eventos entregados en esta pasada
        """
        event_ids = await self._pending_ids(design_id, limit)
        delivered = 0

        for event_id in event_ids:
            event = await self._claim(event_id)
            if event is None:
                # Otro despachador ya lo tomó
                continue

            try:
                await self._deliver(event)
            except Exception as e:
                await self._record_failure(event, e)
                continue

            await self._mark_delivered(event.id)
            delivered += 1

        if event_ids:
            self.logger.debug(
                "outbox_dispatched",
                design_id=str(design_id) if design_id else None,
                pending=len(event_ids),
                delivered=delivered,
            )
        return delivered

    async def _pending_ids(self, design_id: Optional[UUID], limit: int) -> List[UUID]:
        async with self.session_factory() as session:
            query = (
                select(OutboxEvent.id)
                .where(OutboxEvent.status == OutboxStatus.PENDING)
                .order_by(OutboxEvent.created_at, OutboxEvent.id)
                .limit(limit)
            )
            if design_id is not None:
                query = query.where(OutboxEvent.design_submission_id == design_id)
            result = await session.execute(query)
            return list(result.scalars().all())

    async def _claim(self, event_id: UUID) -> Optional[OutboxEvent]:
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(OutboxEvent)
                    .where(OutboxEvent.id == event_id, OutboxEvent.status == OutboxStatus.PENDING)
                    .values(status=OutboxStatus.PROCESSING, attempts=OutboxEvent.attempts + 1)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    return None
                return await session.get(OutboxEvent, event_id, populate_existing=True)

    async def _deliver(self, event: OutboxEvent) -> None:
        payload = event.payload or {}

        if event.event_type == OutboxEventType.NOTIFY_USER:
            notification = await self.notifications.notify(
                UUID(payload["user_id"]),
                payload["kind"],
                payload["title"],
                payload["message"],
                _optional_uuid(payload.get("related_id")),
            )
            if notification is None:
                raise DispatchError("La notificación no se pudo guardar")

        elif event.event_type == OutboxEventType.NOTIFY_SELLERS:
            await self.notifications.notify_sellers(
                payload["kind"],
                payload["title"],
                payload["message"],
                _optional_uuid(payload.get("related_id")),
            )

        elif event.event_type == OutboxEventType.ENSURE_CONVERSATION:
            await self.conversations.find_or_create_conversation(
                event.design_submission_id,
                UUID(payload["buyer_id"]),
                UUID(payload["seller_id"]),
            )

        elif event.event_type == OutboxEventType.SYSTEM_MESSAGE:
            conversation_id = await self.conversations.find_or_create_conversation(
                event.design_submission_id,
                UUID(payload["buyer_id"]),
                UUID(payload["seller_id"]),
            )
            await self.conversations.post_system_message(
                conversation_id,
                UUID(payload["sender_id"]),
                payload["text"],
                kind=payload.get("kind", MessageKind.STANDARD),
                design_id=event.design_submission_id,
                last_message=payload.get("last_message"),
            )

        else:
            raise DispatchError(f"Tipo de evento desconocido: {event.event_type}")

    async def _mark_delivered(self, event_id: UUID) -> None:
        async with self.session_factory() as session:
            async with session.begin():
                await session.execute(
                    update(OutboxEvent)
                    .where(OutboxEvent.id == event_id)
                    .values(status=OutboxStatus.DELIVERED, delivered_at=utcnow(), last_error=None)
                    .execution_options(synchronize_session=False)
                )

    async def _record_failure(self, event: OutboxEvent, error: Exception) -> None:
        exhausted = event.attempts >= self.max_attempts
        new_status = OutboxStatus.FAILED if exhausted else OutboxStatus.PENDING

        self.logger.warning(
            "side_effect_failed",
            event_id=str(event.id),
            event_type=event.event_type,
            design_id=str(event.design_submission_id),
            attempts=event.attempts,
            exhausted=exhausted,
            error=str(error),
        )

        async with self.session_factory() as session:
            async with session.begin():
                await session.execute(
                    update(OutboxEvent)
                    .where(OutboxEvent.id == event.id)
                    .values(status=new_status, last_error=str(error)[:LAST_ERROR_MAX_LENGTH])
                    .execution_options(synchronize_session=False)
                )

    # ========================================================================
    # WORKER EN SEGUNDO PLANO
    # ========================================================================

    async def requeue_in_flight(self) -> int:
        """
        Devuelve a `pending` los eventos que quedaron en `processing`.

        Solo debe llamarse al arrancar, antes de que haya despachos en curso.
        """
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(OutboxEvent)
                    .where(OutboxEvent.status == OutboxStatus.PROCESSING)
                    .values(status=OutboxStatus.PENDING)
                    .execution_options(synchronize_session=False)
                )
        if result.rowcount:
            self.logger.info("outbox_requeued", count=result.rowcount)
        return result.rowcount

    async def run_forever(self, interval: float) -> None:
        """Despacha periódicamente hasta que se llame a `stop()`."""
        self._stop_event.clear()
        await self.requeue_in_flight()
        self.logger.info("outbox_worker_started", interval=interval)

        while not self._stop_event.is_set():
            try:
                await self.dispatch_pending()
            except Exception as e:
                self.logger.error("outbox_worker_error", error=str(e))

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass

        self.logger.info("outbox_worker_stopped")

    def stop(self) -> None:
        self._stop_event.set()


def _optional_uuid(value: Optional[str]) -> Optional[UUID]:
    return UUID(value) if value else None
