"""
Servicio de Notificaciones.

Fire-and-forget: los fallos se registran en el log y nunca se propagan al
cambio de estado que los originó.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config.logging_config import get_logger
from backend.database.models import Notification, User, UserRole
from backend.services.errors import ForbiddenError, NotFoundError


class NotificationService:
    """
    Servicio para crear notificaciones de usuario.

    Responsabilidades:
    - Notificar a un usuario concreto
    - Fan-out a todos los vendedores activos (solicitudes broadcast)
    - Consultar notificaciones de un usuario y marcarlas como leídas
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.logger = get_logger("notification_service")

    async def notify(
        self,
        user_id: UUID,
        kind: str,
        title: str,
        message: str,
        related_id: Optional[UUID] = None,
    ) -> Optional[Notification]:
        """
        Crea una notificación. Devuelve None si no se pudo guardar.
        """
        try:
            async with self.session_factory() as session:
                async with session.begin():
                    notification = Notification(
                        user_id=user_id,
                        kind=kind,
                        title=title,
                        message=message,
                        related_id=related_id,
                    )
                    session.add(notification)

            self.logger.debug("notification_sent", user_id=str(user_id), kind=kind)
            return notification

        except Exception as e:
            self.logger.warning(
                "notification_skipped", user_id=str(user_id), kind=kind, error=str(e)
            )
            return None

    async def notify_sellers(
        self,
        kind: str,
        title: str,
        message: str,
        related_id: Optional[UUID] = None,
    ) -> int:
        """
        Notifica a todos los vendedores activos, uno por uno.

        Un fallo con un vendedor no impide notificar a los demás.

        Returns:
            Cantidad de notificaciones creadas
        """
        seller_ids = await self._active_seller_ids()
        delivered = 0
        for seller_id in seller_ids:
            if await self.notify(seller_id, kind, title, message, related_id):
                delivered += 1

        self.logger.info(
            "sellers_notified", total=len(seller_ids), delivered=delivered, related_id=str(related_id)
        )
        return delivered

    async def list_for_user(self, user_id: UUID, limit: int = 50) -> List[Notification]:
        """Notificaciones de un usuario, más recientes primero."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Notification)
                .where(Notification.user_id == user_id)
                .order_by(Notification.created_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        """
        Marca una notificación propia como leída.

        Raises:
            NotFoundError: La notificación no existe
            ForbiddenError: La notificación es de otro usuario
        """
        async with self.session_factory() as session:
            async with session.begin():
                notification = await session.get(Notification, notification_id)
                if notification is None:
                    raise NotFoundError("Notificación no encontrada")
                if notification.user_id != user_id:
                    raise ForbiddenError("No estás autorizado para modificar esta notificación")
                notification.is_read = True

        self.logger.debug("notification_read", user_id=str(user_id), notification_id=str(notification_id))
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        """Marca como leídas todas las notificaciones pendientes del usuario."""
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    update(Notification)
                    .where(Notification.user_id == user_id, Notification.is_read.is_(False))
                    .values(is_read=True)
                )

        self.logger.info("notifications_read", user_id=str(user_id), count=result.rowcount)
        return result.rowcount

    async def _active_seller_ids(self) -> List[UUID]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(User.id).where(User.role == UserRole.SELLER, User.is_active.is_(True))
            )
            return list(result.scalars().all())
