"""
Controlador de Solicitudes de Diseño (DesignSubmission)
Consultas y actualizaciones condicionales sobre una sesión ya abierta.
"""
from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import and_, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from backend.database.models.base import utcnow
from backend.database.models.design_submission import DesignStatus, DesignSubmission, RequestType
from backend.database.models.outbox_event import OutboxEvent
from backend.database.models.user_model import User, UserRole


class DesignController:
    """
    Controlador para solicitudes de diseño.

    No abre ni confirma transacciones: el servicio que lo usa decide los
    límites de la transacción.
    """

    def __init__(self, session: AsyncSession):
        """
        Inicializa el controlador.

        Args:
            session: Sesión de base de datos SQLAlchemy
        """
        self.session = session

    # =========================================================================
    # MÉTODOS DE CONSULTA
    # =========================================================================

    async def get_by_id(self, design_id: UUID) -> Optional[DesignSubmission]:
        """
        Obtiene una solicitud por su ID, siempre con los valores actuales de la BD.

        Args:
            design_id: ID de la solicitud

        Returns:
            DesignSubmission si existe, None en caso contrario
        """
        stmt = (
            select(DesignSubmission)
            .where(DesignSubmission.id == design_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user(self, user_id: UUID) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_active_seller(self, seller_id: UUID) -> Optional[User]:
        """Vendedor activo con ese ID, o None."""
        stmt = select(User).where(
            User.id == seller_id,
            User.role == UserRole.SELLER,
            User.is_active.is_(True),
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_buyer(
        self,
        buyer_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> List[DesignSubmission]:
        """Solicitudes de un comprador, más recientes primero."""
        stmt = (
            select(DesignSubmission)
            .where(DesignSubmission.buyer_id == buyer_id)
            .order_by(DesignSubmission.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_inbox(
        self,
        seller_id: UUID,
        limit: int = 50,
        offset: int = 0,
    ) -> List[DesignSubmission]:
        """
        Bandeja del vendedor: lo que tiene asignado más las broadcast sin reclamar.

        Args:
            seller_id: ID del vendedor
            limit: Cantidad máxima de resultados
            offset: Desplazamiento para paginación
        """
        unclaimed_pool = and_(
            DesignSubmission.assigned_seller_id.is_(None),
            DesignSubmission.request_type == RequestType.BROADCAST,
            DesignSubmission.status == DesignStatus.PENDING,
        )
        stmt = (
            select(DesignSubmission)
            .where(or_(DesignSubmission.assigned_seller_id == seller_id, unclaimed_pool))
            .order_by(DesignSubmission.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    # =========================================================================
    # ACTUALIZACIONES CONDICIONALES
    # =========================================================================

    async def compare_and_set(
        self,
        design_id: UUID,
        expected_status: str,
        values: dict[str, Any],
        seller_id: Optional[UUID] = None,
        require_unclaimed: bool = False,
    ) -> int:
        """
        UPDATE condicionado al estado (y al vendedor) leídos previamente.

        Args:
            design_id: ID de la solicitud
            expected_status: Estado que debe tener la fila para aplicar el cambio
            values: Columnas a escribir
            seller_id: Si se indica, la fila debe seguir asignada a este vendedor
            require_unclaimed: La fila debe seguir sin vendedor (reclamo)

        Returns:
            Filas afectadas (0 si otro proceso cambió la fila antes)
        """
        stmt = update(DesignSubmission).where(
            DesignSubmission.id == design_id,
            DesignSubmission.status == expected_status,
        )
        if require_unclaimed:
            stmt = stmt.where(DesignSubmission.assigned_seller_id.is_(None))
        elif seller_id is not None:
            stmt = stmt.where(DesignSubmission.assigned_seller_id == seller_id)

        stmt = (
            stmt.values(**{"updated_at": utcnow(), **values})
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount

    # =========================================================================
    # OUTBOX
    # =========================================================================

    def add_events(self, events: List[OutboxEvent]) -> None:
        """Agrega intenciones de efectos secundarios a la transacción en curso."""
        self.session.add_all(events)
