"""
Servicio de Conversaciones.
Maneja los hilos de chat ligados a solicitudes de diseño y los mensajes de sistema.
"""
from typing import List, Optional
from uuid import UUID

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backend.config.logging_config import get_logger
from backend.database.models import Conversation, Message, MessageKind
from backend.database.models.base import utcnow
from backend.services.errors import ForbiddenError, NotFoundError

LAST_MESSAGE_MAX_LENGTH = 100


class ConversationServiceError(Exception):
    """Excepción base para errores del servicio de conversaciones."""
    pass


class ConversationService:
    """
    Servicio para hilos comprador/vendedor.

    Responsabilidades:
    - Buscar o crear (idempotente) el hilo de un diseño y un vendedor
    - Publicar mensajes de sistema (cotización, apertura, aprobación, rechazo)
    - Consultar hilos y mensajes
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self.session_factory = session_factory
        self.logger = get_logger("conversation_service")

    # ========================================================================
    # HILOS
    # ========================================================================

    async def find_or_create_conversation(
        self,
        design_id: UUID,
        buyer_id: UUID,
        seller_id: UUID,
    ) -> UUID:
        """
        Devuelve el ID del hilo del diseño con ese vendedor, creándolo si no existe.

        Dos llamadas concurrentes convergen en el mismo hilo gracias a la
        restricción única (diseño, vendedor).
        """
        existing = await self.get_conversation(design_id, seller_id)
        if existing:
            return existing.id

        try:
            async with self.session_factory() as session:
                async with session.begin():
                    conversation = Conversation(
                        design_submission_id=design_id,
                        buyer_id=buyer_id,
                        seller_id=seller_id,
                    )
                    session.add(conversation)

            self.logger.info(
                "conversation_created",
                conversation_id=str(conversation.id),
                design_id=str(design_id),
            )
            return conversation.id

        except IntegrityError:
            # Otro proceso lo creó entre la búsqueda y el insert
            existing = await self.get_conversation(design_id, seller_id)
            if existing is None:
                raise
            return existing.id

    async def get_conversation(self, design_id: UUID, seller_id: UUID) -> Optional[Conversation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(Conversation).where(
                    Conversation.design_submission_id == design_id,
                    Conversation.seller_id == seller_id,
                )
            )
            return result.scalar_one_or_none()

    async def list_for_user(self, user_id: UUID, limit: int = 50) -> List[Conversation]:
        """Hilos donde participa el usuario, con actividad más reciente primero."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(Conversation)
                .where(or_(Conversation.buyer_id == user_id, Conversation.seller_id == user_id))
                .order_by(Conversation.last_message_at.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

    # ========================================================================
    # MENSAJES
    # ========================================================================

    async def post_system_message(
        self,
        conversation_id: UUID,
        sender_id: UUID,
        text: str,
        kind: str = MessageKind.STANDARD,
        design_id: Optional[UUID] = None,
        last_message: Optional[str] = None,
    ) -> Message:
        """
        Publica un mensaje generado por una transición y actualiza el resumen del hilo.

        Raises:
            ConversationServiceError: Si el tipo es inválido o el hilo no existe
        """
        if kind not in MessageKind.ALL:
            raise ConversationServiceError(f"Tipo de mensaje inválido: {kind}")

        async with self.session_factory() as session:
            async with session.begin():
                conversation = await session.get(Conversation, conversation_id)
                if conversation is None:
                    raise ConversationServiceError(f"Conversación no encontrada: {conversation_id}")

                message = Message(
                    conversation_id=conversation_id,
                    sender_id=sender_id,
                    design_submission_id=design_id,
                    kind=kind,
                    text=text,
                )
                session.add(message)

                conversation.last_message = (last_message or text)[:LAST_MESSAGE_MAX_LENGTH]
                conversation.last_message_at = utcnow()

        self.logger.debug(
            "system_message_posted",
            conversation_id=str(conversation_id),
            kind=kind,
            message_id=str(message.id),
        )
        return message

    async def list_messages(self, user_id: UUID, conversation_id: UUID) -> List[Message]:
        """
        Mensajes del hilo en orden cronológico.

        Raises:
            NotFoundError: El hilo no existe
            ForbiddenError: El usuario no participa en el hilo
        """
        async with self.session_factory() as session:
            conversation = await session.get(Conversation, conversation_id)
            if conversation is None:
                raise NotFoundError("Conversación no encontrada")
            if user_id not in (conversation.buyer_id, conversation.seller_id):
                raise ForbiddenError("No participas en esta conversación")

            result = await session.execute(
                select(Message)
                .where(Message.conversation_id == conversation_id)
                .order_by(Message.created_at, Message.id)
            )
            return list(result.scalars().all())
