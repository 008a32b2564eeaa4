"""
Despacho de efectos secundarios mediante outbox transaccional.

Las operaciones de escritura agregan un OutboxEvent en la misma transacción
que el cambio principal. El OutboxDispatcher, una tarea asyncio iniciada con
la aplicación, reserva los eventos pendientes y ejecuta su handler. Un fallo
se registra y se reintenta con backoff exponencial; nunca afecta a la
escritura original.
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Iterator, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.config import Settings, get_settings
from app.crud.outbox import OutboxEventCreate, outbox as crud_outbox
from app.services import notification_service
from app.services.realtime_service import RealtimeHub, realtime_hub

logger = logging.getLogger(__name__)

# Tipos de evento
EVENT_NOTIFICATION_NEW_MESSAGE = "notification.new_message"
EVENT_NOTIFICATION_QUOTE = "notification.quote"
EVENT_REALTIME_NEW_MESSAGE = "realtime.new_message"
EVENT_REALTIME_QUOTE_STATUS = "realtime.quote_status"
EVENT_REALTIME_MESSAGES_READ = "realtime.messages_read"

Handler = Callable[[Dict[str, Any]], Awaitable[None]]


def enqueue_event(
    db: Session,
    event_type: str,
    payload: Dict[str, Any],
    aggregate_id: Optional[str] = None
) -> None:
    """
    Agregar un evento a la transacción en curso (sin commit).

    Args:
        db: Sesión de base de datos
        event_type: Tipo de evento
        payload: Datos serializables a JSON
        aggregate_id: ID de la entidad relacionada
    """
    crud_outbox.enqueue(db, obj_in=OutboxEventCreate(
        event_type=event_type,
        aggregate_id=aggregate_id,
        payload=payload,
    ))


def backoff_delays(start: int, max_delay: int) -> Iterator[int]:
    """Generar retrasos exponenciales en segundos."""
    delay = start
    while True:
        yield delay
        delay = min(delay * 2, max_delay)


def compute_backoff(attempt: int, start: int, max_delay: int) -> int:
    """
    Retraso antes del siguiente intento.

    Args:
        attempt: Intentos ya realizados (1 para el primer fallo)
        start: Retraso inicial
        max_delay: Retraso máximo

    Returns:
        Segundos de espera
    """
    delays = backoff_delays(start, max_delay)
    delay = next(delays)
    for _ in range(attempt - 1):
        delay = next(delays)
    return delay


class OutboxDispatcher:
    """Worker que consume la tabla outbox_events."""

    def __init__(
        self,
        session_factory: Callable[[], Session],
        hub: Optional[RealtimeHub] = None,
        settings: Optional[Settings] = None,
    ):
        self.session_factory = session_factory
        self.hub = hub or realtime_hub
        self.settings = settings or get_settings()
        self._task: Optional[asyncio.Task] = None
        self._stopping: Optional[asyncio.Event] = None
        self.handlers: Dict[str, Handler] = {
            EVENT_NOTIFICATION_NEW_MESSAGE: self._handle_notification_new_message,
            EVENT_NOTIFICATION_QUOTE: self._handle_notification_quote,
            EVENT_REALTIME_NEW_MESSAGE: self.hub.notify_new_message,
            EVENT_REALTIME_QUOTE_STATUS: self.hub.notify_quote_status_update,
            EVENT_REALTIME_MESSAGES_READ: self.hub.notify_messages_read,
        }

    # ==================== Handlers ====================

    def _with_session(self, fn: Callable[[Session], Any]) -> Any:
        db = self.session_factory()
        try:
            return fn(db)
        finally:
            db.close()

    async def _handle_notification_new_message(self, payload: Dict[str, Any]) -> None:
        await run_in_threadpool(self._with_session, lambda db: notification_service.notify_new_message(
            db,
            receiver_id=payload["receiver_id"],
            sender_name=payload["sender_name"],
            listing_title=payload["listing_title"],
            content=payload["content"],
            message_id=payload.get("message_id"),
            conversation_id=payload.get("conversation_id"),
        ))

    async def _handle_notification_quote(self, payload: Dict[str, Any]) -> None:
        await run_in_threadpool(self._with_session, lambda db: notification_service.notify_quote(
            db,
            receiver_id=payload["receiver_id"],
            sender_name=payload["sender_name"],
            listing_title=payload["listing_title"],
            quote_amount=payload.get("quote_amount"),
            quote_status=payload["quote_status"],
            message_id=payload.get("message_id"),
            conversation_id=payload.get("conversation_id"),
        ))

    # ==================== Ciclo de despacho ====================

    def _claim(self):
        def claim(db: Session):
            events = crud_outbox.claim_due(
                db,
                limit=self.settings.OUTBOX_BATCH_SIZE,
                claim_timeout=self.settings.OUTBOX_CLAIM_TIMEOUT,
            )
            return [(e.id, e.event_type, e.payload, e.attempts) for e in events]
        return self._with_session(claim)

    def _mark_done(self, event_id: int) -> None:
        self._with_session(lambda db: crud_outbox.mark_done(db, event_id=event_id))

    def _mark_failed(self, event_id: int, attempts: int, error: str, terminal: bool = False) -> None:
        retry_in = None if terminal else compute_backoff(
            attempts + 1,
            self.settings.OUTBOX_RETRY_BACKOFF_START,
            self.settings.OUTBOX_RETRY_MAX_DELAY,
        )
        self._with_session(lambda db: crud_outbox.mark_attempt_failed(
            db,
            event_id=event_id,
            error=error,
            retry_in=retry_in,
            max_attempts=self.settings.OUTBOX_MAX_ATTEMPTS,
        ))

    async def process_due(self) -> int:
        """
        Despachar una tanda de eventos pendientes.

        Returns:
            Cantidad de eventos despachados con éxito
        """
        events = await run_in_threadpool(self._claim)
        processed = 0

        for event_id, event_type, payload, attempts in events:
            handler = self.handlers.get(event_type)
            if handler is None:
                logger.error("Evento %s con tipo desconocido '%s'", event_id, event_type)
                await run_in_threadpool(
                    self._mark_failed, event_id, attempts,
                    f"Tipo de evento desconocido: {event_type}", True
                )
                continue

            try:
                await handler(payload)
            except Exception as e:
                logger.warning(
                    "Evento %s (%s) falló en el intento %d: %s",
                    event_id, event_type, attempts + 1, e
                )
                await run_in_threadpool(self._mark_failed, event_id, attempts, repr(e))
                continue

            await run_in_threadpool(self._mark_done, event_id)
            processed += 1

        return processed

    async def run(self) -> None:
        """Ciclo principal hasta que se llame a stop()."""
        if self._stopping is None:
            self._stopping = asyncio.Event()
        logger.info("Outbox dispatcher iniciado")
        while not self._stopping.is_set():
            try:
                processed = await self.process_due()
            except Exception as e:
                logger.error("Error en el ciclo del outbox: %s", e)
                processed = 0

            if processed == 0:
                try:
                    await asyncio.wait_for(
                        self._stopping.wait(), timeout=self.settings.OUTBOX_POLL_INTERVAL
                    )
                except asyncio.TimeoutError:
                    pass
        logger.info("Outbox dispatcher detenido")

    def start(self) -> None:
        """Iniciar el worker en el event loop actual."""
        if self._task is not None and not self._task.done():
            return
        self._stopping = asyncio.Event()
        self._task = asyncio.create_task(self.run())

    async def stop(self) -> None:
        """Detener el worker y esperar a que termine la tanda en curso."""
        if self._task is None:
            return
        self._stopping.set()
        await self._task
        self._task = None
