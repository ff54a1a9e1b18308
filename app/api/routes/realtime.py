"""WebSocket bridge from the change hub to connected clients."""

import logging

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status

from app.api.dependencies import DbDep, decode_access_token
from app.errors import BabyCareError
from app.models.change import ChangeEvent
from app.realtime import hub
from app.services import access_control

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

WATCHED_TABLES = (
    "feeding_records",
    "sleep_records",
    "diaper_records",
    "health_records",
    "baby_collaborators",
    "babies",
)


@router.websocket("/ws/babies/{baby_id}")
async def baby_changes(
    websocket: WebSocket,
    baby_id: int,
    db: DbDep,
    token: str = Query(..., description="Access token of the connecting user"),
):
    """Stream change notifications for one baby.

    **Connection:** ``ws://localhost:8000/ws/babies/{baby_id}?token=<jwt>``

    Every message is a change event (``event_type``, ``table``, ``new``,
    ``old``). Clients refetch the affected table on receipt.
    """
    try:
        user = decode_access_token(token)
        await access_control.require_access(db, user, baby_id)
    except BabyCareError as exc:
        logger.info("Refused realtime connection for baby %s: %s", baby_id, exc.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=exc.message)
        return

    await websocket.accept()

    async def forward(event: ChangeEvent) -> None:
        await websocket.send_json(event.model_dump(mode="json"))

    subscriptions = [hub.listen(baby_id, table, forward) for table in WATCHED_TABLES]
    logger.info("User %s watching baby %s", user.id, baby_id)
    try:
        await websocket.send_json({"event": "CONNECTED", "baby_id": baby_id})
        # Client messages are ignored; receiving only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("User %s stopped watching baby %s", user.id, baby_id)
    finally:
        for subscription in subscriptions:
            subscription.close()
