import asyncio

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.database import get_db
from shared.errors import APIException
from shared.security import Identity, get_current_user, identity_from_token
from .schemas import LocationCreate, LocationResponse, TrackingView
from .service import TrackingService

router = APIRouter(prefix="/tracking", tags=["Tracking"])
ws_router = APIRouter()


@router.post(
    "/orders/{order_id}/locations",
    response_model=LocationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def append_location(
    order_id: str,
    payload: LocationCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TrackingService.append_location_update(db, identity, order_id, payload)


@router.get("/orders/{order_id}/locations", response_model=list[LocationResponse])
async def list_locations(
    order_id: str,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TrackingService.list_location_updates(db, order_id, identity)


@router.get("/orders/{order_id}", response_model=TrackingView)
async def track_order(
    order_id: str,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TrackingService.track_order(db, order_id, identity)


async def _wait_for_disconnect(ws: WebSocket):
    try:
        while True:
            # client may send pings; content is ignored
            await ws.receive_text()
    except WebSocketDisconnect:
        return


@ws_router.websocket("/ws/orders/{order_id}")
async def order_location_ws(
    ws: WebSocket,
    order_id: str,
    token: str = Query(default=""),
    db: AsyncSession = Depends(get_db),
):
    identity = identity_from_token(token)
    if identity is None:
        await ws.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    try:
        await TrackingService.authorize_subscription(db, order_id, identity)
    except APIException:
        await ws.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await ws.accept()

    # Subscribe before reading history so nothing falls in between
    queue: asyncio.Queue = asyncio.Queue()
    unsubscribe = TrackingService.subscribe_to_location_updates(order_id, queue.put_nowait)
    receiver = asyncio.create_task(_wait_for_disconnect(ws))
    try:
        sent = set()
        for update in await TrackingService.list_location_updates(db, order_id):
            await ws.send_json(LocationResponse.model_validate(update).model_dump(mode="json"))
            sent.add(update.id)

        while not receiver.done():
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait({getter, receiver}, return_when=asyncio.FIRST_COMPLETED)
            if getter not in done:
                getter.cancel()
                break
            update = getter.result()
            if update.id in sent:
                continue
            sent.add(update.id)
            await ws.send_json(update.model_dump(mode="json"))
    except WebSocketDisconnect:
        pass
    finally:
        receiver.cancel()
        unsubscribe()
