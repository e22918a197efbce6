# app/api/v1/endpoints/reservations.py
from typing import Annotated, List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import Identity
from app.core.deps import get_identity
from app.db.session import get_db
from app.schemas.reservation import DB_INT_MAX, ReservationCreate, ReservationRead, ReservationUpdate
from app.services import reservations as service

router = APIRouter(tags=["reservations"])

ReservationId = Annotated[int, Path(ge=1, le=DB_INT_MAX)]


@router.get("", response_model=List[ReservationRead], summary="List reservations")
async def list_reservations(
    caller: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    # admin 看全部；一般使用者只看自己的
    return await service.list_reservations(db, caller)


@router.post("", response_model=ReservationRead, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    caller: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await service.create_reservation(db, caller, payload)


@router.get("/{reservation_id}", response_model=ReservationRead)
async def get_reservation(
    reservation_id: ReservationId,
    caller: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await service.get_reservation(db, caller, reservation_id)


# PUT 與 PATCH 都是部分更新
@router.api_route("/{reservation_id}", methods=["PUT", "PATCH"], response_model=ReservationRead)
async def update_reservation(
    reservation_id: ReservationId,
    payload: ReservationUpdate,
    caller: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    return await service.update_reservation(db, caller, reservation_id, payload)


@router.delete("/{reservation_id}", response_model=dict)
async def delete_reservation(
    reservation_id: ReservationId,
    caller: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    await service.delete_reservation(db, caller, reservation_id)
    return {"detail": "Reservation deleted"}
