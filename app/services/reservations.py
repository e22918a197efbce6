# app/services/reservations.py
from typing import List

from loguru import logger
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.access import Identity, authorize
from app.core.errors import Forbidden, NotFound
from app.models.reservations import Reservation
from app.schemas.reservation import ReservationCreate, ReservationUpdate


async def _get_or_404(db: AsyncSession, reservation_id: int) -> Reservation:
    reservation = await db.get(Reservation, reservation_id)
    if reservation is None:
        raise NotFound("Reservation not found.")
    return reservation


async def _get_authorized(db: AsyncSession, caller: Identity, reservation_id: int) -> Reservation:
    # 先確認存在（404），再檢查擁有權（403）
    reservation = await _get_or_404(db, reservation_id)
    try:
        authorize(caller, reservation.user_id)
    except Forbidden:
        logger.warning(
            "Forbidden: user_id={} on reservation id={} (owner={})",
            caller.user_id, reservation.id, reservation.user_id,
        )
        raise
    return reservation


async def list_reservations(db: AsyncSession, caller: Identity) -> List[Reservation]:
    stmt = select(Reservation).order_by(Reservation.id)
    if not caller.is_admin:
        stmt = stmt.where(Reservation.user_id == caller.user_id)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_reservation(db: AsyncSession, caller: Identity, reservation_id: int) -> Reservation:
    return await _get_authorized(db, caller, reservation_id)


async def create_reservation(
    db: AsyncSession, caller: Identity, payload: ReservationCreate,
) -> Reservation:
    reservation = Reservation(
        user_id=caller.user_id,
        reservation_time=payload.reservation_time,
        guests=payload.guests,
        note=payload.note,
    )
    db.add(reservation)
    await db.commit()
    await db.refresh(reservation)
    logger.info("Reservation id={} created by user_id={}", reservation.id, caller.user_id)
    return reservation


async def update_reservation(
    db: AsyncSession, caller: Identity, reservation_id: int, payload: ReservationUpdate,
) -> Reservation:
    reservation = await _get_authorized(db, caller, reservation_id)
    for field, value in payload.changes().items():
        setattr(reservation, field, value)
    await db.commit()
    await db.refresh(reservation)
    return reservation


async def delete_reservation(db: AsyncSession, caller: Identity, reservation_id: int) -> None:
    reservation = await _get_authorized(db, caller, reservation_id)
    await db.delete(reservation)
    await db.commit()
    logger.info("Reservation id={} deleted by user_id={}", reservation_id, caller.user_id)
