# app/schemas/reservation.py
from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

NOTE_MAX_LENGTH = 1000
MAX_GUESTS = 1000
# Integer 欄位的上限（PostgreSQL int4）；超出範圍的值不送進 DB
DB_INT_MAX = 2**31 - 1


def _to_naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    # DB 欄位是 naive UTC；帶時區的輸入先換算成 UTC
    if v is not None and v.tzinfo is not None:
        return v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


UTCDateTime = Annotated[datetime, AfterValidator(_to_naive_utc)]


class ReservationCreate(BaseModel):
    # user_id 之類的多餘欄位直接忽略，擁有者一律取自呼叫端
    reservation_time: UTCDateTime
    guests: int = Field(ge=1, le=MAX_GUESTS)
    note: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)


class ReservationUpdate(BaseModel):
    """部分更新：只有有帶的欄位才會驗證與套用。"""

    reservation_time: Optional[UTCDateTime] = None
    guests: Optional[int] = Field(default=None, ge=1, le=MAX_GUESTS)
    note: Optional[str] = Field(default=None, max_length=NOTE_MAX_LENGTH)

    @field_validator("reservation_time", "guests", mode="before")
    @classmethod
    def _not_null_if_present(cls, v):
        # 有帶就不能是 null；note 則允許清空
        if v is None:
            raise ValueError("field may not be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ReservationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    reservation_time: datetime
    guests: int
    note: Optional[str] = None
    created_at: datetime
    updated_at: datetime
