# app/core/access.py
"""
Owner-only 存取控制。

只有兩種層級：admin 可存取所有資源；一般使用者只能存取自己擁有的資源。
呼叫端身分一律以 Identity 明確傳入，不從 request context 取 ambient 狀態。
"""
from dataclasses import dataclass

from app.core.errors import Forbidden


@dataclass(frozen=True)
class Identity:
    user_id: int
    is_admin: bool = False

    @classmethod
    def of(cls, user) -> "Identity":
        return cls(user_id=int(user.id), is_admin=bool(user.is_admin))


def can_access(caller: Identity, resource_owner_id: int) -> bool:
    return caller.is_admin or caller.user_id == resource_owner_id


def authorize(caller: Identity, resource_owner_id: int) -> None:
    """can_access 為 False 時丟 Forbidden（403，與 401 未驗證分開）。"""
    if not can_access(caller, resource_owner_id):
        raise Forbidden()
