# tests/test_tokens.py
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from app.core.config import settings
from app.core.errors import Unauthenticated
from app.core.security import hash_password, hash_token, utcnow
from app.models.personal_access_tokens import PersonalAccessToken
from app.models.users import User
from app.services import tokens

from conftest import unique_email

pytestmark = pytest.mark.asyncio


async def _user(db) -> User:
    u = User(name="Token Owner", email=unique_email("tok"), password_hash=hash_password("secret123"))
    db.add(u)
    await db.commit()
    await db.refresh(u)
    return u


async def _count_tokens(db, user_id: int) -> int:
    res = await db.execute(
        select(func.count()).select_from(PersonalAccessToken).where(PersonalAccessToken.user_id == user_id)
    )
    return res.scalar_one()


async def test_issue_stores_only_hash(db):
    user = await _user(db)
    plain, record = await tokens.issue(db, user, "laptop")

    assert plain
    assert record.token_hash == hash_token(plain)
    assert record.token_hash != plain
    assert record.name == "laptop"
    assert record.user_id == user.id


async def test_issue_defaults_token_name(db):
    user = await _user(db)
    _, record = await tokens.issue(db, user, "   ")
    assert record.name == tokens.DEFAULT_TOKEN_NAME


async def test_validate_returns_owner_and_touches_last_used(db):
    user = await _user(db)
    plain, record = await tokens.issue(db, user)
    assert record.last_used_at is None

    assert await tokens.validate(db, plain) == user.id
    await db.refresh(record)
    assert record.last_used_at is not None


@pytest.mark.parametrize("presented", [None, "", "   ", "not-a-real-token"])
async def test_validate_rejects_missing_or_unknown(db, presented):
    with pytest.raises(Unauthenticated):
        await tokens.validate(db, presented)


async def test_multiple_tokens_coexist_and_revoke_all_removes_every_one(db):
    user = await _user(db)
    t1, _ = await tokens.issue(db, user, "phone")
    t2, _ = await tokens.issue(db, user, "laptop")
    assert t1 != t2
    assert await tokens.validate(db, t1) == user.id
    assert await tokens.validate(db, t2) == user.id

    assert await tokens.revoke_all(db, user.id) == 2
    assert await _count_tokens(db, user.id) == 0
    for t in (t1, t2):
        with pytest.raises(Unauthenticated):
            await tokens.validate(db, t)


async def test_revoke_all_only_touches_that_user(db):
    alice, bob = await _user(db), await _user(db)
    await tokens.issue(db, alice)
    bob_token, _ = await tokens.issue(db, bob)

    await tokens.revoke_all(db, alice.id)
    assert await tokens.validate(db, bob_token) == bob.id


async def test_revoke_all_with_no_tokens_is_fine(db):
    user = await _user(db)
    assert await tokens.revoke_all(db, user.id) == 0


async def test_expired_token_is_rejected(db, monkeypatch):
    monkeypatch.setattr(settings, "TOKEN_EXPIRE_MINUTES", 60)
    user = await _user(db)
    plain, record = await tokens.issue(db, user)
    assert await tokens.validate(db, plain) == user.id

    record.created_at = utcnow() - timedelta(minutes=61)
    await db.commit()
    with pytest.raises(Unauthenticated):
        await tokens.validate(db, plain)


async def test_tokens_never_expire_by_default(db, monkeypatch):
    monkeypatch.setattr(settings, "TOKEN_EXPIRE_MINUTES", None)
    user = await _user(db)
    plain, record = await tokens.issue(db, user)
    record.created_at = utcnow() - timedelta(days=365)
    await db.commit()
    assert await tokens.validate(db, plain) == user.id


async def test_token_with_surrounding_whitespace_is_rejected(db):
    user = await _user(db)
    plain, _ = await tokens.issue(db, user)
    for variant in (f" {plain}", f"{plain} ", f"\t{plain}\n"):
        with pytest.raises(Unauthenticated):
            await tokens.validate(db, variant)
    assert await tokens.validate(db, plain) == user.id


async def test_validate_does_not_bump_updated_at(db):
    user = await _user(db)
    plain, record = await tokens.issue(db, user)
    issued_updated_at = record.updated_at

    await tokens.validate(db, plain)
    await db.refresh(record)
    assert record.last_used_at is not None
    assert record.updated_at == issued_updated_at
