"""
File: tests/unit/test_role_service.py
Description: RoleService 单元测试 (角色生命周期与用户关联级联)

Author: jinmozhe
Created: 2026-10-12
"""

import uuid
from typing import Any

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from uuid6 import uuid7

from accounts.core.exceptions import (
    ConflictException,
    InvalidStateException,
    NotFoundException,
)
from accounts.db.models import AuditAction, AuditLog, Role, RoleStatus, User, UserRole
from accounts.domains.roles.schemas import RoleCreate, RoleListQuery, RoleUpdate
from accounts.domains.roles.service import RoleService
from accounts.domains.users.schemas import UserCreate
from accounts.domains.users.service import UserService

FAKE_HASH = "$argon2id$v=19$m=65536,t=3,p=4$c2FsdA$aGFzaA"


async def fetch(session: AsyncSession, model: Any, *criteria: Any) -> list[Any]:
    stmt = select(model).where(*criteria).execution_options(populate_existing=True)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def make_user(session: AsyncSession, username: str, role_ids: list[uuid.UUID]) -> uuid.UUID:
    user = await UserService(session).create(
        UserCreate(username=username, password_hash=FAKE_HASH, role_ids=role_ids)
    )
    return user.id


@pytest.mark.asyncio
async def test_create_role_duplicate_code(db_session: AsyncSession) -> None:
    service = RoleService(db_session)
    role = await service.create(RoleCreate(code="admin", name="Administrator"))

    assert role.status is RoleStatus.ENABLED
    assert role.is_live

    with pytest.raises(ConflictException) as exc_info:
        await service.create(RoleCreate(code="admin", name="Another"))

    assert exc_info.value.code == "roles.code_exist"
    assert len(await fetch(db_session, Role)) == 1


@pytest.mark.asyncio
async def test_role_code_reusable_after_delete(db_session: AsyncSession) -> None:
    service = RoleService(db_session)
    old = await service.create(RoleCreate(code="admin", name="Administrator"))
    old_id = old.id

    await service.soft_delete(old_id)
    new = await service.create(RoleCreate(code="admin", name="Administrator v2"))
    new_id = new.id

    # 编码已被新角色占用，旧角色不能恢复
    with pytest.raises(ConflictException) as exc_info:
        await service.restore(old_id)
    assert exc_info.value.code == "roles.code_exist"

    assert new_id != old_id
    [still_deleted] = await fetch(db_session, Role, Role.id == old_id)
    assert still_deleted.is_deleted


@pytest.mark.asyncio
async def test_soft_delete_role_cascades_to_links(db_session: AsyncSession) -> None:
    service = RoleService(db_session)
    role = await service.create(RoleCreate(code="admin", name="Administrator"))
    role_id = role.id
    alice_id = await make_user(db_session, "alice", [role_id])
    bob_id = await make_user(db_session, "bob", [role_id])

    await service.soft_delete(role_id)

    [deleted_role] = await fetch(db_session, Role, Role.id == role_id)
    links = await fetch(db_session, UserRole, UserRole.role_id == role_id)
    users = await fetch(db_session, User, User.id.in_([alice_id, bob_id]))

    assert deleted_role.is_deleted
    assert len(links) == 2
    assert all(link.deleted_at == deleted_role.deleted_at for link in links)
    assert all(user.is_live for user in users)

    [log] = await fetch(db_session, AuditLog, AuditLog.action == AuditAction.SOFT_DELETE)
    assert log.target_table == "roles"
    assert log.detail == {"user_roles": 2}


@pytest.mark.asyncio
async def test_restore_role_skips_links_of_deleted_users(db_session: AsyncSession) -> None:
    service = RoleService(db_session)
    role = await service.create(RoleCreate(code="admin", name="Administrator"))
    role_id = role.id
    alice_id = await make_user(db_session, "alice", [role_id])
    bob_id = await make_user(db_session, "bob", [role_id])

    await service.soft_delete(role_id)
    await UserService(db_session).soft_delete(bob_id)

    restored = await service.restore(role_id)
    assert restored.is_live

    links = {
        link.user_id: link
        for link in await fetch(db_session, UserRole, UserRole.role_id == role_id)
    }
    assert links[alice_id].is_live
    assert links[bob_id].is_deleted

    with pytest.raises(ConflictException) as exc_info:
        await service.restore(role_id)
    assert exc_info.value.code == "roles.not_deleted"


@pytest.mark.asyncio
async def test_restore_role_keeps_independently_removed_links(db_session: AsyncSession) -> None:
    service = RoleService(db_session)
    role = await service.create(RoleCreate(code="admin", name="Administrator"))
    role_id = role.id
    alice_id = await make_user(db_session, "alice", [role_id])

    await UserService(db_session).remove_role(alice_id, role_id)
    await service.soft_delete(role_id)
    await service.restore(role_id)

    [link] = await fetch(db_session, UserRole, UserRole.role_id == role_id)
    assert link.is_deleted


@pytest.mark.asyncio
async def test_update_role(db_session: AsyncSession) -> None:
    service = RoleService(db_session)
    await service.create(RoleCreate(code="admin", name="Administrator"))
    editor = await service.create(RoleCreate(code="editor", name="Editor", description="x"))
    editor_id = editor.id

    with pytest.raises(ConflictException):
        await service.update(editor_id, RoleUpdate(code="admin"))

    updated = await service.update(
        editor_id, RoleUpdate(name="Writer", description=None, status=RoleStatus.DISABLED)
    )
    assert updated.name == "Writer"
    assert updated.description is None
    assert updated.status is RoleStatus.DISABLED

    # 禁用的角色不能再被分配
    with pytest.raises(InvalidStateException):
        await make_user(db_session, "alice", [editor_id])


@pytest.mark.asyncio
async def test_missing_role_operations(db_session: AsyncSession) -> None:
    service = RoleService(db_session)
    ghost = uuid7()

    with pytest.raises(NotFoundException) as exc_info:
        await service.get(ghost)
    assert exc_info.value.code == "roles.not_found"

    with pytest.raises(NotFoundException):
        await service.soft_delete(ghost)
    with pytest.raises(NotFoundException):
        await service.restore(ghost)
    with pytest.raises(NotFoundException):
        await service.update(ghost, RoleUpdate(name="x"))


@pytest.mark.asyncio
async def test_list_roles(db_session: AsyncSession) -> None:
    service = RoleService(db_session)
    await service.create(RoleCreate(code="admin", name="Administrator"))
    await service.create(RoleCreate(code="editor", name="Editor", status=RoleStatus.DISABLED))
    viewer = await service.create(RoleCreate(code="viewer", name="Viewer"))
    await service.soft_delete(viewer.id)

    page = await service.list_roles(RoleListQuery(sort_by="code", sort_dir="asc"))
    assert page.total == 2
    assert [item.code for item in page.items] == ["admin", "editor"]

    enabled = await service.list_roles(RoleListQuery(status=RoleStatus.ENABLED))
    assert [item.code for item in enabled.items] == ["admin"]

    by_keyword = await service.list_roles(RoleListQuery(keyword="EDIT"))
    assert [item.code for item in by_keyword.items] == ["editor"]
