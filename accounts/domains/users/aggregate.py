"""
File: accounts/domains/users/aggregate.py
Description: 用户聚合 (User + 有效档案 + 有效角色) 的只读视图

模型层不声明 ORM relationship，聚合由服务层按需组装。
子表 (profiles / user_roles) 只允许经 UserService / RoleService 写入。

Author: jinmozhe
Created: 2026-10-12
"""

import uuid
from dataclasses import dataclass, field

from accounts.db.models import Profile, Role, User
from accounts.domains.roles.schemas import RoleBrief
from accounts.domains.users.schemas import ProfileRead, UserDetail, UserRead


@dataclass(slots=True)
class UserAggregate:
    user: User
    profile: Profile | None = None
    roles: list[Role] = field(default_factory=list)

    @property
    def id(self) -> uuid.UUID:
        return self.user.id

    def to_detail(self) -> UserDetail:
        base = UserRead.model_validate(self.user).model_dump()
        return UserDetail(
            **base,
            profile=ProfileRead.model_validate(self.profile) if self.profile else None,
            roles=[RoleBrief.model_validate(role) for role in self.roles],
        )
