"""认证服务：登录、登出、修改密码/用户名，以及用户的创建、列表与删除。

所有修改操作都要求已登录；任何已登录用户都可以管理其他用户（无角色区分）。
失败统一抛 AuthError 子类，message 可直接展示。
"""
import sys
from typing import List, Optional

from auth_admin.config import BOOTSTRAP_PASSWORD, BOOTSTRAP_USERNAME, PASSWORD_SCHEME
from auth_admin.auth.errors import (
    InvalidCredentials,
    NotAuthenticated,
    RemoteError,
    RowNotFound,
    SelfDeletionForbidden,
    StoreError,
    UsernameTaken,
)
from auth_admin.auth.models import User, utc_now_iso
from auth_admin.auth.password import encode_password, verify_password
from auth_admin.auth.session import Session


class AuthService:
    """基于 auth_users 表的账号服务，会话由调用方传入。"""

    def __init__(self, store, session: Session, password_scheme: str = PASSWORD_SCHEME):
        self.store = store
        self.session = session
        self.password_scheme = password_scheme
        # 提前暴露配置错误
        encode_password("", password_scheme)

    def _encode(self, password: str) -> str:
        return encode_password(password, self.password_scheme)

    def _require_user(self) -> User:
        user = self.session.current()
        if user is None:
            raise NotAuthenticated()
        return user

    def _bootstrap_admin(self) -> User:
        """admin/admin：账号不存在则创建；已存在则直接登录，不校验库中密码。"""
        try:
            row = self.store.select_single({"username": BOOTSTRAP_USERNAME})
        except RowNotFound:
            row = None
        except StoreError as e:
            raise RemoteError(f"登录失败: {e.message}") from e
        if row is not None:
            return User.model_validate(row)
        try:
            row = self.store.insert({
                "username": BOOTSTRAP_USERNAME,
                "password": self._encode(BOOTSTRAP_PASSWORD),
            })
        except StoreError as e:
            raise RemoteError(f"创建管理员账号失败: {e.message}") from e
        print("[用户管理-认证] 已创建初始管理员账号", file=sys.stderr, flush=True)
        return User.model_validate(row)

    def login(self, username: str, password: str) -> User:
        if username == BOOTSTRAP_USERNAME and password == BOOTSTRAP_PASSWORD:
            user = self._bootstrap_admin()
        else:
            try:
                row = self.store.select_single({"username": username})
            except RowNotFound as e:
                raise InvalidCredentials() from e
            except StoreError as e:
                raise RemoteError(f"登录失败: {e.message}") from e
            user = User.model_validate(row)
            if not verify_password(password, user.password):
                raise InvalidCredentials()
        self.session.set(user)
        return user

    def logout(self) -> None:
        self.session.clear()

    def get_current_user(self) -> Optional[User]:
        return self.session.current()

    def is_authenticated(self) -> bool:
        return self.get_current_user() is not None

    def change_password(self, current_password: str, new_password: str) -> None:
        user = self._require_user()
        if not verify_password(current_password, user.password):
            raise InvalidCredentials("当前密码错误")
        encoded = self._encode(new_password)
        now = utc_now_iso()
        try:
            self.store.update(user.id, {"password": encoded, "updated_at": now})
        except StoreError as e:
            raise RemoteError(f"修改密码失败: {e.message}") from e
        self.session.set(user.model_copy(update={"password": encoded, "updated_at": now}))

    def change_username(self, new_username: str) -> None:
        user = self._require_user()
        now = utc_now_iso()
        try:
            self.store.update(user.id, {"username": new_username, "updated_at": now})
        except StoreError as e:
            if e.is_unique_violation:
                raise UsernameTaken() from e
            raise RemoteError(f"修改用户名失败: {e.message}") from e
        self.session.set(user.model_copy(update={"username": new_username, "updated_at": now}))

    def create_user(self, username: str, password: str) -> User:
        self._require_user()
        try:
            row = self.store.insert({"username": username, "password": self._encode(password)})
        except StoreError as e:
            if e.is_unique_violation:
                raise UsernameTaken() from e
            raise RemoteError(f"创建用户失败: {e.message}") from e
        return User.model_validate(row)

    def get_all_users(self) -> List[User]:
        """全部用户，按用户名升序。"""
        try:
            rows = self.store.select(order="username")
        except StoreError as e:
            raise RemoteError(f"获取用户列表失败: {e.message}") from e
        return [User.model_validate(r) for r in rows]

    def delete_user(self, user_id: str) -> None:
        user = self._require_user()
        if user.id == user_id:
            raise SelfDeletionForbidden()
        try:
            self.store.delete(user_id)
        except StoreError as e:
            raise RemoteError(f"删除用户失败: {e.message}") from e
