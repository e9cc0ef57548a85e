"""用户管理面板的逻辑层：表单校验、删除确认，以及把服务调用结果转成 (结果, 错误信息)。

界面（按钮、弹窗、布局）由具体的前端实现，这里只负责它调用的接口。
"""
from datetime import datetime
from typing import Callable, List, Optional, Tuple

from auth_admin.config import MIN_PASSWORD_LENGTH, MIN_USERNAME_LENGTH
from auth_admin.auth.errors import AuthError
from auth_admin.auth.models import User
from auth_admin.auth.service import AuthService


def format_date(iso: Optional[str]) -> str:
    """ISO 时间 → YYYY-MM-DD；无法解析时原样返回。"""
    if not iso:
        return ""
    try:
        return datetime.fromisoformat(iso.replace("Z", "+00:00")).strftime("%Y-%m-%d")
    except ValueError:
        return iso


class UserManagementPanel:
    """登录自助（改密码、改用户名）与用户增删查。confirm 用于删除前向操作者确认。"""

    def __init__(self, service: AuthService, confirm: Callable[[str], bool]):
        self._service = service
        self._confirm = confirm

    def login(self, username: str, password: str) -> Tuple[Optional[User], Optional[str]]:
        username = username.strip()
        if not username or not password:
            return None, "请输入账号和密码"
        try:
            return self._service.login(username, password), None
        except AuthError as e:
            return None, e.message

    def logout(self) -> None:
        self._service.logout()

    def current_user_info(self) -> Optional[Tuple[str, str]]:
        """(用户名, 创建日期)，未登录返回 None。"""
        user = self._service.get_current_user()
        if user is None:
            return None
        return user.username, format_date(user.created_at)

    def load_users(self) -> Tuple[List[User], Optional[str]]:
        try:
            return self._service.get_all_users(), None
        except AuthError as e:
            return [], e.message

    def create_user(self, username: str, password: str) -> Tuple[Optional[User], Optional[str]]:
        username = username.strip()
        if len(username) < MIN_USERNAME_LENGTH:
            return None, f"用户名至少 {MIN_USERNAME_LENGTH} 位"
        if len(password) < MIN_PASSWORD_LENGTH:
            return None, f"密码至少 {MIN_PASSWORD_LENGTH} 位"
        try:
            return self._service.create_user(username, password), None
        except AuthError as e:
            return None, e.message

    def change_password(
        self, current_password: str, new_password: str, confirmation: str
    ) -> Tuple[Optional[str], Optional[str]]:
        if new_password != confirmation:
            return None, "两次输入的新密码不一致"
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return None, f"新密码至少 {MIN_PASSWORD_LENGTH} 位"
        try:
            self._service.change_password(current_password, new_password)
        except AuthError as e:
            return None, e.message
        return "密码修改成功", None

    def change_username(self, new_username: str) -> Tuple[Optional[str], Optional[str]]:
        new_username = new_username.strip()
        if len(new_username) < MIN_USERNAME_LENGTH:
            return None, f"用户名至少 {MIN_USERNAME_LENGTH} 位"
        try:
            self._service.change_username(new_username)
        except AuthError as e:
            return None, e.message
        return "用户名修改成功", None

    def delete_user(self, user: User) -> Tuple[Optional[str], Optional[str]]:
        """操作者取消时返回 (None, None)。"""
        if not self._confirm(f"确定要删除用户「{user.username}」吗？"):
            return None, None
        try:
            self._service.delete_user(user.id)
        except AuthError as e:
            return None, e.message
        return "用户已删除", None
