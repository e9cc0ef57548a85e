"""认证与存储错误。"""
from typing import Optional

# PostgreSQL 唯一约束冲突
UNIQUE_VIOLATION = "23505"
# PostgREST：要求单行结果但匹配了 0 行或多行
NO_SINGLE_ROW = "PGRST116"


class AuthError(Exception):
    """认证服务错误基类，message 可直接展示给用户。"""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotAuthenticated(AuthError):
    def __init__(self, message: str = "用户未登录"):
        super().__init__(message)


class InvalidCredentials(AuthError):
    def __init__(self, message: str = "账号或密码错误"):
        super().__init__(message)


class UsernameTaken(AuthError):
    def __init__(self, message: str = "用户名已存在"):
        super().__init__(message)


class SelfDeletionForbidden(AuthError):
    def __init__(self, message: str = "不能删除当前登录的用户"):
        super().__init__(message)


class RemoteError(AuthError):
    """包装存储层失败，保留原始错误信息。"""


class MalformedSession(AuthError):
    def __init__(self, message: str = "本地会话数据已损坏"):
        super().__init__(message)


class StoreError(Exception):
    """存储层错误：code 为数据库/PostgREST 错误码（网络错误时为 None）。"""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION


class RowNotFound(StoreError):
    """单行查询匹配了 0 行或多行。"""

    def __init__(self, message: str = "未找到唯一匹配的记录", code: Optional[str] = NO_SINGLE_ROW):
        super().__init__(message, code)
