"""当前登录会话：由调用方持有的会话对象，并持久化到本地文件以便重启后恢复。"""
import json
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from auth_admin.config import SESSION_FILE, ensure_dirs
from auth_admin.auth.errors import MalformedSession
from auth_admin.auth.models import User


class SessionSlot:
    """本地会话槽：一个 JSON 文件，内容为当前用户记录；文件不存在表示未登录。"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else SESSION_FILE
        if path is None:
            ensure_dirs()

    def read(self) -> Optional[User]:
        """读取会话；文件不存在返回 None，内容损坏抛 MalformedSession。"""
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return User.model_validate(json.load(f))
        except (OSError, ValueError, ValidationError) as e:
            raise MalformedSession(f"本地会话数据已损坏: {e}") from e

    def write(self, user: User) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(user.model_dump_json(indent=2))

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()


class Session:
    """当前用户：登录后设置，登出清除，不会自动过期。"""

    def __init__(self, slot: Optional[SessionSlot] = None):
        self.slot = slot or SessionSlot()
        self._current: Optional[User] = None

    def current(self) -> Optional[User]:
        """内存中有则直接返回，否则从会话槽恢复；损坏的数据按未登录处理。"""
        if self._current is not None:
            return self._current
        try:
            self._current = self.slot.read()
        except MalformedSession as e:
            print(f"[用户管理-会话] {e}，按未登录处理", file=sys.stderr, flush=True)
            return None
        return self._current

    def set(self, user: User) -> None:
        """内存会话始终与远程库一致；会话槽写入失败只影响重启后的恢复。"""
        self._current = user
        try:
            self.slot.write(user)
        except OSError as e:
            print(f"[用户管理-会话] 保存会话失败: {e}", file=sys.stderr, flush=True)

    def clear(self) -> None:
        self._current = None
        try:
            self.slot.clear()
        except OSError as e:
            print(f"[用户管理-会话] 清除会话失败: {e}", file=sys.stderr, flush=True)
