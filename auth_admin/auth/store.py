"""用户表本地存储（JSON 文件）：与远程 auth_users 表接口一致，离线与测试时使用。"""
import json
import sys
import uuid
from pathlib import Path
from typing import List, Optional

from auth_admin.config import LOCAL_USERS_FILE, ensure_dirs
from auth_admin.auth.errors import UNIQUE_VIOLATION, RowNotFound, StoreError
from auth_admin.auth.models import utc_now_iso


def _matches(row: dict, filters: Optional[dict]) -> bool:
    return all(row.get(k) == v for k, v in (filters or {}).items())


class LocalCredentialStore:
    """auth_users 的本地实现：行保存在一个 JSON 文件里，username 唯一。"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else LOCAL_USERS_FILE
        if path is None:
            ensure_dirs()
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def _load_rows(self) -> List[dict]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            print(f"[用户管理-本地存储] 读取失败: {e}", file=sys.stderr, flush=True)
            raise StoreError(f"读取用户表失败: {e}") from e
        rows = data.get("rows") if isinstance(data, dict) else None
        if not isinstance(rows, list) or not all(isinstance(r, dict) for r in rows):
            print(f"[用户管理-本地存储] 用户表格式错误: {self.path}", file=sys.stderr, flush=True)
            raise StoreError(f"读取用户表失败: 文件格式错误 {self.path}")
        return rows

    def _save_rows(self, rows: List[dict]) -> None:
        try:
            with open(self.path, "w", encoding="utf-8") as f:
                json.dump({"rows": rows}, f, indent=2, ensure_ascii=False)
        except OSError as e:
            print(f"[用户管理-本地存储] 写入失败: {e}", file=sys.stderr, flush=True)
            raise StoreError(f"写入用户表失败: {e}") from e

    def _check_unique(self, rows: List[dict], username: str, exclude_id: Optional[str] = None) -> None:
        for row in rows:
            if row.get("username") == username and row.get("id") != exclude_id:
                raise StoreError(
                    'duplicate key value violates unique constraint "auth_users_username_key"',
                    code=UNIQUE_VIOLATION,
                )

    def select(self, filters: Optional[dict] = None, order: Optional[str] = None) -> List[dict]:
        """按等值条件查询；order 为升序排序的列名（不区分大小写，相同时按原文）。"""
        rows = [dict(r) for r in self._load_rows() if _matches(r, filters)]
        if order:
            rows.sort(key=lambda r: ((r.get(order) or "").casefold(), r.get(order) or ""))
        return rows

    def select_single(self, filters: dict) -> dict:
        """查询恰好一行，0 行或多行时抛 RowNotFound。"""
        rows = self.select(filters)
        if len(rows) != 1:
            raise RowNotFound(f"期望 1 行，实际匹配 {len(rows)} 行")
        return rows[0]

    def insert(self, row: dict) -> dict:
        rows = self._load_rows()
        self._check_unique(rows, row.get("username"))
        now = utc_now_iso()
        new_row = {
            "id": str(uuid.uuid4()),
            "created_at": now,
            "updated_at": now,
            **row,
        }
        rows.append(new_row)
        self._save_rows(rows)
        return dict(new_row)

    def update(self, row_id: str, values: dict) -> None:
        rows = self._load_rows()
        if "username" in values:
            self._check_unique(rows, values["username"], exclude_id=row_id)
        for row in rows:
            if row.get("id") == row_id:
                row.update({k: v for k, v in values.items() if k != "id"})
        self._save_rows(rows)

    def delete(self, row_id: str) -> None:
        rows = self._load_rows()
        self._save_rows([r for r in rows if r.get("id") != row_id])
