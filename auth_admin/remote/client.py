"""Supabase（PostgREST）REST 接口：auth_users 表的增删改查。

接口约定：
- 地址：{SUPABASE_URL}/rest/v1/<table>，请求头 apikey + Authorization: Bearer <key>；
- 过滤：?username=eq.alice，排序：?order=username.asc；
- 写操作带 Prefer: return=representation 以返回写入的行；
- Accept: application/vnd.pgrst.object+json 要求单行结果，0 行或多行时返回 406 / PGRST116；
- 失败时响应体为 {"code", "message", "details", "hint"}，唯一约束冲突 code 为 23505。
"""
import sys
from typing import List, Optional

import requests

from auth_admin.config import AUTH_USERS_TABLE, REQUEST_TIMEOUT, SUPABASE_ANON_KEY, SUPABASE_URL
from auth_admin.auth.errors import NO_SINGLE_ROW, RowNotFound, StoreError

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


def _eq_params(filters: Optional[dict]) -> dict:
    return {k: f"eq.{v}" for k, v in (filters or {}).items()}


class RestCredentialStore:
    """远程 auth_users 表客户端，超时由 requests 处理。"""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        table: str = AUTH_USERS_TABLE,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.url = (url or SUPABASE_URL).strip().rstrip("/")
        self.api_key = (api_key or SUPABASE_ANON_KEY).strip()
        self.table = table
        self.timeout = timeout
        self._http = session or requests.Session()
        self._http.headers.update({
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        })

    @property
    def endpoint(self) -> str:
        return f"{self.url}/rest/v1/{self.table}"

    def _request(
        self,
        method: str,
        params: Optional[dict] = None,
        json_body=None,
        headers: Optional[dict] = None,
    ):
        try:
            r = self._http.request(
                method,
                self.endpoint,
                params=params,
                json=json_body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            print(f"[用户管理-远程] {method} 请求失败: {e}", file=sys.stderr, flush=True)
            raise StoreError(f"网络请求失败: {e}") from e
        if r.status_code >= 400:
            raise self._error_from(r)
        if not r.content:
            return None
        try:
            return r.json()
        except ValueError as e:
            raise StoreError(f"响应不是合法 JSON: {r.text[:200]}") from e

    def _error_from(self, r) -> StoreError:
        try:
            data = r.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}
        code = data.get("code")
        message = data.get("message") or r.text[:200] or f"HTTP {r.status_code}"
        print(f"[用户管理-远程] HTTP {r.status_code} code={code}: {message}", file=sys.stderr, flush=True)
        if code == NO_SINGLE_ROW:
            return RowNotFound(message, code)
        return StoreError(message, code)

    def select(self, filters: Optional[dict] = None, order: Optional[str] = None) -> List[dict]:
        params = {"select": "*", **_eq_params(filters)}
        if order:
            params["order"] = f"{order}.asc"
        return self._request("GET", params=params) or []

    def select_single(self, filters: dict) -> dict:
        params = {"select": "*", **_eq_params(filters)}
        row = self._request("GET", params=params, headers={"Accept": SINGLE_OBJECT})
        if not row:
            raise RowNotFound()
        return row

    def insert(self, row: dict) -> dict:
        created = self._request(
            "POST",
            params={"select": "*"},
            json_body=[row],
            headers={"Prefer": "return=representation", "Accept": SINGLE_OBJECT},
        )
        if not created:
            raise StoreError("插入成功但未返回记录")
        return created

    def update(self, row_id: str, values: dict) -> None:
        self._request("PATCH", params=_eq_params({"id": row_id}), json_body=values)

    def delete(self, row_id: str) -> None:
        self._request("DELETE", params=_eq_params({"id": row_id}))
