"""组装认证服务：配置了远程库则连接远程 auth_users 表，否则使用本地存储。"""
import sys
from pathlib import Path
from typing import Optional

from auth_admin.config import SUPABASE_URL, ensure_dirs
from auth_admin.auth.service import AuthService
from auth_admin.auth.session import Session, SessionSlot
from auth_admin.auth.store import LocalCredentialStore
from auth_admin.remote.client import RestCredentialStore


def build_service(data_dir: Optional[Path] = None, supabase_url: Optional[str] = None) -> AuthService:
    """data_dir 为本地数据目录（会话槽与本地用户表），默认使用配置中的路径。"""
    url = SUPABASE_URL if supabase_url is None else supabase_url
    if data_dir is None:
        ensure_dirs()
        slot = SessionSlot()
        local_path = None
    else:
        data_dir = Path(data_dir)
        slot = SessionSlot(data_dir / "current_user.json")
        local_path = data_dir / "auth_users.json"
    if url:
        store = RestCredentialStore(url=url)
    else:
        print("[用户管理] 未配置 SUPABASE_URL，使用本地用户表", file=sys.stderr, flush=True)
        store = LocalCredentialStore(local_path)
    return AuthService(store, Session(slot))
