"""登录与用户：会话、认证服务、用户表存储。"""
from auth_admin.auth.models import User
from auth_admin.auth.store import LocalCredentialStore
from auth_admin.auth.session import Session, SessionSlot
from auth_admin.auth.service import AuthService

__all__ = ["User", "LocalCredentialStore", "Session", "SessionSlot", "AuthService"]
