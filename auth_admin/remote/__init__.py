"""远程数据库客户端。"""
from auth_admin.remote.client import RestCredentialStore

__all__ = ["RestCredentialStore"]
