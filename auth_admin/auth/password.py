"""密码编码。

两种格式：
- sha256：sha256$<salt>$<hex>，每条记录独立随机盐（默认）；
- legacy：base64(密码 + 固定后缀)，可逆、无独立盐，仅为兼容旧数据保留，不安全。
"""
import base64
import hashlib
import hmac
import secrets
from typing import Optional

from auth_admin.config import LEGACY_PASSWORD_SUFFIX

SCHEME_SHA256 = "sha256"
SCHEME_LEGACY = "legacy"
_SEP = "$"


def encode_legacy(password: str) -> str:
    """旧版编码：同一明文总是得到同一结果。"""
    return base64.b64encode((password + LEGACY_PASSWORD_SUFFIX).encode("utf-8")).decode("ascii")


def _hash_password(password: str, salt: str) -> str:
    return hashlib.sha256((password + salt).encode()).hexdigest()


def hash_password(password: str, salt: Optional[str] = None) -> str:
    salt = salt or secrets.token_hex(16)
    return _SEP.join((SCHEME_SHA256, salt, _hash_password(password, salt)))


def encode_password(password: str, scheme: str = SCHEME_SHA256) -> str:
    if scheme == SCHEME_SHA256:
        return hash_password(password)
    if scheme == SCHEME_LEGACY:
        return encode_legacy(password)
    raise ValueError(f"未知的密码编码方式: {scheme}")


def is_legacy(stored: str) -> bool:
    return not stored.startswith(SCHEME_SHA256 + _SEP)


def verify_password(password: str, stored: str) -> bool:
    """校验明文与已存储的编码值，两种格式都支持。"""
    if is_legacy(stored):
        return hmac.compare_digest(encode_legacy(password), stored)
    parts = stored.split(_SEP)
    if len(parts) != 3:
        return False
    _, salt, digest = parts
    return hmac.compare_digest(_hash_password(password, salt), digest)
