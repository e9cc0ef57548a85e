"""全局配置与路径。"""
import os
from pathlib import Path

# 项目根目录（auth_admin 包所在目录的上一级）
ROOT_DIR = Path(__file__).resolve().parent.parent
DATA_DIR = ROOT_DIR / "data"
AUTH_DATA_DIR = DATA_DIR / "auth"
SESSION_FILE = AUTH_DATA_DIR / "current_user.json"  # 当前登录用户（重启后恢复）
LOCAL_USERS_FILE = AUTH_DATA_DIR / "auth_users.json"  # 未配置远程库时的本地用户表

# 远程数据库（Supabase / PostgREST）；URL 为空时使用本地 JSON 存储
SUPABASE_URL = os.environ.get("SUPABASE_URL", "").strip().rstrip("/")
SUPABASE_ANON_KEY = os.environ.get("SUPABASE_ANON_KEY", "").strip()
AUTH_USERS_TABLE = "auth_users"
REQUEST_TIMEOUT = 15  # 秒

# 密码：sha256（加盐，默认）或 legacy（旧版 base64，兼容旧客户端）
PASSWORD_SCHEME = os.environ.get("AUTH_PASSWORD_SCHEME", "sha256").strip().lower()
LEGACY_PASSWORD_SUFFIX = "salt123"

# 首次登录引导账号
BOOTSTRAP_USERNAME = "admin"
BOOTSTRAP_PASSWORD = "admin"

# 表单校验
MIN_USERNAME_LENGTH = 3
MIN_PASSWORD_LENGTH = 4


def ensure_dirs() -> None:
    """确保数据目录存在。"""
    for d in (DATA_DIR, AUTH_DATA_DIR):
        d.mkdir(parents=True, exist_ok=True)
