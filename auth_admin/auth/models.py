"""用户数据模型。"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class User(BaseModel):
    """auth_users 表中的一行。"""
    id: str = Field(..., description="用户唯一 ID，分配后不变")
    username: str = Field(..., description="登录账号，全表唯一")
    password: str = Field(..., description="编码后的密码，从不保存明文")
    created_at: Optional[str] = Field(None, description="创建时间 ISO")
    updated_at: Optional[str] = Field(None, description="更新时间 ISO")

    model_config = ConfigDict(extra="ignore")
