"""用户管理界面逻辑。"""
from auth_admin.ui.user_management import UserManagementPanel

__all__ = ["UserManagementPanel"]
