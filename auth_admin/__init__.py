"""用户登录与账号管理。"""
__version__ = "0.1.0"
