"""登录、会话与用户管理测试。"""
import json
import tempfile
from pathlib import Path

import pytest

from auth_admin.auth.errors import (
    InvalidCredentials,
    NotAuthenticated,
    RemoteError,
    SelfDeletionForbidden,
    StoreError,
    UsernameTaken,
)
from auth_admin.auth.password import encode_legacy, is_legacy
from auth_admin.auth.service import AuthService
from auth_admin.auth.session import Session, SessionSlot
from auth_admin.auth.store import LocalCredentialStore


def _service(base: Path, scheme: str = "sha256") -> AuthService:
    store = LocalCredentialStore(base / "auth_users.json")
    session = Session(SessionSlot(base / "current_user.json"))
    return AuthService(store, session, password_scheme=scheme)


def _logged_in_admin(base: Path, scheme: str = "sha256") -> AuthService:
    service = _service(base, scheme)
    service.login("admin", "admin")
    return service


def test_admin_bootstrap_creates_single_row() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _service(Path(tmp))
        user = service.login("admin", "admin")
        assert user.username == "admin"
        assert service.is_authenticated()
        service.logout()
        again = service.login("admin", "admin")
        assert again.id == user.id
        admins = service.store.select({"username": "admin"})
        assert len(admins) == 1


def test_admin_bootstrap_ignores_stored_password() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp))
        service.change_password("admin", "changed")
        service.logout()
        assert service.login("admin", "admin").username == "admin"
        service.logout()
        assert service.login("admin", "changed").username == "admin"


def test_create_user_then_login() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp))
        created = service.create_user("alice", "pass1")
        assert created.username == "alice"
        assert created.password != "pass1"
        service.logout()
        user = service.login("alice", "pass1")
        assert user.username == "alice"
        assert user.id == created.id


def test_login_wrong_password_and_unknown_user() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp))
        service.create_user("bob", "secret")
        service.logout()
        with pytest.raises(InvalidCredentials):
            service.login("bob", "wrong")
        with pytest.raises(InvalidCredentials):
            service.login("nobody", "secret")
        assert not service.is_authenticated()


def test_login_accepts_legacy_rows() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _service(Path(tmp))
        service.store.insert({"username": "old", "password": encode_legacy("oldpass")})
        assert service.login("old", "oldpass").username == "old"
        service.change_password("oldpass", "newpass")
        assert not is_legacy(service.get_current_user().password)


def test_legacy_scheme_writes_legacy_values() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp), scheme="legacy")
        created = service.create_user("carol", "pw12")
        assert created.password == encode_legacy("pw12")


def test_unknown_scheme_rejected() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        with pytest.raises(ValueError):
            _service(Path(tmp), scheme="md5")


def test_operations_require_session() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _service(Path(tmp))
        assert service.get_current_user() is None
        with pytest.raises(NotAuthenticated):
            service.change_password("a", "b")
        with pytest.raises(NotAuthenticated):
            service.change_username("someone")
        with pytest.raises(NotAuthenticated):
            service.create_user("dave", "pw12")
        with pytest.raises(NotAuthenticated):
            service.delete_user("any-id")


def test_change_password_wrong_current_leaves_store() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp))
        before = service.store.select()
        with pytest.raises(InvalidCredentials):
            service.change_password("wrong", "newpw")
        assert service.store.select() == before


def test_change_password_updates_store_and_session() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        base = Path(tmp)
        service = _logged_in_admin(base)
        service.create_user("erin", "first")
        service.logout()
        service.login("erin", "first")
        service.change_password("first", "second")
        current = service.get_current_user()
        stored = service.store.select_single({"username": "erin"})
        assert stored["password"] == current.password
        assert stored["updated_at"] == current.updated_at
        # 重启后从会话槽恢复
        restored = _service(base).get_current_user()
        assert restored is not None and restored.password == current.password
        service.logout()
        with pytest.raises(InvalidCredentials):
            service.login("erin", "first")
        assert service.login("erin", "second").username == "erin"


def test_change_username_scenario() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp))
        service.create_user("alice", "pass1")
        service.logout()
        assert service.login("alice", "pass1").username == "alice"
        service.change_username("alicia")
        assert service.get_current_user().username == "alicia"
        service.logout()
        with pytest.raises(InvalidCredentials):
            service.login("alice", "pass1")
        with pytest.raises(InvalidCredentials):
            service.login("alice", "anything")
        assert service.login("alicia", "pass1").username == "alicia"


def test_username_taken_leaves_store_unchanged() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp))
        service.create_user("frank", "pw12")
        before = service.store.select()
        with pytest.raises(UsernameTaken):
            service.create_user("frank", "other")
        with pytest.raises(UsernameTaken):
            service.change_username("frank")
        assert service.store.select() == before
        assert service.get_current_user().username == "admin"


def test_get_all_users_sorted() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp))
        for name in ("zoe", "mike", "bella"):
            service.create_user(name, "pw12")
        names = [u.username for u in service.get_all_users()]
        assert names == ["admin", "bella", "mike", "zoe"]


def test_delete_user() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _logged_in_admin(Path(tmp))
        me = service.get_current_user()
        other = service.create_user("gina", "pw12")
        keep = service.create_user("hank", "pw12")
        with pytest.raises(SelfDeletionForbidden):
            service.delete_user(me.id)
        service.delete_user(other.id)
        ids = {u.id for u in service.get_all_users()}
        assert ids == {me.id, keep.id}


class _BrokenStore(LocalCredentialStore):
    def select(self, filters=None, order=None):
        raise StoreError("connection refused")


def test_store_failure_becomes_remote_error() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        base = Path(tmp)
        service = AuthService(_BrokenStore(base / "u.json"), Session(SessionSlot(base / "s.json")))
        with pytest.raises(RemoteError) as exc:
            service.get_all_users()
        assert "connection refused" in str(exc.value)


def test_logout_clears_slot() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        base = Path(tmp)
        service = _logged_in_admin(base)
        assert (base / "current_user.json").exists()
        service.logout()
        assert not (base / "current_user.json").exists()
        assert _service(base).get_current_user() is None


def test_local_store_unique_code() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = LocalCredentialStore(Path(tmp) / "auth_users.json")
        store.insert({"username": "ivy", "password": "x"})
        with pytest.raises(StoreError) as exc:
            store.insert({"username": "ivy", "password": "y"})
        assert exc.value.is_unique_violation
        data = json.loads((Path(tmp) / "auth_users.json").read_text(encoding="utf-8"))
        assert len(data["rows"]) == 1


class _DeniedStore(LocalCredentialStore):
    """指定的方法抛出非唯一约束的存储错误。"""

    def __init__(self, path: Path, failing=()):
        super().__init__(path)
        self.failing = set(failing)

    def _maybe_fail(self, name: str) -> None:
        if name in self.failing:
            raise StoreError("permission denied", code="42501")

    def select_single(self, filters):
        self._maybe_fail("select_single")
        return super().select_single(filters)

    def insert(self, row):
        self._maybe_fail("insert")
        return super().insert(row)

    def update(self, row_id, values):
        self._maybe_fail("update")
        super().update(row_id, values)

    def delete(self, row_id):
        self._maybe_fail("delete")
        super().delete(row_id)


def _denied_service(base: Path) -> AuthService:
    store = _DeniedStore(base / "auth_users.json")
    return AuthService(store, Session(SessionSlot(base / "current_user.json")))


def test_mutations_report_remote_error_and_keep_session() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        base = Path(tmp)
        service = _denied_service(base)
        service.login("admin", "admin")
        other = service.create_user("jack", "pw12")
        before_rows = service.store.select()
        before_user = service.get_current_user()
        before_slot = (base / "current_user.json").read_text(encoding="utf-8")
        service.store.failing = {"insert", "update", "delete"}

        with pytest.raises(RemoteError) as exc:
            service.change_username("renamed")
        assert not isinstance(exc.value, UsernameTaken)
        assert "permission denied" in exc.value.message
        with pytest.raises(RemoteError) as exc:
            service.create_user("kate", "pw12")
        assert not isinstance(exc.value, UsernameTaken)
        assert "permission denied" in exc.value.message
        with pytest.raises(RemoteError) as exc:
            service.change_password("admin", "newpw")
        assert "permission denied" in exc.value.message
        with pytest.raises(RemoteError) as exc:
            service.delete_user(other.id)
        assert "permission denied" in exc.value.message

        assert service.store.select() == before_rows
        assert service.get_current_user() == before_user
        assert (base / "current_user.json").read_text(encoding="utf-8") == before_slot


def test_login_lookup_failure_is_remote_error() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _denied_service(Path(tmp))
        service.store.failing = {"select_single"}
        with pytest.raises(RemoteError) as exc:
            service.login("bob", "pw12")
        assert "permission denied" in exc.value.message
        with pytest.raises(RemoteError):
            service.login("admin", "admin")
        assert service.store.select() == []
        assert not service.is_authenticated()


def test_admin_bootstrap_insert_failure() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        service = _denied_service(Path(tmp))
        service.store.failing = {"insert"}
        with pytest.raises(RemoteError) as exc:
            service.login("admin", "admin")
        assert "permission denied" in exc.value.message
        assert not service.is_authenticated()


@pytest.mark.parametrize("content", ["[]", '{"rows": null}', '{"rows": [1, 2]}', '"text"'])
def test_local_store_rejects_wrong_shape(content: str) -> None:
    with tempfile.TemporaryDirectory() as tmp:
        base = Path(tmp)
        (base / "auth_users.json").write_text(content, encoding="utf-8")
        store = LocalCredentialStore(base / "auth_users.json")
        with pytest.raises(StoreError):
            store.select()
        service = _service(base)
        with pytest.raises(RemoteError):
            service.login("bob", "pw12")


def test_local_store_orders_case_insensitively() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = LocalCredentialStore(Path(tmp) / "auth_users.json")
        for name in ("bob", "Zed", "admin", "Bob"):
            store.insert({"username": name, "password": "x"})
        names = [r["username"] for r in store.select(order="username")]
        assert names == ["admin", "Bob", "bob", "Zed"]


def test_slot_io_failure_does_not_break_session() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        base = Path(tmp)
        slot_path = base / "current_user.json"
        slot_path.mkdir()
        store = LocalCredentialStore(base / "auth_users.json")
        service = AuthService(store, Session(SessionSlot(slot_path)))
        user = service.login("admin", "admin")
        assert service.get_current_user() == user
        service.logout()
        assert service.get_current_user() is None
