"""Tests for CLI tools: winetrail-admin and winetrail-server."""

import sys
from datetime import date

import pytest

from winetrail.models.user import User
from winetrail.services.auth import verify_password


class TestUserAdmin:
    """Tests for winetrail-admin functions."""

    @pytest.mark.asyncio
    async def test_add_user(self, init_test_db):
        from winetrail.cli.admin import add_user

        await add_user("newuser@example.com", "password123", full_name="New User",
                       date_of_birth=date(1990, 4, 2))

        user = await User.find_one(User.email == "newuser@example.com")
        assert user is not None
        assert user.full_name == "New User"
        assert user.date_of_birth.date() == date(1990, 4, 2)
        assert user.is_superuser is False
        assert user.is_verified is True

    @pytest.mark.asyncio
    async def test_add_admin_user(self, init_test_db):
        from winetrail.cli.admin import add_user

        await add_user("boss@example.com", "adminpass", is_admin=True)

        user = await User.find_one(User.email == "boss@example.com")
        assert user.is_superuser is True

    @pytest.mark.asyncio
    async def test_add_duplicate_user_fails(self, init_test_db):
        from winetrail.cli.admin import add_user

        await add_user("duplicate@example.com", "password123")
        with pytest.raises(SystemExit) as exc_info:
            await add_user("duplicate@example.com", "password456")
        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_list_users(self, test_user, admin_user, capsys):
        from winetrail.cli.admin import list_users

        await list_users()

        captured = capsys.readouterr()
        assert "test@example.com" in captured.out
        assert "admin@example.com" in captured.out

    @pytest.mark.asyncio
    async def test_list_users_empty(self, init_test_db, capsys):
        from winetrail.cli.admin import list_users

        await list_users()
        assert "No users found." in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_disable_and_enable(self, test_user):
        from winetrail.cli.admin import set_active

        await set_active("test@example.com", False)
        assert (await User.get(test_user.id)).is_active is False

        await set_active("test@example.com", True)
        assert (await User.get(test_user.id)).is_active is True

    @pytest.mark.asyncio
    async def test_promote_and_revoke(self, test_user):
        from winetrail.cli.admin import set_admin

        await set_admin("test@example.com", True)
        assert (await User.get(test_user.id)).is_superuser is True

        await set_admin("test@example.com", False)
        assert (await User.get(test_user.id)).is_superuser is False

    @pytest.mark.asyncio
    async def test_unknown_user_exits(self, init_test_db):
        from winetrail.cli.admin import set_active

        with pytest.raises(SystemExit) as exc_info:
            await set_active("nobody@example.com", False)
        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_remove_user_forced(self, test_user):
        from winetrail.cli.admin import remove_user

        await remove_user("test@example.com", force=True)
        assert await User.get(test_user.id) is None

    @pytest.mark.asyncio
    async def test_remove_user_aborted(self, test_user, monkeypatch):
        from winetrail.cli.admin import remove_user

        monkeypatch.setattr("builtins.input", lambda _prompt: "n")
        await remove_user("test@example.com")
        assert await User.get(test_user.id) is not None

    @pytest.mark.asyncio
    async def test_change_password(self, test_user):
        from winetrail.cli.admin import change_password

        await change_password("test@example.com", "fresh-password")
        user = await User.get(test_user.id)
        assert verify_password("fresh-password", user.hashed_password)


class TestServerCommand:
    def test_build_command_defaults(self):
        from winetrail.cli.server import APP_PATH, build_command

        cmd = build_command("127.0.0.1", 8000)
        assert cmd[:4] == [sys.executable, "-m", "uvicorn", APP_PATH]
        assert cmd[4:] == ["--host", "127.0.0.1", "--port", "8000"]

    def test_build_command_reload_ignores_workers(self):
        from winetrail.cli.server import build_command

        cmd = build_command("0.0.0.0", 9000, reload=True, workers=4)
        assert "--reload" in cmd
        assert "--workers" not in cmd

    def test_build_command_workers(self):
        from winetrail.cli.server import build_command

        cmd = build_command("0.0.0.0", 9000, workers=4)
        assert cmd[-2:] == ["--workers", "4"]

    def test_get_pid_without_pid_file(self, tmp_path, monkeypatch):
        from winetrail.cli import server

        monkeypatch.setattr(server, "pid_file", lambda: tmp_path / "winetrail.pid")
        assert server.get_pid() is None

    def test_get_pid_clears_stale_file(self, tmp_path, monkeypatch):
        from winetrail.cli import server

        stale = tmp_path / "winetrail.pid"
        stale.write_text("not-a-pid")
        monkeypatch.setattr(server, "pid_file", lambda: stale)

        assert server.get_pid() is None
        assert not stale.exists()
