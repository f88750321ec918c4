from __future__ import annotations

import json

import pytest

from school_portal import cli
from school_portal.config import Settings
from school_portal.context import AppContext
from school_portal.services.backend import BackendRequestError

from .conftest import FakeBackend


@pytest.mark.asyncio
async def test_list_prints_rows_as_json(
    ctx: AppContext, settings: Settings, backend: FakeBackend, capsys: pytest.CaptureFixture[str]
) -> None:
    backend.seed("meetings", {"subject": "Council", "meeting_date": "2024-06-01T09:00:00"})

    code = await cli.run(cli.parse_args(["list", "meetings"]), settings, ctx)

    assert code == 0
    rows = json.loads(capsys.readouterr().out)
    assert rows[0]["subject"] == "Council"
    assert rows[0]["meeting_date"] == "2024-06-01T09:00:00"


@pytest.mark.asyncio
async def test_export_writes_csv(ctx: AppContext, settings: Settings, backend: FakeBackend, tmp_path) -> None:
    backend.seed("contacts", {"name": "Omar", "email": "omar@example.com", "subject": "Hi", "message": "Hello"})
    target = tmp_path / "contacts.csv"

    code = await cli.run(
        cli.parse_args(["export", "contacts", "--format", "csv", "--output", str(target)]), settings, ctx
    )

    assert code == 0
    assert "omar@example.com" in target.read_text(encoding="utf-8-sig")


@pytest.mark.asyncio
async def test_login_then_whoami(
    ctx: AppContext,
    settings: Settings,
    backend: FakeBackend,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    backend.add_user("admin@school.ma", "secret-pass", role="admin")
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "secret-pass")

    assert await cli.run(cli.parse_args(["login", "admin@school.ma"]), settings, ctx) == 0
    assert await cli.run(cli.parse_args(["whoami"]), settings, ctx) == 0

    out = capsys.readouterr().out.splitlines()
    assert out[0] == "Signed in as admin@school.ma"
    assert json.loads(out[1])["role"] == "admin"


@pytest.mark.asyncio
async def test_whoami_when_signed_out(ctx: AppContext, settings: Settings) -> None:
    assert await cli.run(cli.parse_args(["whoami"]), settings, ctx) == 1


def test_unknown_table_is_rejected() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["list", "users"])


@pytest.mark.asyncio
async def test_list_with_retry_uses_configured_attempts(ctx: AppContext, backend: FakeBackend) -> None:
    settings = ctx.settings.model_copy(update={"retry_attempts": 3, "retry_delay": 0.0})
    backend.fail("GET", "activities", status=503)

    with pytest.raises(BackendRequestError):
        await cli.run(cli.parse_args(["list", "activities", "--retry"]), settings, ctx)

    assert len(backend.calls_to("GET", "activities")) == 3


@pytest.mark.asyncio
async def test_list_without_retry_fails_on_first_error(
    ctx: AppContext, settings: Settings, backend: FakeBackend
) -> None:
    backend.fail("GET", "activities", status=503)

    with pytest.raises(BackendRequestError):
        await cli.run(cli.parse_args(["list", "activities"]), settings, ctx)

    assert len(backend.calls_to("GET", "activities")) == 1


@pytest.mark.asyncio
async def test_export_with_retry_recovers_from_transient_failure(
    ctx: AppContext, backend: FakeBackend, tmp_path, monkeypatch: pytest.MonkeyPatch
) -> None:
    settings = ctx.settings.model_copy(update={"retry_attempts": 2, "retry_delay": 0.0})
    backend.seed("meetings", {"subject": "Council", "meeting_date": "2024-06-01T09:00:00"})
    backend.fail("GET", "meetings", status=503)
    original_list = ctx.gateways.meetings.list

    async def flaky_list(*args, **kwargs):
        if len(backend.calls_to("GET", "meetings")) == 1:
            backend.failures.clear()
        return await original_list(*args, **kwargs)

    target = tmp_path / "meetings.csv"
    monkeypatch.setattr(ctx.gateways.meetings, "list", flaky_list)
    code = await cli.run(
        cli.parse_args(["export", "meetings", "--output", str(target), "--retry"]), settings, ctx
    )

    assert code == 0
    assert "Council" in target.read_text(encoding="utf-8-sig")
