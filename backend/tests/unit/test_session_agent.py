"""Unit tests for the client-side EditSessionAgent."""

import asyncio
import re
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from backend.src.client.api_client import StudioApiClient, StudioApiError
from backend.src.client.session_agent import (
    EditSessionAgent,
    LoggingNotifier,
    SessionNotifier,
    generate_session_id,
)
from backend.src.models.edit_session import CheckResponse, RegisterResponse

STARTED = datetime(2025, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


class RecordingNotifier:
    """Notifier that records calls and answers confirmations from a preset."""

    def __init__(self, confirm: bool = True):
        self.confirm = confirm
        self.warnings = []
        self.hidden = 0
        self.toasts = []
        self.confirmations = []

    def show_contention_warning(self, editor_name, started_at):
        self.warnings.append((editor_name, started_at))

    def hide_contention_warning(self):
        self.hidden += 1

    def toast(self, message):
        self.toasts.append(message)

    def confirm_override(self, editor_name):
        self.confirmations.append(editor_name)
        return self.confirm


def _won(name="Alice"):
    return RegisterResponse(is_new_editor=True, current_editor=name)


def _lost(name="Bob"):
    return RegisterResponse(is_new_editor=False, current_editor=name, started_at=STARTED)


@pytest.fixture
def client():
    mock = AsyncMock(spec=StudioApiClient)
    mock.register.return_value = _won()
    mock.force_acquire.return_value = _won()
    mock.check.return_value = CheckResponse(is_current_editor=True, current_editor="Alice")
    return mock


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def agent(client, notifier):
    return EditSessionAgent(client, editor_name="Alice", session_id="sess_test", notifier=notifier)


class TestSessionId:
    def test_format(self):
        assert re.fullmatch(r"sess_\d+_[a-z0-9]{9}", generate_session_id())

    def test_ids_differ_per_tab(self):
        assert generate_session_id() != generate_session_id()

    def test_agent_generates_id_when_missing(self, client):
        agent = EditSessionAgent(client)
        assert agent.session_id.startswith("sess_")

    def test_blank_editor_name_defaults(self, client):
        assert EditSessionAgent(client, editor_name="   ").editor_name == "Anonymous"


class TestNotifiers:
    def test_protocol_conformance(self):
        assert isinstance(LoggingNotifier(), SessionNotifier)
        assert isinstance(RecordingNotifier(), SessionNotifier)

    def test_logging_notifier_declines_override(self):
        assert LoggingNotifier().confirm_override("Bob") is False


class TestRegister:
    @pytest.mark.asyncio
    async def test_winning_starts_heartbeat(self, agent, client, notifier):
        result = await agent.open_project(1)

        assert result.is_new_editor is True
        client.register.assert_awaited_once_with(1, "sess_test", "Alice")
        assert agent.is_heartbeating
        assert agent.status.is_current_editor is True
        assert notifier.hidden == 1
        await agent.close()

    @pytest.mark.asyncio
    async def test_contention_shows_warning_without_heartbeat(self, agent, client, notifier):
        client.register.return_value = _lost("Bob")

        await agent.open_project(1)

        assert not agent.is_heartbeating
        assert agent.status.is_current_editor is False
        assert agent.status.current_editor == "Bob"
        assert notifier.warnings == [("Bob", STARTED)]

    @pytest.mark.asyncio
    async def test_contention_stops_running_heartbeat(self, agent, client):
        await agent.open_project(1)
        assert agent.is_heartbeating

        client.register.return_value = _lost("Bob")
        await agent.register()

        assert not agent.is_heartbeating

    @pytest.mark.asyncio
    async def test_register_failure_is_toasted(self, agent, client, notifier):
        client.register.side_effect = StudioApiError("Project 1 not found", status_code=404)

        result = await agent.open_project(1)

        assert result is None
        assert not agent.is_heartbeating
        assert notifier.toasts == ["Could not register edit session: Project 1 not found"]

    @pytest.mark.asyncio
    async def test_register_without_project_hides_banner(self, agent, client, notifier):
        assert await agent.register() is None
        client.register.assert_not_awaited()
        assert notifier.hidden == 1

    @pytest.mark.asyncio
    async def test_switching_projects_releases_previous(self, agent, client):
        await agent.open_project(1)
        await agent.open_project(2)

        client.release.assert_awaited_once_with(1, "sess_test")
        assert agent.project_id == 2
        await agent.close()

    @pytest.mark.asyncio
    async def test_reopening_same_project_does_not_release(self, agent, client):
        await agent.open_project(1)
        await agent.open_project(1)

        client.release.assert_not_awaited()
        await agent.close()


class TestHeartbeat:
    @pytest.mark.asyncio
    async def test_heartbeats_periodically(self, client, notifier):
        agent = EditSessionAgent(client, session_id="sess_hb", notifier=notifier, heartbeat_interval=0.01)
        await agent.open_project(7)

        await asyncio.sleep(0.06)
        await agent.close()

        assert client.heartbeat.await_count >= 2
        client.heartbeat.assert_awaited_with(7, "sess_hb")

    @pytest.mark.asyncio
    async def test_heartbeat_failure_keeps_loop_running(self, client, notifier):
        client.heartbeat.side_effect = StudioApiError("connection refused")
        agent = EditSessionAgent(client, notifier=notifier, heartbeat_interval=0.01)
        await agent.open_project(1)

        await asyncio.sleep(0.05)

        assert agent.is_heartbeating
        assert client.heartbeat.await_count >= 2
        assert notifier.toasts == []
        await agent.close()

    @pytest.mark.asyncio
    async def test_stop_heartbeat_is_idempotent(self, agent):
        await agent.open_project(1)

        agent.stop_heartbeat()
        agent.stop_heartbeat()

        assert not agent.is_heartbeating
        await agent.close()

    @pytest.mark.asyncio
    async def test_no_heartbeat_after_release(self, client, notifier):
        agent = EditSessionAgent(client, notifier=notifier, heartbeat_interval=0.01)
        await agent.open_project(1)
        await asyncio.sleep(0.03)

        await agent.close()
        beats = client.heartbeat.await_count
        await asyncio.sleep(0.05)

        assert client.heartbeat.await_count == beats
        client.release.assert_awaited_once()


class TestSave:
    @pytest.mark.asyncio
    async def test_save_as_owner(self, agent, client, notifier):
        await agent.open_project(1)

        assert await agent.save_pages({"projectName": "Shop"}) is True

        client.save_pages.assert_awaited_once_with(1, {"projectName": "Shop"})
        client.force_acquire.assert_not_awaited()
        assert notifier.confirmations == []
        assert notifier.toasts == ["Configuration saved"]
        await agent.close()

    @pytest.mark.asyncio
    async def test_save_declined_when_other_editor(self, agent, client, notifier):
        client.check.return_value = CheckResponse(is_current_editor=False, current_editor="Bob")
        notifier.confirm = False
        await agent.open_project(1)

        assert await agent.save_pages({}) is False

        assert notifier.confirmations == ["Bob"]
        client.force_acquire.assert_not_awaited()
        client.save_pages.assert_not_awaited()
        await agent.close()

    @pytest.mark.asyncio
    async def test_save_confirmed_forces_then_saves(self, agent, client, notifier):
        client.register.return_value = _lost("Bob")
        client.check.return_value = CheckResponse(is_current_editor=False, current_editor="Bob")
        await agent.open_project(1)

        assert await agent.save_pages({"pageGroups": []}) is True

        client.force_acquire.assert_awaited_once_with(1, "sess_test", "Alice")
        client.save_pages.assert_awaited_once()
        assert agent.status.is_current_editor is True
        assert agent.is_heartbeating
        await agent.close()

    @pytest.mark.asyncio
    async def test_unnamed_other_editor_label(self, agent, client, notifier):
        client.check.return_value = CheckResponse(is_current_editor=False, current_editor=None)
        notifier.confirm = False
        await agent.open_project(1)

        await agent.save_pages({})

        assert notifier.confirmations == ["Another user"]
        await agent.close()

    @pytest.mark.asyncio
    async def test_check_failure_aborts_save(self, agent, client, notifier):
        client.check.side_effect = StudioApiError("timeout")
        await agent.open_project(1)

        assert await agent.save_pages({}) is False

        client.save_pages.assert_not_awaited()
        assert notifier.toasts == ["Could not verify edit session: timeout"]
        await agent.close()

    @pytest.mark.asyncio
    async def test_force_failure_aborts_save(self, agent, client, notifier):
        client.check.return_value = CheckResponse(is_current_editor=False, current_editor="Bob")
        client.force_acquire.side_effect = StudioApiError("boom", status_code=500)
        await agent.open_project(1)

        assert await agent.save_pages({}) is False

        client.save_pages.assert_not_awaited()
        assert notifier.toasts == ["Take over failed: boom"]
        await agent.close()

    @pytest.mark.asyncio
    async def test_save_without_project(self, agent, client, notifier):
        assert await agent.save_pages({}) is False
        assert notifier.toasts == ["Select a project first"]
        client.check.assert_not_awaited()


class TestForceTakeOver:
    @pytest.mark.asyncio
    async def test_take_over_clears_warning(self, agent, client, notifier):
        client.register.return_value = _lost("Bob")
        await agent.open_project(1)

        assert await agent.force_take_over() is True

        assert agent.status.is_current_editor is True
        assert agent.is_heartbeating
        assert notifier.toasts[-1] == "Editing rights taken over"
        await agent.close()


class TestClose:
    @pytest.mark.asyncio
    async def test_release_failure_is_swallowed(self, agent, client):
        client.release.side_effect = StudioApiError("offline")
        await agent.open_project(1)

        await agent.close()

        assert agent.project_id is None
        assert not agent.is_heartbeating

    @pytest.mark.asyncio
    async def test_close_without_project_is_noop(self, agent, client):
        await agent.close()
        client.release.assert_not_awaited()
