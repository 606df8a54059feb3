"""Client-side driver of the edit session protocol, one instance per tab.

The agent registers when a project is opened, heartbeats while it owns the
project, and turns contention into user-facing warnings and confirmations.
Heartbeat and release are best-effort: a lost heartbeat is retried on the
next tick and an abandoned session simply expires on the server. Register,
check and force-acquire failures are reported through the notifier.
"""

from __future__ import annotations

import asyncio
import logging
import random
import string
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Optional, Protocol, runtime_checkable

from ..models.edit_session import UNNAMED_EDITOR_LABEL, RegisterResponse
from .api_client import StudioApiClient, StudioApiError

logger = logging.getLogger(__name__)

# Well under the server's 5 minute timeout, so one lost beat is survivable
HEARTBEAT_INTERVAL_SECONDS = 2 * 60

DEFAULT_EDITOR_NAME = "Anonymous"

_SESSION_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_session_id() -> str:
    """Build a tab-scoped token such as ``sess_1718000000000_k3j9x0a2b``."""
    millis = int(time.time() * 1000)
    suffix = "".join(random.choices(_SESSION_ID_ALPHABET, k=9))
    return f"sess_{millis}_{suffix}"


@runtime_checkable
class SessionNotifier(Protocol):
    """User-facing side effects of the protocol."""

    def show_contention_warning(self, editor_name: str, started_at: Optional[datetime]) -> None:
        """Show a persistent banner naming the editor who holds the project."""
        ...

    def hide_contention_warning(self) -> None:
        """Remove the banner, if shown."""
        ...

    def toast(self, message: str) -> None:
        """Show a transient notification."""
        ...

    def confirm_override(self, editor_name: str) -> bool:
        """Ask whether to overwrite the other editor's work. True to proceed."""
        ...


class LoggingNotifier:
    """Notifier for headless use: logs everything and never overrides."""

    def show_contention_warning(self, editor_name: str, started_at: Optional[datetime]) -> None:
        since = f" since {started_at.isoformat()}" if started_at else ""
        logger.warning(f"{editor_name} is editing this project{since}")

    def hide_contention_warning(self) -> None:
        logger.debug("Contention warning cleared")

    def toast(self, message: str) -> None:
        logger.info(message)

    def confirm_override(self, editor_name: str) -> bool:
        logger.warning(f"Not overriding {editor_name}: no interactive confirmation available")
        return False


@dataclass
class SessionStatus:
    """What this tab currently believes about ownership."""

    is_current_editor: bool = True
    current_editor: Optional[str] = None
    other_started_at: Optional[datetime] = None


class EditSessionAgent:
    """
    Per-tab edit session agent.

    Usage:
        agent = EditSessionAgent(StudioApiClient(), editor_name="Alice")
        await agent.open_project(1)
        saved = await agent.save_pages(pages_config)
        await agent.close()
    """

    def __init__(
        self,
        client: StudioApiClient,
        editor_name: Optional[str] = None,
        session_id: Optional[str] = None,
        notifier: Optional[SessionNotifier] = None,
        heartbeat_interval: float = HEARTBEAT_INTERVAL_SECONDS,
    ):
        self.client = client
        self.editor_name = (editor_name or "").strip() or DEFAULT_EDITOR_NAME
        self.session_id = session_id or generate_session_id()
        self.notifier: SessionNotifier = notifier or LoggingNotifier()
        self.heartbeat_interval = heartbeat_interval
        self.project_id: Optional[int] = None
        self.status = SessionStatus()
        self._heartbeat_task: Optional[asyncio.Task] = None

    @property
    def is_heartbeating(self) -> bool:
        return self._heartbeat_task is not None and not self._heartbeat_task.done()

    # -- Heartbeat ---------------------------------------------------------

    def start_heartbeat(self) -> None:
        """(Re)start the periodic heartbeat for the current project."""
        self.stop_heartbeat()
        if self.project_id is None:
            return
        self._heartbeat_task = asyncio.get_running_loop().create_task(
            self._heartbeat_loop(self.project_id)
        )

    def stop_heartbeat(self) -> None:
        """Cancel the heartbeat timer. Safe to call repeatedly."""
        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
            self._heartbeat_task = None

    async def _heartbeat_loop(self, project_id: int) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self.client.heartbeat(project_id, self.session_id)
            except StudioApiError as e:
                logger.warning(f"Heartbeat for project {project_id} failed, retrying next tick: {e.message}")

    async def _stop_heartbeat_and_wait(self) -> None:
        task = self._heartbeat_task
        self.stop_heartbeat()
        if task is not None:
            # Let the cancellation land so no heartbeat can follow a release
            await asyncio.wait({task})

    # -- Protocol ----------------------------------------------------------

    async def open_project(self, project_id: int) -> Optional[RegisterResponse]:
        """Switch this tab to a project, releasing the previous one first."""
        if self.project_id is not None and self.project_id != project_id:
            await self._release_current()
        self.project_id = project_id
        return await self.register()

    async def register(self) -> Optional[RegisterResponse]:
        """
        Register for the current project.

        Returns:
            The server's answer, or None when no project is open or the call failed
        """
        if self.project_id is None:
            self.notifier.hide_contention_warning()
            return None

        try:
            result = await self.client.register(self.project_id, self.session_id, self.editor_name)
        except StudioApiError as e:
            logger.error(f"Registering edit session for project {self.project_id} failed: {e.message}")
            self.notifier.toast(f"Could not register edit session: {e.message}")
            return None

        if result.is_new_editor:
            self._became_editor(result.current_editor or self.editor_name)
        else:
            other = result.current_editor or UNNAMED_EDITOR_LABEL
            self.stop_heartbeat()
            self.status = SessionStatus(
                is_current_editor=False,
                current_editor=other,
                other_started_at=result.started_at,
            )
            self.notifier.show_contention_warning(other, result.started_at)
        return result

    def _became_editor(self, editor_name: str) -> None:
        self.status = SessionStatus(is_current_editor=True, current_editor=editor_name)
        self.notifier.hide_contention_warning()
        self.start_heartbeat()

    async def _force_acquire(self) -> bool:
        try:
            result = await self.client.force_acquire(self.project_id, self.session_id, self.editor_name)
        except StudioApiError as e:
            logger.error(f"Force-acquire of project {self.project_id} failed: {e.message}")
            self.notifier.toast(f"Take over failed: {e.message}")
            return False
        self._became_editor(result.current_editor or self.editor_name)
        return True

    async def force_take_over(self) -> bool:
        """Claim editing rights now, evicting any other editor."""
        if self.project_id is None:
            self.notifier.toast("Select a project first")
            return False
        if not await self._force_acquire():
            return False
        self.notifier.toast("Editing rights taken over")
        return True

    async def save_pages(self, pages_config: Dict[str, Any]) -> bool:
        """
        Save the pages.json document, confirming first if someone else is editing.

        Returns:
            True when the document was saved; False when the user declined the
            override or a call failed (already reported through the notifier)
        """
        if self.project_id is None:
            self.notifier.toast("Select a project first")
            return False

        try:
            check = await self.client.check(self.project_id, self.session_id)
        except StudioApiError as e:
            logger.error(f"Session check for project {self.project_id} failed: {e.message}")
            self.notifier.toast(f"Could not verify edit session: {e.message}")
            return False

        if not check.is_current_editor:
            other = check.current_editor or UNNAMED_EDITOR_LABEL
            if not self.notifier.confirm_override(other):
                logger.info(f"Save aborted: {other} is editing project {self.project_id}")
                return False
            if not await self._force_acquire():
                return False

        try:
            await self.client.save_pages(self.project_id, pages_config)
        except StudioApiError as e:
            logger.error(f"Saving pages for project {self.project_id} failed: {e.message}")
            self.notifier.toast(f"Save failed: {e.message}")
            return False

        self.notifier.toast("Configuration saved")
        return True

    async def _release_current(self) -> None:
        project_id = self.project_id
        await self._stop_heartbeat_and_wait()
        self.status = SessionStatus()
        if project_id is None:
            return
        try:
            await self.client.release(project_id, self.session_id)
        except StudioApiError as e:
            # The server-side session will expire on its own
            logger.warning(f"Releasing project {project_id} failed: {e.message}")

    async def close(self) -> None:
        """Stop heartbeating and release the open project, best effort."""
        await self._release_current()
        self.project_id = None


__all__ = [
    "EditSessionAgent",
    "SessionNotifier",
    "LoggingNotifier",
    "SessionStatus",
    "generate_session_id",
    "HEARTBEAT_INTERVAL_SECONDS",
]
