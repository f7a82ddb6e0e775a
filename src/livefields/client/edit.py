"""Local edit state machine for one displayed field (``idle -> editing -> idle``).

While a field is being edited its element is marked editable, which makes
the reconciler skip incoming updates for it.  A commit only leaves the
viewer when the value actually changed and the channel is open; otherwise
the display reverts to the value captured when the edit began.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol

from livefields.client.display import FieldElement
from livefields.core.config import DEFAULT_BLUR_GRACE

logger = logging.getLogger(__name__)


class UpdateSender(Protocol):
    @property
    def connected(self) -> bool: ...

    async def send_update(self, field: str, value: str) -> bool: ...


class EditController:
    """Begin, commit, cancel and blur handling for a single field element."""

    def __init__(
        self,
        element: FieldElement,
        client: UpdateSender,
        blur_grace: float = DEFAULT_BLUR_GRACE,
    ) -> None:
        self.element = element
        self.client = client
        self.blur_grace = blur_grace
        self.original_value = ""
        self._edit_count = 0
        self._pending: set[asyncio.Task] = set()

    @property
    def editing(self) -> bool:
        return self.element.editable

    def begin(self) -> bool:
        """Start editing.  Refused while already editing or disconnected."""
        if self.editing or not self.client.connected:
            logger.warning("Cannot edit '%s': already editing or channel not open.", self.element.field)
            return False
        self.original_value = self.element.text
        self._edit_count += 1
        self.element.editable = True
        self.element.focus(select_all=True)
        return True

    def type_text(self, text: str) -> None:
        """Replace the element's text, as keystrokes would while editing."""
        if not self.editing:
            raise RuntimeError(f"Field '{self.element.field}' is not being edited")
        self.element.text = text

    async def commit(self) -> bool:
        """Finish editing.  Returns ``True`` only when an update was sent."""
        if not self.editing:
            return False
        self.element.editable = False
        field = self.element.field
        new_value = self.element.text.strip()

        if not new_value or new_value == self.original_value:
            self.element.text = self.original_value
            logger.info("Edit cancelled or no change for field '%s'", field)
            return False

        self.element.text = new_value
        if not await self.client.send_update(field, new_value):
            logger.warning("Update for '%s' not sent. Reverting change.", field)
            self.element.text = self.original_value
            return False
        return True

    def cancel(self) -> None:
        """Abandon the edit and restore the original value immediately."""
        if not self.editing:
            return
        self.element.editable = False
        self.element.text = self.original_value
        self.element.blur()
        logger.info("Edit cancelled for field '%s'", self.element.field)

    def blur(self) -> asyncio.Task | None:
        """Focus left the element: commit after a short grace delay.

        The delay lets a commit triggered by the same focus change (e.g. a
        button press) run first; the deferred commit is then a no-op.
        """
        self.element.blur()
        if not self.editing:
            return None
        task = asyncio.get_running_loop().create_task(self._commit_after_grace(self._edit_count))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _commit_after_grace(self, edit: int) -> bool:
        await asyncio.sleep(self.blur_grace)
        if edit != self._edit_count:
            return False
        return await self.commit()
