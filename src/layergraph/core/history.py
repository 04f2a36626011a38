"""
History - Bounded undo/redo stack of reversible commands.

commands[:current_index] have been applied; commands[current_index:] can be
redone. Executing a new command discards the redo timeline. When the stack
grows past max_steps the oldest command is evicted.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from layergraph.core.errors import NoRedoAvailableError, NoUndoAvailableError

logger = logging.getLogger(__name__)


class Command(ABC):
    """
    A reversible unit of document mutation.

    undo() after execute() must restore exactly the prior observable state,
    and a failing execute() must leave nothing half-applied.
    """

    @abstractmethod
    def execute(self) -> None:
        ...

    @abstractmethod
    def undo(self) -> None:
        ...

    @property
    def description(self) -> str:
        return type(self).__name__


class History:
    """Command stack with a fixed maximum number of steps."""

    DEFAULT_MAX_STEPS = 100

    def __init__(self, max_steps: int = DEFAULT_MAX_STEPS):
        if max_steps < 1:
            raise ValueError("max_steps must be at least 1")
        self._commands: list[Command] = []
        self._current_index = 0
        self._max_steps = max_steps

    @property
    def max_steps(self) -> int:
        return self._max_steps

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def commands(self) -> list[Command]:
        """All recorded commands (read-only copy)."""
        return self._commands.copy()

    def execute(self, command: Command) -> None:
        """
        Run a command and record it.

        If execute() raises, nothing is recorded and the redo timeline is kept.
        """
        command.execute()

        del self._commands[self._current_index:]
        self._commands.append(command)
        self._current_index += 1

        if len(self._commands) > self._max_steps:
            evicted = self._commands.pop(0)
            self._current_index -= 1
            logger.debug("History full, evicted: %s", evicted.description)

        logger.debug("Executed: %s", command.description)

    def undo(self) -> Command:
        """
        Undo the most recent applied command and return it.

        Raises:
            NoUndoAvailableError: If nothing has been applied
        """
        if self._current_index == 0:
            raise NoUndoAvailableError()
        index = self._current_index - 1
        command = self._commands[index]
        command.undo()
        self._current_index = index
        logger.debug("Undid: %s", command.description)
        return command

    def redo(self) -> Command:
        """
        Re-apply the next undone command and return it.

        Raises:
            NoRedoAvailableError: If there is nothing to redo
        """
        if self._current_index >= len(self._commands):
            raise NoRedoAvailableError()
        command = self._commands[self._current_index]
        command.execute()
        self._current_index += 1
        logger.debug("Redid: %s", command.description)
        return command

    def can_undo(self) -> bool:
        return self._current_index > 0

    def can_redo(self) -> bool:
        return self._current_index < len(self._commands)

    @property
    def undo_description(self) -> str | None:
        if not self.can_undo():
            return None
        return self._commands[self._current_index - 1].description

    @property
    def redo_description(self) -> str | None:
        if not self.can_redo():
            return None
        return self._commands[self._current_index].description

    def clear(self) -> None:
        """Forget all commands."""
        self._commands.clear()
        self._current_index = 0

    def __len__(self) -> int:
        return len(self._commands)
