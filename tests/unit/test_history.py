"""
Tests for the undo/redo history.
"""

import pytest

from layergraph.core.errors import NoRedoAvailableError, NoUndoAvailableError
from layergraph.core.history import Command, History


class Append(Command):
    """Appends a value to a shared list and records every call."""

    def __init__(self, target, value, log):
        self.target = target
        self.value = value
        self.log = log

    def execute(self):
        self.target.append(self.value)
        self.log.append(("execute", self.value))

    def undo(self):
        self.target.remove(self.value)
        self.log.append(("undo", self.value))


class Failing(Command):
    def execute(self):
        raise RuntimeError("no")

    def undo(self):
        raise AssertionError("never executed")


class FailingUndo(Command):
    def execute(self):
        pass

    def undo(self):
        raise RuntimeError("stuck")


@pytest.fixture
def state():
    return [], []


class TestHistory:
    """Tests for History."""

    def test_empty(self):
        history = History()
        assert history.max_steps == History.DEFAULT_MAX_STEPS
        assert history.current_index == 0
        assert not history.can_undo()
        assert not history.can_redo()
        assert history.undo_description is None
        assert history.redo_description is None

    def test_invalid_max_steps(self):
        with pytest.raises(ValueError):
            History(0)

    def test_execute_records(self, state):
        target, log = state
        history = History()
        history.execute(Append(target, 1, log))

        assert target == [1]
        assert len(history) == 1
        assert history.current_index == 1
        assert history.undo_description == "Append"

    def test_undo_redo_return_command(self, state):
        target, log = state
        history = History()
        command = Append(target, 1, log)
        history.execute(command)

        assert history.undo() is command
        assert history.redo() is command

    def test_n_undos_restore_initial_state(self, state):
        target, log = state
        history = History()
        for value in range(5):
            history.execute(Append(target, value, log))

        for _ in range(5):
            history.undo()

        assert target == []
        assert history.current_index == 0
        with pytest.raises(NoUndoAvailableError):
            history.undo()

    def test_redo_replays_same_commands_in_order(self, state):
        target, log = state
        history = History()
        commands = [Append(target, value, log) for value in range(4)]
        for command in commands:
            history.execute(command)
        for _ in range(3):
            history.undo()
        log.clear()

        replayed = [history.redo() for _ in range(3)]

        assert replayed == commands[1:]
        assert log == [("execute", 1), ("execute", 2), ("execute", 3)]
        assert target == [0, 1, 2, 3]
        with pytest.raises(NoRedoAvailableError):
            history.redo()

    def test_execute_discards_redo_timeline(self, state):
        target, log = state
        history = History()
        history.execute(Append(target, 1, log))
        history.execute(Append(target, 2, log))
        history.undo()

        history.execute(Append(target, 3, log))

        assert len(history) == 2
        assert not history.can_redo()
        assert target == [1, 3]

    def test_bounded_by_max_steps(self, state):
        target, log = state
        history = History(max_steps=3)
        commands = [Append(target, value, log) for value in range(4)]
        for command in commands:
            history.execute(command)

        assert len(history) == 3
        assert history.commands == commands[1:]
        # Unbounded growth would give 4
        assert history.current_index == 3

        for _ in range(3):
            history.undo()
        assert target == [0]
        assert not history.can_undo()

    def test_failed_execute_is_not_recorded(self, state):
        target, log = state
        history = History()
        history.execute(Append(target, 1, log))
        history.undo()

        with pytest.raises(RuntimeError):
            history.execute(Failing())

        assert len(history) == 1
        assert history.current_index == 0
        assert history.can_redo()

    def test_failed_undo_keeps_index(self):
        history = History()
        history.execute(FailingUndo())
        with pytest.raises(RuntimeError):
            history.undo()
        assert history.current_index == 1

    def test_clear(self, state):
        target, log = state
        history = History()
        history.execute(Append(target, 1, log))
        history.clear()
        assert len(history) == 0
        assert history.current_index == 0
