"""Tests for commands and the undo/redo history."""

import pytest

from chartpro.core.undo_redo import (
    AddShapeCommand, Command, CompositeCommand, DeleteShapeCommand, UndoRedoManager
)


class RecordingCommand(Command):
    """Command that appends to a log."""

    def __init__(self, name, log):
        self.name = name
        self.log = log

    def execute(self):
        self.log.append(f"do {self.name}")

    def undo(self):
        self.log.append(f"undo {self.name}")

    @property
    def description(self):
        return self.name


class TestAddShapeCommand:
    """Tests for adding shapes."""

    def test_execute_and_undo(self, qapp, plot, make_trend_line):
        """Test that the list and the surface change together."""
        shapes = []
        shape = make_trend_line(10, 100, 50, 110)
        changes = []
        cmd = AddShapeCommand(shapes, shape, plot, lambda: changes.append(1))

        cmd.execute()
        assert shapes == [shape]
        assert plot.contains(shape.plottable)

        cmd.undo()
        assert shapes == []
        assert not plot.contains(shape.plottable)
        assert len(changes) == 2

    def test_description(self, plot, make_trend_line):
        cmd = AddShapeCommand([], make_trend_line(0, 0, 1, 1), plot)

        assert cmd.description == "Add Trend Line"

    def test_execute_twice_does_not_duplicate(self, plot, make_trend_line):
        shapes = []
        cmd = AddShapeCommand(shapes, make_trend_line(0, 0, 1, 1), plot)

        cmd.execute()
        cmd.execute()

        assert len(shapes) == 1
        assert len(plot.plottables) == 1


class TestDeleteShapeCommand:
    """Tests for deleting shapes."""

    def test_undo_restores_position(self, plot, make_trend_line):
        """Test that undo puts the shape back at its original index."""
        a, b, c = (make_trend_line(i, i, i + 1, i + 1) for i in range(3))
        shapes = [a, b, c]
        for s in shapes:
            plot.add_plottable(s.plottable)

        cmd = DeleteShapeCommand(shapes, b, 1, plot)
        cmd.execute()
        assert shapes == [a, c]
        assert not plot.contains(b.plottable)

        cmd.undo()
        assert shapes == [a, b, c]
        assert plot.contains(b.plottable)

    def test_delete_clears_selection(self, plot, make_trend_line):
        shape = make_trend_line(0, 0, 1, 1)
        shape.is_selected = True
        cmd = DeleteShapeCommand([shape], shape, 0, plot)

        cmd.execute()

        assert shape.is_selected is False
        assert cmd.description == "Delete Trend Line"


class TestCompositeCommand:
    """Tests for grouped commands."""

    def test_order(self):
        """Test that undo runs in reverse order."""
        log = []
        cmd = CompositeCommand(
            [RecordingCommand("a", log), RecordingCommand("b", log)], "Both"
        )

        cmd.execute()
        cmd.undo()

        assert log == ["do a", "do b", "undo b", "undo a"]
        assert cmd.description == "Both"
        assert len(cmd.commands) == 2


class TestUndoRedoManager:
    """Tests for the history stacks."""

    def test_initial_state(self, qapp):
        manager = UndoRedoManager()

        assert not manager.can_undo()
        assert not manager.can_redo()
        assert manager.undo() is False
        assert manager.redo() is False

    def test_execute_undo_redo(self, qapp):
        log = []
        manager = UndoRedoManager()

        manager.execute(RecordingCommand("a", log))
        assert manager.can_undo()
        assert manager.undo_description() == "a"

        assert manager.undo() is True
        assert manager.can_redo()
        assert manager.redo_description() == "a"

        assert manager.redo() is True
        assert log == ["do a", "undo a", "do a"]

    def test_new_command_clears_redo(self, qapp):
        """Test that redo history is discarded by a new mutation."""
        log = []
        manager = UndoRedoManager()
        manager.execute(RecordingCommand("a", log))
        manager.undo()

        manager.execute(RecordingCommand("b", log))

        assert not manager.can_redo()
        assert manager.undo_count == 1

    def test_max_history(self, qapp):
        """Test that the oldest entries are dropped."""
        log = []
        manager = UndoRedoManager(max_history=2)
        for name in "abc":
            manager.execute(RecordingCommand(name, log))

        assert manager.undo_count == 2
        assert [d for _, d, _ in manager.get_history()] == ["b", "c"]

    def test_set_max_history_trims(self, qapp):
        log = []
        manager = UndoRedoManager()
        for name in "abcd":
            manager.execute(RecordingCommand(name, log))

        manager.set_max_history(1)

        assert manager.undo_count == 1
        assert manager.undo_description() == "d"

    def test_max_history_at_least_one(self, qapp):
        assert UndoRedoManager(max_history=0).max_history == 1

    def test_undo_to_and_redo_to(self, qapp):
        log = []
        manager = UndoRedoManager()
        for name in "abc":
            manager.execute(RecordingCommand(name, log))

        assert manager.undo_to(2) is True
        assert manager.undo_count == 1
        assert manager.redo_count == 2

        assert manager.redo_to(5) is True
        assert manager.undo_count == 3

    def test_get_history(self, qapp):
        """Test history order: undo entries oldest first, then redo entries next first."""
        log = []
        manager = UndoRedoManager()
        for name in "abc":
            manager.execute(RecordingCommand(name, log))
        manager.undo_to(2)

        assert manager.get_history() == [
            (0, "a", True),
            (1, "b", False),
            (0, "c", False),
        ]

    def test_state_changed_emitted(self, qapp):
        log = []
        emitted = []
        manager = UndoRedoManager()
        manager.state_changed.connect(lambda: emitted.append(1))

        manager.execute(RecordingCommand("a", log))
        manager.undo()
        manager.redo()
        manager.clear()

        assert len(emitted) == 4
        assert not manager.can_undo()
