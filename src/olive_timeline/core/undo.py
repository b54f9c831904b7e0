import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Sequence

from olive_timeline.config import get_settings
from olive_timeline.core.errors import CrossDocumentCommand, InvalidCommandTransition
from olive_timeline.core.node import Project

logger = logging.getLogger(__name__)


class UndoCommand:
    """
    Base class for reversible edits.

    A command is either unapplied or applied, and ``redo_internal`` /
    ``undo_internal`` move it between the two. Calling either out of turn
    raises ``InvalidCommandTransition``; the state is never toggled silently.

    Subclasses implement ``_redo`` and ``_undo``. Each must change the model
    in a single step, and on failure must leave it untouched.
    """

    def __init__(self, description: str = ""):
        self.description = description or self.__class__.__name__
        self._applied = False

    @property
    def applied(self) -> bool:
        return self._applied

    def redo_internal(self) -> None:
        if self._applied:
            raise InvalidCommandTransition(f"'{self.description}' is already applied")
        self._redo()
        self._applied = True

    def undo_internal(self) -> None:
        if not self._applied:
            raise InvalidCommandTransition(f"'{self.description}' is not applied")
        self._undo()
        self._applied = False

    def get_relevant_project(self) -> Optional[Project]:
        raise NotImplementedError("Subclasses must implement get_relevant_project()")

    def _redo(self) -> None:
        raise NotImplementedError("Subclasses must implement _redo()")

    def _undo(self) -> None:
        raise NotImplementedError("Subclasses must implement _undo()")

    def __repr__(self) -> str:
        state = "applied" if self._applied else "unapplied"
        return f"<{self.__class__.__name__} {self.description!r} {state}>"


class MultiUndoCommand(UndoCommand):
    """Ordered group of commands forming one user-visible action.

    Children are redone in insertion order and undone in reverse. If a child
    fails part way, the children already handled are reverted and the error
    is re-raised, so the group stays in its previous state.
    """

    def __init__(self, description: str = "", children: Sequence[UndoCommand] = ()):
        super().__init__(description)
        self._children: List[UndoCommand] = []
        for child in children:
            self.add_child(child)

    @classmethod
    def adopt(cls, description: str, children: Sequence[UndoCommand]) -> "MultiUndoCommand":
        """Wrap commands that were already applied one by one into an applied group."""
        unapplied = [c for c in children if not c.applied]
        if unapplied:
            raise InvalidCommandTransition(f"Cannot adopt unapplied commands: {unapplied!r}")
        group = cls(description)
        group._children = list(children)
        group._applied = True
        return group

    @property
    def children(self) -> List[UndoCommand]:
        return list(self._children)

    def add_child(self, command: UndoCommand) -> None:
        if self._applied:
            raise InvalidCommandTransition(f"Cannot add to applied group '{self.description}'")
        if command.applied:
            raise InvalidCommandTransition(f"Cannot add applied command '{command.description}' to a group")
        self._children.append(command)

    def __len__(self) -> int:
        return len(self._children)

    def get_relevant_project(self) -> Optional[Project]:
        owners = [child.get_relevant_project() for child in self._children]
        projects = {id(owner): owner for owner in owners}
        if len(projects) > 1:
            names = sorted(repr(p) for p in projects.values())
            raise CrossDocumentCommand(f"Group '{self.description}' mixes projects: {', '.join(names)}")
        return next(iter(projects.values()), None)

    def _redo(self) -> None:
        done: List[UndoCommand] = []
        try:
            for child in self._children:
                child.redo_internal()
                done.append(child)
        except Exception:
            logger.warning("Rolling back %d commands of '%s' after failed redo", len(done), self.description)
            for child in reversed(done):
                child.undo_internal()
            raise

    def _undo(self) -> None:
        done: List[UndoCommand] = []
        try:
            for child in reversed(self._children):
                child.undo_internal()
                done.append(child)
        except Exception:
            logger.warning("Re-applying %d commands of '%s' after failed undo", len(done), self.description)
            for child in reversed(done):
                child.redo_internal()
            raise


class CommandStack:
    """
    Linear undo history for one project.

    Commands are applied before they are pushed (``execute`` does both).
    Pushing after an undo discards the redo history.

    Usage:
        stack = CommandStack(project)
        stack.execute(SetStandardValueCommand(opacity, 0.5))
        with stack.transaction("Move point"):
            stack.execute(SetStandardValueCommand(x, 10))
            stack.execute(SetStandardValueCommand(y, 20))
        stack.undo()
    """

    def __init__(self, project: Project, limit: Optional[int] = None):
        self.project = project
        self.limit = get_settings().undo_limit if limit is None else limit
        self._done: List[UndoCommand] = []
        self._undone: List[UndoCommand] = []
        self._recording: List[List[UndoCommand]] = []

    def _check_project(self, command: UndoCommand) -> None:
        owner = command.get_relevant_project()
        if owner is None and isinstance(command, MultiUndoCommand) and not len(command):
            # An empty group touches no project and may go on any stack.
            return
        if owner is not self.project:
            raise CrossDocumentCommand(
                f"Command '{command.description}' belongs to {owner!r}, not {self.project!r}"
            )

    def push(self, command: UndoCommand) -> None:
        if not command.applied:
            raise InvalidCommandTransition(f"Command '{command.description}' must be applied before push")
        self._check_project(command)
        if self._recording:
            self._recording[-1].append(command)
            return
        self._done.append(command)
        self._undone.clear()
        if self.limit and len(self._done) > self.limit:
            del self._done[: len(self._done) - self.limit]
        logger.debug("Pushed '%s' (undo depth %d)", command.description, len(self._done))

    def execute(self, command: UndoCommand) -> UndoCommand:
        """Apply ``command`` and push it."""
        self._check_project(command)
        command.redo_internal()
        try:
            self.push(command)
        except Exception:
            command.undo_internal()
            raise
        return command

    def can_undo(self) -> bool:
        return bool(self._done) and not self._recording

    def can_redo(self) -> bool:
        return bool(self._undone) and not self._recording

    def undo(self) -> bool:
        if not self.can_undo():
            return False
        command = self._done[-1]
        command.undo_internal()
        self._undone.append(self._done.pop())
        logger.debug("Undid '%s'", command.description)
        return True

    def redo(self) -> bool:
        if not self.can_redo():
            return False
        command = self._undone[-1]
        command.redo_internal()
        self._done.append(self._undone.pop())
        logger.debug("Redid '%s'", command.description)
        return True

    def undo_text(self) -> Optional[str]:
        return self._done[-1].description if self._done else None

    def redo_text(self) -> Optional[str]:
        return self._undone[-1].description if self._undone else None

    @property
    def index(self) -> int:
        return len(self._done)

    def count(self) -> int:
        return len(self._done) + len(self._undone)

    def clear(self) -> None:
        if self._recording:
            raise InvalidCommandTransition("Cannot clear history inside a transaction")
        self._done.clear()
        self._undone.clear()

    @contextmanager
    def transaction(self, description: str = "Transaction") -> Iterator["CommandStack"]:
        """Collect every command executed inside the block into one group.

        On an exception the collected commands are undone in reverse and the
        exception propagates; nothing is pushed.
        """
        self._recording.append([])
        try:
            yield self
        except Exception:
            collected = self._recording.pop()
            logger.warning("Rolling back transaction '%s' (%d commands)", description, len(collected))
            for command in reversed(collected):
                command.undo_internal()
            raise
        collected = self._recording.pop()
        if collected:
            self.push(MultiUndoCommand.adopt(description, collected))
