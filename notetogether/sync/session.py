"""
Note Edit Session.

Transient editing state for one note, new or existing. The session works
on a detached copy of title/body; nothing it does touches the committed
list until the controller commits its candidate.

Deleting goes through a two-step gate: `request_delete()` arms it and
`confirm_delete()` releases the id, so no single action deletes a note.

Usage:
    session = NoteEditSession.start(existing)
    session.update(body="Milk, eggs, bread")
    preview = session.commit_candidate()

    session.request_delete()
    note_id = session.confirm_delete()
"""

from notetogether.core.exceptions import ValidationError
from notetogether.models.note import NoteRecord


class NoteEditSession:
    """Working copy of one note plus the id (if any) it commits against."""

    def __init__(self, existing: NoteRecord | None = None) -> None:
        self._original = existing
        self._title = existing.title if existing is not None else ""
        self._body = existing.body if existing is not None else ""
        self._delete_requested = False

    @classmethod
    def start(cls, existing: NoteRecord | None = None) -> "NoteEditSession":
        """Begin editing `existing`, or a brand-new note when None."""
        return cls(existing)

    @property
    def note_id(self) -> str | None:
        return self._original.id if self._original is not None else None

    @property
    def is_new(self) -> bool:
        return self.note_id is None

    @property
    def title(self) -> str:
        return self._title

    @property
    def body(self) -> str:
        return self._body

    @property
    def original(self) -> NoteRecord | None:
        """The record the session was seeded from (unchanged by edits)."""
        return self._original

    @property
    def is_dirty(self) -> bool:
        """Whether the working copy differs from what the session started with."""
        if self._original is None:
            return bool(self._title or self._body)
        return (self._title, self._body) != (self._original.title, self._original.body)

    @property
    def delete_requested(self) -> bool:
        return self._delete_requested

    def update(self, title: str | None = None, body: str | None = None) -> None:
        """Change the working copy. Arguments left as None keep their value."""
        if title is not None:
            self._title = title
        if body is not None:
            self._body = body

    def commit_candidate(self) -> NoteRecord:
        """The record a save would send. Pure; safe to call repeatedly."""
        return NoteRecord(id=self.note_id, title=self._title, body=self._body)

    def request_delete(self) -> None:
        """First step of the delete gate.

        Raises:
            ValidationError: If the note was never saved
        """
        if self.is_new:
            raise ValidationError("Cannot delete a note that has not been saved")
        self._delete_requested = True

    def cancel_delete(self) -> None:
        self._delete_requested = False

    def confirm_delete(self) -> str:
        """Second step of the delete gate; returns the id to delete.

        Raises:
            ValidationError: If the note was never saved or the gate is not armed
        """
        if self.is_new:
            raise ValidationError("Cannot delete a note that has not been saved")
        if not self._delete_requested:
            raise ValidationError(
                "Delete must be requested before it is confirmed",
                details={"note_id": self.note_id},
            )
        self._delete_requested = False
        return self.note_id

    def __repr__(self) -> str:
        return f"<NoteEditSession(note_id={self.note_id}, dirty={self.is_dirty})>"
