"""
Note Model.

The record exchanged with the remote store: an id plus title/body.
Documents in the store hold only title and body; the id is the
document key and is never duplicated inside the document.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_PREVIEW_LENGTH = 100


class NoteRecord(BaseModel):
    """
    One note's persisted data.

    Records are frozen: edits happen on a NoteEditSession working copy and
    come back as a new record. Two records are the same logical note iff
    their ids match (see `same_note`); `==` compares all fields.
    """

    id: str | None = Field(
        default=None,
        description="Store-assigned document id; None until the store accepts the note",
    )
    title: str = Field(default="", description="Note title")
    body: str = Field(default="", description="Note body")

    model_config = ConfigDict(frozen=True)

    @property
    def is_persisted(self) -> bool:
        """Whether the store has assigned an id to this note."""
        return self.id is not None

    def same_note(self, other: "NoteRecord") -> bool:
        """Identity check: same id, regardless of title/body."""
        return self.id is not None and self.id == other.id

    def preview(self, limit: int = DEFAULT_PREVIEW_LENGTH) -> str:
        """Body truncated to at most `limit` characters for display."""
        return self.body[:limit]

    def to_document(self) -> dict[str, str]:
        """Fields stored in the remote document (no id)."""
        return {"title": self.title, "body": self.body}

    @classmethod
    def from_document(cls, note_id: str, data: dict[str, Any] | None) -> "NoteRecord":
        """Build a record from a document key and its stored fields.

        Missing fields fall back to empty strings, matching the defaults
        used when the note was created.
        """
        data = data or {}
        return cls(
            id=note_id,
            title=data.get("title") or "",
            body=data.get("body") or "",
        )

    def __repr__(self) -> str:
        return f"<NoteRecord(id={self.id}, title={self.title!r})>"
