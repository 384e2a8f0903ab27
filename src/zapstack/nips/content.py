"""
Typed payloads carried in event content, and the forum projections.

Builders serialize payload models (``ThreadContent``, ``Profile``) into event
content; the ``parse_*`` functions go the other way, turning a relay event
into a read-side projection (``Thread``, ``Answer``, ``Comment``,
``Profile``). Every parser raises
[MalformedEventError][zapstack.core.exceptions.MalformedEventError] when the
event does not have the expected shape, so the caller decides whether to
skip the event (list queries) or fail the call (get queries).

See Also:
    [zapstack.nips.event_builders][]: Writes these payloads into templates.
    [zapstack.services.forum][]: Applies the parsers to query results.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from zapstack.core.exceptions import MalformedEventError
from zapstack.models.constants import EventKind, Marker, TagName
from zapstack.models.event import Event  # noqa: TC001


class BaseContent(BaseModel):
    """Frozen payload model serialized as compact JSON event content."""

    model_config = ConfigDict(frozen=True)

    def to_content(self) -> str:
        return json.dumps(
            self.model_dump(exclude_none=True), separators=(",", ":"), ensure_ascii=False
        )

    @classmethod
    def from_content(cls, content: str) -> Any:
        """Parse JSON ``content`` into this model.

        Raises:
            MalformedEventError: If ``content`` is not a JSON object matching
                the model.
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise MalformedEventError(f"content is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise MalformedEventError(f"content must be a JSON object, got {type(data).__name__}")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise MalformedEventError(f"content does not match {cls.__name__}: {e}") from e


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


class ThreadContent(BaseContent):
    """Content of thread creation (kind 40) and metadata (kind 41) events."""

    name: str
    about: str = ""
    picture: str = ""


class Profile(BaseContent):
    """Content of a kind 0 profile event.

    Unknown keys written by other clients are preserved, so a profile read
    from a relay and written back does not lose them. Updates replace the
    whole record.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str | None = None
    display_name: str | None = None
    about: str | None = None
    picture: str | None = None
    banner: str | None = None
    website: str | None = None
    nip05: str | None = None
    lud16: str | None = None


# ---------------------------------------------------------------------------
# Projections
# ---------------------------------------------------------------------------


class Thread(BaseModel):
    """A question as shown by the forum: the title and body of a kind 40 event."""

    model_config = ConfigDict(frozen=True)

    id: str
    pubkey: str
    title: str
    message: str
    created_at: int


class Answer(BaseModel):
    """A reply to a thread, with the vote tally filled in by the caller."""

    model_config = ConfigDict(frozen=True)

    id: str
    pubkey: str
    message: str
    created_at: int
    tags: tuple[tuple[str, ...], ...] = ()
    vote: int = 0

    @property
    def thread_id(self) -> str | None:
        for tag in self.tags:
            if len(tag) >= 2 and tag[0] == TagName.EVENT:
                return tag[1]
        return None


class Comment(BaseModel):
    """A comment on a reply."""

    model_config = ConfigDict(frozen=True)

    id: str
    pubkey: str
    message: str
    created_at: int
    parent_id: str | None = Field(default=None)


def _require_kind(event: Event, *kinds: int) -> None:
    if event.kind not in kinds:
        raise MalformedEventError(
            f"event {event.id} has kind {event.kind}, expected one of {list(kinds)}"
        )


def parse_thread(event: Event) -> Thread:
    """Project a kind 40 or 41 event into a [Thread][zapstack.nips.content.Thread].

    Raises:
        MalformedEventError: If the kind is wrong or the content is not a
            thread payload.
    """
    _require_kind(event, EventKind.THREAD_CREATE, EventKind.THREAD_METADATA)
    content = ThreadContent.from_content(event.content)
    return Thread(
        id=event.id,
        pubkey=event.pubkey,
        title=content.name,
        message=content.about,
        created_at=event.created_at,
    )


def parse_profile(event: Event) -> Profile:
    """Project a kind 0 event into a [Profile][zapstack.nips.content.Profile]."""
    _require_kind(event, EventKind.PROFILE)
    return Profile.from_content(event.content)


def parse_answer(event: Event) -> Answer:
    """Project a kind 42 event into an [Answer][zapstack.nips.content.Answer].

    Answer content is plain text. The event is malformed when it carries no
    ``e`` tag referencing its thread.
    """
    _require_kind(event, EventKind.THREAD_MESSAGE)
    if not event.get_tag_values(TagName.EVENT):
        raise MalformedEventError(f"answer {event.id} does not reference a thread")
    return Answer(
        id=event.id,
        pubkey=event.pubkey,
        message=event.content,
        created_at=event.created_at,
        tags=event.tags,
    )


def is_comment(event: Event) -> bool:
    """Return ``True`` for a kind 42 event that comments on a reply.

    Answers reference their thread with a ``root`` marker; comments mark the
    thread reference ``reply`` and reference their parent without a marker.
    """
    if event.kind != EventKind.THREAD_MESSAGE:
        return False
    return any(
        len(tag) >= 4 and tag[0] == TagName.EVENT and tag[3] == Marker.REPLY for tag in event.tags
    )


def parse_comment(event: Event) -> Comment:
    """Project a kind 42 event into a [Comment][zapstack.nips.content.Comment].

    The parent is the first ``e`` tag without a ``reply`` marker; the marked
    one references the thread.
    """
    _require_kind(event, EventKind.THREAD_MESSAGE)
    parent_id = None
    for tag in event.tags:
        if len(tag) >= 2 and tag[0] == TagName.EVENT and (len(tag) < 4 or tag[3] != Marker.REPLY):
            parent_id = tag[1]
            break
    return Comment(
        id=event.id,
        pubkey=event.pubkey,
        message=event.content,
        created_at=event.created_at,
        parent_id=parent_id,
    )
