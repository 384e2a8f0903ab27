"""Forum operations: questions, answers, comments, votes, zaps and profiles.

[Forum][zapstack.services.forum.Forum] is the surface the UI calls. Every
operation returns a value or raises a typed
[ZapstackError][zapstack.core.exceptions.ZapstackError]:

* list operations skip events whose content does not parse, and log them;
* get operations raise [NotFoundError][zapstack.core.exceptions.NotFoundError]
  for an empty result and
  [MalformedEventError][zapstack.core.exceptions.MalformedEventError] for an
  unparseable one;
* write operations return the accepted event id or raise
  [PublishRejectedError][zapstack.core.exceptions.PublishRejectedError].

All forum traffic is scoped by the namespace tag ``["t", namespace]``,
except zap receipts, which are published by wallets that do not know it.

Examples:
    ```python
    async with Session(keys, SessionConfig()) as session:
        forum = Forum(session, ForumConfig())
        thread_id = await forum.create_or_update_question("Q1", "body")
        thread = await forum.get_question(thread_id)
        await forum.vote(thread_id, thread.pubkey, "up")
        await forum.get_vote_result(thread_id)   # 1
    ```
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from zapstack.core.exceptions import InvalidInputError, MalformedEventError, RelayTimeoutError
from zapstack.core.logger import Logger
from zapstack.models.constants import EventKind, TagName
from zapstack.models.filter import Filter
from zapstack.nips.content import (
    Answer,
    Comment,
    Profile,
    Thread,
    is_comment,
    parse_answer,
    parse_comment,
    parse_profile,
    parse_thread,
)
from zapstack.nips.event_builders import (
    build_comment,
    build_deletion,
    build_profile,
    build_reply,
    build_thread,
    build_vote,
    build_zap_request,
    encode_zap_request,
)
from zapstack.nips.nip57 import receipt_invoice

from .aggregation import dedupe, tally_votes, total_zaps
from .configs import ForumConfig


if TYPE_CHECKING:
    from zapstack.models.constants import VoteDirection
    from zapstack.models.event import Event

    from .session import Session


class Forum:
    """Question/answer forum operations over a [Session][zapstack.services.session.Session].

    Args:
        session: Connected session providing identity and relay access.
        config: Namespace and zap wait settings.
    """

    def __init__(self, session: Session, config: ForumConfig | None = None) -> None:
        self._session = session
        self._config = config or ForumConfig()
        self._logger = Logger("forum").bind(namespace=self._config.namespace)

    @property
    def config(self) -> ForumConfig:
        return self._config

    @property
    def namespace(self) -> str:
        return self._config.namespace

    # -- Filters -------------------------------------------------------------

    def _scoped(self, kind: int, **tags: list[str]) -> Filter:
        return Filter(kinds=[kind], tags={TagName.THREAD: [self.namespace], **tags})

    @staticmethod
    def _lookup(
        kind: int, *, ids: list[str] | None = None, authors: list[str] | None = None
    ) -> Filter:
        try:
            return Filter(kinds=[kind], ids=ids, authors=authors, limit=1)
        except (TypeError, ValueError) as e:
            raise InvalidInputError(str(e)) from e

    # =========================================================================
    # Questions
    # =========================================================================

    async def create_or_update_question(
        self,
        name: str,
        about: str,
        picture: str = "",
        question_id: str | None = None,
    ) -> str:
        """Publish a new thread, or metadata for ``question_id``; return the event id."""
        template = build_thread(
            name,
            about,
            picture,
            namespace=self.namespace,
            thread_id=question_id,
            relay_url=self._session.relay_url,
        )
        event_id = await self._session.publish(template)
        self._logger.info("question_published", event_id=event_id, update=question_id is not None)
        return event_id

    async def list_questions(self) -> list[Thread]:
        """Return every thread in the namespace, skipping malformed ones."""
        events = await self._session.transport.list([self._scoped(EventKind.THREAD_CREATE)])
        threads: list[Thread] = []
        for event in dedupe(events):
            try:
                threads.append(parse_thread(event))
            except MalformedEventError as e:
                self._logger.debug("malformed_event_skipped", event_id=event.id, error=str(e))
        return threads

    async def get_question(self, question_id: str) -> Thread:
        """Return the thread with id ``question_id``.

        Raises:
            InvalidInputError: If ``question_id`` is not a 64-char hex id.
            NotFoundError: If the relay has no such thread.
            MalformedEventError: If its content is not a thread payload.
        """
        event = await self._session.transport.get_one(
            self._lookup(EventKind.THREAD_CREATE, ids=[question_id])
        )
        return parse_thread(event)

    # =========================================================================
    # Answers and comments
    # =========================================================================

    async def create_answer(self, thread_id: str, message: str) -> str:
        template = build_reply(
            thread_id, message, namespace=self.namespace, relay_url=self._session.relay_url
        )
        return await self._session.publish(template)

    async def create_comment(
        self,
        thread_id: str,
        message: str,
        parent_id: str,
        parent_pubkey: str,
    ) -> str:
        template = build_comment(
            thread_id,
            parent_id,
            parent_pubkey,
            message,
            namespace=self.namespace,
            relay_url=self._session.relay_url,
        )
        return await self._session.publish(template)

    async def list_answers(self, thread_id: str) -> list[Answer]:
        """Return the replies to ``thread_id``.

        Comments reference the thread as well; their ``reply``-marked thread
        reference tells them apart and they are left out.
        """
        events = await self._session.transport.list(
            [self._scoped(EventKind.THREAD_MESSAGE, e=[thread_id])]
        )
        answers: list[Answer] = []
        for event in dedupe(events):
            if is_comment(event):
                continue
            try:
                answers.append(parse_answer(event))
            except MalformedEventError as e:
                self._logger.debug("malformed_event_skipped", event_id=event.id, error=str(e))
        return answers

    async def list_comments(self, post_id: str) -> list[Comment]:
        """Return the comments whose parent is ``post_id``.

        The relay returns every kind 42 event referencing ``post_id``, which
        for a thread id includes all comments in the thread; only those whose
        parent reference is ``post_id`` are kept.
        """
        events = await self._session.transport.list(
            [self._scoped(EventKind.THREAD_MESSAGE, e=[post_id])]
        )
        comments = [parse_comment(event) for event in dedupe(events) if is_comment(event)]
        return [comment for comment in comments if comment.parent_id == post_id]

    async def get_answer(self, answer_id: str) -> Answer:
        """Return the reply with id ``answer_id``.

        Raises:
            InvalidInputError: If ``answer_id`` is not a 64-char hex id.
            NotFoundError: If the relay has no such event.
            MalformedEventError: If it does not reference a thread.
        """
        event = await self._session.transport.get_one(
            self._lookup(EventKind.THREAD_MESSAGE, ids=[answer_id])
        )
        return parse_answer(event)

    # =========================================================================
    # Votes
    # =========================================================================

    async def vote(self, target_id: str, target_pubkey: str, direction: VoteDirection | str) -> str:
        """Publish an up or down vote on ``target_id``.

        Raises:
            InvalidInputError: If ``direction`` is not ``up`` or ``down``.
        """
        template = build_vote(target_id, target_pubkey, direction, namespace=self.namespace)
        return await self._session.publish(template)

    async def get_vote_result(self, target_id: str) -> int:
        """Return the net vote score of ``target_id``."""
        events = await self._session.transport.list(
            [self._scoped(EventKind.REACTION, e=[target_id])]
        )
        return tally_votes(events)

    # =========================================================================
    # Zaps
    # =========================================================================

    def get_zap_request(self, target_id: str, receiver_pubkey: str, amount_msats: int) -> str:
        """Return a signed, URL-encoded zap request for a payment node.

        The request is never published to the relay.

        Raises:
            InvalidInputError: If ``amount_msats`` is not a positive integer.
        """
        template = build_zap_request(
            target_id, receiver_pubkey, amount_msats, self._session.relay_url
        )
        return encode_zap_request(self._session.sign(template))

    async def get_zaps(self, target_id: str) -> float:
        """Return the total zapped to ``target_id``, in sats."""
        receipts = await self._session.transport.list(
            [Filter(kinds=[EventKind.ZAP_RECEIPT], tags={TagName.EVENT: [target_id]})]
        )
        return total_zaps(receipts)

    async def wait_for_zap(
        self,
        target_id: str,
        invoice: str,
        timeout: float | None = None,  # noqa: ASYNC109
    ) -> Event:
        """Wait for the receipt paying ``invoice`` on ``target_id`` and return it.

        The subscription is closed when a matching receipt arrives, when the
        wait times out, and when the caller is cancelled.

        Args:
            target_id: Zapped event id.
            invoice: Lightning invoice returned by the payment node.
            timeout: Seconds to wait; defaults to ``zap_wait_timeout``.

        Raises:
            RelayTimeoutError: If no matching receipt arrives in time.
            TransportError: If the relay closes the subscription or the
                connection is lost.
        """
        if timeout is None:
            timeout = self._config.zap_wait_timeout
        found: asyncio.Future[Event] = asyncio.get_running_loop().create_future()

        def on_event(event: Event) -> None:
            if not found.done() and receipt_invoice(event) == invoice:
                found.set_result(event)

        def on_error(error: Exception) -> None:
            if not found.done():
                found.set_exception(error)

        subscription = await self._session.transport.subscribe(
            [Filter(kinds=[EventKind.ZAP_RECEIPT], tags={TagName.EVENT: [target_id]})],
            on_event,
            on_error,
        )
        try:
            receipt = await asyncio.wait_for(found, timeout=timeout)
        except TimeoutError:
            raise RelayTimeoutError(f"no zap receipt for {target_id} within {timeout}s") from None
        finally:
            await subscription.close()
        self._logger.info("zap_received", target_id=target_id, receipt_id=receipt.id)
        return receipt

    # =========================================================================
    # Deletion and profiles
    # =========================================================================

    async def delete_event(self, event_id: str) -> str:
        """Publish a deletion request for ``event_id``; return the request's id."""
        return await self._session.publish(build_deletion(event_id, namespace=self.namespace))

    async def get_profile(self, pubkey: str) -> Profile:
        """Return the latest profile published by ``pubkey``.

        Raises:
            InvalidInputError: If ``pubkey`` is not a valid public key.
            NotFoundError: If ``pubkey`` has no profile on the relay.
            MalformedEventError: If the profile content is not valid JSON.
        """
        event = await self._session.transport.get_one(
            self._lookup(EventKind.PROFILE, authors=[pubkey])
        )
        return parse_profile(event)

    async def update_profile(self, profile: Profile) -> str:
        """Publish ``profile`` as the session identity's full profile."""
        return await self._session.publish(build_profile(profile, namespace=self.namespace))
