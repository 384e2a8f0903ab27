"""CLI entry point for the zapstack forum client.

Each subcommand opens a session to the configured relay, runs one forum
operation and prints the result as JSON on stdout. Logs go to stderr.

Examples:
    ```bash
    python -m zapstack keygen
    PRIVATE_KEY=... python -m zapstack ask "Q1" "body"
    python -m zapstack threads --relay wss://relay.damus.io
    python -m zapstack tally <event-id> --log-level DEBUG
    ```
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable, Sequence
from pathlib import Path
from typing import Any

from nostr_sdk import Keys
from pydantic import BaseModel

from zapstack.core.exceptions import ZapstackError
from zapstack.core.logger import Logger, StructuredFormatter
from zapstack.core.yaml import load_yaml
from zapstack.models.event import Event
from zapstack.nips.content import Profile
from zapstack.services.configs import ZapstackConfig
from zapstack.services.forum import Forum
from zapstack.services.session import Session
from zapstack.utils.keys import KeyManager, KeysConfig, StaticKeyManager, generate_private_key


DEFAULT_CONFIG = Path("config") / "zapstack.yaml"

logger = Logger("cli")

Handler = Callable[[Forum, Session, argparse.Namespace], Awaitable[Any]]


# =============================================================================
# Command handlers
# =============================================================================


async def _threads(forum: Forum, _session: Session, _args: argparse.Namespace) -> Any:
    return await forum.list_questions()


async def _thread(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return await forum.get_question(args.id)


async def _answers(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    answers = await forum.list_answers(args.id)
    return [
        answer.model_copy(update={"vote": await forum.get_vote_result(answer.id)})
        for answer in answers
    ]


async def _comments(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return await forum.list_comments(args.id)


async def _ask(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    event_id = await forum.create_or_update_question(
        args.name, args.about, args.picture, question_id=args.update
    )
    return {"id": event_id}


async def _answer(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return {"id": await forum.create_answer(args.thread, args.message)}


async def _comment(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    event_id = await forum.create_comment(args.thread, args.message, args.parent, args.pubkey)
    return {"id": event_id}


async def _vote(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return {"id": await forum.vote(args.id, args.pubkey, args.direction)}


async def _tally(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return {"id": args.id, "vote": await forum.get_vote_result(args.id)}


async def _zaps(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return {"id": args.id, "sats": await forum.get_zaps(args.id)}


async def _zap_request(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return {"zap_request": forum.get_zap_request(args.id, args.pubkey, args.msats)}


async def _wait_zap(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return await forum.wait_for_zap(args.id, args.invoice, timeout=args.timeout)


async def _delete(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    return {"id": await forum.delete_event(args.id)}


async def _profile(forum: Forum, session: Session, args: argparse.Namespace) -> Any:
    if args.pubkey is None and session.logged_in_user.has_value:
        return session.logged_in_user.value
    return await forum.get_profile(args.pubkey or session.public_key)


async def _set_profile(forum: Forum, _session: Session, args: argparse.Namespace) -> Any:
    fields = {key: getattr(args, key) for key in ("name", "about", "picture", "lud16")}
    profile = Profile(**{key: value for key, value in fields.items() if value is not None})
    return {"id": await forum.update_profile(profile)}


HANDLERS: dict[str, Handler] = {
    "threads": _threads,
    "thread": _thread,
    "answers": _answers,
    "comments": _comments,
    "ask": _ask,
    "answer": _answer,
    "comment": _comment,
    "vote": _vote,
    "tally": _tally,
    "zaps": _zaps,
    "zap-request": _zap_request,
    "wait-zap": _wait_zap,
    "delete": _delete,
    "profile": _profile,
    "set-profile": _set_profile,
}

# Commands that sign with the configured identity; the others fall back to
# an ephemeral key when none is configured.
SIGNING_COMMANDS = frozenset(
    {"ask", "answer", "comment", "vote", "zap-request", "delete", "set-profile"}
)


# =============================================================================
# Argument parsing
# =============================================================================


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(prog="zapstack", description="Zapstack forum client")
    parser.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG,
        help=f"Config path (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument("--relay", help="Relay URL (overrides session.relay_url)")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Log level (default: WARNING)",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("keygen", help="Generate a new private key")
    sub.add_parser("threads", help="List questions")
    for name, help_text in (
        ("thread", "Show a question"),
        ("answers", "List answers to a question, with votes"),
        ("comments", "List comments on an answer"),
        ("tally", "Show the vote score of an event"),
        ("zaps", "Show the sats zapped to an event"),
        ("delete", "Request deletion of an event"),
    ):
        sub.add_parser(name, help=help_text).add_argument("id")

    ask = sub.add_parser("ask", help="Create or update a question")
    ask.add_argument("name")
    ask.add_argument("about")
    ask.add_argument("--picture", default="")
    ask.add_argument("--update", metavar="ID", help="Question id to update")

    answer = sub.add_parser("answer", help="Answer a question")
    answer.add_argument("thread")
    answer.add_argument("message")

    comment = sub.add_parser("comment", help="Comment on an answer")
    comment.add_argument("thread")
    comment.add_argument("parent")
    comment.add_argument("pubkey")
    comment.add_argument("message")

    vote = sub.add_parser("vote", help="Vote on an event")
    vote.add_argument("id")
    vote.add_argument("pubkey")
    vote.add_argument("direction", choices=["up", "down"])

    zap_request = sub.add_parser("zap-request", help="Build a zap request for a payment node")
    zap_request.add_argument("id")
    zap_request.add_argument("pubkey")
    zap_request.add_argument("msats", type=int)

    wait_zap = sub.add_parser("wait-zap", help="Wait for the receipt of an invoice")
    wait_zap.add_argument("id")
    wait_zap.add_argument("invoice")
    wait_zap.add_argument("--timeout", type=float, default=None)

    profile = sub.add_parser("profile", help="Show a profile (default: your own)")
    profile.add_argument("pubkey", nargs="?")

    set_profile = sub.add_parser("set-profile", help="Replace your profile")
    for field in ("name", "about", "picture", "lud16"):
        set_profile.add_argument(f"--{field}")

    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    """Configure the root logger with structured formatting on stderr.

    Installs a ``StructuredFormatter`` on the root handler so that all
    log output -- from both ``Logger`` (with ``structured_kv`` extra) and
    plain ``logging.getLogger()`` calls in models/nips/utils -- is unified as
    ``level name message key=value ...``.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(StructuredFormatter())
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level))


# =============================================================================
# Runner
# =============================================================================


def _load_config(path: Path, relay: str | None) -> ZapstackConfig:
    """Load the config file, falling back to defaults if it does not exist."""
    if path.exists():
        data = load_yaml(path)
    else:
        logger.debug("config_not_found", path=str(path))
        data = {}
    if relay:
        data.setdefault("session", {})["relay_url"] = relay
    return ZapstackConfig.from_dict(data)


def _key_manager(config: ZapstackConfig, *, required: bool) -> KeyManager:
    try:
        return KeysConfig(keys_env=config.keys_env)
    except ZapstackError:
        if required:
            raise
        logger.debug("ephemeral_key_used", keys_env=config.keys_env)
        return StaticKeyManager(Keys.generate())


def _build_session(config: ZapstackConfig, key_manager: KeyManager) -> Session:
    return Session(key_manager, config.session)


def _to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(exclude_none=True)
    if isinstance(value, Event):
        return value.to_dict()
    if isinstance(value, list):
        return [_to_jsonable(item) for item in value]
    return value


async def run_command(args: argparse.Namespace) -> Any:
    """Run the parsed command and return its JSON-serializable result."""
    if args.command == "keygen":
        private_key = generate_private_key()
        manager = StaticKeyManager.from_private_key(private_key)
        return {"private_key": private_key, "public_key": manager.public_key()}

    config = _load_config(args.config, args.relay)
    key_manager = _key_manager(config, required=args.command in SIGNING_COMMANDS)
    session = _build_session(config, key_manager)
    forum = Forum(session, config.forum)
    async with session:
        return _to_jsonable(await HANDLERS[args.command](forum, session, args))


async def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point: parse args, run one command, print JSON."""
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        result = await run_command(args)
    except ZapstackError as e:
        logger.error("command_failed", command=args.command, error=str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130

    print(json.dumps(result, indent=2, ensure_ascii=False))  # noqa: T201
    return 0


def cli() -> None:
    """Synchronous entry point for console_scripts."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
