"""Business logic: the session, forum operations and result aggregation.

Top of the DAG. Depends on every other layer.

Attributes:
    Session: Identity plus relay connection with observable state.
        See [zapstack.services.session][].
    Forum: Question/answer operations. See [zapstack.services.forum][].
    SessionConfig, ForumConfig, ZapstackConfig: Pydantic configuration.
        See [zapstack.services.configs][].
    tally_votes, total_zaps: Folds over relay result sets.
        See [zapstack.services.aggregation][].
"""

from .aggregation import dedupe, latest_votes, tally_votes, total_zap_msats, total_zaps
from .configs import ForumConfig, SessionConfig, ZapstackConfig
from .forum import Forum
from .session import Session


__all__ = [
    "Forum",
    "ForumConfig",
    "Session",
    "SessionConfig",
    "ZapstackConfig",
    "dedupe",
    "latest_votes",
    "tally_votes",
    "total_zap_msats",
    "total_zaps",
]
