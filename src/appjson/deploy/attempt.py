"""Per-attempt deployment state machine.

Staging, commit and the lifecycle scripts run as separate invocations.
``AttemptTracker`` persists the last completed phase of each attempt so
every entry point can check it runs in order:

    staged ──▶ committed ──▶ pre-released ──▶ released ──▶ post-deployed
                                   ▲   │          ▲  │
                                   └───┘          └──┘  (retries)

Each token has its own record, ``app-json/<app>/attempt.<token>``, so
concurrent or retried attempts of one app never see each other's phase.
``pre-release`` may start from any state; ``release`` needs
``pre-released`` (or a retried ``released``) for the same token.
``post-deploy`` fires on every restart as well as at the end of a deploy,
so it is only checked when its token has a record; that attempt must then
have reached ``released``.

Records of other attempts are pruned when a new attempt stages, once they
are finished or older than ``stale_after``.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum

from pydantic import BaseModel, Field, ValidationError

from appjson.core.errors import InvalidTransitionError
from appjson.core.logging import get_logger
from appjson.deploy.paths import NAMESPACE, AttemptToken
from appjson.store.properties import PropertyStore

logger = get_logger(__name__)

ATTEMPT_PREFIX = "attempt."
STALE_AFTER = timedelta(days=1)


class AttemptPhase(str, Enum):
    STAGED = "staged"
    COMMITTED = "committed"
    PRE_RELEASED = "pre-released"
    RELEASED = "released"
    POST_DEPLOYED = "post-deployed"


# Phase → phases the same attempt must have reached before it.
_REQUIRES: dict[AttemptPhase, frozenset[AttemptPhase]] = {
    AttemptPhase.RELEASED: frozenset({AttemptPhase.PRE_RELEASED, AttemptPhase.RELEASED}),
    AttemptPhase.POST_DEPLOYED: frozenset({AttemptPhase.RELEASED, AttemptPhase.POST_DEPLOYED}),
}


class AttemptRecord(BaseModel):
    token: str
    phase: AttemptPhase
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def attempt_key(token: AttemptToken) -> str:
    return f"{ATTEMPT_PREFIX}{token.value}"


class AttemptTracker:
    """Reads and advances the recorded phase of each attempt of an app."""

    def __init__(self, store: PropertyStore, stale_after: timedelta = STALE_AFTER) -> None:
        self.store = store
        self.stale_after = stale_after

    def current(self, app: str, token: AttemptToken) -> AttemptRecord | None:
        raw = self.store.get(NAMESPACE, app, attempt_key(token))
        if not raw:
            return None
        try:
            return AttemptRecord.model_validate_json(raw)
        except ValidationError:
            logger.warning("attempt.record_unreadable", app=app, attempt=token.value, raw=raw)
            return None

    def check(self, app: str, token: AttemptToken, phase: AttemptPhase) -> None:
        """Raise :class:`InvalidTransitionError` if ``phase`` may not run now."""
        required = _REQUIRES.get(phase)
        if required is None:
            return
        record = self.current(app, token)
        if phase is AttemptPhase.POST_DEPLOYED and record is None:
            return
        if record is None or record.phase not in required:
            seen = record.phase.value if record else "nothing"
            raise InvalidTransitionError(
                f"Cannot run {phase.value} for {app}: attempt {token.value} expects "
                f"{' or '.join(sorted(p.value for p in required))}, found {seen}"
            ).with_context(app=app, attempt=token.value, phase=phase.value)

    def advance(self, app: str, token: AttemptToken, phase: AttemptPhase) -> None:
        record = AttemptRecord(token=token.value, phase=phase)
        self.store.set(NAMESPACE, app, attempt_key(token), record.model_dump_json())
        logger.debug("attempt.advanced", app=app, attempt=token.value, phase=phase.value)

    def prune(self, app: str, keep: AttemptToken) -> list[str]:
        """Drop finished or stale records of attempts other than ``keep``.

        Returns the pruned tokens. Unreadable records are dropped too.
        """
        cutoff = datetime.now(timezone.utc) - self.stale_after
        pruned: list[str] = []
        for key, raw in self.store.all(NAMESPACE, app).items():
            if not key.startswith(ATTEMPT_PREFIX) or key == attempt_key(keep):
                continue
            try:
                record = AttemptRecord.model_validate_json(raw)
            except ValidationError:
                record = None
            if record is None or record.phase is AttemptPhase.POST_DEPLOYED or record.updated_at < cutoff:
                self.store.delete(NAMESPACE, app, key)
                pruned.append(key.removeprefix(ATTEMPT_PREFIX))
        if pruned:
            logger.debug("attempt.pruned", app=app, attempts=pruned)
        return pruned
