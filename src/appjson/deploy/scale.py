"""Process/scale reconciliation after the release script.

The first deploy of an app seeds its process scale from the document's
``formation`` section; later deploys keep whatever scale the operator
has set since. The scale is stored as ``type=quantity`` pairs under
``ps/<app>/scale``.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from appjson.core.errors import PropertyStoreError, ScaleError
from appjson.core.logging import get_logger
from appjson.deploy.document import DocumentStore
from appjson.store.properties import PropertyStore

logger = get_logger(__name__)

SCALE_NAMESPACE = "ps"
SCALE_KEY = "scale"


@runtime_checkable
class ScaleReconciler(Protocol):
    def reconcile(self, app: str, image: str) -> None: ...


def format_scale(quantities: dict[str, int]) -> str:
    return ",".join(f"{proc}={qty}" for proc, qty in sorted(quantities.items()))


def parse_scale(value: str) -> dict[str, int]:
    """Inverse of :func:`format_scale`; raises ``ScaleError`` on bad pairs."""
    quantities: dict[str, int] = {}
    for pair in filter(None, (p.strip() for p in value.split(","))):
        proc, sep, qty = pair.partition("=")
        if not sep or not proc or not qty.isdigit():
            raise ScaleError(f"Invalid scale entry: {pair!r}")
        quantities[proc] = int(qty)
    return quantities


class FormationScaler:
    """Seeds ``ps/<app>/scale`` from the committed document's formation."""

    def __init__(self, store: PropertyStore, documents: DocumentStore) -> None:
        self.store = store
        self.documents = documents

    def reconcile(self, app: str, image: str) -> None:
        try:
            existing = self.store.get(SCALE_NAMESPACE, app, SCALE_KEY)
        except PropertyStoreError as exc:
            raise ScaleError(f"Unable to read scale for {app}: {exc}", cause=exc).with_context(app=app) from exc
        if existing:
            parse_scale(existing)
            logger.debug("scale.kept", app=app, scale=existing)
            return

        formation = self.documents.load(app).formation
        quantities = {proc: f.quantity for proc, f in formation.items() if f.quantity is not None}
        if any(qty < 0 for qty in quantities.values()):
            raise ScaleError(f"Negative process quantity in formation for {app}").with_context(app=app)
        if not quantities:
            return

        value = format_scale(quantities)
        try:
            self.store.set(SCALE_NAMESPACE, app, SCALE_KEY, value)
        except PropertyStoreError as exc:
            raise ScaleError(f"Unable to set scale for {app}: {exc}", cause=exc).with_context(app=app) from exc
        logger.info("scale.seeded", app=app, image=image, scale=value)
