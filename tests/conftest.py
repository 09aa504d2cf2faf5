from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from subsync.adapters.memory import InMemoryEventRecorder, InMemoryResourceStore, InMemoryTracker
from subsync.adapters.sqlalchemy import SqlAlchemyResourceStore, build_sqlalchemy_store
from subsync.app import build_reconciler
from subsync.config import FeatureFlags, ResolverConfig
from subsync.domain.reconciliation import SubscriptionReconciler  # noqa: TC001

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Iterator


@pytest.fixture
def store() -> InMemoryResourceStore:
    return InMemoryResourceStore()


@pytest.fixture
def tracker() -> InMemoryTracker:
    return InMemoryTracker()


@pytest.fixture
def recorder() -> InMemoryEventRecorder:
    return InMemoryEventRecorder()


@pytest.fixture
def reconciler(
    store: InMemoryResourceStore,
    tracker: InMemoryTracker,
    recorder: InMemoryEventRecorder,
) -> SubscriptionReconciler:
    return build_reconciler(
        store,
        tracker=tracker,
        recorder=recorder,
        features=FeatureFlags(),
        resolver_config=ResolverConfig(),
    )


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = create_engine("sqlite+pysqlite:///:memory:", future=True)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sqlite_store(sqlite_engine: Engine) -> SqlAlchemyResourceStore:
    return build_sqlalchemy_store(engine=sqlite_engine)
