"""Resource store persisting documents through SQLAlchemy sessions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, delete, insert, select, update
from sqlalchemy.orm import Session, sessionmaker

from subsync.adapters.api.translator import decode_channel_class, decode_subscription
from subsync.adapters.documents import (
    DocumentKey,
    apply_patch,
    apply_subscription_update,
    document_key,
    mark_deleted,
    prepare_new,
    reference_key,
    replace_existing,
)
from subsync.domain.model import (
    CHANNEL_CLASS_API_VERSION,
    CHANNEL_CLASS_KIND,
    SUBSCRIPTION_API_VERSION,
    SUBSCRIPTION_KIND,
    KReference,
    Resource,
)
from subsync.domain.model.conditions import utcnow
from subsync.domain.ports.errors import ResourceNotFoundError

from .mappings import create_all_tables, resource_table

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.engine import Engine

    from subsync.domain.model import ChannelClass, Subscription
    from subsync.domain.ports import ResourceBackend

log = getLogger(__name__)


def _key_clause(key: DocumentKey) -> list[Any]:
    api_group, kind, namespace, name = key
    return [
        resource_table.c.api_group == api_group,
        resource_table.c.kind == kind,
        resource_table.c.namespace == namespace,
        resource_table.c.name == name,
    ]


class SqlAlchemyResourceStore:
    """Keep every resource as one JSON document row.

    Each call runs in its own transaction, so the reconciler never holds a
    session open across stages.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    def apply(self, content: Mapping[str, Any]) -> Resource:
        key = document_key(content)
        now = utcnow()
        with self._session_factory.begin() as session:
            current = self._load(session, key)
            if current is None:
                document = prepare_new(content)
                api_group, kind, namespace, name = key
                session.execute(
                    insert(resource_table).values(
                        api_group=api_group,
                        kind=kind,
                        namespace=namespace,
                        name=name,
                        body=document,
                        created_at=now,
                        updated_at=now,
                    )
                )
                log.info("Created %s %s/%s", kind, namespace, name)
            else:
                document = replace_existing(current, content)
                self._store(session, key, document)
        return Resource(content=document)

    def delete(self, ref: KReference, namespace: str) -> None:
        key = reference_key(ref, namespace)
        with self._session_factory.begin() as session:
            document = mark_deleted(self._require(session, key, ref), utcnow())
            if document is None:
                session.execute(delete(resource_table).where(*_key_clause(key)))
            else:
                self._store(session, key, document)

    def get(self, ref: KReference, namespace: str) -> Resource:
        key = reference_key(ref, namespace)
        with self._session_factory() as session:
            return Resource(content=self._require(session, key, ref))

    def patch(self, ref: KReference, namespace: str, patch: bytes) -> Resource:
        key = reference_key(ref, namespace)
        with self._session_factory.begin() as session:
            document = apply_patch(self._require(session, key, ref), patch)
            self._store(session, key, document)
        return Resource(content=document)

    def get_channel_class(self, namespace: str, name: str) -> ChannelClass:
        ref = KReference(
            kind=CHANNEL_CLASS_KIND,
            name=name,
            namespace=namespace,
            api_version=CHANNEL_CLASS_API_VERSION,
        )
        return decode_channel_class(self.get(ref, namespace).content)

    def get_subscription(self, namespace: str, name: str) -> Subscription:
        ref = KReference(
            kind=SUBSCRIPTION_KIND,
            name=name,
            namespace=namespace,
            api_version=SUBSCRIPTION_API_VERSION,
        )
        return decode_subscription(self.get(ref, namespace).content)

    def update_subscription(self, subscription: Subscription) -> None:
        ref = subscription.reference()
        key = reference_key(ref, subscription.namespace)
        with self._session_factory.begin() as session:
            document = apply_subscription_update(self._require(session, key, ref), subscription)
            if document is None:
                log.info(
                    "Subscription %s released its last finalizer, removing it", subscription.name
                )
                session.execute(delete(resource_table).where(*_key_clause(key)))
            else:
                self._store(session, key, document)

    @staticmethod
    def _load(session: Session, key: DocumentKey) -> dict[str, Any] | None:
        stmt = select(resource_table.c.body).where(*_key_clause(key))
        return session.execute(stmt).scalar_one_or_none()

    def _require(self, session: Session, key: DocumentKey, ref: KReference) -> dict[str, Any]:
        document = self._load(session, key)
        if document is None:
            raise ResourceNotFoundError(ref.kind, key[2], ref.name)
        return document

    @staticmethod
    def _store(session: Session, key: DocumentKey, document: dict[str, Any]) -> None:
        session.execute(
            update(resource_table)
            .where(*_key_clause(key))
            .values(body=document, updated_at=utcnow())
        )


def build_sqlalchemy_store(
    *, engine: Engine | None = None, database_uri: str | None = None, echo: bool = False
) -> SqlAlchemyResourceStore:
    """Create the engine (unless given) and the schema, then wrap it in a store."""

    resolved_engine = engine or create_engine(
        database_uri or "sqlite+pysqlite:///:memory:", echo=echo
    )
    create_all_tables(resolved_engine)
    return SqlAlchemyResourceStore(resolved_engine)


if TYPE_CHECKING:
    _backend_check: ResourceBackend = SqlAlchemyResourceStore(create_engine("sqlite://"))
