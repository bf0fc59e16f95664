"""Persistence access with explicit pre/post processing stages.

Each entity gets one :class:`Repository`. Entity modules register hook
functions on it (password hashing, slug generation, rating recomputation,
default query filters, output shaping) and the repository invokes them at
fixed points of every read and write.
"""

import logging
import time
from typing import Any, Callable, Iterable, Mapping

from pydantic import BaseModel
from pydantic.alias_generators import to_camel
from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from natours.query import Projection, QuerySpec, apply, model_fields

logger = logging.getLogger(__name__)

Hook = Callable[[Session, Any], None]


def is_new(instance) -> bool:
    state = inspect(instance)
    return state.transient or state.pending


def is_modified(instance, key: str) -> bool:
    return inspect(instance).attrs[key].history.has_changes()


class Repository:
    """Reads and writes one model through its registered hooks."""

    def __init__(
        self,
        model,
        *,
        aliases: Mapping[str, str] | None = None,
        hidden: Iterable[str] = (),
    ):
        self.model = model
        self.hidden = frozenset(hidden)
        self.fields = model_fields(model, aliases=aliases, hidden=self.hidden)
        self._query_filters: list[Callable[[Any], Any]] = []
        self._preparers: list[Callable[[Session, dict], dict]] = []
        self._pre_save: list[Hook] = []
        self._post_save: list[Hook] = []
        self._pre_delete: list[Hook] = []
        self._post_delete: list[Hook] = []
        self._serializers: list[Callable[[Any, dict, Projection], None]] = []

    # -- hook registration -------------------------------------------------

    def query_filter(self, func):
        """Register a criterion applied to every find (``func(model) -> clause``)."""
        self._query_filters.append(func)
        return func

    def prepare(self, func):
        """Register an input mapper turning validated payload fields into attributes."""
        self._preparers.append(func)
        return func

    def pre_save(self, func: Hook) -> Hook:
        self._pre_save.append(func)
        return func

    def post_save(self, func: Hook) -> Hook:
        self._post_save.append(func)
        return func

    def pre_delete(self, func: Hook) -> Hook:
        self._pre_delete.append(func)
        return func

    def post_delete(self, func: Hook) -> Hook:
        self._post_delete.append(func)
        return func

    def serializer(self, func):
        """Register an output stage ``func(instance, document, projection)``."""
        self._serializers.append(func)
        return func

    # -- reads ---------------------------------------------------------------

    def query(self, db: Session):
        query = db.query(self.model)
        for criterion in self._query_filters:
            query = query.filter(criterion(self.model))
        return query

    def get(self, db: Session, document_id: int):
        return self.query(db).filter(self.model.id == document_id).first()

    def find(self, db: Session, spec: QuerySpec, *criteria) -> list:
        started = time.perf_counter()
        documents = apply(spec, self.query(db).filter(*criteria), self.fields).all()
        logger.debug(
            "%s query took %.1f ms (%d rows)",
            self.model.__name__,
            (time.perf_counter() - started) * 1000,
            len(documents),
        )
        return documents

    # -- writes --------------------------------------------------------------

    def prepare_fields(self, db: Session, payload: BaseModel | Mapping[str, Any]) -> dict:
        if isinstance(payload, BaseModel):
            fields = payload.model_dump(exclude_unset=True, exclude_none=True)
        else:
            fields = dict(payload)
        for preparer in self._preparers:
            fields = preparer(db, fields)
        return fields

    def create(self, db: Session, payload: BaseModel | Mapping[str, Any]):
        instance = self.model(**self.prepare_fields(db, payload))
        return self.save(db, instance)

    def update(self, db: Session, instance, payload: BaseModel | Mapping[str, Any]):
        for key, value in self.prepare_fields(db, payload).items():
            setattr(instance, key, value)
        return self.save(db, instance)

    def save(self, db: Session, instance):
        for hook in self._pre_save:
            hook(db, instance)
        if not is_new(instance):
            instance.version = (instance.version or 0) + 1

        db.add(instance)
        try:
            db.flush()
            for hook in self._post_save:
                hook(db, instance)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        db.refresh(instance)
        return instance

    def delete(self, db: Session, instance) -> None:
        try:
            for hook in self._pre_delete:
                hook(db, instance)
            db.delete(instance)
            db.flush()
            for hook in self._post_delete:
                hook(db, instance)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

    # -- output --------------------------------------------------------------

    def serialize(self, instance, projection: Projection | None = None) -> dict:
        projection = projection or Projection(exclude=("version",))
        document = {}
        for name, column in self.fields.items():
            if projection.allows(name):
                document[to_camel(name)] = getattr(instance, column.key)
        for stage in self._serializers:
            stage(instance, document, projection)
        return document
