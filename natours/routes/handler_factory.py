"""Generic CRUD handlers shared by the tour, user and review routes.

Each handler takes the entity's repository and returns the response envelope;
route modules only pick the guards, input structs and extra criteria.
"""

from typing import Any, Iterable, Mapping

from fastapi import Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from natours.core.exceptions import NotFoundError
from natours.query import parse_query_params, translate
from natours.repositories.base import Repository

NOT_FOUND_MESSAGE = "No document found with that ID"


def query_params(request: Request, overrides: Mapping[str, str] | None = None) -> dict[str, Any]:
    params = parse_query_params(request.query_params.multi_items())
    if overrides:
        params.update(overrides)
    return params


def get_or_404(db: Session, repository: Repository, document_id: int):
    document = repository.get(db, document_id)
    if document is None:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return document


def get_all(db: Session, repository: Repository, params: Mapping[str, Any], *criteria) -> dict:
    spec = translate(params)
    documents = repository.find(db, spec, *criteria)
    return {
        "status": "success",
        "results": len(documents),
        "data": {"data": [repository.serialize(document, spec.projection) for document in documents]},
    }


def get_one(
    db: Session,
    repository: Repository,
    document_id: int,
    populate: Iterable[tuple[str, Repository]] = (),
) -> dict:
    document = get_or_404(db, repository, document_id)
    data = repository.serialize(document)
    for name, related in populate:
        data[name] = [related.serialize(item) for item in getattr(document, name)]
    return {"status": "success", "data": {"data": data}}


def create_one(db: Session, repository: Repository, payload: BaseModel | Mapping[str, Any]) -> dict:
    document = repository.create(db, payload)
    return {"status": "success", "data": {"data": repository.serialize(document)}}


def update_one(
    db: Session,
    repository: Repository,
    document_id: int,
    payload: BaseModel | Mapping[str, Any],
) -> dict:
    document = get_or_404(db, repository, document_id)
    document = repository.update(db, document, payload)
    return {"status": "success", "data": {"data": repository.serialize(document)}}


def delete_one(db: Session, repository: Repository, document_id: int) -> None:
    document = get_or_404(db, repository, document_id)
    repository.delete(db, document)
