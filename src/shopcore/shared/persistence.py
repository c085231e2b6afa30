"""Reading and writing aggregates through the domain's repositories.

Reads run outside any unit of work. ``persist`` and ``discard`` open their own
``UnitOfWork`` and have committed by the time they return, so a caller holding
a keyed lock knows the write is visible before the lock is released. Command
handlers write through ``current_domain.repository_for(...).add`` inside the
unit of work Protean opens around every handler.

Queries are unbounded: without ``limit(None)`` Protean's query sets stop at
the aggregate's default limit of 100 records.
"""

from protean.core.unit_of_work import UnitOfWork
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from shopcore.shared.errors import NotFound


def require_identifier(identifier, entity: str) -> str:
    """Return ``identifier`` as a string, raising ``NotFound`` when it is blank."""
    if identifier is None or str(identifier).strip() == "":
        raise NotFound(entity, identifier)
    return str(identifier)


def load(aggregate_cls, identifier, entity: str | None = None):
    """Fetch an aggregate by id, raising ``NotFound`` when it does not exist."""
    entity = entity or aggregate_cls.__name__
    identifier = require_identifier(identifier, entity)

    try:
        return current_domain.repository_for(aggregate_cls).get(identifier)
    except ObjectNotFoundError:
        raise NotFound(entity, identifier) from None


def persist(*aggregates) -> None:
    """Commit one or more aggregates together."""
    with UnitOfWork():
        for aggregate in aggregates:
            current_domain.repository_for(type(aggregate)).add(aggregate)


def discard(aggregate) -> None:
    with UnitOfWork():
        current_domain.repository_for(type(aggregate))._dao.delete(aggregate)


def find(record_cls, **filters) -> list:
    """All records of ``record_cls`` whose fields equal ``filters``."""
    return current_domain.repository_for(record_cls)._dao.query.filter(**filters).limit(None).all().items


def all_of(record_cls, order_by: list[str]) -> list:
    """Every record of ``record_cls``, sorted by ``order_by``."""
    return current_domain.repository_for(record_cls)._dao.query.order_by(order_by).limit(None).all().items
