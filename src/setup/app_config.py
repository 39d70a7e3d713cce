import logging

import inject

from src.board.application.notifier import BoardNotifier
from src.board.domain.repositories import ProjectRepository, TaskStoreRepository
from src.board.infrastructure.postgres.orm import PostgresOrm
from src.board.infrastructure.postgres.repositories import (
    PostgresProjectRepository,
    PostgresTaskStore,
)
from src.setup.db_config import DatabaseSettings

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)


def configure_di(notifier: BoardNotifier, settings: DatabaseSettings | None = None) -> PostgresOrm:
    """Bind the Postgres store and the given notifier into the DI container."""
    if settings is None:
        settings = DatabaseSettings()  # type: ignore[call-arg]
    orm = PostgresOrm(settings.DATABASE_URL, echo=settings.DB_ECHO)

    def _config(binder: inject.Binder) -> None:
        binder.bind(PostgresOrm, orm)
        binder.bind(TaskStoreRepository, PostgresTaskStore(orm))
        binder.bind(ProjectRepository, PostgresProjectRepository(orm))
        binder.bind(BoardNotifier, notifier)

    inject.clear_and_configure(_config)
    return orm
