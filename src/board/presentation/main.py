from fastapi import FastAPI

from src.board.presentation.websockets import WebSocketBoardNotifier, connection_manager
from src.setup.api_config import ApiSettings
from src.setup.app_config import configure_di, configure_logging

settings = ApiSettings()
configure_logging(settings.LOG_LEVEL)
orm = configure_di(WebSocketBoardNotifier(connection_manager))

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Project task board kept in sync with the task store",
)

async def _dispose_orm() -> None:
    await orm.dispose()

app.add_event_handler("shutdown", _dispose_orm)

from src.board.presentation.routes import router as api_router  # noqa: E402

app.include_router(api_router, prefix="")
