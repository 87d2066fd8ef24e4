from collections import OrderedDict
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI

from backend.routes import router
from falastin_games.config import load_settings
from falastin_games.llm import ChatLLM
from falastin_games.storage import JsonFileStore

load_dotenv(Path(__file__).parent.parent / ".env")


def create_app(data_dir: Path | None = None, llm: ChatLLM | None = None) -> FastAPI:
    settings = load_settings()
    resolved = data_dir or settings.data_dir

    app = FastAPI(title="Falastin Games")
    app.state.settings = settings
    app.state.store = JsonFileStore(resolved)
    # Live sessions by storage key; a finished game stays finished until reset.
    app.state.sessions = OrderedDict()
    # None means the process-wide HTTP client built from settings on first use.
    app.state.llm = llm
    app.include_router(router, prefix="/api")
    return app


# Default app instance for uvicorn (uses DATA_DIR env var or default)
app = create_app()
