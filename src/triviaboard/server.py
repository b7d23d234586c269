"""
Trivia Board Server - FastAPI application
"""

import logging
import time
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from . import __version__
from .errors import BoardUnavailable, InvalidInteractionError, NoActiveBoardError
from .monitors import AssemblyMonitor
from .orchestrator import BoardOrchestrator
from .session import GameSession
from .settings import settings
from .trivia_source import TriviaSource, create_source

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Trivia Board",
    description="Random trivia boards with two-stage clue reveal",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global instances
source: Optional[TriviaSource] = None
orchestrator: Optional[BoardOrchestrator] = None
session: Optional[GameSession] = None
monitor: Optional[AssemblyMonitor] = None


class ClueView(BaseModel):
    """One cell as the front end should draw it"""
    state: str
    text: str


class CategoryView(BaseModel):
    title: str
    clues: List[ClueView]


class BoardView(BaseModel):
    categories: List[CategoryView]


class GameState(BaseModel):
    """Response model for game endpoints"""
    generation: int
    status: str
    message: Optional[str] = None
    board: Optional[BoardView] = None


class RevealResponse(BaseModel):
    """Response model for reveal endpoint"""
    category_index: int
    clue_index: int
    state: str
    text: str
    changed: bool


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    global source, orchestrator, session, monitor

    logger.info("Starting Trivia Board server...")

    source = create_source(settings)
    orchestrator = BoardOrchestrator(source)
    monitor = AssemblyMonitor()
    session = GameSession(orchestrator, monitor=monitor)

    logger.info("Trivia Board server started successfully")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info("Shutting down Trivia Board server...")

    if source:
        await source.cleanup()

    if monitor:
        monitor.reset()

    logger.info("Trivia Board server shutdown complete")


def _require_session() -> GameSession:
    if not session:
        raise HTTPException(status_code=503, detail="Game session not initialized")
    return session


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    source_available = await source.health_check() if source else False
    return {
        "status": "healthy" if source_available else "degraded",
        "version": __version__,
        "timestamp": time.time(),
        "source": source.name if source else None,
        "source_available": source_available
    }


@app.post("/game", response_model=GameState)
async def start_game():
    """Start or restart a game with a freshly assembled board"""
    game = _require_session()

    try:
        board = await game.start_game()
    except BoardUnavailable as e:
        raise HTTPException(status_code=503, detail=e.message)

    if board is None:
        raise HTTPException(status_code=409, detail="Superseded by a newer game")

    return GameState(**game.get_state())


@app.get("/board", response_model=GameState)
async def get_board():
    """Current game state and the board on display, if any"""
    return GameState(**_require_session().get_state())


@app.post("/board/{category_index}/{clue_index}/reveal", response_model=RevealResponse)
async def reveal_clue(category_index: int, clue_index: int):
    """Advance one cell: hidden -> question -> answer"""
    game = _require_session()

    try:
        outcome = game.reveal(category_index, clue_index)
    except NoActiveBoardError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidInteractionError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return RevealResponse(
        category_index=outcome.category_index,
        clue_index=outcome.clue_index,
        state=outcome.state.value,
        text=outcome.text,
        changed=outcome.changed
    )


@app.get("/metrics")
async def get_metrics() -> Dict[str, Any]:
    """Get assembly metrics"""
    if not monitor or not orchestrator:
        raise HTTPException(status_code=503, detail="Monitor not initialized")

    metrics = monitor.get_metrics()
    metrics["orchestrator"] = orchestrator.get_stats()
    return metrics


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Trivia Board - random trivia boards with two-stage reveal",
        "version": __version__,
        "docs": "/docs",
        "health": "/health"
    }


def main():
    """Main entry point for running the server"""
    import uvicorn

    uvicorn.run(
        "triviaboard.server:app",
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower()
    )


if __name__ == "__main__":
    main()
