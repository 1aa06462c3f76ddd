import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field, field_validator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

import board_engine

logger = logging.getLogger(__name__)

RATE_LIMIT = "100/minute"

# Initialize the rate limiter
limiter = Limiter(key_func=get_remote_address)
app = FastAPI(
    title="2048 Board Engine API",
    description="A stateless API over the 2048 board engine. "\
                "The client keeps the game state (board, score, game_over) and sends it with every move.",
    version="1.0.0"
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# --- Pydantic Models for API requests and responses ---

class GameState(BaseModel):
    """Represents the complete, client-owned state of a game."""
    board: List[List[int]] = Field(..., description="The 4 x 4 game board, represented as a list of lists.")
    score: int = Field(..., ge=0, description="Current score of the game.")
    game_over: bool = Field(..., description="True once the board is full and no move changes it.")


class MoveRequest(BaseModel):
    """Data required to make a move."""
    board: List[List[int]] = Field(..., description="Current 4 x 4 game board before the move.")
    score: int = Field(..., ge=0, description="Current score before the move.")
    direction: board_engine.Direction = Field(
        ...,
        description="Direction of the move (up, down, left, right)."
    )

    @field_validator("board")
    @classmethod
    def check_board(cls, board: List[List[int]]) -> List[List[int]]:
        return board_engine.validate_grid(board)


class MoveResponse(GameState):
    """Response after a move: the new game state and what the move did."""
    changed: bool = Field(
        ...,
        description="True if the slide changed the board (and a new tile was spawned)."
    )
    score_gained: int = Field(..., ge=0, description="Points earned by merges in this move.")
    message: Optional[str] = Field(
        default=None,
        description="An optional message, e.g. if the move had no effect or the game ended."
    )

# --- API Endpoints ---

@app.post("/game/new", response_model=GameState, summary="Start a New 2048 Game")
@limiter.limit(RATE_LIMIT)
async def start_new_game(request: Request):
    """
    Starts a new game: an empty 4 x 4 board with two random tiles and a score of 0.
    """
    try:
        board, score = board_engine.new_game()
    except Exception as e:
        logger.exception("Unexpected error in /game/new")
        raise HTTPException(status_code=500, detail=f"An unexpected error occurred during game creation: {str(e)}")

    logger.info("Started new game")
    return GameState(board=board, score=score, game_over=False)


@app.post("/game/move", response_model=MoveResponse, summary="Make a Move in the Game")
@limiter.limit(RATE_LIMIT)
async def make_move(request: Request, request_data: MoveRequest):
    """
    Processes a player's move.

    Requires the current `board`, `score` and the `direction` of the move.

    The API will:
    1. Slide and merge the tiles in the requested direction.
    2. If the move changed the board, add its points to the score and spawn a new tile (2 or 4).
    3. Check whether any move is left.

    Returns the updated game state, whether the move changed the board, and an optional message.
    """
    try:
        turn = board_engine.take_turn(request_data.board, request_data.score, request_data.direction)
    except Exception as e:
        logger.exception("Unexpected error in /game/move")
        raise HTTPException(status_code=500, detail=f"An unexpected server error occurred while processing the move: {str(e)}")

    message: Optional[str] = None
    if not turn.changed:
        message = "Move was not effective; board state unchanged by slide."
    if turn.game_over:
        message = "Game Over. No more valid moves."
    score_gained = turn.score - request_data.score

    logger.info("Move %s: changed=%s score=%d game_over=%s",
                request_data.direction.value, turn.changed, turn.score, turn.game_over)
    return MoveResponse(
        board=turn.grid,
        score=turn.score,
        game_over=turn.game_over,
        changed=turn.changed,
        score_gained=score_gained,
        message=message
    )
