from backend.models.board import EMPTY, OBSTACLE, Board, Direction, InvalidBoard
from backend.models.stage import StageConfig, stage_config

__all__ = [
    "EMPTY",
    "OBSTACLE",
    "Board",
    "Direction",
    "InvalidBoard",
    "StageConfig",
    "stage_config",
]
