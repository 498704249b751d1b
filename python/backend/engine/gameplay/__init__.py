from backend.engine.gameplay.game import GamePlay
from backend.engine.gameplay.hints import HintWorker

__all__ = ["GamePlay", "HintWorker"]
