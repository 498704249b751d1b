from backend.engine.gamestate.state import GameState, GameStatus

__all__ = ["GameState", "GameStatus"]
