from backend.engine.gameresolver.resolver import MoveResult, Outcome, apply_move, tilt

__all__ = ["MoveResult", "Outcome", "apply_move", "tilt"]
