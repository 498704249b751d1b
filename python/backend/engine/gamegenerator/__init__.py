from backend.engine.gamegenerator.generator import GameGenerator, GenerationFailed, Stage

__all__ = ["GameGenerator", "GenerationFailed", "Stage"]
