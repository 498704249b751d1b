from backend.engine.gamesolver.solver import Solver, SolverResult

__all__ = ["Solver", "SolverResult"]
