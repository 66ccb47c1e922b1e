"""AI agents for script analysis and rewriting."""

from .base import BaseAgent
from .analysis import ScriptAnalysisAgent, AnalysisInput, AnalysisResult
from .optimizer import ScriptOptimizerAgent

__all__ = [
    "BaseAgent",
    "ScriptAnalysisAgent",
    "AnalysisInput",
    "AnalysisResult",
    "ScriptOptimizerAgent",
]
