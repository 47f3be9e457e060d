from .plan import SynthesisAnalyzer, SynthesisExecutor, SynthesizerV2, to_plan
from .simple import SynthesisAgent, collect_loser_excerpts

__all__ = [
    "SynthesisAgent",
    "SynthesisAnalyzer",
    "SynthesisExecutor",
    "SynthesizerV2",
    "collect_loser_excerpts",
    "to_plan",
]
