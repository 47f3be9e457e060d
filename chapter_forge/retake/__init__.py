from .loop import RetakeLoop, RetakeState, build_feedback, transition

__all__ = ["RetakeLoop", "RetakeState", "build_feedback", "transition"]
