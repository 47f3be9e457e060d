from .loop import DEFAULT_MAX_ATTEMPTS, CorrectionLoop, CorrectionState, transition

__all__ = ["DEFAULT_MAX_ATTEMPTS", "CorrectionLoop", "CorrectionState", "transition"]
