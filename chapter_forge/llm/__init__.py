from .client import HARD_ERRORS, AgentLog, LLMClient, require_structured

__all__ = ["HARD_ERRORS", "AgentLog", "LLMClient", "require_structured"]
