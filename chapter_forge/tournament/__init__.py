from .arena import TournamentArena, match_name

__all__ = ["TournamentArena", "match_name"]
