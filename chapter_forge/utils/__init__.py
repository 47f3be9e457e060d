from .logger import setup_logger
from .text import count_sentences, excerpt_around, parse_json_response, truncate_text

__all__ = [
    "setup_logger",
    "count_sentences",
    "excerpt_around",
    "parse_json_response",
    "truncate_text",
]
