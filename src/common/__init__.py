from common import llm
from common.ids import clock_id, generate_id
from common.jsonio import atomic_write_text, read_text

__all__ = [
    "llm",
    "clock_id",
    "generate_id",
    "read_text",
    "atomic_write_text",
]
