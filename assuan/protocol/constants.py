"""Protocol-wide constants shared by client and server."""

ENCODING = "utf-8"
LINE_DELIMITER = b"\n"
MAX_LINE_LEN = 1000  # bytes, including the verb, separator and LF
DATA_CHUNK_LEN = MAX_LINE_LEN - 3  # room left after "D " and LF
DEFAULT_GREETING = "Pleased to meet you"
# StreamReader buffer limit; lines are length-checked again by the Pipe.
READ_LIMIT = 4 * MAX_LINE_LEN

__all__ = [
    "ENCODING",
    "LINE_DELIMITER",
    "MAX_LINE_LEN",
    "DATA_CHUNK_LEN",
    "DEFAULT_GREETING",
    "READ_LIMIT",
]
