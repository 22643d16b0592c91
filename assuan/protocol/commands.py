from __future__ import annotations

from enum import StrEnum
from typing import Tuple, Union


class Verb(StrEnum):
    """Control verbs understood by every Assuan peer."""

    OK = "OK"
    ERR = "ERR"
    DATA = "D"
    STATUS = "S"
    COMMENT = "#"
    INQUIRE = "INQUIRE"
    END = "END"
    CAN = "CAN"

    NOP = "NOP"
    BYE = "BYE"
    RESET = "RESET"
    OPTION = "OPTION"
    HELP = "HELP"


# Answered by the dispatcher itself, listed first by a bare HELP.
BUILTIN_VERBS: Tuple[str, ...] = (
    Verb.NOP.value,
    Verb.OPTION.value,
    Verb.BYE.value,
    Verb.RESET.value,
    Verb.HELP.value,
)


def normalize_verb(verb: Union[str, Verb]) -> str:
    """Verbs are case-insensitive on receipt and upper case on the wire."""
    return verb.value if isinstance(verb, Verb) else str(verb).strip().upper()


def is_builtin(verb: Union[str, Verb]) -> bool:
    return normalize_verb(verb) in BUILTIN_VERBS


__all__ = ["Verb", "BUILTIN_VERBS", "normalize_verb", "is_builtin"]
