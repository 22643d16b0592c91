from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from assuan.protocol import DEFAULT_GREETING, normalize_verb

# handler(ctx, params) -> None | AssuanError, plain function or coroutine function.
# Raising AssuanError is equivalent to returning it; any other exception is
# fatal to the connection.
CommandHandler = Callable[..., Any]

# set_option(state, key, value) -> None | AssuanError, same conventions.
OptionSetter = Callable[[Any, str, str], Any]


class ProtoInfo(BaseModel):
    """Blueprint of a protocol served by the dispatcher.

    One instance usually exists per protocol and is shared, read-only, by
    every connection serving it. Verb keys are normalized to upper case.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    greeting: str = Field(default=DEFAULT_GREETING, description="Sent with the first OK")
    handlers: Dict[str, CommandHandler] = Field(default_factory=dict, description="Verb -> handler")
    help: Dict[str, List[str]] = Field(default_factory=dict, description="Verb -> help lines")
    state_factory: Optional[Callable[[], Any]] = Field(default=None, description="Fresh per-connection state")
    set_option: Optional[OptionSetter] = Field(default=None, description="Called for OPTION commands")

    @field_validator("handlers", mode="after")
    @classmethod
    def _normalize_handlers(cls, value: Dict[str, CommandHandler]) -> Dict[str, CommandHandler]:
        return {normalize_verb(verb): handler for verb, handler in value.items()}

    @field_validator("help", mode="before")
    @classmethod
    def _normalize_help(cls, value: Any) -> Any:
        if not isinstance(value, Mapping):
            return value
        return {
            normalize_verb(verb): lines.splitlines() if isinstance(lines, str) else lines
            for verb, lines in value.items()
        }

    def new_state(self) -> Any:
        return self.state_factory() if self.state_factory is not None else None

    def with_handlers(
        self,
        handlers: Mapping[str, CommandHandler],
        help: Optional[Mapping[str, Union[str, List[str]]]] = None,
        **changes: Any,
    ) -> "ProtoInfo":
        """Copy of this blueprint with extra handlers (and help); self is untouched."""
        data: Dict[str, Any] = {
            "greeting": self.greeting,
            "handlers": {**self.handlers, **{normalize_verb(k): v for k, v in handlers.items()}},
            "help": {**self.help, **{normalize_verb(k): v for k, v in (help or {}).items()}},
            "state_factory": self.state_factory,
            "set_option": self.set_option,
        }
        data.update(changes)
        return ProtoInfo(**data)


__all__ = ["CommandHandler", "OptionSetter", "ProtoInfo"]
