from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import orjson


class ComponentLogger(logging.LoggerAdapter):
    """
    Logger handed to one component. DEBUG records pass only when that
    component's LogConfig has `debug` on; the shared module logger's level
    is never touched.
    """

    def __init__(self, logger: logging.Logger, debug: bool) -> None:
        super().__init__(logger, {})
        self.debug_enabled = debug

    def isEnabledFor(self, level: int) -> bool:
        if level < logging.INFO and not self.debug_enabled:
            return False
        return self.logger.isEnabledFor(level)


@dataclass(frozen=True)
class LogConfig:
    """
    Logging settings handed to each component when it is built.

    `debug` switches query/response payload logging on for the components
    built with this config only.
    """

    debug: bool = False
    root: str = "vaxscrape"

    @property
    def level(self) -> int:
        return logging.DEBUG if self.debug else logging.INFO

    def configure(self) -> None:
        logging.basicConfig(
            level=self.level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger(self.root).setLevel(self.level)

    def get_logger(self, name: str) -> ComponentLogger:
        if name != self.root and not name.startswith(self.root + "."):
            name = f"{self.root}.{name}"
        return ComponentLogger(logging.getLogger(name), self.debug)


def dumps(payload: Any) -> str:
    """JSON text for log lines; falls back to str() for unknown types."""
    return orjson.dumps(payload, default=str).decode()
