# shipsync/core/logging.py
import logging
import sys
from typing import Dict, Mapping, Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# upstream clients log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default")


def parse_module_levels(spec: Optional[str]) -> Dict[str, str]:
    """
    "shipsync.adapters=DEBUG,shipsync.services.order_scan_service=WARNING"
    → {"shipsync.adapters": "DEBUG", ...}

    Entries without "=" or with an unknown level are ignored.
    """
    out: Dict[str, str] = {}
    for part in (spec or "").split(","):
        name, sep, lvl = part.partition("=")
        name, lvl = name.strip(), lvl.strip().upper()
        if not sep or not name or not isinstance(logging.getLevelName(lvl), int):
            continue
        out[name] = lvl
    return out


def setup_logging(level: str = "INFO", module_levels: Optional[Mapping[str, str]] = None) -> None:
    """
    One stdout handler on the root logger, re-entrant.

    `level` applies to the root and to the `shipsync` tree; `module_levels`
    overrides single subtrees, e.g. {"shipsync.adapters": "DEBUG"}.
    """
    lvl = level.upper()
    root = logging.getLogger()
    root.setLevel(lvl)

    for h in list(root.handlers):
        root.removeHandler(h)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    logging.getLogger("shipsync").setLevel(lvl)
    for name, module_level in (module_levels or {}).items():
        logging.getLogger(name).setLevel(module_level.upper())

    quiet = logging.INFO if lvl == "DEBUG" else logging.WARNING
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(quiet)
