"""
Saída de logs do ProfileCut

A biblioteca só cria loggers nomeados ("profilecut-core", "profilecut-genetic"
...); quem instala handlers é o ponto de entrada (run.py ou main.py), com o
nível e o formato escolhidos na linha de comando ou no ambiente.

Os campos de contexto chegam via `extra=` nas chamadas de log do planner
"""

import json
import logging
import sys

CONTEXT_FIELDS = ("request_id", "algorithm", "duration_ms")
PLAIN_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
QUIET_LOGGERS = ("uvicorn.access", "matplotlib", "httpx")


def _context(record: logging.LogRecord) -> dict:
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if hasattr(record, field)}


class ContextFormatter(logging.Formatter):
    """Texto legível, com o contexto da otimização entre colchetes no fim"""

    def __init__(self):
        super().__init__(PLAIN_FORMAT)

    def format(self, record):
        line = super().format(record)
        context = _context(record)
        if context:
            line += " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"
        return line


class JSONFormatter(logging.Formatter):
    """Uma linha JSON por registro"""

    def format(self, record):
        entry = {
            "ts": round(record.created, 3),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        entry.update(_context(record))
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str, json_output: bool):
    root = logging.getLogger()
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_output else ContextFormatter())
    root.handlers = [handler]
    root.setLevel(level.upper())

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
