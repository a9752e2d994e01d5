from typing import Optional
import datetime
import logging
import re

logger = logging.getLogger(__name__)

# Prefixo usado em cada registro do logger dual: [MM/DD/YYYY][HH:MM:SS]
LOG_TIMESTAMP_FORMAT = "[%m/%d/%Y][%H:%M:%S]"

TIMESTAMP_RE = re.compile(r"^\[(\d{2})/(\d{2})/(\d{4})\]\[(\d{2}):(\d{2}):(\d{2})\]")


def format_log_timestamp(dt: Optional[datetime.datetime] = None) -> str:
    """Formate o prefixo de timestamp do logger dual.

    Usa o horário local atual quando ``dt`` não for fornecido.
    """
    if dt is None:
        dt = datetime.datetime.now()
    return dt.strftime(LOG_TIMESTAMP_FORMAT)


def parse_log_timestamp(s: str) -> Optional[datetime.datetime]:
    """Extraia o timestamp do início de um registro.

    Retorna None quando a string não começar com o prefixo esperado ou quando
    os campos não formarem uma data válida.
    """
    if not isinstance(s, str):
        return None
    m = TIMESTAMP_RE.match(s)
    if not m:
        return None
    month, day, year, hour, minute, second = (int(g) for g in m.groups())
    try:
        return datetime.datetime(year, month, day, hour, minute, second)
    except ValueError:
        logger.debug("parse_log_timestamp: data inválida em %r", s[:23])
        return None
