# vulture: ignore
"""Helpers de baixo nível para o subsistema de logging.

Fornece escrita com lock exclusivo, substituição atômica e montagem de
registros com timestamp.
"""

from pathlib import Path
import os
import logging

import portalocker

logger = logging.getLogger(__name__)

LINE_TERMINATORS = ("\r\n", "\n", "\r")


# -----------------------
# Escrita segura
# -----------------------
def append_locked(fh, text: str, durable: bool = False) -> None:
    """Anexe texto ao handle aberto `fh` sob lock exclusivo e faça flush.

    Falhas de lock/unlock são registradas em debug e a escrita segue em modo
    best-effort. Falhas na escrita propriamente dita propagam como ``OSError``
    para o chamador, que decide como degradar.
    """
    locked = False
    try:
        try:
            portalocker.lock(fh, portalocker.LOCK_EX)
            locked = True
        except (portalocker.exceptions.LockException, OSError) as exc:
            logger.debug("append_locked: portalocker.lock falhou: %s", exc)

        fh.write(text)
        fh.flush()

        if durable:
            try:
                os.fsync(fh.fileno())
            except OSError as exc:
                logger.debug("append_locked: fsync falhou: %s", exc)
    finally:
        if locked:
            try:
                portalocker.unlock(fh)
            except (portalocker.exceptions.LockException, OSError) as exc:
                logger.debug("append_locked: portalocker.unlock falhou: %s", exc)


# -----------------------
# Normalização e formatação
# -----------------------
def split_line_terminator(text: str) -> tuple[str, str]:
    """Separe um único terminador de linha final do corpo da mensagem."""
    for term in LINE_TERMINATORS:
        if text.endswith(term):
            return text[: -len(term)], term
    return text, ""


def build_record(prefix: str | None, text: str) -> str:
    r"""Compõe um registro único para o arquivo de log.

    O prefixo (timestamp) sempre antecede a linha lógica inteira; quebras de
    linha internas não geram novos prefixos. Um terminador final é
    normalizado para ``\n``:

      <prefix> <body>\n
    """
    body, term = split_line_terminator(text)
    head = f"{prefix} {body}" if prefix else body
    return head + ("\n" if term else "")


# -----------------------
# Substituição
# -----------------------
def atomic_replace(tmp: Path, dst: Path) -> bool:
    """Substitui `dst` por `tmp` atomicamente; remove `tmp` em caso de falha."""
    try:
        os.replace(str(tmp), str(dst))
        return True
    except OSError as exc:
        logger.error("atomic_replace: falha %s -> %s: %s", tmp, dst, exc, exc_info=True)
        tmp.unlink(missing_ok=True)
        return False
