"""Registro único para redirecionar ``sys.stdout``/``sys.stderr``.

É o único ponto do projeto que altera os streams globais do processo.
Ciclo de vida: instale na inicialização (``register_output_logger`` /
``register_error_logger`` ou o context manager ``redirected``) e restaure no
encerramento passando ``None``. O stream original é capturado na primeira
troca e devolvido na restauração.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Optional, TextIO

logger = logging.getLogger(__name__)

STREAM_NAMES = ("stdout", "stderr")

_ORIGINALS: dict[str, TextIO] = {}


def _install(name: str, stream) -> None:
    if name not in STREAM_NAMES:
        raise ValueError(f"stream desconhecido: {name!r}")
    if stream is None:
        if name in _ORIGINALS:
            setattr(sys, name, _ORIGINALS.pop(name))
            logger.debug("sys.%s restaurado", name)
        return
    _ORIGINALS.setdefault(name, getattr(sys, name))
    setattr(sys, name, stream)
    logger.debug("sys.%s redirecionado para %r", name, stream)


def register_output_logger(dual_logger) -> None:
    """Instala ``dual_logger`` como ``sys.stdout``; ``None`` restaura o original."""
    _install("stdout", dual_logger)


def register_error_logger(dual_logger) -> None:
    """Instala ``dual_logger`` como ``sys.stderr``; ``None`` restaura o original."""
    _install("stderr", dual_logger)


def original_stream(name: str) -> TextIO:
    """Stream ativo antes da primeira troca feita pelo registro."""
    if name not in STREAM_NAMES:
        raise ValueError(f"stream desconhecido: {name!r}")
    return _ORIGINALS.get(name, getattr(sys, name))


@contextmanager
def redirected(out=None, err=None) -> Iterator[None]:
    """Redireciona stdout/stderr durante o bloco e restaura ao sair, mesmo em erro."""
    previous = {"stdout": sys.stdout, "stderr": sys.stderr}
    targets: dict[str, Optional[object]] = {"stdout": out, "stderr": err}
    try:
        for name, stream in targets.items():
            if stream is not None:
                _install(name, stream)
        yield
    finally:
        for name, stream in targets.items():
            if stream is None:
                continue
            try:
                stream.flush()
            except (OSError, ValueError) as exc:
                logger.debug("redirected: flush falhou em %s: %s", name, exc)
            setattr(sys, name, previous[name])
            if _ORIGINALS.get(name) is previous[name]:
                del _ORIGINALS[name]
