"""Logger dual: espelha texto com timestamp para console e arquivo.

Cada chamada de ``print`` gera um único registro ``[MM/DD/YYYY][HH:MM:SS] texto``
enviado ao console e, quando habilitado, anexado ao arquivo de log com flush
imediato. Os hooks ``filter_console``/``filter_log`` podem ser sobrescritos em
subclasses para alterar ou suprimir o texto de cada destino de forma
independente (``None`` suprime).

Falhas de I/O nunca propagam: são registradas no canal de erros (``logging``)
e o destino que falhou passa a ficar desativado.
"""

import logging
import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, TextIO

from ..config.settings import get_logger_config, get_valid_settings
from .log_helpers import append_locked, build_record
from .time_helpers import format_log_timestamp

logger = logging.getLogger(__name__)

# Durabilidade (fsync a cada registro) lida de .env + ambiente na importação
DURABLE_WRITES = get_valid_settings()["durable_writes"]


@dataclass(frozen=True)
class LoggerConfig:
    """Configuração imutável do logger dual."""

    log_file: Optional[Path] = None
    timestamp: bool = True
    console: bool = True
    file: bool = True


# ========================
# 1. Destinos (sinks)
# ========================


class ConsoleSink:
    """Destino de console; desativa-se após a primeira falha de escrita."""

    def __init__(self, stream: Optional[TextIO] = None):
        if stream is None:
            stream = sys.stdout
        # evita laço quando o próprio logger está instalado como sys.stdout
        while isinstance(stream, DualSinkLogger):
            stream = stream.console_stream
        self.stream = stream
        self.active = stream is not None

    def write(self, text: str) -> bool:
        if not self.active:
            return False
        try:
            self.stream.write(text)
            self.stream.flush()
            return True
        except (OSError, ValueError) as exc:
            self.active = False
            logger.error("Could not write to console stream! I/O Error! (%s)", exc)
            return False

    def flush(self) -> None:
        if not self.active:
            return
        try:
            self.stream.flush()
        except (OSError, ValueError) as exc:
            logger.debug("ConsoleSink.flush falhou: %s", exc)


class FileSink:
    """Destino em arquivo: append UTF-8, lock exclusivo e flush por registro.

    Se o arquivo não puder ser criado/aberto, o destino fica inativo
    (``active`` False) e as escritas viram no-op explícito.
    """

    def __init__(self, path: Path, durable: bool = False):
        self.path = Path(path)
        self.durable = durable
        self._fh = None
        self._open()

    def _open(self) -> None:
        if not self.path.exists():
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                self.path.touch()
            except OSError as exc:
                logger.error("Could not create new file for logger '%s'! I/O Error! (%s)", self.path.name, exc)
        try:
            self._fh = self.path.open("a", encoding="utf-8")
        except OSError as exc:
            logger.error("Could not log to file for logger '%s'! I/O Error! (%s)", self.path.name, exc)
            self._fh = None

    @property
    def active(self) -> bool:
        return self._fh is not None

    def write(self, text: str) -> bool:
        if self._fh is None:
            return False
        try:
            append_locked(self._fh, text, self.durable)
            return True
        except (OSError, ValueError) as exc:
            # fecha antes de registrar: o canal de erros pode ser este logger
            self.close()
            logger.error("Could not write to log file '%s'! I/O Error! (%s)", self.path, exc, exc_info=True)
            return False

    def flush(self) -> None:
        if self._fh is None:
            return
        try:
            self._fh.flush()
        except (OSError, ValueError) as exc:
            logger.debug("FileSink.flush falhou em %s: %s", self.path, exc)

    def close(self) -> None:
        fh, self._fh = self._fh, None
        if fh is None:
            return
        try:
            fh.flush()
            fh.close()
        except (OSError, ValueError) as exc:
            logger.error("Could not close log file '%s'! I/O Error! (%s)", self.path, exc)


# ========================
# 2. Logger dual
# ========================


class DualSinkLogger:
    """Logger com timestamp que escreve no console e em arquivo.

    Args:
        log_file: caminho do arquivo de log (obrigatório quando ``file``).
        timestamp: prefixa cada registro com ``[MM/DD/YYYY][HH:MM:SS]``.
        console: escreve no console.
        file: anexa ao arquivo de log.
        console_stream: stream do console; ``sys.stdout`` atual por padrão.
        durable: fsync a cada registro; ``None`` usa ``DURABLE_WRITES``.

    O acesso concorrente é serializado por um lock interno. Depois de
    ``close()`` nada mais é gravado no arquivo; o console continua ativo.
    """

    def __init__(
        self,
        log_file: Optional[Path | str] = None,
        timestamp: bool = True,
        console: bool = True,
        file: bool = True,
        console_stream: Optional[TextIO] = None,
        durable: Optional[bool] = None,
    ):
        self.config = LoggerConfig(
            log_file=Path(log_file) if log_file else None,
            timestamp=timestamp,
            console=console,
            file=file,
        )
        self._lock = threading.RLock()
        self._closed = False
        self._pending = ""
        self._console = ConsoleSink(console_stream) if console else None
        self._file: Optional[FileSink] = None
        if file:
            if self.config.log_file is None:
                logger.error("Could not log to file: no log file given! File output disabled.")
            else:
                self._file = FileSink(self.config.log_file, DURABLE_WRITES if durable is None else durable)

    @classmethod
    def from_config(cls, config: LoggerConfig, **kwargs) -> "DualSinkLogger":
        return cls(config.log_file, config.timestamp, config.console, config.file, **kwargs)

    @classmethod
    def from_settings(cls, settings: Optional[dict] = None, **kwargs) -> "DualSinkLogger":
        """Constrói o logger a partir de ``load_settings()`` (.env + ambiente)."""
        settings = get_valid_settings(settings)
        kwargs.setdefault("durable", settings["durable_writes"])
        return cls.from_config(get_logger_config(settings), **kwargs)

    # ---- hooks ----

    def filter_console(self, text: str) -> Optional[str]:
        """Sobrescreva para alterar o texto do console; ``None`` suprime."""
        return text

    def filter_log(self, text: str) -> Optional[str]:
        """Sobrescreva para alterar o texto do arquivo; ``None`` suprime."""
        return text

    # ---- estado ----

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def file_active(self) -> bool:
        """True enquanto o arquivo estiver aberto e o logger não fechado."""
        return self._file is not None and self._file.active and not self._closed

    @property
    def console_stream(self) -> Optional[TextIO]:
        return self._console.stream if self._console is not None else None

    # ---- escrita ----

    def print(self, text="") -> None:
        """Emite ``text`` como um único registro em cada destino habilitado."""
        text = str(text)
        with self._lock:
            prefix = format_log_timestamp() if self.config.timestamp else None

            if self._console is not None and self._console.active:
                shown = self.filter_console(text)
                if shown is not None:
                    self._console.write(f"{prefix} {shown}" if prefix else shown)

            if self._file is not None and not self._closed:
                logged = self.filter_log(text)
                if logged is not None:
                    self._file.write(build_record(prefix, logged))

    def println(self, text="") -> None:
        self.print(f"{text}\n")

    def close(self) -> None:
        """Fecha o arquivo de log; chamadas seguintes não têm efeito."""
        with self._lock:
            if self._closed:
                return
            self._emit_pending()
            self._closed = True
            if self._file is not None:
                self._file.close()
            if self._console is not None:
                self._console.flush()

    def __enter__(self) -> "DualSinkLogger":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---- adaptador de stream (sys.stdout / sys.stderr) ----

    def write(self, s: str) -> int:
        """Acumula texto e emite um registro por linha completa."""
        with self._lock:
            self._pending += s
            while "\n" in self._pending:
                line, _, self._pending = self._pending.partition("\n")
                self.print(line + "\n")
        return len(s)

    def flush(self) -> None:
        with self._lock:
            self._emit_pending()
            if self._console is not None:
                self._console.flush()
            if self._file is not None:
                self._file.flush()

    def _emit_pending(self) -> None:
        if self._pending:
            pending, self._pending = self._pending, ""
            self.print(pending)

    def writable(self) -> bool:
        return True

    def isatty(self) -> bool:
        return False

    @property
    def encoding(self) -> str:
        return getattr(self.console_stream, "encoding", None) or "utf-8"
