"""Compressão e descompressão de buffers em DEFLATE (RFC 1951) e GZIP (RFC 1952).

Funções puras sobre bytes, mais helpers de arquivo que reaproveitam o mesmo
codec em modo streaming. Política de erro:

- modo estrito (padrão): falhas de I/O/codec são registradas e levantam
  ``CompressionError``;
- modo fallback (``fallback=True`` ou ``WRATH_COMPRESSION_FALLBACK=1`` no
  ambiente ou no ``.env``): a falha é registrada e a entrada original é
  devolvida sem alteração. Quem chama deve verificar o magic/tamanho se a
  distinção importar.

As variantes ``try_compress``/``try_decompress`` devolvem um
``CompressionResult`` com o sinal de erro explícito.
"""

import enum
import gzip
import io
import logging
import shutil
import zlib
from dataclasses import dataclass
from pathlib import Path

from ..config.settings import get_valid_settings
from .log_helpers import atomic_replace

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
CHUNK_SIZE = 64 * 1024
DEFAULT_LEVEL = zlib.Z_DEFAULT_COMPRESSION

# raw deflate: sem cabeçalho/trailer zlib
_RAW_WBITS = -zlib.MAX_WBITS


def default_fallback(settings: dict | None = None) -> bool:
    """Modo de erro configurado em ``compression.fallback`` (.env + ambiente)."""
    return get_valid_settings(settings)["compression"]["fallback"]


# Modo padrão de erro; pode ser sobrescrito por chamada
FALLBACK_ON_ERROR = default_fallback()

_CODEC_ERRORS = (OSError, EOFError, zlib.error)


class CompressionFormat(enum.Enum):
    """Formatos suportados."""

    DEFLATE = "deflate"
    GZIP = "gzip"

    @classmethod
    def parse(cls, name) -> "CompressionFormat":
        """Converte ``"gzip"``/``"deflate"`` (qualquer caixa) no membro do enum."""
        if isinstance(name, cls):
            return name
        try:
            return cls(str(name).strip().lower())
        except ValueError:
            raise ValueError(f"formato de compressão desconhecido: {name!r}") from None


class CompressionError(OSError):
    """Falha de I/O ou de codec ao comprimir/descomprimir."""

    def __init__(self, operation: str, fmt: CompressionFormat, cause: BaseException | None = None):
        self.operation = operation
        self.format = fmt
        self.cause = cause
        msg = f"Could not {operation} data in {fmt.name} format! I/O Error!"
        if cause is not None:
            msg = f"{msg} ({cause})"
        super().__init__(msg)


@dataclass(frozen=True)
class CompressionResult:
    """Resultado com sinal de erro explícito.

    Em falha, ``data`` é a entrada original e ``error`` carrega a causa.
    """

    data: bytes
    ok: bool
    error: CompressionError | None = None


# ========================
# 1. Codecs em memória
# ========================


def _check_bytes(data) -> bytes:
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError(f"esperado bytes-like, recebido {type(data).__name__}")
    return bytes(data)


def _encode(data: bytes, fmt: CompressionFormat, level: int) -> bytes:
    if fmt is CompressionFormat.GZIP:
        out = io.BytesIO()
        # mtime=0 mantém a saída determinística
        with gzip.GzipFile(fileobj=out, mode="wb", compresslevel=level, mtime=0) as gf:
            gf.write(data)
        return out.getvalue()
    comp = zlib.compressobj(level, zlib.DEFLATED, _RAW_WBITS)
    return comp.compress(data) + comp.flush()


def _inflate_partial(decomp, block: bytes) -> bytearray:
    """Descomprime ``block`` em blocos de até ``CHUNK_SIZE`` saídos do codec."""
    out = bytearray()
    pending = block
    while not decomp.eof:
        chunk = decomp.decompress(pending, CHUNK_SIZE)
        out += chunk
        pending = decomp.unconsumed_tail
        if not pending and not chunk:
            break
    return out


def _inflate_chunks(decomp, data: bytes) -> bytearray:
    out = _inflate_partial(decomp, data)
    out += decomp.flush()
    if not decomp.eof:
        raise EOFError("stream DEFLATE truncado")
    return out


def _decode(data: bytes, fmt: CompressionFormat) -> bytes:
    if fmt is CompressionFormat.GZIP:
        out = bytearray()
        with gzip.GzipFile(fileobj=io.BytesIO(data), mode="rb") as gf:
            while True:
                chunk = gf.read(CHUNK_SIZE)
                if not chunk:
                    break
                out += chunk
        return bytes(out)
    return bytes(_inflate_chunks(zlib.decompressobj(_RAW_WBITS), data))


def _run(operation: str, func, data, fmt, fallback: bool | None, *args) -> bytes:
    raw = _check_bytes(data)
    fmt = CompressionFormat.parse(fmt)
    try:
        return func(raw, fmt, *args)
    except _CODEC_ERRORS as exc:
        err = CompressionError(operation, fmt, exc)
        use_fallback = FALLBACK_ON_ERROR if fallback is None else fallback
        if use_fallback:
            logger.error("%s; devolvendo entrada original (%d bytes)", err, len(raw), exc_info=True)
            return raw
        logger.error("%s", err, exc_info=True)
        raise err from exc


def compress(
    data,
    fmt: CompressionFormat = CompressionFormat.GZIP,
    *,
    fallback: bool | None = None,
    level: int = DEFAULT_LEVEL,
) -> bytes:
    """Comprime ``data`` no formato pedido.

    Args:
        data: bytes-like arbitrário, possivelmente vazio.
        fmt: ``CompressionFormat`` (ou nome) a usar; GZIP por padrão.
        fallback: devolve a entrada original em falha em vez de levantar.
            ``None`` usa ``FALLBACK_ON_ERROR``.
        level: nível zlib (``-1`` = padrão do codec).

    Raises:
        CompressionError: falha de I/O no modo estrito.
    """
    return _run("compress", _encode, data, fmt, fallback, level)


def decompress(
    data,
    fmt: CompressionFormat = CompressionFormat.GZIP,
    *,
    fallback: bool | None = None,
) -> bytes:
    """Descomprime ``data`` produzido por :func:`compress` com o mesmo formato.

    A leitura é incremental e vai até o fim do stream, sem limite derivado do
    tamanho da entrada. Entrada truncada ou malformada é tratada como erro.
    """
    return _run("decompress", _decode, data, fmt, fallback)


def try_compress(data, fmt: CompressionFormat = CompressionFormat.GZIP) -> CompressionResult:
    """Como :func:`compress`, mas devolve o resultado com sinal de erro."""
    try:
        return CompressionResult(compress(data, fmt, fallback=False), True)
    except CompressionError as exc:
        return CompressionResult(_check_bytes(data), False, exc)


def try_decompress(data, fmt: CompressionFormat = CompressionFormat.GZIP) -> CompressionResult:
    """Como :func:`decompress`, mas devolve o resultado com sinal de erro."""
    try:
        return CompressionResult(decompress(data, fmt, fallback=False), True)
    except CompressionError as exc:
        return CompressionResult(_check_bytes(data), False, exc)


def is_gzip_compressed(data) -> bool:
    """True se ``data`` começar com o magic GZIP (0x1F 0x8B).

    Entradas com menos de dois bytes devolvem False.
    """
    if data is None or len(data) < 2:
        return False
    return bytes(data[:2]) == GZIP_MAGIC


# ========================
# 2. Helpers de arquivo
# ========================


def _tmp_for(dst: Path) -> Path:
    return dst.with_name(dst.name + ".tmp")


def _deflate_stream(rf, wf, level: int) -> None:
    comp = zlib.compressobj(level, zlib.DEFLATED, _RAW_WBITS)
    while True:
        block = rf.read(CHUNK_SIZE)
        if not block:
            break
        wf.write(comp.compress(block))
    wf.write(comp.flush())


def _inflate_stream(rf, wf) -> None:
    decomp = zlib.decompressobj(_RAW_WBITS)
    while not decomp.eof:
        block = rf.read(CHUNK_SIZE)
        if not block:
            break
        wf.write(bytes(_inflate_partial(decomp, block)))
    wf.write(decomp.flush())
    if not decomp.eof:
        raise EOFError("stream DEFLATE truncado")


def compress_file(
    src: Path,
    dst: Path,
    fmt: CompressionFormat = CompressionFormat.GZIP,
    level: int = DEFAULT_LEVEL,
) -> bool:
    """Comprime `src` em `dst`. Usa escrita temporária + replace atômico."""
    src, dst = Path(src), Path(dst)
    fmt = CompressionFormat.parse(fmt)
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = _tmp_for(dst)
    try:
        if fmt is CompressionFormat.GZIP:
            with src.open("rb") as rf, gzip.open(tmp, "wb", compresslevel=level) as gf:
                shutil.copyfileobj(rf, gf, CHUNK_SIZE)
        else:
            with src.open("rb") as rf, tmp.open("wb") as wf:
                _deflate_stream(rf, wf, level)
    except _CODEC_ERRORS as exc:
        logger.error("compress_file: falha %s -> %s (%s): %s", src, dst, fmt.name, exc, exc_info=True)
        tmp.unlink(missing_ok=True)
        return False
    return atomic_replace(tmp, dst)


def decompress_file(src: Path, dst: Path, fmt: CompressionFormat = CompressionFormat.GZIP) -> bool:
    """Descomprime `src` em `dst` sem deixar `dst` parcial em caso de falha."""
    src, dst = Path(src), Path(dst)
    fmt = CompressionFormat.parse(fmt)
    dst.parent.mkdir(parents=True, exist_ok=True)
    tmp = _tmp_for(dst)
    try:
        if fmt is CompressionFormat.GZIP:
            with gzip.open(src, "rb") as gf, tmp.open("wb") as wf:
                shutil.copyfileobj(gf, wf, CHUNK_SIZE)
        else:
            with src.open("rb") as rf, tmp.open("wb") as wf:
                _inflate_stream(rf, wf)
    except _CODEC_ERRORS as exc:
        logger.error("decompress_file: falha %s -> %s (%s): %s", src, dst, fmt.name, exc, exc_info=True)
        tmp.unlink(missing_ok=True)
        return False
    return atomic_replace(tmp, dst)
