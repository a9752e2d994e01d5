"""Pacote system: compressão DEFLATE/GZIP e logger dual (console + arquivo).

Inclui os helpers de escrita com lock, timestamps e o registro de
redirecionamento de stdout/stderr.

Re-exports das APIs públicas.
"""

from .compression import (
    CompressionError,
    CompressionFormat,
    CompressionResult,
    compress,
    decompress,
    is_gzip_compressed,
    try_compress,
    try_decompress,
)
from .dual_logger import DualSinkLogger, LoggerConfig
from .redirect import register_error_logger, register_output_logger, redirected

__all__ = [
    "CompressionError",
    "CompressionFormat",
    "CompressionResult",
    "compress",
    "decompress",
    "is_gzip_compressed",
    "try_compress",
    "try_decompress",
    "DualSinkLogger",
    "LoggerConfig",
    "register_error_logger",
    "register_output_logger",
    "redirected",
]
