"""Ponto de entrada do wrath-utils.

Este módulo realiza a inicialização da aplicação: parsing de argumentos CLI,
configuração do canal de erros (``logging``), criação do logger dual e
execução do comando pedido. A lógica de compressão fica em
``system.compression`` para facilitar testes e reutilização.
"""

import logging as _logging
import sys
from pathlib import Path

from .config.settings import get_valid_settings, load_settings
from .core.args import merge_settings, parse_args, resolve_output
from .system.compression import compress_file, decompress_file, is_gzip_compressed
from .system.dual_logger import DualSinkLogger
from .system.redirect import redirected

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def main(argv: list[str] | None = None) -> int:
    """Inicializa a aplicação e executa o comando.

    Args:
        argv: Lista de argumentos (usada em testes). Quando ``None`` a função
            utiliza os argumentos de linha de comando do processo.

    Returns:
        Código de saída do processo.

    """
    try:
        args = parse_args(argv)
        settings = get_valid_settings(merge_settings(args, load_settings()))
        resolve_output(args, settings)
    except ValueError as exc:
        print(f"wrath: erro: {exc}", file=sys.stderr)
        return EXIT_USAGE

    level = getattr(_logging, settings["log_level"], _logging.WARNING)
    _logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    with DualSinkLogger.from_settings(settings) as out:
        # prints de terceiros durante o comando também vão para o log
        with redirected(out=out):
            return _run_command(args, out)


def _run_command(args, out: DualSinkLogger) -> int:
    src = Path(args.input)
    if not src.is_file():
        out.println(f"Arquivo de entrada não encontrado: {src}")
        return EXIT_FAILURE

    if args.command == "detect":
        return _detect(src, out)

    dst = Path(args.output)
    if args.command == "compress":
        ok = compress_file(src, dst, args.format)
    else:
        ok = decompress_file(src, dst, args.format)

    if not ok:
        out.println(f"Falha ao executar {args.command} ({args.format.name}): {src} -> {dst}")
        return EXIT_FAILURE

    out.println(
        f"{args.command} ({args.format.name}): {src} ({src.stat().st_size} bytes) -> {dst} ({dst.stat().st_size} bytes)"
    )
    return EXIT_OK


def _detect(src: Path, out: DualSinkLogger) -> int:
    try:
        with src.open("rb") as fh:
            head = fh.read(2)
    except OSError as exc:
        _logging.getLogger(__name__).error("detect: falha ao ler %s: %s", src, exc, exc_info=True)
        out.println(f"Falha ao ler {src}")
        return EXIT_FAILURE
    kind = "gzip" if is_gzip_compressed(head) else "not gzip"
    out.println(f"{src}: {kind}")
    return EXIT_OK


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
