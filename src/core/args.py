"""Parser de argumentos da linha de comando.

Docstrings e mensagens em português.

Este módulo fornece um parser simples que expõe:
- comando (compress / decompress / detect) e arquivo de entrada
- arquivo de saída (-o / --output) e formato (-f / --format)
- opções do logger dual (arquivo, timestamp, console)
- verbosidade (-v) e nível de logging

Precedência: CLI > variáveis de ambiente (``WRATH_*``) > ``.env`` > padrões.
Os valores não informados na CLI ficam ``None`` e são resolvidos por
``config.settings.load_settings``.
"""

import argparse
from pathlib import Path
from typing import Sequence

from ..config.settings import VALID_LOG_LEVELS
from ..system.compression import CompressionFormat

COMMANDS = ("compress", "decompress", "detect")

_SUFFIXES = {
    CompressionFormat.GZIP: ".gz",
    CompressionFormat.DEFLATE: ".deflate",
}

# ========================
# 0. Configuração do parser e argumentos padrão
# ========================


# Função principal do módulo; cria e retorna o ArgumentParser configurado
def configure_argparser() -> argparse.ArgumentParser:
    """Cria e retorna ArgumentParser configurado para o wrath-utils."""
    parser = argparse.ArgumentParser(
        prog="wrath",
        description="Compressão DEFLATE/GZIP de arquivos com log em console e arquivo",
    )

    parser.add_argument("command", choices=COMMANDS, help="Operação a executar")
    parser.add_argument("input", type=str, help="Arquivo de entrada")
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="Arquivo de saída (padrão derivado da entrada e do formato)",
    )
    parser.add_argument(
        "-f",
        "--format",
        dest="format",
        choices=[f.value for f in CompressionFormat],
        default=None,
        help="Formato de compressão (substitui WRATH_COMPRESSION_FORMAT; padrão gzip)",
    )
    parser.add_argument(
        "--log-file",
        dest="log_file",
        type=str,
        default=None,
        help="Arquivo do logger (substitui WRATH_LOG_FILE)",
    )
    parser.add_argument("--no-timestamp", dest="no_timestamp", action="store_true", help="Desativa timestamps")
    parser.add_argument("--no-console", dest="no_console", action="store_true", help="Desativa saída no console")
    parser.add_argument("--no-file-log", dest="no_file_log", action="store_true", help="Desativa o arquivo de log")
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Aumenta a verbosidade (-v, -vv)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        type=str.upper,
        choices=VALID_LOG_LEVELS,
        default=None,
        help="Nível de logging (substitui WRATH_LOG_LEVEL). Se ausente, definido por -v",
    )

    return parser


# ========================
# 1. Funções auxiliares para análise e validação de argumentos
# ========================


# Auxilia src.main; criado para analisar argv e validar argumentos
def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Analisa argv e retorna Namespace validado para uso no programa.

    Opções ausentes ficam ``None``: os valores de ``.env`` e do ambiente
    (``WRATH_*``) são aplicados depois, por ``load_settings``.
    """
    parser = configure_argparser()
    ns = parser.parse_args(argv)
    validate_args(ns)
    return ns


# Auxilia parse_args; criado para garantir valores corretos e seguros
def validate_args(args: argparse.Namespace) -> None:
    """Valida e normaliza os argumentos informados na linha de comando."""
    if args.format is not None:
        try:
            args.format = CompressionFormat.parse(args.format)
        except ValueError as exc:
            raise ValueError(f"formato inválido: {args.format!r}") from exc

    if not getattr(args, "input", None):
        raise ValueError("arquivo de entrada é obrigatório")


# Auxilia src.main; completa formato e saída depois da fusão com settings
def resolve_output(args: argparse.Namespace, settings: dict) -> None:
    """Define ``args.format`` e ``args.output`` a partir das configurações efetivas."""
    args.format = CompressionFormat.parse(settings["compression"]["format"])

    if args.command == "detect":
        args.output = None
        return

    if not args.output:
        args.output = default_output_path(args.command, args.input, args.format)
    if Path(args.output).resolve() == Path(args.input).resolve():
        raise ValueError("arquivo de saída deve ser diferente da entrada")


def default_output_path(command: str, input_path: str, fmt: CompressionFormat) -> str:
    """Deriva o arquivo de saída: acrescenta/remove o sufixo do formato."""
    suffix = _SUFFIXES[fmt]
    if command == "compress":
        return input_path + suffix
    if input_path.endswith(suffix) and len(input_path) > len(suffix):
        return input_path[: -len(suffix)]
    return input_path + ".out"


# ========================
# 2. Funções auxiliares para configuração
# ========================


# Auxilia src.main; criado para extrair configuração de logging dos argumentos
def get_log_config(args: argparse.Namespace) -> dict:
    """Retorna dict com o nível do canal de erros ('level').

    ``level`` é ``None`` quando nem ``--log-level`` nem ``-v`` foram usados.
    """
    level = None
    if getattr(args, "log_level", None):
        level = str(args.log_level).upper()
    else:
        v = getattr(args, "verbose", 0) or 0
        if v >= 2:
            level = "DEBUG"
        elif v == 1:
            level = "INFO"
    return {"level": level}


# Auxilia src.main; aplica overrides da CLI sobre load_settings()
def merge_settings(args: argparse.Namespace, settings: dict) -> dict:
    """Sobrepõe às configurações só as opções informadas na CLI."""
    log_section = dict(settings.get("logger") or {})
    if getattr(args, "log_file", None):
        log_section["log_file"] = args.log_file
    if getattr(args, "no_timestamp", False):
        log_section["timestamp"] = False
    if getattr(args, "no_console", False):
        log_section["console"] = False
    if getattr(args, "no_file_log", False):
        log_section["file"] = False
    settings["logger"] = log_section

    comp_section = dict(settings.get("compression") or {})
    if getattr(args, "format", None) is not None:
        comp_section["format"] = args.format.value
    settings["compression"] = comp_section

    level = get_log_config(args)["level"]
    if level:
        settings["log_level"] = level
    return settings
