"""Pacote core: orquestração da linha de comando.

Contém o parsing de argumentos e a combinação com as configurações.
"""

from .args import parse_args, merge_settings, resolve_output

__all__ = ["parse_args", "merge_settings", "resolve_output"]
