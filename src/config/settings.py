"""Configurações do wrath-utils.

Este módulo centraliza os padrões do logger dual (console + arquivo) e do
compressor. Carrega valores a partir de ``DEFAULT_LOGGER_SETTINGS`` e
``DEFAULT_COMPRESSION_SETTINGS`` e permite overrides via arquivo ``.env`` ou
variáveis de ambiente (prefixo ``WRATH_*``).
As funções públicas principais são:

- ``load_settings()`` -> dicionário com chaves: "logger", "compression",
  "log_level", "durable_writes".
- ``validate_settings()`` -> normaliza e valida o dicionário.
- ``get_bool()`` -> interpreta flags textuais ("1", "true", "off", ...).

Comentários e mensagens de log estão em português.
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# ========================
# Constantes e padrões globais
# ========================

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_FORMATS = ("gzip", "deflate")

DEFAULT_LOGGER_SETTINGS = {
    "log_file": "logs/wrath.log",
    "timestamp": True,
    "console": True,
    "file": True,
}

DEFAULT_COMPRESSION_SETTINGS = {
    "format": "gzip",
    "fallback": False,
}

# variável de ambiente -> (seção, chave)
_ENV_MAP = {
    "WRATH_LOG_FILE": ("logger", "log_file"),
    "WRATH_LOG_TIMESTAMP": ("logger", "timestamp"),
    "WRATH_LOG_CONSOLE": ("logger", "console"),
    "WRATH_LOG_TO_FILE": ("logger", "file"),
    "WRATH_COMPRESSION_FORMAT": ("compression", "format"),
    "WRATH_COMPRESSION_FALLBACK": ("compression", "fallback"),
}


# ========================
# 1. Carregamento das configurações
# ========================


# Função principal do módulo; carrega todas as configurações do ambiente
def load_settings() -> dict:
    """Carrega configurações combinando DEFAULTS + .env + ambiente.

    Retorna um dicionário com as chaves:

    - "logger": flags e caminho do logger dual
    - "compression": formato padrão e modo de fallback
    - "log_level": nível do canal de erros (``logging``)
    - "durable_writes": aplica fsync a cada registro gravado

    As variáveis em ambiente sobrescrevem valores do arquivo `.env`.
    """
    project_root = Path(__file__).resolve().parents[2]
    env_path = Path(os.getenv("WRATH_ENV_FILE", project_root / ".env"))

    env_items = _merge_env_items(env_path)

    settings = {
        "logger": DEFAULT_LOGGER_SETTINGS.copy(),
        "compression": DEFAULT_COMPRESSION_SETTINGS.copy(),
        "log_level": "WARNING",
        "durable_writes": False,
    }
    _apply_env_overrides(env_items, settings)

    if "WRATH_LOG_LEVEL" in env_items:
        settings["log_level"] = str(env_items["WRATH_LOG_LEVEL"]).strip().upper()
    if "WRATH_DURABLE_WRITES" in env_items:
        settings["durable_writes"] = get_bool(env_items["WRATH_DURABLE_WRITES"], False)

    return settings


# ========================
# 2. Funções auxiliares para ambiente e overrides
# ========================


# Auxilia load_settings; criado para centralizar leitura do .env
def _read_env_file(path: Path | str) -> dict:
    """Lê um arquivo `.env` e devolve um dicionário chave->valor.

    Linhas vazias e comentários (começando com '#') são ignorados.
    """
    result: dict[str, str] = {}
    p = Path(path)
    if not p.exists():
        return result
    try:
        with p.open("r", encoding="utf-8") as fh:
            for line in fh:
                line = line.strip()
                if not line or line.startswith("#"):
                    continue
                if "=" not in line:
                    continue
                key, val = line.split("=", 1)
                key = key.strip()
                val = val.strip().strip('"').strip("'")
                result[key] = val
    except OSError as exc:
        logger.debug("Falha ao ler .env em %s: %s", p, exc)
        return {}
    return result


# Auxilia load_settings; criado para unir variáveis do ambiente e .env
def _merge_env_items(env_path: Path) -> dict:
    """Retorna um mapeamento combinado de `.env` e env vars do processo.

    As variáveis do processo sobrescrevem o arquivo `.env`.
    """
    env_items = _read_env_file(env_path)
    if env_items == {} and env_path.exists():
        logger.warning("Erro ou ficheiro .env vazio em %s", env_path)
    env_items.update({k: v for k, v in os.environ.items() if k.startswith("WRATH_")})
    return env_items


# Auxilia load_settings; aplica overrides de logger/compressão
def _apply_env_overrides(env_items: dict, settings: dict) -> None:
    """Aplica overrides ``WRATH_*`` nas seções ``logger`` e ``compression``.

    Flags booleanas inválidas mantêm o valor padrão e registram aviso.
    """
    for env_key, (section, key) in _ENV_MAP.items():
        if env_key not in env_items:
            continue
        raw_val = env_items[env_key]
        current = settings[section][key]
        if isinstance(current, bool):
            settings[section][key] = get_bool(raw_val, current, name=env_key)
        else:
            settings[section][key] = str(raw_val).strip()


def get_bool(raw, default: bool, name: str | None = None) -> bool:
    """Interpreta uma flag textual; devolve ``default`` quando não reconhecida."""
    if isinstance(raw, bool):
        return raw
    s = str(raw).strip().lower()
    if s in TRUE_VALUES:
        return True
    if s in FALSE_VALUES:
        return False
    logger.warning("Valor booleano inválido para %s: %r", name or "flag", raw)
    return default


# ========================
# 3. Validação e normalização
# ========================


# Função principal de validação; normaliza e valida configurações
def validate_settings(settings: dict) -> dict:
    """Normaliza e valida o dicionário de configurações.

    Garante seções completas, formato de compressão conhecido e nível de log
    válido. Levanta ``TypeError``/``ValueError`` em caso de erro.
    """
    if not isinstance(settings, dict):
        raise TypeError("settings deve ser um dict")

    log_section = settings.get("logger")
    if not isinstance(log_section, dict):
        log_section = {}
    merged_log = DEFAULT_LOGGER_SETTINGS.copy()
    merged_log.update(log_section)
    for key in ("timestamp", "console", "file"):
        if not isinstance(merged_log[key], bool):
            raise ValueError(f"logger.{key} deve ser booleano: {merged_log[key]!r}")
    if merged_log["file"] and not merged_log["log_file"]:
        raise ValueError("logger.log_file é obrigatório quando logger.file está ativo")

    comp_section = settings.get("compression")
    if not isinstance(comp_section, dict):
        comp_section = {}
    merged_comp = DEFAULT_COMPRESSION_SETTINGS.copy()
    merged_comp.update(comp_section)
    fmt = str(merged_comp["format"]).strip().lower()
    if fmt not in VALID_FORMATS:
        raise ValueError(f"formato de compressão desconhecido: {merged_comp['format']!r}")
    merged_comp["format"] = fmt
    if not isinstance(merged_comp["fallback"], bool):
        raise ValueError(f"compression.fallback deve ser booleano: {merged_comp['fallback']!r}")

    level = str(settings.get("log_level") or "WARNING").upper()
    if level not in VALID_LOG_LEVELS:
        raise ValueError(f"nível de log inválido: {level}")

    settings["logger"] = merged_log
    settings["compression"] = merged_comp
    settings["log_level"] = level
    settings["durable_writes"] = bool(settings.get("durable_writes", False))
    logger.debug("Configurações validadas e normalizadas")
    return settings


# Auxilia outros módulos; retorna settings validados ou padrão em caso de erro
def get_valid_settings(settings: dict | None = None) -> dict:
    """Retorna configurações validadas.

    Em caso de erro, só as seções inválidas voltam ao padrão (com aviso); as
    demais são mantidas.
    """
    try:
        if settings is None:
            settings = load_settings()
        return validate_settings(settings)
    except (TypeError, ValueError, OSError) as exc:
        logger.warning("Falha ao validar settings; serão usados os padrões: %s", exc)
        if not isinstance(settings, dict):
            return validate_settings({})
        return _salvage_settings(settings)


# Auxilia get_valid_settings; valida seção por seção e descarta as inválidas
def _salvage_settings(settings: dict) -> dict:
    kept = {}
    for key in ("logger", "compression", "log_level", "durable_writes"):
        if key not in settings:
            continue
        try:
            validate_settings({key: settings[key]})
        except (TypeError, ValueError) as exc:
            logger.warning("Seção %s inválida; usando padrão: %s", key, exc)
            continue
        kept[key] = settings[key]
    return validate_settings(kept)


# Auxilia o logger dual; converte a seção "logger" em LoggerConfig imutável
def get_logger_config(settings: dict | None = None):
    """Constrói um ``LoggerConfig`` a partir das configurações efetivas."""
    from ..system.dual_logger import LoggerConfig

    log_section = get_valid_settings(settings)["logger"]
    log_file = log_section.get("log_file")
    return LoggerConfig(
        log_file=Path(log_file) if log_file else None,
        timestamp=log_section["timestamp"],
        console=log_section["console"],
        file=log_section["file"],
    )
