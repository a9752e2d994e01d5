# conftest.py
# Configuração global para pytest: adiciona a raiz do projeto ao sys.path para permitir imports `src.*`
import sys
from pathlib import Path

import pytest

ROOT_PATH = Path(__file__).parent
if str(ROOT_PATH) not in sys.path:
    sys.path.insert(0, str(ROOT_PATH))


@pytest.fixture(autouse=True)
def _restore_std_streams():
    """Garante que nenhum teste deixe sys.stdout/sys.stderr redirecionados."""
    out, err = sys.stdout, sys.stderr
    yield
    sys.stdout, sys.stderr = out, err
    from src.system import redirect

    redirect._ORIGINALS.clear()
