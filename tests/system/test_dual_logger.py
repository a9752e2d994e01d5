import io
import logging
import re
import threading

from src.system import dual_logger as dl
from src.system.dual_logger import DualSinkLogger, LoggerConfig
from src.system.time_helpers import TIMESTAMP_RE


TS = r"\[\d{2}/\d{2}/\d{4}\]\[\d{2}:\d{2}:\d{2}\]"


def _make(tmp_path, **kw):
    console = io.StringIO()
    log_file = tmp_path / "logs" / "app.log"
    logger = DualSinkLogger(log_file, console_stream=console, **kw)
    return logger, console, log_file


def test_println_writes_both_sinks_with_timestamp(tmp_path):
    """println grava no console e no arquivo com o mesmo prefixo de timestamp."""
    logger, console, log_file = _make(tmp_path)
    logger.println("hello")
    logger.close()

    out = console.getvalue()
    assert re.fullmatch(TS + r" hello\n", out)
    content = log_file.read_text(encoding="utf-8")
    assert re.fullmatch(TS + r" hello\n", content)
    assert TIMESTAMP_RE.match(out).group(0) == TIMESTAMP_RE.match(content).group(0)


def test_print_adds_no_newline(tmp_path):
    """print não acrescenta terminador de linha."""
    logger, console, log_file = _make(tmp_path, timestamp=False)
    logger.print("a")
    logger.print("b")
    logger.close()
    assert console.getvalue() == "ab"
    assert log_file.read_text(encoding="utf-8") == "ab"


def test_file_created_and_appended(tmp_path):
    """O arquivo é criado se ausente e aberto em modo append entre execuções."""
    log_file = tmp_path / "nested" / "dir" / "run.log"
    for i in range(2):
        with DualSinkLogger(log_file, timestamp=False, console=False) as logger:
            logger.println(f"run {i}")
    assert log_file.read_text(encoding="utf-8") == "run 0\nrun 1\n"


def test_embedded_newlines_are_one_record(tmp_path):
    """Quebras de linha internas não geram novos timestamps."""
    logger, console, log_file = _make(tmp_path)
    logger.println("first\nsecond")
    logger.close()
    content = log_file.read_text(encoding="utf-8")
    assert len(re.findall(TS, content)) == 1
    assert content.endswith("first\nsecond\n")
    assert len(re.findall(TS, console.getvalue())) == 1


def test_crlf_terminator_normalized_in_file(tmp_path):
    """Um terminador final \\r\\n vira \\n no arquivo."""
    logger, _, log_file = _make(tmp_path, timestamp=False, console=False)
    logger.print("windows\r\n")
    logger.close()
    assert log_file.read_bytes() == b"windows\n"


def test_console_suppression_keeps_file_output(tmp_path):
    """filter_console None suprime só o console; o arquivo usa filter_log."""

    class QuietConsole(DualSinkLogger):
        def filter_console(self, text):
            return None

        def filter_log(self, text):
            return text.upper()

    console = io.StringIO()
    log_file = tmp_path / "q.log"
    logger = QuietConsole(log_file, console_stream=console)
    logger.println("secret")
    logger.close()

    assert console.getvalue() == ""
    assert re.fullmatch(TS + r" SECRET\n", log_file.read_text(encoding="utf-8"))


def test_log_suppression_keeps_console_output(tmp_path):
    """filter_log None suprime só o arquivo."""

    class NoFile(DualSinkLogger):
        def filter_log(self, text):
            return None if "password" in text else text

    console = io.StringIO()
    log_file = tmp_path / "n.log"
    logger = NoFile(log_file, timestamp=False, console_stream=console)
    logger.println("password=1")
    logger.println("ok")
    logger.close()

    assert console.getvalue() == "password=1\nok\n"
    assert log_file.read_text(encoding="utf-8") == "ok\n"


def test_close_is_idempotent_and_stops_file_writes(tmp_path):
    """close duas vezes equivale a uma; depois do close só o console recebe texto."""
    logger, console, log_file = _make(tmp_path, timestamp=False)
    logger.println("before")
    assert not logger.closed
    logger.close()
    logger.close()
    assert logger.closed
    assert not logger.file_active

    logger.println("after")
    assert log_file.read_text(encoding="utf-8") == "before\n"
    assert console.getvalue() == "before\nafter\n"


def test_console_disabled(tmp_path):
    """Com console=False nada é escrito no console."""
    logger, console, log_file = _make(tmp_path, console=False)
    logger.println("x")
    logger.close()
    assert console.getvalue() == ""
    assert log_file.read_text(encoding="utf-8").endswith(" x\n")


def test_file_disabled_creates_nothing(tmp_path):
    """Com file=False o arquivo não é criado."""
    logger, console, log_file = _make(tmp_path, file=False)
    logger.println("x")
    logger.close()
    assert not log_file.exists()
    assert not logger.file_active
    assert console.getvalue().endswith(" x\n")


def test_open_failure_disables_file_sink(tmp_path, caplog):
    """Falha ao abrir o arquivo é registrada e o logger segue só com console."""
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("file")
    console = io.StringIO()
    caplog.set_level(logging.ERROR)

    logger = DualSinkLogger(blocker / "app.log", timestamp=False, console_stream=console)
    assert not logger.file_active
    logger.println("still works")
    logger.close()

    assert console.getvalue() == "still works\n"
    assert "Could not" in caplog.text


def test_file_without_path_is_disabled(caplog):
    """file=True sem caminho desativa o arquivo explicitamente."""
    console = io.StringIO()
    caplog.set_level(logging.ERROR)
    logger = DualSinkLogger(None, console_stream=console)
    assert not logger.file_active
    logger.println("x")
    assert "no log file" in caplog.text


def test_write_failure_disables_file_sink(tmp_path, monkeypatch, caplog):
    """Erro de escrita no arquivo desativa o destino sem propagar."""
    logger, console, log_file = _make(tmp_path, timestamp=False)

    def broken(fh, text, durable=False):
        raise OSError("disk full")

    monkeypatch.setattr(dl, "append_locked", broken)
    caplog.set_level(logging.ERROR)
    logger.println("one")
    logger.println("two")
    logger.close()

    assert not logger.file_active
    assert console.getvalue() == "one\ntwo\n"
    assert len([r for r in caplog.records if "Could not write to log file" in r.getMessage()]) == 1


def test_console_failure_is_swallowed(tmp_path, caplog):
    """Falha no stream do console é registrada e o arquivo continua."""
    console = io.StringIO()
    console.close()
    log_file = tmp_path / "c.log"
    caplog.set_level(logging.ERROR)
    logger = DualSinkLogger(log_file, timestamp=False, console_stream=console)
    logger.println("a")
    logger.println("b")
    logger.close()
    assert log_file.read_text(encoding="utf-8") == "a\nb\n"
    assert len([r for r in caplog.records if "console stream" in r.getMessage()]) == 1


def test_stream_adapter_emits_one_record_per_line(tmp_path):
    """write acumula texto parcial e emite um registro por linha completa."""
    logger, console, log_file = _make(tmp_path)
    print("hello", "world", file=logger)
    logger.write("partial")
    assert "partial" not in console.getvalue()
    logger.flush()
    logger.close()

    lines = console.getvalue().splitlines()
    assert len(lines) == 2
    assert re.fullmatch(TS + " hello world", lines[0])
    assert re.fullmatch(TS + " partial", lines[1])
    assert log_file.read_text(encoding="utf-8").count("[") == 4


def test_close_emits_pending_text(tmp_path):
    """close emite texto parcial pendente antes de fechar o arquivo."""
    logger, _, log_file = _make(tmp_path, timestamp=False, console=False)
    logger.write("tail")
    logger.close()
    assert log_file.read_text(encoding="utf-8") == "tail"


def test_from_config_and_settings(tmp_path):
    """from_config/from_settings constroem o logger com a configuração dada."""
    cfg = LoggerConfig(log_file=tmp_path / "cfg.log", timestamp=False, console=False, file=True)
    with DualSinkLogger.from_config(cfg) as logger:
        assert logger.config == cfg
        logger.println("cfg")
    assert (tmp_path / "cfg.log").read_text(encoding="utf-8") == "cfg\n"

    settings = {"logger": {"log_file": str(tmp_path / "s.log"), "timestamp": False, "console": False}}
    with DualSinkLogger.from_settings(settings) as logger:
        logger.println("settings")
    assert (tmp_path / "s.log").read_text(encoding="utf-8") == "settings\n"


def test_durable_writes_fsync(tmp_path, monkeypatch):
    """durable=True chama fsync a cada registro."""
    from src.system import log_helpers as lh

    calls = []
    monkeypatch.setattr(lh.os, "fsync", lambda fd: calls.append(fd))
    logger, _, _ = _make(tmp_path, console=False, durable=True)
    logger.println("a")
    logger.println("b")
    logger.close()
    assert len(calls) == 2


def test_console_stream_unwraps_installed_logger(tmp_path):
    """Um logger criado com outro logger como console usa o stream real."""
    inner, console, _ = _make(tmp_path, file=False)
    outer = DualSinkLogger(None, file=False, timestamp=False, console_stream=inner)
    assert outer.console_stream is console
    outer.println("direct")
    assert console.getvalue() == "direct\n"


def test_concurrent_writers_produce_whole_records(tmp_path):
    """Escritas concorrentes não intercalam registros no arquivo."""
    logger, _, log_file = _make(tmp_path, console=False)

    def worker(n):
        for i in range(50):
            logger.println(f"worker-{n}-{i}")

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    logger.close()

    lines = log_file.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 200
    assert all(re.fullmatch(TS + r" worker-\d-\d+", line) for line in lines)


def test_write_failure_while_installed_as_stderr(tmp_path, monkeypatch):
    """Falha no arquivo com o logger como sys.stderr não entra em recursão."""
    from src.system.redirect import redirected

    logger, console, _ = _make(tmp_path, timestamp=False)

    def broken(fh, text, durable=False):
        raise OSError("disk full")

    monkeypatch.setattr(dl, "append_locked", broken)
    # sem handlers o logging usa lastResort, que escreve em sys.stderr
    monkeypatch.setattr(logging.root, "handlers", [])
    with redirected(err=logger):
        logger.println("x")
        logger.println("y")
    logger.close()

    assert not logger.file_active
    out = console.getvalue()
    assert out.startswith("x\n")
    assert out.count("Could not write to log file") == 1
    assert out.rstrip().endswith("y")
