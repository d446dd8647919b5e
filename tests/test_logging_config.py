import logging
from contextlib import contextmanager

from logging_config import setup_logging


@contextmanager
def root_logger_restored():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    try:
        yield root
    finally:
        for handler in root.handlers:
            if handler not in handlers:
                handler.close()
        root.handlers[:] = handlers
        root.setLevel(level)


def test_setup_logging_writes_log_file(tmp_path):
    log_file = tmp_path / "slicer.log"
    with root_logger_restored() as root:
        setup_logging(logging.DEBUG, log_file)
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 2
        logging.getLogger("geometry_ops").debug("Layer %d at Z=%.3f", 3, 1.5)
        for handler in root.handlers:
            handler.flush()

    text = log_file.read_text(encoding="utf-8")
    assert "geometry_ops - DEBUG - Layer 3 at Z=1.500" in text


def test_setup_logging_console_only():
    with root_logger_restored() as root:
        setup_logging()
        assert root.level == logging.INFO
        assert [type(h) for h in root.handlers] == [logging.StreamHandler]
