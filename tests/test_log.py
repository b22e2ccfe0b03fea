import glob
import gzip
import logging

from debian_post_install.log import rotate_log, setup_logging


def test_small_log_is_left_alone(tmp_path):
    log_file = tmp_path / "setup.log"
    log_file.write_text("short\n")

    rotate_log(str(log_file), max_size=1024)

    assert log_file.read_text() == "short\n"
    assert glob.glob(f"{log_file}.*.gz") == []


def test_large_log_is_gzipped_and_truncated(tmp_path):
    log_file = tmp_path / "setup.log"
    log_file.write_text("x" * 100)

    rotate_log(str(log_file), max_size=10)

    rotated = glob.glob(f"{log_file}.*.gz")
    assert len(rotated) == 1
    with gzip.open(rotated[0], "rt") as f:
        assert f.read() == "x" * 100
    assert log_file.read_text() == ""


def test_setup_logging_replaces_handlers(tmp_path):
    first = setup_logging(str(tmp_path / "a.log"))
    second = setup_logging(str(tmp_path / "logs" / "b.log"), debug=True)

    assert first is second
    file_handlers = [h for h in second.handlers if isinstance(h, logging.FileHandler)]
    assert len(file_handlers) == 1
    assert file_handlers[0].baseFilename.endswith("b.log")
    assert len(second.handlers) == 2

    for handler in list(second.handlers):
        second.removeHandler(handler)
        handler.close()
