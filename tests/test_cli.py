import argparse
import logging

import pytest

from serialterm import cli
from serialterm.channels import LogSink
from serialterm.term_driver import PortInfo, SerialTransport, TransportError


ALLOWED = "300, 1200, 2400, 4800, 9600, 19200, 38400, 57600, 115200"


def test_valid_baud_rate():
    assert cli.validate_baud_rate("9600") == 9600


def test_invalid_baud_rate_lists_allowed_set():
    with pytest.raises(argparse.ArgumentTypeError) as exc:
        cli.validate_baud_rate("9601")
    assert "Invalid baud rate: 9601" in str(exc.value)
    assert ALLOWED in str(exc.value)


def test_non_numeric_baud_rate():
    with pytest.raises(argparse.ArgumentTypeError, match="must be a number"):
        cli.validate_baud_rate("fast")


@pytest.mark.parametrize("port", ["COM3", "com12", "/dev/ttyUSB0", "/dev/tty.usbserial-1420"])
def test_valid_port_patterns(port):
    assert cli.validate_port(port) == port


def test_missing_unix_port_only_warns(caplog):
    with caplog.at_level(logging.WARNING):
        assert cli.validate_port("/dev/ttyNOPE42") == "/dev/ttyNOPE42"
    assert "may not exist" in caplog.text


@pytest.mark.parametrize("port", ["/tmp/device", "usb0", "/dev/cu.usbserial"])
def test_invalid_port_patterns(port):
    with pytest.raises(argparse.ArgumentTypeError, match="Invalid port"):
        cli.validate_port(port)


def test_defaults():
    args = cli.build_parser().parse_args([])
    assert args.port == "/dev/ttyUSB0"
    assert args.baud_rate == 57600
    assert args.log_file == "serial_monitor.log"
    assert not args.no_log


def test_bad_baud_rate_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--baud-rate", "9601"])
    assert exc.value.code == 2
    assert ALLOWED in capsys.readouterr().err


def test_list_ports(monkeypatch, capsys):
    monkeypatch.setattr(cli, "list_serial_ports", lambda: [PortInfo("/dev/ttyACM0", "Arduino Uno")])
    assert cli.main(["--list-ports"]) == 0
    assert "/dev/ttyACM0  (Arduino Uno)" in capsys.readouterr().out


def test_transport_failure_exits_nonzero_before_ui(monkeypatch, tmp_path, caplog):
    def fail(self):
        raise TransportError("Could not open /dev/ttyUSB0")

    monkeypatch.setattr(SerialTransport, "connect", fail)
    monkeypatch.setattr(cli, "run_session", lambda *a, **k: pytest.fail("UI entered"))
    with caplog.at_level(logging.ERROR):
        code = cli.main(["--port", "/dev/ttyUSB0", "--log-file", str(tmp_path / "s.log")])
    assert code == 1
    assert "Start-up failed" in caplog.text


def test_log_file_failure_exits_nonzero(monkeypatch, tmp_path):
    monkeypatch.setattr(SerialTransport, "connect", lambda self: None)
    monkeypatch.setattr(cli, "run_session", lambda *a, **k: pytest.fail("UI entered"))
    code = cli.main(["--log-file", str(tmp_path / "no" / "such" / "dir.log")])
    assert code == 1


def test_successful_run_hands_over_to_session(monkeypatch, tmp_path):
    seen = {}

    def fake_run(transport, log_sink):
        seen["transport"], seen["log_sink"] = transport, log_sink
        return 0

    monkeypatch.setattr(SerialTransport, "connect", lambda self: None)
    monkeypatch.setattr(cli, "run_session", fake_run)
    log_path = tmp_path / "serial.log"
    code = cli.main(["--port", "COM4", "--baud-rate", "115200", "--log-file", str(log_path)])

    assert code == 0
    assert (seen["transport"].port, seen["transport"].baudrate) == ("COM4", 115200)
    assert isinstance(seen["log_sink"], LogSink)
    assert log_path.exists()


def test_no_log_skips_log_file(monkeypatch, tmp_path):
    seen = {}
    monkeypatch.setattr(SerialTransport, "connect", lambda self: None)
    monkeypatch.setattr(cli, "run_session", lambda transport, log_sink: seen.setdefault("sink", log_sink) or 0)
    monkeypatch.chdir(tmp_path)
    assert cli.main(["--port", "COM1", "--no-log"]) == 0
    assert seen["sink"] is None
    assert not (tmp_path / "serial_monitor.log").exists()
