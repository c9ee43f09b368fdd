from pathlib import Path

from typer.testing import CliRunner

from netsup import cli as cli_module
from netsup.cli import app
from netsup.infrastructure.driver import MockNetworkDriver

STORE = """
authorization:
  server: https://api.example.com:3000
network_interfaces:
  - name: eth0
    type: wired
    ipv4_method: static
    ipv4_address: 192.168.1.50
    ipv4_gateway: 192.168.1.1
    ipv4_subnet_mask: 255.255.255.0
  - name: wlan0
    type: wireless
    security: WEP
    ssid: Legacy
"""


def _write_store(tmp_path: Path, text: str = STORE) -> Path:
    store = tmp_path / "network.yml"
    store.write_text(text.strip(), encoding="utf-8")
    return store


def test_version_command():
    runner = CliRunner()
    result = runner.invoke(app, ["version"], prog_name="netsup")
    assert result.exit_code == 0
    assert "netsup" in result.stdout


def test_config_validate_reports_errors(tmp_path):
    bad = tmp_path / "netsup.yml"
    bad.write_text("scan:\n  poll_interval_secs: 0\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(app, ["config-validate", str(bad)], prog_name="netsup")
    assert result.exit_code == 1
    assert "Config validation failed" in result.stdout


def test_config_validate_ok(tmp_path):
    good = tmp_path / "netsup.yml"
    good.write_text("supervisor:\n  max_restarts: 10\n", encoding="utf-8")
    runner = CliRunner()
    result = runner.invoke(app, ["config-validate", str(good)], prog_name="netsup")
    assert result.exit_code == 0
    assert "10 per 1.0s" in result.stdout


def test_compile_prints_configs_and_errors(tmp_path):
    store = _write_store(tmp_path)
    runner = CliRunner()
    result = runner.invoke(
        app,
        ["compile", "--store", str(store), "--config", str(tmp_path / "missing.yml")],
        prog_name="netsup",
    )
    assert result.exit_code == 1
    assert '"interface": "eth0"' in result.stdout
    assert '"ipv4_address_method": "static"' in result.stdout
    assert "unsupported wireless security type: WEP" in result.stdout


def test_dns_uses_api_server_host(tmp_path, monkeypatch):
    store = _write_store(tmp_path)
    driver = MockNetworkDriver(hosts={"api.example.com": ["10.0.0.7"]})
    monkeypatch.setattr(cli_module, "LinuxNetworkDriver", lambda: driver)

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["dns", "--store", str(store), "--config", str(tmp_path / "missing.yml")],
        prog_name="netsup",
    )
    assert result.exit_code == 0
    assert "api.example.com: 10.0.0.7" in result.stdout
    assert driver.cache_clears == 1


def test_dns_failure_exits_nonzero(tmp_path, monkeypatch):
    store = _write_store(tmp_path)
    monkeypatch.setattr(cli_module, "LinuxNetworkDriver", lambda: MockNetworkDriver())

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["dns", "nowhere.invalid", "--store", str(store), "--config", str(tmp_path / "missing.yml")],
        prog_name="netsup",
    )
    assert result.exit_code == 1
    assert "nowhere.invalid" in result.stdout


def test_scan_lists_networks(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "LinuxNetworkDriver", lambda: MockNetworkDriver())

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["scan", "wlan0", "--config", str(tmp_path / "missing.yml")],
        prog_name="netsup",
    )
    assert result.exit_code == 0
    assert "FarmNet" in result.stdout
    assert "Campus" in result.stdout


def test_level_of_missing_ssid_exits_nonzero(tmp_path, monkeypatch):
    monkeypatch.setattr(cli_module, "LinuxNetworkDriver", lambda: MockNetworkDriver())

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["level", "wlan0", "Elsewhere", "--config", str(tmp_path / "missing.yml")],
        prog_name="netsup",
    )
    assert result.exit_code == 1
    assert "Elsewhere not found" in result.stdout


def test_interfaces_filters_unusable(tmp_path, monkeypatch):
    driver = MockNetworkDriver(enumerations=[["lo", "usb0", "eth0"]])
    monkeypatch.setattr(cli_module, "LinuxNetworkDriver", lambda: driver)

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["interfaces", "--config", str(tmp_path / "missing.yml")],
        prog_name="netsup",
    )
    assert result.exit_code == 0
    assert "eth0" in result.stdout
    assert "usb0" not in result.stdout


def test_scan_without_supplicant_is_empty(tmp_path, monkeypatch):
    driver = MockNetworkDriver(scan_capable=set())
    monkeypatch.setattr(cli_module, "LinuxNetworkDriver", lambda: driver)

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["scan", "wlan0", "--config", str(tmp_path / "missing.yml")],
        prog_name="netsup",
    )
    assert result.exit_code == 0
    assert "No networks found." in result.stdout
    assert driver.calls_to("request_scan") == []


def test_level_without_supplicant_is_not_found(tmp_path, monkeypatch):
    driver = MockNetworkDriver(scan_capable=set())
    monkeypatch.setattr(cli_module, "LinuxNetworkDriver", lambda: driver)

    runner = CliRunner()
    result = runner.invoke(
        app,
        ["level", "wlan0", "FarmNet", "--config", str(tmp_path / "missing.yml")],
        prog_name="netsup",
    )
    assert result.exit_code == 1
    assert "FarmNet not found" in result.stdout
    assert driver.calls_to("request_scan") == []
