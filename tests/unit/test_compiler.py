"""
Configuration Compiler Unit Tests
=================================
"""

import pytest

from netsup.domain.models import CompiledConfig, NetworkInterfaceRecord
from netsup.infrastructure.driver import DriverError, MockNetworkDriver
from netsup.infrastructure.network.compiler import (
    ConfigurationError,
    compile_all,
    ip_settings,
    to_driver_config,
)


def _wired(**kwargs) -> NetworkInterfaceRecord:
    return NetworkInterfaceRecord(name="eth0", type="wired", **kwargs)


def _wireless(security: str, **kwargs) -> NetworkInterfaceRecord:
    return NetworkInterfaceRecord(name="wlan0", type="wireless", security=security, ssid="FarmNet", **kwargs)


STATIC = {
    "ipv4_method": "static",
    "ipv4_address": "192.168.1.50",
    "ipv4_gateway": "192.168.1.1",
    "ipv4_subnet_mask": "255.255.255.0",
}


# ============================================================================
# ip_settings
# ============================================================================


def test_static_wired_has_exactly_the_static_keys():
    assert ip_settings(_wired(**STATIC)) == {
        "ipv4_address_method": "static",
        "ipv4_address": "192.168.1.50",
        "ipv4_gateway": "192.168.1.1",
        "ipv4_subnet_mask": "255.255.255.0",
    }


def test_dhcp_is_empty():
    assert ip_settings(_wired(ipv4_method="dhcp")) == {}


def test_name_servers_are_emitted_as_nameservers():
    # The stored field is `name_servers`; the driver option must stay `nameservers`.
    opts = ip_settings(_wired(name_servers="8.8.8.8 8.8.4.4", **STATIC))

    assert opts["nameservers"] == ["8.8.8.8", "8.8.4.4"]
    assert "name_servers" not in opts


def test_domain_is_added():
    assert ip_settings(_wired(domain="farm.local")) == {"domain": "farm.local"}


def test_static_missing_fields_rejected():
    with pytest.raises(ConfigurationError, match="ipv4_gateway"):
        ip_settings(_wired(ipv4_method="static", ipv4_address="10.0.0.2", ipv4_subnet_mask="255.0.0.0"))


def test_unknown_ipv4_method_rejected():
    with pytest.raises(ConfigurationError):
        ip_settings(_wired(ipv4_method="bootp"))


# ============================================================================
# to_driver_config
# ============================================================================


@pytest.mark.asyncio
async def test_wired_record():
    config = await to_driver_config(_wired(**STATIC))

    assert config.interface_name == "eth0"
    assert dict(config.driver_options) == ip_settings(_wired(**STATIC))


@pytest.mark.asyncio
async def test_wpa_psk_record():
    config = await to_driver_config(_wireless("WPA-PSK", psk="secret"))

    assert dict(config.driver_options) == {
        "ssid": "FarmNet",
        "psk": "secret",
        "key_mgmt": "WPA-PSK",
        "scan_ssid": 1,
    }


@pytest.mark.asyncio
async def test_open_record():
    config = await to_driver_config(_wireless("NONE", domain="farm.local"))

    assert dict(config.driver_options) == {"ssid": "FarmNet", "scan_ssid": 1, "domain": "farm.local"}


@pytest.mark.asyncio
async def test_wpa_eap_record_has_full_option_set():
    config = await to_driver_config(_wireless("WPA-EAP", identity="alice", password="hunter2"))

    assert dict(config.driver_options) == {
        "ssid": "FarmNet",
        "scan_ssid": 1,
        "key_mgmt": "WPA-EAP",
        "pairwise": "CCMP TKIP",
        "group": "CCMP TKIP",
        "eap": "PEAP",
        "identity": "alice",
        "password": "hunter2",
        "phase1": "peapver=auto",
        "phase2": "MSCHAPV2",
    }


@pytest.mark.asyncio
async def test_wireless_merges_ip_settings():
    config = await to_driver_config(_wireless("WPA-PSK", psk="secret", name_servers="1.1.1.1", **STATIC))

    assert config.driver_options["ipv4_address_method"] == "static"
    assert config.driver_options["nameservers"] == ["1.1.1.1"]
    assert config.driver_options["key_mgmt"] == "WPA-PSK"


@pytest.mark.asyncio
async def test_regulatory_domain_applied_through_driver():
    driver = MockNetworkDriver()

    await to_driver_config(_wireless("WPA-PSK", psk="secret", regulatory_domain="DE"), driver)

    assert driver.calls_to("set_regulatory_domain") == ["DE"]


@pytest.mark.asyncio
async def test_unsupported_security_rejected():
    driver = MockNetworkDriver()

    with pytest.raises(ConfigurationError, match="unsupported wireless security type: WEP"):
        await to_driver_config(_wireless("WEP", regulatory_domain="DE"), driver)
    assert driver.calls_to("set_regulatory_domain") == []


@pytest.mark.asyncio
async def test_regulatory_domain_failure_rejects_only_that_record():
    class RejectingDriver(MockNetworkDriver):
        async def set_regulatory_domain(self, domain):
            raise DriverError(f"iw reg set {domain} failed")

    compiled, errors = await compile_all(
        [_wired(), _wireless("WPA-PSK", psk="secret", regulatory_domain="ZZ")],
        RejectingDriver(),
    )

    assert compiled == [CompiledConfig("eth0", {})]
    assert list(errors) == ["wlan0"]
    assert "cannot set regulatory domain ZZ" in str(errors["wlan0"])


@pytest.mark.asyncio
async def test_unsupported_type_rejected():
    with pytest.raises(ConfigurationError):
        await to_driver_config(NetworkInterfaceRecord(name="ppp0", type="cellular"))


@pytest.mark.asyncio
async def test_compiled_config_is_read_only():
    config = await to_driver_config(_wired(domain="farm.local"))

    with pytest.raises(TypeError):
        config.driver_options["domain"] = "other"


# ============================================================================
# compile_all
# ============================================================================


@pytest.mark.asyncio
async def test_compile_all_isolates_failures_and_dedupes():
    records = [
        _wired(),
        _wireless("WEP"),
        _wired(),
        _wireless("WPA-PSK", psk="secret"),
    ]

    compiled, errors = await compile_all(records)

    assert compiled == [
        CompiledConfig("eth0", {}),
        CompiledConfig("wlan0", {"ssid": "FarmNet", "psk": "secret", "key_mgmt": "WPA-PSK", "scan_ssid": 1}),
    ]
    assert list(errors) == ["wlan0"]
    assert isinstance(errors["wlan0"], ConfigurationError)
