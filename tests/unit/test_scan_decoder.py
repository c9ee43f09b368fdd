"""
Scan Decoder Unit Tests
=======================
"""

from netsup.domain.models import ScanEntry
from netsup.infrastructure.network.scan_decoder import (
    clean_results,
    decode_security,
    parse_scan_results,
    sort_results,
)

HEADER = "bssid / frequency / signal level / flags / ssid"


def _raw(*rows: list[str]) -> str:
    return "\n".join([HEADER] + ["\t".join(r) for r in rows]) + "\n"


def test_parse_maps_fields():
    raw = _raw(["aa:bb", "2412", "-40", "[WPA]", "MyNet"], ["cc:dd", "2437", "-60", "[ESS]"])

    entries = parse_scan_results(raw)

    assert entries == [
        ScanEntry(bssid="aa:bb", frequency=2412, flags="[WPA]", level=-40, ssid="MyNet"),
        ScanEntry(bssid="cc:dd", frequency=2437, flags="[ESS]", level=-60, ssid=None),
    ]


def test_parse_drops_malformed_lines():
    raw = _raw(
        ["aa:bb", "2412"],
        ["aa:bb", "2412", "-40", "[WPA]", "MyNet", "extra"],
        ["aa:bb", "fast", "-40", "[WPA]", "MyNet"],
        ["ee:ff", "5180", "-70", "[WPA2-PSK-CCMP][ESS]", "Fine"],
    )

    entries = parse_scan_results(raw)

    assert [e.ssid for e in entries] == ["Fine"]


def test_parse_header_only_is_empty():
    assert parse_scan_results(HEADER + "\n") == []
    assert parse_scan_results("") == []


def test_decode_security():
    assert decode_security("[WPA2-EAP-CCMP][ESS]") == "WPA-EAP"
    assert decode_security("[WPA2-PSK-CCMP][WPS][ESS]") == "WPA-PSK"
    assert decode_security("[WEP][ESS]") == "WEP"
    assert decode_security("[ESS]") == "NONE"


def test_sort_is_stable_strongest_first():
    a = ScanEntry("a", 2412, "", -50, "A")
    b = ScanEntry("b", 2412, "", -40, "B")
    c = ScanEntry("c", 2412, "", -50, "C")

    assert sort_results([a, b, c]) == [b, a, c]


def test_clean_filters_dedupes_and_decodes():
    entries = [
        ScanEntry("01", 2412, "[ESS]", -70, "Shared"),
        ScanEntry("02", 2412, "[WPA2-PSK-CCMP]", -40, "Shared"),
        ScanEntry("03", 2437, "[ESS]", -30, None),
        ScanEntry("04", 2462, "[ESS]", -20, "bad\\x00ssid"),
        ScanEntry("05", 2462, "[ESS]", -20, "nul\x00"),
        ScanEntry("06", 5180, "[WPA2-EAP-CCMP]", -80, "Campus"),
    ]

    cleaned = clean_results(entries)

    assert [(e.bssid, e.ssid, e.security) for e in cleaned] == [
        ("02", "Shared", "WPA-PSK"),
        ("06", "Campus", "WPA-EAP"),
    ]


def test_clean_keeps_first_of_equal_levels():
    entries = [
        ScanEntry("01", 2412, "[ESS]", -50, "Same"),
        ScanEntry("02", 2437, "[ESS]", -50, "Same"),
    ]

    assert [e.bssid for e in clean_results(entries)] == ["01"]
