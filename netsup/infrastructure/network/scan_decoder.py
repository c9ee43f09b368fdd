"""
Scan result decoding.

Raw results come from the supplicant as one tab separated line per BSS
under a header line:

    bssid / frequency / signal level / flags / ssid
    10:06:45:e5:01:a0	2462	-42	[WPA2-PSK-CCMP][WPS][ESS]	BELL671
    24:a4:3c:f0:44:05	2432	-55	[ESS]

Hidden networks have no ssid column.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable

from ...domain.models import ScanEntry, SecurityMode


def _decode_line(fields: list[str]) -> ScanEntry | None:
    if len(fields) == 5:
        bssid, freq, signal, flags, ssid = fields
    elif len(fields) == 4:
        bssid, freq, signal, flags = fields
        ssid = None
    else:
        return None
    try:
        return ScanEntry(
            bssid=bssid,
            frequency=int(freq),
            flags=flags,
            level=int(signal),
            ssid=ssid,
        )
    except ValueError:
        return None


def parse_scan_results(raw: str) -> list[ScanEntry]:
    """Decode raw scan output, silently dropping malformed lines."""
    lines = raw.strip().split("\n")[1:]
    entries: list[ScanEntry] = []
    for line in lines:
        entry = _decode_line(line.split("\t"))
        if entry is not None:
            entries.append(entry)
    return entries


def decode_security(flags: str) -> str:
    """Map supplicant capability flags to a security mode name."""
    if "EAP" in flags:
        return SecurityMode.WPA_EAP.value
    if "PSK" in flags:
        return SecurityMode.WPA_PSK.value
    if "WEP" in flags:
        return "WEP"
    return SecurityMode.NONE.value


def sort_results(entries: Iterable[ScanEntry]) -> list[ScanEntry]:
    """Strongest signal first; equal levels keep their original order."""
    return sorted(entries, key=lambda e: e.level, reverse=True)


def _has_null(ssid: str) -> bool:
    return "\\x00" in ssid or "\x00" in ssid


def clean_results(entries: Iterable[ScanEntry]) -> list[ScanEntry]:
    """Sort, decode security and reduce to one visible entry per ssid."""
    seen: set[str] = set()
    cleaned: list[ScanEntry] = []
    for entry in sort_results(entries):
        if not entry.ssid:
            continue
        ssid = entry.ssid
        if isinstance(ssid, bytes):
            ssid = ssid.decode("utf-8", errors="replace")
        ssid = str(ssid)
        if _has_null(ssid) or ssid in seen:
            continue
        seen.add(ssid)
        cleaned.append(dataclasses.replace(entry, ssid=ssid, security=decode_security(entry.flags)))
    return cleaned
