"""Airline designator tables used for lookup and alert text."""

from __future__ import annotations

import re
from typing import Optional

IATA_TO_ICAO: dict[str, str] = {
    "AA": "AAL",  # American Airlines
    "UA": "UAL",  # United Airlines
    "DL": "DAL",  # Delta Air Lines
    "WN": "SWA",  # Southwest Airlines
    "BA": "BAW",  # British Airways
    "LH": "DLH",  # Lufthansa
    "AF": "AFR",  # Air France
    "EK": "UAE",  # Emirates
    "QR": "QTR",  # Qatar Airways
    "SQ": "SIA",  # Singapore Airlines
    "CX": "CPA",  # Cathay Pacific
    "JL": "JAL",  # Japan Airlines
    "NH": "ANA",  # All Nippon Airways
    "QF": "QFA",  # Qantas
    "AC": "ACA",  # Air Canada
    "AS": "ASA",  # Alaska Airlines
    "B6": "JBU",  # JetBlue
    "NK": "NKS",  # Spirit Airlines
    "F9": "FFT",  # Frontier Airlines
    "HA": "HAL",  # Hawaiian Airlines
}

ICAO_AIRLINE_NAMES: dict[str, str] = {
    "AAL": "American Airlines",
    "UAL": "United Airlines",
    "DAL": "Delta Air Lines",
    "SWA": "Southwest Airlines",
    "BAW": "British Airways",
    "DLH": "Lufthansa",
    "AFR": "Air France",
    "UAE": "Emirates",
    "QTR": "Qatar Airways",
    "SIA": "Singapore Airlines",
    "CPA": "Cathay Pacific",
    "JAL": "Japan Airlines",
    "ANA": "All Nippon Airways",
    "QFA": "Qantas",
    "ACA": "Air Canada",
    "ASA": "Alaska Airlines",
    "JBU": "JetBlue",
    "NKS": "Spirit Airlines",
    "FFT": "Frontier Airlines",
    "HAL": "Hawaiian Airlines",
    "RPA": "Republic Airways",
    "SKW": "SkyWest Airlines",
    "ENY": "Envoy Air",
    "EZY": "easyJet",
    "RYR": "Ryanair",
    "KLM": "KLM",
    "VIR": "Virgin Atlantic",
    "FDX": "FedEx",
    "UPS": "UPS Airlines",
}

_IATA_FLIGHT_RE = re.compile(r"^([A-Z0-9]{2})(\d+)$")
_ICAO_PREFIX_RE = re.compile(r"^([A-Z]{3})\d")


def iata_to_icao_callsign(flight_number: str) -> Optional[str]:
    """Convert an IATA flight number like ``AA123`` to ``AAL123`` when known."""

    match = _IATA_FLIGHT_RE.match(flight_number.strip().upper())
    if not match:
        return None
    airline_icao = IATA_TO_ICAO.get(match.group(1))
    if not airline_icao:
        return None
    return f"{airline_icao}{match.group(2)}"


def airline_name(callsign: Optional[str]) -> Optional[str]:
    if not callsign:
        return None
    match = _ICAO_PREFIX_RE.match(callsign.strip().upper())
    if not match:
        return None
    return ICAO_AIRLINE_NAMES.get(match.group(1))


__all__ = ["IATA_TO_ICAO", "ICAO_AIRLINE_NAMES", "airline_name", "iata_to_icao_callsign"]
