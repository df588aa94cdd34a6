from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class SymbolProfile:
    contract_multiplier: Decimal


_DEFAULT_PROFILE = SymbolProfile(contract_multiplier=Decimal("1"))

_PROFILES: dict[str, SymbolProfile] = {
    # Perpetual futures quoted in USDT; one contract is a fraction of the base coin.
    "XBTUSDTM": SymbolProfile(contract_multiplier=Decimal("0.001")),
    "ETHUSDTM": SymbolProfile(contract_multiplier=Decimal("0.01")),
    "SOLUSDTM": SymbolProfile(contract_multiplier=Decimal("0.1")),
    # CME equity index futures, point value per contract.
    "MNQ": SymbolProfile(contract_multiplier=Decimal("2")),
    "MES": SymbolProfile(contract_multiplier=Decimal("5")),
    "NQ": SymbolProfile(contract_multiplier=Decimal("20")),
    "ES": SymbolProfile(contract_multiplier=Decimal("50")),
}


def get_symbol_profile(symbol: str | None) -> SymbolProfile:
    key = (symbol or "").strip().upper()
    return _PROFILES.get(key, _DEFAULT_PROFILE)
