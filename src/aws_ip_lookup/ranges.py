"""Range index and dataset records for published AWS prefixes."""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Tuple

from .utils.ip_utils import IPAddress, IPNetwork


class RangeIndex:
    """Membership test over a single CIDR block of one address family."""

    __slots__ = ("_network",)

    def __init__(self, network: IPNetwork) -> None:
        self._network = network

    @classmethod
    def from_cidr(cls, cidr_text: str, version: int) -> "RangeIndex":
        """Build an index for *cidr_text*, which must belong to *version*.

        Host bits are allowed and masked off. Raises ValueError otherwise.
        """
        if version == 4:
            network: IPNetwork = ipaddress.IPv4Network(cidr_text, strict=False)
        elif version == 6:
            network = ipaddress.IPv6Network(cidr_text, strict=False)
        else:
            raise ValueError(f"Unknown address family: {version}")
        return cls(network)

    @property
    def network(self) -> IPNetwork:
        return self._network

    @property
    def version(self) -> int:
        return self._network.version

    def contains(self, address: IPAddress) -> bool:
        # Matching never crosses address families
        if address.version != self._network.version:
            return False
        return address in self._network

    __contains__ = contains

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RangeIndex):
            return NotImplemented
        return self._network == other._network

    def __hash__(self) -> int:
        return hash(self._network)

    def __repr__(self) -> str:
        return f"RangeIndex({str(self._network)!r})"


@dataclass(frozen=True)
class PrefixEntry:
    """One published prefix record with its derived range index."""

    cidr_text: str
    region: str
    service: str
    network_border_group: str
    range_index: RangeIndex = field(compare=False, repr=False)


@dataclass(frozen=True)
class Dataset:
    """Parsed ranges document; shared read-only between requests."""

    v4_entries: Tuple[PrefixEntry, ...]
    v6_entries: Tuple[PrefixEntry, ...]
    freshness_tag: str
    sync_token: Optional[str] = None
    create_date: Optional[str] = None
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc), compare=False)

    def __len__(self) -> int:
        return len(self.v4_entries) + len(self.v6_entries)
