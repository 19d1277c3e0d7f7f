"""Match an address against the published prefixes of a Dataset."""

from typing import List, Sequence

from .models import MatchResult
from .ranges import Dataset, PrefixEntry
from .utils.ip_utils import IPAddress, IPv4Address


def _entries_for(dataset: Dataset, address: IPAddress) -> Sequence[PrefixEntry]:
    if isinstance(address, IPv4Address):
        return dataset.v4_entries
    return dataset.v6_entries


def match(dataset: Dataset, address: IPAddress) -> List[MatchResult]:
    """Return every entry whose range contains *address*, in dataset order.

    Overlapping prefixes are all reported. IPv4-mapped IPv6 addresses are
    matched against the IPv6 prefixes only.
    """
    return [
        MatchResult(
            ip_prefix=entry.cidr_text,
            region=entry.region,
            service=entry.service,
            network_border_group=entry.network_border_group,
        )
        for entry in _entries_for(dataset, address)
        if entry.range_index.contains(address)
    ]
