"""Turn the raw ip-ranges.json document into a Dataset."""

import logging
from typing import Any, Callable, Dict, List, Type, Union

from pydantic import BaseModel, ValidationError

from .models import ParseError, RawIPv4Prefix, RawIPv6Prefix, RawRanges
from .ranges import Dataset, PrefixEntry, RangeIndex

logger = logging.getLogger(__name__)


class DatasetParser:
    """Parser for the published AWS ranges document.

    Each upstream record becomes exactly one PrefixEntry, in document order.
    By default the first malformed record aborts the whole parse with a
    ParseError so a partial Dataset is never produced. With
    ``skip_malformed=True`` malformed records are logged and dropped instead,
    which means lookups may miss ranges the upstream actually published.
    """

    def __init__(self, skip_malformed: bool = False):
        self.skip_malformed = skip_malformed

    def parse(self, raw: Union[Dict[str, Any], RawRanges], freshness_tag: str) -> Dataset:
        """Parse *raw* into a Dataset tagged with *freshness_tag*."""
        if isinstance(raw, RawRanges):
            document = raw
        else:
            try:
                document = RawRanges.model_validate(raw)
            except ValidationError as e:
                raise ParseError("Invalid ranges document", details=str(e)) from e

        skipped = 0

        def on_error(error: ParseError) -> None:
            nonlocal skipped
            if not self.skip_malformed:
                raise error
            skipped += 1
            logger.warning("Skipping malformed prefix record: %s", error)

        v4_entries = self._parse_records(document.prefixes, RawIPv4Prefix, "ip_prefix", 4, on_error)
        v6_entries = self._parse_records(document.ipv6_prefixes, RawIPv6Prefix, "ipv6_prefix", 6, on_error)

        if skipped:
            logger.warning("Skipped %d malformed prefix records", skipped)

        logger.debug(
            "Parsed ranges document (sync_token=%s, ipv4=%d, ipv6=%d)",
            document.sync_token, len(v4_entries), len(v6_entries),
        )

        return Dataset(
            v4_entries=tuple(v4_entries),
            v6_entries=tuple(v6_entries),
            freshness_tag=freshness_tag,
            sync_token=document.sync_token,
            create_date=document.create_date,
        )

    def _parse_records(
        self,
        records: List[Any],
        model: Type[BaseModel],
        prefix_field: str,
        version: int,
        on_error: Callable[[ParseError], None],
    ) -> List[PrefixEntry]:
        entries: List[PrefixEntry] = []
        for record in records:
            try:
                entries.append(self._parse_record(record, model, prefix_field, version))
            except ParseError as e:
                on_error(e)
        return entries

    @staticmethod
    def _parse_record(
        record: Any,
        model: Type[BaseModel],
        prefix_field: str,
        version: int,
    ) -> PrefixEntry:
        try:
            parsed = model.model_validate(record)
        except ValidationError as e:
            raise ParseError(f"Invalid IPv{version} prefix record", record=record, details=str(e)) from e

        cidr_text: str = getattr(parsed, prefix_field)
        try:
            range_index = RangeIndex.from_cidr(cidr_text, version)
        except ValueError as e:
            raise ParseError(
                f"Invalid IPv{version} prefix {cidr_text!r}", record=record, details=str(e)
            ) from e

        return PrefixEntry(
            cidr_text=cidr_text,
            region=parsed.region,
            service=parsed.service,
            network_border_group=parsed.network_border_group,
            range_index=range_index,
        )
