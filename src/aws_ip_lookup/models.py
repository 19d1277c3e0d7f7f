"""Pydantic models for the AWS ranges document, API responses and errors."""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field


class RawIPv4Prefix(BaseModel):
    """Single record from the ``prefixes`` list of ip-ranges.json."""
    ip_prefix: str
    region: str
    service: str
    network_border_group: str


class RawIPv6Prefix(BaseModel):
    """Single record from the ``ipv6_prefixes`` list of ip-ranges.json."""
    ipv6_prefix: str
    region: str
    service: str
    network_border_group: str


class RawRanges(BaseModel):
    """Top-level shape of ip-ranges.json."""
    sync_token: Optional[str] = Field(alias="syncToken", default=None)
    create_date: Optional[str] = Field(alias="createDate", default=None)
    prefixes: List[Any] = Field(default_factory=list)
    ipv6_prefixes: List[Any] = Field(default_factory=list)

    model_config = {"populate_by_name": True}


class MatchResult(BaseModel):
    """A published prefix that contains the requested address."""
    ip_prefix: str
    region: str
    service: str
    network_border_group: str


class LookupResponse(BaseModel):
    """Response body for an address lookup."""
    requested_ip: str
    cache_status: str
    matches: List[MatchResult]


class VersionResponse(BaseModel):
    """Response body for the version endpoint."""
    instance_id: str
    local_version: str
    workers_version: str


class RangeLookupError(Exception):
    """Base class for lookup failures."""

    def __init__(self, error: str, *, details: Optional[str] = None) -> None:
        self.error = error
        self.details = details
        message = error
        if details:
            message = f"{message}: {details}"
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Return a serialisable representation of the error."""
        return {
            "error": self.error,
            "details": self.details,
        }


class ParameterError(RangeLookupError):
    """The requested address is missing, empty or unparseable."""


class FetchError(RangeLookupError):
    """Raised when the upstream ranges document cannot be retrieved."""

    def __init__(
        self,
        error: str,
        *,
        status_code: int = 0,
        details: Optional[str] = None,
        retryable: bool = False,
    ) -> None:
        self.status_code = status_code
        self.retryable = retryable
        super().__init__(error, details=details)
        if status_code:
            self.args = (f"{self.args[0]} (status_code={status_code})",)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["status_code"] = self.status_code
        data["retryable"] = self.retryable
        return data


class ParseError(RangeLookupError):
    """Raised when a record of the ranges document is malformed."""

    def __init__(self, error: str, *, record: Optional[Any] = None, details: Optional[str] = None) -> None:
        self.record = record
        super().__init__(error, details=details)

    def to_dict(self) -> Dict[str, Any]:
        data = super().to_dict()
        data["record"] = self.record
        return data
