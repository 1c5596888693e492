"""Vendor dispatch over the GCP and AWS shapers."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cloudlog.foundation.config import VendorMode, coerce_vendor, resolve_vendor
from cloudlog.foundation.errors import ConfigurationError

from .aws import format_aws_log
from .gcp import format_gcp_log

if TYPE_CHECKING:
    from cloudlog.foundation.config import LoggerSettings


def format_log(
    record: Mapping[str, Any],
    vendor: VendorMode | str | None = None,
    *,
    project_id: str | None = None,
    service: str | None = None,
    logger_name: str | None = None,
    include_trace: bool = True,
    include_resource: bool = True,
) -> dict[str, Any]:
    """Shape a record for ``vendor`` (or the process default)."""
    if resolve_vendor(vendor) == VendorMode.AWS:
        return format_aws_log(record, service=service)
    return format_gcp_log(
        record,
        project_id=project_id,
        service=service,
        logger_name=logger_name,
        include_trace=include_trace,
        include_resource=include_resource,
    )


@dataclass(slots=True)
class LogFormatter:
    """Formatter bound to one service's configuration.

    Raises:
        ConfigurationError: ``service_name`` is empty.
    """

    service_name: str
    project_id: str | None = None
    logger_name: str | None = None
    include_trace: bool = True
    include_resource: bool = True
    vendor: VendorMode | None = None

    def __post_init__(self) -> None:
        if not self.service_name or not str(self.service_name).strip():
            raise ConfigurationError.missing("SERVICE_NAME")
        if self.vendor is not None:
            self.vendor = coerce_vendor(self.vendor)

    @classmethod
    def from_settings(cls, settings: LoggerSettings) -> LogFormatter:
        return cls(
            service_name=settings.service_name,
            project_id=settings.project_id,
            logger_name=settings.logger_name,
            include_trace=settings.log_include_trace,
            include_resource=settings.log_include_resource,
        )

    def format(self, record: Mapping[str, Any], vendor: VendorMode | str | None = None) -> dict[str, Any]:
        return format_log(
            record,
            vendor if vendor is not None else self.vendor,
            project_id=self.project_id,
            service=self.service_name,
            logger_name=self.logger_name,
            include_trace=self.include_trace,
            include_resource=self.include_resource,
        )
