"""Log shaping for Google Cloud Logging and AWS CloudWatch."""

from .aws import format_aws_log
from .fields import (
    GCP_KEYS,
    cloud_log_name,
    iso_timestamp,
    logger_name_for,
    message_of,
    severity_for,
    strip_gcp_fields,
)
from .formatter import LogFormatter, format_log
from .gcp import format_gcp_log

__all__ = [
    "GCP_KEYS",
    "LogFormatter",
    "cloud_log_name",
    "format_aws_log",
    "format_gcp_log",
    "format_log",
    "iso_timestamp",
    "logger_name_for",
    "message_of",
    "severity_for",
    "strip_gcp_fields",
]
