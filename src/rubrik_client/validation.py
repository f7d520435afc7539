"""Static argument tables used to reject bad input before any network call."""

from __future__ import annotations

from collections.abc import Collection

from .exceptions import ValidationError

AWS_REGIONS = frozenset(
    {
        "ap-south-1",
        "ap-northeast-3",
        "ap-northeast-2",
        "ap-southeast-1",
        "ap-southeast-2",
        "ap-northeast-1",
        "ca-central-1",
        "cn-north-1",
        "cn-northwest-1",
        "eu-central-1",
        "eu-west-1",
        "eu-west-2",
        "eu-west-3",
        "us-west-1",
        "us-east-1",
        "us-east-2",
        "us-west-2",
    }
)

S3_STORAGE_CLASSES = ("standard", "standard_ia", "reduced_redundancy")

AZURE_REGIONS = frozenset(
    {
        "westus",
        "westus2",
        "centralus",
        "eastus",
        "eastus2",
        "northcentralus",
        "southcentralus",
        "westcentralus",
        "canadacentral",
        "canadaeast",
        "brazilsouth",
        "northeurope",
        "westeurope",
        "uksouth",
        "ukwest",
        "eastasia",
        "southeastasia",
        "japaneast",
        "japanwest",
        "australiaeast",
        "australiasoutheast",
        "centralindia",
        "southindia",
        "westindia",
        "koreacentral",
        "koreasouth",
    }
)

# Instance type -> storage endpoint suffix; the public cloud needs none.
AZURE_INSTANCE_ENDPOINTS: dict[str, str | None] = {
    "default": None,
    "china": "core.chinacloudapi.cn",
    "germany": "core.cloudapi.de",
    "government": "core.usgovcloudapi.net",
}

TIMEZONES = (
    "America/Anchorage",
    "America/Araguaina",
    "America/Barbados",
    "America/Chicago",
    "America/Denver",
    "America/Los_Angeles",
    "America/Mexico_City",
    "America/New_York",
    "America/Noronha",
    "America/Phoenix",
    "America/Toronto",
    "America/Vancouver",
    "Asia/Bangkok",
    "Asia/Dhaka",
    "Asia/Dubai",
    "Asia/Hong_Kong",
    "Asia/Karachi",
    "Asia/Kathmandu",
    "Asia/Kolkata",
    "Asia/Magadan",
    "Asia/Singapore",
    "Asia/Tokyo",
    "Atlantic/Cape_Verde",
    "Australia/Perth",
    "Australia/Sydney",
    "Europe/Amsterdam",
    "Europe/Athens",
    "Europe/London",
    "Europe/Moscow",
    "Pacific/Auckland",
    "Pacific/Honolulu",
    "Pacific/Midway",
    "UTC",
)

SYSLOG_PROTOCOLS = ("UDP", "TCP")
SMTP_ENCRYPTION = ("NONE", "SSL", "STARTTLS")
HOST_OS = ("Linux", "Windows")


def require_choice(value: str, choices: Collection[str], label: str) -> str:
    """Return ``value`` unchanged or raise `ValidationError` listing the valid choices."""

    if value not in choices:
        listed = ", ".join(f"'{choice}'" for choice in sorted(choices))
        raise ValidationError(f"'{value}' is not a valid {label}. Valid choices are {listed}")
    return value


__all__ = [
    "AWS_REGIONS",
    "AZURE_INSTANCE_ENDPOINTS",
    "AZURE_REGIONS",
    "HOST_OS",
    "S3_STORAGE_CLASSES",
    "SMTP_ENCRYPTION",
    "SYSLOG_PROTOCOLS",
    "TIMEZONES",
    "require_choice",
]
