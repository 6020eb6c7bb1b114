"""Cloud-service detection from import sources.

Each import source (ES ``import``, ``require`` or dynamic ``import()``) is
checked by substring against ``CLOUD_VENDORS`` in table order. Every match
yields one entry; repeated imports of the same vendor are not merged.
"""

from __future__ import annotations

from dataclasses import dataclass

from .dependencies import import_sources
from .faults import isolate_faults
from .models import CloudServiceUsage
from .syntax_tree import SyntaxTree


@dataclass(frozen=True)
class CloudVendor:
    """A known vendor SDK, matched by substring of the import source."""

    marker: str
    provider: str
    service: str
    usage: str


CLOUD_VENDORS: tuple[CloudVendor, ...] = (
    CloudVendor("aws-sdk", "AWS", "AWS SDK", "General AWS services"),
    CloudVendor("firebase", "Google Cloud", "Firebase", "Firebase services"),
    CloudVendor("supabase", "Supabase", "Supabase Client", "Database and auth services"),
    CloudVendor("@google-cloud", "Google Cloud", "Google Cloud Client", "General Google Cloud services"),
    CloudVendor("@azure", "Azure", "Azure SDK", "General Azure services"),
)


def match_vendors(source: str) -> list[CloudVendor]:
    return [vendor for vendor in CLOUD_VENDORS if vendor.marker in source]


@isolate_faults("cloud_services", list)
def detect_cloud_services(tree: SyntaxTree) -> list[CloudServiceUsage]:
    """One ``CloudServiceUsage`` per (import, matching vendor) pair."""
    usages: list[CloudServiceUsage] = []
    for source, node in import_sources(tree):
        for vendor in match_vendors(source):
            usages.append(
                CloudServiceUsage(
                    provider=vendor.provider,
                    service=vendor.service,
                    usage=vendor.usage,
                    line=node.line,
                )
            )
    return usages
