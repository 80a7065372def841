"""
Publishing package: asset collection, tree assembly, binary updates,
large-file splitting, staging, and verification.

Keep this layer focused on filesystem output, decoupled from catalog
validation logic.
"""

from store_publisher.publishing.assembler import AssemblyResult, assemble, write_catalog
from store_publisher.publishing.assets import collect_assets
from store_publisher.publishing.splitter import reassemble, split_file, split_large_files
from store_publisher.publishing.stager import PublishResult, stage_publish
from store_publisher.publishing.update import UpdateSource, merge_split_info, package_update
from store_publisher.publishing.verifier import find_oversized, verify_tree

__all__ = [
    "AssemblyResult",
    "PublishResult",
    "UpdateSource",
    "assemble",
    "collect_assets",
    "find_oversized",
    "merge_split_info",
    "package_update",
    "reassemble",
    "split_file",
    "split_large_files",
    "stage_publish",
    "verify_tree",
    "write_catalog",
]
