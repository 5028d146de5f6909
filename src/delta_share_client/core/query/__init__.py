"""Client-side query pipeline: partition filtering and table materialization."""

from .partition import filter_files_by_partition, matches_partition, partition_value_str
from .materialize import empty_table, materialize_files

__all__ = [
    "filter_files_by_partition",
    "matches_partition",
    "partition_value_str",
    "empty_table",
    "materialize_files",
]
