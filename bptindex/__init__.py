"""An ordered key-value index built on a B+ tree, with ascending and ranged scans."""

__version__ = "0.1.0"
__all__ = ["nodes", "iterators", "tree_index"]