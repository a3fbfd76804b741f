"""Build-tool helpers: artifact cache, hashing, diffs, build tags, import scanning, key ordering and executable lookup."""

__version__ = "0.1.0"

__all__ = [
    "buildtags",
    "cache",
    "cachehash",
    "diff",
    "execpath",
    "fmtsort",
    "importreader",
    "misspell",
    "scan",
]