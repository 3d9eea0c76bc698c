"""
Top-level package for commit_splitter.

The package turns a set of staged changes into an ordered list of atomic
commit proposals. The command line entry point lives in
``commit_splitter.cli``; the pipeline itself in ``commit_splitter.pipeline``.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
