#!/usr/bin/env python
"""
Thin wrapper script to invoke the commit_splitter CLI.

Running ``python commitsplit.py commit`` is equivalent to running the
``commitsplit commit`` console script installed via ``pyproject.toml``.
"""

from commit_splitter.cli import main


if __name__ == "__main__":
    main(prog_name="commitsplit")
