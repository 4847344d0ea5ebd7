"""
Entry point for running repo_analyzer as a module.

Usage: python -m repo_analyzer [args]
"""

from repo_analyzer.cli import main

if __name__ == "__main__":
    main()
