# =============================================================================
# src/cli/__main__.py — Package Entry Point
# =============================================================================
#
# This file enables running the CLI package itself as a module:
#     python -m src.cli 12
#
# It delegates to the extraction CLI (extract.py), the command run most
# often while working through a stack of issues.
#
# For the other CLI tools, run them directly:
#     python -m src.cli.add_magazine /magazines/thrasher_1983_03.pdf Thrasher 1983
#     python -m src.cli.process_pdf 12
#     python -m src.cli.admin duplicates
# =============================================================================

"""Allow ``python -m src.cli`` execution (runs the extract command)."""

from src.cli.extract import main

main()
