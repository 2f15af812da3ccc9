# cli/__init__.py
# ============================================================
# Command line entry points for the docsense pipeline.
#   python -m cli.main --help
# ============================================================
