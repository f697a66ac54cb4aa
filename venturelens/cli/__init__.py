"""CLI tools for the VentureLens pipeline.

- ``python -m venturelens.cli.ingest``: ingest documents, run a crawl pass,
  and list extracted deals.
- ``python -m venturelens.cli.ask``: ask a question and stream the answer.
"""
