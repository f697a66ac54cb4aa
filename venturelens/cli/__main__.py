"""Allow ``python -m venturelens.cli`` execution (runs the ingestion CLI)."""

from venturelens.cli.ingest import main

main()
