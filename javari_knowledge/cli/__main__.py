"""Allow ``python -m javari_knowledge.cli`` execution."""

from javari_knowledge.cli.ingest import main

main()
