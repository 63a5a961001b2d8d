"""Command-line tools for the Javari knowledge base.

- ``python -m javari_knowledge.cli.ingest`` -- ingest text, files, web pages
  and directories, or search the stored records.

Heavy imports (providers, FastAPI app factories) are deferred inside the
handlers so ``--help`` stays fast.
"""
