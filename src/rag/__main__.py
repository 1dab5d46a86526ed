from rag.cli import cli

cli()
