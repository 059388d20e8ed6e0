from hackmd_index.cli.main import cli

cli()
