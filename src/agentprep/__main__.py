"""Entry point for ``python -m agentprep``."""

from agentprep.cli.main import cli

if __name__ == "__main__":
    cli()
