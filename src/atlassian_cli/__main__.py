"""Entry point for running the CLI: python -m atlassian_cli"""

from atlassian_cli.cli.main import main

if __name__ == "__main__":
    main()
