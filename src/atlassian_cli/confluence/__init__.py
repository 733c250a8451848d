from atlassian_cli.confluence.client import ConfluenceClient

__all__ = ["ConfluenceClient"]
