from atlassian_cli.bitbucket.client import BitbucketClient, normalize_url

__all__ = ["BitbucketClient", "normalize_url"]
