"""Rank a GitHub repository's open issues by thumbs-up reactions.

Pipeline:
- List open issues page by page, following the Link header cursor
- Drop pull requests (the issues endpoint returns both)
- Fetch every issue's reactions concurrently and count the "+1" ones
- Rank issues by upvote count and keep the top N
"""

__version__ = "1.0.0"
