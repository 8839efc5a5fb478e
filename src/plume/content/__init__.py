"""Content layer: items, frontmatter parsing, index-backed repository, queries.

Basic usage::

    from plume.content import IndexRepository, Query

    repo = IndexRepository("storage/cache", content_dir="content")
    post = repo.get("post", "hello-world")
    recent = Query(repo).type("post").published().per_page(5).get()
"""

from plume.content.item import Item
from plume.content.parser import Parser
from plume.content.query import Query
from plume.content.repository import ContentRepository, IndexRepository, Term

__all__ = [
    "ContentRepository",
    "IndexRepository",
    "Item",
    "Parser",
    "Query",
    "Term",
]
