"""Shared fixtures: a small blog index served from memory."""

import copy
from collections.abc import Callable
from typing import Any

import pytest

from plume.config import ContentType
from plume.content.repository import IndexRepository
from plume.hooks import Hooks
from plume.routing.router import Router

HELLO = {
    "id": "p1",
    "title": "Hello World",
    "slug": "hello",
    "status": "published",
    "type": "post",
    "file_path": "posts/hello.md",
    "date": "2024-01-02",
    "excerpt": "First post on the blog",
    "taxonomies": {"category": ["news"], "tag": ["intro"]},
}
OLDER = {
    "id": "p2",
    "title": "An Older Post",
    "slug": "older",
    "status": "published",
    "type": "post",
    "file_path": "posts/older.md",
    "date": "2023-06-01",
    "excerpt": "Hello again from last year",
    "featured": True,
    "taxonomies": {"category": ["archive"]},
}
DRAFT = {
    "id": "p3",
    "title": "Draft Post",
    "slug": "draft-post",
    "status": "draft",
    "type": "post",
    "file_path": "posts/draft-post.md",
    "date": "2024-02-01",
    "taxonomies": {"category": ["news"]},
}
WIP = {
    "id": "p4",
    "title": "Work In Progress",
    "slug": "wip",
    "status": "draft",
    "type": "post",
    "file_path": "posts/wip.md",
    "template": "wip-layout",
}
IDEA = {
    "id": "p6",
    "title": "Idea",
    "slug": "idea",
    "status": "draft",
    "type": "post",
    "file_path": "posts/idea.md",
}
SECRET = {
    "id": "p5",
    "title": "Unlisted Note",
    "slug": "secret",
    "status": "unlisted",
    "type": "post",
    "file_path": "posts/secret.md",
    "date": "2024-01-15",
}
ABOUT = {
    "id": "a1",
    "title": "About",
    "slug": "about",
    "status": "published",
    "type": "page",
    "file_path": "pages/about.md",
}

CONTENT: dict[str, Any] = {
    "by_type": {
        "post": {"hello": HELLO, "older": OLDER, "draft-post": DRAFT, "wip": WIP, "idea": IDEA, "secret": SECRET},
        "page": {"about": ABOUT},
    },
    "by_path": {
        "posts/hello.md": HELLO,
        "posts/older.md": OLDER,
        "posts/draft-post.md": DRAFT,
        "posts/wip.md": WIP,
        "posts/idea.md": IDEA,
        "posts/secret.md": SECRET,
        "pages/about.md": ABOUT,
        "hello.md": HELLO,
    },
    "by_id": {"p1": HELLO, "a1": ABOUT},
}

TAXONOMIES: dict[str, Any] = {
    "category": {
        "config": {"label": "Categories", "hierarchical": True},
        "terms": {
            "news": {"name": "News", "count": 2, "items": ["post:hello", "post:draft-post"]},
            "archive": {"name": "Archive", "count": 1, "items": ["post:older"]},
        },
    },
    "tag": {
        "config": {"label": "Tags"},
        "terms": {"intro": {"name": "Intro", "count": 1, "items": ["post:hello"]}},
    },
}

ROUTES: dict[str, Any] = {
    "exact": {
        "/blog/hello": {"type": "single", "file": "posts/hello.md", "content_type": "post", "slug": "hello"},
        "/blog/older": {"type": "single", "file": "posts/older.md", "content_type": "post", "slug": "older"},
        "/blog/draft-post": {
            "type": "single",
            "file": "posts/draft-post.md",
            "content_type": "post",
            "slug": "draft-post",
        },
        "/blog/secret": {"type": "single", "file": "posts/secret.md", "content_type": "post", "slug": "secret"},
        "/blog/gone": {"type": "single", "file": "posts/gone.md", "content_type": "post", "slug": "gone"},
        "/about": {
            "type": "single",
            "file": "pages/about.md",
            "content_type": "page",
            "slug": "about",
            "template": "page",
        },
        "/blog": {"type": "archive", "content_type": "post"},
    },
    "redirects": {
        "/old-hello": {"to": "/blog/hello", "code": 301},
        "/moved": {"to": "/about", "code": 302},
        "/no-code": {"to": "/about"},
    },
    "taxonomy": {
        "category": {"base": "/category"},
        "tag": {"base": "/tag/"},
    },
    "reverse": {
        "post:hello": "/blog/hello",
        "post:older": "/blog/older",
        "post:secret": "/blog/secret",
        "page:about": "/about",
    },
}

PREVIEW_TOKEN = "s3cr3t-token"


@pytest.fixture
def preview() -> str:
    """Query string granting preview access."""
    return f"preview=1&token={PREVIEW_TOKEN}"


@pytest.fixture
def repository() -> IndexRepository:
    return IndexRepository.from_data(
        content=copy.deepcopy(CONTENT),
        taxonomies=copy.deepcopy(TAXONOMIES),
        routes=copy.deepcopy(ROUTES),
    )


@pytest.fixture
def content_types() -> dict[str, ContentType]:
    return {
        "post": ContentType(
            name="post",
            url_pattern="/blog/{slug}",
            archive_url="/blog",
            single_template="post",
            archive_template="archive",
            taxonomies=("category", "tag"),
        ),
        "page": ContentType(name="page", single_template="page"),
    }


@pytest.fixture
def make_router(
    repository: IndexRepository, content_types: dict[str, ContentType]
) -> Callable[..., Router]:
    """Router factory; keyword arguments override the defaults."""

    def factory(**overrides: Any) -> Router:
        options: dict[str, Any] = {
            "preview_token": PREVIEW_TOKEN,
            "content_types": content_types,
            "hooks": Hooks(),
        }
        options.update(overrides)
        repo = options.pop("repository", repository)
        return Router(repo, **options)

    return factory


@pytest.fixture
def router(make_router: Callable[..., Router]) -> Router:
    return make_router()
