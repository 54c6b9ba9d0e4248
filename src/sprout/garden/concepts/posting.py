"""Posts authored by users."""

import threading
import uuid
from dataclasses import dataclass, field
from time import time
from typing import TypedDict

from sprout.errors import Forbidden, NotFound


class PostOptions(TypedDict, total=False):
    backgroundColor: str


@dataclass(slots=True)
class Post:
    id: str
    author: str
    content: str
    options: PostOptions | None = None
    date_created: float = field(default_factory=time)
    date_updated: float = field(default_factory=time)


class Posting:
    """In-memory post store."""

    __slots__ = ("_lock", "_posts")

    def __init__(self) -> None:
        self._posts: dict[str, Post] = {}
        self._lock = threading.Lock()

    async def create(
        self, author: str, content: str, options: PostOptions | None = None
    ) -> dict[str, object]:
        post = Post(id=uuid.uuid4().hex, author=author, content=content, options=options)
        with self._lock:
            self._posts[post.id] = post
        return {"msg": "Post successfully created!", "post": post}

    async def get_posts(self) -> list[Post]:
        """All posts, newest first."""
        with self._lock:
            posts = list(self._posts.values())
        return sorted(posts, key=lambda p: p.date_created, reverse=True)

    async def get_by_author(self, author: str) -> list[Post]:
        return [p for p in await self.get_posts() if p.author == author]

    async def update(
        self, post_id: str, content: str | None = None, options: PostOptions | None = None
    ) -> dict[str, str]:
        with self._lock:
            post = self._require(post_id)
            if content is not None:
                post.content = content
            if options is not None:
                post.options = options
            post.date_updated = time()
        return {"msg": "Post successfully updated!"}

    async def delete(self, post_id: str) -> dict[str, str]:
        with self._lock:
            self._require(post_id)
            del self._posts[post_id]
        return {"msg": "Post deleted successfully!"}

    async def assert_author_is_user(self, post_id: str, user: str) -> None:
        """Raises ``NotFound`` for a missing post, ``Forbidden`` for someone else's."""
        with self._lock:
            post = self._require(post_id)
        if post.author != user:
            raise Forbidden(f"{user} is not the author of post {post_id}!")

    def _require(self, post_id: str) -> Post:
        try:
            return self._posts[post_id]
        except KeyError:
            raise NotFound(f"Post {post_id} does not exist!") from None
