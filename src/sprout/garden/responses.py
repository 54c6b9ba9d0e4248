"""Client-facing shapes for concept records.

Concepts speak in user ids; the client wants usernames.
"""

from dataclasses import asdict
from typing import Any

from sprout.garden.concepts import Concepts
from sprout.garden.concepts.friending import FriendRequest
from sprout.garden.concepts.posting import Post


async def post(concepts: Concepts, record: Post) -> dict[str, Any]:
    author = await concepts.authing.get_user_by_id(record.author)
    return {**asdict(record), "author": author["username"]}


async def posts(concepts: Concepts, records: list[Post]) -> list[dict[str, Any]]:
    authors = await concepts.authing.ids_to_usernames([r.author for r in records])
    return [{**asdict(r), "author": name} for r, name in zip(records, authors, strict=True)]


async def friend_requests(concepts: Concepts, records: list[FriendRequest]) -> list[dict[str, Any]]:
    senders = await concepts.authing.ids_to_usernames([r.sender for r in records])
    recipients = await concepts.authing.ids_to_usernames([r.recipient for r in records])
    return [
        {"_id": r.id, "from": sender, "to": recipient, "status": str(r.status)}
        for r, sender, recipient in zip(records, senders, recipients, strict=True)
    ]
