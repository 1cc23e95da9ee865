"""Entity identifier helpers.

Entity ids are Mongo ObjectIds. Outside the persistence layer they travel as
opaque strings, so every lookup goes through `parse_entity_id` first.
"""

from bson import ObjectId
from bson.errors import InvalidId


def new_entity_id() -> ObjectId:
    """Generate a fresh entity id."""
    return ObjectId()


def parse_entity_id(value: str | ObjectId) -> ObjectId | None:
    """Parse an opaque id string.

    Args:
        value: The id as received from a caller.

    Returns:
        The ObjectId, or None if the value can never name an entity.
    """
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None
