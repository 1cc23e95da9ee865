"""Fractional order keys for timeline items.

Clips and clip sections of one video share a single ordering space. Each item
carries a base-62 string key; keys compare with plain string (byte) ordering,
which is also how MongoDB sorts them. A new key can always be generated
strictly between two neighbours, so inserting or moving an item writes only
that item.

Keys come from `fractional_indexing`: an integer head whose length encodes its
magnitude, followed by an optional fraction that never ends with "0". Appending
at either end increments the head, so key length grows logarithmically with
the number of appends.
"""

from fractional_indexing import FIError
from fractional_indexing import generate_key_between as _generate_key_between
from fractional_indexing import generate_n_keys_between as _generate_n_keys_between
from fractional_indexing import validate_order_key as _validate_order_key

DIGITS = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz"


class InvalidOrderKeyError(ValueError):
    """Raised when an order key is malformed or the bounds are inverted."""


def validate_order_key(key: str) -> None:
    """Raise InvalidOrderKeyError unless `key` is a well-formed order key."""
    if not key:
        msg = "Order key must not be empty"
        raise InvalidOrderKeyError(msg)
    invalid = set(key) - set(DIGITS)
    if invalid:
        msg = f"Order key contains invalid characters {sorted(invalid)}: {key!r}"
        raise InvalidOrderKeyError(msg)
    try:
        _validate_order_key(key)
    except FIError as e:
        msg = f"Invalid order key {key!r}: {e}"
        raise InvalidOrderKeyError(msg) from e


def generate_key_between(before: str | None, after: str | None) -> str:
    """Generate an order key that sorts strictly between two neighbours.

    Args:
        before: Key of the item that should precede the new one, or None for
            the start of the sequence.
        after: Key of the item that should follow the new one, or None for
            the end of the sequence.

    Returns:
        The new order key.

    Raises:
        InvalidOrderKeyError: If a bound is malformed or `before >= after`.
    """
    return generate_n_keys_between(before, after, 1)[0]


def generate_n_keys_between(
    before: str | None,
    after: str | None,
    n: int,
) -> list[str]:
    """Generate `n` ascending keys that all sort strictly between two neighbours."""
    if n <= 0:
        return []
    for bound in (before, after):
        if bound is not None:
            validate_order_key(bound)
    if before is not None and after is not None and before >= after:
        msg = f"Lower bound {before!r} must sort before upper bound {after!r}"
        raise InvalidOrderKeyError(msg)

    try:
        if n == 1:
            return [_generate_key_between(before, after)]
        return _generate_n_keys_between(before, after, n)
    except FIError as e:
        msg = f"Cannot generate keys between {before!r} and {after!r}: {e}"
        raise InvalidOrderKeyError(msg) from e
