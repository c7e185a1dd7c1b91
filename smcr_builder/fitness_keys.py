"""
Composite keys for fitness responses.

A response is addressed by ``individualId::sectionId::questionId``. Every
component that reads or writes these keys goes through encode/decode here.
"""

KEY_DELIMITER = "::"


class FitnessKeyError(ValueError):
    """Raised for a composite key that is not exactly three non-empty segments."""


def encode_fitness_key(individual_id, section_id, question_id):
    parts = [individual_id, section_id, question_id]
    for part in parts:
        if not isinstance(part, str) or not part or KEY_DELIMITER in part:
            raise FitnessKeyError(f"Invalid fitness key segment: {part!r}")
    return KEY_DELIMITER.join(parts)


def decode_fitness_key(key):
    """Split a composite key into (individual_id, section_id, question_id)."""
    if not isinstance(key, str):
        raise FitnessKeyError(f"Fitness key must be a string, got {type(key).__name__}")
    parts = key.split(KEY_DELIMITER)
    if len(parts) != 3 or not all(parts):
        raise FitnessKeyError(f"Malformed fitness key: {key!r}")
    return parts[0], parts[1], parts[2]


def try_decode_fitness_key(key):
    """decode_fitness_key that returns None instead of raising, for read paths."""
    try:
        return decode_fitness_key(key)
    except FitnessKeyError:
        return None
