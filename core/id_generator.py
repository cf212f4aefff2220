import random

# Two-digit entity codes
TYPE_POSTFIX = {
    "photos": 1,
    "memories": 2,
    "notes": 3,
}


def generate_random_id(entity: str) -> int:
    """Returns a 10-digit id: 8 random digits + 2-digit entity postfix."""
    if entity not in TYPE_POSTFIX:
        raise ValueError(f"Unknown entity for ID generation: {entity}")
    rand8 = random.randint(10_000_000, 99_999_999)
    postfix = TYPE_POSTFIX[entity]
    return rand8 * 100 + postfix
