"""
Temporary password generation for admin-initiated resets.
"""

import secrets

# Ambiguous glyphs (I/O, 0/1, l/i) are left out so passwords can be read aloud
UPPERCASE = "ABCDEFGHJKLMNPQRSTUVWXYZ"
DIGITS = "23456789"
LOWERCASE = "abcdefghjkmnpqrstuvwxyz"

GROUP_LENGTH = 4


def generate_temp_password(group_length: int = GROUP_LENGTH) -> str:
    """
    Generate a temporary password such as ``K7pQ-4mZx-...``.

    One group each of uppercase letters, digits and lowercase letters is
    drawn, the groups are shuffled, and joined with dashes.

    Returns:
        Password string
    """
    rng = secrets.SystemRandom()
    groups = [
        "".join(secrets.choice(alphabet) for _ in range(group_length))
        for alphabet in (UPPERCASE, DIGITS, LOWERCASE)
    ]
    rng.shuffle(groups)
    return "-".join(groups)
