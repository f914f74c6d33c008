"""
Invite-code helpers for the Groups app.
"""
import secrets

# Uppercase letters and digits without the look-alikes 0/O and 1/I/L
INVITE_ALPHABET = 'ABCDEFGHJKMNPQRSTUVWXYZ23456789'
INVITE_CODE_LENGTH = 8
MAX_ATTEMPTS = 20


def generate_invite_code(length=INVITE_CODE_LENGTH):
    """
    Return an invite code no active or inactive group is using yet.

    Raises ``RuntimeError`` if no free code turns up after
    ``MAX_ATTEMPTS`` draws, which only happens when the code space is
    nearly exhausted.
    """
    from apps.groups.models import Group

    for _ in range(MAX_ATTEMPTS):
        code = ''.join(secrets.choice(INVITE_ALPHABET) for _ in range(length))
        if not Group.objects.filter(invite_code=code).exists():
            return code
    raise RuntimeError('Could not allocate a unique invite code.')
