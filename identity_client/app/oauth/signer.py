"""
Login credential assertions.
"""

import jwt

from ..keys.resolver import SigningKey


def sign_credentials(username: str, password: str, key: SigningKey) -> str:
    """Sign the user's credentials as a compact HS512 JWT.

    The claim set is exactly ``username`` and ``password`` with no timestamps,
    so identical inputs always produce the identical token. The ``kid`` header
    lets the identity service pick the matching key when verifying.
    """
    claims = {
        "password": password,
        "username": username,
    }
    return jwt.encode(
        claims,
        key.raw_key,
        algorithm=key.algorithm,
        headers={"kid": key.key_id},
    )
