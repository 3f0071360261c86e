"""Authentication and authorization.

Learn: One authentication path:
    username/password → CredentialVerifier → TokenIssuer → JWT
    Authorization: Bearer <JWT> → TokenVerifier → TokenClaims

Tokens are stateless. A token is valid iff its HMAC signature verifies
under the configured secret and its `exp` is still in the future.
"""
