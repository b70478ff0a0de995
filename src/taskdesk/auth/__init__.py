"""Authentication.

Users register with email/password and receive a JWT access token that
carries their user id and role. Protected routes resolve the bearer token
to a CurrentIdentity, which the task service uses to scope every query.
"""
