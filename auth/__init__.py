"""
Auth package for Chat Platform.

Provides guest and credentials sign-in on top of signed JWT sessions
(PyJWT) and bcrypt password hashes, plus FastAPI dependencies that
resolve the current session from a cookie or bearer header.
"""
