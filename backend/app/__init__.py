"""
Inkpost Backend — Application Package
=======================================

Blog content API: user accounts with bearer-token sessions, posts with
image thumbnails, per-user avatars, and author/category listings.

Layers:
    routes/     HTTP only: parse form/JSON input, call a service, return a schema
    services/   account, post and media rules; raise InkpostError subclasses
    models/     SQLAlchemy tables (users, posts)
    schemas/    Pydantic request/response contracts (camelCase JSON)
    security    bcrypt hashing and signed bearer tokens
"""

__version__ = "1.0.0"
