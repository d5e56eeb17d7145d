# Routes package init
"""
Inkpost Backend — API Routes Package
======================================

Route Inventory:
    - users.py:    /api/users/*          (accounts, profiles, avatars, authors)
    - posts.py:    /api/posts/*          (post CRUD, author and category listings)
    - uploads.py:  GET /uploads/{name}   (stored avatars and thumbnails)
    - health.py:   GET /health           (service health check)

Handlers are thin: they pull data out of the request, call a service and
return its schema. Failures travel as InkpostError subclasses to the
handlers registered in main.py.
"""
