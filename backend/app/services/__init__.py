# Services package init
"""
Inkpost Backend — Services Layer
==================================

Service Inventory:
    - MediaStore:  image validation, uniquely named storage, best-effort removal
    - UserService: registration, login, profiles, avatar and account edits
    - PostService: post CRUD, ownership checks, per-user post counter

Services take an AsyncSession per call and are built once in create_app()
with explicit Settings, so tests can construct them directly.
"""
