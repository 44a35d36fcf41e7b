"""
SnipKeep Backend — Services Layer
==================================

Service Inventory:
    - RecordStore: whole-collection JSON persistence for users and snippets
    - SessionStore / InMemorySessionStore: session tokens with fixed expiry
    - AuthService: registration, password checks, login/logout
    - SnippetService: snippet CRUD and search with ownership checks

Services never touch HTTP objects; route handlers pass them plain values
and pydantic models.
"""
