"""
SnipKeep Backend — API Routes Package
======================================

Route Inventory:
    - auth.py:      POST /register, POST /login, POST /logout, GET /me
    - snippets.py:  POST/GET /snippets, GET /snippets/search,
                    PUT/DELETE /snippets/{id}
    - health.py:    GET /health

Routes handle HTTP details only (body, cookies, status codes) and delegate
everything else to the services.
"""
