# Routes package init
"""
WeatherCrops API - API Routes Package
======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - register.py:         POST /register          (create a user)
    - users.py:            GET  /users             (list users, no passwords)
    - diagnostics.py:      GET  /test              (API + database health)
                           GET|POST /test_connection (liveness echo)
    - register_tester.py:  GET|POST /test_register (manual registration form)

Routes are thin: they extract request data, call a service and shape the
response. Errors raised by services are turned into JSON by the global
handlers in main.py.
"""
