# Services package init
"""
Jokes API Backend — Services Layer
====================================

What:  Everything between the route handlers and the database.

Service Inventory:
    - security.py:          CredentialService (bcrypt hashing, JWT issue/verify)
    - validation.py:        Input predicates, run before any store access
    - query_builder.py:     JokeListQuery (filter predicates + sort modes)
    - error_translation.py: Constraint violations → client error categories
    - joke_service.py:      Jokes and comments, owner-only writes
    - favorite_service.py:  Favorites add/remove/list
    - user_service.py:      Registration, login, profile, availability

Services receive the request's AsyncSession as an argument and keep no
per-request state. Jokes and favorites have one module-level instance each;
CredentialService and UserService depend on the JWT/bcrypt settings, so
create_app() builds them from its config and keeps them on app.state.
"""
