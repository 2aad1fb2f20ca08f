"""
➡️ But : Personnaliser la documentation Swagger/OpenAPI.

custom_openapi(app) complète le schéma généré par FastAPI avec les conventions de l'API.
"""

from fastapi.openapi.utils import get_openapi


def custom_openapi(app):
    if app.openapi_schema:
        return app.openapi_schema
    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=(
            "API BlazeHub : posts, abonnements, marketplace de projets et fichiers.\n\n"
            "### Conventions\n"
            "- Toutes les heures sont en UTC.\n"
            "- Corps JSON en camelCase.\n"
            "- Erreurs : `{\"error\": \"<message>\"}` avec un statut non-2xx.\n"
            "- Session : `Authorization: Bearer <jeton>` ou cookie httpOnly posé par `/api/auth/sign-in`.\n"
        ),
        routes=app.routes,
        tags=app.openapi_tags,
    )
    app.openapi_schema = openapi_schema
    return app.openapi_schema
