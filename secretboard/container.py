#  Secret Board - Dependency Injection Container
#
#  DeclarativeContainer wiring all services and their dependencies.
#
#  Depends on: db/*, services/*
#  Used by:    app.py, routes/*, middleware/auth.py

from dependency_injector import containers, providers

from secretboard.config import SESSION_TTL_DAYS
from secretboard.db.connection import Database
from secretboard.db.sessions import SessionDatabase, SessionStore
from secretboard.db.users import UserStore
from secretboard.services.auth import AuthService
from secretboard.services.oauth import OAuthService
from secretboard.services.secret_service import SecretService
from secretboard.services.session import SessionManager


class Container(containers.DeclarativeContainer):
    """DI container for the Secret Board.

    All services are Singletons — one instance per application lifecycle.
    Routes access them via @inject + Depends(Provide[Container.xxx]).
    Tests override them via container.xxx.override(providers.Object(mock)).
    """

    wiring_config = containers.WiringConfiguration(
        modules=[
            "secretboard.routes.auth",
            "secretboard.routes.auth_oauth",
            "secretboard.routes.secrets",
            "secretboard.middleware.auth",
        ]
    )

    # --- Storage ---
    db = providers.Singleton(Database)
    session_db = providers.Singleton(SessionDatabase)
    users = providers.Singleton(UserStore, db=db)
    session_store = providers.Singleton(
        SessionStore, db=session_db, ttl_seconds=SESSION_TTL_DAYS * 86400
    )

    # --- Services ---
    auth = providers.Singleton(AuthService, users=users)
    oauth = providers.Singleton(OAuthService, users=users)
    sessions = providers.Singleton(SessionManager, sessions=session_store, users=users)
    secrets = providers.Singleton(SecretService, users=users)
