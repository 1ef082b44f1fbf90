"""
SmartParking - Application Principale
Point d'entrée FastAPI avec toutes les configurations.
"""

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
import logging
import sys

# Import routers
from routers import (
    auth_router,
    sessions_router,
    alerts_router,
    spaces_router,
    payments_router,
    users_router,
    wallet_router,
    settings_router,
    websocket_router,
)

# Import utilities
from database.firebase_db import init_firebase, get_db
from utils.errors import QueryError
from utils.helpers import utcnow
from utils.scheduler import start_scheduler, stop_scheduler, get_scheduler
from services.websocket_service import get_websocket_manager
from config import get_settings

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Gestionnaire du cycle de vie de l'application.
    Gère les événements de démarrage et d'arrêt.
    """
    # ===== DÉMARRAGE =====
    logger.info("🚀 Démarrage de SmartParking...")

    try:
        # Initialiser Firebase
        logger.info("Initialisation de Firebase...")
        init_firebase()
        logger.info("✅ Firebase initialisé")

        # Initialiser les places de parking par défaut
        logger.info("Vérification des places de parking...")
        settings = get_settings()
        db = get_db()
        await db.initialize_default_spaces(count=settings.total_parking_spaces)
        logger.info(f"✅ {settings.total_parking_spaces} places de parking prêtes")

        # Démarrer le scheduler en arrière-plan
        logger.info("Démarrage du scheduler...")
        start_scheduler()
        logger.info("✅ Scheduler démarré")

        logger.info("🎉 SmartParking est prêt!")

    except Exception as e:
        logger.error(f"❌ Erreur de démarrage: {e}")
        raise

    yield  # L'application s'exécute ici

    # ===== ARRÊT =====
    logger.info("🛑 Arrêt de SmartParking...")

    try:
        stop_scheduler()
        logger.info("✅ Scheduler arrêté")
    except Exception as e:
        logger.error(f"Erreur d'arrêt: {e}")

    logger.info("👋 Arrêt de SmartParking terminé")


# Créer l'application FastAPI
app = FastAPI(
    title="SmartParking",
    description="""
    ## Système de Gestion de Parking

    * **Sessions**: entrée, sortie et paiement des véhicules
    * **Statistiques**: total, actives, terminées, payées
    * **Alertes**: notifications système horodatées
    * **Places**: occupation, réservations, maintenance
    * **Export**: sessions en CSV ou Excel
    * **Paiements**: historique, statistiques, rapports, portefeuille prépayé
    * **Utilisateurs**: inscription et administration des comptes
    * **Mises à Jour WebSocket**: actualisations en direct pour tous les clients

    ### Sécurité

    * Jeton Bearer obtenu via **POST /auth/login**
    * Rôles hiérarchiques: customer < operator < admin
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan
)

# Récupérer les settings
settings = get_settings()

# Configurer CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==================== GESTIONNAIRES D'EXCEPTIONS ====================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Gère les erreurs de validation Pydantic."""
    errors = []
    for error in exc.errors():
        errors.append({
            "field": ".".join(str(x) for x in error["loc"]),
            "message": error["msg"],
            "type": error["type"]
        })

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Erreur de validation",
            "errors": errors
        }
    )


@app.exception_handler(QueryError)
async def query_exception_handler(request: Request, exc: QueryError):
    """Échec d'une requête base de données: 500 avec le message sous la clé demandée."""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={exc.field: exc.message}
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Gère les exceptions inattendues."""
    logger.error(f"Erreur inattendue: {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Une erreur inattendue s'est produite",
            "type": type(exc).__name__
        }
    )


# ==================== INCLUSION DES ROUTERS ====================

# Route WebSocket (sans préfixe - le chemin complet /ws/sessions est dans le router)
app.include_router(websocket_router)

app.include_router(auth_router)
app.include_router(sessions_router)
app.include_router(alerts_router)
app.include_router(spaces_router)
app.include_router(payments_router)
app.include_router(users_router)
app.include_router(wallet_router)
app.include_router(settings_router)


# ==================== ENDPOINTS RACINE ====================

@app.get("/", tags=["Health"], summary="Endpoint Racine")
async def root():
    return {
        "name": "SmartParking",
        "version": "1.0.0",
        "status": "operational",
        "documentation": "/docs",
        "websocket": "/ws/sessions",
        "timestamp": utcnow().isoformat()
    }


@app.get("/health", tags=["Health"], summary="Vérification de Santé")
async def health_check():
    """État du scheduler d'expiration et nombre de clients WebSocket connectés."""
    scheduler = get_scheduler()

    return {
        "status": "healthy",
        "services": {
            "firebase": "connected",
            "scheduler": "running" if scheduler.is_running() else "stopped",
            "reservation_check_seconds": settings.reservation_check_interval_seconds,
            "websocket_connections": get_websocket_manager().get_connection_count()
        },
        "timestamp": utcnow().isoformat()
    }


@app.get(
    "/api/v1/info",
    tags=["Health"],
    summary="Informations API",
    description="Retourne les informations détaillées de l'API."
)
async def api_info():
    """
    Informations détaillées de l'API.
    """
    return {
        "name": "SmartParking API",
        "version": "1.0.0",
        "endpoints": {
            "auth": "/auth",
            "sessions": "/sessions",
            "stats": "/stats",
            "dashboard": "/stats/dashboard",
            "export": "/sessions/export",
            "alerts": "/alerts",
            "parking": "/parking",
            "payments": "/payments",
            "users": "/users",
            "wallet": "/wallet",
            "settings": "/settings",
            "websocket": "/ws/sessions"
        },
        "pricing": {
            "hourly_rate": settings.hourly_rate,
            "grace_period_minutes": settings.grace_period_minutes,
            "currency": settings.currency
        },
        "documentation": {
            "swagger": "/docs",
            "redoc": "/redoc"
        }
    }


# ==================== POINT D'ENTRÉE PRINCIPAL ====================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level="info"
    )
