"""
SmartParking - WebSocket Router
Connexions WebSocket temps réel pour les sessions et les alertes.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, Query, status
from typing import Optional
import logging
import json

from database.firebase_db import get_db
from models.session import SessionStatus
from models.user import User, UserRole
from security.access_gate import has_required_role
from services.auth_service import get_auth_service
from services.websocket_service import get_websocket_manager
from utils.helpers import utcnow, to_json_safe

# Configure logging
logger = logging.getLogger(__name__)

# Create router
router = APIRouter(
    tags=["WebSocket"]
)


async def authenticate_websocket(token: Optional[str]) -> Optional[User]:
    """
    Résout le jeton passé en paramètre `token`.
    Retourne None si le jeton est absent, invalide, ou le rôle inférieur à operator.
    """
    if not token:
        return None

    try:
        user = await get_auth_service().authenticate(token)
    except Exception as e:
        logger.error(f"Erreur de vérification du jeton WebSocket: {e}")
        return None

    if user is None or not has_required_role(user.role, UserRole.OPERATOR):
        return None
    return user


@router.websocket("/ws/sessions")
async def sessions_websocket(
    websocket: WebSocket,
    token: Optional[str] = Query(None)
):
    """
    Point de terminaison WebSocket pour les mises à jour en temps réel.
    Réservé aux opérateurs: ws://.../ws/sessions?token=<jeton Bearer>.
    Sans jeton valide, la connexion est fermée avec le code 1008.

    Messages envoyés:
    - connected: à la connexion, avec les sessions actives
    - session_update: entrée, sortie, paiement
    - alert: nouvelle alerte
    """
    user = await authenticate_websocket(token)
    if user is None:
        logger.warning("Connexion WebSocket refusée: jeton absent, invalide ou rôle insuffisant")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    manager = get_websocket_manager()

    try:
        await manager.connect(websocket)
        logger.info(f"Connexion WebSocket établie pour {user.email}")

        # Envoyer l'état initial
        try:
            active = await get_db().list_sessions(
                status_filter=SessionStatus.ACTIVE.value,
                limit=100
            )
            await websocket.send_json({
                "type": "connected",
                "message": "Connexion établie à SmartParking",
                "active_sessions": [to_json_safe(s) for s in active],
                "timestamp": utcnow().isoformat()
            })
        except Exception as e:
            logger.error(f"Erreur envoi état initial: {e}")

        # Maintenir la connexion et gérer les messages
        while True:
            try:
                data = await websocket.receive_text()

                try:
                    message = json.loads(data)
                    await handle_client_message(websocket, message)
                except json.JSONDecodeError:
                    await websocket.send_json({
                        "type": "error",
                        "message": "Format JSON invalide"
                    })

            except WebSocketDisconnect:
                break

    except Exception as e:
        logger.error(f"Erreur WebSocket: {e}")

    finally:
        await manager.disconnect(websocket)


async def handle_client_message(websocket: WebSocket, message: dict):
    """
    Gère les messages entrants des clients WebSocket.
    Seul `ping` est supporté.
    """
    msg_type = message.get("type", "unknown") if isinstance(message, dict) else "unknown"

    if msg_type == "ping":
        await websocket.send_json({
            "type": "pong",
            "timestamp": utcnow().isoformat()
        })
    else:
        await websocket.send_json({
            "type": "error",
            "message": f"Type de message inconnu: {msg_type}"
        })


@router.get(
    "/ws/status",
    tags=["WebSocket"],
    summary="État des connexions WebSocket"
)
async def websocket_status():
    """
    Nombre de connexions WebSocket actives, pour le monitoring.
    """
    manager = get_websocket_manager()

    return {
        "active_connections": manager.get_connection_count(),
        "status": "operational",
        "timestamp": utcnow().isoformat()
    }
