"""
SmartParking - Service WebSocket
Gère les connexions WebSocket pour les mises à jour en temps réel
des sessions et des alertes.
"""

from fastapi import WebSocket
from typing import List, Dict, Any, Optional
import asyncio
import logging

from utils.helpers import utcnow, to_json_safe

# Configure logging
logger = logging.getLogger(__name__)


class WebSocketManager:
    """
    Gestionnaire de connexions WebSocket.
    Fournit des mises à jour en temps réel à tous les clients connectés.
    """

    def __init__(self):
        # Connexions WebSocket actives
        self.active_connections: List[WebSocket] = []
        # Lock pour les opérations concurrentes sur la liste
        self._lock = asyncio.Lock()

    async def connect(self, websocket: WebSocket):
        """
        Accepte et enregistre une nouvelle connexion WebSocket.

        Args:
            websocket: La connexion WebSocket à enregistrer
        """
        await websocket.accept()
        async with self._lock:
            self.active_connections.append(websocket)

        logger.info(f"Nouvelle connexion WebSocket. Total: {len(self.active_connections)}")

    async def disconnect(self, websocket: WebSocket):
        """
        Supprime une connexion WebSocket.

        Args:
            websocket: La connexion WebSocket à supprimer
        """
        async with self._lock:
            if websocket in self.active_connections:
                self.active_connections.remove(websocket)

        logger.info(f"WebSocket déconnecté. Total: {len(self.active_connections)}")

    async def broadcast(self, message: Dict[str, Any]):
        """
        Diffuse un message à tous les clients connectés.

        Args:
            message: Dictionnaire du message à diffuser
        """
        if not self.active_connections:
            return

        disconnected = []

        async with self._lock:
            for websocket in self.active_connections:
                try:
                    await websocket.send_json(message)
                except Exception as e:
                    logger.error(f"Erreur d'envoi websocket: {e}")
                    disconnected.append(websocket)

        # Nettoyer les clients déconnectés
        for ws in disconnected:
            await self.disconnect(ws)

    async def broadcast_session_update(self, action: str, session: Dict[str, Any]):
        """
        Diffuse une mise à jour de session.

        Args:
            action: "created", "ended", "paid" ou "status_changed"
            session: Données de la session
        """
        await self.broadcast({
            "type": "session_update",
            "action": action,
            "session": to_json_safe(session),
            "timestamp": utcnow().isoformat(),
        })

    async def broadcast_alert(self, alert: Dict[str, Any]):
        """Diffuse une nouvelle alerte."""
        await self.broadcast({
            "type": "alert",
            "alert": to_json_safe(alert),
            "timestamp": utcnow().isoformat(),
        })

    def get_connection_count(self) -> int:
        """Retourne le nombre de connexions actives."""
        return len(self.active_connections)


# Instance singleton
_websocket_manager: Optional[WebSocketManager] = None


def get_websocket_manager() -> WebSocketManager:
    """
    Obtient l'instance singleton du WebSocketManager.

    Returns:
        WebSocketManager: Le gestionnaire WebSocket global
    """
    global _websocket_manager
    if _websocket_manager is None:
        _websocket_manager = WebSocketManager()
    return _websocket_manager
