"""
SmartParking - Firebase Database Module
Gestion des opérations Firebase Firestore: sessions, alertes, places,
utilisateurs, jetons d'authentification, paiements, portefeuilles et paramètres.
"""

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1 import FieldFilter
from typing import Optional, List, Dict, Any, Iterable
from datetime import datetime
import logging

from config import get_settings
from utils.helpers import utcnow, generate_space_number, zone_for_space

# Configure logging
logger = logging.getLogger(__name__)


class StaleDocumentError(Exception):
    """Document absent ou dans un état inattendu au moment de la transaction."""


class WalletDebitError(Exception):
    """Débit impossible: portefeuille introuvable ou solde insuffisant."""


# Global Firebase app instance
_firebase_app: Optional[firebase_admin.App] = None
_firestore_client = None


def init_firebase() -> firebase_admin.App:
    """
    Initialise Firebase Admin SDK.
    Appelé une seule fois au démarrage de l'application.
    """
    global _firebase_app, _firestore_client

    if _firebase_app is not None:
        logger.info("Firebase déjà initialisé")
        return _firebase_app

    try:
        settings = get_settings()
        cred = credentials.Certificate(settings.get_firebase_credentials())

        _firebase_app = firebase_admin.initialize_app(cred)
        _firestore_client = firestore.client()
        logger.info("Firebase initialisé avec succès")

        return _firebase_app

    except Exception as e:
        logger.error(f"Échec de l'initialisation Firebase: {e}")
        raise


def get_firestore_client():
    """Obtient l'instance du client Firestore."""
    global _firestore_client
    if _firestore_client is None:
        init_firebase()
    return _firestore_client


class FirebaseDB:
    """
    Gestionnaire de base de données Firebase Firestore.
    Une méthode par requête; les erreurs sont journalisées puis propagées.
    """

    COLLECTION_SESSIONS = "sessions"
    COLLECTION_ALERTS = "alerts"
    COLLECTION_SPACES = "parking_spaces"
    COLLECTION_USERS = "users"
    COLLECTION_AUTH_TOKENS = "auth_tokens"
    COLLECTION_PAYMENTS = "payments"
    COLLECTION_TRANSACTIONS = "wallet_transactions"
    COLLECTION_SETTINGS = "settings"
    SETTINGS_DOCUMENT = "parking"

    def __init__(self, client=None):
        self.db = client or get_firestore_client()

    @staticmethod
    def _count(query) -> int:
        """Exécute une agrégation count() Firestore."""
        results = query.count(alias="total").get()
        return int(results[0][0].value)

    # ==================== SESSIONS ====================

    async def create_session(self, session_data: Dict[str, Any]) -> Dict[str, Any]:
        """Enregistre une nouvelle session (document = session_id)."""
        try:
            session_id = session_data["session_id"]
            self.db.collection(self.COLLECTION_SESSIONS).document(session_id).set(session_data)
            logger.info(f"Session {session_id} créée")
            return session_data
        except Exception as e:
            logger.error(f"Erreur création session: {e}")
            raise

    async def get_session(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Récupère une session par son ID."""
        try:
            doc = self.db.collection(self.COLLECTION_SESSIONS).document(session_id).get()
            if doc.exists:
                return doc.to_dict()
            return None
        except Exception as e:
            logger.error(f"Erreur récupération session {session_id}: {e}")
            raise

    async def update_session(self, session_id: str, updates: Dict[str, Any]) -> bool:
        """Met à jour une session. Les sessions ne sont jamais supprimées."""
        try:
            updates["updated_at"] = utcnow()
            self.db.collection(self.COLLECTION_SESSIONS).document(session_id).update(updates)
            return True
        except Exception as e:
            logger.error(f"Erreur mise à jour session {session_id}: {e}")
            raise

    async def list_sessions(
        self,
        status_filter: Optional[str] = None,
        limit: int = 10
    ) -> List[Dict[str, Any]]:
        """Sessions les plus récentes (entry_time décroissant), filtrées par statut."""
        try:
            query = self.db.collection(self.COLLECTION_SESSIONS)

            if status_filter:
                query = query.where(filter=FieldFilter("status", "==", status_filter))

            query = query.order_by(
                "entry_time", direction=firestore.Query.DESCENDING
            ).limit(limit)

            return [doc.to_dict() for doc in query.stream()]
        except Exception as e:
            logger.error(f"Erreur récupération sessions: {e}")
            raise

    async def list_sessions_in_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status_filter: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Sessions entrées dans [start, end[, pour l'export."""
        try:
            query = self.db.collection(self.COLLECTION_SESSIONS)

            if status_filter:
                query = query.where(filter=FieldFilter("status", "==", status_filter))
            if start:
                query = query.where(filter=FieldFilter("entry_time", ">=", start))
            if end:
                query = query.where(filter=FieldFilter("entry_time", "<", end))

            query = query.order_by("entry_time", direction=firestore.Query.DESCENDING)

            return [doc.to_dict() for doc in query.stream()]
        except Exception as e:
            logger.error(f"Erreur récupération sessions pour export: {e}")
            raise

    async def count_sessions(
        self,
        status_filter: Optional[str] = None,
        since: Optional[datetime] = None
    ) -> int:
        """Compte les sessions, toutes ou pour un statut, entrées depuis `since`."""
        try:
            query = self.db.collection(self.COLLECTION_SESSIONS)
            if status_filter:
                query = query.where(filter=FieldFilter("status", "==", status_filter))
            if since:
                query = query.where(filter=FieldFilter("entry_time", ">=", since))
            return self._count(query)
        except Exception as e:
            logger.error(f"Erreur comptage sessions ({status_filter or 'toutes'}): {e}")
            raise

    # ==================== ALERTES ====================

    async def create_alert(self, alert_data: Dict[str, Any]) -> Dict[str, Any]:
        """Enregistre une alerte."""
        try:
            alert_id = alert_data["alert_id"]
            self.db.collection(self.COLLECTION_ALERTS).document(alert_id).set(alert_data)
            return alert_data
        except Exception as e:
            logger.error(f"Erreur création alerte: {e}")
            raise

    async def get_alert(self, alert_id: str) -> Optional[Dict[str, Any]]:
        """Récupère une alerte."""
        try:
            doc = self.db.collection(self.COLLECTION_ALERTS).document(alert_id).get()
            if doc.exists:
                return doc.to_dict()
            return None
        except Exception as e:
            logger.error(f"Erreur récupération alerte {alert_id}: {e}")
            raise

    async def get_recent_alerts(
        self,
        limit: int = 3,
        unread_only: bool = False
    ) -> List[Dict[str, Any]]:
        """Alertes les plus récentes (timestamp décroissant)."""
        try:
            query = self.db.collection(self.COLLECTION_ALERTS)
            if unread_only:
                query = query.where(filter=FieldFilter("read", "==", False))

            query = query.order_by(
                "timestamp", direction=firestore.Query.DESCENDING
            ).limit(limit)

            return [doc.to_dict() for doc in query.stream()]
        except Exception as e:
            logger.error(f"Erreur récupération alertes: {e}")
            raise

    async def mark_alert_read(self, alert_id: str) -> bool:
        """Passe une alerte à lue. Seul champ modifiable d'une alerte."""
        try:
            self.db.collection(self.COLLECTION_ALERTS).document(alert_id).update({"read": True})
            return True
        except Exception as e:
            logger.error(f"Erreur mise à jour alerte {alert_id}: {e}")
            raise

    # ==================== PLACES DE PARKING ====================

    async def get_all_spaces(self) -> List[Dict[str, Any]]:
        """Récupère toutes les places de parking."""
        try:
            docs = self.db.collection(self.COLLECTION_SPACES).order_by("number").stream()
            return [doc.to_dict() for doc in docs]
        except Exception as e:
            logger.error(f"Erreur lors de la récupération des places: {e}")
            raise

    async def get_space(self, number: str) -> Optional[Dict[str, Any]]:
        """Récupère une place par son numéro (ex: A1)."""
        try:
            doc = self.db.collection(self.COLLECTION_SPACES).document(number).get()
            if doc.exists:
                return doc.to_dict()
            return None
        except Exception as e:
            logger.error(f"Erreur lors de la récupération de la place {number}: {e}")
            raise

    async def get_spaces_by_numbers(self, numbers: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        """Lecture groupée de places, indexées par numéro."""
        numbers = sorted(set(numbers))
        if not numbers:
            return {}

        try:
            collection = self.db.collection(self.COLLECTION_SPACES)
            refs = [collection.document(number) for number in numbers]

            spaces = {}
            for doc in self.db.get_all(refs):
                if doc.exists:
                    data = doc.to_dict()
                    spaces[data["number"]] = data
            return spaces
        except Exception as e:
            logger.error(f"Erreur lecture groupée des places: {e}")
            raise

    async def update_space(self, number: str, updates: Dict[str, Any]) -> bool:
        """Met à jour une place."""
        try:
            updates["updated_at"] = utcnow()
            self.db.collection(self.COLLECTION_SPACES).document(number).update(updates)
            logger.info(f"Place {number} mise à jour: {sorted(updates)}")
            return True
        except Exception as e:
            logger.error(f"Erreur lors de la mise à jour de la place {number}: {e}")
            raise

    async def get_expired_reservations(self, now: datetime) -> List[Dict[str, Any]]:
        """Places réservées dont la réservation a expiré."""
        try:
            query = self.db.collection(self.COLLECTION_SPACES).where(
                filter=FieldFilter("status", "==", "reserved")
            ).where(
                filter=FieldFilter("reservation.expires_at", "<", now)
            )
            return [doc.to_dict() for doc in query.stream()]
        except Exception as e:
            logger.error(f"Erreur lors de la récupération des réservations expirées: {e}")
            raise

    async def initialize_default_spaces(self, count: int = 20) -> List[str]:
        """
        Initialise les places de parking par défaut (A1, A2, ...).
        Appelé au démarrage de l'application.
        """
        try:
            existing = await self.get_all_spaces()
            if existing:
                logger.info(f"{len(existing)} places existantes, initialisation ignorée")
                return []

            created = []
            now = utcnow()

            for i in range(count):
                number = generate_space_number(i)
                space_data = {
                    "number": number,
                    "zone": zone_for_space(number),
                    "vehicle_type": "car",
                    "status": "free",
                    "current_session_id": None,
                    "reservation": None,
                    "created_at": now,
                    "updated_at": now
                }
                self.db.collection(self.COLLECTION_SPACES).document(number).set(space_data)
                created.append(number)

            logger.info(f"{count} places de parking initialisées")
            return created

        except Exception as e:
            logger.error(f"Erreur lors de l'initialisation des places: {e}")
            raise

    # ==================== UTILISATEURS ====================

    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Récupère un utilisateur par son ID."""
        try:
            doc = self.db.collection(self.COLLECTION_USERS).document(user_id).get()
            if doc.exists:
                return doc.to_dict()
            return None
        except Exception as e:
            logger.error(f"Erreur lors de la récupération de l'utilisateur {user_id}: {e}")
            raise

    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        """Récupère un utilisateur par email."""
        try:
            query = self.db.collection(self.COLLECTION_USERS).where(
                filter=FieldFilter("email", "==", email.lower())
            ).limit(1)

            for doc in query.stream():
                return doc.to_dict()
            return None
        except Exception as e:
            logger.error(f"Erreur lors de la recherche de l'utilisateur {email}: {e}")
            raise

    async def save_user(self, user_id: str, user_data: Dict[str, Any]) -> bool:
        """Crée ou met à jour un utilisateur."""
        try:
            self.db.collection(self.COLLECTION_USERS).document(user_id).set(user_data, merge=True)
            return True
        except Exception as e:
            logger.error(f"Erreur lors de la mise à jour de l'utilisateur {user_id}: {e}")
            raise

    async def list_users(self) -> List[Dict[str, Any]]:
        """Tous les utilisateurs, triés par nom."""
        try:
            query = self.db.collection(self.COLLECTION_USERS).order_by("name")
            return [doc.to_dict() for doc in query.stream()]
        except Exception as e:
            logger.error(f"Erreur lors de la récupération des utilisateurs: {e}")
            raise

    async def delete_user(self, user_id: str) -> bool:
        """Supprime un utilisateur."""
        try:
            self.db.collection(self.COLLECTION_USERS).document(user_id).delete()
            logger.info(f"Utilisateur {user_id} supprimé")
            return True
        except Exception as e:
            logger.error(f"Erreur lors de la suppression de l'utilisateur {user_id}: {e}")
            raise

    # ==================== JETONS D'AUTHENTIFICATION ====================

    async def save_auth_token(self, token_hash: str, token_data: Dict[str, Any]) -> bool:
        """Enregistre un jeton (seul son hash est stocké)."""
        try:
            self.db.collection(self.COLLECTION_AUTH_TOKENS).document(token_hash).set(token_data)
            return True
        except Exception as e:
            logger.error(f"Erreur sauvegarde jeton: {e}")
            raise

    async def get_auth_token(self, token_hash: str) -> Optional[Dict[str, Any]]:
        """Récupère un jeton par son hash."""
        try:
            doc = self.db.collection(self.COLLECTION_AUTH_TOKENS).document(token_hash).get()
            if doc.exists:
                return doc.to_dict()
            return None
        except Exception as e:
            logger.error(f"Erreur récupération jeton: {e}")
            raise

    async def delete_auth_token(self, token_hash: str) -> bool:
        """Révoque un jeton."""
        try:
            self.db.collection(self.COLLECTION_AUTH_TOKENS).document(token_hash).delete()
            return True
        except Exception as e:
            logger.error(f"Erreur suppression jeton: {e}")
            raise

    # ==================== PAIEMENTS ====================

    async def record_session_payment(
        self,
        session_id: str,
        expected_status: str,
        session_updates: Dict[str, Any],
        payment_data: Dict[str, Any],
        wallet_transaction: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Passe une session à paid et enregistre son paiement.

        Utilise une transaction Firestore: la session, le paiement et le
        débit éventuel du portefeuille sont écrits ensemble ou pas du tout.

        Raises:
            StaleDocumentError: session absente ou plus au statut attendu
            WalletDebitError: portefeuille absent ou solde insuffisant
        """
        transaction = self.db.transaction()
        session_ref = self.db.collection(self.COLLECTION_SESSIONS).document(session_id)
        payment_ref = self.db.collection(self.COLLECTION_PAYMENTS).document(payment_data["payment_id"])

        @firestore.transactional
        def pay_in_transaction(transaction) -> Dict[str, Any]:
            session_doc = session_ref.get(transaction=transaction)

            if not session_doc.exists:
                raise StaleDocumentError(f"Session {session_id} non trouvée")

            current = session_doc.to_dict().get("status")
            if current != expected_status:
                raise StaleDocumentError(f"Session non payable. Statut actuel: {current}")

            if wallet_transaction:
                user_id = wallet_transaction["user_id"]
                user_ref = self.db.collection(self.COLLECTION_USERS).document(user_id)
                user_doc = user_ref.get(transaction=transaction)

                if not user_doc.exists:
                    raise WalletDebitError(f"Portefeuille {user_id} introuvable")

                balance = user_doc.to_dict().get("wallet_balance", 0.0)
                if balance < wallet_transaction["amount"]:
                    raise WalletDebitError(f"Solde insuffisant: {balance:.2f}")

                transaction.update(user_ref, {
                    "wallet_balance": round(balance - wallet_transaction["amount"], 2)
                })
                transaction.set(
                    self.db.collection(self.COLLECTION_TRANSACTIONS).document(
                        wallet_transaction["transaction_id"]
                    ),
                    wallet_transaction
                )

            transaction.update(session_ref, {**session_updates, "updated_at": utcnow()})
            transaction.set(payment_ref, payment_data)

            return payment_data

        try:
            result = pay_in_transaction(transaction)
            logger.info(f"Paiement {payment_data['payment_id']} enregistré pour {session_id}")
            return result
        except Exception as e:
            logger.error(f"Échec du paiement de la session {session_id}: {e}")
            raise

    async def get_recent_payments(self, limit: int = 50) -> List[Dict[str, Any]]:
        """Paiements les plus récents."""
        try:
            query = self.db.collection(self.COLLECTION_PAYMENTS).order_by(
                "payment_time", direction=firestore.Query.DESCENDING
            ).limit(limit)
            return [doc.to_dict() for doc in query.stream()]
        except Exception as e:
            logger.error(f"Erreur récupération paiements: {e}")
            raise

    async def list_payments_in_range(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None
    ) -> List[Dict[str, Any]]:
        """Paiements de la période [start, end[, plus récent en premier."""
        try:
            query = self.db.collection(self.COLLECTION_PAYMENTS)

            if start:
                query = query.where(filter=FieldFilter("payment_time", ">=", start))
            if end:
                query = query.where(filter=FieldFilter("payment_time", "<", end))

            query = query.order_by("payment_time", direction=firestore.Query.DESCENDING)

            return [doc.to_dict() for doc in query.stream()]
        except Exception as e:
            logger.error(f"Erreur récupération paiements pour rapport: {e}")
            raise

    async def payment_totals(self, since: Optional[datetime] = None) -> Dict[str, Any]:
        """Nombre et somme des paiements (agrégation Firestore), depuis `since`."""
        try:
            query = self.db.collection(self.COLLECTION_PAYMENTS)
            if since:
                query = query.where(filter=FieldFilter("payment_time", ">=", since))

            aggregate = query.count(alias="count").sum("amount", alias="total")
            values = {result.alias: result.value for result in aggregate.get()[0]}

            return {
                "count": int(values.get("count") or 0),
                "total": float(values.get("total") or 0.0),
            }
        except Exception as e:
            logger.error(f"Erreur agrégation paiements: {e}")
            raise

    # ==================== PORTEFEUILLE ====================

    async def wallet_top_up(self, transaction_data: Dict[str, Any]) -> float:
        """
        Crédite le portefeuille d'un utilisateur et journalise l'opération.
        Utilise une transaction Firestore pour la lecture du solde.

        Returns:
            float: nouveau solde

        Raises:
            StaleDocumentError: utilisateur absent
        """
        user_id = transaction_data["user_id"]
        transaction = self.db.transaction()
        user_ref = self.db.collection(self.COLLECTION_USERS).document(user_id)
        tx_ref = self.db.collection(self.COLLECTION_TRANSACTIONS).document(
            transaction_data["transaction_id"]
        )

        @firestore.transactional
        def top_up_in_transaction(transaction) -> float:
            user_doc = user_ref.get(transaction=transaction)

            if not user_doc.exists:
                raise StaleDocumentError(f"Utilisateur {user_id} non trouvé")

            balance = user_doc.to_dict().get("wallet_balance", 0.0)
            new_balance = round(balance + transaction_data["amount"], 2)

            transaction.update(user_ref, {"wallet_balance": new_balance})
            transaction.set(tx_ref, transaction_data)

            return new_balance

        try:
            new_balance = top_up_in_transaction(transaction)
            logger.info(f"Portefeuille {user_id} crédité, solde {new_balance:.2f}")
            return new_balance
        except Exception as e:
            logger.error(f"Échec du rechargement du portefeuille {user_id}: {e}")
            raise

    async def list_wallet_transactions(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        """Opérations de portefeuille d'un utilisateur, plus récente en premier."""
        try:
            query = self.db.collection(self.COLLECTION_TRANSACTIONS).where(
                filter=FieldFilter("user_id", "==", user_id)
            ).order_by(
                "timestamp", direction=firestore.Query.DESCENDING
            ).limit(limit)
            return [doc.to_dict() for doc in query.stream()]
        except Exception as e:
            logger.error(f"Erreur récupération transactions {user_id}: {e}")
            raise

    # ==================== PARAMÈTRES ====================

    async def get_parking_settings(self) -> Optional[Dict[str, Any]]:
        """Paramètres du parking enregistrés, None si jamais modifiés."""
        try:
            doc = self.db.collection(self.COLLECTION_SETTINGS).document(self.SETTINGS_DOCUMENT).get()
            if doc.exists:
                return doc.to_dict()
            return None
        except Exception as e:
            logger.error(f"Erreur récupération paramètres: {e}")
            raise

    async def save_parking_settings(self, updates: Dict[str, Any]) -> bool:
        """Fusionne les paramètres modifiés dans le document du parking."""
        try:
            updates["updated_at"] = utcnow()
            self.db.collection(self.COLLECTION_SETTINGS).document(
                self.SETTINGS_DOCUMENT
            ).set(updates, merge=True)
            return True
        except Exception as e:
            logger.error(f"Erreur sauvegarde paramètres: {e}")
            raise


# Instance singleton
_db_instance: Optional[FirebaseDB] = None


def get_db() -> FirebaseDB:
    """Obtient l'instance singleton de FirebaseDB."""
    global _db_instance
    if _db_instance is None:
        _db_instance = FirebaseDB()
    return _db_instance
