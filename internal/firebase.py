"""Firebase Admin initialisation.

Builds the Firestore client used by the chat repository from the service
account found in config (inline JSON already decoded to a dict, or a key file
path).
"""
import logging
from typing import Any, Dict

import firebase_admin
from firebase_admin import credentials, firestore

logger = logging.getLogger(__name__)


def get_firestore_client(firebase_config: Dict[str, Any]):
    """Initialise the default Firebase app once and return a Firestore client."""
    service_account = firebase_config.get("service_account")
    if not service_account:
        raise ValueError("firebase.service_account is required")

    try:
        app = firebase_admin.get_app()
    except ValueError:
        app = firebase_admin.initialize_app(credentials.Certificate(service_account))
        logger.info(f"Firebase app initialised for project {app.project_id}")

    return firestore.client(app)
