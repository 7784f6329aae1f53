"""Services for replication, reconciliation and anonymization."""

from anonsync.services.anonymizer import anonymize_customer
from anonsync.services.checkpoint import CheckpointStore
from anonsync.services.collection import CustomerCollection
from anonsync.services.lock import LockCoordinator, LockHeldError
from anonsync.services.pursuer import Pursuer
from anonsync.services.reindex import FullReindexer
from anonsync.services.updater import Updater

__all__ = [
    "CheckpointStore",
    "CustomerCollection",
    "FullReindexer",
    "LockCoordinator",
    "LockHeldError",
    "Pursuer",
    "Updater",
    "anonymize_customer",
]
