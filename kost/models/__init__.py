# Import every model so relationship() targets resolve and Base.metadata is complete
from kost.models.property import Property
from kost.models.settings import PropertySettings
from kost.models.room import Room
from kost.models.tenant import Tenant
from kost.models.invoice import Invoice
from kost.models.payment import Payment
from kost.models.expense import Expense
from kost.models.user import User
from kost.models.audit_log import AuditLog
from kost.models.pending_transaction import PendingTransaction

__all__ = [
    "Property",
    "PropertySettings",
    "Room",
    "Tenant",
    "Invoice",
    "Payment",
    "Expense",
    "User",
    "AuditLog",
    "PendingTransaction",
]
