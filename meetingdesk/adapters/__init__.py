"""
Adapters layer - External integrations (hosted database, keyring).
"""

from .credential_store import CredentialStore
from .gateway import TableGateway
from .memory_gateway import InMemoryGateway
from .supabase_gateway import SupabaseGateway

__all__ = ["CredentialStore", "TableGateway", "InMemoryGateway", "SupabaseGateway"]
