"""
Vademecum Database Module

Database components:
- PostgreSQL with pgvector integration
- SQLAlchemy medication model
- Medication stores (pgvector and in-memory)
"""

from vademecum.db.models import EMBEDDING_DIMENSION, Base, Medication
from vademecum.db.postgres import (
    MAX_OVERFLOW,
    POOL_RECYCLE,
    POOL_SIZE,
    check_database_health,
    check_pgvector_extension,
    create_db_engine,
    create_session_maker,
    init_schema,
    session_scope,
)
from vademecum.db.store import (
    InMemoryMedicationStore,
    MedicationStore,
    PgMedicationStore,
)

__all__ = [
    # Base
    "Base",
    # Models
    "Medication",
    # Stores
    "MedicationStore",
    "PgMedicationStore",
    "InMemoryMedicationStore",
    # Constants
    "EMBEDDING_DIMENSION",
    "POOL_SIZE",
    "MAX_OVERFLOW",
    "POOL_RECYCLE",
    # Functions
    "create_db_engine",
    "create_session_maker",
    "session_scope",
    "init_schema",
    "check_database_health",
    "check_pgvector_extension",
]
