"""
Base repository class for data access layer.

Repositories keep query logic out of the services:
1. Single place for query logic
2. Services can be tested against a session without touching SQL
3. Consistent interface for data operations

Example:
    class PlayerRepository(BaseRepository[Player]):
        def find_in_game(self, game_id: str, player_id: str) -> Optional[Player]:
            return self.where_first(Player.id == player_id, Player.game_id == game_id)
"""
from abc import ABC
from typing import TypeVar, Generic, Type, Optional, List
from sqlalchemy import desc
from sqlalchemy.orm import Session

T = TypeVar("T")


class BaseRepository(Generic[T], ABC):
    """
    Base repository class providing common data access methods.

    Attributes:
        model_type: The SQLAlchemy model class this repository manages
        db: The database session
    """

    def __init__(self, model_type: Type[T], db: Session):
        self.model_type = model_type
        self.db = db

    # ========================================================================
    # CRUD Operations
    # ========================================================================

    def find_by_id(self, id: str) -> Optional[T]:
        """Find a single record by ID."""
        return self.db.get(self.model_type, id)

    def find_all(self, order_by: Optional[str] = None) -> List[T]:
        """
        Find all records.

        Args:
            order_by: Column name to order by (prefix with '-' for descending)
        """
        query = self.db.query(self.model_type)

        if order_by:
            if order_by.startswith('-'):
                query = query.order_by(desc(getattr(self.model_type, order_by[1:])))
            else:
                query = query.order_by(getattr(self.model_type, order_by))

        return query.all()

    def add(self, instance: T) -> T:
        """Stage a new record (not yet committed)."""
        self.db.add(instance)
        return instance

    def delete(self, instance: T) -> None:
        self.db.delete(instance)

    # ========================================================================
    # Query Builders
    # ========================================================================

    def where_first(self, *criterion) -> Optional[T]:
        """Filter records using SQLAlchemy expressions and return first match."""
        return self.db.query(self.model_type).filter(*criterion).first()

    # ========================================================================
    # Save Operations
    # ========================================================================

    def save(self) -> None:
        """Commit pending changes to the database."""
        self.db.commit()

    def flush(self) -> None:
        """Flush pending changes without committing."""
        self.db.flush()
