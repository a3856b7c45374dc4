"""
Base repository class with common CRUD operations.
Repositories handle database access using async SQLAlchemy sessions.
"""

from typing import Generic, TypeVar, Type, Optional, List, Any
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, func

from careflow.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with common CRUD operations."""
    
    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """
        Initialize repository.
        
        Args:
            model: SQLAlchemy model class
            session: Async database session
        """
        self.model = model
        self.session = session
    
    def _apply_filters(self, query, filters: dict):
        """Apply equality filters for attributes that exist on the model."""
        for key, value in filters.items():
            if hasattr(self.model, key):
                query = query.where(getattr(self.model, key) == value)
        return query
    
    def _apply_sort(self, query, sort: Optional[str]):
        """
        Apply a single-field sort.
        
        Args:
            query: Select statement
            sort: Column name, prefixed with '-' for descending
        """
        if not sort:
            return query
        descending = sort.startswith("-")
        field = sort.lstrip("-+")
        column = getattr(self.model, field, None)
        if column is None:
            raise ValueError(f"Unknown sort field: {field}")
        return query.order_by(column.desc() if descending else column.asc())
    
    async def create(self, **kwargs) -> ModelType:
        """
        Create a new record.
        
        Args:
            **kwargs: Model attributes
            
        Returns:
            Created model instance
        """
        instance = self.model(**kwargs)
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance
    
    async def get(self, id: UUID) -> Optional[ModelType]:
        """
        Get a record by ID.
        
        Args:
            id: Record ID
            
        Returns:
            Model instance or None
        """
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()
    
    async def list(
        self,
        skip: int = 0,
        limit: int = 100,
        sort: Optional[str] = None,
        **filters,
    ) -> List[ModelType]:
        """
        List records with pagination, sort and filters.
        
        Args:
            skip: Number of records to skip
            limit: Maximum number of records to return
            sort: Sort field, '-' prefix for descending
            **filters: Equality filter criteria
            
        Returns:
            List of model instances
        """
        query = self._apply_filters(select(self.model), filters)
        query = self._apply_sort(query, sort)
        query = query.offset(skip).limit(limit)
        result = await self.session.execute(query)
        return list(result.scalars().all())
    
    async def count(self, **filters) -> int:
        """Count records matching equality filters."""
        query = self._apply_filters(select(func.count()).select_from(self.model), filters)
        result = await self.session.execute(query)
        return result.scalar_one()
    
    async def update(self, id: UUID, **kwargs) -> Optional[ModelType]:
        """
        Update a record.
        
        Args:
            id: Record ID
            **kwargs: Attributes to update
            
        Returns:
            Updated model instance or None
        """
        if kwargs:
            await self.session.execute(
                update(self.model)
                .where(self.model.id == id)
                .values(**kwargs)
                .execution_options(synchronize_session="fetch")
            )
            await self.session.flush()
        instance = await self.get(id)
        if instance is not None:
            await self.session.refresh(instance)
        return instance
    
    async def delete(self, id: UUID) -> bool:
        """
        Delete a record.
        
        Args:
            id: Record ID
            
        Returns:
            True if deleted, False if not found
        """
        result = await self.session.execute(
            delete(self.model).where(self.model.id == id)
        )
        await self.session.flush()
        return result.rowcount > 0
    
    async def delete_where(self, *criteria: Any) -> int:
        """Delete every record matching the given SQL criteria; returns the row count."""
        result = await self.session.execute(
            delete(self.model).where(*criteria).execution_options(synchronize_session="fetch")
        )
        await self.session.flush()
        return result.rowcount
