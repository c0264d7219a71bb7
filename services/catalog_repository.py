"""
Catalog Repository - product categories, catalog items and the product finder.
"""

import logging
from datetime import datetime
from typing import List, Optional, Dict
from sqlalchemy.orm import Session
from sqlalchemy import or_

from database.models import ProductCategory, CatalogItem, QuoteItem
from services.pricing import money

logger = logging.getLogger(__name__)


class CategoryInUseError(Exception):
    """Raised when deleting a category that still has items"""
    def __init__(self, category_name: str, item_count: int):
        self.item_count = item_count
        super().__init__(
            f"Category '{category_name}' has {item_count} item(s). "
            f"Move or delete them before deleting the category."
        )


class CatalogRepository:
    """Repository for the product catalog."""

    CATEGORY_FIELDS = ['name', 'description', 'display_order', 'is_active']
    ITEM_FIELDS = ['name', 'description', 'category_id', 'sku', 'unit_of_measure', 'is_active', 'notes']

    def __init__(self, session: Session):
        self.session = session

    # =========================================================================
    # CATEGORIES
    # =========================================================================

    def list_categories(self, active_only: bool = False) -> List[Dict]:
        query = self.session.query(ProductCategory)
        if active_only:
            query = query.filter(ProductCategory.is_active == True)  # noqa: E712
        categories = query.order_by(ProductCategory.display_order, ProductCategory.name).all()
        return [c.to_dict() for c in categories]

    def get_category(self, category_id: str) -> Optional[Dict]:
        category = self.session.get(ProductCategory, category_id)
        return category.to_dict() if category else None

    def create_category(self, data: Dict) -> Dict:
        category = ProductCategory(
            name=data['name'].strip(),
            description=data.get('description'),
            display_order=int(data.get('display_order') or 0),
            is_active=data.get('is_active', True)
        )
        self.session.add(category)
        self.session.flush()
        logger.info(f"Created product category: {category.name}")
        return category.to_dict()

    def update_category(self, category_id: str, data: Dict) -> Optional[Dict]:
        category = self.session.get(ProductCategory, category_id)
        if not category:
            return None
        for key in self.CATEGORY_FIELDS:
            if key in data:
                setattr(category, key, data[key])
        self.session.flush()
        return category.to_dict()

    def delete_category(self, category_id: str) -> bool:
        """
        Delete an empty category.

        Raises:
            CategoryInUseError: If any catalog item still belongs to it
        """
        category = self.session.get(ProductCategory, category_id)
        if not category:
            return False

        item_count = self.session.query(CatalogItem).filter(
            CatalogItem.category_id == category_id
        ).count()
        if item_count > 0:
            raise CategoryInUseError(category.name, item_count)

        self.session.delete(category)
        logger.info(f"Deleted product category: {category_id}")
        return True

    # =========================================================================
    # CATALOG ITEMS
    # =========================================================================

    def search_items(self, search: str = None, item_type: str = None, category_id: str = None,
                     active_only: bool = False, limit: int = None) -> List[Dict]:
        """
        Product finder: text search over name, description and SKU with
        optional type, category and active filters. Results are ordered by name.
        """
        query = self.session.query(CatalogItem)
        if search:
            pattern = f"%{search.strip()}%"
            query = query.filter(or_(
                CatalogItem.name.ilike(pattern),
                CatalogItem.description.ilike(pattern),
                CatalogItem.sku.ilike(pattern)
            ))
        if item_type:
            query = query.filter(CatalogItem.item_type == item_type)
        if category_id:
            query = query.filter(CatalogItem.category_id == category_id)
        if active_only:
            query = query.filter(CatalogItem.is_active == True)  # noqa: E712
        query = query.order_by(CatalogItem.name)
        if limit:
            query = query.limit(limit)
        return [item.to_dict() for item in query.all()]

    def get_item(self, item_id: str) -> Optional[CatalogItem]:
        return self.session.get(CatalogItem, item_id)

    def create_item(self, data: Dict) -> Dict:
        item = CatalogItem(
            category_id=data.get('category_id'),
            name=data['name'].strip(),
            description=data.get('description'),
            item_type=data.get('type') or 'product',
            sku=data.get('sku'),
            unit_price=money(data.get('unit_price', 0)),
            unit_of_measure=data.get('unit_of_measure') or 'each',
            default_quantity=money(data.get('default_quantity', 1)),
            is_active=data.get('is_active', True),
            notes=data.get('notes')
        )
        self.session.add(item)
        self.session.flush()
        logger.info(f"Created catalog item: {item.id} ({item.name})")
        return item.to_dict()

    def update_item(self, item_id: str, data: Dict) -> Optional[Dict]:
        item = self.session.get(CatalogItem, item_id)
        if not item:
            return None
        for key in self.ITEM_FIELDS:
            if key in data:
                setattr(item, key, data[key])
        if 'type' in data:
            item.item_type = data['type']
        for key in ('unit_price', 'default_quantity'):
            if key in data:
                setattr(item, key, money(data[key]))
        item.updated_at = datetime.utcnow()
        self.session.flush()
        return item.to_dict()

    def delete_item(self, item_id: str) -> bool:
        item = self.session.get(CatalogItem, item_id)
        if not item:
            return False
        # Quote lines keep their copied description and price
        self.session.query(QuoteItem).filter(QuoteItem.catalog_item_id == item_id).update(
            {QuoteItem.catalog_item_id: None}, synchronize_session=False
        )
        self.session.delete(item)
        logger.info(f"Deleted catalog item: {item_id}")
        return True
