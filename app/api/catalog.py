"""
Catalog Routes Blueprint

Handles the product catalog and product finder:
- /api/product-categories: List / create categories
- /api/product-categories/<category_id>: Get / update / delete (rejected while items remain)
- /api/catalog-items: List / create items
- /api/catalog-items/search: Product finder
- /api/catalog-items/<item_id>: Get / update / delete
"""

from flask import Blueprint, request, jsonify
import logging

from database.connection import get_db_session
from services.catalog_repository import CatalogRepository, CategoryInUseError
from validators import (
    validate_category, validate_catalog_item, require_valid, ValidationError, format_validation_error
)
from app.utils.helpers import parse_bool

logger = logging.getLogger(__name__)

# Create blueprint
catalog_bp = Blueprint('catalog_bp', __name__)


def _search_args():
    limit = request.args.get('limit', type=int)
    return {
        'search': request.args.get('q') or request.args.get('search'),
        'item_type': request.args.get('type'),
        'category_id': request.args.get('category_id'),
        'active_only': parse_bool(request.args.get('active_only')),
        'limit': limit,
    }


# ============================================================================
# CATEGORY ROUTES
# ============================================================================

@catalog_bp.route('/api/product-categories', methods=['GET', 'POST'])
def handle_categories():
    """List categories or create a new category"""
    try:
        with get_db_session() as session:
            repo = CatalogRepository(session)

            if request.method == 'GET':
                categories = repo.list_categories(active_only=parse_bool(request.args.get('active_only')))
                return jsonify({'success': True, 'categories': categories})

            data = request.get_json(silent=True)
            require_valid(validate_category(data))
            category = repo.create_category(data)
            return jsonify({'success': True, 'category': category}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Product categories error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@catalog_bp.route('/api/product-categories/<category_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_category(category_id):
    """Get, update or delete a category"""
    try:
        with get_db_session() as session:
            repo = CatalogRepository(session)

            if request.method == 'GET':
                category = repo.get_category(category_id)
            elif request.method == 'DELETE':
                if not repo.delete_category(category_id):
                    return jsonify({'success': False, 'error': 'Category not found'}), 404
                return jsonify({'success': True})
            else:
                data = request.get_json(silent=True)
                require_valid(validate_category(data, partial=True))
                category = repo.update_category(category_id, data)

            if not category:
                return jsonify({'success': False, 'error': 'Category not found'}), 404
            return jsonify({'success': True, 'category': category})
    except CategoryInUseError as e:
        return jsonify({'success': False, 'error': str(e), 'item_count': e.item_count}), 409
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Product category {category_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


# ============================================================================
# CATALOG ITEM ROUTES
# ============================================================================

@catalog_bp.route('/api/catalog-items', methods=['GET', 'POST'])
def handle_catalog_items():
    """List catalog items or create a new item"""
    try:
        with get_db_session() as session:
            repo = CatalogRepository(session)

            if request.method == 'GET':
                items = repo.search_items(**_search_args())
                return jsonify({'success': True, 'items': items, 'count': len(items)})

            data = request.get_json(silent=True)
            require_valid(validate_catalog_item(data))
            item = repo.create_item(data)
            return jsonify({'success': True, 'item': item}), 201
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Catalog items error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@catalog_bp.route('/api/catalog-items/search', methods=['GET'])
def search_catalog_items():
    """Product finder over name, description and SKU"""
    try:
        with get_db_session() as session:
            items = CatalogRepository(session).search_items(**_search_args())
            return jsonify({'success': True, 'items': items, 'count': len(items)})
    except Exception as e:
        logger.error(f"Catalog search error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500


@catalog_bp.route('/api/catalog-items/<item_id>', methods=['GET', 'PUT', 'PATCH', 'DELETE'])
def handle_catalog_item(item_id):
    """Get, update or delete a catalog item"""
    try:
        with get_db_session() as session:
            repo = CatalogRepository(session)

            if request.method == 'GET':
                item = repo.get_item(item_id)
                item = item.to_dict() if item else None
            elif request.method == 'DELETE':
                if not repo.delete_item(item_id):
                    return jsonify({'success': False, 'error': 'Catalog item not found'}), 404
                return jsonify({'success': True})
            else:
                data = request.get_json(silent=True)
                require_valid(validate_catalog_item(data, partial=True))
                item = repo.update_item(item_id, data)

            if not item:
                return jsonify({'success': False, 'error': 'Catalog item not found'}), 404
            return jsonify({'success': True, 'item': item})
    except ValidationError as e:
        return jsonify(format_validation_error(e.field, e.message)), 400
    except Exception as e:
        logger.error(f"Catalog item {item_id} error: {e}")
        return jsonify({'success': False, 'error': str(e)}), 500
