"""
Tests for product categories, catalog items and the product finder
"""
import pytest


@pytest.fixture
def category(client):
    response = client.post('/api/product-categories', json={'name': 'Heating', 'display_order': 9})
    assert response.status_code == 201
    return response.get_json()['category']


@pytest.fixture
def make_item(client):
    def _make(**overrides):
        payload = {'name': 'Thermostat', 'type': 'product', 'unit_price': 45, 'sku': 'TH-100'}
        payload.update(overrides)
        response = client.post('/api/catalog-items', json=payload)
        assert response.status_code == 201, response.get_json()
        return response.get_json()['item']
    return _make


@pytest.mark.integration
class TestCategories:
    """Tests for /api/product-categories"""

    def test_default_categories_seeded(self, client):
        """Test the starter categories exist"""
        names = [c['name'] for c in client.get('/api/product-categories').get_json()['categories']]
        for expected in ('Ventilation', 'Fire Safety', 'Access', 'Labour', 'Materials'):
            assert expected in names

    def test_create_category(self, category):
        """Test creating a category"""
        assert category['name'] == 'Heating'
        assert category['item_count'] == 0

    def test_create_category_requires_name(self, client):
        """Test a blank name is rejected"""
        assert client.post('/api/product-categories', json={'name': '  '}).status_code == 400

    def test_update_category(self, client, category):
        """Test renaming a category"""
        response = client.patch(f"/api/product-categories/{category['id']}", json={'name': 'Heating & Hot Water'})
        assert response.get_json()['category']['name'] == 'Heating & Hot Water'

    def test_delete_empty_category(self, client, category):
        """Test an empty category can be deleted"""
        assert client.delete(f"/api/product-categories/{category['id']}").status_code == 200
        assert client.get(f"/api/product-categories/{category['id']}").status_code == 404

    def test_delete_category_in_use(self, client, category, make_item):
        """Test a category with items cannot be deleted"""
        make_item(category_id=category['id'])
        response = client.delete(f"/api/product-categories/{category['id']}")
        assert response.status_code == 409
        assert response.get_json()['item_count'] == 1


@pytest.mark.integration
class TestCatalogItems:
    """Tests for /api/catalog-items"""

    def test_create_item(self, make_item, category):
        """Test creating an item in a category"""
        item = make_item(category_id=category['id'])
        assert item['type'] == 'product'
        assert item['unit_price'] == 45.0
        assert item['default_quantity'] == 1.0
        assert item['unit_of_measure'] == 'each'
        assert item['category_name'] == 'Heating'

    def test_invalid_type_rejected(self, client):
        """Test an unknown type is rejected"""
        response = client.post('/api/catalog-items', json={'name': 'Thing', 'type': 'gizmo'})
        assert response.status_code == 400

    def test_update_item(self, client, make_item):
        """Test updating price and type"""
        item = make_item()
        response = client.patch(f"/api/catalog-items/{item['id']}", json={'unit_price': 50, 'type': 'material'})
        updated = response.get_json()['item']
        assert updated['unit_price'] == 50.0
        assert updated['type'] == 'material'

    def test_search_by_name_description_and_sku(self, client, make_item):
        """Test the product finder matches name, description and SKU"""
        make_item(name='Smoke alarm', sku='SA-1', description='Mains powered')
        make_item(name='Heat alarm', sku='HA-2', description='Kitchen use')
        make_item(name='Fan', sku='FN-3', type='product')

        assert client.get('/api/catalog-items/search?search=alarm').get_json()['count'] == 2
        assert client.get('/api/catalog-items/search?search=kitchen').get_json()['items'][0]['name'] == 'Heat alarm'
        assert client.get('/api/catalog-items/search?search=fn-3').get_json()['items'][0]['name'] == 'Fan'

    def test_search_results_sorted_by_name(self, client, make_item):
        """Test finder results are ordered by name"""
        make_item(name='Zone valve', sku='ZV')
        make_item(name='Air brick', sku='AB')
        names = [i['name'] for i in client.get('/api/catalog-items').get_json()['items']]
        assert names == ['Air brick', 'Zone valve']

    def test_filter_by_type_and_active(self, client, make_item):
        """Test type and active filters"""
        make_item(name='Day rate', type='labour', sku=None)
        make_item(name='Old stock', is_active=False, sku=None)
        make_item(name='New stock', sku=None)

        labour = client.get('/api/catalog-items?type=labour').get_json()['items']
        assert [i['name'] for i in labour] == ['Day rate']

        active = client.get('/api/catalog-items?active_only=true').get_json()['items']
        assert 'Old stock' not in [i['name'] for i in active]

    def test_delete_item_keeps_quote_lines(self, client, make_item, make_job):
        """Test deleting a catalog item unlinks quote lines"""
        item = make_item()
        job = make_job()
        client.post(f"/api/jobs/{job['id']}/quote-items/from-catalog", json={'catalog_item_id': item['id']})

        assert client.delete(f"/api/catalog-items/{item['id']}").status_code == 200
        lines = client.get(f"/api/jobs/{job['id']}/quote-items").get_json()['items']
        assert len(lines) == 1
        assert lines[0]['catalog_item_id'] is None
        assert lines[0]['description'] == 'Thermostat'

    def test_missing_item(self, client):
        """Test unknown ids give 404"""
        assert client.get('/api/catalog-items/missing').status_code == 404
