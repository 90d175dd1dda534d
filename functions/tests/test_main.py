import json
import unittest
from unittest.mock import patch

from freezegun import freeze_time

from fixtures import TENANT_DATA, InMemoryRepository, make_bed, make_room, make_tenant
from main import (
    book_bed, book_room, change_rent, clear_bed, clear_tenant, export_csv, get_collections, get_overview,
    mark_rent_paid, set_default_rent, toggle_rent, update_tenant, vacate_bed, vacate_room,
)


# Custom Mock Request class to simulate firebase_functions.https_fn.Request
class MockRequest:
    def __init__(self, json_data=None, args_data=None):
        self._json_data = json_data
        self._args_data = args_data if args_data is not None else {}

    def get_json(self, silent=True):
        return self._json_data

    @property
    def args(self):
        return self._args_data


class TestHttpFunctions(unittest.TestCase):

    def setUp(self):
        self.repository = InMemoryRepository(
            rooms=[
                make_room('101', [make_bed('101-1'), make_bed('101-2', True, 't1')]),
                make_room('103', [make_bed('103-1'), make_bed('103-2')], bookable_as_room=True),
            ],
            tenants=[make_tenant('t1', bedId='101-2')],
        )
        patcher = patch('main.get_repository', return_value=self.repository)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_book_bed_success(self):
        response = book_bed(MockRequest(json_data={'roomId': '101', 'bedId': '101-1', 'tenantData': TENANT_DATA}))

        self.assertEqual(response.status_code, 200)
        body = json.loads(response.get_data(as_text=True))
        self.assertEqual(len(body['tenants']), 2)
        self.assertTrue(body['rooms'][0]['beds'][0]['occupied'])
        self.assertEqual(self.repository.save_count, 1)

    def test_book_bed_missing_fields(self):
        response = book_bed(MockRequest(json_data={'roomId': '101'}))
        self.assertEqual(response.status_code, 400)
        self.assertIn('bedId', response.get_data(as_text=True))

    def test_no_body(self):
        self.assertEqual(book_room(MockRequest()).status_code, 400)

    def test_occupied_bed_is_404(self):
        response = book_bed(MockRequest(json_data={'roomId': '101', 'bedId': '101-2', 'tenantData': TENANT_DATA}))
        self.assertEqual(response.status_code, 404)
        self.assertEqual(self.repository.save_count, 0)

    def test_book_room_and_vacate_room(self):
        self.assertEqual(book_room(MockRequest(json_data={'roomId': '103', 'tenantData': TENANT_DATA})).status_code, 200)
        response = vacate_room(MockRequest(json_data={'roomId': '103', 'vacateDate': '2025-08-31'}))
        self.assertEqual(response.status_code, 200)
        body = json.loads(response.get_data(as_text=True))
        self.assertFalse(body['tenants'][-1]['active'])
        self.assertEqual(body['tenants'][-1]['vacateDate'], '2025-08-31')

    def test_vacate_and_clear_bed(self):
        self.assertEqual(clear_bed(MockRequest(json_data={'roomId': '101', 'bedId': '101-1'})).status_code, 404)
        response = vacate_bed(MockRequest(json_data={'roomId': '101', 'bedId': '101-2'}))
        self.assertEqual(response.status_code, 200)

    def test_update_tenant_rejects_rent_changes(self):
        response = update_tenant(MockRequest(json_data={'tenantId': 't1', 'updates': {'rentChanges': []}}))
        self.assertEqual(response.status_code, 400)
        response = update_tenant(MockRequest(json_data={'tenantId': 't1', 'updates': {'contact': '12345'}}))
        self.assertEqual(response.status_code, 200)

    def test_update_tenant_rejects_link_and_identity_fields(self):
        for field, value in (('id', 'other'), ('active', False), ('roomId', '103'),
                             ('bedId', '101-1'), ('roomBooked', True), ('vacateDate', '2025-08-31')):
            response = update_tenant(MockRequest(json_data={'tenantId': 't1', 'updates': {field: value}}))
            self.assertEqual(response.status_code, 400, field)
        response = update_tenant(MockRequest(json_data={'tenantId': 't1', 'updates': ['name']}))
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.repository.save_count, 0)

    def test_change_rent_rejects_non_numeric_amount(self):
        for amount in ('abc', True, 'nan', [7000]):
            response = change_rent(MockRequest(json_data={'tenantId': 't1', 'amount': amount, 'mode': 'correction'}))
            self.assertEqual(response.status_code, 400, amount)
        self.assertEqual(self.repository.save_count, 0)
        self.assertEqual(self.repository.snapshot.tenants[0]['rentChanges'], [{'from': '2025-01', 'amount': 5000}])

        response = change_rent(MockRequest(json_data={'tenantId': 't1', 'amount': '7000', 'mode': 'correction'}))
        self.assertEqual(response.status_code, 200)

    def test_toggle_rent_rejects_malformed_month(self):
        for month in ('June', '2025-6', '2025.06', '2025-06-01', '2025/06'):
            response = toggle_rent(MockRequest(json_data={'tenantId': 't1', 'month': month}))
            self.assertEqual(response.status_code, 400, month)
        self.assertEqual(self.repository.save_count, 0)

        response = toggle_rent(MockRequest(json_data={'tenantId': 't1', 'month': '2025-06'}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.repository.snapshot.tenants[0]['rentHistory'], {'2025-06': True})

    def test_set_default_rent_rejects_non_numeric_amount(self):
        response = set_default_rent(MockRequest(json_data={'roomId': '101', 'bedId': '101-1', 'amount': 'abc'}))
        self.assertEqual(response.status_code, 400)
        response = set_default_rent(MockRequest(json_data={'roomId': '101', 'bedId': '101-1', 'amount': 5500}))
        self.assertEqual(response.status_code, 200)

    def test_clear_tenant(self):
        response = clear_tenant(MockRequest(json_data={'tenantId': 't1'}))
        self.assertEqual(response.status_code, 200)
        body = json.loads(response.get_data(as_text=True))
        self.assertEqual(body['tenants'], [])
        self.assertFalse(body['rooms'][0]['beds'][1]['occupied'])
        self.assertEqual(clear_tenant(MockRequest(json_data={'tenantId': 't1'})).status_code, 404)

    @freeze_time("2025-04-05")
    def test_mark_rent_paid(self):
        response = mark_rent_paid(MockRequest(json_data={'tenantId': 't1'}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.repository.snapshot.tenants[0]['rentHistory'], {'2025-04': True})
        self.assertEqual(mark_rent_paid(MockRequest(json_data={'tenantId': 't1'})).status_code, 404)

    def test_change_rent_validates_mode(self):
        response = change_rent(MockRequest(json_data={'tenantId': 't1', 'amount': 7000, 'mode': 'backdate'}))
        self.assertEqual(response.status_code, 400)
        response = change_rent(MockRequest(json_data={'tenantId': 't1', 'amount': 7000, 'mode': 'correction'}))
        self.assertEqual(response.status_code, 200)

    @freeze_time("2025-04-05")
    def test_toggle_rent_and_collections(self):
        self.assertEqual(toggle_rent(MockRequest(json_data={'tenantId': 't1'})).status_code, 200)

        response = get_collections(MockRequest(args_data={'month': '2025-04'}))
        self.assertEqual(response.status_code, 200)
        report = json.loads(response.get_data(as_text=True))
        self.assertEqual(report['stats']['collected'], 5000)
        self.assertEqual(report['stats']['paidCount'], 1)

    def test_get_overview(self):
        response = get_overview(MockRequest())
        self.assertEqual(response.status_code, 200)
        overview = json.loads(response.get_data(as_text=True))
        self.assertEqual(overview['stats']['occupiedBeds'], 1)

    @freeze_time("2025-04-05")
    def test_export_csv_download(self):
        response = export_csv(MockRequest())
        self.assertEqual(response.status_code, 200)
        self.assertIn('text/csv', response.headers['Content-Type'])
        self.assertIn('-2025-04-05.csv', response.headers['Content-Disposition'])
        self.assertIn('1 tenants total', response.get_data(as_text=True))

    @patch('main.upload_export', return_value='Exports/pg-manager-2025-04-05.csv')
    def test_export_csv_store(self, mock_upload_export):
        response = export_csv(MockRequest(args_data={'store': '1'}))
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_data(as_text=True), 'Exports/pg-manager-2025-04-05.csv')
        mock_upload_export.assert_called_once()

    @patch('main.upload_export', return_value=None)
    def test_export_csv_store_failure(self, mock_upload_export):
        self.assertEqual(export_csv(MockRequest(args_data={'store': '1'})).status_code, 500)


if __name__ == '__main__':
    unittest.main()
