import unittest

from freezegun import freeze_time

from fixtures import make_tenant
from logic.collections_logic import (
    collections_history, current_month_view, history_months, is_applicable,
    month_stats, tenant_label,
)
from logic.rent_ledger import rent_for_month


@freeze_time("2025-04-05")
class TestCollections(unittest.TestCase):

    def setUp(self):
        self.tenants = [
            make_tenant('t1', name='Asha', rentHistory={'2025-03': True}),
            make_tenant(
                't2', name='Bina', joiningDate='2025-03-10', rent=6000, roomId='102', bedId='102-1',
                rentChanges=[{'from': '2025-03', 'amount': 6000}],
                rentHistory={'2025-03': True, '2025-04': True},
            ),
            make_tenant(
                't3', name='Chitra', joiningDate='2024-12-01', rent=4000, active=False, vacateDate='2025-02-15',
                rentChanges=[{'from': '2024-12', 'amount': 4000}],
                rentHistory={'2025-01': True},
            ),
        ]

    def test_is_applicable(self):
        t1, t2, t3 = self.tenants
        self.assertTrue(is_applicable(t1, '2025-01'))
        self.assertFalse(is_applicable(t2, '2025-02'))
        self.assertTrue(is_applicable(t3, '2025-02'))
        self.assertFalse(is_applicable(t3, '2025-03'))
        self.assertFalse(is_applicable(make_tenant('t4', joiningDate='bad'), '2025-03'))

    def test_month_stats(self):
        self.assertEqual(month_stats('2025-03', self.tenants), {
            'month': '2025-03', 'expected': 11000, 'collected': 11000, 'paidCount': 2, 'total': 2,
        })
        self.assertEqual(month_stats('2025-02', self.tenants), {
            'month': '2025-02', 'expected': 9000, 'collected': 0, 'paidCount': 0, 'total': 2,
        })
        self.assertEqual(month_stats('2025-01', self.tenants), {
            'month': '2025-01', 'expected': 9000, 'collected': 4000, 'paidCount': 1, 'total': 2,
        })

    def test_stats_are_consistent_for_every_month(self):
        for stats in collections_history(self.tenants):
            applicable = [t for t in self.tenants if is_applicable(t, stats['month'])]
            self.assertEqual(stats['expected'], sum(rent_for_month(t, stats['month']) for t in applicable))
            self.assertLessEqual(stats['collected'], stats['expected'])
            self.assertLessEqual(stats['paidCount'], stats['total'])

    def test_history_months_most_recent_first(self):
        self.assertEqual(history_months(self.tenants), ['2025-04', '2025-03', '2025-02', '2025-01', '2024-12'])
        self.assertEqual(history_months([]), [])

    def test_current_month_view(self):
        view = current_month_view(self.tenants)

        self.assertEqual(view['month'], '2025-04')
        self.assertEqual([row['tenantId'] for row in view['rows']], ['t2', 't1'])
        self.assertEqual(view['paidCount'], 1)
        self.assertEqual(view['unpaidCount'], 1)
        self.assertEqual(view['collected'], 6000)
        self.assertEqual(view['expected'], 11000)

    def test_tenant_label(self):
        self.assertEqual(tenant_label(self.tenants[1]), 'Room 102 · Bed 1')
        self.assertEqual(tenant_label(make_tenant('t5', roomId='103', roomBooked=True, bedId=None)), 'Room 103')
        self.assertEqual(tenant_label(make_tenant('t6', roomId=None)), '—')


if __name__ == '__main__':
    unittest.main()
