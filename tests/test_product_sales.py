from datetime import date
import unittest

from app.services.ingestion import SaleRow
from app.services.product_sales import build_product_sales_report, classify_unit, sale_revenue

JAN_1 = date(2024, 1, 1)
JAN_2 = date(2024, 1, 2)
JAN_3 = date(2024, 1, 3)


def _sale(
    day: date,
    *,
    code: str = "P01",
    name: str = "Milk",
    unit: str = "ชิ้น",
    quantity: float = 1,
    unit_price: float = 0,
    total: float = 0,
    employee: str = "Somchai",
    store: str = "Store A",
    time: str = "10:00",
) -> SaleRow:
    return SaleRow(
        date=day,
        time=time,
        employee_name=employee,
        store_name=store,
        product_code=code,
        product_name=name,
        unit_name=unit,
        quantity=quantity,
        unit_price=unit_price,
        total=total,
    )


class ProductSalesTests(unittest.TestCase):
    def test_classify_unit(self) -> None:
        self.assertEqual(classify_unit("กล่อง"), "box")
        self.assertEqual(classify_unit("ลัง"), "box")
        self.assertEqual(classify_unit("Box of 12"), "box")
        self.assertEqual(classify_unit("แพ็ค 6"), "pack")
        self.assertEqual(classify_unit("PACK"), "pack")
        self.assertEqual(classify_unit("ขวด"), "piece")
        self.assertEqual(classify_unit(None), "piece")

    def test_revenue_prefers_unit_price(self) -> None:
        self.assertEqual(sale_revenue(_sale(JAN_1, quantity=3, unit_price=20, total=999)), 60)
        self.assertEqual(sale_revenue(_sale(JAN_1, quantity=3, unit_price=0, total=75)), 75)

    def test_products_grouped_by_code_and_name(self) -> None:
        report = build_product_sales_report(
            [
                _sale(JAN_1, unit="กล่อง", quantity=2, unit_price=100),
                _sale(JAN_2, unit="แพ็ค", quantity=1, unit_price=50, time="09:00"),
                _sale(JAN_2, unit="ชิ้น", quantity=4, unit_price=10, time="15:00"),
                _sale(JAN_1, code="", name="Bread", quantity=1, total=10),
            ],
            dates=[JAN_1, JAN_2],
        )

        self.assertEqual([item.product_key for item in report.products], ["P01::Milk", "unknown::Bread"])
        milk = report.products[0]
        self.assertEqual(milk.total_revenue, 290)
        self.assertEqual(milk.total_quantity, 7)
        self.assertEqual(milk.transactions, 3)
        self.assertEqual(milk.unit_breakdown["box"].revenue, 200)
        self.assertEqual(milk.unit_breakdown["pack"].quantity, 1)
        self.assertEqual(milk.unit_breakdown["piece"].transactions, 1)
        self.assertEqual(milk.average_unit_price, 41.43)
        self.assertEqual(milk.contribution_percent, 96.67)
        self.assertEqual(milk.last_sold_date, JAN_2)
        self.assertEqual(report.summary.total_revenue, 300)
        self.assertEqual(report.summary.unique_products, 2)

    def test_contributors_and_unknown_labels(self) -> None:
        report = build_product_sales_report(
            [
                _sale(JAN_1, employee="A", total=100),
                _sale(JAN_1, employee="B", total=400),
                _sale(JAN_1, employee="C", total=300),
                _sale(JAN_1, employee="", store="", total=200),
            ],
            dates=[JAN_1],
        )

        product = report.products[0]
        self.assertEqual([item.name for item in product.top_employees], ["B", "C", "ไม่ระบุ"])
        self.assertEqual([item.name for item in product.top_stores], ["Store A", "ไม่ระบุ"])
        self.assertEqual(report.summary.all_stores, ("Store A", "ไม่ระบุ"))

    def test_best_region_from_employee_region(self) -> None:
        report = build_product_sales_report(
            [
                _sale(JAN_1, employee="A", total=100),
                _sale(JAN_1, employee="B", total=150),
                _sale(JAN_1, employee="C", total=200),
                _sale(JAN_1, code="P02", name="Tea", employee="D", total=50),
            ],
            dates=[JAN_1],
            employee_regions={"A": "North", "B": "North", "C": "South"},
        )

        by_key = {item.product_key: item for item in report.products}
        self.assertEqual(by_key["P01::Milk"].best_region, "North")
        self.assertEqual(by_key["P02::Tea"].best_region, "ไม่ระบุเขต")

    def test_best_region_is_none_without_revenue(self) -> None:
        report = build_product_sales_report([_sale(JAN_1, quantity=5, total=0)], dates=[JAN_1])

        self.assertIsNone(report.products[0].best_region)
        self.assertEqual(report.products[0].average_unit_price, 0.0)

    def test_filters_and_timeline(self) -> None:
        report = build_product_sales_report(
            [
                _sale(JAN_1, employee="A", total=100),
                _sale(JAN_3, employee="A", total=50),
                _sale(JAN_3, employee="B", total=70),
                _sale(JAN_3, employee="A", store="Store B", total=20),
                _sale(date(2024, 1, 9), employee="A", total=999),
            ],
            dates=[JAN_1, JAN_2, JAN_3],
            employee_names={"A"},
            store_names={"Store A"},
        )

        self.assertEqual(report.summary.total_revenue, 150)
        self.assertEqual(report.summary.transactions, 2)
        self.assertEqual([bucket.date for bucket in report.timeline], [JAN_1, JAN_3])
        self.assertEqual(report.timeline[1].label, "3 ม.ค.")

    def test_empty_sales(self) -> None:
        report = build_product_sales_report([], dates=[JAN_1])

        self.assertEqual(report.products, ())
        self.assertEqual(report.timeline, ())
        self.assertEqual(report.summary.total_revenue, 0)
        self.assertEqual(report.summary.unit_breakdown["box"].transactions, 0)


if __name__ == "__main__":
    unittest.main()
