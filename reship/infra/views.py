# reship/infra/views.py
"""
Helper views for the reports.

Views:
- vw_order_overview:   orders with client/store/shipment names ("N/A" when the
                       referenced row is missing).
- vw_drawer_occupancy: stored orders per drawer against its capacity.

The views assume migrations V1..V2 are applied.
"""

from __future__ import annotations

from .db import connect


def create_views(db_path: str) -> None:
    with connect(db_path) as c:
        c.executescript(
            """
            DROP VIEW IF EXISTS vw_order_overview;
            CREATE VIEW vw_order_overview AS
            SELECT
                o.id,
                o.local_order_id,
                o.status,
                o.client_id,
                COALESCE(cl.name, 'N/A')          AS client_name,
                COALESCE(st.name, 'N/A')          AS store_name,
                COALESCE(sh.shipment_number, '')  AS shipment_number,
                b.box_number                      AS box_number,
                o.shipping_type,
                o.storage_location,
                date(o.order_date)                AS order_date,
                date(o.expected_arrival_date)     AS expected_arrival_date
            FROM orders o
            LEFT JOIN client cl ON cl.id = o.client_id
            LEFT JOIN store st ON st.id = o.store_id
            LEFT JOIN shipment sh ON sh.id = o.shipment_id
            LEFT JOIN box b ON b.id = o.box_id;

            DROP VIEW IF EXISTS vw_drawer_occupancy;
            CREATE VIEW vw_drawer_occupancy AS
            SELECT
                d.name,
                d.rows,
                d.columns,
                d.capacity,
                COUNT(o.id) AS stored_orders,
                COUNT(DISTINCT o.storage_location) AS used_slots
            FROM storage_drawer d
            LEFT JOIN orders o
                   ON o.status = 'stored'
                  AND substr(o.storage_location, 1, length(d.name) + 1) = d.name || '-'
            GROUP BY d.id;
            """
        )

        c.executescript(
            """
            CREATE INDEX IF NOT EXISTS ix_orders_client ON orders(client_id);
            CREATE INDEX IF NOT EXISTS ix_orders_location ON orders(storage_location);
            CREATE INDEX IF NOT EXISTS ix_box_shipment ON box(shipment_id);
            """
        )
