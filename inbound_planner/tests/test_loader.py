"""
Tests for planning file loaders.
"""
import json

import pytest

from inbound_planner import loader


PRODUCTS_JSON = json.dumps(
    [
        {
            "sku": "20oz",
            "bottles_per_case": 24,
            "bottles_per_truck": 26880,
            "cases_per_pallet": 70,
            "scrap_percentage": 1.5,
            "production_rate": 900,
        }
    ]
).encode()

ENTRIES_CSV = b"""sku,date,entry_type,value
20oz,2025-01-02,demand_plan,2400
20oz,2025-01-03,demand_plan,2400
20oz,2025-01-03,demand_plan,
20oz,2025-01-01,production_actual,2310
20oz,2025-01-04,inbound_trucks,2
2L,2025-01-04,inbound_trucks,7
"""


class TestProducts:

    def test_json(self):
        (spec,) = loader.load_products(PRODUCTS_JSON)

        assert spec.sku == "20oz"
        assert spec.bottles_per_truck == 26880
        assert spec.rate_unit == "cases"

    def test_csv(self):
        data = b"sku,bottles_per_case,bottles_per_truck,cases_per_pallet\n2L,8,9600,50\n"
        (spec,) = loader.load_products(data)

        assert spec.cases_per_pallet == 50
        assert spec.scrap_percentage == 0

    def test_rejects_zero_units(self):
        data = b"sku,bottles_per_case,bottles_per_truck,cases_per_pallet\n2L,0,9600,50\n"
        with pytest.raises(ValueError, match="bottles_per_case"):
            loader.load_products(data)

    def test_rejects_negative_scrap(self):
        data = b"sku,bottles_per_case,bottles_per_truck,cases_per_pallet,scrap_percentage\n2L,8,9600,50,-1\n"
        with pytest.raises(ValueError, match="scrap"):
            loader.load_products(data)

    def test_empty_upload(self):
        assert loader.load_products(None) == []


class TestPlanningEntries:

    def test_maps_per_sku(self):
        entries = loader.load_planning_entries(ENTRIES_CSV)
        demand, actuals, inbound = loader.entries_to_maps(entries, "20oz")

        # the blank row clears the earlier 2025-01-03 value
        assert demand == {"2025-01-02": 2400}
        assert actuals == {"2025-01-01": 2310}
        assert inbound == {"2025-01-04": 2}

    def test_unknown_entry_type(self):
        data = b"sku,date,entry_type,value\n20oz,2025-01-02,forecast,1\n"
        with pytest.raises(ValueError, match="entry_type"):
            loader.load_planning_entries(data)

    def test_bad_date(self):
        data = b"sku,date,entry_type,value\n20oz,01/02/2025,demand_plan,1\n"
        with pytest.raises(ValueError, match="YYYY-MM-DD"):
            loader.load_planning_entries(data)


class TestManifest:

    def test_groups_items_by_date(self):
        data = b"""date,po,sku,carrier
2025-01-02,4500012001,20oz,Ridge Freight
2025-01-02,4500012002,20oz,Lakeside
2025-01-03,4500012003,2L,Lakeside
"""
        manifest = loader.load_po_manifest(data, sku="20oz")

        assert list(manifest) == ["2025-01-02"]
        assert [item["po"] for item in manifest["2025-01-02"]["items"]] == ["4500012001", "4500012002"]

    def test_rows_without_sku_are_dropped_when_filtering(self):
        data = b"""date,po,sku,carrier
2025-01-02,4500012001,,Ridge Freight
2025-01-02,4500012002,2L,Lakeside
"""
        assert loader.load_po_manifest(data, sku="20oz") == {}
        assert [i["po"] for i in loader.load_po_manifest(data, sku="2L")["2025-01-02"]["items"]] == ["4500012002"]
        assert len(loader.load_po_manifest(data)["2025-01-02"]["items"]) == 2


class TestSnapshots:

    def test_latest_floor_and_yard(self):
        data = b"""sku,date,count,location
20oz,2025-01-01,30,floor
20oz,2025-01-03,38,floor
20oz,2025-01-02,1,yard
2L,2025-01-04,12,floor
"""
        anchor, yard = loader.latest_snapshot(loader.load_inventory_snapshots(data), "20oz")

        assert anchor.date == "2025-01-03"
        assert anchor.count == 38
        assert yard.count == 1

    def test_rejects_unknown_location(self):
        data = b"sku,date,count,location\n20oz,2025-01-01,3,dock\n"
        with pytest.raises(ValueError, match="floor or yard"):
            loader.load_inventory_snapshots(data)

    def test_no_snapshots(self):
        assert loader.latest_snapshot([], "20oz") == (None, None)
