#!/usr/bin/env python3
"""
Demo: Cross-sheet references in xlsx workbooks

This demo builds two small workbooks and runs the xlsxref pipeline on them.

Features demonstrated:
- Direct references into another workbook ("master.xlsx")
- Polymorphic references selected per row by a reference name
- Reference data sheet, defined names and dropdown validations
- Export of resolved sheets to JSON
- Generation of Go model code
"""

import sys
from pathlib import Path

from openpyxl import Workbook as XLSXWorkbook

from xlsxref.exporter import JSONExporter
from xlsxref.generator import GenerateOption, GoGenerator
from xlsxref.reference import DEFINITION_FIELDS
from xlsxref.workbook import Workbook


def write_xlsx(path: Path, sheets: dict[str, list[list]]) -> Path:
    wb = XLSXWorkbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for row in rows:
            ws.append(row)
    wb.save(path)
    return path


def create_demo_files(demo_dir: Path) -> Path:
    """Create master.xlsx (lookup tables) and orders.xlsx (data + references)."""

    print("\n1. Creating demo workbooks")
    print("-" * 40)

    write_xlsx(
        demo_dir / "master.xlsx",
        {
            "Customers": [
                ["string", "string"],
                ["code", "name"],
                ["Customer code", "Customer name"],
                ["C1", "ACME Corp."],
                ["C2", "Globex"],
            ],
            "Suppliers": [
                ["string", "string"],
                ["code", "name"],
                ["Supplier code", "Supplier name"],
                ["S1", "Initech"],
            ],
        },
    )
    orders = write_xlsx(
        demo_dir / "orders.xlsx",
        {
            "orders": [
                ["int", "ref", "string", "ref", "float"],
                ["id", "customer", "party_kind", "party", "amount"],
                ["Order ID", "Customer", "Kind of party", "Party", "Amount"],
                ["1", "C1", "supplier", "S1", "10.5"],
                ["2", "C2", "customer", "C1", "3"],
            ],
            "_references": [
                list(DEFINITION_FIELDS),
                ["orders", "customer", "master", "Customers"]
                + ["code", "name", "customer"],
                ["orders", "party", "", "orders", "party_kind", "", ""],
                ["", "", "master", "Suppliers", "code", "name", "supplier"],
            ],
        },
    )
    print(f"✓ Created {demo_dir / 'master.xlsx'}")
    print(f"✓ Created {orders}")
    return orders


def demo_update(orders: Path):
    print("\n2. Updating reference data and validations")
    print("-" * 40)
    with Workbook.open(orders, writable=True) as wb:
        wb.update_reference_data()
        wb.update_data_validations()
        wb.save()
        names = sorted(wb.xlsx.defined_names)
    print(f"✓ Defined names: {', '.join(names)}")


def demo_export(orders: Path, outdir: Path):
    print("\n3. Exporting resolved sheets")
    print("-" * 40)
    with Workbook.open(orders) as wb:
        wb.export(JSONExporter(outdir))
    print((outdir / "orders.json").read_text(encoding="utf-8"))


def demo_generate(orders: Path, outdir: Path):
    print("\n4. Generating Go models")
    print("-" * 40)
    with Workbook.open(orders) as wb:
        wb.generate(GoGenerator(GenerateOption(outdir=outdir)))
    print((outdir / "orders.gen.go").read_text(encoding="utf-8"))


def main():
    demo_dir = Path("xlsxref_demo")
    demo_dir.mkdir(exist_ok=True)

    orders = create_demo_files(demo_dir)
    demo_update(orders)
    demo_export(orders, demo_dir)
    demo_generate(orders, demo_dir)

    print("\n✓ Demo complete! Files are in", demo_dir.absolute())
    return 0


if __name__ == "__main__":
    sys.exit(main())
