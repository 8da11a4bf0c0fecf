"""
Printable supply order sheet, one section per supplier
"""
from collections import OrderedDict
from decimal import Decimal

from django.utils import timezone

from storefront.core.pdf import PdfDocument

COLUMNS = [100, 600, 760, 900, 1040]


def group_by_supplier(supply_order):
    groups = OrderedDict()
    for item in supply_order.items.select_related('supply').order_by('supply__supplier_name', 'supply__name'):
        groups.setdefault(item.supply.supplier_name, []).append(item)
    return groups


def render_supply_order(supply_order):
    doc = PdfDocument()
    doc.write(f"Supply Order {supply_order.reference}", font=doc.font_large)
    doc.write(f"Status: {supply_order.get_status_display()}", font=doc.font_small)
    doc.write(f"Created: {timezone.localtime(supply_order.created_at):%d/%m/%Y %H:%M}", font=doc.font_small)
    if supply_order.ordered_at:
        doc.write(f"Ordered: {timezone.localtime(supply_order.ordered_at):%d/%m/%Y %H:%M}", font=doc.font_small)
    if supply_order.notes:
        doc.write(f"Notes: {supply_order.notes}", font=doc.font_small)
    doc.rule()

    for supplier, items in group_by_supplier(supply_order).items():
        first = items[0].supply
        doc.write(supplier, font=doc.font_medium)
        contact = ' | '.join(filter(None, [first.supplier_contact, first.supplier_email, first.supplier_phone,
                                           first.supplier_website]))
        if contact:
            doc.write(contact, font=doc.font_small)
        doc.write_columns(['Item', 'Unit', 'Qty', 'Price', 'Total'], COLUMNS)
        subtotal = Decimal('0.00')
        for item in items:
            subtotal += item.line_total
            doc.write_columns(
                [item.supply.name[:45], item.supply.unit, item.quantity, f"£{item.price_at_order:.2f}",
                 f"£{item.line_total:.2f}"],
                COLUMNS,
            )
            if item.notes:
                doc.write(f"Note: {item.notes}", font=doc.font_small, x=COLUMNS[0] + 20)
        doc.write_right(f"{supplier} subtotal: £{subtotal:.2f}", font=doc.font_small)
        doc.rule()

    doc.write_right(f"Order total: £{supply_order.total_amount:.2f}", font=doc.font_large)
    doc.number_pages()
    return doc.render()
