"""
Customer invoice PDF
"""
from decimal import Decimal

from django.utils import timezone

from storefront.core.pdf import PdfDocument

SELLER_LINES = [
    'MR Shirt Personalisation LTD',
    '10 Barney Close, London SE7 8SS',
    'admin@mrshirtpersonalisation.co.uk',
]

COLUMNS = [80, 560, 760, 900, 1040]


def money(value):
    return f"£{Decimal(value or 0):.2f}"


def render_invoice(order):
    """Render an order invoice and return the PDF bytes"""
    doc = PdfDocument()

    doc.write('INVOICE', font=doc.font_large)
    for line in SELLER_LINES:
        doc.write(line, font=doc.font_small)
    doc.rule()

    doc.write(f"Invoice for order {order.reference}")
    doc.write(f"Date: {timezone.localtime(order.created_at):%d/%m/%Y}", font=doc.font_small)
    doc.write(f"Status: {order.get_status_display()}", font=doc.font_small)
    doc.space()

    doc.write('Bill to', font=doc.font_medium)
    for line in filter(None, [
        order.customer_name,
        order.address,
        order.address_line2,
        f"{order.city}, {order.county}",
        order.postcode,
        order.country,
        order.email,
        order.phone,
    ]):
        doc.write(line, font=doc.font_small)
    doc.rule()

    doc.write_columns(['Item', 'Size / Colour', 'Qty', 'Price', 'Total'], COLUMNS, font=doc.font_medium)
    subtotal = Decimal('0.00')
    for item in order.items.all():
        unit_price = item.price + item.customization_cost
        line_total = unit_price * item.quantity
        subtotal += line_total
        doc.write_columns(
            [item.name[:40], f"{item.size} / {item.color or '-'}", item.quantity, money(unit_price), money(line_total)],
            COLUMNS,
        )
        if item.is_customized:
            extras = ' '.join(filter(None, [item.custom_name, f"#{item.custom_number}" if item.custom_number else '']))
            doc.write(f"Personalisation: {extras} (+{money(item.customization_cost)} each)",
                      font=doc.font_small, x=COLUMNS[0] + 20)
    doc.rule()

    doc.write_right(f"Subtotal: {money(subtotal)}")
    doc.write_right(f"Shipping ({order.shipping_method}): {money(order.shipping_cost)}")
    if order.voucher_code:
        doc.write_right(f"Voucher {order.voucher_code}: -{money(order.voucher_discount)}")
    doc.write_right(f"VAT included: {money(order.vat)}")
    doc.write_right(f"Total: {money(order.total)}", font=doc.font_large)

    doc.space(40)
    doc.write('Thank you for your order!', font=doc.font_small)
    doc.number_pages()
    return doc.render()
