"""
Transactional emails.

Every sender returns True when the message was handed to the email backend
and False otherwise. Delivery failures are logged and never raised, so a
broken mail server cannot fail an order, a cancellation or a refund.
"""
import logging
from html import escape

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

BRAND_NAME = 'Mr Shirt Personalisation'


def _money(value):
    return f"£{float(value or 0):.2f}"


def _html(title, lines):
    body = ''.join(f'<p style="color:#374151;font-size:15px;">{escape(str(line))}</p>' for line in lines)
    return (
        '<div style="font-family: Arial, sans-serif; padding: 20px; max-width: 600px; margin: 0 auto;">'
        f'<h2 style="color:#111827;">{escape(title)}</h2>{body}'
        f'<p style="color:#6b7280;font-size:13px;">{BRAND_NAME}</p></div>'
    )


def send_email(to, subject, lines, title=None):
    """Send a plain text + HTML email to one or more recipients"""
    recipients = [to] if isinstance(to, str) else [r for r in to if r]
    if not recipients:
        logger.warning(f"Email '{subject}' skipped: no recipients")
        return False
    try:
        send_mail(
            subject=subject,
            message='\n\n'.join(str(line) for line in lines),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=recipients,
            html_message=_html(title or subject, lines),
            fail_silently=False,
        )
        logger.info(f"Email '{subject}' sent to {recipients}")
        return True
    except Exception as e:
        logger.exception(f"Failed to send email '{subject}' to {recipients}: {e}")
        return False


def _order_lines(order):
    lines = []
    for item in order.items.all():
        line = f"{item.quantity} x {item.name} ({item.size}{', ' + item.color if item.color else ''}) - {_money(item.price * item.quantity)}"
        if item.is_customized:
            extras = ' '.join(filter(None, [item.custom_name, item.custom_number]))
            line += f" | Personalised: {extras} (+{_money(item.customization_cost)})"
        lines.append(line)
    return lines


def send_order_confirmation_email(order):
    lines = [
        f"Hi {order.first_name}, thank you for your order!",
        f"Order reference: {order.reference}",
        *_order_lines(order),
    ]
    if order.voucher_code:
        lines.append(f"Voucher {order.voucher_code}: -{_money(order.voucher_discount)}")
    lines += [
        f"Shipping ({order.shipping_method}): {_money(order.shipping_cost)}",
        f"VAT included: {_money(order.vat)}",
        f"Total: {_money(order.total)}",
        f"Status: {order.get_status_display()}",
    ]
    return send_email(
        order.email,
        f"Order Confirmation - {order.reference} | {BRAND_NAME}",
        lines,
        title='Thank you for your order',
    )


def send_payment_confirmation_email(order):
    return send_email(
        order.email,
        f"Payment Confirmed - Order {order.reference}",
        [
            f"Hi {order.first_name}, we have received your payment of {_money(order.total)}.",
            f"Order reference: {order.reference}",
        ],
    )


def send_order_shipped_email(order):
    lines = [
        f"Hi {order.first_name}, your order {order.reference} is on its way.",
        f"Courier: {order.courier or 'N/A'}",
        f"Tracking number: {order.tracking_number or 'N/A'}",
    ]
    if order.estimated_delivery_days:
        lines.append(f"Estimated delivery: {order.estimated_delivery_days}")
    return send_email(
        order.email,
        f"Your Order Has Shipped! - {order.reference} | {BRAND_NAME}",
        lines,
    )


def send_order_cancellation_email(order):
    return send_email(
        order.email,
        f"Order Cancelled - {order.reference} | {BRAND_NAME}",
        [
            f"Hi {order.first_name}, your order {order.reference} has been cancelled.",
            f"Reason: {order.cancellation_reason or 'Not specified'}",
            "If you paid by card, any refund will be processed to your original payment method.",
        ],
    )


def send_refund_email(order, amount):
    return send_email(
        order.email,
        f"Refund Processed - {order.reference} | {BRAND_NAME}",
        [
            f"Hi {order.first_name}, a refund of {_money(amount)} has been issued for order {order.reference}.",
            "Refunds usually reach your account within 5-10 working days.",
        ],
    )


def send_password_reset_email(email, reset_url):
    return send_email(
        email,
        f"Reset Your Password | {BRAND_NAME}",
        [
            "We received a request to reset your password.",
            f"Reset your password here: {reset_url}",
            "This link expires in 1 hour. If you did not request it, you can ignore this email.",
        ],
    )


def send_registration_email(user):
    return send_email(
        user.email,
        f"Welcome to {BRAND_NAME}! Your Registration is Successful",
        [
            f"Hi {user.first_name or user.username}, your account has been created.",
            "You can now track your orders and check out faster.",
        ],
    )


def send_low_stock_alert(product_name, color, size, current_stock):
    return send_email(
        settings.ADMIN_EMAIL,
        f"Low Stock Alert: {product_name}",
        [
            "The following product is running low on stock:",
            f"{product_name} - Colour: {color} - Size: {size}",
            f"Current stock: {current_stock}",
            "Please review and restock if necessary.",
        ],
    )


def send_custom_order_emails(custom_order):
    """Notify the shop inbox and the customer about a new custom order request"""
    summary = [
        f"Customer: {custom_order.first_name} {custom_order.last_name} ({custom_order.email}, {custom_order.phone})",
        f"Product: {custom_order.selected_product}",
        f"Printing surface: {', '.join(custom_order.printing_surface)}",
        f"Design location: {', '.join(custom_order.design_location)}",
        f"Colours: {', '.join(custom_order.selected_colors)}",
        f"Sizes: {', '.join(f'{size} x {qty}' for size, qty in custom_order.size_quantities.items())}",
        f"Total items: {custom_order.total_quantity}",
    ]
    admin_sent = send_email(
        settings.ADMIN_EMAIL,
        f"New Custom Order Request #{custom_order.pk}",
        summary + [f"Design files: {len(custom_order.design_files)}"],
    )
    customer_sent = send_email(
        custom_order.email,
        f"We've received your custom order request | {BRAND_NAME}",
        [f"Hi {custom_order.first_name}, thanks for your request. We will be in touch with a quote shortly."] + summary,
    )
    return admin_sent and customer_sent
