"""
Utility functions for catalog operations
"""
from django.utils import timezone
from .models import SIZE_CODES


def get_prefix_for_color(color_name):
    """First three letters of the colour name, uppercased and padded with X"""
    letters = ''.join(ch for ch in (color_name or '').upper() if ch.isalnum())
    return (letters[:3] or 'UNK').ljust(3, 'X')


def generate_barcode_value(product, color_name, size, when=None):
    """
    Build a barcode value for one colour/size of a product.
    Format: YYMMDD + COL + 5-digit product id + size code (e.g. 250114BLA0004203)
    """
    if size not in SIZE_CODES:
        raise ValueError(f"Unknown size: {size}")
    when = when or timezone.localdate()
    return f"{when:%y%m%d}{get_prefix_for_color(color_name)}{product.id:05d}{SIZE_CODES[size]}"


def assign_barcode(product, color_name, size, color_hex=None, save=True):
    """
    Generate a barcode entry for (colour, size), replacing any previous one
    for the same pair. Returns the new entry.
    """
    if not color_hex:
        color_hex = next(
            (c.get('hexCode') for c in (product.colors or []) if c.get('name') == color_name),
            ''
        )
    entry = {
        'colorName': color_name,
        'colorHex': color_hex or '',
        'size': size,
        'sizeCode': SIZE_CODES[size],
        'value': generate_barcode_value(product, color_name, size),
    }
    barcodes = [
        b for b in (product.barcodes or [])
        if not (b.get('colorName') == color_name and b.get('size') == size)
    ]
    barcodes.append(entry)
    product.barcodes = barcodes
    if save:
        product.save(update_fields=['barcodes', 'updated_at'])
    return entry


def find_barcode(product, color_name, size):
    for entry in product.barcodes or []:
        if entry.get('colorName') == color_name and entry.get('size') == size:
            return entry
    return None
