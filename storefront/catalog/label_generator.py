"""
Local barcode label generator.
Uses PIL/Pillow and python-barcode to draw 4x6 inch Code128 labels and
bundle them into a printable multi-page PDF.
"""
import logging
from typing import Iterable, Optional

import barcode
from barcode.writer import ImageWriter
from PIL import Image, ImageDraw

from storefront.core.pdf import load_fonts, images_to_pdf

logger = logging.getLogger(__name__)

LABEL_DPI = 100
LABEL_WIDTH = 4 * LABEL_DPI
LABEL_HEIGHT = 6 * LABEL_DPI


def _draw_centered(draw, text, y, font, width):
    bbox = draw.textbbox((0, 0), text, font=font)
    text_width = bbox[2] - bbox[0]
    draw.text(((width - text_width) // 2, y), text, fill='black', font=font)
    return bbox[3] - bbox[1]


def render_barcode(barcode_value: str) -> Image.Image:
    """Render a Code128 barcode without human readable text"""
    code128 = barcode.get_barcode_class('code128')
    barcode_instance = code128(barcode_value, writer=ImageWriter())
    return barcode_instance.render({
        'write_text': False,
        'module_width': 0.3,
        'module_height': 20.0,
        'quiet_zone': 2.0,
        'font_size': 0,
        'text_distance': 0,
        'background': 'white',
        'foreground': 'black',
    })


def generate_label_image(
    product_name: str,
    barcode_value: str,
    color: Optional[str] = None,
    size: Optional[str] = None,
    width: int = LABEL_WIDTH,
    height: int = LABEL_HEIGHT,
) -> Image.Image:
    """
    Draw one label: product name, colour/size line, barcode and its value.

    Args:
        product_name: Product name (truncated if too long)
        barcode_value: Value encoded as Code128
        color: Colour name printed under the product name
        size: Size printed under the product name
        width: Label width in pixels (default 4 inches at 100 DPI)
        height: Label height in pixels (default 6 inches at 100 DPI)

    Returns:
        PIL image of the label
    """
    max_name_length = 28
    if len(product_name) > max_name_length:
        product_name = product_name[:max_name_length] + '...'

    img = Image.new('RGB', (width, height), color='white')
    draw = ImageDraw.Draw(img)
    font_large, font_medium, font_small = load_fonts((26, 20, 16))

    margin = 20
    y = margin * 2
    y += _draw_centered(draw, product_name, y, font_large, width) + 16

    variant_text = ' / '.join(part for part in (color, size) if part)
    if variant_text:
        y += _draw_centered(draw, variant_text, y, font_medium, width) + 24

    try:
        barcode_img = render_barcode(barcode_value)
        barcode_img_width, barcode_img_height = barcode_img.size

        # Fit the barcode to the label width, keep it under half the label height
        barcode_width = width - (2 * margin)
        scale_factor = barcode_width / barcode_img_width
        scaled_height = int(barcode_img_height * scale_factor)
        max_height = height // 2
        if scaled_height > max_height:
            scale_factor = max_height / barcode_img_height
            scaled_height = max_height
            barcode_width = int(barcode_img_width * scale_factor)

        barcode_img = barcode_img.resize((barcode_width, scaled_height), Image.Resampling.BILINEAR)
        img.paste(barcode_img, ((width - barcode_width) // 2, y))
        y += scaled_height + 10
    except Exception as e:
        # Still print a readable label when the barcode cannot be rendered
        logger.error(f"Barcode generation failed for '{barcode_value}': {str(e)}")
        y += _draw_centered(draw, 'BARCODE UNAVAILABLE', y, font_medium, width) + 10

    _draw_centered(draw, barcode_value, y, font_small, width)
    return img


def generate_label_sheet(labels: Iterable[dict]) -> bytes:
    """
    Build a multi-page PDF, one label per page.

    Each item needs ``product_name`` and ``barcode_value`` and may carry
    ``color``, ``size`` and ``quantity`` (copies, default 1).
    """
    images = []
    for label in labels:
        image = generate_label_image(
            product_name=label['product_name'],
            barcode_value=label['barcode_value'],
            color=label.get('color'),
            size=label.get('size'),
        )
        images.extend([image] * max(int(label.get('quantity', 1)), 1))

    if not images:
        raise ValueError('No labels to print')
    return images_to_pdf(images, resolution=LABEL_DPI)
