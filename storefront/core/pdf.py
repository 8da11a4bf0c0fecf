"""
Minimal page-oriented PDF writer built on Pillow.

Pages are drawn as white A4 bitmaps and saved with Pillow's PDF encoder,
which keeps documents (invoices, supply order sheets, label sheets) inside
the imaging stack already used for barcode labels.
"""
import io

from PIL import Image, ImageDraw, ImageFont

A4_SIZE = (1240, 1754)  # 150 DPI
DPI = 150


def load_fonts(sizes=(28, 18, 14)):
    """Return (large, medium, small) fonts, falling back to Pillow's bundled font"""
    try:
        return (
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf', sizes[0]),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', sizes[1]),
            ImageFont.truetype('/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf', sizes[2]),
        )
    except (OSError, IOError):
        try:
            return (
                ImageFont.truetype('arial.ttf', sizes[0]),
                ImageFont.truetype('arial.ttf', sizes[1]),
                ImageFont.truetype('arial.ttf', sizes[2]),
            )
        except (OSError, IOError):
            default = ImageFont.load_default()
            return default, default, default


class PdfDocument:
    """Cursor-based writer: ``write`` lines top to bottom, pages break automatically"""

    def __init__(self, page_size=A4_SIZE, margin=80, line_spacing=10):
        self.page_size = page_size
        self.margin = margin
        self.line_spacing = line_spacing
        self.font_large, self.font_medium, self.font_small = load_fonts()
        self.pages = []
        self.new_page()

    def new_page(self):
        self.page = Image.new('RGB', self.page_size, color='white')
        self.draw = ImageDraw.Draw(self.page)
        self.pages.append(self.page)
        self.y = self.margin

    def _line_height(self, font):
        bbox = self.draw.textbbox((0, 0), 'Ag', font=font)
        return bbox[3] - bbox[1] + self.line_spacing

    def ensure_space(self, height):
        if self.y + height > self.page_size[1] - self.margin:
            self.new_page()

    def write(self, text, font=None, x=None, fill='black'):
        font = font or self.font_medium
        height = self._line_height(font)
        self.ensure_space(height)
        self.draw.text((self.margin if x is None else x, self.y), str(text), fill=fill, font=font)
        self.y += height

    def write_columns(self, values, positions, font=None, fill='black'):
        """Write one row of text at the given x positions"""
        font = font or self.font_small
        height = self._line_height(font)
        self.ensure_space(height)
        for value, x in zip(values, positions):
            self.draw.text((x, self.y), str(value), fill=fill, font=font)
        self.y += height

    def write_right(self, text, font=None, fill='black'):
        font = font or self.font_medium
        height = self._line_height(font)
        self.ensure_space(height)
        bbox = self.draw.textbbox((0, 0), str(text), font=font)
        x = self.page_size[0] - self.margin - (bbox[2] - bbox[0])
        self.draw.text((x, self.y), str(text), fill=fill, font=font)
        self.y += height

    def rule(self, gap=12):
        self.ensure_space(gap * 2)
        self.y += gap
        self.draw.line((self.margin, self.y, self.page_size[0] - self.margin, self.y), fill='#999999', width=2)
        self.y += gap

    def space(self, height=20):
        self.y += height

    def paste(self, image, x=None):
        self.ensure_space(image.size[1])
        self.page.paste(image, (self.margin if x is None else x, self.y))
        self.y += image.size[1] + self.line_spacing

    def number_pages(self):
        """Stamp 'Page i of n' at the bottom of every page"""
        total = len(self.pages)
        for index, page in enumerate(self.pages, start=1):
            draw = ImageDraw.Draw(page)
            text = f"Page {index} of {total}"
            bbox = draw.textbbox((0, 0), text, font=self.font_small)
            x = (self.page_size[0] - (bbox[2] - bbox[0])) // 2
            draw.text((x, self.page_size[1] - self.margin // 2), text, fill='#666666', font=self.font_small)

    def render(self):
        """Return the document as PDF bytes"""
        buffer = io.BytesIO()
        first, rest = self.pages[0], self.pages[1:]
        first.save(buffer, format='PDF', save_all=True, append_images=rest, resolution=DPI)
        data = buffer.getvalue()
        buffer.close()
        return data


def images_to_pdf(images, resolution=DPI):
    """Save a list of PIL images as a multi-page PDF"""
    buffer = io.BytesIO()
    first, rest = images[0], images[1:]
    first.save(buffer, format='PDF', save_all=True, append_images=rest, resolution=resolution)
    data = buffer.getvalue()
    buffer.close()
    return data
