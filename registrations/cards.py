"""
ID card renderer.
Generates a single-page PDF identity card with a QR code of the enrollment
number and the athlete's photo.
"""
import glob
import logging
import os
import shutil
from collections import namedtuple
from pathlib import Path

import requests

from .exceptions import CardRenderError
from .utils import card_filename

logger = logging.getLogger(__name__)

CardDetails = namedtuple(
    'CardDetails',
    ['id', 'enrollment_no', 'type', 'name', 'parentage', 'gender', 'valid', 'district', 'dob'],
)

# Card size (CR80, landscape) in points
INCH_PT = 72.0
CARD_WIDTH = 3.375 * INCH_PT
CARD_HEIGHT = 2.125 * INCH_PT

HEADER_COLOR = (0.64, 0.09, 0.12)
BORDER_COLOR = (0.2, 0.2, 0.2)

PHOTO_SUFFIX = "photo"


def _photo_path(work_dir, reg_no, ext=".png"):
    return work_dir / f"{reg_no}-{PHOTO_SUFFIX}{ext}"


def save_photo_copy(work_dir, reg_no, source_path):
    """
    Keep a copy of the uploaded photo next to the cards so the renderer does
    not have to download it again after payment.
    """
    work_dir = Path(work_dir)
    work_dir.mkdir(parents=True, exist_ok=True)
    ext = Path(str(source_path)).suffix.lower() or ".png"
    target = _photo_path(work_dir, reg_no, ext)
    shutil.copyfile(source_path, target)
    logger.info(f"Photo saved for card rendering as {target.name}")
    return target


def delete_local_files(work_dir, reg_no):
    """Remove every "<reg_no>-*" file in work_dir. Returns how many were removed."""
    removed = 0
    for path in glob.glob(os.path.join(glob.escape(str(work_dir)), f"{glob.escape(reg_no)}-*")):
        try:
            os.remove(path)
            removed += 1
        except FileNotFoundError:
            pass
    if removed:
        logger.info(f"Removed {removed} local file(s) for {reg_no}")
    return removed


class IdentityCardRenderer:
    """Renders membership ID cards into work_dir."""

    def __init__(self, work_dir, title="J&K Taekwondo Association", photo_timeout=10):
        self.work_dir = Path(work_dir)
        self.title = title
        self.photo_timeout = photo_timeout

    def card_path(self, reg_no):
        return self.work_dir / card_filename(reg_no)

    def _local_photo(self, reg_no):
        matches = sorted(glob.glob(str(self.work_dir / f"{glob.escape(reg_no)}-{PHOTO_SUFFIX}.*")))
        return Path(matches[0]) if matches else None

    def _fetch_photo(self, reg_no, photo_url):
        """Download the photo from the content store. Returns None if it cannot be fetched."""
        try:
            response = requests.get(photo_url, timeout=self.photo_timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.warning(f"Could not download photo for {reg_no}: {e}")
            return None
        ext = Path(photo_url.split('?', 1)[0]).suffix.lower() or ".png"
        target = _photo_path(self.work_dir, reg_no, ext)
        target.write_bytes(response.content)
        return target

    def _qr_image(self, details):
        import qrcode

        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=10,
            border=2,
        )
        qr.add_data(f"{details.enrollment_no}|{details.id}")
        qr.make(fit=True)
        return qr.make_image(fill_color="black", back_color="white").convert("RGB")

    def generate(self, details, photo_url=None):
        """
        Render the card for details.id.

        Args:
            details: values printed on the card
            photo_url: fallback location of the photo when no local copy exists

        Returns:
            Path of "<id>-identity-card.pdf" inside work_dir
        """
        from PIL import Image
        from reportlab.lib.utils import ImageReader
        from reportlab.pdfgen import canvas

        self.work_dir.mkdir(parents=True, exist_ok=True)
        output_path = self.card_path(details.id)

        photo_path = self._local_photo(details.id)
        if photo_path is None and photo_url:
            photo_path = self._fetch_photo(details.id, photo_url)

        try:
            c = canvas.Canvas(str(output_path), pagesize=(CARD_WIDTH, CARD_HEIGHT))
            c.setTitle(f"Identity card {details.enrollment_no}")

            # Header band
            header_h = 28
            c.setFillColorRGB(*HEADER_COLOR)
            c.rect(0, CARD_HEIGHT - header_h, CARD_WIDTH, header_h, stroke=0, fill=1)
            c.setFillColorRGB(1, 1, 1)
            c.setFont("Helvetica-Bold", 10)
            c.drawCentredString(CARD_WIDTH / 2, CARD_HEIGHT - 13, self.title)
            c.setFont("Helvetica", 6.5)
            c.drawCentredString(CARD_WIDTH / 2, CARD_HEIGHT - 23, f"ATHLETE IDENTITY CARD  |  TYPE {details.type}")

            # Photo box
            photo_w, photo_h = 58, 70
            photo_x, photo_y = 10, CARD_HEIGHT - header_h - photo_h - 8
            if photo_path is not None:
                try:
                    with Image.open(photo_path) as img:
                        c.drawImage(ImageReader(img.convert("RGB")), photo_x, photo_y,
                                    width=photo_w, height=photo_h, preserveAspectRatio=True)
                except OSError as e:
                    logger.warning(f"Unreadable photo for {details.id}: {e}")
            c.setStrokeColorRGB(*BORDER_COLOR)
            c.rect(photo_x, photo_y, photo_w, photo_h, stroke=1, fill=0)

            # Details
            rows = [
                ("Enrollment No", details.enrollment_no),
                ("Reg No", details.id),
                ("Name", details.name),
                ("Parentage", details.parentage),
                ("Gender", details.gender),
                ("D.O.B", details.dob),
                ("District", details.district),
                ("Valid Till", details.valid),
            ]
            text_x = photo_x + photo_w + 8
            y = CARD_HEIGHT - header_h - 12
            c.setFillColorRGB(0, 0, 0)
            for label, value in rows:
                c.setFont("Helvetica-Bold", 6.5)
                c.drawString(text_x, y, f"{label}:")
                c.setFont("Helvetica", 6.5)
                c.drawString(text_x + 46, y, str(value or "")[:32])
                y -= 9.5

            # QR code, bottom right
            qr_size = 44
            c.drawImage(ImageReader(self._qr_image(details)), CARD_WIDTH - qr_size - 6, 6,
                        width=qr_size, height=qr_size)

            c.setStrokeColorRGB(*BORDER_COLOR)
            c.roundRect(1, 1, CARD_WIDTH - 2, CARD_HEIGHT - 2, 6, stroke=1, fill=0)
            c.showPage()
            c.save()
        except Exception as e:
            logger.error(f"Error rendering ID card for {details.id}: {e}")
            raise CardRenderError(f"Card rendering failed for {details.id}: {e}") from e

        logger.info(f"ID card generated: {output_path.name}")
        return output_path

    def delete_files(self, reg_no):
        """Remove every local file belonging to reg_no. Returns how many were removed."""
        return delete_local_files(self.work_dir, reg_no)
