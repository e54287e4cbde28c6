"""Scannable display code for booking numbers"""

import base64
import io
import logging
from typing import Callable, Optional

import qrcode

logger = logging.getLogger(__name__)


def encode_for_display(booking_number: str) -> str:
    """Render the booking number as a QR code PNG data URI"""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(booking_number)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    qr_code_base64 = base64.b64encode(buffer.getvalue()).decode()
    return f"data:image/png;base64,{qr_code_base64}"


def safe_encode(encoder: Callable[[str], str], booking_number: str) -> Optional[str]:
    """Run the encoder; a failure yields None and never affects the booking"""
    try:
        return encoder(booking_number)
    except Exception as e:
        logger.warning(f"⚠️ Could not generate display code for {booking_number}: {e}")
        return None
