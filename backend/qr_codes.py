import io

import qrcode
from qrcode.constants import ERROR_CORRECT_M

QR_BOX_SIZE = 10
QR_BORDER = 4


def render_team_qr_png(team_code: str) -> bytes:
    """Render a PNG QR code that encodes only the team code."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ERROR_CORRECT_M,
        box_size=QR_BOX_SIZE,
        border=QR_BORDER,
    )
    qr.add_data(team_code)
    qr.make(fit=True)
    image = qr.make_image(fill_color="black", back_color="white")
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()
